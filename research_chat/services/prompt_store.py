from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from string import Template
from typing import Any

from research_chat.config import settings

PROMPTS_PATH = Path(__file__).resolve().parents[1] / "prompts" / "prompts.json"

# Named system prompts selectable by chat clients.
SYSTEM_PROMPTS = ("flights", "marketing", "simple_research", "advanced_research", "advisor")

# (mtime_ns, parsed catalog); reloaded when prompts.json changes on disk.
_cached: tuple[int, dict[str, Any]] | None = None


def _catalog() -> dict[str, Any]:
    global _cached
    mtime_ns = PROMPTS_PATH.stat().st_mtime_ns
    if _cached is None or _cached[0] != mtime_ns:
        payload = json.loads(PROMPTS_PATH.read_text(encoding="utf-8"))
        if not isinstance(payload, dict):
            raise ValueError(f"{PROMPTS_PATH.name} must contain a JSON object")
        _cached = (mtime_ns, payload)
    return _cached[1]


def render_prompt(key: str, **values: Any) -> str:
    """Render a dotted catalog key (``chat.flights``) with ``$name`` substitution."""
    node: Any = _catalog()
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            raise KeyError(f"Prompt key not found: {key}")
        node = node[part]
    if not isinstance(node, str):
        raise TypeError(f"Prompt key must map to a string: {key}")

    try:
        return Template(node).substitute(**values)
    except KeyError as exc:
        raise KeyError(f"Missing template value '{exc.args[0]}' for prompt '{key}'") from exc


def system_prompt(name: str | None = None, *, max_searches: int | None = None) -> str:
    """Render a named chat system prompt with today's date filled in."""
    name = name or settings.default_prompt
    today = date.today().strftime("%A, %B %d, %Y")

    if name == "simple_research":
        return render_prompt(
            "chat.research_base",
            today=today,
            tool_instructions=render_prompt("chat.simple_research_tools"),
        )
    if name == "advanced_research":
        return render_prompt(
            "chat.research_base",
            today=today,
            tool_instructions=render_prompt(
                "chat.advanced_research_tools",
                max_searches=max_searches or settings.research_max_searches,
            ),
        )
    if name not in SYSTEM_PROMPTS:
        raise KeyError(f"Unknown system prompt: {name}")
    return render_prompt(f"chat.{name}", today=today)
