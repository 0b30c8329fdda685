"""Chat client for OpenRouter's OpenAI-compatible endpoint.

Conversation history is kept as ``{"role", "content"}`` dicts whose content is
either a string or a list of ``text`` / ``tool_use`` / ``tool_result`` blocks.
``to_openai_messages`` flattens that onto chat-completions messages.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, AsyncIterator

from research_chat.config import settings
from research_chat.errors import ConfigurationError


@dataclass
class Usage:
    input_tokens: int = 0
    output_tokens: int = 0


@dataclass
class TextBlock:
    text: str
    type: str = "text"


@dataclass
class ToolUseBlock:
    id: str
    name: str
    input: dict[str, Any]
    type: str = "tool_use"


@dataclass
class MessageResponse:
    content: list[TextBlock | ToolUseBlock]
    usage: Usage

    @property
    def text(self) -> str:
        return "\n".join(b.text for b in self.content if isinstance(b, TextBlock))


def _field(block: Any, name: str) -> Any:
    if isinstance(block, dict):
        return block.get(name)
    return getattr(block, name, None)


def parse_tool_arguments(raw: str | None) -> dict[str, Any]:
    """Decode streamed tool arguments; anything but a JSON object becomes ``{}``."""
    try:
        parsed = json.loads(raw or "{}")
    except json.JSONDecodeError:
        return {}
    return parsed if isinstance(parsed, dict) else {}


def extract_json_object(raw_text: str) -> dict[str, Any]:
    """Pull the outermost JSON object out of model text, tolerating code fences."""
    text = raw_text.strip()
    if text.startswith("```"):
        parts = text.split("```")
        if len(parts) >= 2:
            text = parts[1]
        if text.startswith("json"):
            text = text[4:]
        text = text.strip()
    start = text.find("{")
    end = text.rfind("}")
    if start < 0 or end <= start:
        raise json.JSONDecodeError("object not found", text, 0)
    parsed = json.loads(text[start : end + 1])
    if not isinstance(parsed, dict):
        raise json.JSONDecodeError("not an object", text, 0)
    return parsed


# --- history -> chat-completions ---


def _assistant_message(blocks: list[Any]) -> dict[str, Any]:
    texts = [_field(b, "text") for b in blocks if _field(b, "type") == "text" and _field(b, "text")]
    calls = [
        {
            "id": _field(b, "id"),
            "type": "function",
            "function": {"name": _field(b, "name"), "arguments": json.dumps(_field(b, "input") or {})},
        }
        for b in blocks
        if _field(b, "type") == "tool_use"
    ]
    message: dict[str, Any] = {"role": "assistant", "content": "\n".join(texts) if texts else None}
    if calls:
        message["tool_calls"] = calls
    return message


def _tool_messages(blocks: list[Any]) -> list[dict[str, Any]]:
    messages = []
    for block in blocks:
        if _field(block, "type") != "tool_result":
            continue
        content = str(_field(block, "content") or "")
        if _field(block, "is_error"):
            content = f"ERROR: {content}"
        messages.append(
            {"role": "tool", "tool_call_id": _field(block, "tool_use_id") or "", "content": content}
        )
    return messages


def to_openai_messages(system: str, history: list[dict[str, Any]]) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = [{"role": "system", "content": system}]
    for message in history:
        role, content = message["role"], message["content"]
        if isinstance(content, list) and role == "assistant":
            out.append(_assistant_message(content))
        elif isinstance(content, list) and role == "user":
            out.extend(_tool_messages(content))
        else:
            out.append({"role": role, "content": content if isinstance(content, str) else str(content)})
    return out


def to_openai_tools(declarations: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [
        {
            "type": "function",
            "function": {
                "name": d["name"],
                "description": d.get("description", ""),
                "parameters": d.get("input_schema") or {"type": "object", "properties": {}},
            },
        }
        for d in declarations
    ]


# --- streaming ---


@dataclass
class _ToolCallBuffer:
    """Fragments of one tool call, keyed by its stream index."""

    id: str = ""
    name: str = ""
    parts: list[str] = field(default_factory=list)

    def feed(self, delta: Any) -> None:
        if getattr(delta, "id", None):
            self.id = delta.id
        function = getattr(delta, "function", None)
        if function is None:
            return
        if getattr(function, "name", None):
            self.name = function.name
        if getattr(function, "arguments", None):
            self.parts.append(function.arguments)

    def to_block(self, index: int) -> ToolUseBlock:
        return ToolUseBlock(
            id=self.id or f"call_{index}",
            name=self.name,
            input=parse_tool_arguments("".join(self.parts)),
        )


class ChatStream:
    """Async context manager over one streamed completion.

    Iterate ``text_stream`` for text as it arrives; ``get_final_message``
    drains whatever is left and returns text plus assembled tool calls.
    """

    def __init__(self, request: Any):
        self._request = request
        self._stream: Any | None = None
        self._usage = Usage()
        self._text: list[str] = []
        self._calls: dict[int, _ToolCallBuffer] = {}
        self._drained = False

    async def __aenter__(self) -> ChatStream:
        self._stream = await self._request
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._stream is not None:
            await self._stream.close()

    def _consume(self, chunk: Any) -> str | None:
        usage = getattr(chunk, "usage", None)
        if usage:
            self._usage = Usage(
                input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
                output_tokens=getattr(usage, "completion_tokens", 0) or 0,
            )
        choices = getattr(chunk, "choices", None)
        delta = getattr(choices[0], "delta", None) if choices else None
        if delta is None:
            return None
        for call in getattr(delta, "tool_calls", None) or []:
            index = getattr(call, "index", None)
            if index is None:
                index = len(self._calls)
            self._calls.setdefault(index, _ToolCallBuffer()).feed(call)
        text = getattr(delta, "content", None)
        if text:
            self._text.append(text)
        return text or None

    async def _texts(self) -> AsyncIterator[str]:
        if self._stream is None or self._drained:
            return
        async for chunk in self._stream:
            text = self._consume(chunk)
            if text:
                yield text
        self._drained = True

    @property
    def text_stream(self) -> AsyncIterator[str]:
        return self._texts()

    async def get_final_message(self) -> MessageResponse:
        async for _ in self._texts():
            pass
        content: list[TextBlock | ToolUseBlock] = []
        if self._text:
            content.append(TextBlock(text="".join(self._text)))
        content.extend(self._calls[i].to_block(i) for i in sorted(self._calls))
        return MessageResponse(content=content, usage=self._usage)


class OpenRouterClient:
    """Thin wrapper over an ``AsyncOpenAI`` client pointed at OpenRouter."""

    def __init__(self, openai_client: Any):
        self._client = openai_client

    async def create(
        self,
        *,
        model: str,
        max_tokens: int,
        system: str,
        messages: list[dict[str, Any]],
        json_output: bool = False,
    ) -> MessageResponse:
        """One non-streamed completion; ``json_output`` asks for a JSON object reply."""
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": to_openai_messages(system, messages),
            "max_tokens": max_tokens,
        }
        if json_output:
            kwargs["response_format"] = {"type": "json_object"}

        response = await self._client.chat.completions.create(**kwargs)
        message = response.choices[0].message
        usage = getattr(response, "usage", None)
        text = getattr(message, "content", None)
        return MessageResponse(
            content=[TextBlock(text=text)] if text else [],
            usage=Usage(
                input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
                output_tokens=getattr(usage, "completion_tokens", 0) or 0,
            ),
        )

    def stream(
        self,
        *,
        model: str,
        max_tokens: int,
        system: str,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
    ) -> ChatStream:
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": to_openai_messages(system, messages),
            "max_tokens": max_tokens,
            "stream": True,
            "stream_options": {"include_usage": True},
        }
        if tools:
            kwargs["tools"] = to_openai_tools(tools)
            kwargs["tool_choice"] = "auto"
        return ChatStream(self._client.chat.completions.create(**kwargs))


def get_client() -> OpenRouterClient:
    """Build a client from settings; the key is checked here, not at import."""
    from openai import AsyncOpenAI

    if not settings.openrouter_api_key:
        raise ConfigurationError("OPENROUTER_API_KEY not configured")
    return OpenRouterClient(
        AsyncOpenAI(
            api_key=settings.openrouter_api_key,
            base_url=settings.openrouter_base_url.strip() or "https://openrouter.ai/api/v1",
        )
    )


def get_model() -> str:
    return settings.openrouter_model or settings.default_model


_client: OpenRouterClient | None = None


def client() -> OpenRouterClient:
    """Get or create the shared client."""
    global _client
    if _client is None:
        _client = get_client()
    return _client
