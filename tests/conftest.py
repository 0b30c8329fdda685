from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import pytest

from research_chat.llm_client import OpenRouterClient


def text_chunk(text: str) -> SimpleNamespace:
    return SimpleNamespace(
        choices=[SimpleNamespace(delta=SimpleNamespace(content=text, tool_calls=None))],
        usage=None,
    )


def tool_chunk(index: int, *, call_id: str | None = None, name: str | None = None, arguments: str | None = None):
    call = SimpleNamespace(
        index=index,
        id=call_id,
        function=SimpleNamespace(name=name, arguments=arguments),
    )
    return SimpleNamespace(
        choices=[SimpleNamespace(delta=SimpleNamespace(content=None, tool_calls=[call]))],
        usage=None,
    )


def usage_chunk(prompt_tokens: int, completion_tokens: int) -> SimpleNamespace:
    return SimpleNamespace(
        choices=[],
        usage=SimpleNamespace(prompt_tokens=prompt_tokens, completion_tokens=completion_tokens),
    )


class FakeChunkStream:
    def __init__(self, chunks: list[Any]):
        self._chunks = list(chunks)
        self._iterator = self._gen()
        self.closed = False

    def __aiter__(self):
        return self._iterator

    async def _gen(self):
        for chunk in self._chunks:
            yield chunk

    async def close(self):
        self.closed = True


class FakeCompletions:
    """Replays one scripted chunk list per ``create`` call and records the kwargs."""

    def __init__(self, rounds: list[list[Any]]):
        self._rounds = list(rounds)
        self.calls: list[dict[str, Any]] = []
        self.streams: list[FakeChunkStream] = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if not self._rounds:
            raise RuntimeError("no scripted response left")
        stream = FakeChunkStream(self._rounds.pop(0))
        self.streams.append(stream)
        return stream


class FakeOpenAI:
    def __init__(self, rounds: list[list[Any]]):
        self.completions = FakeCompletions(rounds)
        self.chat = SimpleNamespace(completions=self.completions)


@pytest.fixture
def scripted_llm():
    """Build an OpenRouter client over a fake SDK that replays scripted rounds."""

    def _build(*rounds: list[Any]) -> tuple[OpenRouterClient, FakeCompletions]:
        fake = FakeOpenAI(list(rounds))
        return OpenRouterClient(fake), fake.completions

    return _build
