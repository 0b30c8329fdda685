from __future__ import annotations

import json
from types import SimpleNamespace

import pytest

from conftest import text_chunk, tool_chunk, usage_chunk
from research_chat import llm_client
from research_chat.config import settings
from research_chat.errors import ConfigurationError
from research_chat.llm_client import TextBlock, ToolUseBlock, to_openai_messages, to_openai_tools


def test_to_openai_messages_maps_tool_blocks():
    history = [
        {"role": "user", "content": "Research solar power"},
        {
            "role": "assistant",
            "content": [
                {"type": "text", "text": "Searching now."},
                {"type": "tool_use", "id": "call_1", "name": "performSearch", "input": {"query": "solar"}},
            ],
        },
        {
            "role": "user",
            "content": [
                {"type": "tool_result", "tool_use_id": "call_1", "content": '{"results": []}'},
                {"type": "tool_result", "tool_use_id": "call_2", "content": "bad", "is_error": True},
            ],
        },
    ]

    mapped = to_openai_messages("be helpful", history)

    assert mapped[0] == {"role": "system", "content": "be helpful"}
    assert mapped[1] == {"role": "user", "content": "Research solar power"}
    assert mapped[2]["content"] == "Searching now."
    assert mapped[2]["tool_calls"][0]["function"] == {
        "name": "performSearch",
        "arguments": '{"query": "solar"}',
    }
    assert mapped[3] == {"role": "tool", "tool_call_id": "call_1", "content": '{"results": []}'}
    assert mapped[4]["content"] == "ERROR: bad"


def test_assistant_message_with_only_tool_calls_has_null_content():
    mapped = to_openai_messages(
        "s",
        [{"role": "assistant", "content": [ToolUseBlock(id="c", name="getWeather", input={})]}],
    )
    assert mapped[1]["content"] is None
    assert mapped[1]["tool_calls"][0]["id"] == "c"


def test_to_openai_tools_wraps_declarations():
    tools = to_openai_tools([{"name": "performSearch", "description": "search", "input_schema": {"type": "object"}}])
    assert tools == [
        {
            "type": "function",
            "function": {"name": "performSearch", "description": "search", "parameters": {"type": "object"}},
        }
    ]


@pytest.mark.asyncio
async def test_stream_yields_text_and_accumulates_tool_calls(scripted_llm):
    client, completions = scripted_llm(
        [
            text_chunk("Let me "),
            text_chunk("check."),
            tool_chunk(0, call_id="call_a", name="performSearch", arguments='{"que'),
            tool_chunk(0, arguments='ry": "solar"}'),
            tool_chunk(1, name="getWeather", arguments='{"latitude": 1, "longitude": 2}'),
            usage_chunk(40, 7),
        ]
    )

    async with client.stream(
        model="test-model",
        max_tokens=100,
        system="sys",
        messages=[{"role": "user", "content": "hi"}],
        tools=[{"name": "performSearch", "input_schema": {"type": "object"}}],
    ) as stream:
        texts = [t async for t in stream.text_stream]
        final = await stream.get_final_message()

    assert texts == ["Let me ", "check."]
    assert final.content[0] == TextBlock(text="Let me check.")
    assert final.content[1] == ToolUseBlock(id="call_a", name="performSearch", input={"query": "solar"})
    # no id in the stream: a positional id is generated
    assert final.content[2].id == "call_1"
    assert final.usage.input_tokens == 40
    assert final.usage.output_tokens == 7

    call = completions.calls[0]
    assert call["stream"] is True
    assert call["tool_choice"] == "auto"
    assert completions.streams[0].closed


@pytest.mark.asyncio
async def test_get_final_message_drains_unread_stream(scripted_llm):
    client, _ = scripted_llm([text_chunk("done")])

    async with client.stream(model="m", max_tokens=10, system="s", messages=[]) as stream:
        final = await stream.get_final_message()

    assert final.content == [TextBlock(text="done")]


def test_malformed_tool_arguments_become_empty_dict():
    assert llm_client.parse_tool_arguments("{not json") == {}
    assert llm_client.parse_tool_arguments('["list"]') == {}


def test_get_client_requires_key(monkeypatch):
    monkeypatch.setattr(settings, "openrouter_api_key", "")
    with pytest.raises(ConfigurationError):
        llm_client.get_client()


def test_get_model_prefers_override(monkeypatch):
    monkeypatch.setattr(settings, "openrouter_model", "")
    monkeypatch.setattr(settings, "default_model", "google/gemini-2.0-flash-001")
    assert llm_client.get_model() == "google/gemini-2.0-flash-001"

    monkeypatch.setattr(settings, "openrouter_model", "openai/gpt-4o-mini")
    assert llm_client.get_model() == "openai/gpt-4o-mini"


class _FakeCreateOnly:
    """Non-streamed completions: returns one canned response and records kwargs."""

    def __init__(self, content: str | None):
        self.calls: list[dict] = []
        self._response = SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
            usage=SimpleNamespace(prompt_tokens=12, completion_tokens=30),
        )
        self.chat = SimpleNamespace(completions=self)

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        return self._response


@pytest.mark.asyncio
async def test_create_requests_json_object_reply():
    fake = _FakeCreateOnly('{"seats": []}')
    client = llm_client.OpenRouterClient(fake)

    response = await client.create(
        model="m", max_tokens=50, system="sys", messages=[{"role": "user", "content": "seats"}], json_output=True
    )

    assert response.text == '{"seats": []}'
    assert response.usage.output_tokens == 30
    call = fake.calls[0]
    assert call["response_format"] == {"type": "json_object"}
    assert "stream" not in call
    assert call["messages"][0] == {"role": "system", "content": "sys"}


@pytest.mark.asyncio
async def test_create_with_empty_reply_has_no_content():
    client = llm_client.OpenRouterClient(_FakeCreateOnly(None))

    response = await client.create(model="m", max_tokens=5, system="s", messages=[])

    assert response.content == []
    assert response.text == ""


def test_extract_json_object_strips_code_fences():
    raw = '```json\n{"totalPriceInUSD": 420.5}\n```'
    assert llm_client.extract_json_object(raw) == {"totalPriceInUSD": 420.5}
    assert llm_client.extract_json_object('Sure! {"a": 1} hope that helps') == {"a": 1}


def test_extract_json_object_rejects_text_without_object():
    with pytest.raises(json.JSONDecodeError):
        llm_client.extract_json_object("no flights today")
