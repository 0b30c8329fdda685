from __future__ import annotations

from typing import Any

from research_chat.models.events import EventType, SSEEvent


def text_delta(text: str) -> SSEEvent:
    return SSEEvent(event=EventType.TEXT_DELTA, data={"text": text})


def tool_call(call_id: str, name: str, args: dict[str, Any]) -> SSEEvent:
    return SSEEvent(event=EventType.TOOL_CALL, data={"id": call_id, "name": name, "args": args})


def tool_result(call_id: str, name: str, result: dict[str, Any]) -> SSEEvent:
    return SSEEvent(
        event=EventType.TOOL_RESULT,
        data={"id": call_id, "name": name, "result": result},
    )


def finish(text: str, *, input_tokens: int = 0, output_tokens: int = 0, steps: int = 0) -> SSEEvent:
    return SSEEvent(
        event=EventType.FINISH,
        data={
            "text": text,
            "steps": steps,
            "usage": {"input_tokens": input_tokens, "output_tokens": output_tokens},
        },
    )


def error(message: str) -> SSEEvent:
    return SSEEvent(event=EventType.ERROR, data={"message": message})
