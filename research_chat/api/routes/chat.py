from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException
from fastapi.responses import PlainTextResponse
from sse_starlette.sse import EventSourceResponse

from research_chat.agents.chat_agent import ChatAgent
from research_chat.models.schemas import ChatRequest
from research_chat.services import database as db
from research_chat.services import logger as log_service
from research_chat.services import prompt_store, streaming

router = APIRouter(prefix="/api/chat", tags=["chat"])


def _history(request: ChatRequest) -> list[dict[str, Any]]:
    """Client messages as model history, dropping empty ones."""
    return [
        {"role": m.role, "content": m.content}
        for m in request.messages
        if m.role != "system" and m.content.strip()
    ]


@router.post("")
async def chat(request: ChatRequest):
    """Run one chat turn and stream text, tool calls and tool results as SSE."""
    if request.system_prompt:
        system = request.system_prompt
    else:
        try:
            system = prompt_store.system_prompt(request.prompt, max_searches=request.max_searches)
        except KeyError as e:
            raise HTTPException(status_code=400, detail=str(e.args[0])) from e

    history = _history(request)
    if not history:
        raise HTTPException(status_code=400, detail="No messages to send")

    async def event_generator():
        log_service.log_event(
            event_type="chat_started",
            message="Chat turn started",
            chat_id=request.id,
            messages=len(history),
        )
        agent = ChatAgent(system_prompt=system)
        finished = False
        try:
            async for event in agent.run(history):
                if event.event.value == "finish":
                    finished = True
                yield event.to_sse()
        except Exception as e:
            log_service.log_event(
                event_type="stream_error",
                message="Unhandled error in chat stream",
                error=str(e),
                chat_id=request.id,
            )
            yield streaming.error("Chat stream failed unexpectedly.").to_sse()
            return

        if finished and db.db_available():
            try:
                await db.save_chat(request.id, history + agent.response_messages)
            except Exception as e:
                log_service.log_db_operation("save", "chats", "error", error=f"Failed to save chat: {e}")

    return EventSourceResponse(event_generator())


@router.delete("", response_class=PlainTextResponse)
async def delete_chat(id: str | None = None):
    if not id:
        raise HTTPException(status_code=404, detail="Not Found")
    if not db.db_available():
        raise HTTPException(status_code=503, detail="Chat persistence is not configured")

    chat_row = await db.get_chat(id)
    if chat_row is None:
        raise HTTPException(status_code=404, detail="Chat not found")

    await db.delete_chat(id)
    return "Chat deleted"
