from __future__ import annotations

from fastapi import APIRouter

from research_chat.agents import tools as tool_registry
from research_chat.config import settings
from research_chat.models.schemas import PromptsResponse, ToolInfo, ToolsResponse
from research_chat.services.prompt_store import SYSTEM_PROMPTS

router = APIRouter(prefix="/api", tags=["tools"])


@router.get("/tools", response_model=ToolsResponse)
async def list_tools():
    """List the tools declared to the chat model."""
    return ToolsResponse(tools=[ToolInfo(**d) for d in tool_registry.declarations()])


@router.get("/prompts", response_model=PromptsResponse)
async def list_prompts():
    """List the named system prompts a chat can select."""
    return PromptsResponse(prompts=list(SYSTEM_PROMPTS), default=settings.default_prompt)
