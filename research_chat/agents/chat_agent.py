from __future__ import annotations

import json
import time
from dataclasses import asdict, is_dataclass
from typing import Any, AsyncGenerator

from research_chat.agents import tools as tool_registry
from research_chat.config import settings
from research_chat.errors import ConfigurationError, error_payload, is_error_payload
from research_chat.llm_client import client as llm_client, get_model
from research_chat.models.events import SSEEvent
from research_chat.services import logger as log_service
from research_chat.services import streaming


def _block_to_dict(block: Any) -> dict[str, Any]:
    return asdict(block) if is_dataclass(block) else dict(block)


class ChatAgent:
    """Streaming tool-use loop between the chat model and the registered tools.

    ``run`` is an async generator of SSEEvents: text deltas as the model writes,
    a ``tool_call``/``tool_result`` pair per tool invocation, then ``finish``.
    The messages produced during the run are kept in ``response_messages`` so
    the caller can persist the conversation.
    """

    name = "chat"

    def __init__(
        self,
        system_prompt: str,
        model: str | None = None,
        tool_names: list[str] | None = None,
        max_rounds: int | None = None,
    ):
        self.system_prompt = system_prompt
        self.model = model or get_model()
        self.tools = tool_registry.declarations(tool_names)
        self.max_rounds = max_rounds or settings.chat_max_tool_rounds
        self.client = None
        self.response_messages: list[dict[str, Any]] = []
        self.final_text = ""

    async def _execute_tool(self, name: str, tool_input: dict[str, Any]) -> tuple[dict[str, Any], bool]:
        try:
            result = await tool_registry.dispatch(name, tool_input)
        except Exception as e:
            # Tool bugs reach the model as an error payload.
            log_service.logger.exception(f"Tool {name} raised")
            return error_payload(f"Tool {name} failed", e), True
        return result, is_error_payload(result)

    async def run(self, messages: list[dict[str, Any]]) -> AsyncGenerator[SSEEvent, None]:
        history: list[dict[str, Any]] = list(messages)
        input_tokens = 0
        output_tokens = 0

        try:
            active_client = self.client or llm_client()
        except ConfigurationError as e:
            yield streaming.error(str(e))
            return

        for round_index in range(1, self.max_rounds + 1):
            t0 = time.monotonic()
            try:
                async with active_client.stream(
                    model=self.model,
                    max_tokens=settings.chat_max_tokens,
                    system=self.system_prompt,
                    messages=history,
                    tools=self.tools,
                ) as stream:
                    async for text in stream.text_stream:
                        yield streaming.text_delta(text)
                    response = await stream.get_final_message()
            except Exception as e:
                log_service.log_llm_call(
                    model=self.model,
                    caller=self.name,
                    duration_ms=int((time.monotonic() - t0) * 1000),
                    status="error",
                    error=str(e),
                )
                yield streaming.error("The language model request failed.")
                return

            input_tokens += response.usage.input_tokens
            output_tokens += response.usage.output_tokens
            log_service.log_llm_call(
                model=self.model,
                caller=self.name,
                input_tokens=response.usage.input_tokens,
                output_tokens=response.usage.output_tokens,
                duration_ms=int((time.monotonic() - t0) * 1000),
            )

            blocks = [_block_to_dict(b) for b in response.content]
            tool_use_blocks = [b for b in blocks if b["type"] == "tool_use"]
            text = "\n".join(b["text"] for b in blocks if b["type"] == "text")
            assistant_message = {"role": "assistant", "content": blocks if tool_use_blocks else text}
            history.append(assistant_message)
            self.response_messages.append(assistant_message)

            if not tool_use_blocks:
                self.final_text = text
                yield streaming.finish(
                    text, input_tokens=input_tokens, output_tokens=output_tokens, steps=round_index
                )
                return

            tool_results = []
            for block in tool_use_blocks:
                yield streaming.tool_call(block["id"], block["name"], block["input"])
                result, is_error = await self._execute_tool(block["name"], block["input"])
                yield streaming.tool_result(
                    block["id"], block["name"], tool_registry.client_view(block["name"], result)
                )
                tool_result: dict[str, Any] = {
                    "type": "tool_result",
                    "tool_use_id": block["id"],
                    "content": json.dumps(result, default=str),
                }
                if is_error:
                    tool_result["is_error"] = True
                tool_results.append(tool_result)

            tool_message = {"role": "user", "content": tool_results}
            history.append(tool_message)
            self.response_messages.append(tool_message)

        self.final_text = "Max tool rounds reached."
        yield streaming.finish(
            self.final_text,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            steps=self.max_rounds,
        )
