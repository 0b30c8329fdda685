"""Sample flight data generated by the chat model.

There is no airline backend behind the booking demo: searches, statuses,
seat maps and reservation prices are asked of the model as JSON and
validated against the shapes in ``models.flights``.
"""

from __future__ import annotations

import json
import time
from typing import Any, TypeVar

from openai import OpenAIError
from pydantic import BaseModel, ValidationError

from research_chat.config import settings
from research_chat.errors import UpstreamError
from research_chat.llm_client import client, extract_json_object, get_model
from research_chat.models.flights import FlightSearchResults, FlightStatus, ReservationPrice, SeatMap
from research_chat.services.logger import log_llm_call
from research_chat.services.prompt_store import render_prompt

ModelT = TypeVar("ModelT", bound=BaseModel)


async def _generate(prompt_key: str, output_model: type[ModelT], **values: Any) -> ModelT:
    model = get_model()
    chat = client()
    t0 = time.monotonic()
    try:
        response = await chat.create(
            model=model,
            max_tokens=settings.flight_data_max_tokens,
            system=render_prompt("flight_data.system"),
            messages=[{"role": "user", "content": render_prompt(f"flight_data.{prompt_key}", **values)}],
            json_output=True,
        )
    except OpenAIError as e:
        log_llm_call(
            model,
            f"flights.{prompt_key}",
            duration_ms=int((time.monotonic() - t0) * 1000),
            status="error",
            error=str(e),
        )
        raise UpstreamError(f"Sample data request failed: {e}", getattr(e, "status_code", None)) from e

    log_llm_call(
        model,
        f"flights.{prompt_key}",
        input_tokens=response.usage.input_tokens,
        output_tokens=response.usage.output_tokens,
        duration_ms=int((time.monotonic() - t0) * 1000),
    )
    try:
        return output_model.model_validate(extract_json_object(response.text))
    except (json.JSONDecodeError, ValidationError) as e:
        raise UpstreamError(f"Model returned unusable {prompt_key} data: {e}") from e


async def search_flights(origin: str, destination: str) -> FlightSearchResults:
    return await _generate("search", FlightSearchResults, origin=origin, destination=destination)


async def flight_status(flight_number: str, date: str) -> FlightStatus:
    return await _generate("status", FlightStatus, flight_number=flight_number, date=date)


async def select_seats(flight_number: str) -> SeatMap:
    return await _generate("seats", SeatMap, flight_number=flight_number)


async def reservation_price(reservation: dict[str, Any]) -> ReservationPrice:
    """Price a reservation; ``reservation`` is the camelCase booking details."""
    return await _generate("reservation_price", ReservationPrice, reservation=json.dumps(reservation))
