"""Flight booking tools.

Flight data is generated sample data (see ``tools.flights``); reservations
and their payment flag live in PostgreSQL so the payment page and the
model agree on whether a booking has been paid.
"""

from __future__ import annotations

import time
from typing import Any, Awaitable, Callable
from uuid import uuid4

import asyncpg
from pydantic import BaseModel

from research_chat.errors import ConfigurationError, UpstreamError, error_payload
from research_chat.models.schemas import (
    CreateReservationArgs,
    DisplayBoardingPassArgs,
    FlightStatusArgs,
    ReservationIdArgs,
    SearchFlightsArgs,
    SelectSeatsArgs,
)
from research_chat.services import database as db
from research_chat.services.logger import log_tool_call
from research_chat.tools import flights


def _elapsed_ms(t0: float) -> int:
    return int((time.monotonic() - t0) * 1000)


async def _sample_data(
    tool: str, failure: str, fetch: Callable[[], Awaitable[BaseModel]], **log_fields: Any
) -> dict[str, Any]:
    t0 = time.monotonic()
    try:
        data = await fetch()
    except (ConfigurationError, UpstreamError) as e:
        log_tool_call(tool, "error", _elapsed_ms(t0), error=str(e), **log_fields)
        return error_payload(failure, e)
    log_tool_call(tool, "success", _elapsed_ms(t0), **log_fields)
    return data.model_dump(by_alias=True)


async def search_flights(args: SearchFlightsArgs) -> dict[str, Any]:
    return await _sample_data(
        "searchFlights",
        "Failed to search flights",
        lambda: flights.search_flights(args.origin, args.destination),
        origin=args.origin,
        destination=args.destination,
    )


async def display_flight_status(args: FlightStatusArgs) -> dict[str, Any]:
    return await _sample_data(
        "displayFlightStatus",
        "Failed to get flight status",
        lambda: flights.flight_status(args.flight_number, args.date),
        flight_number=args.flight_number,
    )


async def select_seats(args: SelectSeatsArgs) -> dict[str, Any]:
    return await _sample_data(
        "selectSeats",
        "Failed to load seats",
        lambda: flights.select_seats(args.flight_number),
        flight_number=args.flight_number,
    )


async def create_reservation(args: CreateReservationArgs) -> dict[str, Any]:
    """Price the booking, store it unpaid and return it with its new id."""
    if not db.db_available():
        return error_payload("Failed to create reservation", "Reservation storage is not configured")

    t0 = time.monotonic()
    details = args.model_dump(by_alias=True)
    try:
        price = await flights.reservation_price(details)
    except (ConfigurationError, UpstreamError) as e:
        log_tool_call("createReservation", "error", _elapsed_ms(t0), error=str(e))
        return error_payload("Failed to price reservation", e)

    reservation = {"id": str(uuid4()), **details, "totalPriceInUSD": price.total_price_in_usd}
    try:
        await db.create_reservation(reservation["id"], reservation)
    except (asyncpg.PostgresError, OSError) as e:
        log_tool_call("createReservation", "error", _elapsed_ms(t0), error=str(e))
        return error_payload("Failed to create reservation", e)

    log_tool_call("createReservation", "success", _elapsed_ms(t0), reservation_id=reservation["id"])
    return reservation


async def authorize_payment(args: ReservationIdArgs) -> dict[str, Any]:
    # The browser renders the payment form; payment lands via PATCH /api/reservation.
    log_tool_call("authorizePayment", "success", reservation_id=args.reservation_id)
    return {"reservationId": args.reservation_id}


async def verify_payment(args: ReservationIdArgs) -> dict[str, Any]:
    if not db.db_available():
        return error_payload("Failed to verify payment", "Reservation storage is not configured")

    t0 = time.monotonic()
    try:
        reservation = await db.get_reservation(args.reservation_id)
    except (asyncpg.PostgresError, OSError) as e:
        log_tool_call("verifyPayment", "error", _elapsed_ms(t0), error=str(e))
        return error_payload("Failed to verify payment", e)

    if reservation is None:
        log_tool_call("verifyPayment", "not_found", _elapsed_ms(t0), reservation_id=args.reservation_id)
        return error_payload("Failed to verify payment", f"Reservation not found: {args.reservation_id}")

    log_tool_call("verifyPayment", "success", _elapsed_ms(t0), reservation_id=args.reservation_id)
    return {"hasCompletedPayment": bool(reservation["has_completed_payment"])}


async def display_boarding_pass(args: DisplayBoardingPassArgs) -> dict[str, Any]:
    log_tool_call("displayBoardingPass", "success", reservation_id=args.reservation_id)
    return args.model_dump(by_alias=True)
