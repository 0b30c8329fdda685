from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException
from fastapi.responses import PlainTextResponse

from research_chat.services import database as db

router = APIRouter(prefix="/api/reservation", tags=["reservation"])


async def _require_reservation(id: str | None) -> dict[str, Any]:
    if not id:
        raise HTTPException(status_code=404, detail="Not Found")
    if not db.db_available():
        raise HTTPException(status_code=503, detail="Reservation storage is not configured")

    reservation = await db.get_reservation(id)
    if reservation is None:
        raise HTTPException(status_code=404, detail="Reservation not found")
    return reservation


@router.get("")
async def get_reservation(id: str | None = None):
    reservation = await _require_reservation(id)
    return {
        **reservation["details"],
        "id": reservation["id"],
        "hasCompletedPayment": reservation["has_completed_payment"],
    }


@router.patch("", response_class=PlainTextResponse)
async def complete_payment(id: str | None = None):
    """Record that the reservation has been paid for."""
    reservation = await _require_reservation(id)
    if reservation["has_completed_payment"]:
        raise HTTPException(status_code=400, detail="Reservation is already paid")

    await db.mark_reservation_paid(reservation["id"])
    return "Reservation updated"
