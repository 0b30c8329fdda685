"""PostgreSQL persistence for chats and flight reservations, using asyncpg."""

from __future__ import annotations

import json
from typing import Any

import asyncpg

from research_chat.config import settings
from research_chat.services.logger import log_db_operation

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS chats (
    id TEXT PRIMARY KEY,
    user_id TEXT,
    messages JSONB NOT NULL DEFAULT '[]'::jsonb,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS reservations (
    id TEXT PRIMARY KEY,
    user_id TEXT,
    details JSONB NOT NULL,
    has_completed_payment BOOLEAN NOT NULL DEFAULT false,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
)
"""

_pool: asyncpg.Pool | None = None


def db_available() -> bool:
    """Check if database is configured."""
    return bool(settings.database_url)


async def _get_pool() -> asyncpg.Pool:
    """Get or create the database connection pool."""
    global _pool
    if not db_available():
        raise RuntimeError("Database not configured. Set DATABASE_URL in .env")
    if _pool is None:
        _pool = await asyncpg.create_pool(
            settings.database_url,
            min_size=1,
            max_size=10,
        )
    return _pool


async def close_pool() -> None:
    """Close the database connection pool."""
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None


async def ensure_schema() -> None:
    pool = await _get_pool()
    async with pool.acquire() as conn:
        await conn.execute(SCHEMA_SQL)
    log_db_operation("create_schema", "chats,reservations", "success")


def _load_json(value: Any) -> Any:
    """Decode a JSONB column, which asyncpg returns as a string."""
    if isinstance(value, str):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return None
    return value


def _coerce_messages(value: Any) -> list[dict[str, Any]]:
    value = _load_json(value)
    return value if isinstance(value, list) else []


# --- Chats ---


async def save_chat(
    chat_id: str, messages: list[dict[str, Any]], user_id: str | None = None
) -> None:
    """Insert or replace the full message history of a chat."""
    pool = await _get_pool()
    async with pool.acquire() as conn:
        await conn.execute(
            """
            INSERT INTO chats (id, user_id, messages)
            VALUES ($1, $2, $3::jsonb)
            ON CONFLICT (id) DO UPDATE
            SET messages = EXCLUDED.messages, updated_at = now()
            """,
            chat_id,
            user_id,
            json.dumps(messages, default=str),
        )
    log_db_operation("save", "chats", "success", details=f"id={chat_id} messages={len(messages)}")


async def get_chat(chat_id: str) -> dict[str, Any] | None:
    """Get a chat by ID."""
    pool = await _get_pool()
    async with pool.acquire() as conn:
        result = await conn.fetchrow(
            """
            SELECT id, user_id, messages, created_at, updated_at
            FROM chats
            WHERE id = $1
            """,
            chat_id,
        )
    if not result:
        return None
    row = dict(result)
    row["messages"] = _coerce_messages(row.get("messages"))
    return row


async def delete_chat(chat_id: str) -> bool:
    """Delete a chat. Returns False when no chat had that ID."""
    pool = await _get_pool()
    async with pool.acquire() as conn:
        status = await conn.execute("DELETE FROM chats WHERE id = $1", chat_id)
    deleted = status.endswith(" 1")
    log_db_operation("delete", "chats", "success" if deleted else "not_found", details=f"id={chat_id}")
    return deleted


# --- Reservations ---


async def create_reservation(
    reservation_id: str, details: dict[str, Any], user_id: str | None = None
) -> None:
    pool = await _get_pool()
    async with pool.acquire() as conn:
        await conn.execute(
            """
            INSERT INTO reservations (id, user_id, details)
            VALUES ($1, $2, $3::jsonb)
            """,
            reservation_id,
            user_id,
            json.dumps(details, default=str),
        )
    log_db_operation("insert", "reservations", "success", details=f"id={reservation_id}")


async def get_reservation(reservation_id: str) -> dict[str, Any] | None:
    """Get a reservation by ID."""
    pool = await _get_pool()
    async with pool.acquire() as conn:
        result = await conn.fetchrow(
            """
            SELECT id, user_id, details, has_completed_payment, created_at
            FROM reservations
            WHERE id = $1
            """,
            reservation_id,
        )
    if not result:
        return None
    row = dict(result)
    details = _load_json(row.get("details"))
    row["details"] = details if isinstance(details, dict) else {}
    return row


async def mark_reservation_paid(reservation_id: str) -> bool:
    """Flag a reservation as paid. Returns False when no unpaid reservation had that ID."""
    pool = await _get_pool()
    async with pool.acquire() as conn:
        status = await conn.execute(
            """
            UPDATE reservations
            SET has_completed_payment = true
            WHERE id = $1 AND NOT has_completed_payment
            """,
            reservation_id,
        )
    updated = status.endswith(" 1")
    log_db_operation(
        "update", "reservations", "success" if updated else "not_found", details=f"id={reservation_id}"
    )
    return updated
