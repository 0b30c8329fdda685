"""Loguru sinks plus one-line structured records for tools, LLM calls and the DB."""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from research_chat.config import settings

LOG_DIR = Path(settings.log_dir)

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"

NOISY_LOGGERS = (
    "uvicorn",
    "uvicorn.error",
    "uvicorn.access",
    "fastapi",
    "sse_starlette.sse",
    "httpx",
    "httpcore",
    "openai._base_client",
    "asyncpg",
    "asyncio",
)


def setup_logging() -> None:
    logger.remove()
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=settings.app_log_level.upper(), colorize=True)

    LOG_DIR.mkdir(parents=True, exist_ok=True)
    logger.add(
        LOG_DIR / "research_chat_{time:YYYY-MM-DD}.log",
        format=FILE_FORMAT,
        level="DEBUG",
        rotation="00:00",
        retention="7 days",
        compression="zip",
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(settings.noisy_log_level.upper())


setup_logging()


def _emit(kind: str, failed: bool, /, **fields: Any) -> None:
    # Positional-only so callers may log fields named "kind" or "failed".
    record = {"timestamp": datetime.now(timezone.utc).isoformat(), **fields}
    if failed:
        logger.error(f"{kind}_FAILED: {record}")
    else:
        logger.info(f"{kind}: {record}")


def log_tool_call(
    tool: str,
    status: str,
    duration_ms: int = 0,
    error: Optional[str] = None,
    **kwargs: Any,
) -> None:
    """Log one tool invocation made on behalf of the model."""
    _emit("TOOL_CALL", bool(error), tool=tool, status=status, duration_ms=duration_ms, error=error, **kwargs)


def log_llm_call(
    model: str,
    caller: str,
    input_tokens: int = 0,
    output_tokens: int = 0,
    duration_ms: int = 0,
    status: str = "success",
    error: Optional[str] = None,
) -> None:
    _emit(
        "LLM_CALL",
        bool(error),
        model=model,
        caller=caller,
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        total_tokens=input_tokens + output_tokens,
        duration_ms=duration_ms,
        status=status,
        error=error,
    )


def log_db_operation(
    operation: str,
    table: str,
    status: str,
    details: Optional[str] = None,
    error: Optional[str] = None,
) -> None:
    _emit("DB_OPERATION", bool(error), operation=operation, table=table, status=status, details=details, error=error)


def log_event(event_type: str, message: str, **kwargs: Any) -> None:
    _emit("EVENT", False, event_type=event_type, message=message, **kwargs)
