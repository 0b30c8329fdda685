"""Error taxonomy for the research tools.

Tools catch these at their boundary and hand the model a structured
``{"error", "status": "error", "details"}`` value instead.
"""

from __future__ import annotations

from typing import Any


class ResearchChatError(Exception):
    """Base exception for research-chat errors."""


class ConfigurationError(ResearchChatError):
    """Raised when a required credential or setting is missing."""


class UpstreamError(ResearchChatError):
    """Raised when the search provider fails or returns an unusable response."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class FetchError(ResearchChatError):
    """Raised when the content proxy (or another plain HTTP fetch) fails."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


def error_payload(error: str, exc: BaseException | str | None = None) -> dict[str, Any]:
    """Build the structured error value returned to the model."""
    if exc is None:
        details = "Unknown error"
    else:
        details = str(exc) or type(exc).__name__
    return {"error": error, "status": "error", "details": details}


def is_error_payload(value: Any) -> bool:
    return isinstance(value, dict) and value.get("status") == "error" and "error" in value
