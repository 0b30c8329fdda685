from __future__ import annotations

from urllib.parse import quote, urlparse


def is_valid_url(url: str) -> bool:
    """Basic URL validation: http(s) scheme and a host."""
    try:
        result = urlparse(url.strip())
    except (AttributeError, ValueError):
        return False
    return result.scheme in ("http", "https") and bool(result.netloc)


def encode_target(url: str) -> str:
    """Path-encode a target URL for proxies of the form ``<base>/<url>``."""
    return quote(url.strip(), safe="")


def truncate(text: str, max_length: int) -> str:
    """Trim text to max_length characters, marking the cut."""
    if max_length > 0 and len(text) > max_length:
        return text[:max_length] + "..."
    return text
