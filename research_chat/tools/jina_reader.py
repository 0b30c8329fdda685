from __future__ import annotations

from dataclasses import dataclass

import httpx

from research_chat.config import settings
from research_chat.errors import FetchError
from research_chat.tools import web_utils


@dataclass
class ReaderResult:
    """Page text extracted by the Jina Reader proxy."""
    url: str
    content: str


async def fetch(url: str) -> ReaderResult:
    """Fetch rendered page text through the Jina Reader proxy.

    API: GET https://r.jina.ai/<url-encoded target>
    Headers:
        - Authorization: Bearer <api_key> (optional, raises rate limits)
        - X-Return-Format: markdown

    Raises:
        FetchError: the URL is invalid, the proxy is unreachable or it
            answered with a non-success status.
    """
    if not web_utils.is_valid_url(url):
        raise FetchError(f"Invalid URL: {url!r}")

    headers = {"X-Return-Format": "markdown"}
    if settings.jina_api_key:
        headers["Authorization"] = f"Bearer {settings.jina_api_key}"

    base = settings.jina_reader_base_url.rstrip("/")
    reader_url = f"{base}/{web_utils.encode_target(url)}"

    try:
        async with httpx.AsyncClient(timeout=settings.fetch_timeout_seconds) as client:
            response = await client.get(reader_url, headers=headers)
    except httpx.HTTPError as e:
        raise FetchError(f"Failed to fetch URL content: {e}") from e

    if response.status_code >= 400:
        raise FetchError(
            f"Failed to fetch URL content (status {response.status_code})",
            status_code=response.status_code,
        )

    return ReaderResult(url=url, content=response.text)
