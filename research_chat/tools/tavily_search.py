from __future__ import annotations

from typing import Any

from tavily import AsyncTavilyClient

from research_chat.config import settings
from research_chat.errors import ConfigurationError, UpstreamError
from research_chat.models.research import SearchQuery, SearchResponse, SearchResult

# Topics the Tavily API accepts; other hints are sent as "general".
ALLOWED_TOPICS = frozenset({"general", "news", "finance"})


def normalize_topic(topic: str | None) -> str:
    cleaned = (topic or "").strip().lower()
    return cleaned if cleaned in ALLOWED_TOPICS else "general"


def ensure_configured() -> str:
    """Return the Tavily token, raising ConfigurationError when it is unset."""
    token = settings.tavily_token.strip()
    if not token:
        raise ConfigurationError("Tavily API token not configured")
    return token


def _get_client() -> AsyncTavilyClient:
    return AsyncTavilyClient(api_key=ensure_configured())


def _parse_result(item: Any) -> SearchResult:
    if not isinstance(item, dict):
        raise UpstreamError(f"Malformed search result: {item!r:.100}")
    score = item.get("score")
    return SearchResult(
        title=item.get("title") or "",
        url=item.get("url") or "",
        content=item.get("content") or "",
        raw_content=item.get("raw_content") or None,
        score=float(score) if isinstance(score, (int, float)) else None,
    )


def parse_response(payload: Any) -> SearchResponse:
    """Map a raw Tavily response body onto a SearchResponse."""
    if not isinstance(payload, dict):
        raise UpstreamError("Search response was not a JSON object")
    results = payload.get("results") or []
    if not isinstance(results, list):
        raise UpstreamError("Search response 'results' was not a list")
    response_time = payload.get("response_time")
    try:
        response_time = float(response_time) if response_time is not None else None
    except (TypeError, ValueError):
        response_time = None
    return SearchResponse(
        results=tuple(_parse_result(r) for r in results),
        answer=payload.get("answer") or None,
        response_time=response_time,
    )


async def search(query: SearchQuery) -> SearchResponse:
    """Execute one Tavily search.

    Raises:
        ConfigurationError: no Tavily token is configured.
        UpstreamError: the request failed or the response could not be parsed.
    """
    client = _get_client()

    kwargs: dict[str, Any] = {
        "query": query.text,
        "search_depth": query.depth,
        "topic": normalize_topic(query.topic),
        "max_results": query.max_results,
        "include_answer": query.include_answer,
        "include_raw_content": query.include_raw_content,
    }

    try:
        payload = await client.search(**kwargs)
    except Exception as e:
        status_code = getattr(getattr(e, "response", None), "status_code", None)
        raise UpstreamError(f"Search request failed: {e}", status_code=status_code) from e

    return parse_response(payload)


def results_to_dicts(results: tuple[SearchResult, ...] | list[SearchResult]) -> list[dict[str, Any]]:
    """Convert SearchResult list to JSON-serializable dicts."""
    return [r.to_dict() for r in results]
