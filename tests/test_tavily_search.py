from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from research_chat.config import settings
from research_chat.errors import ConfigurationError, UpstreamError
from research_chat.models.research import SearchQuery
from research_chat.tools import tavily_search


SAMPLE_PAYLOAD = {
    "query": "remote work",
    "answer": "Remote work is common.",
    "response_time": "1.25",
    "results": [
        {
            "title": "Study A",
            "url": "https://a.example.com",
            "content": "snippet a",
            "raw_content": "full text a",
            "score": 0.91,
        },
        {
            "title": "Study B",
            "url": "https://b.example.com",
            "content": "snippet b",
            "raw_content": None,
            "score": None,
        },
    ],
}


def _fake_client(search: AsyncMock) -> MagicMock:
    client_cls = MagicMock()
    client_cls.return_value.search = search
    return client_cls


def test_normalize_topic():
    assert tavily_search.normalize_topic("news") == "news"
    assert tavily_search.normalize_topic(" Finance ") == "finance"
    assert tavily_search.normalize_topic("company") == "general"
    assert tavily_search.normalize_topic(None) == "general"


def test_parse_response_maps_fields():
    response = tavily_search.parse_response(SAMPLE_PAYLOAD)

    assert response.answer == "Remote work is common."
    assert response.response_time == 1.25
    assert [r.title for r in response.results] == ["Study A", "Study B"]
    assert response.results[0].raw_content == "full text a"
    assert response.results[0].score == 0.91
    assert response.results[1].raw_content is None
    assert response.results[1].score is None


def test_parse_response_rejects_malformed_payload():
    with pytest.raises(UpstreamError):
        tavily_search.parse_response(["not", "a", "dict"])
    with pytest.raises(UpstreamError):
        tavily_search.parse_response({"results": "nope"})
    with pytest.raises(UpstreamError):
        tavily_search.parse_response({"results": ["nope"]})


def test_parse_response_tolerates_missing_optional_fields():
    response = tavily_search.parse_response({"results": [{"url": "https://x.example.com"}]})
    assert response.answer is None
    assert response.response_time is None
    assert response.results[0].title == ""
    assert response.results[0].content == ""


def test_ensure_configured_requires_token(monkeypatch):
    monkeypatch.setattr(settings, "tavily_token", "  ")
    with pytest.raises(ConfigurationError):
        tavily_search.ensure_configured()


@pytest.mark.asyncio
async def test_search_passes_query_options(monkeypatch):
    monkeypatch.setattr(settings, "tavily_token", "tvly-test")
    search = AsyncMock(return_value=SAMPLE_PAYLOAD)

    with patch("research_chat.tools.tavily_search.AsyncTavilyClient", _fake_client(search)) as client_cls:
        response = await tavily_search.search(
            SearchQuery(
                text="remote work",
                depth="advanced",
                max_results=6,
                topic="sports",
                include_answer=True,
                include_raw_content=True,
            )
        )

    client_cls.assert_called_once_with(api_key="tvly-test")
    search.assert_awaited_once_with(
        query="remote work",
        search_depth="advanced",
        topic="general",
        max_results=6,
        include_answer=True,
        include_raw_content=True,
    )
    assert len(response.results) == 2


@pytest.mark.asyncio
async def test_search_wraps_client_errors(monkeypatch):
    monkeypatch.setattr(settings, "tavily_token", "tvly-test")
    error = RuntimeError("rate limited")
    error.response = SimpleNamespace(status_code=429)
    search = AsyncMock(side_effect=error)

    with patch("research_chat.tools.tavily_search.AsyncTavilyClient", _fake_client(search)):
        with pytest.raises(UpstreamError) as exc_info:
            await tavily_search.search(SearchQuery(text="q"))

    assert exc_info.value.status_code == 429
    assert "rate limited" in str(exc_info.value)


@pytest.mark.asyncio
async def test_search_without_token_never_builds_client(monkeypatch):
    monkeypatch.setattr(settings, "tavily_token", "")

    with patch("research_chat.tools.tavily_search.AsyncTavilyClient") as client_cls:
        with pytest.raises(ConfigurationError):
            await tavily_search.search(SearchQuery(text="q"))

    client_cls.assert_not_called()
