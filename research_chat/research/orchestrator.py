"""Research tools the chat model can call.

Each public coroutine returns a JSON-serializable dict. Failures in the error
taxonomy are converted to ``{"error", "status": "error", "details"}`` at this
boundary so the model always has something to narrate.
"""

from __future__ import annotations

import time
from typing import Any

from research_chat.config import settings
from research_chat.errors import ConfigurationError, FetchError, UpstreamError, error_payload
from research_chat.models.research import (
    MAX_SOURCES_PER_FINDING,
    Finding,
    ResearchPlan,
    ResearchReport,
    ResearchRun,
    SearchQuery,
    SearchResult,
    SubQuestionOutcome,
)
from research_chat.research import plan_parser
from research_chat.services.logger import log_tool_call, logger
from research_chat.tools import jina_reader, tavily_search, web_utils


def _elapsed_ms(t0: float) -> int:
    return int((time.monotonic() - t0) * 1000)


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(int(value), high))


# --- performSearch ---


async def simple_search(query: str, num_results: int = 5, category: str = "general") -> dict[str, Any]:
    """One basic-depth search, trimmed to ``num_results`` results."""
    if not query or not query.strip():
        return error_payload("Failed to perform search", "Search query must not be empty")
    t0 = time.monotonic()
    try:
        num_results = _clamp(num_results, 1, settings.search_max_results_cap)

        response = await tavily_search.search(
            SearchQuery(
                text=query,
                depth="basic",
                max_results=num_results,
                topic=category,
                include_answer=False,
                include_raw_content=False,
            )
        )
    except (ConfigurationError, UpstreamError) as e:
        log_tool_call("performSearch", "error", _elapsed_ms(t0), error=str(e), query=query[:100])
        return error_payload("Failed to perform search", e)

    results = response.results[:num_results]
    log_tool_call(
        "performSearch", "success", _elapsed_ms(t0), query=query[:100], results_count=len(results)
    )
    return {
        "query": query,
        "results": tavily_search.results_to_dicts(results),
        "responseTime": response.response_time,
    }


# --- simpleDeepResearch ---


async def deep_research(query: str, num_results: int = 3) -> dict[str, Any]:
    """One advanced search with the provider's answer and full page content."""
    if not query or not query.strip():
        return error_payload("Failed to perform research", "Research query must not be empty")
    t0 = time.monotonic()
    logger.info(f"[TOOL START] simpleDeepResearch query={query[:100]!r}")
    try:
        # Twice as many results are requested as analyzed; keep that within the cap.
        num_results = _clamp(num_results, 1, max(1, settings.search_max_results_cap // 2))

        response = await tavily_search.search(
            SearchQuery(
                text=query,
                depth="advanced",
                max_results=min(num_results * 2, settings.search_max_results_cap),
                include_answer=True,
                include_raw_content=True,
            )
        )
    except (ConfigurationError, UpstreamError) as e:
        log_tool_call("simpleDeepResearch", "error", _elapsed_ms(t0), error=str(e), query=query[:100])
        return error_payload("Failed to perform research", e)

    if not response.results:
        log_tool_call("simpleDeepResearch", "empty", _elapsed_ms(t0), query=query[:100])
        return {
            "query": query,
            "message": "No search results found",
            "searchResults": [],
            "analyzedResults": [],
        }

    analyzed = [
        {"title": r.title, "url": r.url, "content": r.raw_content or r.content}
        for r in response.results[:num_results]
    ]
    result: dict[str, Any] = {
        "query": query,
        "searchResults": [{"title": r.title, "url": r.url, "score": r.score} for r in response.results],
        "analyzedResults": analyzed,
        "message": f'Research completed for: "{query}"',
    }
    if response.answer:
        result["answer"] = response.answer

    log_tool_call(
        "simpleDeepResearch", "success", _elapsed_ms(t0), query=query[:100], analyzed=len(analyzed)
    )
    return result


# --- advancedDeepResearch ---


async def _fallback_plan(query: str) -> ResearchPlan:
    """Ask the provider for a preliminary answer and mine it for sub-questions."""
    try:
        response = await tavily_search.search(
            SearchQuery(text=query, depth="basic", max_results=3, include_answer=True)
        )
        answer = response.answer
    except UpstreamError as e:
        logger.warning(f"[RESEARCH PLAN] Preliminary search failed, using template: {e}")
        answer = None
    return plan_parser.derive_plan(query, answer)


async def _search_sub_question(question: str) -> tuple[SubQuestionOutcome, tuple[SearchResult, ...]]:
    try:
        response = await tavily_search.search(
            SearchQuery(
                text=question,
                depth="advanced",
                max_results=MAX_SOURCES_PER_FINDING,
                include_answer=True,
                include_raw_content=True,
            )
        )
    except UpstreamError as e:
        return SubQuestionOutcome(question=question, error=str(e)), ()

    top = response.results[:MAX_SOURCES_PER_FINDING]
    finding = Finding(question=question, answer=response.answer, sources=top)
    return SubQuestionOutcome(question=question, finding=finding), top


async def run_advanced_research(
    query: str,
    plan: ResearchPlan | None = None,
    max_searches: int | None = None,
) -> tuple[ResearchRun, tuple[SearchResult, ...]]:
    """Resolve a plan and search each sub-question in order.

    Returns the run (with one tagged outcome per attempted sub-question) and
    the top results of every successful call in execution order.

    Raises:
        ConfigurationError: no Tavily token is configured.
    """
    if max_searches is None:
        max_searches = settings.research_max_searches
    max_searches = _clamp(max_searches, 1, settings.research_max_searches_cap)

    # Fail before any call when the credential is missing.
    tavily_search.ensure_configured()

    queries_used = 0
    planned_by_fallback = False
    if plan is not None and plan.sub_questions:
        resolved = plan.truncated(max_searches)
    else:
        resolved = (await _fallback_plan(query)).truncated(max_searches)
        queries_used += 1
        planned_by_fallback = True

    logger.info(f"[RESEARCH] Will process {len(resolved.sub_questions)} sub-questions")

    outcomes: list[SubQuestionOutcome] = []
    all_sources: list[SearchResult] = []
    total = len(resolved.sub_questions)
    for i, question in enumerate(resolved.sub_questions, 1):
        logger.info(f"[SEARCH {i}/{total}] Querying: {question!r}")
        outcome, top = await _search_sub_question(question)
        queries_used += 1
        outcomes.append(outcome)
        if outcome.ok:
            all_sources.extend(top)
            logger.info(f"[SEARCH {i}/{total}] Got {len(top)} results")
        else:
            logger.warning(f"[SEARCH {i}/{total}] Skipped: {outcome.error}")

    run = ResearchRun(
        query=query,
        plan=resolved,
        outcomes=tuple(outcomes),
        queries_used=queries_used,
        planned_by_fallback=planned_by_fallback,
    )
    return run, tuple(all_sources)


async def advanced_research(
    query: str,
    plan: ResearchPlan | None = None,
    max_searches: int | None = None,
    include_details: bool = False,
) -> dict[str, Any]:
    """Multi-step research over a caller-supplied (or derived) plan."""
    if not query or not query.strip():
        return error_payload("Failed to perform advanced research", "Research query must not be empty")
    t0 = time.monotonic()
    logger.info(f"[TOOL START] advancedDeepResearch query={query[:100]!r}")
    logger.info(f"[TOOL CONFIG] maxSearches: {max_searches}, includeDetails: {include_details}")
    try:
        run, all_sources = await run_advanced_research(query, plan, max_searches)
        if run.outcomes and not run.findings:
            reasons = "; ".join(o.error or "unknown error" for o in run.failures)
            raise UpstreamError(f"All {len(run.outcomes)} research queries failed: {reasons}")
    except (ConfigurationError, UpstreamError) as e:
        log_tool_call("advancedDeepResearch", "error", _elapsed_ms(t0), error=str(e), query=query[:100])
        return error_payload("Failed to perform advanced research", e)

    attempted = len(run.outcomes)
    report = ResearchReport(
        run=run,
        include_details=include_details,
        include_failures=settings.research_report_failures,
        message=f'Completed {attempted} research queries on "{query}"',
        all_sources=all_sources,
    )
    log_tool_call(
        "advancedDeepResearch",
        "success",
        _elapsed_ms(t0),
        query=query[:100],
        queries_used=run.queries_used,
        findings=len(run.findings),
        failed_questions=len(run.failures),
        fallback_plan=run.planned_by_fallback,
    )
    return report.to_dict()


# --- analyzeURL ---


async def analyze_url(url: str) -> dict[str, Any]:
    """Fetch page text for the model; ``rawContent`` is not meant for display."""
    t0 = time.monotonic()
    try:
        page = await jina_reader.fetch(url)
    except FetchError as e:
        log_tool_call("analyzeURL", "error", _elapsed_ms(t0), error=str(e), url=url[:200])
        return error_payload("Failed to analyze URL", e)

    log_tool_call("analyzeURL", "success", _elapsed_ms(t0), url=url[:200], chars=len(page.content))
    return {
        "url": url,
        "status": "success",
        "rawContent": web_utils.truncate(page.content, settings.analyze_max_chars),
    }

