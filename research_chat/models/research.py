"""Value types for the research tools.

Python attributes are snake_case; ``to_dict`` produces the camelCase shape the
model sees as tool output.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

SearchDepth = Literal["basic", "advanced"]

MAX_SOURCES_PER_FINDING = 3


@dataclass(frozen=True, slots=True)
class SearchQuery:
    text: str
    depth: SearchDepth = "basic"
    max_results: int = 5
    topic: str = "general"
    include_answer: bool = False
    include_raw_content: bool = False


@dataclass(frozen=True, slots=True)
class SearchResult:
    title: str
    url: str
    content: str
    raw_content: str | None = None
    score: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "url": self.url, "content": self.content, "score": self.score}

    def to_source(self) -> dict[str, Any]:
        return {"title": self.title, "url": self.url, "content": self.content}


@dataclass(frozen=True, slots=True)
class SearchResponse:
    results: tuple[SearchResult, ...] = ()
    answer: str | None = None
    response_time: float | None = None


@dataclass(frozen=True, slots=True)
class ResearchPlan:
    sub_questions: tuple[str, ...]
    rationale: str | None = None

    def truncated(self, limit: int) -> ResearchPlan:
        return ResearchPlan(sub_questions=self.sub_questions[:limit], rationale=self.rationale)


@dataclass(frozen=True, slots=True)
class Finding:
    question: str
    answer: str | None
    sources: tuple[SearchResult, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "question": self.question,
            "answer": self.answer,
            "sources": [s.to_source() for s in self.sources[:MAX_SOURCES_PER_FINDING]],
        }


@dataclass(frozen=True, slots=True)
class SubQuestionOutcome:
    """Tagged result of one sub-question search: a finding or a failure reason."""

    question: str
    finding: Finding | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.finding is not None


@dataclass(frozen=True, slots=True)
class ResearchRun:
    query: str
    plan: ResearchPlan
    outcomes: tuple[SubQuestionOutcome, ...]
    queries_used: int
    planned_by_fallback: bool = False

    @property
    def findings(self) -> list[Finding]:
        return [o.finding for o in self.outcomes if o.finding is not None]

    @property
    def failures(self) -> list[SubQuestionOutcome]:
        return [o for o in self.outcomes if not o.ok]


@dataclass(frozen=True, slots=True)
class ResearchReport:
    run: ResearchRun
    include_details: bool = False
    include_failures: bool = False
    message: str = ""
    all_sources: tuple[SearchResult, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        run = self.run
        report: dict[str, Any] = {
            "query": run.query,
            "plan": {
                "subQuestions": list(run.plan.sub_questions),
                "rationale": run.plan.rationale or f"Research plan for: {run.query}",
            },
            "findings": [f.to_dict() for f in run.findings],
            "queriesUsed": run.queries_used,
            "message": self.message,
        }
        if self.include_details:
            report["allSources"] = [
                {
                    "title": s.title,
                    "url": s.url,
                    "content": s.content,
                    "fullContent": s.raw_content or None,
                }
                for s in self.all_sources
            ]
        if self.include_failures:
            report["failedQuestions"] = [
                {"question": o.question, "reason": o.error} for o in run.failures
            ]
        return report
