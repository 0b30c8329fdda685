"""Derive research sub-questions from loosely structured text.

Three tiers, tried in order, each a pure function returning ``None`` when it
cannot produce at least ``MIN_SUB_QUESTIONS`` items:

1. numbered fragments that end in a question mark
2. segments between numbering markers
3. a fixed four-question template built from the query
"""

from __future__ import annotations

import re

from research_chat.models.research import ResearchPlan

MIN_SUB_QUESTIONS = 2
MAX_SEGMENTS = 4
MIN_SEGMENT_CHARS = 10

# "1. ...?" / "2) ...?" at the start of the text, a line or a sentence.
_NUMBERED_QUESTION_RE = re.compile(
    r"(?:^|(?<=[\s.!?:;]))\d{1,2}[.)]\s+((?:(?!\s\d{1,2}[.)]\s)[^?\n]){3,}\?)",
    re.MULTILINE,
)
_NUMBER_MARKER_RE = re.compile(r"(?:^|(?<=[\s.!?:;]))\d{1,2}[.)]\s+", re.MULTILINE)

TEMPLATE_QUESTIONS = (
    "What are the key facts about {query}?",
    "What are the latest developments in {query}?",
    "What are the main challenges and debates around {query}?",
    "What do experts expect for the future of {query}?",
)


def _clean(fragment: str) -> str:
    return " ".join(fragment.split()).strip(" -*\"'")


def extract_numbered_questions(text: str | None) -> list[str] | None:
    if not text:
        return None
    questions: list[str] = []
    seen: set[str] = set()
    for match in _NUMBERED_QUESTION_RE.finditer(text):
        question = _clean(match.group(1))
        if not question.endswith("?"):
            continue
        key = question.lower()
        if key in seen:
            continue
        seen.add(key)
        questions.append(question)
    return questions if len(questions) >= MIN_SUB_QUESTIONS else None


def split_numbered_segments(text: str | None, limit: int = MAX_SEGMENTS) -> list[str] | None:
    if not text or not _NUMBER_MARKER_RE.search(text):
        return None
    # The first chunk is whatever precedes "1." and is not a numbered item.
    parts = _NUMBER_MARKER_RE.split(text)[1:]
    segments = [_clean(p) for p in parts]
    segments = [s for s in segments if len(s) >= MIN_SEGMENT_CHARS][:limit]
    return segments if len(segments) >= MIN_SUB_QUESTIONS else None


def template_questions(query: str) -> list[str]:
    topic = " ".join(query.split()).rstrip("?.! ")
    return [t.format(query=topic) for t in TEMPLATE_QUESTIONS]


def derive_plan(query: str, text: str | None) -> ResearchPlan:
    """Build a plan from free text, falling back tier by tier."""
    questions = extract_numbered_questions(text)
    if questions:
        return ResearchPlan(
            sub_questions=tuple(questions),
            rationale=f"Numbered questions extracted from a preliminary answer for: {query}",
        )

    segments = split_numbered_segments(text)
    if segments:
        return ResearchPlan(
            sub_questions=tuple(segments),
            rationale=f"Numbered points from a preliminary answer for: {query}",
        )

    return ResearchPlan(
        sub_questions=tuple(template_questions(query)),
        rationale=f"Generic research plan for: {query}",
    )
