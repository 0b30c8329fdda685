from __future__ import annotations

from research_chat.research.plan_parser import (
    derive_plan,
    extract_numbered_questions,
    split_numbered_segments,
    template_questions,
)


def test_numbered_questions_on_separate_lines():
    text = (
        "Here is how to break it down:\n"
        "1. What is the current market share of electric vehicles?\n"
        "2) How do battery costs affect adoption?\n"
        "3. Which governments offer purchase incentives?\n"
    )
    questions = extract_numbered_questions(text)
    assert questions == [
        "What is the current market share of electric vehicles?",
        "How do battery costs affect adoption?",
        "Which governments offer purchase incentives?",
    ]


def test_numbered_questions_inline_in_one_paragraph():
    text = "Key angles: 1. Who regulates it? 2. How big is the market? Overall it is growing."
    assert extract_numbered_questions(text) == ["Who regulates it?", "How big is the market?"]


def test_numbered_questions_are_deduplicated():
    text = "1. Is it safe?\n2. Is it safe?\n3. Is it cheap?"
    assert extract_numbered_questions(text) == ["Is it safe?", "Is it cheap?"]


def test_single_question_is_not_enough():
    assert extract_numbered_questions("1. Is this the only question?") is None


def test_numbered_statements_are_not_questions():
    text = "1. Battery prices fell sharply. 2. Charging networks expanded quickly."
    assert extract_numbered_questions(text) is None


def test_segments_between_markers():
    text = (
        "Summary first. 1. Battery prices fell sharply over the decade. "
        "2. Charging networks expanded in most regions. "
        "3. Ok. "
        "4. Incentives shaped early demand in Europe."
    )
    segments = split_numbered_segments(text)
    assert segments == [
        "Battery prices fell sharply over the decade.",
        "Charging networks expanded in most regions.",
        "Incentives shaped early demand in Europe.",
    ]


def test_segments_are_capped():
    text = " ".join(f"{i}. Segment number {i} has enough text." for i in range(1, 8))
    assert len(split_numbered_segments(text)) == 4


def test_segments_without_markers():
    assert split_numbered_segments("No numbering anywhere in this answer.") is None
    assert split_numbered_segments(None) is None


def test_template_questions_strip_trailing_punctuation():
    questions = template_questions("electric vehicles?")
    assert len(questions) == 4
    assert questions[0] == "What are the key facts about electric vehicles?"
    assert all(q.endswith("?") for q in questions)
    assert all("electric vehicles" in q for q in questions)


def test_derive_plan_prefers_questions():
    plan = derive_plan("ev", "1. What is it? 2. Why now?")
    assert plan.sub_questions == ("What is it?", "Why now?")
    assert plan.rationale.startswith("Numbered questions")


def test_derive_plan_uses_segments_when_no_questions():
    plan = derive_plan("ev", "1. Battery prices fell sharply. 2. Charging networks expanded quickly.")
    assert len(plan.sub_questions) == 2
    assert plan.rationale.startswith("Numbered points")


def test_derive_plan_falls_back_to_template():
    for text in (None, "", "A prose answer with no structure at all."):
        plan = derive_plan("electric vehicles", text)
        assert len(plan.sub_questions) == 4
        assert "What are the key facts about electric vehicles?" in plan.sub_questions
        assert plan.rationale == "Generic research plan for: electric vehicles"


def test_derive_plan_always_yields_at_least_two():
    samples = [
        "1. Only one?",
        "1. short 2. tiny",
        "Lots of text 1. but one segment that is long enough",
    ]
    for text in samples:
        assert len(derive_plan("topic", text).sub_questions) >= 2
