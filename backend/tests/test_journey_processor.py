from __future__ import annotations

import pytest

from mnemosyne_services.journey_processor import (
    JourneyProcessingError,
    JourneyProcessor,
    local_journey_analysis,
    parse_journey_response,
    supplement_trends,
)
from mnemosyne_services.llm_client import LLMUnavailableError

LABELED_REPLY = """Summary: Patient reports a week of worsening headaches.

Symptoms: headache, nausea and light sensitivity.

Trends: Headaches are more frequent in the evening.

Progress: Slight improvement after reducing screen time.

Lifestyle Tips: Stay hydrated, keep a regular sleep schedule and limit caffeine.

Red Flags: Sudden severe headache, vision loss.
"""


class _StubLLM:
    def __init__(self, *, reply: str | None = None, error: Exception | None = None, configured: bool = True) -> None:
        self.reply = reply
        self.error = error
        self.configured = configured
        self.prompts: list[str] = []

    def complete(self, messages):
        self.prompts.append(messages[-1]["content"])
        if self.error is not None:
            raise self.error
        return self.reply


def test_parse_labeled_sections():
    processed = parse_journey_response(LABELED_REPLY)
    assert processed.summary == "Patient reports a week of worsening headaches."
    assert processed.symptoms == ["headache", "nausea", "light sensitivity"]
    assert processed.insights["symptom_trends"] == ["Headaches are more frequent in the evening"]
    assert processed.insights["progress_notes"] == "Slight improvement after reducing screen time."
    assert processed.insights["lifestyle_tips"] == [
        "Stay hydrated",
        "keep a regular sleep schedule",
        "limit caffeine",
    ]
    assert processed.insights["red_flags"] == ["Sudden severe headache", "vision loss"]


def test_parse_without_summary_label_uses_first_sentence():
    processed = parse_journey_response("The patient is recovering well. Nothing else to add.")
    assert processed.summary == "The patient is recovering well"
    assert processed.symptoms == []
    assert processed.insights["progress_notes"] == ""


def test_processor_uses_llm_and_sends_journey_in_prompt():
    llm = _StubLLM(reply=LABELED_REPLY)
    processed = JourneyProcessor(llm).process("Headaches every evening for a week.")
    assert "Headaches every evening for a week." in llm.prompts[0]
    assert processed.symptoms[0] == "headache"


def test_processor_raises_when_configured_llm_fails():
    llm = _StubLLM(error=LLMUnavailableError("quota exceeded"))
    with pytest.raises(JourneyProcessingError, match="quota exceeded"):
        JourneyProcessor(llm).process("Feeling dizzy.")


def test_local_analysis_without_llm():
    processed = JourneyProcessor(_StubLLM(configured=False)).process(
        "Chest pain when climbing stairs. I am also very tired."
    )
    assert processed.summary == "Chest pain when climbing stairs"
    assert processed.symptoms == ["chest pain", "fatigue"]
    assert processed.insights["red_flags"] == ["chest pain may need prompt medical attention"]
    assert processed.insights["lifestyle_tips"]


def test_trend_supplement_counts_previous_records():
    processed = local_journey_analysis("Fever again and a cough.")
    supplement_trends(processed, [["fever", "cough"], ["Fever"], ["headache"]])
    assert processed.insights["symptom_trends"] == [
        "fever also reported in 2 earlier entries",
        "cough also reported in 1 earlier entry",
    ]


def test_payload_uses_camel_case_insights():
    payload = local_journey_analysis("Mild headache.").as_payload()
    assert set(payload["insights"]) == {"symptomTrends", "progressNotes", "lifestyleTips", "redFlags"}
