from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable

from mnemosyne_triage.symptom_matcher import extract_symptom_keywords, matched_bundles

from .llm_client import LLMClient, LLMUnavailableError

logger = logging.getLogger(__name__)

JOURNEY_PROMPT = """
Analyze the following patient journey description and provide a structured response in the following format:

Summary: Brief overview of the situation.

Symptoms: List all mentioned symptoms, separated by commas.

Trends: Any patterns or changes in symptoms over time.

Progress: Notable changes in condition.

Lifestyle Tips: General wellness suggestions based on the description.

Red Flags: Any concerning symptoms that need immediate medical attention.

Note: Do not provide diagnoses or medical advice.

Patient Journey:
{journey}

Please ensure each section is clearly labeled and ends with a period."""

_LIST_SPLIT_RE = re.compile(r",|\sand\s")


class JourneyProcessingError(RuntimeError):
    pass


@dataclass
class ProcessedJourney:
    symptoms: list[str]
    summary: str
    insights: dict[str, Any] = field(default_factory=dict)

    def as_payload(self) -> dict[str, Any]:
        return {
            "symptoms": list(self.symptoms),
            "summary": self.summary,
            "insights": {
                "symptomTrends": list(self.insights.get("symptom_trends", [])),
                "progressNotes": self.insights.get("progress_notes", ""),
                "lifestyleTips": list(self.insights.get("lifestyle_tips", [])),
                "redFlags": list(self.insights.get("red_flags", [])),
            },
        }


def _section(text: str, label: str) -> str | None:
    # Prefer a label at the start of a line; fall back to the first mention anywhere.
    anchored = re.search(rf"(?im)^[\s*#-]*{label}:?\s*([^.]*\.)", text)
    match = anchored or re.search(rf"(?i){label}:?\s*([^.]*\.)", text)
    return match.group(1).strip() if match else None


def _split_list(value: str | None) -> list[str]:
    if not value:
        return []
    items: list[str] = []
    for part in _LIST_SPLIT_RE.split(value):
        cleaned = part.strip().rstrip(".").strip()
        if cleaned:
            items.append(cleaned)
    return items


def _first_sentence(text: str) -> str:
    return (text or "").split(".")[0].strip()


def parse_journey_response(text: str) -> ProcessedJourney:
    summary = _section(text, "summary")
    return ProcessedJourney(
        symptoms=_split_list(_section(text, "symptoms?")),
        summary=summary if summary else _first_sentence(text),
        insights={
            "symptom_trends": _split_list(_section(text, "trends?")),
            "progress_notes": _section(text, "progress") or "",
            "lifestyle_tips": _split_list(_section(text, "lifestyle tips")),
            "red_flags": _split_list(_section(text, "red flags")),
        },
    )


def local_journey_analysis(journey_description: str) -> ProcessedJourney:
    bundles = matched_bundles(journey_description)
    red_flags: list[str] = []
    lifestyle_tips: list[str] = []
    for bundle in bundles:
        if bundle.urgency_level in {"high", "emergency"}:
            red_flags.append(f"{bundle.label} may need prompt medical attention")
        for tip in bundle.possible_precautions[:2]:
            if tip not in lifestyle_tips:
                lifestyle_tips.append(tip)
    return ProcessedJourney(
        symptoms=extract_symptom_keywords(journey_description),
        summary=_first_sentence(journey_description),
        insights={
            "symptom_trends": [],
            "progress_notes": "",
            "lifestyle_tips": lifestyle_tips,
            "red_flags": red_flags,
        },
    )


def supplement_trends(processed: ProcessedJourney, previous_symptoms: Iterable[Iterable[str]]) -> ProcessedJourney:
    counts: Counter[str] = Counter()
    for entry in previous_symptoms:
        counts.update({symptom.strip().lower() for symptom in entry if symptom and symptom.strip()})

    trends = list(processed.insights.get("symptom_trends", []))
    for symptom in processed.symptoms:
        seen = counts.get(symptom.strip().lower(), 0)
        if not seen:
            continue
        noun = "entry" if seen == 1 else "entries"
        note = f"{symptom} also reported in {seen} earlier {noun}"
        if note not in trends:
            trends.append(note)
    processed.insights["symptom_trends"] = trends
    return processed


class JourneyProcessor:
    def __init__(self, llm: LLMClient | None = None) -> None:
        self.llm = llm or LLMClient()

    def process(
        self,
        journey_description: str,
        previous_symptoms: Iterable[Iterable[str]] = (),
    ) -> ProcessedJourney:
        if not self.llm.configured:
            logger.info("journey processed locally: no llm provider configured")
            processed = local_journey_analysis(journey_description)
        else:
            prompt = JOURNEY_PROMPT.format(journey=journey_description)
            try:
                text = self.llm.complete([{"role": "user", "content": prompt}])
            except LLMUnavailableError as exc:
                raise JourneyProcessingError(f"Failed to process medical journey: {exc}") from exc
            processed = parse_journey_response(text)
        return supplement_trends(processed, previous_symptoms)
