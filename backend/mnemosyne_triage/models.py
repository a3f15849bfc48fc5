from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

URGENCY_LEVELS = ("low", "medium", "high", "emergency")


def normalize_urgency(value: str | None, default: str = "medium") -> str:
    cleaned = (value or "").strip().lower()
    return cleaned if cleaned in URGENCY_LEVELS else default


def highest_urgency(*levels: str | None) -> str:
    ranked = [normalize_urgency(level, default="low") for level in levels if level]
    return max(ranked, key=URGENCY_LEVELS.index) if ranked else "low"


@dataclass
class PatientContext:
    chronic_conditions: list[str] = field(default_factory=list)
    medications: list[str] = field(default_factory=list)
    medical_history: list[str] = field(default_factory=list)
    age: int | None = None
    gender: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SymptomBundle:
    key: str
    label: str
    assessment: str
    urgency_level: str
    confidence: int
    possible_conditions: tuple[str, ...]
    possible_precautions: tuple[str, ...]
    specialist_to_consider: tuple[str, ...]

    def as_analysis(self) -> dict[str, Any]:
        return {
            "assessment": self.assessment,
            "urgency_level": self.urgency_level,
            "possible_conditions": list(self.possible_conditions),
            "possible_precautions": list(self.possible_precautions),
            "specialist_to_consider": list(self.specialist_to_consider),
        }


@dataclass
class SymptomData:
    severity: int
    duration: str = "unspecified"
    frequency: str = "unspecified"
    triggers: list[str] = field(default_factory=list)
    associated_symptoms: list[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class SymptomAnalysis:
    primary_symptom: str
    severity: int
    duration: str
    confidence: int
    urgency_level: str
    associated_symptoms: list[str] = field(default_factory=list)
    triggers: list[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class RiskAssessment:
    score: int
    confidence: int
    urgency_level: str
    recommended_action: str

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)
