from __future__ import annotations

import re
from dataclasses import replace
from typing import Any

from .models import PatientContext, RiskAssessment, SymptomAnalysis, SymptomData

SEVERITY_KEYWORDS: tuple[tuple[str, int], ...] = (
    ("unbearable", 9),
    ("severe", 8),
    ("intense", 7),
    ("moderate", 5),
    ("mild", 3),
    ("slight", 2),
)
DEFAULT_SEVERITY = 5
EMERGENCY_KEYWORDS = ("chest pain", "difficulty breathing", "unconscious", "severe bleeding")

FREQUENCY_TERMS = (
    "constant",
    "daily",
    "weekly",
    "monthly",
    "sometimes",
    "occasionally",
    "frequently",
    "rarely",
    "intermittent",
)

CONDITION_KEYWORDS = (
    "diabetes",
    "asthma",
    "heart disease",
    "hypertension",
    "high blood pressure",
    "copd",
    "arthritis",
    "depression",
    "anxiety",
    "thyroid",
    "kidney disease",
    "liver disease",
    "cancer",
    "stroke",
    "epilepsy",
    "migraine",
    "fibromyalgia",
    "crohn",
    "colitis",
    "lupus",
    "multiple sclerosis",
    "parkinson",
)

MEDICATION_KEYWORDS = (
    "metformin",
    "insulin",
    "lisinopril",
    "amlodipine",
    "atorvastatin",
    "metoprolol",
    "omeprazole",
    "levothyroxine",
    "sertraline",
    "bupropion",
    "prednisone",
    "warfarin",
    "aspirin",
    "ibuprofen",
    "acetaminophen",
)

ACKNOWLEDGMENTS = (
    "I understand how challenging this must be. ",
    "Thank you for sharing these details. ",
    "I appreciate you providing this information. ",
    "I'm listening carefully to your concerns. ",
    "Let me help you understand what might be happening. ",
)

SAFETY_PROMPTS = (
    "If your symptoms are severe or rapidly worsening, don't hesitate to seek emergency care.",
    "I notice this could be serious - have you considered calling your doctor or visiting urgent care?",
    "Given what you've described, it would be best to have this evaluated by a healthcare provider soon.",
)

MAX_CONFIDENCE = 95

_DURATION_RE = re.compile(r"(\d+)\s*(day|week|month|year)s?\b", re.IGNORECASE)
_FREQUENCY_RE = re.compile(r"(daily|weekly|monthly|constant|sometimes|occasionally|frequently|rarely)", re.IGNORECASE)
_SEVERITY_RE = re.compile(r"(mild|moderate|severe|intense|unbearable|slight)", re.IGNORECASE)
_TRIGGER_MENTION_RE = re.compile(r"(triggered by|worse with|after|during) ([^,.;]+)", re.IGNORECASE)

_TRIGGER_PATTERNS = (
    re.compile(r"triggered by ([^,.;]+)", re.IGNORECASE),
    re.compile(r"worse with ([^,.;]+)", re.IGNORECASE),
    re.compile(r"worsens? (?:with|during|after) ([^,.;]+)", re.IGNORECASE),
)
# (pattern, capture group holding the symptom)
_ASSOCIATED_PATTERNS = (
    (re.compile(r"also (experiencing|having|feeling) ([^,.;]+)", re.IGNORECASE), 2),
    (re.compile(r"along with ([^,.;]+)", re.IGNORECASE), 1),
    (re.compile(r"accompanied by ([^,.;]+)", re.IGNORECASE), 1),
)


def extract_symptom_info(text: str) -> dict[str, bool]:
    text = text or ""
    return {
        "has_duration": bool(_DURATION_RE.search(text)),
        "has_frequency": bool(_FREQUENCY_RE.search(text)),
        "has_severity": bool(_SEVERITY_RE.search(text)),
        "has_triggers": bool(_TRIGGER_MENTION_RE.search(text)),
    }


def _extract_duration(text: str) -> str:
    match = _DURATION_RE.search(text)
    return match.group(0) if match else "unspecified"


def _extract_frequency(lowered: str) -> str:
    for term in FREQUENCY_TERMS:
        if term in lowered:
            return term
    return "unspecified"


def _extract_triggers(text: str) -> list[str]:
    triggers: list[str] = []
    for pattern in _TRIGGER_PATTERNS:
        for match in pattern.finditer(text):
            value = match.group(1).strip()
            if value:
                triggers.append(value)
    return triggers


def _extract_associated(text: str) -> list[str]:
    found: list[str] = []
    for pattern, group in _ASSOCIATED_PATTERNS:
        for match in pattern.finditer(text):
            value = match.group(group).strip()
            if value:
                found.append(value)
    return found


def analyze_message(text: str) -> SymptomData:
    text = text or ""
    lowered = text.lower()

    severity = DEFAULT_SEVERITY
    for keyword, value in SEVERITY_KEYWORDS:
        if keyword in lowered:
            severity = value
    if any(keyword in lowered for keyword in EMERGENCY_KEYWORDS):
        severity = 10

    return SymptomData(
        severity=severity,
        duration=_extract_duration(text),
        frequency=_extract_frequency(lowered),
        triggers=_extract_triggers(text),
        associated_symptoms=_extract_associated(text),
    )


def _recommended_action(score: int) -> str:
    if score > 80:
        return "Please seek immediate emergency medical attention"
    if score > 60:
        return "Schedule an urgent care appointment within 24 hours"
    if score > 40:
        return "Schedule a consultation with your primary care physician"
    return "Monitor your symptoms and schedule a routine check-up"


def _urgency_for_score(score: int) -> str:
    if score > 80:
        return "emergency"
    if score > 60:
        return "high"
    if score > 40:
        return "medium"
    return "low"


def calculate_risk(
    symptoms: SymptomData,
    context: PatientContext,
    message: str,
    prior_user_messages: int = 0,
) -> RiskAssessment:
    info = extract_symptom_info(message)
    confidence = 20 + 20 * sum(1 for flag in info.values() if flag)
    confidence = min(confidence + max(prior_user_messages, 0) * 5, MAX_CONFIDENCE)

    score = min(
        symptoms.severity * 10 + len(context.chronic_conditions) * 5 + len(context.medications) * 5,
        100,
    )
    return RiskAssessment(
        score=score,
        confidence=confidence,
        urgency_level=_urgency_for_score(score),
        recommended_action=_recommended_action(score),
    )


def specialty_for_symptoms(symptoms: SymptomData) -> str:
    associated = [item.lower() for item in symptoms.associated_symptoms]
    if any("heart" in item or "chest" in item for item in associated):
        return "cardiologist"
    if any("skin" in item or "rash" in item for item in associated):
        return "dermatologist"
    if any("child" in item or "pediatric" in item for item in associated):
        return "pediatrician"
    return "doctor"


def follow_up_questions(
    symptoms: SymptomData,
    context: PatientContext,
    previous_user_messages: list[str] | None = None,
) -> list[str]:
    asked = " ".join(message.lower() for message in previous_user_messages or [])
    questions: list[str] = []

    if symptoms.duration == "unspecified" and "how long" not in asked:
        questions.append("How long have you been experiencing these symptoms?")
    if not symptoms.triggers and "trigger" not in asked:
        questions.append("Have you noticed any specific triggers or situations that make the symptoms worse?")
    if symptoms.frequency == "unspecified" and "how often" not in asked:
        questions.append("How often do these symptoms occur? Is there a pattern to when they appear?")
    if "affect" not in asked and "impact" not in asked:
        questions.append("How are these symptoms affecting your daily activities or sleep?")
    if not context.medications and "medication" not in asked:
        questions.append("Have you tried any medications or treatments to manage these symptoms?")
    if not context.chronic_conditions and "condition" not in asked:
        questions.append("Do you have any ongoing medical conditions or significant medical history?")

    if not questions:
        questions.append("Have you noticed any changes in the intensity or frequency of your symptoms recently?")
    return questions


def _severity_phrase(severity: int) -> str:
    if severity > 7:
        return "quite severe"
    if severity > 5:
        return "moderate to severe"
    if severity > 3:
        return "moderate"
    return "mild"


def compose_fallback_reply(
    symptoms: SymptomData,
    risk: RiskAssessment,
    follow_ups: list[str],
    prior_user_messages: int = 0,
) -> str:
    parts = [ACKNOWLEDGMENTS[max(prior_user_messages, 0) % len(ACKNOWLEDGMENTS)]]

    if symptoms.duration != "unspecified":
        parts.append(f"You've been experiencing these symptoms for {symptoms.duration}. ")
    if symptoms.frequency != "unspecified":
        parts.append(f"They occur {symptoms.frequency}. ")
    if symptoms.triggers:
        parts.append(f"I notice these symptoms are triggered by {', '.join(symptoms.triggers)}. ")
    parts.append(f"Based on your description, these symptoms appear to be {_severity_phrase(symptoms.severity)}. ")

    if risk.urgency_level == "emergency":
        parts.append(f"\n\n⚠️ {SAFETY_PROMPTS[0]}\n")
    elif risk.urgency_level == "high":
        parts.append(f"\n\n⚠️ {SAFETY_PROMPTS[1]}\n")

    if risk.confidence < 40:
        parts.append("\n\nI need more information to better understand your situation. ")
    elif risk.confidence < 70:
        parts.append("\n\nI'm building a clearer picture, but a few more details would help. ")
    else:
        parts.append("\n\nI have a good understanding of your symptoms, but let me verify a few things. ")

    if follow_ups:
        parts.append(
            "\nPlease help me with these additional details:\n" + "\n".join(f"• {question}" for question in follow_ups)
        )

    if risk.confidence > 80:
        qualifier = "(which I'm quite confident about)"
    elif risk.confidence > 60:
        qualifier = "(with moderate confidence)"
    else:
        qualifier = "(noting that we need more information)"
    parts.append(f"\n\nBased on my analysis {qualifier}, {risk.recommended_action}.")
    return "".join(parts)


def parse_patient_context(text: str) -> PatientContext:
    lowered = (text or "").lower()
    return PatientContext(
        chronic_conditions=[keyword for keyword in CONDITION_KEYWORDS if keyword in lowered],
        medications=[keyword for keyword in MEDICATION_KEYWORDS if keyword in lowered],
    )


def merge_patient_context(base: PatientContext, extra: PatientContext) -> PatientContext:
    def _merge(left: list[str], right: list[str]) -> list[str]:
        merged = list(left)
        for item in right:
            if item not in merged:
                merged.append(item)
        return merged

    return PatientContext(
        chronic_conditions=_merge(base.chronic_conditions, extra.chronic_conditions),
        medications=_merge(base.medications, extra.medications),
        medical_history=_merge(base.medical_history, extra.medical_history),
        age=base.age if base.age is not None else extra.age,
        gender=base.gender or extra.gender,
    )


def adjust_for_chronic_conditions(analysis: SymptomAnalysis, context: PatientContext) -> SymptomAnalysis:
    """Raise urgency for risky condition/symptom pairs.

    Every confidence bump is taken from the incoming confidence, so the last
    matching rule sets the result. Medications only count alongside a condition.
    """
    conditions = [item.lower() for item in context.chronic_conditions]
    if not conditions:
        return replace(analysis)

    base = analysis.confidence
    urgency = analysis.urgency_level
    primary = (analysis.primary_symptom or "").lower()

    def _bump(amount: int) -> int:
        return min(base + amount, MAX_CONFIDENCE)

    confidence = _bump(15)
    if any("diabetes" in item for item in conditions) and ("fever" in primary or "infection" in primary):
        urgency = "high"
        confidence = _bump(25)
    if any("asthma" in item for item in conditions) and ("cough" in primary or "breathing" in primary):
        urgency = "high"
        confidence = _bump(20)
    if any("heart" in item for item in conditions) and ("chest" in primary or "pain" in primary):
        urgency = "emergency"
        confidence = _bump(30)
    if context.medications:
        confidence = _bump(10)

    return replace(analysis, confidence=confidence, urgency_level=urgency)


def triage_message(
    message: str,
    context: PatientContext | None = None,
    previous_user_messages: list[str] | None = None,
) -> dict[str, Any]:
    """Run the rule-based triage pipeline for one user message."""
    previous = list(previous_user_messages or [])
    context = merge_patient_context(context or PatientContext(), parse_patient_context(message))
    symptoms = analyze_message(message)
    risk = calculate_risk(symptoms, context, message, prior_user_messages=len(previous))

    analysis = adjust_for_chronic_conditions(
        SymptomAnalysis(
            primary_symptom=message,
            severity=symptoms.severity,
            duration=symptoms.duration,
            confidence=risk.confidence,
            urgency_level=risk.urgency_level,
            associated_symptoms=list(symptoms.associated_symptoms),
            triggers=list(symptoms.triggers),
        ),
        context,
    )
    questions = follow_up_questions(symptoms, context, previous)
    return {
        "context": context,
        "symptoms": symptoms,
        "risk": risk,
        "analysis": analysis,
        "follow_up_questions": questions,
        "specialty": specialty_for_symptoms(symptoms),
        "fallback_reply": compose_fallback_reply(symptoms, risk, questions, len(previous)),
    }
