from .mock_responses import GREETING, format_mock_response
from .models import PatientContext, RiskAssessment, SymptomAnalysis, SymptomBundle, SymptomData, normalize_urgency
from .risk import (
    adjust_for_chronic_conditions,
    analyze_message,
    calculate_risk,
    compose_fallback_reply,
    follow_up_questions,
    parse_patient_context,
    specialty_for_symptoms,
    triage_message,
)
from .symptom_database import analyze_domain_symptoms, list_domains
from .symptom_matcher import extract_symptom_keywords, match_symptom_bundle

__all__ = [
    "GREETING",
    "PatientContext",
    "RiskAssessment",
    "SymptomAnalysis",
    "SymptomBundle",
    "SymptomData",
    "adjust_for_chronic_conditions",
    "analyze_domain_symptoms",
    "analyze_message",
    "calculate_risk",
    "compose_fallback_reply",
    "extract_symptom_keywords",
    "follow_up_questions",
    "format_mock_response",
    "list_domains",
    "match_symptom_bundle",
    "normalize_urgency",
    "parse_patient_context",
    "specialty_for_symptoms",
    "triage_message",
]
