from __future__ import annotations

from mnemosyne_triage import (
    PatientContext,
    SymptomAnalysis,
    SymptomData,
    adjust_for_chronic_conditions,
    analyze_domain_symptoms,
    analyze_message,
    calculate_risk,
    compose_fallback_reply,
    extract_symptom_keywords,
    follow_up_questions,
    format_mock_response,
    list_domains,
    match_symptom_bundle,
    parse_patient_context,
    specialty_for_symptoms,
    triage_message,
)
from mnemosyne_triage.models import highest_urgency
from mnemosyne_triage.risk import extract_symptom_info
from mnemosyne_triage.symptom_matcher import DEFAULT_BUNDLE, FEVER, HEADACHE


def test_keyword_matcher_prefers_first_matching_bundle():
    assert match_symptom_bundle("I have had a fever since Monday") is FEVER
    assert match_symptom_bundle("Fever and a pounding headache") is FEVER
    assert match_symptom_bundle("Migraine behind my eyes") is HEADACHE
    assert match_symptom_bundle("I feel off today") is DEFAULT_BUNDLE


def test_keyword_matcher_urgency_for_chest_pain_and_breathing():
    assert match_symptom_bundle("sharp chest pain").urgency_level == "emergency"
    assert match_symptom_bundle("shortness of breath on stairs").urgency_level == "high"


def test_extract_symptom_keywords_returns_unique_labels():
    labels = extract_symptom_keywords("Nausea, cough and more coughing, plus dizziness")
    assert labels == ["abdominal pain", "dizziness", "cough"]


def test_mock_response_renders_bundle_sections():
    text = format_mock_response(FEVER)
    assert text.startswith("Based on your symptoms, here's my analysis:")
    assert "Urgency Level: MEDIUM" in text
    assert "• Viral infection" in text
    assert "4. Ask additional questions about your symptoms" in text


def test_domain_analysis_uses_first_symptom_and_defaults():
    analysis = analyze_domain_symptoms("cardiovascular", ["Chest pain", "Shortness of breath"])
    assert analysis["confidence"] == 90
    assert analysis["recommendations"]["severity"] == "high"

    fallback = analyze_domain_symptoms("dermatology", ["Rash"])
    assert fallback["confidence"] == 60
    assert fallback["possible_conditions"] == ["General health concern"]

    assert set(list_domains()) == {"neurological", "cardiovascular", "systemic", "digestive"}


def test_domain_analysis_returns_independent_copies():
    first = analyze_domain_symptoms("systemic", ["Fever"])
    first["possible_conditions"].append("mutated")
    assert "mutated" not in analyze_domain_symptoms("systemic", ["Fever"])["possible_conditions"]


def test_analyze_message_extracts_severity_duration_frequency_and_triggers():
    data = analyze_message(
        "Severe headache for 3 days, daily, worse with bright light. Also experiencing nausea, along with neck stiffness"
    )
    assert data.severity == 8
    assert data.duration == "3 days"
    assert data.frequency == "daily"
    assert data.triggers == ["bright light"]
    assert data.associated_symptoms == ["nausea", "neck stiffness"]


def test_analyze_message_emergency_keywords_and_defaults():
    assert analyze_message("mild chest pain").severity == 10
    plain = analyze_message("my knee aches")
    assert plain.severity == 5
    assert plain.duration == "unspecified"
    assert plain.frequency == "unspecified"


def test_calculate_risk_scores_and_caps():
    message = "moderate pain for 2 weeks, occasionally, triggered by running"
    symptoms = analyze_message(message)
    context = PatientContext(chronic_conditions=["asthma"], medications=["insulin", "aspirin"])
    risk = calculate_risk(symptoms, context, message, prior_user_messages=3)
    # 20 base + 4 info flags capped at 95
    assert risk.confidence == 95
    assert risk.score == 65
    assert risk.urgency_level == "high"
    assert risk.recommended_action == "Schedule an urgent care appointment within 24 hours"

    low = calculate_risk(SymptomData(severity=2), PatientContext(), "slight itch")
    assert low.score == 20
    assert low.urgency_level == "low"
    assert low.confidence == 40


def test_specialty_for_symptoms():
    assert specialty_for_symptoms(SymptomData(severity=5, associated_symptoms=["Chest tightness"])) == "cardiologist"
    assert specialty_for_symptoms(SymptomData(severity=5, associated_symptoms=["itchy rash"])) == "dermatologist"
    assert specialty_for_symptoms(SymptomData(severity=5, associated_symptoms=["child fever"])) == "pediatrician"
    assert specialty_for_symptoms(SymptomData(severity=5)) == "doctor"


def test_follow_up_questions_skip_answered_topics_and_never_empty():
    context = PatientContext(chronic_conditions=["asthma"], medications=["metformin"])
    full = SymptomData(severity=5, duration="2 days", frequency="daily", triggers=["dust"])
    questions = follow_up_questions(full, context, ["It does affect my sleep"])
    assert questions == ["Have you noticed any changes in the intensity or frequency of your symptoms recently?"]

    sparse = follow_up_questions(SymptomData(severity=5), PatientContext(), [])
    assert sparse[0] == "How long have you been experiencing these symptoms?"
    assert len(sparse) == 6


def test_fallback_reply_mentions_details_and_action():
    symptoms = SymptomData(severity=8, duration="3 days", frequency="daily", triggers=["stairs"])
    risk = calculate_risk(symptoms, PatientContext(), "severe for 3 days daily triggered by stairs")
    reply = compose_fallback_reply(symptoms, risk, ["How often?"], prior_user_messages=1)
    assert reply.startswith("Thank you for sharing these details. ")
    assert "for 3 days" in reply
    assert "quite severe" in reply
    assert "⚠️" in reply
    assert "• How often?" in reply
    assert reply.endswith(f", {risk.recommended_action}.")


def test_parse_patient_context_and_chronic_adjustments():
    context = parse_patient_context("I have diabetes and heart disease and take metformin daily")
    assert context.chronic_conditions == ["diabetes", "heart disease"]
    assert context.medications == ["metformin"]

    analysis = SymptomAnalysis(
        primary_symptom="fever and chills",
        severity=6,
        duration="2 days",
        confidence=50,
        urgency_level="medium",
    )
    adjusted = adjust_for_chronic_conditions(analysis, context)
    assert adjusted.urgency_level == "high"
    # Medication bump is applied last, from the original confidence.
    assert adjusted.confidence == 60
    assert analysis.confidence == 50

    chest = adjust_for_chronic_conditions(
        SymptomAnalysis(primary_symptom="chest pressure", severity=7, duration="1 day", confidence=40, urgency_level="high"),
        PatientContext(chronic_conditions=["heart disease"]),
    )
    assert chest.urgency_level == "emergency"
    assert chest.confidence == 70


def test_chronic_adjustment_bumps_do_not_stack():
    fever = SymptomAnalysis(primary_symptom="fever", severity=5, duration="unspecified", confidence=40, urgency_level="medium")
    adjusted = adjust_for_chronic_conditions(fever, PatientContext(chronic_conditions=["diabetes"]))
    assert adjusted.confidence == 65
    assert adjusted.urgency_level == "high"

    capped = adjust_for_chronic_conditions(
        SymptomAnalysis(primary_symptom="chest pain", severity=9, duration="1 day", confidence=80, urgency_level="high"),
        PatientContext(chronic_conditions=["heart disease"]),
    )
    assert capped.confidence == 95


def test_medications_without_conditions_leave_analysis_unchanged():
    analysis = SymptomAnalysis(primary_symptom="fever", severity=5, duration="unspecified", confidence=40, urgency_level="medium")
    adjusted = adjust_for_chronic_conditions(analysis, PatientContext(medications=["insulin"]))
    assert adjusted.confidence == 40
    assert adjusted.urgency_level == "medium"
    assert adjusted is not analysis


def test_duration_keeps_plural_units():
    assert analyze_message("Fever for 2 days").duration == "2 days"
    assert analyze_message("Cough for 1 week").duration == "1 week"
    assert analyze_message("back pain for 6 Months now").duration == "6 Months"
    assert extract_symptom_info("headache for 3 weeks")["has_duration"] is True


def test_triage_message_merges_context_from_text():
    result = triage_message(
        "I have asthma and a bad cough for 4 days",
        PatientContext(medications=["albuterol"]),
        ["earlier message"],
    )
    assert result["context"].chronic_conditions == ["asthma"]
    assert result["context"].medications == ["albuterol"]
    assert result["analysis"].urgency_level == "high"
    assert result["fallback_reply"]


def test_highest_urgency_orders_levels():
    assert highest_urgency("low", "emergency", "medium") == "emergency"
    assert highest_urgency(None, "bogus") == "low"
