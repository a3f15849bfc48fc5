from __future__ import annotations

import json
import logging
import os
from typing import Any

import httpx

from mnemosyne_triage.mock_responses import FALLBACK_FOLLOW_UP_QUESTIONS, FOLLOW_UP_QUESTIONS, GREETING, format_mock_response
from mnemosyne_triage.models import PatientContext, SymptomAnalysis, normalize_urgency
from mnemosyne_triage.symptom_matcher import match_symptom_bundle

from .settings import external_disabled

logger = logging.getLogger(__name__)

GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta/models"
NO_RESPONSE_TEXT = "I apologize, but I could not generate a response."

_SAFETY_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)

SYSTEM_PROMPT = """You are Mnemosyne, an AI Health Companion designed to help users explore their symptoms and guide them to appropriate care.

IMPORTANT MEDICAL DISCLAIMERS:
- You are NOT a licensed medical professional
- You do NOT provide medical diagnoses
- You do NOT replace professional medical advice
- Always recommend consulting healthcare providers for serious symptoms
- If symptoms suggest emergency conditions, strongly recommend immediate medical attention

YOUR ROLE:
- Provide empathetic, supportive guidance
- Ask clarifying questions to better understand symptoms
- Offer general health information and self-care suggestions
- Guide users toward appropriate healthcare resources
- Maintain a professional, caring tone

PATIENT CONTEXT:"""

ANALYSIS_PROMPT = """You are a medical AI assistant. Analyze the following symptoms and provide a structured assessment. Be conservative and always recommend professional medical consultation.

Symptoms: {description}
Additional Info: {additional_info}
Patient Context: {context}

Provide your response in this EXACT format:
ASSESSMENT: [Brief assessment of the symptoms]
URGENCY: [low/medium/high/emergency]
POSSIBLE_CONDITIONS:
- [Condition 1]
- [Condition 2]
- [Condition 3]
POSSIBLE_PRECAUTIONS:
- [Precaution 1]
- [Precaution 2]
- [Precaution 3]
SPECIALIST_TO_CONSIDER:
- [Specialist 1]
- [Specialist 2]
- [Specialist 3]

Important: Be specific and varied in your responses. Don't repeat the same generic advice. Consider the specific symptoms mentioned and provide relevant, actionable information."""

FOLLOW_UP_PROMPT = """Generate 3 relevant follow-up questions to better understand the patient's symptoms. Questions should be clear, specific, and help gather important clinical information.

Current symptoms: {symptoms}
Patient context: {context}

Return only the questions, one per line."""

DEFAULT_CONDITIONS = ["General health concern requiring evaluation"]
DEFAULT_PRECAUTIONS = ["Monitor symptoms closely", "Consult with a healthcare provider"]
DEFAULT_SPECIALISTS = ["General Practitioner"]


class LLMUnavailableError(RuntimeError):
    pass


def _provider_error_message(response: httpx.Response) -> str:
    message = response.text.strip()
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        err = payload.get("error")
        if isinstance(err, dict):
            msg = err.get("message")
            if isinstance(msg, str) and msg.strip():
                return msg.strip()
        msg = payload.get("message")
        if isinstance(msg, str) and msg.strip():
            return msg.strip()
    return message or f"HTTP {response.status_code}"


def _coerce_completion_text(response_json: Any) -> str:
    if not isinstance(response_json, dict):
        raise RuntimeError("Malformed completion response")
    choices = response_json.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    choice = choices[0]
    message = choice.get("message") if isinstance(choice, dict) else None
    if not isinstance(message, dict):
        raise RuntimeError("Malformed completion response")
    content = message.get("content")
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts: list[str] = []
        for item in content:
            if isinstance(item, dict):
                text_value = item.get("text")
                if isinstance(text_value, str):
                    parts.append(text_value)
        return "\n".join(parts)
    return ""


def _coerce_gemini_text(response_json: Any) -> str:
    if not isinstance(response_json, dict):
        raise RuntimeError("Malformed Gemini response")
    candidates = response_json.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        raise RuntimeError("No response generated from Gemini API")
    candidate = candidates[0] if isinstance(candidates[0], dict) else {}
    if candidate.get("finishReason") == "SAFETY":
        raise RuntimeError("Response blocked by safety filters")
    content = candidate.get("content")
    parts = content.get("parts") if isinstance(content, dict) else None
    if isinstance(parts, list) and parts and isinstance(parts[0], dict):
        text_value = parts[0].get("text")
        if isinstance(text_value, str) and text_value.strip():
            return text_value
    return NO_RESPONSE_TEXT


def provider_candidates() -> list[dict[str, Any]]:
    if external_disabled():
        return []
    provider_preference = (os.getenv("MNEMOSYNE_LLM_PROVIDER") or "auto").strip().lower()
    if provider_preference == "mock":
        return []

    candidates: list[dict[str, Any]] = []
    gemini_api_key = (os.getenv("GOOGLE_AI_KEY") or "").strip()
    if gemini_api_key:
        candidates.append(
            {
                "provider": "gemini",
                "base_url": GEMINI_API_BASE,
                "api_key": gemini_api_key,
                "model": (os.getenv("GEMINI_MODEL") or "gemini-pro").strip(),
            }
        )

    openai_api_key = (os.getenv("OPENAI_API_KEY") or "").strip()
    if openai_api_key:
        candidates.append(
            {
                "provider": "gpt4",
                "base_url": (os.getenv("OPENAI_API_BASE_URL") or "https://api.openai.com/v1").strip().rstrip("/"),
                "api_key": openai_api_key,
                "model": (os.getenv("OPENAI_MODEL") or "gpt-4").strip(),
            }
        )

    if provider_preference in {"", "auto"}:
        return candidates

    aliases = {"gemini": "gemini", "google": "gemini", "gpt4": "gpt4", "gpt-4": "gpt4", "openai": "gpt4"}
    canonical = aliases.get(provider_preference)
    if not canonical:
        return candidates
    preferred = [candidate for candidate in candidates if candidate["provider"] == canonical]
    others = [candidate for candidate in candidates if candidate["provider"] != canonical]
    return preferred + others


def _gemini_parts(messages: list[dict[str, str]]) -> list[dict[str, str]]:
    parts: list[dict[str, str]] = []
    last_index = len(messages) - 1
    for idx, message in enumerate(messages):
        role = message.get("role", "user")
        content = message.get("content", "")
        if role == "system" or idx == last_index:
            parts.append({"text": content})
        else:
            parts.append({"text": f"{role.capitalize()}: {content}"})
    return parts


def build_system_prompt(patient_context: PatientContext | None, symptom_analysis: SymptomAnalysis | None) -> str:
    prompt = SYSTEM_PROMPT
    context = patient_context or PatientContext()
    if context.chronic_conditions:
        prompt += f"\n- Chronic conditions: {', '.join(context.chronic_conditions)}"
    if context.medications:
        prompt += f"\n- Current medications: {', '.join(context.medications)}"
    if context.age:
        prompt += f"\n- Age: {context.age}"
    if context.gender:
        prompt += f"\n- Gender: {context.gender}"

    if symptom_analysis is not None:
        prompt += (
            "\n\nCURRENT SYMPTOM ANALYSIS:"
            f"\n- Primary symptom: {symptom_analysis.primary_symptom}"
            f"\n- Duration: {symptom_analysis.duration}"
            f"\n- Severity (1-10): {symptom_analysis.severity}"
            f"\n- Associated symptoms: {', '.join(symptom_analysis.associated_symptoms) or 'None reported'}"
            f"\n- Triggers: {', '.join(symptom_analysis.triggers) or 'None reported'}"
            f"\n- Urgency level: {symptom_analysis.urgency_level}"
            f"\n- Confidence: {symptom_analysis.confidence}%"
        )
    return prompt


def _section_items(lines: list[str], start: int, end: int) -> list[str]:
    if start < 0:
        return []
    items: list[str] = []
    for line in lines[start + 1 : end if end > start else len(lines)]:
        stripped = line.strip()
        if not (stripped.startswith("-") or stripped.startswith("•")):
            continue
        value = stripped.lstrip("-•").strip()
        if value:
            items.append(value)
    return items


def parse_structured_analysis(text: str) -> dict[str, Any]:
    lines = (text or "").split("\n")

    def _index(prefix: str) -> int:
        return next((idx for idx, line in enumerate(lines) if line.strip().startswith(prefix)), -1)

    def _value(prefix: str) -> str:
        idx = _index(prefix)
        return lines[idx].strip()[len(prefix) :].strip() if idx >= 0 else ""

    conditions_start = _index("POSSIBLE_CONDITIONS:")
    precautions_start = _index("POSSIBLE_PRECAUTIONS:")
    specialist_start = _index("SPECIALIST_TO_CONSIDER:")

    conditions = _section_items(lines, conditions_start, precautions_start)
    precautions = _section_items(lines, precautions_start, specialist_start)
    specialists = _section_items(lines, specialist_start, -1)
    return {
        "assessment": _value("ASSESSMENT:") or "Assessment pending",
        "urgency_level": normalize_urgency(_value("URGENCY:")),
        "possible_conditions": conditions or list(DEFAULT_CONDITIONS),
        "possible_precautions": precautions or list(DEFAULT_PRECAUTIONS),
        "specialist_to_consider": specialists or list(DEFAULT_SPECIALISTS),
    }


class LLMClient:
    def __init__(self, *, timeout_seconds: float | None = None) -> None:
        if timeout_seconds is None:
            timeout_seconds = float(os.getenv("MNEMOSYNE_LLM_TIMEOUT_SECONDS", "25"))
        self.timeout_seconds = timeout_seconds

    @property
    def configured(self) -> bool:
        return bool(provider_candidates())

    def _gemini_complete(self, provider: dict[str, Any], messages: list[dict[str, str]]) -> str:
        payload = {
            "contents": [{"parts": _gemini_parts(messages)}],
            "generationConfig": {
                "temperature": 0.8,
                "topK": 40,
                "topP": 0.95,
                "maxOutputTokens": 2048,
            },
            "safetySettings": [
                {"category": category, "threshold": "BLOCK_MEDIUM_AND_ABOVE"} for category in _SAFETY_CATEGORIES
            ],
        }
        response = httpx.post(
            f"{provider['base_url']}/{provider['model']}:generateContent",
            params={"key": provider["api_key"]},
            headers={"Content-Type": "application/json"},
            json=payload,
            timeout=httpx.Timeout(self.timeout_seconds, connect=8.0),
        )
        if response.status_code >= 400:
            raise RuntimeError(f"Gemini API error: {_provider_error_message(response)}")
        return _coerce_gemini_text(response.json())

    def _gpt4_complete(self, provider: dict[str, Any], messages: list[dict[str, str]]) -> str:
        payload = {
            "model": provider["model"],
            "messages": messages,
            "max_tokens": 500,
            "temperature": 0.7,
            "top_p": 1,
            "frequency_penalty": 0,
            "presence_penalty": 0,
        }
        response = httpx.post(
            f"{provider['base_url']}/chat/completions",
            headers={
                "Authorization": f"Bearer {provider['api_key']}",
                "Content-Type": "application/json",
            },
            json=payload,
            timeout=httpx.Timeout(self.timeout_seconds, connect=8.0),
        )
        if response.status_code >= 400:
            raise RuntimeError(f"OpenAI API error: {_provider_error_message(response)}")
        return _coerce_completion_text(response.json()).strip() or NO_RESPONSE_TEXT

    def complete(self, messages: list[dict[str, str]]) -> str:
        providers = provider_candidates()
        if not providers:
            raise LLMUnavailableError("No LLM provider is configured")

        last_error = "All LLM providers failed"
        for provider in providers:
            provider_name = str(provider.get("provider") or "unknown")
            try:
                if provider_name == "gemini":
                    text = self._gemini_complete(provider, messages)
                else:
                    text = self._gpt4_complete(provider, messages)
            except (httpx.HTTPError, RuntimeError, ValueError) as exc:
                logger.warning("llm call failed (%s): %s", provider_name, exc)
                last_error = str(exc)
                continue
            logger.info("llm provider used (%s)", provider_name)
            return text
        raise LLMUnavailableError(last_error)

    def chat_reply(
        self,
        user_input: str,
        history: list[dict[str, str]] | None = None,
        patient_context: PatientContext | None = None,
        symptom_analysis: SymptomAnalysis | None = None,
    ) -> str:
        messages: list[dict[str, str]] = [
            {"role": "system", "content": build_system_prompt(patient_context, symptom_analysis)},
            *[
                {"role": turn["role"], "content": turn["content"]}
                for turn in history or []
                if turn.get("role") in {"user", "assistant"} and turn.get("content")
            ],
            {"role": "user", "content": user_input},
        ]
        return self.complete(messages)

    def generate_response(
        self,
        user_input: str,
        history: list[dict[str, str]] | None = None,
        patient_context: PatientContext | None = None,
        symptom_analysis: SymptomAnalysis | None = None,
    ) -> str:
        if not self.configured:
            if not [turn for turn in history or [] if turn.get("content")]:
                return GREETING
            return format_mock_response(match_symptom_bundle(user_input))
        try:
            return self.chat_reply(user_input, history, patient_context, symptom_analysis)
        except LLMUnavailableError as exc:
            return f"I apologize, but I'm experiencing technical difficulties. {exc}"

    def analyze_symptoms(
        self,
        description: str,
        patient_context: PatientContext | None = None,
        additional_info: str | None = None,
    ) -> dict[str, Any]:
        if not self.configured:
            return match_symptom_bundle(description).as_analysis()

        prompt = ANALYSIS_PROMPT.format(
            description=description,
            additional_info=additional_info or "None provided",
            context=json.dumps((patient_context or PatientContext()).as_dict()),
        )
        try:
            text = self.complete([{"role": "user", "content": prompt}])
        except LLMUnavailableError as exc:
            return {
                "assessment": "Unable to analyze symptoms at this time",
                "urgency_level": "medium",
                "possible_conditions": list(DEFAULT_CONDITIONS),
                "possible_precautions": ["Please consult with a healthcare provider"],
                "specialist_to_consider": list(DEFAULT_SPECIALISTS),
                "error": str(exc),
            }
        return parse_structured_analysis(text)

    def generate_follow_up_questions(
        self,
        current_symptoms: str,
        patient_context: PatientContext | None = None,
    ) -> list[str]:
        if not self.configured:
            return list(FOLLOW_UP_QUESTIONS)
        prompt = FOLLOW_UP_PROMPT.format(
            symptoms=current_symptoms,
            context=json.dumps((patient_context or PatientContext()).as_dict()),
        )
        try:
            text = self.complete([{"role": "user", "content": prompt}])
        except LLMUnavailableError:
            return list(FALLBACK_FOLLOW_UP_QUESTIONS)
        questions = [line.strip() for line in text.split("\n") if line.strip()]
        return questions or list(FALLBACK_FOLLOW_UP_QUESTIONS)
