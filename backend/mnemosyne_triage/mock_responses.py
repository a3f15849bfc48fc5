from __future__ import annotations

from .models import SymptomBundle

GREETING = (
    "Hello! I'm Mnemosyne, your AI Health Companion. I'm here to help you explore your symptoms "
    "and provide guidance. Please note that this is not a replacement for professional medical advice. "
    "What type of symptoms are you experiencing?"
)

FOLLOW_UP_QUESTIONS = [
    "Can you describe the severity of your symptoms on a scale of 1-10?",
    "How long have you been experiencing these symptoms?",
    "Have you noticed any patterns or triggers?",
]

FALLBACK_FOLLOW_UP_QUESTIONS = [
    "Can you describe the severity of your symptoms on a scale of 1-10?",
    "Have you noticed any triggers or patterns with these symptoms?",
    "How are these symptoms affecting your daily activities?",
]

EMERGENCY_WARNING = (
    "Based on your symptoms, you should seek immediate medical attention. "
    "Please contact emergency services or go to the nearest emergency room."
)

_NEXT_STEPS = [
    "Monitor your symptoms",
    "Keep track of any changes",
    "Consider consulting with a healthcare provider",
]


def _bullets(items) -> str:
    return "\n".join(f"• {item}" for item in items)


def format_mock_response(bundle: SymptomBundle) -> str:
    return (
        "Based on your symptoms, here's my analysis:\n\n"
        f"Assessment: {bundle.assessment}\n\n"
        f"Urgency Level: {bundle.urgency_level.upper()}\n\n"
        f"Possible Conditions:\n{_bullets(bundle.possible_conditions)}\n\n"
        f"Recommendations:\n{_bullets(bundle.possible_precautions)}\n\n"
        f"Next Steps:\n{_bullets(_NEXT_STEPS)}\n\n"
        "Would you like me to:\n"
        "1. Find healthcare providers in your area\n"
        "2. Explain any of these recommendations in more detail\n"
        "3. Provide self-care tips\n"
        "4. Ask additional questions about your symptoms\n\n"
        "Please let me know how I can help further."
    )
