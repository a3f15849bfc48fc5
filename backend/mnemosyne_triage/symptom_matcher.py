from __future__ import annotations

from .models import SymptomBundle

FEVER = SymptomBundle(
    key="fever",
    label="fever",
    assessment=(
        "Your symptoms suggest a possible fever. This could be due to various causes "
        "including viral or bacterial infections."
    ),
    urgency_level="medium",
    confidence=75,
    possible_conditions=("Viral infection", "Bacterial infection", "Inflammatory condition", "Heat exhaustion"),
    possible_precautions=(
        "Monitor your temperature regularly",
        "Stay hydrated by drinking plenty of fluids",
        "Rest and avoid strenuous activity",
        "Take over-the-counter fever reducers if needed",
        "Seek medical attention if temperature exceeds 103°F (39.4°C) or persists for more than 3 days",
    ),
    specialist_to_consider=("General Practitioner", "Internal Medicine", "Infectious Disease Specialist"),
)

HEADACHE = SymptomBundle(
    key="headache",
    label="headache",
    assessment=(
        "You appear to be experiencing a headache. This could range from a tension headache to a migraine."
    ),
    urgency_level="low",
    confidence=70,
    possible_conditions=("Tension headache", "Migraine", "Sinus headache", "Cluster headache"),
    possible_precautions=(
        "Rest in a quiet, dark room",
        "Stay hydrated",
        "Try over-the-counter pain relievers",
        "Apply a cold or warm compress",
        "If severe or persistent, consult a healthcare provider",
    ),
    specialist_to_consider=("General Practitioner", "Neurologist", "Headache Specialist"),
)

CHEST_PAIN = SymptomBundle(
    key="chest_pain",
    label="chest pain",
    assessment=(
        "Chest pain can have cardiac, respiratory, digestive or muscular causes and should be "
        "evaluated promptly, especially if it is severe or spreading."
    ),
    urgency_level="emergency",
    confidence=80,
    possible_conditions=("Angina", "Heart attack", "Costochondritis", "Anxiety", "GERD"),
    possible_precautions=(
        "Call emergency services if the pain is severe or spreads to the arm, jaw or back",
        "Stop any physical activity and rest",
        "Avoid heavy meals and caffeine",
        "Do not drive yourself to the hospital",
    ),
    specialist_to_consider=("Emergency Medicine", "Cardiologist", "General Practitioner"),
)

SHORTNESS_OF_BREATH = SymptomBundle(
    key="shortness_of_breath",
    label="shortness of breath",
    assessment=(
        "Shortness of breath may come from the lungs, the heart or anxiety and needs attention "
        "if it occurs at rest or worsens quickly."
    ),
    urgency_level="high",
    confidence=75,
    possible_conditions=("Asthma", "Anxiety", "COPD", "Heart failure", "Pneumonia"),
    possible_precautions=(
        "Sit upright and lean forward slightly",
        "Practice pursed-lip breathing",
        "Remove tight clothing around the chest",
        "Seek emergency care if lips or fingernails turn blue",
    ),
    specialist_to_consider=("Pulmonologist", "Emergency Medicine", "General Practitioner"),
)

ABDOMINAL_PAIN = SymptomBundle(
    key="abdominal_pain",
    label="abdominal pain",
    assessment=(
        "Abdominal discomfort is often digestive, such as indigestion or a food intolerance, "
        "but persistent or severe pain should be checked."
    ),
    urgency_level="medium",
    confidence=70,
    possible_conditions=("Indigestion", "Gas", "Constipation", "Food intolerance", "Gastritis"),
    possible_precautions=(
        "Apply a warm compress to the abdomen",
        "Stay hydrated with clear fluids",
        "Eat small, bland meals",
        "Seek care if pain comes with fever, vomiting or blood in stool",
    ),
    specialist_to_consider=("Gastroenterologist", "General Practitioner", "Emergency Medicine"),
)

DIZZINESS = SymptomBundle(
    key="dizziness",
    label="dizziness",
    assessment="Dizziness can have various causes ranging from inner ear problems to cardiovascular issues.",
    urgency_level="medium",
    confidence=65,
    possible_conditions=(
        "Benign paroxysmal positional vertigo (BPPV)",
        "Vestibular neuritis",
        "Low blood pressure",
        "Anxiety or panic disorder",
        "Dehydration",
        "Medication side effects",
    ),
    possible_precautions=(
        "Sit or lie down when dizzy",
        "Stay hydrated",
        "Avoid sudden head movements",
        "Get up slowly from sitting/lying",
        "Avoid driving or operating machinery",
    ),
    specialist_to_consider=("Neurologist", "ENT Specialist", "General Practitioner", "Cardiologist"),
)

FATIGUE = SymptomBundle(
    key="fatigue",
    label="fatigue",
    assessment=(
        "Fatigue can be caused by various factors including lifestyle, medical conditions, "
        "or mental health issues."
    ),
    urgency_level="low",
    confidence=60,
    possible_conditions=(
        "Sleep disorders",
        "Anemia",
        "Thyroid problems",
        "Depression or anxiety",
        "Chronic fatigue syndrome",
        "Diabetes",
        "Vitamin deficiencies",
    ),
    possible_precautions=(
        "Maintain regular sleep schedule",
        "Eat balanced meals",
        "Stay hydrated",
        "Exercise regularly",
        "Manage stress",
        "Avoid excessive caffeine",
    ),
    specialist_to_consider=(
        "General Practitioner",
        "Endocrinologist",
        "Sleep Medicine Specialist",
        "Psychiatrist",
    ),
)

COUGH = SymptomBundle(
    key="cough",
    label="cough",
    assessment="A persistent cough can indicate various respiratory or other conditions.",
    urgency_level="medium",
    confidence=65,
    possible_conditions=(
        "Upper respiratory infection",
        "Bronchitis",
        "Asthma",
        "Post-nasal drip",
        "GERD (acid reflux)",
        "Pneumonia",
        "Allergies",
    ),
    possible_precautions=(
        "Stay hydrated",
        "Use humidifier",
        "Avoid irritants (smoke, dust)",
        "Elevate head while sleeping",
        "Gargle with salt water",
        "Avoid lying down after eating",
    ),
    specialist_to_consider=("Pulmonologist", "General Practitioner", "ENT Specialist", "Allergist"),
)

DEFAULT_BUNDLE = SymptomBundle(
    key="default",
    label="general concern",
    assessment="Based on the symptoms described, a medical evaluation may be needed for proper diagnosis.",
    urgency_level="medium",
    confidence=60,
    possible_conditions=("General health concern requiring evaluation",),
    possible_precautions=(
        "Monitor your symptoms",
        "Keep track of any changes",
        "Consider consulting with a healthcare provider",
        "Watch for worsening symptoms",
    ),
    specialist_to_consider=("General Practitioner", "Internal Medicine"),
)

# Order matters: the first group with a hit decides the bundle.
KEYWORD_TABLE: list[tuple[tuple[str, ...], SymptomBundle]] = [
    (("fever", "temperature", "hot"), FEVER),
    (("headache", "head pain", "migraine"), HEADACHE),
    (("chest pain", "chest discomfort", "heart pain"), CHEST_PAIN),
    (("shortness of breath", "difficulty breathing", "breathing problem"), SHORTNESS_OF_BREATH),
    (("stomach pain", "abdominal pain", "belly pain", "nausea"), ABDOMINAL_PAIN),
    (("dizziness", "vertigo", "lightheaded"), DIZZINESS),
    (("fatigue", "tired", "exhausted", "weakness"), FATIGUE),
    (("cough", "coughing", "persistent cough"), COUGH),
]


def match_symptom_bundle(text: str) -> SymptomBundle:
    lowered = (text or "").lower()
    for keywords, bundle in KEYWORD_TABLE:
        if any(keyword in lowered for keyword in keywords):
            return bundle
    return DEFAULT_BUNDLE


def extract_symptom_keywords(text: str) -> list[str]:
    lowered = (text or "").lower()
    found: list[str] = []
    for keywords, bundle in KEYWORD_TABLE:
        if any(keyword in lowered for keyword in keywords) and bundle.label not in found:
            found.append(bundle.label)
    return found


def matched_bundles(text: str) -> list[SymptomBundle]:
    lowered = (text or "").lower()
    return [bundle for keywords, bundle in KEYWORD_TABLE if any(keyword in lowered for keyword in keywords)]
