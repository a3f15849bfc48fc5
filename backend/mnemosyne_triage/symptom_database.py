from __future__ import annotations

import copy
from typing import Any

SYMPTOM_DATABASE: dict[str, dict[str, dict[str, Any]]] = {
    "neurological": {
        "Headaches / Migraines": {
            "possible_conditions": ["Tension headache", "Migraine", "Sinus headache", "Cluster headache"],
            "recommendations": {
                "home_remedies": [
                    "Apply cold or warm compress to head and neck",
                    "Rest in a dark, quiet room",
                    "Stay hydrated - drink plenty of water",
                    "Practice relaxation techniques or meditation",
                    "Gentle neck and shoulder stretches",
                ],
                "over_the_counter_medicines": [
                    "Ibuprofen (Advil, Motrin) - 200-400mg every 4-6 hours",
                    "Acetaminophen (Tylenol) - 500-1000mg every 4-6 hours",
                    "Aspirin - 325-650mg every 4 hours",
                    "Naproxen (Aleve) - 220mg every 8-12 hours",
                ],
                "when_to_see_doctor": [
                    "Severe headache with fever, stiff neck, or rash",
                    "Sudden, severe headache (thunderclap headache)",
                    "Headache after head injury",
                    "Headache with vision changes, confusion, or weakness",
                    "Headaches that worsen or change pattern",
                ],
                "general_advice": [
                    "Keep a headache diary to identify triggers",
                    "Maintain regular sleep schedule",
                    "Limit caffeine and alcohol intake",
                    "Manage stress through exercise and relaxation",
                ],
                "severity": "medium",
            },
            "confidence": 85,
            "urgency": "Monitor symptoms and seek medical attention if severe or persistent",
        },
        "Memory problems": {
            "possible_conditions": [
                "Age-related memory decline",
                "Stress-related forgetfulness",
                "Sleep deprivation",
                "Medication side effects",
            ],
            "recommendations": {
                "home_remedies": [
                    "Get adequate sleep (7-9 hours per night)",
                    "Stay mentally active with puzzles, reading, or learning",
                    "Maintain social connections and conversations",
                    "Practice mindfulness and meditation",
                    "Keep a daily planner or use reminder apps",
                ],
                "over_the_counter_medicines": [
                    "Ginkgo biloba supplements (120-240mg daily)",
                    "Omega-3 fatty acids (1000-2000mg daily)",
                    "Vitamin B12 (1000-2000mcg daily) if deficient",
                    "Magnesium supplements (200-400mg daily)",
                ],
                "when_to_see_doctor": [
                    "Significant memory loss affecting daily activities",
                    "Confusion or disorientation",
                    "Difficulty with familiar tasks",
                    "Personality or mood changes",
                    "Memory problems that worsen rapidly",
                ],
                "general_advice": [
                    "Exercise regularly to improve brain function",
                    "Eat a brain-healthy diet (Mediterranean diet)",
                    "Manage chronic conditions like diabetes and hypertension",
                    "Avoid excessive alcohol consumption",
                ],
                "severity": "medium",
            },
            "confidence": 80,
            "urgency": "Schedule appointment if symptoms persist or worsen",
        },
    },
    "cardiovascular": {
        "Chest pain": {
            "possible_conditions": ["Angina", "Heart attack", "Costochondritis", "Anxiety", "GERD"],
            "recommendations": {
                "home_remedies": [
                    "Rest and avoid physical exertion",
                    "Apply warm compress to chest area",
                    "Practice deep breathing exercises",
                    "Stay calm and reduce stress",
                    "Avoid heavy meals and caffeine",
                ],
                "over_the_counter_medicines": [
                    "Antacids if GERD-related (Tums, Rolaids)",
                    "Aspirin 325mg (only if prescribed by doctor)",
                    "Ibuprofen for inflammation (if not heart-related)",
                ],
                "when_to_see_doctor": [
                    "Severe chest pain or pressure",
                    "Pain radiating to arm, jaw, or back",
                    "Shortness of breath or sweating",
                    "Nausea or dizziness with chest pain",
                    "Chest pain lasting more than 15 minutes",
                ],
                "general_advice": [
                    "Call emergency services (911) for severe chest pain",
                    "Avoid smoking and secondhand smoke",
                    "Maintain healthy weight and diet",
                    "Manage stress and anxiety",
                ],
                "severity": "high",
            },
            "confidence": 90,
            "urgency": "Seek immediate medical attention for severe chest pain",
        },
        "Shortness of breath": {
            "possible_conditions": ["Asthma", "Anxiety", "COPD", "Heart failure", "Pneumonia"],
            "recommendations": {
                "home_remedies": [
                    "Sit upright and lean forward slightly",
                    "Practice pursed-lip breathing",
                    "Use a fan to circulate air",
                    "Stay calm and avoid panic",
                    "Remove tight clothing around chest",
                ],
                "over_the_counter_medicines": [
                    "Antihistamines for allergies (Claritin, Zyrtec)",
                    "Decongestants for nasal congestion (Sudafed)",
                    "Inhalers (if prescribed by doctor)",
                ],
                "when_to_see_doctor": [
                    "Severe shortness of breath at rest",
                    "Blue lips or fingernails",
                    "Chest pain with breathing difficulty",
                    "High fever with breathing problems",
                    "Sudden onset of severe breathing difficulty",
                ],
                "general_advice": [
                    "Avoid triggers like smoke, dust, or allergens",
                    "Maintain good indoor air quality",
                    "Stay hydrated and avoid dehydration",
                    "Exercise regularly to improve lung function",
                ],
                "severity": "high",
            },
            "confidence": 85,
            "urgency": "Seek immediate medical attention if severe",
        },
    },
    "systemic": {
        "Fever": {
            "possible_conditions": [
                "Viral infection",
                "Bacterial infection",
                "Inflammatory condition",
                "Heat exhaustion",
            ],
            "recommendations": {
                "home_remedies": [
                    "Rest and get plenty of sleep",
                    "Stay hydrated with water, herbal teas, or broth",
                    "Apply cool, damp cloths to forehead and body",
                    "Take lukewarm baths or showers",
                    "Wear lightweight, breathable clothing",
                ],
                "over_the_counter_medicines": [
                    "Acetaminophen (Tylenol) - 500-1000mg every 4-6 hours",
                    "Ibuprofen (Advil) - 200-400mg every 4-6 hours",
                    "Aspirin - 325-650mg every 4 hours (adults only)",
                ],
                "when_to_see_doctor": [
                    "Fever above 103°F (39.4°C) in adults",
                    "Fever lasting more than 3 days",
                    "Fever with severe headache or stiff neck",
                    "Fever with rash or difficulty breathing",
                    "Fever in infants under 3 months",
                ],
                "general_advice": [
                    "Monitor temperature regularly",
                    "Avoid alcohol and caffeine",
                    "Eat light, easily digestible foods",
                    "Get adequate rest and avoid overexertion",
                ],
                "severity": "medium",
            },
            "confidence": 90,
            "urgency": "Monitor temperature and seek medical attention if high or persistent",
        },
    },
    "digestive": {
        "Abdominal pain": {
            "possible_conditions": ["Indigestion", "Gas", "Constipation", "Food intolerance", "Gastritis"],
            "recommendations": {
                "home_remedies": [
                    "Apply heat pad or warm compress to abdomen",
                    "Drink peppermint or ginger tea",
                    "Practice gentle abdominal massage",
                    "Try the BRAT diet (bananas, rice, applesauce, toast)",
                    "Stay hydrated with clear fluids",
                ],
                "over_the_counter_medicines": [
                    "Antacids (Tums, Rolaids, Maalox)",
                    "Simethicone for gas (Gas-X, Mylicon)",
                    "Pepto-Bismol for stomach upset",
                    "Probiotics for digestive health",
                ],
                "when_to_see_doctor": [
                    "Severe or persistent abdominal pain",
                    "Pain with fever, vomiting, or diarrhea",
                    "Blood in stool or vomit",
                    "Pain that worsens with movement",
                    "Abdominal pain with chest pain",
                ],
                "general_advice": [
                    "Eat smaller, more frequent meals",
                    "Avoid spicy, fatty, or acidic foods",
                    "Manage stress and anxiety",
                    "Keep a food diary to identify triggers",
                ],
                "severity": "medium",
            },
            "confidence": 85,
            "urgency": "Seek medical attention if severe or persistent",
        },
    },
}

DEFAULT_ANALYSIS: dict[str, Any] = {
    "possible_conditions": ["General health concern"],
    "recommendations": {
        "home_remedies": [
            "Get adequate rest and sleep",
            "Stay hydrated with water",
            "Eat a balanced diet",
            "Practice stress management techniques",
            "Maintain good hygiene",
        ],
        "over_the_counter_medicines": [
            "Consult with pharmacist for appropriate OTC medications",
            "Consider multivitamins if diet is inadequate",
            "Pain relievers as needed (acetaminophen or ibuprofen)",
        ],
        "when_to_see_doctor": [
            "Symptoms persist for more than a few days",
            "Symptoms worsen or become severe",
            "New or unusual symptoms develop",
            "Concern about your health condition",
        ],
        "general_advice": [
            "Monitor your symptoms closely",
            "Maintain a healthy lifestyle",
            "Keep track of symptom patterns",
            "Don't hesitate to seek medical advice when needed",
        ],
        "severity": "low",
    },
    "confidence": 60,
    "urgency": "Monitor symptoms and consult healthcare provider if needed",
}


def list_domains() -> dict[str, list[str]]:
    return {domain: list(entries) for domain, entries in SYMPTOM_DATABASE.items()}


def default_analysis() -> dict[str, Any]:
    return copy.deepcopy(DEFAULT_ANALYSIS)


def analyze_domain_symptoms(domain: str, symptoms: list[str]) -> dict[str, Any]:
    # Only the first selected symptom drives the lookup.
    entries = SYMPTOM_DATABASE.get((domain or "").strip().lower())
    if not entries or not symptoms:
        return default_analysis()
    analysis = entries.get(symptoms[0])
    if analysis is None:
        return default_analysis()
    return copy.deepcopy(analysis)
