from .doctor_discovery import DoctorDiscovery, extract_specialty, haversine_km
from .geolocation import LocationCache, UserLocation, geolocation_error_message, nearby_mock_doctors
from .journey_processor import JourneyProcessingError, JourneyProcessor, ProcessedJourney
from .llm_client import LLMClient, LLMUnavailableError
from .translation import SUPPORTED_LANGUAGES, TranslationResult, Translator

__all__ = [
    "DoctorDiscovery",
    "JourneyProcessingError",
    "JourneyProcessor",
    "LLMClient",
    "LLMUnavailableError",
    "LocationCache",
    "ProcessedJourney",
    "SUPPORTED_LANGUAGES",
    "TranslationResult",
    "Translator",
    "UserLocation",
    "extract_specialty",
    "geolocation_error_message",
    "haversine_km",
    "nearby_mock_doctors",
]
