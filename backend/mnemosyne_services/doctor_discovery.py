from __future__ import annotations

import logging
import math
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass, field
from typing import Any

import httpx

from .settings import external_disabled

logger = logging.getLogger(__name__)

PLACES_API_BASE = "https://maps.googleapis.com/maps/api/place"
DETAILS_WORKERS = 6

SPECIALTY_MAP = {
    "hospital": "General Medicine",
    "doctor": "General Practice",
    "dentist": "Dentistry",
    "pharmacy": "Pharmacy",
    "physiotherapist": "Physiotherapy",
    "psychologist": "Psychology",
    "cardiologist": "Cardiology",
    "dermatologist": "Dermatology",
    "pediatrician": "Pediatrics",
    "gynecologist": "Gynecology",
}
DEFAULT_SPECIALTY = "General Practice"


def _safe_float(value: Any) -> float | None:
    try:
        if value is None:
            return None
        return float(value)
    except (TypeError, ValueError):
        return None


def _safe_int(value: Any) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    radius_km = 6371.0
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)
    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(dlon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return radius_km * c


def extract_specialty(types: list[str] | None) -> str:
    for place_type in types or []:
        if isinstance(place_type, str) and place_type in SPECIALTY_MAP:
            return SPECIALTY_MAP[place_type]
    return DEFAULT_SPECIALTY


@dataclass
class Doctor:
    id: str
    name: str
    specialty: str
    address: str
    latitude: float
    longitude: float
    phone: str = ""
    email: str = ""
    rating: float = 0.0
    reviews: int = 0
    distance: float | None = None
    qualifications: list[str] = field(default_factory=list)
    google_place_id: str | None = None
    website: str | None = None
    opening_hours: list[str] = field(default_factory=list)

    def as_payload(self) -> dict[str, Any]:
        payload = asdict(self)
        return {
            "id": payload["id"],
            "name": payload["name"],
            "specialty": payload["specialty"],
            "address": payload["address"],
            "location": {"latitude": payload["latitude"], "longitude": payload["longitude"]},
            "phone": payload["phone"],
            "email": payload["email"],
            "rating": payload["rating"],
            "reviews": payload["reviews"],
            "distance": payload["distance"],
            "qualifications": payload["qualifications"],
            "googlePlaceId": payload["google_place_id"],
            "website": payload["website"],
            "openingHours": payload["opening_hours"],
        }


def sort_doctors(doctors: list[Doctor]) -> list[Doctor]:
    return sorted(doctors, key=lambda doc: (-(doc.rating or 0.0), doc.distance or 0.0))


class DoctorDiscovery:
    def __init__(self) -> None:
        self.api_key = (os.getenv("GOOGLE_MAPS_API_KEY") or "").strip()
        self.disable_external = external_disabled()
        self.timeout = float(os.getenv("MNEMOSYNE_WEB_TIMEOUT_SECONDS", "5.0"))

    def find_nearby_doctors(
        self,
        latitude: float,
        longitude: float,
        radius: int = 5000,
        specialty: str | None = None,
    ) -> dict[str, Any]:
        if self.disable_external:
            return self._fallback_result(latitude, longitude, reason="external_web_disabled")
        if not self.api_key:
            return self._fallback_result(latitude, longitude, reason="maps_api_key_missing")

        query = f"doctor {specialty}" if specialty else "doctor"
        try:
            response = httpx.get(
                f"{PLACES_API_BASE}/nearbysearch/json",
                params={
                    "location": f"{latitude},{longitude}",
                    "radius": radius,
                    "keyword": query,
                    "type": "doctor",
                    "key": self.api_key,
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json() if response.content else {}
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("places nearby search failed: %s", exc)
            return self._fallback_result(latitude, longitude, reason="places_request_failed")

        status = str(payload.get("status") or "") if isinstance(payload, dict) else ""
        if status != "OK":
            logger.warning("places nearby search returned status %s", status or "<missing>")
            return self._fallback_result(latitude, longitude, reason=f"places_status_{(status or 'missing').lower()}")

        doctors: list[Doctor] = []
        results = payload.get("results")
        for row in results if isinstance(results, list) else []:
            doctor = self._doctor_from_place(row, latitude, longitude)
            if doctor is not None:
                doctors.append(doctor)
        self._attach_details(doctors)

        return {
            "doctors": [doctor.as_payload() for doctor in sort_doctors(doctors)],
            "provider": "google_places",
            "using_live_data": True,
            "fallback_reason": None,
        }

    def _doctor_from_place(self, row: Any, latitude: float, longitude: float) -> Doctor | None:
        if not isinstance(row, dict):
            return None
        geometry = row.get("geometry")
        location = geometry.get("location") if isinstance(geometry, dict) else None
        if not isinstance(location, dict):
            return None
        lat = _safe_float(location.get("lat"))
        lng = _safe_float(location.get("lng"))
        if lat is None or lng is None:
            return None
        place_id = str(row.get("place_id") or "")
        types = row.get("types")
        return Doctor(
            id=place_id,
            name=str(row.get("name") or "Medical provider"),
            specialty=extract_specialty(types if isinstance(types, list) else None),
            address=str(row.get("vicinity") or ""),
            latitude=lat,
            longitude=lng,
            rating=_safe_float(row.get("rating")) or 0.0,
            reviews=_safe_int(row.get("user_ratings_total")),
            distance=haversine_km(latitude, longitude, lat, lng),
            google_place_id=place_id or None,
        )

    def _attach_details(self, doctors: list[Doctor]) -> None:
        targets = [doctor for doctor in doctors if doctor.google_place_id]
        if not targets:
            return
        with ThreadPoolExecutor(max_workers=min(DETAILS_WORKERS, len(targets))) as executor:
            details_rows = list(executor.map(lambda doctor: self._place_details(doctor.google_place_id), targets))
        for doctor, details in zip(targets, details_rows):
            doctor.phone = str(details.get("formatted_phone_number") or "")
            doctor.website = str(details.get("website") or "") or None
            hours = details.get("opening_hours")
            weekday_text = hours.get("weekday_text") if isinstance(hours, dict) else None
            doctor.opening_hours = [str(item) for item in weekday_text] if isinstance(weekday_text, list) else []

    def _place_details(self, place_id: str) -> dict[str, Any]:
        try:
            response = httpx.get(
                f"{PLACES_API_BASE}/details/json",
                params={
                    "place_id": place_id,
                    "fields": "formatted_phone_number,website,opening_hours",
                    "key": self.api_key,
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json() if response.content else {}
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("could not fetch place details for %s: %s", place_id, exc)
            return {}
        result = payload.get("result") if isinstance(payload, dict) else None
        return result if isinstance(result, dict) else {}

    def _fallback_result(self, latitude: float, longitude: float, *, reason: str) -> dict[str, Any]:
        doctors = [
            Doctor(
                id="mock-1",
                name="Dr. Sarah Johnson",
                specialty="General Practice",
                address="123 Medical Center Dr",
                latitude=latitude + 0.01,
                longitude=longitude + 0.01,
                phone="(555) 123-4567",
                email="dr.johnson@example.com",
                rating=4.8,
                reviews=156,
                distance=1.2,
                qualifications=["MD", "MBBS"],
            ),
            Doctor(
                id="mock-2",
                name="Dr. Michael Chen",
                specialty="Cardiology",
                address="456 Heart Clinic Ave",
                latitude=latitude + 0.02,
                longitude=longitude - 0.01,
                phone="(555) 234-5678",
                email="dr.chen@example.com",
                rating=4.9,
                reviews=203,
                distance=2.1,
                qualifications=["MD", "Cardiology Specialist"],
            ),
        ]
        return {
            "doctors": [doctor.as_payload() for doctor in doctors],
            "provider": "fallback_static",
            "using_live_data": False,
            "fallback_reason": reason,
        }
