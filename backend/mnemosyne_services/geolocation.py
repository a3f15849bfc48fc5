from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable

from mnemosyne_records.time_utils import to_iso, utc_now

from .doctor_discovery import haversine_km

LOCATION_TTL = timedelta(minutes=5)

_ERROR_MESSAGES = {
    1: "Location access denied. Please enable location access in your browser settings.",
    2: "Location information is unavailable. Please check your internet connection.",
    3: "Location request timed out. Please try again.",
}


def geolocation_error_message(code: int | None) -> str:
    return _ERROR_MESSAGES.get(code, "An error occurred while getting your location.")


@dataclass(frozen=True)
class UserLocation:
    latitude: float
    longitude: float
    accuracy: float | None
    timestamp: datetime

    def as_payload(self) -> dict[str, Any]:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "accuracy": self.accuracy,
            "timestamp": to_iso(self.timestamp),
        }


class LocationCache:
    def __init__(self, *, ttl: timedelta = LOCATION_TTL, clock: Callable[[], datetime] = utc_now) -> None:
        self._ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._locations: dict[str, UserLocation] = {}

    def report(self, user_id: str, latitude: float, longitude: float, accuracy: float | None = None) -> UserLocation:
        location = UserLocation(latitude=latitude, longitude=longitude, accuracy=accuracy, timestamp=self._clock())
        with self._lock:
            self._locations[user_id] = location
        return location

    def current(self, user_id: str) -> UserLocation | None:
        with self._lock:
            location = self._locations.get(user_id)
            if location is None:
                return None
            if self._clock() - location.timestamp >= self._ttl:
                del self._locations[user_id]
                return None
            return location


_MOCK_DOCTORS: tuple[dict[str, Any], ...] = (
    {
        "id": "1",
        "name": "Dr. Sarah Johnson",
        "specialty": "General Practice",
        "qualifications": ["MD", "Family Medicine"],
        "address": "123 Medical Center Dr, Suite 100",
        "offset": (0.01, 0.01),
        "phone": "(555) 123-4567",
        "email": "dr.johnson@example.com",
        "rating": 4.8,
        "reviews": 156,
        "available_in_hours": 24,
        "slots": ["9:00 AM", "2:30 PM", "4:00 PM"],
        "follows_specialty": True,
    },
    {
        "id": "2",
        "name": "Dr. Michael Chen",
        "specialty": "Internal Medicine",
        "qualifications": ["MD", "Internal Medicine"],
        "address": "456 Health Plaza, Floor 2",
        "offset": (-0.015, 0.02),
        "phone": "(555) 234-5678",
        "email": "dr.chen@example.com",
        "rating": 4.6,
        "reviews": 89,
        "available_in_hours": 48,
        "slots": ["10:30 AM", "3:00 PM"],
        "follows_specialty": True,
    },
    {
        "id": "3",
        "name": "Dr. Lisa Park",
        "specialty": "Emergency Medicine",
        "qualifications": ["MD", "Emergency Medicine"],
        "address": "789 Emergency Center",
        "offset": (0.02, -0.01),
        "phone": "(555) 345-6789",
        "email": "dr.park@example.com",
        "rating": 4.9,
        "reviews": 203,
        "available_in_hours": 1,
        "slots": ["Immediate", "24/7 Emergency"],
        "follows_specialty": False,
    },
)


def nearby_mock_doctors(location: UserLocation, specialty: str | None = None) -> list[dict[str, Any]]:
    now = utc_now()
    doctors: list[dict[str, Any]] = []
    for item in _MOCK_DOCTORS:
        lat = location.latitude + item["offset"][0]
        lon = location.longitude + item["offset"][1]
        doctors.append(
            {
                "id": item["id"],
                "name": item["name"],
                "specialty": (specialty or item["specialty"]) if item["follows_specialty"] else item["specialty"],
                "qualifications": list(item["qualifications"]),
                "address": item["address"],
                "location": {"latitude": lat, "longitude": lon},
                "phone": item["phone"],
                "email": item["email"],
                "rating": item["rating"],
                "reviews": item["reviews"],
                "availability": {
                    "nextAvailable": to_iso(now + timedelta(hours=item["available_in_hours"])),
                    "slots": list(item["slots"]),
                },
                "distance": haversine_km(location.latitude, location.longitude, lat, lon),
            }
        )
    doctors.sort(key=lambda row: row["distance"])
    return doctors
