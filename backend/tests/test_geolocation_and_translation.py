from __future__ import annotations

from datetime import datetime, timedelta, timezone

import httpx
from http_fakes import FakeResponse

from mnemosyne_services.geolocation import LocationCache, geolocation_error_message, nearby_mock_doctors
from mnemosyne_services.translation import SUPPORTED_LANGUAGES, Translator


class _Clock:
    def __init__(self) -> None:
        self.now = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now


def test_location_cache_expires_after_five_minutes():
    clock = _Clock()
    cache = LocationCache(clock=clock)
    cache.report("user-a", 12.97, 77.59, accuracy=15.0)

    clock.now += timedelta(minutes=4, seconds=59)
    cached = cache.current("user-a")
    assert cached is not None
    assert (cached.latitude, cached.longitude, cached.accuracy) == (12.97, 77.59, 15.0)

    clock.now += timedelta(seconds=1)
    assert cache.current("user-a") is None
    assert cache.current("someone-else") is None


def test_geolocation_error_messages():
    assert geolocation_error_message(1).startswith("Location access denied")
    assert geolocation_error_message(2).startswith("Location information is unavailable")
    assert geolocation_error_message(3) == "Location request timed out. Please try again."
    assert geolocation_error_message(99) == "An error occurred while getting your location."
    assert geolocation_error_message(None) == "An error occurred while getting your location."


def test_nearby_mock_doctors_sorted_by_distance():
    cache = LocationCache()
    location = cache.report("user-a", 12.97, 77.59)
    doctors = nearby_mock_doctors(location, specialty="Pediatrics")

    distances = [doctor["distance"] for doctor in doctors]
    assert distances == sorted(distances)
    assert doctors[0]["name"] == "Dr. Sarah Johnson"
    by_name = {doctor["name"]: doctor for doctor in doctors}
    assert by_name["Dr. Michael Chen"]["specialty"] == "Pediatrics"
    assert by_name["Dr. Lisa Park"]["specialty"] == "Emergency Medicine"


def test_supported_languages_cover_english_and_scheduled_languages():
    codes = [language["code"] for language in SUPPORTED_LANGUAGES]
    assert codes[0] == "en"
    assert len(codes) == 23
    assert {"hi", "ta", "sat", "gom"} <= set(codes)


def test_translate_joins_segments(monkeypatch):
    monkeypatch.setenv("MNEMOSYNE_DISABLE_EXTERNAL", "false")
    captured: dict = {}

    def fake_get(url: str, **kwargs):
        captured.update(kwargs.get("params") or {})
        return FakeResponse(json_data=[[["नमस्ते। ", "Hello. ", None], ["आप कैसे हैं?", "How are you?", None]], None, "en"])

    monkeypatch.setattr("mnemosyne_services.translation.httpx.get", fake_get)
    result = Translator().translate("Hello. How are you?", "hi")
    assert result.translated is True
    assert result.text == "नमस्ते। आप कैसे हैं?"
    assert captured["client"] == "gtx"
    assert captured["sl"] == "en"
    assert captured["tl"] == "hi"


def test_translate_returns_original_text_on_failure(monkeypatch):
    monkeypatch.setenv("MNEMOSYNE_DISABLE_EXTERNAL", "false")

    def failing_get(*args, **kwargs):
        raise httpx.ConnectError("offline")

    monkeypatch.setattr("mnemosyne_services.translation.httpx.get", failing_get)
    result = Translator().translate("Drink water", "ta")
    assert result.translated is False
    assert result.text == "Drink water"


def test_translate_skips_network_for_english_and_empty_text(monkeypatch):
    monkeypatch.setenv("MNEMOSYNE_DISABLE_EXTERNAL", "false")

    def unexpected_get(*args, **kwargs):
        raise AssertionError("network should not be used")

    monkeypatch.setattr("mnemosyne_services.translation.httpx.get", unexpected_get)
    assert Translator().translate("Hello", "en").translated is False
    assert Translator().translate("   ", "hi").text == "   "
