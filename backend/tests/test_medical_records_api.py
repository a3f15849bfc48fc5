from __future__ import annotations

import pytest

from mnemosyne_services.journey_processor import JourneyProcessingError


def _create(client, user_id: str | None, journey: str | None):
    payload: dict[str, str] = {}
    if user_id is not None:
        payload["userId"] = user_id
    if journey is not None:
        payload["journeyDescription"] = journey
    return client.post("/api/medical-records", json=payload)


def test_health_and_favicon(client):
    assert client.get("/health").json() == {"status": "OK"}
    assert client.get("/favicon.ico").status_code == 204


@pytest.mark.parametrize(
    ("user_id", "journey", "details"),
    [
        (None, "Headache for two days.", {"userId": "User ID is required", "journeyDescription": None}),
        ("user-a", "   ", {"userId": None, "journeyDescription": "Journey description is required"}),
        (None, None, {"userId": "User ID is required", "journeyDescription": "Journey description is required"}),
    ],
)
def test_create_rejects_missing_fields(client, user_id, journey, details):
    response = _create(client, user_id, journey)
    assert response.status_code == 400
    assert response.json() == {"error": "Missing required fields", "details": details}


def test_create_processes_and_lists_records_newest_first(client):
    first = _create(client, "user-a", "Fever since yesterday. Feeling tired.")
    assert first.status_code == 201
    body = first.json()
    assert body["message"] == "Medical record created successfully"
    assert body["data"]["symptoms"] == ["fever", "fatigue"]
    assert body["data"]["summary"] == "Fever since yesterday"

    second = _create(client, "user-a", "The fever is back with a cough.")
    assert second.status_code == 201
    assert "fever also reported in 1 earlier entry" in second.json()["data"]["insights"]["symptomTrends"]

    _create(client, "user-b", "Headache.")

    listing = client.get("/api/medical-records/user/user-a").json()
    assert listing["count"] == 2
    newest, oldest = listing["records"]
    assert newest["journeyDescription"] == "The fever is back with a cough."
    assert oldest["journeyDescription"] == "Fever since yesterday. Feeling tired."
    assert newest["_id"] == newest["id"]
    assert newest["decryptedData"]["journeyDescription"] == "The fever is back with a cough."
    assert newest["decryptedData"]["processedData"]["symptoms"] == ["fever", "cough"]
    assert "decryptionError" not in newest


def test_listing_unknown_user_returns_empty_array(client):
    response = client.get("/api/medical-records/user/nobody")
    assert response.status_code == 200
    assert response.json() == {"records": [], "message": "No medical records found for this user"}


def test_listing_flags_records_that_cannot_be_decrypted(client, backend_module, monkeypatch):
    assert _create(client, "user-a", "Dizziness in the morning.").status_code == 201
    monkeypatch.setenv("ENCRYPTION_KEY", "rotated-key")
    assert _create(client, "user-a", "Dizziness again.").status_code == 201
    monkeypatch.setenv("ENCRYPTION_KEY", "test-passphrase")

    records = client.get("/api/medical-records/user/user-a").json()["records"]
    assert records[0]["decryptionError"] is True
    assert records[0]["decryptedData"] is None
    assert records[1]["decryptedData"]["journeyDescription"] == "Dizziness in the morning."


def test_create_returns_500_when_processing_fails(client, backend_module, monkeypatch):
    def failing_process(journey_description, previous_symptoms=()):
        raise JourneyProcessingError("Failed to process medical journey: provider down")

    monkeypatch.setattr(backend_module.container.journeys, "process", failing_process)
    response = _create(client, "user-a", "Stomach pain after meals.")
    assert response.status_code == 500
    assert response.json() == {
        "error": "Failed to create medical record",
        "details": "Failed to process medical journey: provider down",
    }
    assert client.get("/api/medical-records/user/user-a").json()["records"] == []


def test_report_stub(client):
    record_id = _create(client, "user-a", "Cough at night.").json()["recordId"]
    assert client.get(f"/api/medical-records/report/{record_id}").json() == {"message": "PDF generation endpoint"}

    missing = client.get("/api/medical-records/report/does-not-exist")
    assert missing.status_code == 404
    assert missing.json() == {"error": "Record not found"}
