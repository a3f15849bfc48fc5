from __future__ import annotations

import json
import logging
import os
import re
import sqlite3
from pathlib import Path
from typing import Any

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from mnemosyne_records import DecryptionError, MedicalRecordDB, RecordStore, RecordStoreError, decrypt_data, encrypt_data
from mnemosyne_services import (
    SUPPORTED_LANGUAGES,
    DoctorDiscovery,
    JourneyProcessingError,
    JourneyProcessor,
    LLMClient,
    LLMUnavailableError,
    LocationCache,
    Translator,
    geolocation_error_message,
    nearby_mock_doctors,
)
from mnemosyne_services.translation import SUPPORTED_CODES
from mnemosyne_triage import PatientContext, analyze_domain_symptoms, list_domains, triage_message
from mnemosyne_triage.mock_responses import EMERGENCY_WARNING
from mnemosyne_triage.models import highest_urgency

_REPO_ROOT = Path(__file__).resolve().parents[1]
for _env_file in (_REPO_ROOT / ".env", _REPO_ROOT / "backend/.env"):
    if _env_file.exists():
        load_dotenv(_env_file, override=False)

logging.basicConfig(
    level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
logger = logging.getLogger("mnemosyne")

_CAMEL_RE = re.compile(r"_([a-z])")


def _camel(key: str) -> str:
    return _CAMEL_RE.sub(lambda match: match.group(1).upper(), key)


def _camel_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {_camel(str(key)): _camel_keys(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_camel_keys(item) for item in value]
    return value


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class MedicalRecordCreate(CamelModel):
    user_id: str | None = Field(default=None, alias="userId")
    journey_description: str | None = Field(default=None, alias="journeyDescription")


class PatientContextPayload(CamelModel):
    chronic_conditions: list[str] = Field(default_factory=list, alias="chronicConditions")
    medications: list[str] = Field(default_factory=list)
    medical_history: list[str] = Field(default_factory=list, alias="medicalHistory")
    age: int | None = None
    gender: str | None = None

    def to_context(self) -> PatientContext:
        return PatientContext(
            chronic_conditions=list(self.chronic_conditions),
            medications=list(self.medications),
            medical_history=list(self.medical_history),
            age=self.age,
            gender=self.gender,
        )


class ChatTurn(BaseModel):
    role: str
    content: str


class ChatRequest(CamelModel):
    message: str
    user_id: str | None = Field(default=None, alias="userId")
    patient_context: PatientContextPayload | None = Field(default=None, alias="patientContext")
    history: list[ChatTurn] = Field(default_factory=list)
    additional_info: str | None = Field(default=None, alias="additionalInfo")
    latitude: float | None = None
    longitude: float | None = None


class DomainAnalysisRequest(CamelModel):
    domain: str
    symptoms: list[str] = Field(default_factory=list)


class NearbyDoctorsRequest(CamelModel):
    latitude: float
    longitude: float
    radius: int = 5000
    specialty: str | None = None


class LocationReport(CamelModel):
    user_id: str = Field(alias="userId")
    latitude: float | None = None
    longitude: float | None = None
    accuracy: float | None = None
    error_code: int | None = Field(default=None, alias="errorCode")


class TranslateRequest(CamelModel):
    text: str
    target_language: str = Field(alias="targetLanguage")


class MnemosyneApp:
    def __init__(self) -> None:
        db_path = os.getenv(
            "MNEMOSYNE_DB_PATH",
            str((Path(__file__).resolve().parent / "mnemosyne.sqlite")),
        )
        self.db = MedicalRecordDB(db_path)
        self.records = RecordStore(self.db)
        self.llm = LLMClient()
        self.journeys = JourneyProcessor(self.llm)
        self.doctors = DoctorDiscovery()
        self.locations = LocationCache()
        self.translator = Translator()

    def record_payload(self, record: dict[str, Any]) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "_id": record["id"],
            "id": record["id"],
            "userId": record["user_id"],
            "journeyDescription": record["journey_description"],
            "symptoms": record["symptoms"],
            "processedSummary": record["processed_summary"],
            "insights": _camel_keys(record["insights"]),
            "encryptedData": record["encrypted_data"],
            "timestamp": record["timestamp"],
            "createdAt": record["created_at"],
            "updatedAt": record["updated_at"],
            "lastUpdated": record["last_updated"],
            "decryptedData": None,
        }
        if not record["encrypted_data"]:
            return payload
        try:
            payload["decryptedData"] = json.loads(decrypt_data(record["encrypted_data"]))
        except (DecryptionError, ValueError) as exc:
            logger.error("failed to decrypt medical record %s: %s", record["id"], exc)
            payload["decryptionError"] = True
        return payload


container = MnemosyneApp()
app = FastAPI(title="Mnemosyne Backend")

allowed_origins = os.getenv("ALLOWED_ORIGINS", "http://localhost:5173").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in allowed_origins],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    422: "VALIDATION_ERROR",
}


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"message": str(exc.detail), "code": _ERROR_CODES.get(exc.status_code, "HTTP_ERROR")}},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={
            "error": {
                "message": "Invalid request body",
                "code": "VALIDATION_ERROR",
                "details": jsonable_encoder(exc.errors()),
            }
        },
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": {"message": "Internal Server Error", "code": "INTERNAL_ERROR"}},
    )


@app.get("/health")
def health():
    return {"status": "OK"}


@app.get("/favicon.ico", include_in_schema=False)
def favicon():
    return Response(status_code=204)


@app.post("/api/medical-records")
def create_medical_record(payload: MedicalRecordCreate):
    user_id = (payload.user_id or "").strip()
    journey_description = (payload.journey_description or "").strip()
    if not user_id or not journey_description:
        return JSONResponse(
            status_code=400,
            content={
                "error": "Missing required fields",
                "details": {
                    "userId": None if user_id else "User ID is required",
                    "journeyDescription": None if journey_description else "Journey description is required",
                },
            },
        )

    try:
        previous_symptoms = container.records.recent_symptoms(user_id)
        processed = container.journeys.process(journey_description, previous_symptoms)
        processed_payload = processed.as_payload()
        encrypted = encrypt_data(
            json.dumps({"journeyDescription": journey_description, "processedData": processed_payload})
        )
        record = container.records.create(
            user_id=user_id,
            journey_description=journey_description,
            symptoms=processed.symptoms,
            summary=processed.summary,
            insights=processed.insights,
            encrypted_data=encrypted,
        )
    except (JourneyProcessingError, RecordStoreError, sqlite3.Error) as exc:
        logger.error("failed to create medical record for %s: %s", user_id, exc)
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to create medical record", "details": str(exc)},
        )

    logger.info("medical record %s created", record["id"])
    return JSONResponse(
        status_code=201,
        content={
            "message": "Medical record created successfully",
            "data": processed_payload,
            "recordId": record["id"],
        },
    )


@app.get("/api/medical-records/user/{user_id}")
def list_medical_records(user_id: str):
    records = container.records.list_for_user(user_id)
    if not records:
        return {"records": [], "message": "No medical records found for this user"}
    payloads = [container.record_payload(record) for record in records]
    return {"records": payloads, "count": len(payloads)}


@app.get("/api/medical-records/report/{record_id}")
def medical_record_report(record_id: str):
    record = container.records.get(record_id)
    if record is None:
        return JSONResponse(status_code=404, content={"error": "Record not found"})
    return {"message": "PDF generation endpoint"}


def _previous_user_messages(history: list[ChatTurn]) -> list[str]:
    return [turn.content for turn in history if turn.role == "user" and turn.content.strip()]


def _resolve_location(payload: ChatRequest) -> tuple[float, float] | None:
    if payload.latitude is not None and payload.longitude is not None:
        return payload.latitude, payload.longitude
    if payload.user_id:
        cached = container.locations.current(payload.user_id)
        if cached is not None:
            return cached.latitude, cached.longitude
    return None


@app.post("/api/chat/analyze")
def chat_analyze(payload: ChatRequest):
    message = payload.message.strip()
    if not message:
        raise HTTPException(status_code=400, detail="message is required")

    base_context = payload.patient_context.to_context() if payload.patient_context else PatientContext()
    triage = triage_message(message, base_context, _previous_user_messages(payload.history))
    context: PatientContext = triage["context"]

    analysis = container.llm.analyze_symptoms(message, context, payload.additional_info)
    if container.llm.configured:
        follow_ups = container.llm.generate_follow_up_questions(message, context)
    else:
        follow_ups = triage["follow_up_questions"]

    urgency = highest_urgency(
        analysis.get("urgency_level"),
        triage["risk"].urgency_level,
        triage["analysis"].urgency_level,
    )
    response: dict[str, Any] = {
        "analysis": _camel_keys(analysis),
        "symptomData": _camel_keys(triage["symptoms"].as_dict()),
        "riskAssessment": _camel_keys(triage["risk"].as_dict()),
        "contextualAnalysis": _camel_keys(triage["analysis"].as_dict()),
        "patientContext": _camel_keys(context.as_dict()),
        "followUpQuestions": follow_ups,
        "specialty": triage["specialty"],
        "urgencyLevel": urgency,
        "emergencyWarning": EMERGENCY_WARNING if urgency == "emergency" else None,
        "doctors": [],
    }

    location = _resolve_location(payload)
    if urgency in {"high", "emergency"} and location is not None:
        specialty = triage["specialty"] if triage["specialty"] != "doctor" else None
        discovery = container.doctors.find_nearby_doctors(location[0], location[1], specialty=specialty)
        response["doctors"] = discovery["doctors"]
        response["doctorSource"] = discovery["provider"]
    return response


@app.post("/api/chat/respond")
def chat_respond(payload: ChatRequest):
    message = payload.message.strip()
    if not message:
        raise HTTPException(status_code=400, detail="message is required")

    base_context = payload.patient_context.to_context() if payload.patient_context else PatientContext()
    triage = triage_message(message, base_context, _previous_user_messages(payload.history))
    history = [turn.model_dump() for turn in payload.history]

    if not container.llm.configured:
        reply = container.llm.generate_response(message, history, triage["context"], triage["analysis"])
        source = "mock"
    else:
        try:
            reply = container.llm.chat_reply(message, history, triage["context"], triage["analysis"])
            source = "llm"
        except LLMUnavailableError as exc:
            logger.warning("chat reply fell back to rule-based text: %s", exc)
            reply = triage["fallback_reply"]
            source = "rule_based"

    return {
        "reply": reply,
        "source": source,
        "symptomData": _camel_keys(triage["symptoms"].as_dict()),
        "riskAssessment": _camel_keys(triage["risk"].as_dict()),
        "followUpQuestions": triage["follow_up_questions"] if source == "rule_based" else [],
        "confidenceScore": triage["risk"].confidence,
    }


@app.get("/api/symptoms/domains")
def symptom_domains():
    return {"domains": list_domains()}


@app.post("/api/symptoms/domain-analysis")
def symptom_domain_analysis(payload: DomainAnalysisRequest):
    analysis = analyze_domain_symptoms(payload.domain, payload.symptoms)
    return {
        "domain": payload.domain,
        "symptoms": payload.symptoms,
        "analysis": _camel_keys(analysis),
    }


@app.post("/api/doctors/nearby")
def doctors_nearby(payload: NearbyDoctorsRequest):
    result = container.doctors.find_nearby_doctors(
        payload.latitude,
        payload.longitude,
        radius=payload.radius,
        specialty=payload.specialty,
    )
    return _camel_keys(result)


@app.post("/api/location")
def report_location(payload: LocationReport):
    if payload.error_code is not None:
        return {"granted": False, "error": geolocation_error_message(payload.error_code)}
    if payload.latitude is None or payload.longitude is None:
        raise HTTPException(status_code=400, detail="latitude and longitude are required")
    location = container.locations.report(payload.user_id, payload.latitude, payload.longitude, payload.accuracy)
    return {"granted": True, "location": location.as_payload()}


@app.get("/api/location/{user_id}")
def current_location(user_id: str):
    location = container.locations.current(user_id)
    if location is None:
        raise HTTPException(status_code=404, detail="No recent location for this user")
    return {"location": location.as_payload()}


@app.get("/api/location/{user_id}/doctors")
def location_doctors(user_id: str, specialty: str | None = None):
    location = container.locations.current(user_id)
    if location is None:
        raise HTTPException(status_code=404, detail="No recent location for this user")
    return {"doctors": nearby_mock_doctors(location, specialty)}


@app.get("/api/translate/languages")
def translate_languages():
    return {"languages": list(SUPPORTED_LANGUAGES)}


@app.post("/api/translate")
def translate(payload: TranslateRequest):
    if payload.target_language not in SUPPORTED_CODES:
        raise HTTPException(status_code=400, detail=f"Unsupported language: {payload.target_language}")
    return container.translator.translate(payload.text, payload.target_language).as_payload()


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "3001")))
