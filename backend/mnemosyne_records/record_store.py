from __future__ import annotations

import json
import sqlite3
import uuid
from typing import Any

from .database import MedicalRecordDB
from .time_utils import to_iso, utc_now

_EMPTY_INSIGHTS: dict[str, Any] = {
    "symptom_trends": [],
    "progress_notes": "",
    "lifestyle_tips": [],
    "red_flags": [],
}


class RecordStoreError(Exception):
    pass


def _json_dumps(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"))


def _row_to_record(row: sqlite3.Row) -> dict[str, Any]:
    insights = {**_EMPTY_INSIGHTS, **json.loads(row["insights_json"] or "{}")}
    return {
        "id": row["id"],
        "user_id": row["user_id"],
        "journey_description": row["journey_description"],
        "symptoms": json.loads(row["symptoms_json"] or "[]"),
        "processed_summary": row["processed_summary"] or "",
        "insights": insights,
        "encrypted_data": row["encrypted_data"],
        "timestamp": row["timestamp"],
        "created_at": row["created_at"],
        "updated_at": row["updated_at"],
        "last_updated": row["last_updated"],
    }


class RecordStore:
    def __init__(self, db: MedicalRecordDB) -> None:
        self._db = db

    def create(
        self,
        *,
        user_id: str,
        journey_description: str,
        symptoms: list[str],
        summary: str,
        insights: dict[str, Any],
        encrypted_data: str | None,
    ) -> dict[str, Any]:
        if not user_id or not journey_description:
            raise RecordStoreError("user_id and journey_description are required.")
        record_id = uuid.uuid4().hex
        now = to_iso(utc_now())
        with self._db.connection() as conn:
            conn.execute(
                """
                INSERT INTO medical_records (
                  id, user_id, journey_description, symptoms_json, processed_summary,
                  insights_json, encrypted_data, timestamp, created_at, updated_at, last_updated
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record_id,
                    user_id,
                    journey_description,
                    _json_dumps(list(symptoms)),
                    summary,
                    _json_dumps({**_EMPTY_INSIGHTS, **insights}),
                    encrypted_data,
                    now,
                    now,
                    now,
                    now,
                ),
            )
            row = conn.execute("SELECT * FROM medical_records WHERE id = ?", (record_id,)).fetchone()
        return _row_to_record(row)

    def get(self, record_id: str) -> dict[str, Any] | None:
        with self._db.connection() as conn:
            row = conn.execute("SELECT * FROM medical_records WHERE id = ?", (record_id,)).fetchone()
        return _row_to_record(row) if row else None

    def list_for_user(self, user_id: str, limit: int | None = None) -> list[dict[str, Any]]:
        sql = "SELECT * FROM medical_records WHERE user_id = ? ORDER BY timestamp DESC, rowid DESC"
        params: list[Any] = [user_id]
        if limit is not None:
            sql += " LIMIT ?"
            params.append(max(1, limit))
        with self._db.connection() as conn:
            rows = conn.execute(sql, tuple(params)).fetchall()
        return [_row_to_record(row) for row in rows]

    def recent_symptoms(self, user_id: str, limit: int = 5) -> list[list[str]]:
        with self._db.connection() as conn:
            rows = conn.execute(
                """
                SELECT symptoms_json
                FROM medical_records
                WHERE user_id = ?
                ORDER BY timestamp DESC, rowid DESC
                LIMIT ?
                """,
                (user_id, max(1, limit)),
            ).fetchall()
        return [json.loads(row["symptoms_json"] or "[]") for row in rows]
