from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator


class MedicalRecordDB:
    def __init__(self, db_path: str) -> None:
        self._path = Path(db_path).expanduser().resolve()
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._path), timeout=30.0, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        conn = self._connect()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_schema(self) -> None:
        with self._lock, self.connection() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS medical_records (
                  id TEXT PRIMARY KEY,
                  user_id TEXT NOT NULL,
                  journey_description TEXT NOT NULL,
                  symptoms_json TEXT NOT NULL DEFAULT '[]',
                  processed_summary TEXT,
                  insights_json TEXT NOT NULL DEFAULT '{}',
                  encrypted_data TEXT,
                  timestamp TEXT NOT NULL,
                  created_at TEXT NOT NULL,
                  updated_at TEXT NOT NULL,
                  last_updated TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_medical_records_user_ts
                  ON medical_records(user_id, timestamp DESC);
                """
            )
