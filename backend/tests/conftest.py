from __future__ import annotations

import importlib
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))


@pytest.fixture
def no_llm_env(monkeypatch):
    for key in ("GOOGLE_AI_KEY", "OPENAI_API_KEY", "MNEMOSYNE_LLM_PROVIDER"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def backend_module(tmp_path, monkeypatch, no_llm_env):
    db_path = tmp_path / "mnemosyne-test.sqlite"
    monkeypatch.setenv("MNEMOSYNE_DB_PATH", str(db_path))
    monkeypatch.setenv("ENCRYPTION_KEY", "test-passphrase")
    # Keep CI deterministic; dedicated provider tests can override this.
    monkeypatch.setenv("MNEMOSYNE_DISABLE_EXTERNAL", "true")

    if "main" in sys.modules:
        module = importlib.reload(sys.modules["main"])
    else:
        module = importlib.import_module("main")
    return module


@pytest.fixture
def client(backend_module):
    with TestClient(backend_module.app) as test_client:
        yield test_client
