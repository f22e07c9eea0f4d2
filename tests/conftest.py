"""Shared fixtures: an in-memory record store seeded with a few calls."""

import pytest

from call_insights.config import Settings
from call_insights.db import CALLS, SESSIONS, SETTINGS, TRANSCRIPTIONS, InMemoryDB


ENV_VARS = (
    "SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY", "OPENAI_API_KEY", "OPENAI_MODEL", "GROQ_API_KEY",
    "GROQ_MODEL", "COMPLETION_TIMEOUT_SECONDS", "PROCESSING_TIMEOUT_SECONDS", "E2E_TEST_MODE",
    "ADMIN_API_KEY", "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer shell or a local .env out of Settings()."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setitem(Settings.model_config, "env_file", None)


@pytest.fixture
def settings():
    """No completion key, no Supabase, production reprocessing."""
    return Settings()


@pytest.fixture
def ai_settings():
    return Settings(openai_api_key="sk-test")


@pytest.fixture
def db():
    return InMemoryDB({
        CALLS: [
            {
                "id": "c1",
                "direction": "INBOUND",
                "from_number": "+100",
                "to_number": "+200",
                "duration_seconds": 45,
                "agent_email": "agent@example.com",
                "status": "completed",
                "hubspot_call_id": "hs-1",
                "hubspot_synced_at": "2026-01-01T00:00:00+00:00",
            },
            {"id": "c2", "direction": "INBOUND", "from_number": "+300", "to_number": "+400", "status": "failed"},
            {"id": "c3", "from_number": "+500", "to_number": "+600", "status": "skipped"},
        ],
        SESSIONS: [
            {
                "id": "c2",
                "direction": "OUTBOUND",
                "from_number": "+1000",
                "to_number": "+2000",
                "transcript": "Agent: Hi\nCustomer: Bye",
                "summary": None,
                "transcription_status": "completed",
                "created_at": "2026-01-02T00:00:00+00:00",
            },
            {
                "id": "s9",
                "direction": "outgoing",
                "from_number": "+9000",
                "to_number": "+9001",
                "transcript": "Session only call",
                "transcription_status": "completed",
                "created_at": "2026-01-03T00:00:00+00:00",
            },
        ],
        TRANSCRIPTIONS: [
            {"id": "t1", "call_id": "c1", "full_text": "Hello", "summary": None},
        ],
        SETTINGS: [],
    })
