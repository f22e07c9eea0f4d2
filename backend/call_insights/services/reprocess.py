import logging
from typing import Any, Dict, Optional

from pydantic import BaseModel

from ..config import Settings, get_settings
from ..db import CALLS, TRANSCRIPTIONS, get_db
from ..exceptions import PersistenceError
from ..schemas.pydantic_schemas import CallStatus
from .processing_client import ProcessingClient

logger = logging.getLogger(__name__)

TEST_CALL_DURATION_SECONDS = 120
TEST_SUMMARY = "[E2E Test] Mock summary: Customer inquiry about product."
TEST_SPEAKER_LABELS = {"speaker_0": ["Agent"], "speaker_1": ["Customer"]}


def deterministic_transcription(call_id: str) -> Dict[str, Any]:
    """Fixed transcription payload derived only from the call id."""
    return {
        "call_id": call_id,
        "full_text": f"[E2E Test] Mock transcription for call {call_id}",
        "summary": TEST_SUMMARY,
        "speaker_labels": {k: list(v) for k, v in TEST_SPEAKER_LABELS.items()},
    }


class ReprocessResult(BaseModel):
    success: bool = True
    e2e_test_mode: bool = False


class ReprocessStrategy:
    """What happens to a call after its status has been reset to pending."""

    test_mode = False

    async def run(self, call_id: str) -> None:
        raise NotImplementedError


class DeterministicReprocess(ReprocessStrategy):
    """Network-free completion used by end-to-end test runs."""

    test_mode = True

    def __init__(self, db) -> None:
        self.db = db

    async def run(self, call_id: str) -> None:
        await self.db.delete(TRANSCRIPTIONS, {"call_id": call_id})
        try:
            await self.db.insert(TRANSCRIPTIONS, deterministic_transcription(call_id))
        except PersistenceError as e:
            logger.error(f"Test-mode transcription insert failed for {call_id}: {str(e)}")
        await self.db.update(
            CALLS,
            {"id": call_id},
            {"status": CallStatus.COMPLETED.value, "duration_seconds": TEST_CALL_DURATION_SECONDS},
        )


class BackendReprocess(ReprocessStrategy):
    """Hand the call to the process-call edge function without waiting for it."""

    def __init__(self, processing_client: ProcessingClient) -> None:
        self.processing_client = processing_client

    async def run(self, call_id: str) -> None:
        self.processing_client.schedule(call_id)


class ReprocessCoordinator:
    def __init__(self, db=None, settings: Optional[Settings] = None,
                 processing_client: Optional[ProcessingClient] = None) -> None:
        self.db = db or get_db()
        self.settings = settings or get_settings()
        self.processing_client = processing_client or ProcessingClient(self.settings)

    def strategy_for(self, test_mode: bool) -> ReprocessStrategy:
        if test_mode:
            return DeterministicReprocess(self.db)
        return BackendReprocess(self.processing_client)

    async def reset(self, call_id: str) -> None:
        await self.db.update(
            CALLS,
            {"id": call_id},
            {"status": CallStatus.PENDING.value, "hubspot_call_id": None, "hubspot_synced_at": None},
        )

    async def reprocess(self, call_id: str, test_mode: Optional[bool] = None) -> ReprocessResult:
        if test_mode is None:
            test_mode = self.settings.e2e_test_mode
        strategy = self.strategy_for(test_mode)

        await self.reset(call_id)
        logger.info(f"Call {call_id} reset to pending; reprocessing ({'test mode' if test_mode else 'backend'})")
        await strategy.run(call_id)
        return ReprocessResult(success=True, e2e_test_mode=strategy.test_mode)
