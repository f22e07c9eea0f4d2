from fastapi import APIRouter, Depends, Header, HTTPException
import hmac
import logging

from ..config import get_settings
from ..db import CALLS, SESSIONS, TRANSCRIPTIONS, get_db
from ..exceptions import CallInsightsError
from ..schemas.pydantic_schemas import (
    BulkRegenerateResponse,
    CallDetail,
    GenerateSummaryRequest,
    GenerateSummaryResponse,
    ReprocessResponse,
)
from ..services.call_status import status_label
from ..services.reprocess import ReprocessCoordinator
from ..services.summary_generator import SummaryGenerator

# Set up logger
logger = logging.getLogger(__name__)

BULK_REGENERATE_LIMIT = 20


def require_admin(authorization: str = Header(default="")) -> None:
    secret = get_settings().admin_api_key
    if not secret:
        return  # allow in local dev
    token = authorization[len("Bearer "):] if authorization.startswith("Bearer ") else ""
    if not hmac.compare_digest(token, secret):
        raise HTTPException(status_code=401, detail="Unauthorized")


router = APIRouter(dependencies=[Depends(require_admin)])


@router.post("/generate-summary", response_model=GenerateSummaryResponse)
async def generate_summary(body: GenerateSummaryRequest):
    generator = SummaryGenerator(db=get_db(), settings=get_settings())
    summary = await generator.generate(body.callId, body.customPrompt, body.previewOnly)
    return {"summary": summary, "callId": body.callId, "previewOnly": body.previewOnly}


@router.post("/bulk-regenerate", response_model=BulkRegenerateResponse)
async def bulk_regenerate():
    db = get_db()
    generator = SummaryGenerator(db=db, settings=get_settings())
    sessions = await db.query(
        SESSIONS,
        {"transcription_status": "completed"},
        order_by="created_at",
        descending=True,
        limit=BULK_REGENERATE_LIMIT,
    )
    success_count = 0
    failed_count = 0
    for session in sessions:
        try:
            await generator.generate(session["id"])
            success_count += 1
        except CallInsightsError as e:
            logger.error(f"Failed to regenerate summary for {session['id']}: {str(e)}")
            failed_count += 1
        except Exception:
            logger.exception(f"Unexpected error regenerating summary for {session['id']}")
            failed_count += 1
    total = success_count + failed_count
    return {
        "message": f"Processed {total} calls",
        "count": total,
        "successCount": success_count,
        "failedCount": failed_count,
    }


@router.get("/{call_id}", response_model=CallDetail)
async def get_call(call_id: str):
    db = get_db()
    call = await db.get(CALLS, call_id)
    if not call:
        raise HTTPException(status_code=404, detail="Call not found")
    call["transcriptions"] = await db.query(TRANSCRIPTIONS, {"call_id": call_id})
    call["status_label"] = status_label(call.get("status") or "")
    return call


@router.post("/{call_id}/reprocess", response_model=ReprocessResponse, response_model_exclude_none=True)
async def reprocess_call(call_id: str):
    coordinator = ReprocessCoordinator(db=get_db(), settings=get_settings())
    result = await coordinator.reprocess(call_id)
    if result.e2e_test_mode:
        return {"success": True, "e2e_test_mode": True}
    return {"success": True}
