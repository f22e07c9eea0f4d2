from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict, Any


class CallStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


class _Record(BaseModel):
    # Rows carry more columns than the services read
    model_config = ConfigDict(extra="ignore")


class CallRecord(_Record):
    id: str
    from_number: Optional[str] = None
    to_number: Optional[str] = None
    direction: Optional[str] = None
    duration_seconds: Optional[int] = None
    agent_email: Optional[str] = None
    status: Optional[str] = None
    hubspot_call_id: Optional[str] = None
    hubspot_synced_at: Optional[str] = None


class SessionRecord(_Record):
    id: str
    from_number: Optional[str] = None
    to_number: Optional[str] = None
    direction: Optional[str] = None
    agent_user_id: Optional[str] = None
    transcript: Optional[str] = None
    summary: Optional[str] = None
    transcription_status: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class TranscriptionRecord(_Record):
    id: Optional[str] = None
    call_id: str
    full_text: Optional[str] = None
    summary: Optional[str] = None
    speaker_labels: Optional[Dict[str, Any]] = None
    created_at: Optional[str] = None


class SettingRecord(_Record):
    key: str
    value: Optional[str] = None


class GenerateSummaryRequest(BaseModel):
    callId: str
    customPrompt: Optional[str] = None
    previewOnly: bool = False


class GenerateSummaryResponse(BaseModel):
    summary: str
    callId: str
    previewOnly: bool


class ReprocessResponse(BaseModel):
    success: bool
    e2e_test_mode: Optional[bool] = None


class BulkRegenerateResponse(BaseModel):
    message: str
    count: int
    successCount: int
    failedCount: int


class CallDetail(CallRecord):
    status_label: Optional[str] = None
    transcriptions: List[TranscriptionRecord] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    error: str
    code: str
    status_code: Optional[int] = None
