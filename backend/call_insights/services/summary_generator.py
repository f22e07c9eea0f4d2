"""
Call summary generation.

Resolves the call across the two schemas that describe it (``calls`` and the
older ``telavox_call_sessions``), renders the summary prompt, asks the
completion API for a summary (or falls back to the heuristic analyzer when no
key is configured) and stores the result on whichever row accepts it.
"""
import logging
from typing import Any, Callable, List, Optional, Tuple

from ..config import Settings, get_settings
from ..db import CALLS, SESSIONS, SETTINGS, TRANSCRIPTIONS, get_db, utcnow_iso
from ..exceptions import NotFoundError, PersistenceError
from ..schemas.pydantic_schemas import CallRecord, SessionRecord, SettingRecord
from .conversation_analyzer import analyze_conversation, parse_vocabulary
from .openai_client import OpenAIClient

logger = logging.getLogger(__name__)

DEFAULT_PROMPT = "Summarize this call: {transcription}"
SUMMARY_PROMPT_KEY = "summary_prompt"
VOCABULARY_KEY = "vocabulary_replacements"
HEURISTIC_SUFFIX = " (Heuristic)"
OUTBOUND_DIRECTIONS = ("OUTBOUND", "outgoing")


def first_present(*values: Any, default: Any = None) -> Any:
    """Return the first truthy value, in order of preference."""
    for value in values:
        if value:
            return value
    return default


def customer_side(direction: str, from_number: Optional[str], to_number: Optional[str]) -> Tuple[Optional[str], str]:
    """Customer phone number and direction label for the agent's point of view."""
    if direction in OUTBOUND_DIRECTIONS:
        return to_number, "Outgoing"
    return from_number, "Incoming"


def render_prompt(template: str, agent_name: str, customer_phone: str, call_direction: str,
                  duration_seconds: int, transcription: str) -> str:
    """Substitute the known placeholders literally; unknown ones are left as-is.

    The transcription goes last so text it contains is never mistaken for a placeholder.
    """
    replacements: List[Tuple[str, str]] = [
        ("{agent_name}", agent_name),
        ("{customer_phone}", customer_phone),
        ("{call_direction}", call_direction),
        ("{call_duration}", f"{duration_seconds}s"),
        ("{transcription}", transcription),
    ]
    rendered = template
    for placeholder, value in replacements:
        rendered = rendered.replace(placeholder, value)
    return rendered


class SummaryGenerator:
    def __init__(self, db=None, settings: Optional[Settings] = None,
                 client_factory: Optional[Callable[[Settings], OpenAIClient]] = None) -> None:
        self.db = db or get_db()
        self.settings = settings or get_settings()
        self.client_factory = client_factory or OpenAIClient

    async def _setting(self, key: str) -> Optional[str]:
        row = await self.db.get(SETTINGS, key)
        return SettingRecord.model_validate(row).value if row else None

    async def build_prompt(self, call_id: str, custom_prompt: Optional[str] = None) -> Tuple[str, str]:
        """Return (rendered prompt, transcript text) for a call."""
        call_row = await self.db.get(CALLS, call_id)
        session_row = await self.db.get(SESSIONS, call_id)
        if not call_row and not session_row:
            raise NotFoundError("call")
        call = CallRecord.model_validate(call_row) if call_row else None
        session = SessionRecord.model_validate(session_row) if session_row else None

        # Session is the newer schema for direction/numbers/transcript, Call for agent/duration
        direction = first_present(session and session.direction, call and call.direction, default="INBOUND")
        from_number = first_present(session and session.from_number, call and call.from_number)
        to_number = first_present(session and session.to_number, call and call.to_number)
        agent_email = first_present(call and call.agent_email, default="Unknown")
        duration_seconds = first_present(call and call.duration_seconds, default=0)

        transcription_row = await self.db.get(TRANSCRIPTIONS, call_id, column="call_id")
        full_text = first_present((transcription_row or {}).get("full_text"), session and session.transcript)
        if not full_text:
            raise NotFoundError("transcript")

        template = custom_prompt
        if not template:
            template = first_present(await self._setting(SUMMARY_PROMPT_KEY), default=DEFAULT_PROMPT)
        customer_phone, direction_label = customer_side(direction, from_number, to_number)
        prompt = render_prompt(
            template,
            agent_name=agent_email,
            customer_phone=customer_phone or "Unknown",
            call_direction=direction_label,
            duration_seconds=duration_seconds,
            transcription=full_text,
        )
        return prompt, full_text

    async def _heuristic_summary(self, call_id: str, transcript: str) -> str:
        try:
            vocabulary = parse_vocabulary(await self._setting(VOCABULARY_KEY))
        except PersistenceError as e:
            logger.warning(f"Could not load vocabulary replacements for {call_id}: {str(e)}")
            vocabulary = {}
        analysis = analyze_conversation(transcript, vocabulary)
        return analysis.summary + HEURISTIC_SUFFIX

    async def persist(self, call_id: str, summary: str) -> Optional[str]:
        """Write the summary to the session row, else to the transcription row.

        Returns the collection that accepted the write, or None when neither did.
        """
        try:
            await self.db.update(SESSIONS, {"id": call_id}, {"summary": summary, "updated_at": utcnow_iso()})
            return SESSIONS
        except PersistenceError as e:
            logger.info(f"Session update for {call_id} rejected ({str(e)}); trying transcriptions")
        try:
            await self.db.update(TRANSCRIPTIONS, {"call_id": call_id}, {"summary": summary})
            return TRANSCRIPTIONS
        except PersistenceError as e:
            logger.error(f"Failed to save summary for {call_id}: {str(e)}")
            return None

    async def generate(self, call_id: str, custom_prompt: Optional[str] = None, preview_only: bool = False) -> str:
        prompt, transcript = await self.build_prompt(call_id, custom_prompt)

        if not self.settings.has_ai_credential:
            logger.info(f"No completion API key configured; using heuristic summary for {call_id}")
            summary = await self._heuristic_summary(call_id, transcript)
        else:
            summary = await self.client_factory(self.settings).complete(prompt)

        if preview_only:
            return summary
        await self.persist(call_id, summary)
        return summary
