import asyncio
import logging
from typing import Optional, Set

import httpx

from ..config import Settings, get_settings

# Set up logger
logger = logging.getLogger(__name__)


class ProcessingClient:
    """Notifies the process-call edge function that a call needs (re)processing."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        settings = settings or get_settings()
        self.api_key = settings.supabase_service_role_key
        self.url = settings.processing_function_url
        self.timeout = settings.processing_timeout_seconds
        self.simulated = not (self.api_key and self.url)
        # Strong references so scheduled notifications are not garbage collected mid-flight
        self._pending: Set[asyncio.Task] = set()

        if self.simulated:
            logger.info("ProcessingClient initialized in simulation mode (no Supabase credentials)")

    async def notify(self, call_id: str) -> None:
        """POST {callId} to the processing backend. The response is not inspected."""
        if self.simulated:
            logger.info(f"[SIMULATED] Skipping process-call notification for {call_id}")
            return

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(self.url, headers=headers, json={"callId": call_id}, timeout=self.timeout)
                logger.info(f"process-call notification for {call_id} answered {response.status_code}")
        except httpx.TimeoutException:
            logger.warning(f"process-call notification for {call_id} timed out after {self.timeout}s")
        except httpx.HTTPError as e:
            logger.error(f"process-call notification for {call_id} failed: {str(e)}")

    def schedule(self, call_id: str) -> asyncio.Task:
        """Fire-and-forget: start notify() in the background and return at once."""
        task = asyncio.create_task(self.notify(call_id))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task
