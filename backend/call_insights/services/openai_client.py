import logging
from typing import Optional

from openai import AsyncOpenAI, APIConnectionError, APIStatusError, APITimeoutError

from ..config import Settings, get_settings
from ..exceptions import ConfigurationError, EmptyCompletionError, UpstreamError

logger = logging.getLogger(__name__)


class OpenAIClient:
    """Single-shot chat completion against OpenAI or an OpenAI-compatible provider."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        settings = settings or get_settings()
        # Groq first (free), then OpenAI
        if settings.groq_api_key:
            self.client = AsyncOpenAI(
                api_key=settings.groq_api_key,
                base_url="https://api.groq.com/openai/v1",
                timeout=settings.completion_timeout_seconds,
                max_retries=0,
            )
            self.model = settings.groq_model
            logger.info("OpenAIClient: using Groq API")
        elif settings.openai_api_key:
            self.client = AsyncOpenAI(
                api_key=settings.openai_api_key,
                timeout=settings.completion_timeout_seconds,
                max_retries=0,
            )
            self.model = settings.openai_model
            logger.info("OpenAIClient: using OpenAI API")
        else:
            raise ConfigurationError("No completion API key configured (OPENAI_API_KEY or GROQ_API_KEY)")

    async def complete(self, prompt: str) -> str:
        """Send the prompt as the only user message and return the trimmed reply."""
        try:
            chat = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
            )
        except APIStatusError as e:
            logger.error(f"Completion API error: {e.status_code} - {e.message}")
            raise UpstreamError(e.status_code, e.message) from e
        except APITimeoutError as e:
            logger.error("Completion API request timed out")
            raise UpstreamError(504, "timeout") from e
        except APIConnectionError as e:
            logger.error(f"Completion API request error: {str(e)}")
            raise UpstreamError(502, str(e)) from e

        choices = getattr(chat, "choices", None) or []
        # A 200 can still carry a choice without a message
        message = getattr(choices[0], "message", None) if choices else None
        content = message.content if message else None
        summary = (content or "").strip()
        if not summary:
            raise EmptyCompletionError()
        return summary
