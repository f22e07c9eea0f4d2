"""Application settings and environment configuration."""

import pathlib
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env (if present)
# Try the project root first, then the current directory
project_root = pathlib.Path(__file__).parent.parent.parent
env_path = project_root / ".env"
if env_path.exists():
    load_dotenv(env_path)
else:
    load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(env_path) if env_path.exists() else ".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
        populate_by_name=True,
    )

    # Supabase
    supabase_url: Optional[str] = Field(None, alias="SUPABASE_URL")
    supabase_service_role_key: Optional[str] = Field(None, alias="SUPABASE_SERVICE_ROLE_KEY")

    # Completion providers
    openai_api_key: Optional[str] = Field(None, alias="OPENAI_API_KEY")
    openai_model: str = Field("gpt-4o-mini", alias="OPENAI_MODEL")
    groq_api_key: Optional[str] = Field(None, alias="GROQ_API_KEY")
    groq_model: str = Field("llama-3.1-8b-instant", alias="GROQ_MODEL")
    completion_timeout_seconds: float = Field(30.0, alias="COMPLETION_TIMEOUT_SECONDS", gt=0)
    processing_timeout_seconds: float = Field(10.0, alias="PROCESSING_TIMEOUT_SECONDS", gt=0)

    # Application
    e2e_test_mode: bool = Field(False, alias="E2E_TEST_MODE")
    admin_api_key: Optional[str] = Field(None, alias="ADMIN_API_KEY")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    @field_validator("e2e_test_mode", mode="before")
    @classmethod
    def _only_literal_true(cls, value):
        # Only the exact string "true" turns the deterministic reprocess path on
        if isinstance(value, str):
            return value == "true"
        return value

    @property
    def has_ai_credential(self) -> bool:
        """True when either completion provider is configured."""
        return bool(self.groq_api_key or self.openai_api_key)

    @property
    def has_supabase(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_role_key)

    @property
    def processing_function_url(self) -> Optional[str]:
        if not self.supabase_url:
            return None
        return f"{self.supabase_url.rstrip('/')}/functions/v1/process-call"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
