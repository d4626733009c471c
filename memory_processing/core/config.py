"""
Configuration for the memory processing service.
All environment-sourced settings are read here once at process start.
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional
from supabase import create_client, Client
from dotenv import load_dotenv

from memory_processing.core.models import StoryStrategy

load_dotenv()
logger = logging.getLogger(__name__)

DEFAULT_OPENAI_API_URL = "https://api.openai.com/v1/chat/completions"
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"


@dataclass(frozen=True)
class GenerationConfig:
    """Settings handed to the text generation client."""
    api_url: str
    api_key: Optional[str]
    model: str
    timeout: float = 30.0


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _story_strategy(value: str) -> StoryStrategy:
    try:
        return StoryStrategy(value.strip().lower())
    except ValueError:
        allowed = ", ".join(s.value for s in StoryStrategy)
        raise ValueError(f"STORY_PIPELINE_STRATEGY must be one of: {allowed} (got {value!r})") from None


class Config:
    """Configuration class for the memory processing service."""

    def __init__(self):
        # Supabase configuration
        self.supabase_url = os.getenv("SUPABASE_URL")
        self.supabase_key = os.getenv("SUPABASE_SERVICE_ROLE_KEY")

        # Text generation configuration
        self.openai_api_key = os.getenv("OPENAI_API_KEY")
        self.openai_api_url = os.getenv("OPENAI_API_URL", DEFAULT_OPENAI_API_URL)
        self.openai_model = os.getenv("OPENAI_MODEL", DEFAULT_OPENAI_MODEL)
        self.generation_timeout = float(os.getenv("GENERATION_TIMEOUT_SECONDS", "30"))

        # Story pipeline variant: "sequential" or "parallel"
        self.story_pipeline_strategy = _story_strategy(os.getenv("STORY_PIPELINE_STRATEGY", "sequential"))

        # Media cleanup queue configuration
        self.cleanup_batch_size = int(os.getenv("CLEANUP_BATCH_SIZE", "10"))
        self.cleanup_max_retries = int(os.getenv("CLEANUP_MAX_RETRIES", "3"))
        self.cleanup_worker_enabled = _env_flag("CLEANUP_WORKER_ENABLED")
        self.cleanup_polling_interval = int(os.getenv("CLEANUP_POLLING_INTERVAL", "300"))

        self._client: Optional[Client] = None

    def has_supabase_credentials(self) -> bool:
        """Check whether the service-level Supabase credentials are configured."""
        return bool(self.supabase_url and self.supabase_key)

    def get_supabase_client(self) -> Client:
        """Get or create the service-role Supabase client."""
        if not self.has_supabase_credentials():
            raise ValueError("Missing SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY")
        if self._client is None:
            self._client = create_client(self.supabase_url, self.supabase_key)
            logger.info("✅ Supabase client initialized")
        return self._client

    def get_generation_config(self) -> GenerationConfig:
        """Get text generation configuration."""
        return GenerationConfig(
            api_url=self.openai_api_url,
            api_key=self.openai_api_key,
            model=self.openai_model,
            timeout=self.generation_timeout,
        )


config = Config()
