"""
Feedtrust — Configuration
Settings for the scoring job, the cron trigger and the worker.

All settings load from environment variables with safe defaults for development.
In production, set FEEDTRUST_ENV=production to enforce required values.
"""
import logging
import os
from typing import Set
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


class Settings:
    def __init__(self):
        self.ENVIRONMENT = os.getenv("FEEDTRUST_ENV", "development")

        # === Storage ===
        self.REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

        # === Cron trigger ===
        self.CRON_SECRET = os.getenv("CRON_SECRET", "")
        if not self.CRON_SECRET and self.ENVIRONMENT == "production":
            raise RuntimeError("CRON_SECRET must be set in production. Add it to .env")

        # === Score refresh ===
        self.SCORE_CANDIDATE_LIMIT = int(os.getenv("SCORE_CANDIDATE_LIMIT", "500"))
        self.SCORE_CHUNK_SIZE = max(1, int(os.getenv("SCORE_CHUNK_SIZE", "100")))
        self.SCORE_ACTIVE_WINDOW_HOURS = int(os.getenv("SCORE_ACTIVE_WINDOW_HOURS", "24"))
        self.SCORE_REFRESH_MINUTES = os.getenv("SCORE_REFRESH_MINUTES", "0,30")

        # Dotted path "module:attr" of the AccountSource factory
        self.ACCOUNT_SOURCE = os.getenv(
            "ACCOUNT_SOURCE", "feedtrust.compute.backends:InMemoryAccountSource"
        )

        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def log_level(self) -> int:
        """Numeric level for LOG_LEVEL; unknown names fall back to INFO."""
        level = getattr(logging, self.LOG_LEVEL, None)
        return level if isinstance(level, int) else logging.INFO

    @property
    def refresh_minutes(self) -> Set[int]:
        """Minutes of the hour the worker runs the refresh job on."""
        minutes = set()
        for part in self.SCORE_REFRESH_MINUTES.split(","):
            part = part.strip()
            if part:
                minutes.add(int(part) % 60)
        return minutes or {0}


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
