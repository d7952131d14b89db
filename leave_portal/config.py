"""Application configuration via environment variables."""

import json
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings

from leave_portal.common.constants import DEFAULT_HISTORY_MONTHS, PendingHalfDayMode


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "info"
    CORS_ORIGINS: str = '["http://localhost:3000"]'
    RATE_LIMIT: str = "120/minute"

    # Leave balance engine
    HISTORY_MONTHS: int = Field(default=DEFAULT_HISTORY_MONTHS, ge=1)
    PENDING_HALF_DAY_MODE: PendingHalfDayMode = PendingHalfDayMode.report_only

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS_ORIGINS JSON string into a list."""
        try:
            return json.loads(self.CORS_ORIGINS)
        except (json.JSONDecodeError, TypeError):
            return ["http://localhost:3000"]

    @property
    def log_level_value(self) -> str:
        return self.LOG_LEVEL.upper()

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


settings = Settings()
