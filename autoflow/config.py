"""
Environment configuration for AUTOFLOW.

Values come from the process environment, with a `.env` file loaded first
for local development.

Environment Variables:
    LOG_LEVEL: Log level (default: INFO)
    JSON_LOGS: "true" for JSON logs (default: false)
    LOG_FILE: Optional log file path
    REDIS_URL: Celery broker / result backend (required by the worker only)
    UNKNOWN_CONDITION_POLICY: "allow" (unknown condition types take the YES
        branch, default) or "deny" (they take NO)
    CORS_ORIGINS: Comma separated origins allowed to call the API
"""

import os
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .core.exceptions import ConfigurationError

load_dotenv()

CONDITION_POLICIES = ("allow", "deny")

DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",  # Local development (Next.js default)
    "http://localhost:5173",  # Local development (Vite default)
]


class Settings(BaseModel):
    """Resolved configuration."""

    log_level: str = "INFO"
    json_logs: bool = False
    log_file: Optional[str] = None
    redis_url: Optional[str] = None
    unknown_condition_policy: str = "allow"
    cors_origins: List[str] = Field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))

    class Config:
        frozen = True

    @property
    def unknown_condition_result(self) -> bool:
        return self.unknown_condition_policy == "allow"

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Read settings from the environment.

        Raises:
            ConfigurationError: If UNKNOWN_CONDITION_POLICY is not allow/deny
        """
        policy = os.getenv("UNKNOWN_CONDITION_POLICY", "allow").strip().lower()
        if policy not in CONDITION_POLICIES:
            raise ConfigurationError(
                f"UNKNOWN_CONDITION_POLICY must be one of {list(CONDITION_POLICIES)}, got '{policy}'",
                setting="UNKNOWN_CONDITION_POLICY",
            )

        origins = os.getenv("CORS_ORIGINS")
        cors_origins = (
            [o.strip() for o in origins.split(",") if o.strip()]
            if origins else list(DEFAULT_CORS_ORIGINS)
        )

        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            json_logs=os.getenv("JSON_LOGS", "false").lower() == "true",
            log_file=os.getenv("LOG_FILE") or None,
            redis_url=os.getenv("REDIS_URL") or None,
            unknown_condition_policy=policy,
            cors_origins=cors_origins,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Settings for this process (read once)."""
    return Settings.from_env()
