"""Application configuration with environment-specific profiles.

Supports dev, staging, and production environments via APP_ENV.
All values can be overridden by environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache


@dataclass(frozen=True)
class Settings:
    """Immutable application settings resolved from environment."""

    app_env: str = "dev"
    log_level: str = "INFO"

    # Program structure limits
    max_program_weeks: int = 16
    min_block_weeks: int = 1

    # Defaults for a fresh program
    default_block_count: int = 4
    default_block_weeks: int = 4
    default_program_weeks: int = 6

    # API
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    request_id_header_name: str = "X-Request-ID"

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"


# -- Environment profiles --

_ENV_PROFILES: dict[str, dict] = {
    "dev": {
        "log_level": "DEBUG",
        "cors_origins": "*",
    },
    "staging": {
        "log_level": "INFO",
        "cors_origins": "",
    },
    "production": {
        "log_level": "WARNING",
        "cors_origins": "",
    },
}


def _split_origins(raw: str) -> list[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build Settings by merging environment profile with env-var overrides."""
    app_env = os.getenv("APP_ENV", "dev")
    profile = _ENV_PROFILES.get(app_env, _ENV_PROFILES["dev"])

    return Settings(
        app_env=app_env,
        log_level=os.getenv("LOG_LEVEL", profile.get("log_level", "INFO")),
        max_program_weeks=int(os.getenv("MAX_PROGRAM_WEEKS", "16")),
        min_block_weeks=int(os.getenv("MIN_BLOCK_WEEKS", "1")),
        default_block_count=int(os.getenv("DEFAULT_BLOCK_COUNT", "4")),
        default_block_weeks=int(os.getenv("DEFAULT_BLOCK_WEEKS", "4")),
        default_program_weeks=int(os.getenv("DEFAULT_PROGRAM_WEEKS", "6")),
        cors_origins=_split_origins(os.getenv("CORS_ORIGINS", profile.get("cors_origins", ""))),
        request_id_header_name=os.getenv("REQUEST_ID_HEADER", "X-Request-ID"),
    )
