"""Runtime settings; loads .env locally via python-dotenv."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

DEFAULT_BASE_URL = "https://palletizer.app"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < 1:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 120.0
    max_passes: int = 200_000
    max_anchors: int = 5_000
    max_instances: int = 50_000
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "Settings":
        # Does not override variables already set in the environment
        load_dotenv(dotenv_path)

        origins = os.getenv("PALLETIZER_CORS_ORIGINS", "*")
        return cls(
            base_url=os.getenv("PALLETIZER_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
            timeout=_env_float("PALLETIZER_TIMEOUT", 120.0),
            max_passes=_env_int("PALLETIZER_MAX_PASSES", 200_000),
            max_anchors=_env_int("PALLETIZER_MAX_ANCHORS", 5_000),
            max_instances=_env_int("PALLETIZER_MAX_INSTANCES", 50_000),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            log_level=os.getenv("PALLETIZER_LOG_LEVEL", "INFO").upper(),
        )
