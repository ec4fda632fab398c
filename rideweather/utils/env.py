"""
Environment variable helpers.

All RIDEWEATHER_* settings are read through these functions so parsing is
consistent between the CLI and library callers.
"""
import os
from typing import Optional

RULEBOOK_ENV = "RIDEWEATHER_RULEBOOK"
LOG_LEVEL_ENV = "RIDEWEATHER_LOG_LEVEL"


def env_str(name: str, default: str = "") -> str:
    """Get environment variable as string with default."""
    v = os.getenv(name)
    return v if v is not None else default


def rulebook_path_override() -> Optional[str]:
    """Rulebook path from RIDEWEATHER_RULEBOOK, or None when unset/blank."""
    value = env_str(RULEBOOK_ENV).strip()
    return value or None


def log_level(default: str = "INFO") -> str:
    return env_str(LOG_LEVEL_ENV, default).strip().upper() or default
