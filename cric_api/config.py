# cric_api/config.py
from __future__ import annotations

import os
from dotenv import load_dotenv

# Load .env from project root
load_dotenv()


def _get_env(name: str, default: str = "") -> str:
    return os.getenv(name, default).strip()


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, str(default))
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_bool(name: str, default: bool = False) -> bool:
    return _get_env(name, "1" if default else "0") == "1"


# -------------------------
# Match / scoring defaults
# -------------------------
DEFAULT_MATCH_OVERS: int = _get_env_int("DEFAULT_MATCH_OVERS", 20)

# Commentary feed length returned with the live score
RECENT_BALLS_WINDOW: int = _get_env_int("RECENT_BALLS_WINDOW", 6)


# -------------------------
# Schedule generation
# -------------------------
GROUP_MATCH_SPACING_DAYS: int = _get_env_int("GROUP_MATCH_SPACING_DAYS", 1)
KNOCKOUT_OFFSET_DAYS: int = _get_env_int("KNOCKOUT_OFFSET_DAYS", 7)

# Semi-final bracket is 1v4 / 2v3, so it needs four seeds
MIN_KNOCKOUT_TEAMS: int = _get_env_int("MIN_KNOCKOUT_TEAMS", 4)


# -------------------------
# Identity directory (OPTIONAL)
# -------------------------
# If 0, players/teams/tournaments are checked against the local registry only
IDENTITY_SERVICE_ENABLED: bool = _get_env_bool("IDENTITY_SERVICE_ENABLED", False)
IDENTITY_SERVICE_URL: str = _get_env("IDENTITY_SERVICE_URL", "http://localhost:3000/api")
IDENTITY_SERVICE_TIMEOUT_SECONDS: int = _get_env_int("IDENTITY_SERVICE_TIMEOUT_SECONDS", 10)
IDENTITY_CACHE_TTL_SECONDS: int = _get_env_int("IDENTITY_CACHE_TTL_SECONDS", 300)


LOG_LEVEL: str = _get_env("LOG_LEVEL", "INFO").upper()


def validate_config() -> None:
    if DEFAULT_MATCH_OVERS <= 0:
        raise RuntimeError("DEFAULT_MATCH_OVERS must be positive")

    if RECENT_BALLS_WINDOW <= 0:
        raise RuntimeError("RECENT_BALLS_WINDOW must be positive")

    if GROUP_MATCH_SPACING_DAYS < 0 or KNOCKOUT_OFFSET_DAYS < 0:
        raise RuntimeError("GROUP_MATCH_SPACING_DAYS and KNOCKOUT_OFFSET_DAYS must not be negative")

    if MIN_KNOCKOUT_TEAMS < 4:
        raise RuntimeError("MIN_KNOCKOUT_TEAMS must be at least 4 (semi-final seeding uses ranks 1-4)")

    if IDENTITY_SERVICE_ENABLED:
        if not IDENTITY_SERVICE_URL.startswith("http"):
            raise RuntimeError("IDENTITY_SERVICE_URL must start with http/https")
        if IDENTITY_SERVICE_TIMEOUT_SECONDS <= 0:
            raise RuntimeError("IDENTITY_SERVICE_TIMEOUT_SECONDS must be positive")

    if LOG_LEVEL not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise RuntimeError(f"Unknown LOG_LEVEL: {LOG_LEVEL}")
