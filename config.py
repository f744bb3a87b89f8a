"""Configuration for GesPadel."""
from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Database
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"sqlite+aiosqlite:///{Path(__file__).parent / 'gespadel.db'}",
)
DATABASE_ECHO = os.getenv("DATABASE_ECHO", "").lower() in ("1", "true", "yes")


def _parse_list(value: str) -> list[str]:
    if not value:
        return []
    return [x.strip() for x in value.split(",") if x.strip()]


def _parse_ints(value: str) -> list[int]:
    result = []
    for x in _parse_list(value):
        try:
            result.append(int(x))
        except ValueError:
            continue
    return result


def _parse_int(value: str | None, default: int) -> int:
    try:
        return int(value) if value else default
    except ValueError:
        return default


# Registration rules
MAX_UNAVAILABLE_SLOTS = _parse_int(os.getenv("MAX_UNAVAILABLE_SLOTS"), 2)
# Some clubs only run four categories; 5ª is opt-out via env
ENABLED_CATEGORIES = _parse_list(os.getenv("ENABLED_CATEGORIES", "1ª,2ª,3ª,4ª,5ª"))
# Evening hours offered in the unavailable-slot grid
SLOT_HOURS = _parse_ints(os.getenv("SLOT_HOURS", "18,19,20,21,22,23"))

# Identity provider backend -> API (shared secret for POST /api/auth/session)
IDENTITY_BRIDGE_SECRET = os.getenv("IDENTITY_BRIDGE_SECRET", "")

# Web auth (JWT issued to resolved players)
JWT_SECRET = os.getenv("JWT_SECRET", "change-me-in-production-use-long-random-string")
JWT_ALGORITHM = "HS256"
JWT_EXPIRE_DAYS = _parse_int(os.getenv("JWT_EXPIRE_DAYS"), 7)

CORS_ORIGINS = _parse_list(os.getenv("CORS_ORIGINS", "*"))
