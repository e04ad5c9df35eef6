from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY", "")

DEFAULT_TIMEZONE = os.getenv("COURT_TIMEZONE", "America/Bogota")
DEFAULT_TIMEOUT = _env_int("COURT_HTTP_TIMEOUT", 30)
DEFAULT_OPEN_HOUR = _env_int("COURT_OPEN_HOUR", 7)
DEFAULT_CLOSE_HOUR = _env_int("COURT_CLOSE_HOUR", 22)

USER_AGENT = "court-slot-planner/0.1"
