# ────────────────────────────────────────────────────────────────
#  Gym Activity · Runtime Settings
# ────────────────────────────────────────────────────────────────
#
#  Everything here can be overridden from the environment or from
#  a .env file next to the process working directory:
#
#    GYM_STORE_HOME     directory holding the local document store
#    GYM_STORE_FILE     JSON file name inside GYM_STORE_HOME
#    GYM_FETCH_TIMEOUT  seconds each backend read may take
#    GYM_RECENT_LIMIT   recent check-ins shown on the dashboard
#    GYM_LOCALE         "es" or "en" for display strings
#    PORT / FLASK_DEBUG HTTP adapter
# ────────────────────────────────────────────────────────────────

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _float(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, default))
    except ValueError:
        return default


def _int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, default))
    except ValueError:
        return default


GYM_STORE_HOME = Path(os.environ.get("GYM_STORE_HOME", Path.home() / ".gym_activity"))
STORE_FILE     = GYM_STORE_HOME / os.environ.get("GYM_STORE_FILE", "store.json")

FETCH_TIMEOUT  = _float("GYM_FETCH_TIMEOUT", 12.0)
RECENT_LIMIT   = _int("GYM_RECENT_LIMIT", 5)
LOCALE         = os.environ.get("GYM_LOCALE", "es").lower()

PORT           = _int("PORT", 5050)
DEBUG          = os.environ.get("FLASK_DEBUG", "false").lower() == "true"

# Source tag written on check-ins made from this client
CHECKIN_SOURCE = "mobile_app"
