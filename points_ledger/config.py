import os
from typing import Optional
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

# Load .env file with explicit UTF-8 encoding
load_dotenv(encoding="utf-8")


def env(*names: str, default: Optional[str] = None) -> Optional[str]:
    for n in names:
        v = os.environ.get(n)
        if v is not None and str(v).strip() != "":
            return v
    return default


def env_int(name: str, default: int) -> int:
    raw = env(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


# ================== DATABASE ==================

DATABASE_URL = env("DATABASE_URL", default="sqlite:///./points_ledger.db")

# ================== CALENDAR ==================

REFERENCE_TIMEZONE = env("REFERENCE_TIMEZONE", default="America/Sao_Paulo")


def reference_zone() -> ZoneInfo:
    return ZoneInfo(REFERENCE_TIMEZONE)


# ================== EMISSION QUOTAS ==================

EMISSION_LIMIT_LATAM = env_int("EMISSION_LIMIT_LATAM", 25)
EMISSION_LIMIT_SMILES = env_int("EMISSION_LIMIT_SMILES", 25)
EMISSION_LIMIT_DEFAULT = env_int("EMISSION_LIMIT_DEFAULT", 999999)

# ================== CLUB SWEEP ==================

CLUB_SWEEP_BATCH_SIZE = env_int("CLUB_SWEEP_BATCH_SIZE", 200)
CLUB_SWEEP_CRON = env("CLUB_SWEEP_CRON", default="0 3 * * *")
CLUB_SWEEP_MAX_SLEEP_SECONDS = env_int("CLUB_SWEEP_MAX_SLEEP_SECONDS", 60)

CRON_SECRET = (env("CRON_SECRET", default="") or "").strip()

# ================== LOGGING ==================

LOG_LEVEL = (env("LOG_LEVEL", default="INFO") or "INFO").upper()
