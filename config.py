"""
config.py
---------
Central configuration module. Loads all environment variables
from the .env file and exposes them as typed constants.
"""

import json
import os
from datetime import time
from decimal import Decimal
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

load_dotenv()


def _parse_clock(value: str) -> tuple[int, int]:
    """Parse an 'HH:MM' string into (hour, minute)."""
    hour, _, minute = value.partition(":")
    h, m = int(hour), int(minute or 0)
    if not (0 <= h < 24 and 0 <= m < 60):
        raise ValueError(f"Invalid time of day: {value!r}")
    return h, m


def _parse_thresholds(raw: str) -> dict[str, Decimal]:
    """Parse the BUDGET_THRESHOLDS JSON object into Decimal limits."""
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("BUDGET_THRESHOLDS must be a JSON object")
    return {str(name): Decimal(str(limit)) for name, limit in data.items()}


# ── Telegram ──────────────────────────────────────────────
TELEGRAM_BOT_TOKEN: str = os.getenv("TELEGRAM_BOT_TOKEN", "")

# ── Security ──────────────────────────────────────────────
_raw_ids = os.getenv("ALLOWED_USER_IDS", "")
ALLOWED_USER_IDS: list[int] = (
    [int(uid.strip()) for uid in _raw_ids.split(",") if uid.strip()]
    if _raw_ids
    else []
)

# ── PostgreSQL ────────────────────────────────────────────
DB_HOST: str = os.getenv("DB_HOST", "localhost")
DB_PORT: int = int(os.getenv("DB_PORT", "5432"))
DB_NAME: str = os.getenv("DB_NAME", "family_budget")
DB_USER: str = os.getenv("DB_USER", "family_budget")
DB_PASS: str = os.getenv("DB_PASS", "")

DATABASE_URL: str = (
    f"postgresql://{DB_USER}:{DB_PASS}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
)

DB_POOL_MIN: int = int(os.getenv("DB_POOL_MIN", "1"))
DB_POOL_MAX: int = int(os.getenv("DB_POOL_MAX", "5"))
# Server-side cap on every statement, so a stuck write cannot stall a job.
DB_STATEMENT_TIMEOUT_MS: int = int(os.getenv("DB_STATEMENT_TIMEOUT_MS", "15000"))

# ── Mail (budget alerts) ──────────────────────────────────
SMTP_HOST: str = os.getenv("SMTP_HOST", "")
SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER: str = os.getenv("SMTP_USER", "")
SMTP_PASS: str = os.getenv("SMTP_PASS", "")
EMAIL_FROM: str = os.getenv("EMAIL_FROM", "") or SMTP_USER
SMTP_STARTTLS: bool = os.getenv("SMTP_STARTTLS", "1") == "1"
SMTP_TIMEOUT_SECONDS: float = float(os.getenv("SMTP_TIMEOUT_SECONDS", "30"))

# ── Scheduling ────────────────────────────────────────────
TIMEZONE = ZoneInfo(os.getenv("TIMEZONE", "UTC"))

_mat_h, _mat_m = _parse_clock(os.getenv("MATERIALIZE_AT", "00:00"))
MATERIALIZE_AT: time = time(hour=_mat_h, minute=_mat_m, tzinfo=TIMEZONE)

_alert_h, _alert_m = _parse_clock(os.getenv("ALERT_AT", "09:00"))
ALERT_AT: time = time(hour=_alert_h, minute=_alert_m, tzinfo=TIMEZONE)
# python-telegram-bot numbering: 0 = Sunday ... 6 = Saturday
ALERT_WEEKDAY: int = int(os.getenv("ALERT_WEEKDAY", "1"))

JOB_TIMEOUT_SECONDS: float = float(os.getenv("JOB_TIMEOUT_SECONDS", "600"))

# ── Budget alerts ─────────────────────────────────────────
BUDGET_THRESHOLDS: dict[str, Decimal] = _parse_thresholds(
    os.getenv(
        "BUDGET_THRESHOLDS",
        '{"Housing": 1500, "Food": 600, "Transportation": 400, "Utilities": 300}',
    )
)
ALERT_RATIO: Decimal = Decimal(os.getenv("ALERT_RATIO", "0.9"))

# ── Currency ──────────────────────────────────────────────
DEFAULT_CURRENCY: str = os.getenv("DEFAULT_CURRENCY", "USD").upper()

# ── Logging ───────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE: str = os.getenv("LOG_FILE", "")
