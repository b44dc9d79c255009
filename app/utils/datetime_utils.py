"""
Timezone-aware datetime and calendar-month helpers.
- Store and compute in UTC.
- Month identifiers are YYYY-MM, dates are YYYY-MM-DD.
"""
import calendar
import re
from datetime import date, datetime, time, timezone
from typing import Any, Optional, Tuple

from app.constants import MONTH_ID_PATTERN

UTC = timezone.utc

_MONTH_ID_RE = re.compile(MONTH_ID_PATTERN)


def now_utc() -> datetime:
    """Current time in UTC (timezone-aware). Use for created_at, updated_at, decision stamps, etc."""
    return datetime.now(UTC)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """If dt is naive, treat as UTC and return timezone-aware UTC. If already aware, convert to UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    else:
        dt = dt.astimezone(UTC)
    return dt


def coerce_timestamp(value: Any) -> Optional[datetime]:
    """
    Normalize a stored timestamp into an aware UTC datetime.

    Accepts datetimes, dates (midnight UTC) and ISO-8601 strings (a trailing Z
    is allowed). Returns None for empty or unparseable values.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=UTC)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return ensure_utc(datetime.fromisoformat(text))
        except ValueError:
            return None
    return None


def iso_8601_utc(dt: Optional[datetime]) -> Optional[str]:
    """ISO-8601 with Z for UTC. Use for all API response datetime fields."""
    if dt is None:
        return None
    utc = ensure_utc(dt)
    s = utc.isoformat()
    if s.endswith("+00:00"):
        s = s[:-6] + "Z"
    return s


def is_month_id(value: Optional[str]) -> bool:
    return bool(value) and _MONTH_ID_RE.match(value) is not None


def month_bounds(month_id: str) -> Tuple[date, date]:
    """First and last calendar day of a YYYY-MM month. Raises ValueError on bad input."""
    if not is_month_id(month_id):
        raise ValueError(f"Invalid month identifier {month_id!r}; expected YYYY-MM")
    year, month = (int(part) for part in month_id.split("-"))
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def format_month_label(month_id: str) -> str:
    """'2026-02' -> 'February 2026'; unparseable ids are returned unchanged"""
    if not is_month_id(month_id):
        return month_id
    year, month = (int(part) for part in month_id.split("-"))
    return f"{calendar.month_name[month]} {year}"
