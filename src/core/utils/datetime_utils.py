from datetime import datetime, timezone
import logging
import re
from typing import Protocol
from zoneinfo import ZoneInfo

# Imported by the config loader, so it must not depend on ``loggers``.
logger = logging.getLogger(__name__)

DEFAULT_DURATION_SECONDS = 3600

_DURATION_RE = re.compile(r"^(\d+)([smhd])$")
_UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600, "d": 86400}


def get_utc_now() -> datetime:
    """
    Get the current date and time in UTC.

    This function returns the current time with timezone information set to UTC,
    ensuring that the returned datetime object is offset-aware.

    Returns:
        datetime: The current date and time in UTC with tzinfo set to ZoneInfo("UTC").
    """
    return datetime.now(ZoneInfo("UTC"))


def ensure_aware_utc(dt: datetime) -> datetime:
    """Make a datetime timezone-aware in UTC (naive values are taken as UTC)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def from_timestamp(value: float) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc)


def parse_duration_to_seconds(value: str) -> int:
    """
    Parse a duration string such as ``"30s"``, ``"15m"``, ``"1h"`` or ``"7d"``
    into seconds.

    A bare integer is taken as seconds. Anything else falls back to
    ``DEFAULT_DURATION_SECONDS`` (one hour) and is logged as an error.
    """
    raw = (value or "").strip()
    match = _DURATION_RE.match(raw)
    if match:
        amount, unit = match.groups()
        return int(amount) * _UNIT_SECONDS[unit]

    if raw.isdigit():
        return int(raw)

    logger.error(
        "Invalid duration %r, falling back to %s seconds",
        value,
        DEFAULT_DURATION_SECONDS,
    )
    return DEFAULT_DURATION_SECONDS


class Clock(Protocol):
    """Source of the current time. All token lifecycle checks go through it."""

    def now(self) -> datetime: ...


class SystemClock:
    def now(self) -> datetime:
        return get_utc_now()
