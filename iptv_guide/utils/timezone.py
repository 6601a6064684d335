"""
Date and Time utilities

Shared ISO8601 parsing, UTC normalization and timezone conversion used by the
guide parser, the schedule resolver and request validation.
"""
from datetime import datetime, timezone
from zoneinfo import ZoneInfo
import logging
import re

logger = logging.getLogger(__name__)

# Extended format only: YYYY-MM-DD, optionally followed by 'T' or a space and
# HH:MM[:SS[.fff|.ffffff]], then an optional 'Z' or +HH:MM offset.
# datetime.fromisoformat accepts more on Python 3.11+ (basic format, week
# dates), so input is checked against this pattern first.
_ISO8601_EXTENDED_RE = re.compile(
    r"^\d{4}-\d{2}-\d{2}"
    r"(?:[T ]\d{2}:\d{2}(?::\d{2}(?:\.\d{3}|\.\d{6})?)?)?"
    r"(?:Z|[+-]\d{2}:\d{2})?$"
)


class DateFormatError(ValueError):
    """Raised when date format is invalid"""
    pass


def _normalize_iso8601_string(date_str: str) -> str:
    """Normalize ISO8601 string by replacing 'Z' with '+00:00'

    Args:
        date_str: ISO8601 datetime string

    Returns:
        Normalized string with explicit timezone offset
    """
    return date_str[:-1] + '+00:00' if date_str.endswith('Z') else date_str


def parse_iso8601_to_utc(date_str: str) -> datetime:
    """
    Parse ISO8601 date string and convert to UTC datetime

    Only the extended form matched by _ISO8601_EXTENDED_RE is accepted, so the
    result does not depend on the Python version.

    Args:
        date_str: ISO8601 datetime string (e.g., '2025-10-09T00:00:00Z' or '2025-10-09T00:00:00+01:00')

    Returns:
        Timezone-aware datetime in UTC (naive input is taken as UTC)

    Raises:
        DateFormatError: If the date string format is invalid
    """
    try:
        stripped = date_str.strip()
        if not _ISO8601_EXTENDED_RE.match(stripped):
            raise ValueError("not in extended ISO8601 format")
        dt = datetime.fromisoformat(_normalize_iso8601_string(stripped))
    except (ValueError, AttributeError) as e:
        raise DateFormatError(f"Invalid ISO8601 datetime format: '{date_str}'") from e
    return ensure_utc(dt)


def ensure_utc(dt: datetime) -> datetime:
    """Return dt as an aware UTC datetime, treating naive values as UTC"""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def convert_to_timezone(dt: datetime, target_tz: str) -> datetime:
    """
    Convert a UTC datetime to target timezone

    Args:
        dt: Timezone-aware datetime
        target_tz: Target timezone (IANA format or 'UTC')

    Returns:
        Datetime expressed in the target timezone
    """
    if target_tz == "UTC":
        return ensure_utc(dt)

    return ensure_utc(dt).astimezone(ZoneInfo(target_tz))
