"""
Timezone utilities for consistent timestamp handling.

Job records carry advisory timestamps written by different processes on
different hosts, so every timestamp is produced in UTC.
"""

from datetime import datetime
from typing import Optional

import pytz

UTC = pytz.UTC


def utc_now() -> datetime:
    """
    Get current UTC time as timezone-aware datetime.

    Returns:
        Current UTC time with timezone info
    """
    return datetime.now(UTC)


def isoformat_utc(dt: Optional[datetime] = None) -> str:
    """
    Format a datetime as an ISO-8601 UTC string with millisecond precision.

    Naive datetimes are assumed to already be in UTC.

    Args:
        dt: Datetime to format (default: now)

    Returns:
        String such as ``2024-05-01T12:00:00.000Z``
    """
    if dt is None:
        dt = utc_now()
    elif dt.tzinfo is None:
        dt = UTC.localize(dt)
    else:
        dt = dt.astimezone(UTC)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")

