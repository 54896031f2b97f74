# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities for the academics engine.

This module provides standardized datetime operations to ensure consistency
across the entire codebase. All datetime operations should use these utilities.

Design Decisions:
-----------------
1. All timestamps are stored in UTC (PostgreSQL TIMESTAMPTZ)
2. All Python datetimes are timezone-aware (with timezone.utc)
3. Values read back from backends without timezone support (SQLite) are
   normalized through ensure_utc before any comparison

Usage:
------
    from academics.utils.datetime import utc_now, add_months

    # For current time
    now = utc_now()

    # Repeat cooldown six months out
    eligible = add_months(now, 6)
"""

import calendar
import math
from datetime import date, datetime, time, timedelta, timezone

SECONDS_PER_DAY = 86400


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Timezone-aware datetime representing current UTC time.
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Ensure a datetime is timezone-aware UTC.

    Args:
        dt: A datetime object (naive or aware) or None.

    Returns:
        Timezone-aware UTC datetime or None.

    Note:
        - If dt is None, returns None
        - If dt is naive, assumes UTC and adds tzinfo
        - If dt is aware, converts to UTC
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        # Naive datetime - assume UTC
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def add_months(dt: datetime, months: int) -> datetime:
    """Shift a datetime by whole calendar months.

    The day of month is kept; when the target month is shorter, the last
    day of that month is used (Aug 31 + 6 months is Feb 28/29).

    Args:
        dt: Starting datetime.
        months: Number of months to add (may be negative).

    Returns:
        Shifted datetime with the same time of day and tzinfo.
    """
    month_index = dt.month - 1 + months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def days_until(target: datetime, reference: datetime) -> int:
    """Whole days from reference until target, rounded up.

    Args:
        target: The later datetime.
        reference: The datetime to count from.

    Returns:
        Ceiling of the day difference, or 0 when target is not after reference.
    """
    delta = ensure_utc(target) - ensure_utc(reference)
    if delta <= timedelta(0):
        return 0
    return math.ceil(delta.total_seconds() / SECONDS_PER_DAY)


def parse_iso(value: str | date | datetime | None) -> datetime | None:
    """Parse an ISO 8601 date or datetime into aware UTC.

    Plain dates (``2025-07-01``) map to midnight UTC.

    Args:
        value: ISO 8601 string, date, datetime or None.

    Returns:
        Timezone-aware UTC datetime or None.

    Raises:
        ValueError: If the string is not ISO 8601.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return ensure_utc(value)

    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)

    dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    return ensure_utc(dt)


# Aliases for convenience
now = utc_now
