"""Datetime helpers shared by the store, service and API layers."""

from __future__ import annotations

import datetime
import logging
import os

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)


def now_utc() -> datetime.datetime:
    """Return current UTC time with tzinfo.

    Can be overridden for testing via the EVENTCAL_TEST_TIME environment variable
    (ISO 8601, e.g. "2025-01-06T09:00:00Z"). Naive override values are taken as UTC.
    """
    test_time = os.environ.get("EVENTCAL_TEST_TIME")
    if test_time:
        try:
            dt = date_parser.isoparse(test_time)
            if dt.tzinfo is not None:
                return dt.astimezone(datetime.timezone.utc)
            return dt.replace(tzinfo=datetime.timezone.utc)
        except (ValueError, OverflowError) as e:
            logger.warning("Failed to parse EVENTCAL_TEST_TIME=%r: %s", test_time, e)

    return datetime.datetime.now(datetime.timezone.utc)


def as_naive_utc(value: datetime.datetime) -> datetime.datetime:
    """Return ``value`` in the single implicit zone used for stored instants.

    Timezone-aware values are converted to UTC and stripped of tzinfo; naive
    values are returned unchanged.
    """
    if value.tzinfo is None or value.utcoffset() is None:
        return value
    return value.astimezone(datetime.timezone.utc).replace(tzinfo=None)


def parse_instant(value: str) -> datetime.datetime:
    """Parse an ISO 8601 instant such as a query-string window bound.

    Accepts a trailing "Z" and date-only values (midnight). Offsets are
    folded into naive UTC via ``as_naive_utc``.

    Raises:
        ValueError: If ``value`` is empty or not ISO 8601.
    """
    if not value or not value.strip():
        raise ValueError("empty datetime value")
    try:
        parsed = date_parser.isoparse(value.strip())
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Invalid ISO 8601 datetime: {value!r}") from e
    return as_naive_utc(parsed)
