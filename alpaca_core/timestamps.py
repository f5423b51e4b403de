"""
Timestamp normalization for values coming back from the trading API.

The API is not consistent about fractional seconds or UTC offsets, so values
are reduced to YYYY-MM-DDTHH:MM:SS plus an offset before parsing.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone

from alpaca_core.exceptions import MalformedTimestamp

_TIMESTAMP_RE = re.compile(
    r"^(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})T"
    r"(?P<hour>\d{2}):(?P<minute>\d{2}):(?P<second>\d{2})"
    r"(?:\.\d*)?"
    r"(?P<offset>[+-]\d{2}:\d{2})?"
)

DEFAULT_OFFSET = "-00:00"


def normalize_timestamp(value: str) -> datetime:
    """
    Parse an ISO-8601-like timestamp into a timezone-aware datetime.

    Sub-second precision is discarded. A missing offset (including a trailing
    ``Z``) is read as UTC. Raises MalformedTimestamp when the date or time
    components are missing or out of range.
    """
    if not isinstance(value, str):
        raise MalformedTimestamp(str(value))
    match = _TIMESTAMP_RE.match(value)
    if match is None:
        raise MalformedTimestamp(value)

    parts = match.groupdict()
    offset = parts["offset"] or DEFAULT_OFFSET
    canonical = "{year}-{month}-{day}T{hour}:{minute}:{second}".format(**parts) + offset
    try:
        return datetime.fromisoformat(canonical)
    except ValueError as e:
        raise MalformedTimestamp(value) from e


def format_timestamp(value: datetime) -> str:
    """ISO-8601 with seconds precision. Naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat(timespec="seconds")
