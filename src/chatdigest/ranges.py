"""Parse human range arguments such as ``2h``, ``30m`` or ``50``."""

from __future__ import annotations

import re

from .config import DEFAULT_SUMMARY_HOURS, MAX_COUNT, MAX_TIME_HOURS
from .errors import InvalidRangeError
from .models import CountRange, TimeRange

_TIME_PATTERN = re.compile(r"^(\d+)([hm])$", re.IGNORECASE)
_COUNT_PATTERN = re.compile(r"^(\d+)$")

USAGE = (
    "Use a time window like '2h' or '30m' (up to "
    f"{MAX_TIME_HOURS}h), or a message count like '50' (up to {MAX_COUNT})."
)


def parse_time(arg: str) -> float | None:
    """Return the window in hours for ``<n>h`` / ``<n>m``, or None if it doesn't match."""
    match = _TIME_PATTERN.match(arg.strip())
    if not match:
        return None

    value = int(match.group(1))
    unit = match.group(2).lower()

    if value <= 0:
        return None
    if unit == "h":
        return float(value) if value <= MAX_TIME_HOURS else None
    return value / 60 if value <= MAX_TIME_HOURS * 60 else None


def parse_count(arg: str) -> int | None:
    match = _COUNT_PATTERN.match(arg.strip())
    if not match:
        return None

    value = int(match.group(1))
    if value <= 0 or value > MAX_COUNT:
        return None
    return value


def parse_range(arg: str | None = None) -> TimeRange | CountRange:
    """Parse a range argument; an empty argument means the last 24 hours."""
    if arg is None or not arg.strip():
        return TimeRange(value=DEFAULT_SUMMARY_HOURS)

    hours = parse_time(arg)
    if hours is not None:
        return TimeRange(value=hours)

    count = parse_count(arg)
    if count is not None:
        return CountRange(value=count)

    raise InvalidRangeError(f"Invalid range {arg!r}. {USAGE}")


def describe_range(message_range: TimeRange | CountRange) -> str:
    if isinstance(message_range, CountRange):
        noun = "message" if message_range.value == 1 else "messages"
        return f"last {message_range.value} {noun}"

    hours = message_range.value
    if hours < 1:
        return f"last {round(hours * 60)} minutes"
    if hours == int(hours):
        noun = "hour" if hours == 1 else "hours"
        return f"last {int(hours)} {noun}"
    return f"last {hours:g} hours"
