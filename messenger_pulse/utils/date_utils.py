"""
Date and time utilities for MessengerPulse.

All message timestamps are integer epoch milliseconds; these helpers convert
Graph API timestamp strings and compute the windows the inbox relies on.
"""

from datetime import datetime, timezone
from typing import Optional

UTC = timezone.utc

MS_PER_HOUR = 60 * 60 * 1000

# Graph sends e.g. 2024-05-01T10:15:00+0000
_GRAPH_FORMATS = [
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S",
]


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(datetime.now(UTC).timestamp() * 1000)


def parse_graph_timestamp(value: Optional[str]) -> int:
    """
    Parse a Graph API timestamp into epoch milliseconds.

    Naive timestamps are taken as UTC.

    Raises:
        ValueError: If the value is empty or not a recognizable timestamp
    """
    if not value:
        raise ValueError("Timestamp string is required")

    parsed = None
    for fmt in _GRAPH_FORMATS:
        try:
            parsed = datetime.strptime(value, fmt)
            break
        except ValueError:
            continue

    if parsed is None:
        candidate = value[:-1] + "+00:00" if value.endswith("Z") else value
        try:
            parsed = datetime.fromisoformat(candidate)
        except ValueError:
            raise ValueError(f"Unable to parse timestamp: {value}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)

    return int(parsed.timestamp() * 1000)


def hours_ago_ms(hours: float, reference_ms: Optional[int] = None) -> int:
    """Epoch milliseconds ``hours`` before ``reference_ms`` (default: now)."""
    reference = now_ms() if reference_ms is None else reference_ms
    return reference - int(hours * MS_PER_HOUR)


def start_of_day_ms(reference_ms: Optional[int] = None, tz: Optional[timezone] = None) -> int:
    """
    Epoch milliseconds of local midnight for the day containing ``reference_ms``.

    ``tz`` defaults to the host's local timezone.
    """
    reference = now_ms() if reference_ms is None else reference_ms
    local = datetime.fromtimestamp(reference / 1000, tz=UTC).astimezone(tz)
    midnight = local.replace(hour=0, minute=0, second=0, microsecond=0)
    return int(midnight.timestamp() * 1000)
