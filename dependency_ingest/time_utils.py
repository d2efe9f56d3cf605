"""
Timestamp codec for registry publish dates.

Registries emit RFC 3339 timestamps with up to nine fractional digits, which
``datetime`` truncates to microseconds. A ``PublishTime`` keeps the
whole-second UTC ``datetime`` and the nanosecond fraction side by side, so
the full year range of ``datetime`` is available at nanosecond precision.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional


_RFC3339_RE = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})[Tt](?P<time>\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<fraction>\d{1,9}))?"
    r"(?P<zone>[Zz]|[+-]\d{2}:\d{2})$"
)


@dataclass(frozen=True, order=True)
class PublishTime:
    """A UTC instant with nanosecond precision."""

    seconds: datetime
    # Timezone-aware UTC, always with microsecond == 0.

    nanosecond: int = 0
    # Fraction of the second, 0 to 999_999_999.

    def __post_init__(self) -> None:
        if not 0 <= self.nanosecond < 1_000_000_000:
            raise ValueError(f"nanosecond out of range: {self.nanosecond}")
        seconds = ensure_utc(self.seconds)
        if seconds.microsecond:
            raise ValueError("seconds must not carry a fractional part")
        object.__setattr__(self, "seconds", seconds)


def ensure_utc(dt: datetime) -> datetime:
    """Return a timezone-aware UTC datetime."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_timestamp(value: Optional[str]) -> Optional[PublishTime]:
    """Parse an RFC 3339 timestamp with optional fractional seconds.

    Returns None for an empty value and raises ValueError for anything that is
    not in the expected layout or falls outside years 1 to 9999 once
    normalised to UTC.
    """
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValueError(f"Timestamp must be a string, got {type(value).__name__}")

    match = _RFC3339_RE.match(value.strip())
    if match is None:
        raise ValueError(f"Invalid RFC 3339 timestamp: {value!r}")

    nanos = int((match.group("fraction") or "").ljust(9, "0"))
    zone = match.group("zone")
    if zone in ("Z", "z"):
        offset = timedelta(0)
    else:
        sign = -1 if zone[0] == "-" else 1
        offset = sign * timedelta(hours=int(zone[1:3]), minutes=int(zone[4:6]))

    try:
        local = datetime.strptime(
            f"{match.group('date')}T{match.group('time')}", "%Y-%m-%dT%H:%M:%S"
        )
        utc = (local - offset).replace(tzinfo=timezone.utc)
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Invalid RFC 3339 timestamp: {value!r}") from e

    return PublishTime(seconds=utc, nanosecond=nanos)


def format_timestamp(ts: Optional[PublishTime]) -> str:
    """Render a timestamp as ``YYYY-MM-DDTHH:MM:SS.nnnnnnnnnZ``.

    An absent timestamp renders as an empty string.
    """
    if ts is None:
        return ""
    seconds = ensure_utc(ts.seconds)
    return (
        f"{seconds.year:04d}-{seconds.month:02d}-{seconds.day:02d}"
        f"T{seconds.hour:02d}:{seconds.minute:02d}:{seconds.second:02d}"
        f".{ts.nanosecond:09d}Z"
    )
