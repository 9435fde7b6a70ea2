from __future__ import annotations

import math
from datetime import datetime, tzinfo

DEFAULT_PPQ = 480


def round_half_up(value: float) -> int:
    """Round .5 towards positive infinity rather than to the nearest even."""
    return math.floor(value + 0.5)


def _local_datetime(timestamp_ms: int, tz: tzinfo | None = None) -> datetime:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=tz)


def hour_of_day(timestamp_ms: int, tz: tzinfo | None = None) -> int:
    """Hour 0-23 of an epoch-millisecond timestamp, in local time unless ``tz`` is given."""
    return _local_datetime(timestamp_ms, tz).hour


def day_of_week(timestamp_ms: int, tz: tzinfo | None = None) -> int:
    """Day of week 0-6 with Sunday as 0."""
    return (_local_datetime(timestamp_ms, tz).weekday() + 1) % 7


def ms_to_ticks(ms: float, bpm: float, ppq: int = DEFAULT_PPQ) -> int:
    ms_per_beat = 60_000 / bpm
    return round_half_up(ms / ms_per_beat * ppq)


def ticks_to_ms(ticks: int, bpm: float, ppq: int = DEFAULT_PPQ) -> int:
    ms_per_beat = 60_000 / bpm
    return round_half_up(ticks / ppq * ms_per_beat)


def format_duration(ms: int) -> str:
    """Format milliseconds as ``m:ss``."""
    seconds = ms // 1000
    return f"{seconds // 60}:{seconds % 60:02d}"


def format_date(timestamp_ms: int, tz: tzinfo | None = None) -> str:
    return _local_datetime(timestamp_ms, tz).strftime("%d/%m/%Y")


def parse_git_date(value: str) -> int:
    """Parse a git ISO-8601 author date into epoch milliseconds."""
    parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    return round_half_up(parsed.timestamp() * 1000)
