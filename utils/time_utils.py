"""
Station Time Utilities - Sequential Stamping, Interpolation, Reference Time

All series timestamps are timezone-aware. Naive datetimes are treated as UTC.
Hour-of-day and day-of-year lookups go through to_station_time() so that
diurnal and seasonal factors follow STATION_TZ.
"""

import math
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, List, Optional

from config.settings import (
    DETERMINISTIC_MODE,
    FIXED_REFERENCE_TIME,
    SAMPLE_INTERVAL_MINUTES,
    STATION_TZ,
)

if TYPE_CHECKING:
    from modules.series.sample import Sample


def get_current_time() -> datetime:
    """Return the current datetime in the station timezone."""
    return datetime.now(tz=STATION_TZ)


def ensure_aware(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def to_station_time(dt: datetime) -> datetime:
    """Convert any instant to STATION_TZ for hour/day lookups."""
    return ensure_aware(dt).astimezone(STATION_TZ)


def get_reference_time(now: Optional[datetime] = None) -> datetime:
    """
    The instant a series is extended up to.

    Explicit `now` wins, then FIXED_REFERENCE_TIME in deterministic mode,
    then the wall clock.
    """
    if now is not None:
        return ensure_aware(now)
    if DETERMINISTIC_MODE:
        return ensure_aware(FIXED_REFERENCE_TIME)
    return get_current_time()


def ceil_to_interval(
    dt: datetime, interval_minutes: int = SAMPLE_INTERVAL_MINUTES
) -> datetime:
    """
    Round minutes up to the next multiple of the interval.

    Seconds and microseconds are cleared, so 19:03:45 becomes 19:10:00 and
    19:10:30 stays at 19:10:00.
    """
    dt = ensure_aware(dt)
    minutes = math.ceil(dt.minute / interval_minutes) * interval_minutes
    floored = dt.replace(minute=0, second=0, microsecond=0)
    return floored + timedelta(minutes=minutes)


def intervals_between(
    start: datetime, end: datetime, interval_minutes: int = SAMPLE_INTERVAL_MINUTES
) -> float:
    """Absolute distance between two instants, in intervals."""
    delta = abs((ensure_aware(end) - ensure_aware(start)).total_seconds())
    return delta / 60.0 / interval_minutes


def next_start(
    samples: List["Sample"], interval_minutes: int = SAMPLE_INTERVAL_MINUTES
) -> datetime:
    """First synthetic timestamp after a real window: last sample + one interval."""
    return ensure_aware(samples[-1].timestamp) + timedelta(minutes=interval_minutes)


def extension_start(
    point: "Sample", interval_minutes: int = SAMPLE_INTERVAL_MINUTES
) -> datetime:
    return ensure_aware(point.timestamp) + timedelta(minutes=interval_minutes)


def assign_sequential_timestamps(
    samples: List["Sample"],
    start: datetime,
    interval_minutes: int = SAMPLE_INTERVAL_MINUTES,
) -> List["Sample"]:
    """Stamp samples[i].timestamp = start + i * interval, in place."""
    start = ensure_aware(start)
    step = timedelta(minutes=interval_minutes)
    for i, sample in enumerate(samples):
        sample.timestamp = start + step * i
    return samples


def interpolate_timestamp(start: datetime, end: datetime, progress: float) -> datetime:
    start = ensure_aware(start)
    end = ensure_aware(end)
    return start + (end - start) * progress


def interpolate_value(start: float, end: float, progress: float) -> float:
    return start + (end - start) * progress


def movement_magnitude(sample: "Sample") -> float:
    """Euclidean norm of the three move components (missing ones count as 0)."""
    return math.sqrt(
        (sample.move_e or 0.0) ** 2
        + (sample.move_n or 0.0) ** 2
        + (sample.move_h or 0.0) ** 2
    )
