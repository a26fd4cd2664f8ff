"""
Slot availability engine.

Builds the candidate grid for a working day and removes every candidate
that already started or overlaps a busy interval. Pure computation: the
caller supplies busy intervals and the current moment.
"""

from datetime import date, datetime, time, timedelta
from typing import Iterable, Iterator, List, Sequence, Union
from zoneinfo import ZoneInfo

from models.slot import AvailableSlot, TimeInterval
from utils.constants import TIME_FORMAT


def work_window(day: date, work_start: time, work_end: time, tz: ZoneInfo) -> TimeInterval:
    """Return [day@work_start, day@work_end) in the given timezone."""
    return TimeInterval(
        start=datetime.combine(day, work_start, tzinfo=tz),
        end=datetime.combine(day, work_end, tzinfo=tz),
    )


def generate_candidate_slots(
    window: TimeInterval,
    slot_duration: int,
    buffer_time: int = 0,
) -> Iterator[TimeInterval]:
    """
    Walk the work window emitting fixed-length candidates.

    The cursor advances by slot_duration + buffer_time minutes and stops
    once it reaches the window end. The last candidate is not clipped, so
    it may end after the window.

    Raises:
        ValueError: If slot_duration is not positive or buffer_time is negative
    """
    if slot_duration <= 0:
        raise ValueError("slot_duration must be positive")
    if buffer_time < 0:
        raise ValueError("buffer_time must not be negative")

    length = timedelta(minutes=slot_duration)
    step = timedelta(minutes=slot_duration + buffer_time)

    cursor = window.start
    while cursor < window.end:
        yield TimeInterval(start=cursor, end=cursor + length)
        cursor += step


def busy_interval_from_bounds(
    start: Union[date, datetime],
    end: Union[date, datetime],
    tz: ZoneInfo,
) -> TimeInterval:
    """
    Normalize calendar event bounds to a timezone-aware interval.

    All-day events carry plain dates (end exclusive); they cover whole days
    in the business timezone. Naive datetimes are read in the business
    timezone as well.
    """
    return TimeInterval(start=_as_datetime(start, tz), end=_as_datetime(end, tz))


def _as_datetime(value: Union[date, datetime], tz: ZoneInfo) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=tz)
    return datetime.combine(value, time.min, tzinfo=tz)


def is_busy(candidate: TimeInterval, busy_intervals: Iterable[TimeInterval]) -> bool:
    return any(candidate.overlaps(busy) for busy in busy_intervals)


def compute_available_slots(
    day: date,
    work_start: time,
    work_end: time,
    slot_duration: int,
    buffer_time: int,
    busy_intervals: Sequence[TimeInterval],
    now: datetime,
    tz: ZoneInfo,
) -> List[AvailableSlot]:
    """
    Compute the bookable slots for a day.

    Args:
        day: Calendar date to compute slots for
        work_start: Start of the working day (wall clock)
        work_end: End of the working day (wall clock)
        slot_duration: Slot length in minutes
        buffer_time: Gap between consecutive slots in minutes
        busy_intervals: Intervals already occupied in the calendar
        now: Current moment (timezone-aware); earlier slots are excluded
        tz: Business timezone

    Returns:
        Free slots in chronological order; empty when nothing is left
    """
    window = work_window(day, work_start, work_end, tz)

    slots = []
    for candidate in generate_candidate_slots(window, slot_duration, buffer_time):
        if candidate.start < now:
            continue
        if is_busy(candidate, busy_intervals):
            continue
        label = candidate.start.strftime(TIME_FORMAT)
        slots.append(
            AvailableSlot(
                label=label,
                value=label,
                start=candidate.start,
                end=candidate.end,
            )
        )

    return slots


def has_future_candidates(
    day: date,
    work_start: time,
    work_end: time,
    slot_duration: int,
    buffer_time: int,
    now: datetime,
    tz: ZoneInfo,
) -> bool:
    """True if any candidate of the day starts at or after now."""
    window = work_window(day, work_start, work_end, tz)
    return any(
        candidate.start >= now
        for candidate in generate_candidate_slots(window, slot_duration, buffer_time)
    )
