"""Open booking slots from recurring mentor availability"""

from datetime import datetime, timedelta
from typing import Sequence

from .schemas import TimeSlot

SLOT_LOOKAHEAD_DAYS = 14
MAX_SLOTS = 10


def _parse_hhmm(value: str) -> tuple[int, int]:
    hour, minute = value.split(":")
    return int(hour), int(minute)


def _weekday_sunday_first(day: datetime) -> int:
    # datetime.weekday() is Monday=0; availability rows use Sunday=0
    return (day.weekday() + 1) % 7


def _overlaps(slot_start: datetime, slot_end: datetime, sessions: Sequence) -> bool:
    for session in sessions:
        session_start = session.scheduled_at
        session_end = session_start + timedelta(minutes=session.duration_minutes)
        if (
            (session_start <= slot_start < session_end)
            or (session_start < slot_end <= session_end)
            or (slot_start <= session_start and slot_end >= session_end)
        ):
            return True
    return False


def compute_available_slots(
    availability: Sequence,
    sessions: Sequence,
    now: datetime,
    days: int = SLOT_LOOKAHEAD_DAYS,
    max_slots: int = MAX_SLOTS,
) -> list[TimeSlot]:
    """
    Expand recurring weekly windows into concrete slots.

    ``availability`` items need day_of_week/start_time/end_time; ``sessions``
    items need scheduled_at/duration_minutes and should already be limited to
    pending or confirmed bookings. Slots starting before ``now`` or colliding
    with a session are dropped; at most ``max_slots`` are returned.
    """
    slots: list[TimeSlot] = []
    horizon = now + timedelta(days=days)

    for window in availability:
        start_hour, start_min = _parse_hhmm(window.start_time)
        end_hour, end_min = _parse_hhmm(window.end_time)

        current = now
        while current <= horizon:
            if _weekday_sunday_first(current) == window.day_of_week:
                slot_start = current.replace(hour=start_hour, minute=start_min, second=0, microsecond=0)
                slot_end = current.replace(hour=end_hour, minute=end_min, second=0, microsecond=0)

                if slot_start > now and not _overlaps(slot_start, slot_end, sessions):
                    slots.append(
                        TimeSlot(start_time=slot_start.isoformat(), end_time=slot_end.isoformat())
                    )
            current += timedelta(days=1)

    return slots[:max_slots]
