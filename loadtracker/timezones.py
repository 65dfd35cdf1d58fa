"""
Fixed-offset wall-clock conversion for load scheduling.

Direct loads are scheduled in IST and the matching EST window is derived
from it.  Both zones are treated as fixed offsets (IST is UTC+5:30, EST is
UTC-5:00), so the conversion is plain minute arithmetic on a 24-hour clock.
"""

from __future__ import annotations

import re

MINUTES_PER_DAY = 24 * 60

# IST (UTC+5:30) minus EST (UTC-5:00)
IST_TO_EST_OFFSET_MINUTES = 630

SLOT_MINUTES = 30

_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_time(value: str) -> int:
    """
    Parse an ``"HH:MM"`` string into minutes since midnight.

    Raises:
        ValueError: If *value* is not a 24-hour ``HH:MM`` time.
    """
    match = _TIME_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if match is None:
        raise ValueError(f"Invalid time {value!r}. Use HH:MM (24-hour clock)")

    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValueError(f"Invalid time {value!r}. Use HH:MM (24-hour clock)")
    return hours * 60 + minutes


def format_time(total_minutes: int) -> str:
    """Format minutes since midnight as a zero-padded ``"HH:MM"`` string."""
    hours, minutes = divmod(total_minutes % MINUTES_PER_DAY, 60)
    return f"{hours:02d}:{minutes:02d}"


def to_target_offset(source_time: str, offset_minutes: int) -> str:
    """
    Shift a wall-clock time back by *offset_minutes*.

    The result wraps around midnight, so ``to_target_offset("00:00", 630)``
    is ``"13:30"`` on the previous day.

    Args:
        source_time: Time in the source zone as ``"HH:MM"``.
        offset_minutes: Source offset minus target offset, in minutes.

    Returns:
        The corresponding ``"HH:MM"`` time in the target zone.

    Raises:
        ValueError: If *source_time* is malformed.
    """
    return format_time(parse_time(source_time) - int(offset_minutes))


def ist_to_est(ist_time: str | None) -> str:
    """Convert an IST time to EST; an empty value stays empty."""
    if not ist_time:
        return ""
    return to_target_offset(ist_time, IST_TO_EST_OFFSET_MINUTES)


def time_slots(step_minutes: int = SLOT_MINUTES) -> list[str]:
    """Return every ``"HH:MM"`` slot of the day at *step_minutes* spacing."""
    return [format_time(minute) for minute in range(0, MINUTES_PER_DAY, step_minutes)]
