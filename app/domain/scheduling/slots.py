"""
Slot generation

Turns a day's working hours and breaks into the ordered grid of bookable
slots. Pure functions only: the same inputs always produce the same grid,
which is what lets a schedule be regenerated safely.

Wall-clock strings are accepted in 12-hour ("09:00 AM") or 24-hour
("09:00") form. Generated slots are formatted in the form the working
hours were given in.
"""

from typing import Any, Dict, Iterable, List, Optional
from datetime import datetime

from app.core.config import settings

MINUTES_PER_DAY = 24 * 60

_TWELVE_HOUR_FORMATS = ("%I:%M %p", "%I:%M%p", "%I %p")
_TWENTY_FOUR_HOUR_FORMATS = ("%H:%M", "%H:%M:%S")


def is_twelve_hour(value: str) -> bool:
    return value.strip().upper().endswith(("AM", "PM"))


def parse_clock(value: str) -> int:
    """Parse a wall-clock string into minutes after midnight.

    Raises ValueError for anything that is not a recognisable time.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Invalid time: {value!r}")

    text = " ".join(value.strip().upper().split())
    formats = _TWELVE_HOUR_FORMATS if is_twelve_hour(text) else _TWENTY_FOUR_HOUR_FORMATS
    for fmt in formats:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        return parsed.hour * 60 + parsed.minute

    raise ValueError(f"Invalid time: {value!r}")


def format_clock(minutes: int, twelve_hour: bool = True) -> str:
    hours, mins = divmod(minutes % MINUTES_PER_DAY, 60)
    if not twelve_hour:
        return f"{hours:02d}:{mins:02d}"
    suffix = "AM" if hours < 12 else "PM"
    display_hour = hours % 12 or 12
    return f"{display_hour:02d}:{mins:02d} {suffix}"


def overlaps(start: int, end: int, other_start: int, other_end: int) -> bool:
    """Half-open interval overlap; touching edges do not overlap."""
    return start < other_end and end > other_start


def _break_intervals(breaks: Optional[Iterable[Dict[str, str]]]) -> List[tuple]:
    intervals = []
    for item in breaks or []:
        start = parse_clock(item["start"])
        end = parse_clock(item["end"])
        if start < end:
            intervals.append((start, end))
    return intervals


def generate_slots(
    working_hours: Dict[str, str],
    breaks: Optional[List[Dict[str, str]]] = None,
    duration: int = 30,
    online_fee: Optional[float] = None,
    offline_fee: Optional[float] = None,
) -> List[Dict[str, Any]]:
    """Build the slot grid for one day.

    Slots walk from ``working_hours["start"]`` in ``duration`` steps, the
    last one ending no later than ``working_hours["end"]``. A slot that
    touches a break at all is dropped. Returns an empty list when the
    duration is not positive or the window is empty.
    """
    if duration is None or duration <= 0:
        return []

    day_start = parse_clock(working_hours["start"])
    day_end = parse_clock(working_hours["end"])
    if day_start >= day_end:
        return []

    twelve_hour = is_twelve_hour(working_hours["start"])
    blocked = _break_intervals(breaks)
    online = settings.DEFAULT_ONLINE_FEE if online_fee is None else online_fee
    offline = settings.DEFAULT_OFFLINE_FEE if offline_fee is None else offline_fee

    slots = []
    current = day_start
    while current + duration <= day_end:
        slot_end = current + duration
        if not any(overlaps(current, slot_end, b_start, b_end) for b_start, b_end in blocked):
            slots.append({
                "position": len(slots),
                "start": format_clock(current, twelve_hour),
                "end": format_clock(slot_end, twelve_hour),
                "start_minute": current,
                "end_minute": slot_end,
                "duration": duration,
                "is_booked": False,
                "online_fee": online,
                "offline_fee": offline,
            })
        current = slot_end

    return slots


def slot_fee_rates(online_fee: Optional[float], consultation_fee: Optional[float]) -> Dict[str, float]:
    """Per-slot fee rates derived from a doctor profile.

    Online uses the doctor's online rate when set; offline uses the
    consultation fee only when it is positive.
    """
    online = online_fee if online_fee else settings.DEFAULT_ONLINE_FEE
    offline = consultation_fee if consultation_fee and consultation_fee > 0 else settings.DEFAULT_OFFLINE_FEE
    return {"online_fee": float(online), "offline_fee": float(offline)}


def validate_interval(start: str, end: str) -> tuple:
    """Parse a start/end pair, requiring start < end. Raises ValueError."""
    start_minute = parse_clock(start)
    end_minute = parse_clock(end)
    if start_minute >= end_minute:
        raise ValueError(f"Start time {start} must be before end time {end}")
    return start_minute, end_minute
