"""Mapping between calendar time and vertical grid coordinates.

All geometry is unit-agnostic: the caller picks rem or px and passes a
matching pixels_per_hour. Defaults come from settings (4 rem per hour).
"""
import math
from datetime import date, datetime, time, timedelta

from practice_calendar.api.schemas.calendar import AppointmentPosition
from practice_calendar.core.clock import Clock, system_now
from practice_calendar.core.config import settings
from practice_calendar.models.appointment import Appointment

HOURS_PER_DAY = 24
MINUTES_PER_DAY = HOURS_PER_DAY * 60


def _hours_since_midnight(dt: datetime) -> float:
    return dt.hour + dt.minute / 60 + dt.second / 3600


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def generate_time_slots() -> list[str]:
    """One label per hour of the day, "0:00" through "23:00"."""
    return [f"{hour}:00" for hour in range(HOURS_PER_DAY)]


def format_time_slot(label: str) -> str:
    """Render an on-the-hour label ("15:00") in 12-hour form ("3:00 PM")."""
    hour = int(label.split(":")[0])
    period = "AM" if hour < 12 else "PM"
    hour_12 = hour % 12 or 12
    return f"{hour_12}:00 {period}"


def format_clock_time(dt: datetime) -> str:
    period = "AM" if dt.hour < 12 else "PM"
    hour_12 = dt.hour % 12 or 12
    return f"{hour_12}:{dt.minute:02d} {period}"


def format_appointment_time(appointment: Appointment) -> str:
    return f"{format_clock_time(appointment.start_time)} - {format_clock_time(appointment.end_time)}"


def calculate_appointment_position(
    appointment: Appointment, pixels_per_hour: float | None = None
) -> AppointmentPosition:
    """Top offset from midnight and block height for an appointment.

    The height loses a small gap so adjacent blocks stay visually apart, but
    never drops below settings.minimum_block_height.
    """
    pph = pixels_per_hour or settings.pixels_per_hour
    top = _hours_since_midnight(appointment.start_time) * pph
    duration_hours = (appointment.end_time - appointment.start_time).total_seconds() / 3600
    height = max(duration_hours * pph - settings.block_gap, settings.minimum_block_height)
    return AppointmentPosition(top=top, height=height)


def get_current_time_position(
    reference_date: date | datetime,
    now: datetime | None = None,
    pixels_per_hour: float | None = None,
    clock: Clock = system_now,
) -> float | None:
    """Offset of the "now" line, or None when reference_date is not today."""
    now = now or clock()
    if _as_date(reference_date) != now.date():
        return None
    pph = pixels_per_hour or settings.pixels_per_hour
    return _hours_since_midnight(now) * pph


def time_from_position(
    day: date | datetime,
    top: float,
    pixels_per_hour: float | None = None,
    snap_minutes: int | None = None,
) -> datetime:
    """Start time for a drop at vertical offset `top` on `day`.

    Snaps to the nearest interval (half rounds up) and stays within the day.
    """
    pph = pixels_per_hour or settings.pixels_per_hour
    snap = snap_minutes or settings.snap_interval_minutes
    minutes = top / pph * 60
    snapped = math.floor(minutes / snap + 0.5) * snap
    snapped = min(max(snapped, 0), MINUTES_PER_DAY - snap)
    return datetime.combine(_as_date(day), time()) + timedelta(minutes=snapped)


def duration_from_height(height: float, pixels_per_hour: float | None = None) -> int:
    """Inverse of the block height formula, in whole minutes."""
    pph = pixels_per_hour or settings.pixels_per_hour
    return round((height + settings.block_gap) / pph * 60)
