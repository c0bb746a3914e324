"""Overlap and availability checks over a caller-supplied appointment snapshot.

Everything here is a pure function: nothing is cached or mutated, so checks
can be re-run freely while a gesture is in progress.
"""
import logging
from collections.abc import Iterable, Sequence
from datetime import date, datetime, time, timedelta

from practice_calendar.api.schemas.calendar import ConflictResult, TimeSlot
from practice_calendar.core.config import Settings, settings
from practice_calendar.models.appointment import Appointment
from practice_calendar.models.provider import Provider, Weekday
from practice_calendar.services.time_position import format_clock_time

logger = logging.getLogger(__name__)


def _intervals_overlap(start1: datetime, end1: datetime, start2: datetime, end2: datetime) -> bool:
    # Half-open: touching intervals do not overlap
    return start1 < end2 and start2 < end1


def _at(d: date, t: time) -> datetime:
    return datetime.combine(d, t)


def appointments_overlap(a: Appointment, b: Appointment) -> bool:
    return _intervals_overlap(a.start_time, a.end_time, b.start_time, b.end_time)


def sort_appointments_by_time(appointments: Iterable[Appointment]) -> list[Appointment]:
    return sorted(appointments, key=lambda a: (a.start_time, a.end_time))


def filter_appointments_for_day(
    appointments: Iterable[Appointment], day: date, provider_id: str | None = None
) -> list[Appointment]:
    return [
        a
        for a in appointments
        if a.start_time.date() == day and (provider_id is None or a.provider_id == provider_id)
    ]


def _working_hours_conflict(start: datetime, end: datetime, provider: Provider) -> str | None:
    """Reason the interval falls outside the provider's schedule, or None."""
    day = start.date()
    hours = provider.hours_for(day)
    if hours is None:
        return f"{provider.name} is not available on {Weekday.of(day).value.capitalize()}"

    opens, closes = _at(day, hours.start), _at(day, hours.end)
    if start < opens or end > closes:
        return (
            f"Appointment is outside working hours "
            f"({hours.start:%H:%M} - {hours.end:%H:%M})"
        )

    for window in hours.breaks:
        if _intervals_overlap(start, end, _at(day, window.start), _at(day, window.end)):
            return (
                f"Appointment conflicts with {window.label} "
                f"({window.start:%H:%M} - {window.end:%H:%M})"
            )
    return None


def _find_overlapping(
    exclude_id: str | None,
    provider_id: str,
    start: datetime,
    end: datetime,
    appointments: Iterable[Appointment],
) -> list[Appointment]:
    return sort_appointments_by_time(
        apt
        for apt in appointments
        if apt.id != exclude_id
        and apt.provider_id == provider_id
        and apt.is_blocking
        and _intervals_overlap(start, end, apt.start_time, apt.end_time)
    )


def _overlap_reason(overlapping: Sequence[Appointment]) -> str:
    first = overlapping[0]
    label = first.title or ("a break" if first.is_break else "another appointment")
    reason = f"Overlaps with {label} at {format_clock_time(first.start_time)}"
    if len(overlapping) > 1:
        reason += f" and {len(overlapping) - 1} more"
    return reason


def check_appointment_conflicts(
    appointment: Appointment,
    candidate_start: datetime,
    candidate_duration_minutes: int | None,
    all_appointments: Iterable[Appointment],
    provider: Provider | None = None,
    config: Settings | None = None,
) -> ConflictResult:
    """
    Validate moving/resizing `appointment` to the candidate interval.

    The candidate start and duration replace the stored interval; a None
    duration keeps the current one. The appointment never conflicts with
    itself. Checks run in order (working hours and breaks, overlaps,
    duration bounds) and the first failure is reported.
    Unset per-appointment bounds fall back to `config`, else the global settings.
    """
    duration = (
        appointment.duration_minutes
        if candidate_duration_minutes is None
        else candidate_duration_minutes
    )
    if duration <= 0:
        return ConflictResult(has_conflict=True, reason="Appointment duration must be greater than zero")
    candidate_end = candidate_start + timedelta(minutes=duration)

    if provider is not None:
        reason = _working_hours_conflict(candidate_start, candidate_end, provider)
        if reason:
            logger.debug("Appointment %s rejected: %s", appointment.id, reason)
            return ConflictResult(has_conflict=True, reason=reason)

    overlapping = _find_overlapping(
        appointment.id, appointment.provider_id, candidate_start, candidate_end, all_appointments
    )
    if overlapping:
        reason = _overlap_reason(overlapping)
        logger.debug("Appointment %s rejected: %s", appointment.id, reason)
        return ConflictResult(has_conflict=True, conflicts=overlapping, reason=reason)

    config = config or settings
    min_duration = appointment.min_duration_minutes or config.default_min_duration_minutes
    max_duration = appointment.max_duration_minutes or config.default_max_duration_minutes
    if duration < min_duration:
        return ConflictResult(
            has_conflict=True,
            reason=f"Appointment duration must be at least {min_duration} minutes",
        )
    if duration > max_duration:
        return ConflictResult(
            has_conflict=True,
            reason=f"Appointment duration cannot exceed {max_duration} minutes",
        )

    return ConflictResult(has_conflict=False)


def is_time_slot_available(
    time: datetime,
    duration_minutes: int,
    provider_id: str,
    appointments: Iterable[Appointment],
    provider: Provider | None = None,
) -> bool:
    end = time + timedelta(minutes=duration_minutes)
    if provider is not None and _working_hours_conflict(time, end, provider):
        return False
    return not _find_overlapping(None, provider_id, time, end, appointments)


def detect_appointment_conflicts(
    appointments: Iterable[Appointment], provider_id: str
) -> list[list[Appointment]]:
    """
    Group a provider's overlapping appointments into connected components.

    If A overlaps B and B overlaps C, all three land in one group even when
    A and C do not touch. Appointments without any overlap are left out.
    """
    candidates = sort_appointments_by_time(
        a for a in appointments if a.provider_id == provider_id and a.is_blocking
    )
    groups: list[list[Appointment]] = []
    current: list[Appointment] = []
    current_end: datetime | None = None

    for apt in candidates:
        if current and apt.start_time < current_end:
            current.append(apt)
            current_end = max(current_end, apt.end_time)
        else:
            if len(current) > 1:
                groups.append(current)
            current = [apt]
            current_end = apt.end_time

    if len(current) > 1:
        groups.append(current)
    return groups


def get_available_time_slots(
    day: date,
    provider: Provider,
    appointments: Iterable[Appointment],
    slot_duration_minutes: int | None = None,
    step_minutes: int | None = None,
) -> list[TimeSlot]:
    """Every candidate start within the provider's hours, flagged free or taken."""
    duration = slot_duration_minutes or settings.default_slot_duration_minutes
    step_minutes = step_minutes or settings.slot_step_minutes
    if duration <= 0 or step_minutes <= 0:
        raise ValueError(
            f"Slot duration and step must be positive, got {duration} and {step_minutes} minutes"
        )
    hours = provider.hours_for(day)
    if hours is None:
        return []
    step = timedelta(minutes=step_minutes)
    appointments = list(appointments)

    slots: list[TimeSlot] = []
    current = _at(day, hours.start)
    closes = _at(day, hours.end)
    while current + timedelta(minutes=duration) <= closes:
        slots.append(
            TimeSlot(
                time=current,
                provider_id=provider.id,
                is_available=is_time_slot_available(
                    current, duration, provider.id, appointments, provider
                ),
            )
        )
        current += step
    return slots


def suggest_alternative_slots(
    appointment: Appointment,
    requested_time: datetime,
    provider: Provider,
    appointments: Iterable[Appointment],
    max_suggestions: int | None = None,
) -> list[datetime]:
    """Free starts on the requested day, closest to the requested time first."""
    others = [a for a in appointments if a.id != appointment.id]
    slots = get_available_time_slots(
        requested_time.date(), provider, others, appointment.duration_minutes
    )
    free = [s.time for s in slots if s.is_available]
    free.sort(key=lambda t: abs((t - requested_time).total_seconds()))
    return free[: max_suggestions or settings.max_slot_suggestions]


def group_appointments_by_day(
    appointments: Iterable[Appointment], provider_id: str, start_day: date, end_day: date
) -> dict[str, list[Appointment]]:
    """Week-view helper: a provider's appointments keyed by ISO date, busy days only."""
    by_day: dict[str, list[Appointment]] = {}
    for apt in sort_appointments_by_time(a for a in appointments if a.provider_id == provider_id):
        day = apt.start_time.date()
        if start_day <= day <= end_day:
            by_day.setdefault(day.isoformat(), []).append(apt)
    return by_day
