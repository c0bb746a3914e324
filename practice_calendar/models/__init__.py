from practice_calendar.models.appointment import (
    Appointment,
    AppointmentStatus,
    AppointmentType,
    CreatedBy,
)
from practice_calendar.models.provider import BreakWindow, Provider, Service, Weekday, WorkingDay

__all__ = [
    "Appointment",
    "AppointmentStatus",
    "AppointmentType",
    "CreatedBy",
    "BreakWindow",
    "Provider",
    "Service",
    "Weekday",
    "WorkingDay",
]
