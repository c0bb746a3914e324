from fastapi import APIRouter

from practice_calendar.api.schemas.calendar import (
    AppointmentPosition,
    AvailableSlotsRequest,
    PositionRequest,
    TimeSlot,
    TimeSlotLabel,
)
from practice_calendar.services.conflict_service import get_available_time_slots
from practice_calendar.services.time_position import (
    calculate_appointment_position,
    format_time_slot,
    generate_time_slots,
)

router = APIRouter(prefix="/calendar", tags=["calendar"])


@router.get("/time-slots", response_model=list[TimeSlotLabel])
async def time_slots() -> list[TimeSlotLabel]:
    """The 24 hourly rows of the day grid with their 12-hour labels."""
    return [TimeSlotLabel(label=s, display=format_time_slot(s)) for s in generate_time_slots()]


@router.post("/position", response_model=AppointmentPosition)
async def appointment_position(body: PositionRequest) -> AppointmentPosition:
    return calculate_appointment_position(body.appointment, body.pixels_per_hour)


@router.post("/available-slots", response_model=list[TimeSlot])
async def available_slots(body: AvailableSlotsRequest) -> list[TimeSlot]:
    """Every candidate start on the given day within working hours, with availability."""
    return get_available_time_slots(
        body.day, body.provider, body.appointments, body.slot_duration_minutes
    )
