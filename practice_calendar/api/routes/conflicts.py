from fastapi import APIRouter

from practice_calendar.api.schemas.calendar import (
    ConflictCheckRequest,
    ConflictGroupsRequest,
    ConflictResult,
)
from practice_calendar.models.appointment import Appointment
from practice_calendar.services.conflict_service import (
    check_appointment_conflicts,
    detect_appointment_conflicts,
)

router = APIRouter(prefix="/conflicts", tags=["conflicts"])


@router.post("/check", response_model=ConflictResult)
async def check_conflicts(body: ConflictCheckRequest) -> ConflictResult:
    """Would moving/resizing the appointment to the candidate interval collide?"""
    return check_appointment_conflicts(
        body.appointment,
        body.candidate_start,
        body.candidate_duration_minutes,
        body.appointments,
        body.provider,
    )


@router.post("/groups", response_model=list[list[Appointment]])
async def conflict_groups(body: ConflictGroupsRequest) -> list[list[Appointment]]:
    return detect_appointment_conflicts(body.appointments, body.provider_id)
