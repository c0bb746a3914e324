from fastapi import APIRouter, Depends

from practice_calendar.api.deps import get_resize_manager
from practice_calendar.api.schemas.calendar import (
    ResizeFeedback,
    ResizeFeedbackRequest,
    ResizeOptions,
    ResizeResult,
    ResizeValidateRequest,
)
from practice_calendar.models.appointment import Appointment
from practice_calendar.services.resize_service import ResizeManager

router = APIRouter(prefix="/resize", tags=["resize"])


@router.post("/validate", response_model=ResizeResult)
async def validate_resize(
    body: ResizeValidateRequest,
    manager: ResizeManager = Depends(get_resize_manager),
) -> ResizeResult:
    """Authoritative resize check. Returns the updated appointment without saving it."""
    return manager.validate_resize(
        body.appointment,
        body.direction,
        body.new_duration_minutes,
        body.appointments,
        body.provider,
    )


@router.post("/feedback", response_model=ResizeFeedback)
async def resize_feedback(
    body: ResizeFeedbackRequest,
    manager: ResizeManager = Depends(get_resize_manager),
) -> ResizeFeedback:
    return manager.get_resize_feedback(
        body.appointment,
        body.direction,
        body.current_duration_minutes,
        body.target_duration_minutes,
    )


@router.post("/options", response_model=ResizeOptions)
async def resize_options(
    appointment: Appointment,
    manager: ResizeManager = Depends(get_resize_manager),
) -> ResizeOptions:
    """Constraints and duration presets for the resize menu of one appointment."""
    durations = manager.get_suggested_durations(appointment)
    return ResizeOptions(
        constraints=manager.get_resize_constraints(appointment),
        suggested_durations=durations,
        labels=[manager.format_duration(d) for d in durations],
        can_resize=manager.can_resize(appointment),
    )
