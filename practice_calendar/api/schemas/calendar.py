from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field

from practice_calendar.models.appointment import Appointment
from practice_calendar.models.provider import Provider


class ResizeDirection(str, Enum):
    TOP = "top"  # moves start_time, end_time fixed
    BOTTOM = "bottom"  # moves end_time, start_time fixed


class ResizeCursor(str, Enum):
    NORTH = "resize-north"
    SOUTH = "resize-south"
    VERTICAL = "resize-vertical"


class TimeRange(BaseModel):
    start_time: datetime
    end_time: datetime


class AppointmentPosition(BaseModel):
    top: float
    height: float


class TimeSlotLabel(BaseModel):
    label: str  # "9:00"
    display: str  # "9:00 AM"


class TimeSlot(BaseModel):
    time: datetime
    provider_id: str
    is_available: bool


class ConflictResult(BaseModel):
    has_conflict: bool
    conflicts: list[Appointment] = []
    reason: str | None = None


class ResizeConstraints(BaseModel):
    min_duration: int
    max_duration: int
    snap_interval: int


class ResizeResult(BaseModel):
    success: bool
    updated_appointment: Appointment | None = None
    conflicts: list[Appointment] | None = None
    error: str | None = None


class ResizeFeedback(BaseModel):
    is_valid: bool
    delta_minutes: int
    message: str


class ResizeOptions(BaseModel):
    constraints: ResizeConstraints
    suggested_durations: list[int]
    labels: list[str]
    can_resize: bool


# Request bodies. The caller always sends the snapshot it wants checked.


class PositionRequest(BaseModel):
    appointment: Appointment
    pixels_per_hour: float | None = Field(default=None, gt=0)


class AvailableSlotsRequest(BaseModel):
    day: date
    provider: Provider
    appointments: list[Appointment] = []
    slot_duration_minutes: int | None = Field(default=None, gt=0)


class ConflictCheckRequest(BaseModel):
    appointment: Appointment
    candidate_start: datetime
    candidate_duration_minutes: int | None = Field(default=None, gt=0)
    appointments: list[Appointment] = []
    provider: Provider | None = None


class ConflictGroupsRequest(BaseModel):
    provider_id: str
    appointments: list[Appointment] = []


class ResizeValidateRequest(BaseModel):
    appointment: Appointment
    direction: ResizeDirection
    new_duration_minutes: int
    appointments: list[Appointment] = []
    provider: Provider | None = None


class ResizeFeedbackRequest(BaseModel):
    appointment: Appointment
    direction: ResizeDirection
    current_duration_minutes: int
    target_duration_minutes: int
