from datetime import datetime
from enum import Enum

from pydantic import model_validator
from sqlmodel import Field, SQLModel


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    CHECKED_IN = "checked-in"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"


class AppointmentType(str, Enum):
    APPOINTMENT = "appointment"
    BREAK = "break"


class CreatedBy(str, Enum):
    PROVIDER = "provider"
    PATIENT = "patient"


# Statuses that no longer occupy the provider's time
NON_BLOCKING_STATUSES = frozenset({AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW})


class Appointment(SQLModel):
    """A booking or break on one provider's calendar.

    Times are naive local datetimes. Resize and move operations mutate the
    record in place once committed; validation works on copies.
    """

    id: str
    provider_id: str
    client_id: str = ""
    service_id: str = ""
    start_time: datetime
    end_time: datetime
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    type: AppointmentType = AppointmentType.APPOINTMENT
    title: str = ""
    client_name: str | None = None
    color: str | None = None  # display tag only
    created_by: CreatedBy = CreatedBy.PROVIDER
    is_draggable: bool = True
    is_resizable: bool = True
    # None falls back to settings.default_{min,max}_duration_minutes
    min_duration_minutes: int | None = Field(default=None, gt=0)
    max_duration_minutes: int | None = Field(default=None, gt=0)

    @model_validator(mode="after")
    def check_interval(self) -> "Appointment":
        if self.start_time >= self.end_time:
            raise ValueError("end_time must be after start_time")
        return self

    @property
    def duration_minutes(self) -> int:
        return round((self.end_time - self.start_time).total_seconds() / 60)

    @property
    def is_blocking(self) -> bool:
        """Whether this entry takes up time for conflict purposes."""
        return self.status not in NON_BLOCKING_STATUSES

    @property
    def is_break(self) -> bool:
        return self.type == AppointmentType.BREAK
