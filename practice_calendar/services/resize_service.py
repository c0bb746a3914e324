"""Resize engine: duration snapping, bounds, feedback and the gesture lifecycle.

Resizing from the top moves start_time with end_time anchored; resizing from
the bottom moves end_time with start_time anchored.
"""
import logging
import math
from collections.abc import Iterable
from datetime import datetime, timedelta
from enum import Enum

from practice_calendar.api.schemas.calendar import (
    ResizeConstraints,
    ResizeCursor,
    ResizeDirection,
    ResizeFeedback,
    ResizeResult,
    TimeRange,
)
from practice_calendar.core.clock import Clock, system_now
from practice_calendar.core.config import Settings, settings
from practice_calendar.models.appointment import Appointment, AppointmentStatus
from practice_calendar.models.provider import Provider
from practice_calendar.services.conflict_service import check_appointment_conflicts

logger = logging.getLogger(__name__)

_NOT_RESIZABLE_STATUSES = frozenset({AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED})


class GestureStateError(RuntimeError):
    """Raised when a resize gesture is driven out of order."""


class GestureState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    COMMITTED = "committed"
    CANCELLED = "cancelled"


class ResizeManager:
    def __init__(self, config: Settings | None = None, clock: Clock = system_now) -> None:
        self.settings = config or settings
        self.clock = clock

    @staticmethod
    def snap_to_interval(minutes: float, interval: int) -> int:
        """Nearest multiple of interval; halves round up."""
        return math.floor(minutes / interval + 0.5) * interval

    @staticmethod
    def format_duration(minutes: int) -> str:
        if minutes < 60:
            return f"{minutes}m"
        hours, remaining = divmod(minutes, 60)
        if remaining == 0:
            return f"{hours}h"
        return f"{hours}h {remaining}m"

    @staticmethod
    def get_resize_cursor(direction: ResizeDirection | str, is_actively_resizing: bool) -> ResizeCursor:
        if is_actively_resizing:
            return ResizeCursor.VERTICAL
        if ResizeDirection(direction) == ResizeDirection.TOP:
            return ResizeCursor.NORTH
        return ResizeCursor.SOUTH

    def get_resize_constraints(self, appointment: Appointment) -> ResizeConstraints:
        return ResizeConstraints(
            min_duration=appointment.min_duration_minutes or self.settings.default_min_duration_minutes,
            max_duration=appointment.max_duration_minutes or self.settings.default_max_duration_minutes,
            snap_interval=self.settings.snap_interval_minutes,
        )

    def calculate_resized_appointment(
        self,
        appointment: Appointment,
        direction: ResizeDirection | str,
        new_duration_minutes: float,
        snap_interval_minutes: int | None = None,
    ) -> TimeRange:
        """New interval after snapping the duration; the anchored end never moves."""
        snap = snap_interval_minutes or self.settings.snap_interval_minutes
        duration = timedelta(minutes=self.snap_to_interval(new_duration_minutes, snap))
        if ResizeDirection(direction) == ResizeDirection.BOTTOM:
            return TimeRange(start_time=appointment.start_time, end_time=appointment.start_time + duration)
        return TimeRange(start_time=appointment.end_time - duration, end_time=appointment.end_time)

    @staticmethod
    def _bounds_error(duration: float, constraints: ResizeConstraints) -> str | None:
        if duration < constraints.min_duration:
            return f"Duration must be at least {constraints.min_duration} minutes"
        if duration > constraints.max_duration:
            return f"Duration cannot exceed {constraints.max_duration} minutes"
        return None

    def validate_resize(
        self,
        appointment: Appointment,
        direction: ResizeDirection | str,
        new_duration_minutes: float,
        appointments: Iterable[Appointment] = (),
        provider: Provider | None = None,
    ) -> ResizeResult:
        """
        Authoritative check for a resize, returning an uncommitted copy on success.

        Bounds apply to both the requested and the snapped duration, so a
        10 minute request fails a 15 minute minimum even though it would snap
        up to 15. Conflicts are only looked at once the bounds pass.
        """
        constraints = self.get_resize_constraints(appointment)
        snapped = self.snap_to_interval(new_duration_minutes, constraints.snap_interval)
        error = self._bounds_error(new_duration_minutes, constraints) or self._bounds_error(
            snapped, constraints
        )
        if error:
            logger.debug("Resize of %s to %s min rejected: %s", appointment.id, new_duration_minutes, error)
            return ResizeResult(success=False, error=error)

        times = self.calculate_resized_appointment(
            appointment, direction, snapped, constraints.snap_interval
        )
        candidate = appointment.model_copy(
            update={"start_time": times.start_time, "end_time": times.end_time}
        )
        conflict = check_appointment_conflicts(
            candidate, candidate.start_time, snapped, appointments, provider, self.settings
        )
        if conflict.has_conflict:
            logger.debug("Resize of %s conflicts: %s", appointment.id, conflict.reason)
            return ResizeResult(success=False, conflicts=conflict.conflicts, error=conflict.reason)

        return ResizeResult(success=True, updated_appointment=candidate)

    def get_resize_feedback(
        self,
        appointment: Appointment,
        direction: ResizeDirection | str,
        current_duration_minutes: int,
        target_duration_minutes: int,
    ) -> ResizeFeedback:
        """Cheap synchronous pre-check for live feedback; conflicts are not considered."""
        delta = target_duration_minutes - current_duration_minutes
        constraints = self.get_resize_constraints(appointment)

        if target_duration_minutes < constraints.min_duration:
            return ResizeFeedback(
                is_valid=False, delta_minutes=delta, message=f"Minimum duration: {constraints.min_duration}m"
            )
        if target_duration_minutes > constraints.max_duration:
            return ResizeFeedback(
                is_valid=False, delta_minutes=delta, message=f"Maximum duration: {constraints.max_duration}m"
            )
        if delta == 0:
            return ResizeFeedback(is_valid=True, delta_minutes=0, message="No change")

        action = "Extending" if delta > 0 else "Shortening"
        endpoint = "start" if ResizeDirection(direction) == ResizeDirection.TOP else "end"
        return ResizeFeedback(
            is_valid=True, delta_minutes=delta, message=f"{action} from {endpoint}: {abs(delta)} minutes"
        )

    def get_suggested_durations(self, appointment: Appointment) -> list[int]:
        constraints = self.get_resize_constraints(appointment)
        suggestions = {
            d
            for d in self.settings.suggested_durations
            if constraints.min_duration <= d <= constraints.max_duration
        }
        suggestions.add(appointment.duration_minutes)
        return sorted(suggestions)

    def can_resize(self, appointment: Appointment, now: datetime | None = None) -> bool:
        if not appointment.is_resizable:
            return False
        if appointment.status in _NOT_RESIZABLE_STATUSES:
            return False
        now = now or self.clock()
        if appointment.end_time <= now:
            return False
        # Covers in-progress appointments as well as imminent ones
        buffer = timedelta(minutes=self.settings.resize_buffer_minutes)
        if appointment.start_time <= now + buffer:
            return False
        return True


class ResizeGesture:
    """
    One resize interaction on one appointment.

    IDLE -> DRAGGING -> COMMITTED | CANCELLED. The gesture never touches the
    appointment itself; the coordinator commits the validated copy.
    """

    def __init__(self, appointment: Appointment, manager: ResizeManager | None = None) -> None:
        self.appointment = appointment
        self.manager = manager or ResizeManager()
        self.state = GestureState.IDLE
        self.direction: ResizeDirection | None = None
        self.live_duration: int | None = None

    def _require(self, state: GestureState, action: str) -> None:
        if self.state != state:
            raise GestureStateError(f"Cannot {action} a resize gesture that is {self.state.value}")

    @property
    def cursor(self) -> ResizeCursor | None:
        if self.direction is None:
            return None
        return self.manager.get_resize_cursor(self.direction, self.state == GestureState.DRAGGING)

    def begin(self, direction: ResizeDirection | str, now: datetime | None = None) -> bool:
        """Start dragging a handle. Returns False when the appointment cannot be resized."""
        self._require(GestureState.IDLE, "begin")
        if not self.manager.can_resize(self.appointment, now):
            return False
        self.direction = ResizeDirection(direction)
        self.live_duration = self.appointment.duration_minutes
        self.state = GestureState.DRAGGING
        return True

    def update(self, target_duration_minutes: int) -> ResizeFeedback:
        self._require(GestureState.DRAGGING, "update")
        self.live_duration = target_duration_minutes
        return self.manager.get_resize_feedback(
            self.appointment, self.direction, self.appointment.duration_minutes, target_duration_minutes
        )

    def preview(self) -> TimeRange:
        self._require(GestureState.DRAGGING, "preview")
        return self.manager.calculate_resized_appointment(self.appointment, self.direction, self.live_duration)

    def release(
        self, appointments: Iterable[Appointment] = (), provider: Provider | None = None
    ) -> ResizeResult:
        self._require(GestureState.DRAGGING, "release")
        result = self.manager.validate_resize(
            self.appointment, self.direction, self.live_duration, appointments, provider
        )
        self.state = GestureState.COMMITTED if result.success else GestureState.CANCELLED
        return result

    def cancel(self) -> None:
        self._require(GestureState.DRAGGING, "cancel")
        self.state = GestureState.CANCELLED
