"""Move/resize pipeline: validate a candidate, then hand it to the commit callback.

The coordinator keeps no state between calls. The caller owns the appointment
collection, serializes gestures per appointment id, and decides whether to
apply candidates optimistically (see optimistic_drop / optimistic_resize).
"""
import logging
from collections.abc import Awaitable, Callable, Iterable
from datetime import datetime

from practice_calendar.api.schemas.calendar import ResizeDirection
from practice_calendar.models.appointment import Appointment
from practice_calendar.models.provider import Provider
from practice_calendar.services.conflict_service import check_appointment_conflicts
from practice_calendar.services.resize_service import ResizeManager

logger = logging.getLogger(__name__)

# Persists the updated appointment; resolves to whether the store accepted it
CommitCallback = Callable[[Appointment], Awaitable[bool]]
CommitErrorHook = Callable[[Appointment, Exception], None]

# Fields a move or resize can change; restored on rollback
_GESTURE_FIELDS = ("provider_id", "start_time", "end_time")


class DragDropCoordinator:
    def __init__(
        self,
        commit: CommitCallback,
        resize_manager: ResizeManager | None = None,
        on_commit_error: CommitErrorHook | None = None,
    ) -> None:
        self.commit = commit
        self.resize_manager = resize_manager or ResizeManager()
        self.on_commit_error = on_commit_error

    async def _commit(self, updated: Appointment) -> bool:
        try:
            ok = await self.commit(updated)
        except Exception as e:
            logger.exception("Commit failed for appointment %s: %s", updated.id, e)
            if self.on_commit_error is not None:
                self.on_commit_error(updated, e)
            return False
        if ok:
            logger.info(
                "Appointment %s saved: %s - %s (provider %s)",
                updated.id,
                updated.start_time.isoformat(),
                updated.end_time.isoformat(),
                updated.provider_id,
            )
        else:
            logger.warning("Store rejected update for appointment %s", updated.id)
        return bool(ok)

    def check_conflicts(
        self,
        appointment: Appointment,
        new_time: datetime,
        appointments: Iterable[Appointment],
        provider: Provider | None = None,
        new_duration_minutes: int | None = None,
    ) -> list[Appointment]:
        """Appointments to highlight while a block hovers over new_time."""
        result = check_appointment_conflicts(
            appointment,
            new_time,
            new_duration_minutes,
            appointments,
            provider,
            self.resize_manager.settings,
        )
        return result.conflicts

    async def on_appointment_drop(
        self,
        appointment: Appointment,
        new_start_time: datetime,
        appointments: Iterable[Appointment],
        provider: Provider | None = None,
        new_provider_id: str | None = None,
    ) -> bool:
        """
        Move an appointment, keeping its duration, optionally to another provider.

        `provider` must be the target provider when reassigning. Returns False
        without calling commit when the move is not allowed.
        """
        if not appointment.is_draggable:
            logger.debug("Appointment %s is not draggable", appointment.id)
            return False

        duration = appointment.end_time - appointment.start_time
        candidate = appointment.model_copy(
            update={
                "provider_id": new_provider_id or appointment.provider_id,
                "start_time": new_start_time,
                "end_time": new_start_time + duration,
            }
        )
        result = check_appointment_conflicts(
            candidate,
            new_start_time,
            candidate.duration_minutes,
            appointments,
            provider,
            self.resize_manager.settings,
        )
        if result.has_conflict:
            logger.debug("Drop of %s rejected: %s", appointment.id, result.reason)
            return False
        return await self._commit(candidate)

    async def on_appointment_resize(
        self,
        appointment: Appointment,
        new_duration_minutes: int,
        appointments: Iterable[Appointment],
        provider: Provider | None = None,
        direction: ResizeDirection | str = ResizeDirection.BOTTOM,
    ) -> bool:
        result = self.resize_manager.validate_resize(
            appointment, direction, new_duration_minutes, appointments, provider
        )
        if not result.success:
            return False
        return await self._commit(result.updated_appointment)

    async def _apply_with_rollback(
        self, appointment: Appointment, update: dict, run: Callable[[], Awaitable[bool]]
    ) -> bool:
        snapshot = {field: getattr(appointment, field) for field in _GESTURE_FIELDS}
        for field, value in update.items():
            setattr(appointment, field, value)
        ok = False
        try:
            ok = await run()
        finally:
            # Also reached when the awaiting task is cancelled mid-commit
            if not ok:
                for field, value in snapshot.items():
                    setattr(appointment, field, value)
        return ok

    async def optimistic_drop(
        self,
        appointment: Appointment,
        new_start_time: datetime,
        appointments: Iterable[Appointment],
        provider: Provider | None = None,
        new_provider_id: str | None = None,
    ) -> bool:
        """
        Apply a move to the caller's appointment right away, then validate and
        commit. The pre-gesture times and provider are restored on failure.
        """
        # Validation must see the pre-gesture record, not the optimistic one
        original = appointment.model_copy()
        duration = appointment.end_time - appointment.start_time
        update = {
            "provider_id": new_provider_id or appointment.provider_id,
            "start_time": new_start_time,
            "end_time": new_start_time + duration,
        }
        return await self._apply_with_rollback(
            appointment,
            update,
            lambda: self.on_appointment_drop(
                original, new_start_time, appointments, provider, new_provider_id
            ),
        )

    async def optimistic_resize(
        self,
        appointment: Appointment,
        new_duration_minutes: int,
        appointments: Iterable[Appointment],
        provider: Provider | None = None,
        direction: ResizeDirection | str = ResizeDirection.BOTTOM,
    ) -> bool:
        original = appointment.model_copy()
        times = self.resize_manager.calculate_resized_appointment(
            appointment, direction, new_duration_minutes
        )
        update = {"start_time": times.start_time, "end_time": times.end_time}
        return await self._apply_with_rollback(
            appointment,
            update,
            lambda: self.on_appointment_resize(
                original, new_duration_minutes, appointments, provider, direction
            ),
        )
