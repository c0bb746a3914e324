import pytest

from factories import at, make_appointment
from practice_calendar.api.schemas.calendar import ResizeCursor, ResizeDirection
from practice_calendar.core.config import Settings
from practice_calendar.services.resize_service import (
    GestureState,
    GestureStateError,
    ResizeGesture,
    ResizeManager,
)

NOW = at(6)


@pytest.fixture
def manager():
    return ResizeManager(clock=lambda: NOW)


@pytest.fixture
def appointment():
    return make_appointment("apt", at(10), 60, title="Massage")


def test_resize_from_bottom_moves_end(manager, appointment):
    times = manager.calculate_resized_appointment(appointment, "bottom", 90)
    assert times.start_time == at(10)
    assert times.end_time == at(11, 30)


def test_resize_from_top_moves_start(manager, appointment):
    times = manager.calculate_resized_appointment(appointment, ResizeDirection.TOP, 90)
    assert times.start_time == at(9, 30)
    assert times.end_time == at(11)


@pytest.mark.parametrize(
    "requested, snapped",
    [(37, 30), (38, 45), (22.5, 30), (60, 60), (7, 0)],
)
def test_snap_to_interval_rounds_half_up(requested, snapped):
    assert ResizeManager.snap_to_interval(requested, 15) == snapped


def test_custom_snap_interval(manager, appointment):
    times = manager.calculate_resized_appointment(appointment, "bottom", 44, snap_interval_minutes=10)
    assert times.end_time == at(10, 40)


def test_constraints(manager, appointment):
    defaults = manager.get_resize_constraints(appointment)
    assert (defaults.min_duration, defaults.max_duration, defaults.snap_interval) == (15, 480, 15)
    bounded = make_appointment(min_duration_minutes=30, max_duration_minutes=240)
    own = manager.get_resize_constraints(bounded)
    assert (own.min_duration, own.max_duration) == (30, 240)


def test_validate_below_minimum(manager, appointment):
    result = manager.validate_resize(appointment, "bottom", 10)
    assert not result.success
    assert result.error == "Duration must be at least 15 minutes"
    assert result.updated_appointment is None


def test_validate_above_maximum(manager):
    bounded = make_appointment(max_duration_minutes=240)
    result = manager.validate_resize(bounded, "bottom", 300)
    assert not result.success
    assert result.error == "Duration cannot exceed 240 minutes"


def test_bounds_are_checked_before_conflicts(manager, appointment):
    blocker = make_appointment("x", at(10, 5), 5)
    result = manager.validate_resize(appointment, "bottom", 10, [blocker])
    assert result.error == "Duration must be at least 15 minutes"
    assert result.conflicts is None


def test_snapped_duration_must_stay_in_bounds(manager):
    bounded = make_appointment(min_duration_minutes=20)
    # 21 passes the minimum but snaps down to 15
    result = manager.validate_resize(bounded, "bottom", 21)
    assert not result.success
    assert result.error == "Duration must be at least 20 minutes"


def test_validate_reports_conflicts(manager, appointment):
    other = make_appointment("other", at(11, 30), 60, title="Facial")
    result = manager.validate_resize(appointment, "bottom", 120, [appointment, other])
    assert not result.success
    assert [a.id for a in result.conflicts] == ["other"]
    assert result.error == "Overlaps with Facial at 11:30 AM"


def test_validate_success_returns_uncommitted_copy(manager, appointment):
    other = make_appointment("other", at(11, 30), 60)
    result = manager.validate_resize(appointment, "bottom", 90, [appointment, other])
    assert result.success
    updated = result.updated_appointment
    assert updated.id == "apt"
    assert updated.end_time == at(11, 30)
    assert appointment.end_time == at(11)


def test_validate_respects_working_hours(manager, provider):
    late = make_appointment("late", at(16), 30)
    assert manager.validate_resize(late, "bottom", 60, [], provider).success
    result = manager.validate_resize(late, "bottom", 90, [], provider)
    assert not result.success
    assert "outside working hours" in result.error


def test_validate_uses_injected_bounds():
    manager = ResizeManager(config=Settings(default_max_duration_minutes=600), clock=lambda: NOW)
    early = make_appointment("early", at(8), 60)
    assert manager.get_resize_constraints(early).max_duration == 600
    result = manager.validate_resize(early, "bottom", 540)
    assert result.success, result.error
    assert result.updated_appointment.end_time == at(17)
    assert not manager.validate_resize(early, "bottom", 615).success


def test_validate_rejects_unknown_direction(manager, appointment):
    with pytest.raises(ValueError):
        manager.validate_resize(appointment, "left", 60)


def test_feedback_extending_from_end(manager, appointment):
    feedback = manager.get_resize_feedback(appointment, "bottom", 60, 90)
    assert feedback.is_valid
    assert feedback.delta_minutes == 30
    assert feedback.message == "Extending from end: 30 minutes"


def test_feedback_shortening_from_start(manager, appointment):
    feedback = manager.get_resize_feedback(appointment, "top", 60, 45)
    assert feedback.is_valid
    assert feedback.delta_minutes == -15
    assert feedback.message == "Shortening from start: 15 minutes"


def test_feedback_out_of_bounds(manager, appointment):
    short = manager.get_resize_feedback(appointment, "top", 60, 10)
    assert not short.is_valid
    assert short.message == "Minimum duration: 15m"
    bounded = make_appointment(max_duration_minutes=240)
    long = manager.get_resize_feedback(bounded, "bottom", 60, 300)
    assert not long.is_valid
    assert long.delta_minutes == 240
    assert long.message == "Maximum duration: 240m"


def test_feedback_no_change(manager, appointment):
    feedback = manager.get_resize_feedback(appointment, "bottom", 60, 60)
    assert feedback.is_valid
    assert feedback.message == "No change"


def test_suggested_durations(manager, appointment):
    assert manager.get_suggested_durations(appointment) == [
        15, 30, 45, 60, 90, 120, 180, 240, 300, 360, 420, 480,
    ]
    odd = make_appointment(minutes=50, min_duration_minutes=30, max_duration_minutes=120)
    assert manager.get_suggested_durations(odd) == [30, 45, 50, 60, 90, 120]


@pytest.mark.parametrize(
    "minutes, expected",
    [(45, "45m"), (60, "1h"), (90, "1h 30m"), (125, "2h 5m"), (480, "8h")],
)
def test_format_duration(minutes, expected):
    assert ResizeManager.format_duration(minutes) == expected


class TestCanResize:
    now = at(8)

    def test_future_appointment(self, manager):
        assert manager.can_resize(make_appointment(start=at(10)), self.now)

    def test_uses_injected_clock(self, manager):
        assert manager.can_resize(make_appointment(start=at(10)))
        assert not manager.can_resize(make_appointment(start=at(6, 15)))

    def test_not_resizable_flag(self, manager):
        assert not manager.can_resize(make_appointment(start=at(10), is_resizable=False), self.now)

    @pytest.mark.parametrize("status", ["completed", "cancelled"])
    def test_closed_statuses(self, manager, status):
        assert not manager.can_resize(make_appointment(start=at(10), status=status), self.now)

    def test_past_appointment(self, manager):
        assert not manager.can_resize(make_appointment(start=at(6), minutes=60), self.now)

    def test_in_progress_appointment(self, manager):
        assert not manager.can_resize(make_appointment(start=at(7, 30), minutes=90), self.now)

    @pytest.mark.parametrize("minute", [15, 30])
    def test_inside_buffer(self, manager, minute):
        assert not manager.can_resize(make_appointment(start=at(8, minute)), self.now)

    def test_just_outside_buffer(self, manager):
        assert manager.can_resize(make_appointment(start=at(8, 31)), self.now)

    def test_buffer_is_configurable(self):
        manager = ResizeManager(config=Settings(resize_buffer_minutes=10))
        assert manager.can_resize(make_appointment(start=at(8, 15)), self.now)


def test_resize_cursor():
    assert ResizeManager.get_resize_cursor("top", False) == ResizeCursor.NORTH
    assert ResizeManager.get_resize_cursor("bottom", False) == ResizeCursor.SOUTH
    assert ResizeManager.get_resize_cursor("top", True) == ResizeCursor.VERTICAL
    assert ResizeManager.get_resize_cursor("bottom", True).value == "resize-vertical"


class TestResizeGesture:
    def test_commit_path(self, manager, appointment):
        gesture = ResizeGesture(appointment, manager)
        assert gesture.state == GestureState.IDLE
        assert gesture.begin("bottom")
        assert gesture.state == GestureState.DRAGGING
        assert gesture.cursor == ResizeCursor.VERTICAL

        feedback = gesture.update(90)
        assert feedback.message == "Extending from end: 30 minutes"
        assert gesture.preview().end_time == at(11, 30)

        result = gesture.release([appointment])
        assert result.success
        assert gesture.state == GestureState.COMMITTED
        assert gesture.cursor == ResizeCursor.SOUTH
        assert appointment.end_time == at(11)

    def test_conflicting_release_cancels(self, manager, appointment):
        other = make_appointment("other", at(11), 60)
        gesture = ResizeGesture(appointment, manager)
        gesture.begin("bottom")
        gesture.update(120)
        result = gesture.release([appointment, other])
        assert not result.success
        assert gesture.state == GestureState.CANCELLED

    def test_cancel(self, manager, appointment):
        gesture = ResizeGesture(appointment, manager)
        gesture.begin("top")
        gesture.cancel()
        assert gesture.state == GestureState.CANCELLED
        with pytest.raises(GestureStateError):
            gesture.update(30)

    def test_update_before_begin(self, manager, appointment):
        with pytest.raises(GestureStateError):
            ResizeGesture(appointment, manager).update(30)

    def test_begin_twice(self, manager, appointment):
        gesture = ResizeGesture(appointment, manager)
        gesture.begin("top")
        with pytest.raises(GestureStateError):
            gesture.begin("bottom")

    def test_locked_appointment_stays_idle(self, manager):
        gesture = ResizeGesture(make_appointment(is_resizable=False), manager)
        assert not gesture.begin("bottom")
        assert gesture.state == GestureState.IDLE
        assert gesture.cursor is None
