import pytest

from factories import at, make_appointment, make_provider


@pytest.fixture
def provider():
    return make_provider()


@pytest.fixture
def morning():
    """Two bookings with a 30 minute gap: 09:00-10:00 and 10:30-11:30."""
    return [
        make_appointment("a1", at(9), 60, title="Initial consult"),
        make_appointment("a2", at(10, 30), 60, title="Follow-up"),
    ]
