from collections.abc import Callable
from datetime import datetime

# Returns the current wall-clock time as a naive local datetime
Clock = Callable[[], datetime]


def system_now() -> datetime:
    """Naive local time, the same clock the calendar grid is drawn in."""
    return datetime.now()
