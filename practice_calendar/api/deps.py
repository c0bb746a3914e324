from practice_calendar.core.config import settings
from practice_calendar.services.resize_service import ResizeManager


def get_resize_manager() -> ResizeManager:
    """Per-request resize engine; override in tests to pin the clock."""
    return ResizeManager(settings)
