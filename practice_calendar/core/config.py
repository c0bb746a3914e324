from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from the project root so it loads regardless of cwd
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(_ENV_FILE), ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Env
    env: str = "development"
    log_level: str = "INFO"

    # CORS
    cors_origins: str = "http://localhost:3000"

    # Duration rules applied when an appointment carries no bounds of its own
    default_min_duration_minutes: int = 15
    default_max_duration_minutes: int = 480  # 8 hours
    snap_interval_minutes: int = 15
    # Appointments starting within this window can no longer be resized
    resize_buffer_minutes: int = 30
    suggested_durations: list[int] = [15, 30, 45, 60, 90, 120, 180, 240, 300, 360, 420, 480]

    # Calendar grid geometry (unit is the caller's: rem or px)
    pixels_per_hour: float = 4.0
    block_gap: float = 0.25
    minimum_block_height: float = 0.5

    # Free-slot search
    default_slot_duration_minutes: int = 30
    slot_step_minutes: int = 15
    max_slot_suggestions: int = 5

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def is_production(self) -> bool:
        return self.env == "production"


settings = Settings()
