from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="GYMBOOK_",
        case_sensitive=False,
    )

    # App
    env: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    db_url: str = "sqlite+aiosqlite:///./gymbook.db"

    # Wall clock used to decide whether a booking already started
    gym_timezone: str = "UTC"

    # Calendar defaults (applied when the config row is first created)
    default_open_time: str = "06:00"
    default_close_time: str = "22:00"
    default_closed_weekdays: list[int] = Field(default_factory=lambda: [0])  # 0=Sunday
    default_slot_minutes: int = 30
    default_capacity_per_slot: int = 50

    # Plans
    seed_plans: bool = True


def get_settings() -> Settings:
    return Settings()
