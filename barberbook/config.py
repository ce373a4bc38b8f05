# barberbook/config.py

from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    database_url: str = "sqlite:///./barberbook.db"
    sql_echo: bool = False  # set to True to see SQL
    log_level: str = "INFO"

    slot_step_minutes: int = 30
    default_duration_minutes: int = 30
    default_open_time: str = "09:00"
    default_close_time: str = "18:00"
    default_working_days: List[int] = [1, 2, 3, 4, 5, 6]  # 0=Sun ... 6=Sat

    # Per-(shop, date) lock around the admission check and write.
    # Only serializes admissions inside one process.
    serialize_admissions: bool = False

    use_mock_notifications: bool = True
    evolution_api_url: str = ""
    evolution_api_key: str = ""
    evolution_instance_name: str = ""
    default_country_code: str = "55"
    notification_timeout_seconds: float = 20.0

    model_config = SettingsConfigDict(
        env_prefix="BARBERBOOK_",
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )

    @field_validator("slot_step_minutes", "default_duration_minutes")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be greater than zero")
        return v

    @field_validator("evolution_api_url", "evolution_api_key", "evolution_instance_name", mode="after")
    @classmethod
    def strip_evolution(cls, v: str) -> str:
        return (v or "").strip()

    @property
    def evolution_configured(self) -> bool:
        return bool(self.evolution_api_url and self.evolution_api_key and self.evolution_instance_name)


@lru_cache
def get_settings() -> Settings:
    return Settings()
