"""Application settings loaded from environment variables."""

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_file() -> str | None:
    if os.getenv("PYTEST_CURRENT_TEST"):
        return None
    return ".env"


class Settings(BaseSettings):
    """Life Tracker configuration. All values come from environment variables."""

    # Runtime
    environment: str = Field(default="production")

    # Database
    database_path: Path = Field(default=Path("data/lifetracker.db"))

    # Turso (hosted libSQL): when set, overrides local database_path
    turso_database_url: str = Field(default="")
    turso_auth_token: str = Field(default="")

    # Scheduler
    scheduler_timezone: str = Field(default="UTC")
    reminder_hour: int = Field(default=9, ge=0, le=23)
    reminder_minute: int = Field(default=0, ge=0, le=59)
    task_reminder_lead_minutes: int = Field(default=15, ge=0)
    scheduler_min_delay_seconds: float = Field(default=1.0, gt=0)

    # Email (SMTP)
    email_host: str = Field(default="")
    email_port: int = Field(default=587)
    email_secure: bool = Field(default=False)
    email_user: str = Field(default="")
    email_password: str = Field(default="")
    email_from: str = Field(
        default='"Life Tracker Team" <no-reply@lifetracker.example.com>'
    )

    # Logging
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(env_file=_env_file(), env_file_encoding="utf-8")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        if os.getenv("PYTEST_CURRENT_TEST"):
            return (init_settings,)
        return (init_settings, env_settings, dotenv_settings, file_secret_settings)

    @property
    def is_development(self) -> bool:
        return self.environment.strip().lower() == "development"

    @property
    def email_configured(self) -> bool:
        """True when an SMTP host is set."""
        return bool(self.email_host.strip())


settings = Settings()
