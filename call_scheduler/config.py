# call_scheduler/config.py

import logging
from pathlib import Path

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[1]

logger = logging.getLogger(__name__)

ALLOWED_SLOT_DURATIONS = (15, 30, 60, 90, 120)
DEFAULT_SLOT_DURATION = 60


class Settings(BaseSettings):
    database_url: str = "sqlite:///./data/call_scheduler.db"
    redis_url: str = "redis://localhost:6379/0"
    redis_socket_timeout: float = 2.0

    # Booking slots
    slot_duration: int = DEFAULT_SLOT_DURATION
    buffer_time: int = 0
    max_booking_days: int = 30
    cache_ttl: int = 3600

    # Rate limiting
    rate_limit_read: int = 60
    rate_limit_write: int = 5
    rate_limit_window: int = 60
    trust_proxy: bool = False

    # Security
    booking_secret: str | None = None
    admin_token: str | None = None
    allowed_origins: list[str] = []
    audit_enabled: bool = True
    audit_log_path: str | None = None
    audit_salt: str = "cs-default-salt"

    # Webhooks
    webhook_enabled: bool = False
    webhook_url: str = ""
    webhook_secret: str = ""
    webhook_timeout: float = 2.0

    # E-mail
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    mail_from: str = "bookings@localhost"
    site_name: str = "Call Scheduler"

    events_consumer_enabled: bool = True
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="CS_",
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )

    @field_validator("slot_duration")
    @classmethod
    def _check_slot_duration(cls, v: int) -> int:
        # Durations must tile an hour cleanly, or be 90/120 minutes.
        if v <= 0 or (60 % v != 0 and v not in (90, 120)):
            logger.warning(
                f"CS_SLOT_DURATION={v} does not divide evenly into 60 minutes. "
                f"Using {DEFAULT_SLOT_DURATION}."
            )
            return DEFAULT_SLOT_DURATION
        return v

    @field_validator("max_booking_days")
    @classmethod
    def _check_max_booking_days(cls, v: int) -> int:
        return v if v > 0 else 30

    @field_validator("rate_limit_read", "rate_limit_write")
    @classmethod
    def _check_rate_limit(cls, v: int) -> int:
        return max(1, v)

    @model_validator(mode="after")
    def _check_buffer_time(self) -> "Settings":
        if self.buffer_time < 0 or self.buffer_time >= self.slot_duration:
            logger.warning(
                f"CS_BUFFER_TIME={self.buffer_time} must be >= 0 and less than "
                f"CS_SLOT_DURATION={self.slot_duration}. Using 0."
            )
            self.buffer_time = 0
        return self

    @property
    def token_verification_enabled(self) -> bool:
        return bool(self.booking_secret)

    @property
    def resolved_database_url(self) -> str:
        url = self.database_url
        if url.startswith("sqlite:///./"):
            # Relative SQLite paths resolve against the project root
            relative_path = url.replace("sqlite:///./", "")
            absolute_path = BASE_DIR / relative_path
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            return f"sqlite:///{absolute_path}"
        return url


def get_settings() -> Settings:
    return Settings()
