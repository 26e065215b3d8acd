# barber_series/config.py

from functools import lru_cache
from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration sourced from environment variables."""

    database_url: str = Field("sqlite:///./barber.db", alias="DATABASE_URL")
    cron_secret: Optional[SecretStr] = Field(None, alias="CRON_SECRET")

    # JWT for barber logins
    secret_key: SecretStr = Field(SecretStr("change-me-later"), alias="SECRET_KEY")
    access_token_expire_minutes: int = Field(30, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    shop_timezone: str = Field("Europe/Berlin", alias="SHOP_TIMEZONE")
    lookahead_weeks: int = Field(52, alias="SERIES_LOOKAHEAD_WEEKS")
    backfill_weeks: int = Field(52, alias="SERIES_BACKFILL_WEEKS")
    # unset: the horizon never runs more than lookahead_weeks past today
    max_horizon_weeks: Optional[int] = Field(None, alias="SERIES_MAX_HORIZON_WEEKS")
    pause_label: str = Field("pause", alias="PAUSE_LABEL")
    slot_minutes: int = Field(15, alias="SLOT_MINUTES")

    log_level: str = Field("INFO", alias="LOG_LEVEL")

    @property
    def horizon_cap_weeks(self) -> int:
        if self.max_horizon_weeks is None:
            return self.lookahead_weeks
        return self.max_horizon_weeks

    model_config = SettingsConfigDict(
        env_file=(".env",),
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
