"""bodylog configuration — loaded from environment variables."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import ValidationInfo, field_validator, model_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

DATE_TIME_FORMATS = frozenset({"", "iso", "clf", "local"})
LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})
LOG_FORMATS = frozenset({"json", "text"})


def resolve_timezone(name: str) -> ZoneInfo | None:
    """Return the named IANA zone, or None if it is empty or unknown."""
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return None


def local_timezone_name() -> str:
    """Best guess at the host's local zone name (may be an abbreviation)."""
    return datetime.now().astimezone().tzname() or "UTC"


class Settings(BaseSettings):
    """Logger settings, loaded from environment variables.

    All settings are prefixed with BODYLOG_ (e.g., BODYLOG_MAX_BODY_LENGTH).
    """

    # Demo server
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    log_level: str = "INFO"
    log_format: str = "text"  # "text" or "json"

    # Request/response lines
    log_req_date_time: bool = True
    log_req_user_agent: bool = True
    date_time_format: str = ""  # "", "iso", "clf", "local" (gmt/utc accepted)
    timezone: str = ""          # only used with date_time_format="local"
    buffer_ms: int = 0          # 0 disables buffered output

    # Bodies
    log_request_body: bool = True
    log_response_body: bool = True
    max_body_length: int = 1000

    model_config = {"env_prefix": "BODYLOG_"}

    @field_validator("date_time_format")
    @classmethod
    def normalize_date_time_format(cls, v: str) -> str:
        v = (v or "").lower().strip()
        if v in ("gmt", "utc"):
            # GMT/UTC is the default rendering
            return ""
        if v not in DATE_TIME_FORMATS:
            logger.warning(
                "date_time_format must be one of 'iso', 'clf', 'local', 'utc' or 'gmt', "
                "got %r; using the default UTC format",
                v,
            )
            return ""
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = (v or "").upper().strip()
        if level not in LOG_LEVELS:
            logger.warning("log_level must be one of %s, got %r; using INFO", sorted(LOG_LEVELS), v)
            return "INFO"
        return level

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        fmt = (v or "").lower().strip()
        if fmt not in LOG_FORMATS:
            logger.warning("log_format must be 'json' or 'text', got %r; using text", v)
            return "text"
        return fmt

    @field_validator("max_body_length", "buffer_ms", mode="before")
    @classmethod
    def validate_non_negative(cls, v: Any, info: ValidationInfo) -> int:
        default = cls.model_fields[info.field_name].default
        try:
            value = int(v)
        except (TypeError, ValueError):
            logger.warning("%s must be an integer, got %r; using %d", info.field_name, v, default)
            return default
        if value < 0:
            logger.warning("%s must not be negative, got %d; using %d", info.field_name, value, default)
            return default
        return value

    @model_validator(mode="after")
    def resolve_local_timezone(self) -> Settings:
        if self.date_time_format == "local":
            if resolve_timezone(self.timezone) is None:
                guessed = local_timezone_name()
                if self.timezone:
                    logger.warning(
                        "Unknown timezone %r; using the host local timezone (%s)",
                        self.timezone,
                        guessed,
                    )
                # An empty zone renders in the host local timezone
                self.timezone = ""
        elif self.timezone:
            logger.warning(
                "timezone=%r is ignored unless date_time_format is 'local'",
                self.timezone,
            )
        if not self.log_req_date_time and self.date_time_format:
            logger.warning(
                "date_time_format=%r was set even though log_req_date_time is false",
                self.date_time_format,
            )
        return self

    @property
    def date_token_format(self) -> str:
        """Argument for the :date token built from these settings."""
        if self.date_time_format == "local":
            return f"local,{self.timezone}"
        return self.date_time_format


settings = Settings()
