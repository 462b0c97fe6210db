"""Scheduling and planning configuration managed via environment variables."""
from __future__ import annotations

from functools import lru_cache
from typing import Annotated, List
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from deepwork.domain.timeutil import WEEKDAY_NAMES, is_valid_time, to_minutes

_VALID_WEEKDAYS = {name.lower() for name in WEEKDAY_NAMES}
_COMPACT_PROMPT_PROVIDERS = {"ollama", "lmstudio"}
_PROVIDER_ALIASES = {"": "openai", "lm-studio": "lmstudio", "llmstudio": "lmstudio"}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="DEEPWORK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Deep Work Planner"
    debug: bool = False
    log_level: str = "INFO"
    database_url: str = "sqlite:///./deepwork.db"
    timezone: str = "UTC"

    workdays: Annotated[List[str], NoDecode] = ["monday", "tuesday", "wednesday", "thursday", "friday"]
    day_start: str = "09:00"
    day_end: str = "17:00"
    peak_hours_start: str | None = None
    peak_hours_end: str | None = None

    llm_provider: str = "openai"
    llm_model: str = "gpt-4o"
    llm_base_url: str | None = None
    llm_api_key: str | None = None
    llm_timeout_seconds: float = 60.0
    plan_max_retries: int = 3

    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "deepwork"

    @field_validator("timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown time zone: {value}") from exc
        return value

    @field_validator("workdays", mode="before")
    @classmethod
    def _split_workdays(cls, value):
        if isinstance(value, str):
            value = [part for part in value.split(",")]
        return [str(part).strip().lower() for part in value if str(part).strip()]

    @field_validator("workdays")
    @classmethod
    def _check_workdays(cls, value: List[str]) -> List[str]:
        if not value:
            raise ValueError("at least one workday is required")
        unknown = [name for name in value if name not in _VALID_WEEKDAYS]
        if unknown:
            raise ValueError(f"invalid workday(s): {', '.join(unknown)}")
        return value

    @field_validator("day_start", "day_end")
    @classmethod
    def _check_time(cls, value: str) -> str:
        if not is_valid_time(value):
            raise ValueError(f"{value!r} must be in HH:MM format")
        return value

    @field_validator("peak_hours_start", "peak_hours_end", mode="before")
    @classmethod
    def _blank_peak_is_unset(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("peak_hours_start", "peak_hours_end")
    @classmethod
    def _check_peak_time(cls, value: str | None) -> str | None:
        if value is not None and not is_valid_time(value):
            raise ValueError(f"{value!r} must be in HH:MM format")
        return value

    @field_validator("llm_provider")
    @classmethod
    def _normalize_provider(cls, value: str) -> str:
        name = value.strip().lower()
        return _PROVIDER_ALIASES.get(name, name)

    @field_validator("plan_max_retries")
    @classmethod
    def _check_retries(cls, value: int) -> int:
        if value < 0:
            raise ValueError("plan_max_retries cannot be negative")
        return value

    @model_validator(mode="after")
    def _check_windows(self) -> "Settings":
        if to_minutes(self.day_start) >= to_minutes(self.day_end):
            raise ValueError("day_start must be before day_end")
        if (self.peak_hours_start is None) != (self.peak_hours_end is None):
            raise ValueError("peak_hours_start and peak_hours_end must be set together")
        if self.has_peak_hours() and to_minutes(self.peak_hours_start) >= to_minutes(self.peak_hours_end):
            raise ValueError("peak_hours_start must be before peak_hours_end")
        return self

    def has_peak_hours(self) -> bool:
        return bool(self.peak_hours_start and self.peak_hours_end)

    def is_workday(self, name: str) -> bool:
        return name.strip().lower() in self.workdays

    def uses_compact_prompt(self) -> bool:
        """Local models get the shorter planning prompt."""
        return self.llm_provider in _COMPACT_PROMPT_PROVIDERS


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()
