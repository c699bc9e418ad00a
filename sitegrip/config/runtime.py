from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RuntimeConfig(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str | None = Field(default=None, validation_alias="LOG_FILE")
    log_truncate_length: int = Field(default=1000, validation_alias="LOG_TRUNCATE_LENGTH")

    @field_validator("log_level", mode="before")
    @classmethod
    def _validate_log_level(cls, value: Any) -> str:
        log_level = str(value or "INFO").upper()
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if log_level not in valid_levels:
            msg = f"Invalid log level: {value}. Must be one of {valid_levels}"
            raise ValueError(msg)
        return log_level

    @field_validator("log_file", mode="before")
    @classmethod
    def _validate_log_file(cls, value: Any) -> str | None:
        if value is None:
            return None
        trimmed = str(value).strip()
        if not trimmed:
            return None
        if "\x00" in trimmed:
            msg = "Log file path contains invalid characters"
            raise ValueError(msg)
        return trimmed

    @field_validator("log_truncate_length", mode="before")
    @classmethod
    def _validate_truncate_length(cls, value: Any) -> int:
        try:
            parsed = int(str(value if value not in (None, "") else 1000))
        except ValueError as exc:  # pragma: no cover - defensive
            msg = "Log truncate length must be a valid integer"
            raise ValueError(msg) from exc
        if parsed <= 0:
            msg = "Log truncate length must be positive"
            raise ValueError(msg)
        return parsed
