from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from sitegrip.core.backoff import BACKOFF_POLICIES

logger = logging.getLogger(__name__)

DEFAULT_INDEXING_API_URL = "https://webwatch-api-pu22v4ao5a-uc.a.run.app"

# The backend rejects status checks for more URLs than this in one call
MAX_RECONCILE_BATCH_SIZE = 10


class IndexingApiConfig(BaseModel):
    """Indexing backend connection settings."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    api_url: str = Field(
        default=DEFAULT_INDEXING_API_URL,
        validation_alias="INDEXING_API_URL",
        description="Base URL of the indexing backend",
    )
    api_token: str = Field(
        default="",
        validation_alias="INDEXING_API_TOKEN",
        description="Bearer token; takes precedence over the cached session file",
    )
    token_cache_path: str | None = Field(
        default=None,
        validation_alias="INDEXING_TOKEN_CACHE_PATH",
        description="Path to a locally cached session JSON file holding the token",
    )
    user_id: str | None = Field(
        default=None,
        validation_alias="INDEXING_USER_ID",
        description="User id sent with submission and listing calls",
    )
    timeout_sec: float = Field(
        default=30.0,
        validation_alias="INDEXING_API_TIMEOUT_SEC",
        description="Default HTTP timeout in seconds",
    )
    max_retries: int = Field(
        default=2,
        validation_alias="INDEXING_API_MAX_RETRIES",
        description="Retries for transient HTTP failures",
    )

    @field_validator("api_url", mode="before")
    @classmethod
    def _validate_api_url(cls, value: Any) -> str:
        url = str(value or DEFAULT_INDEXING_API_URL).strip()
        if not url:
            return DEFAULT_INDEXING_API_URL
        if not url.startswith(("http://", "https://")):
            msg = "Indexing API URL must start with http:// or https://"
            raise ValueError(msg)
        return url.rstrip("/")

    @field_validator("api_token", mode="before")
    @classmethod
    def _validate_api_token(cls, value: Any) -> str:
        if value in (None, ""):
            return ""
        token = str(value).strip()
        if len(token) > 4096:
            msg = "Indexing API token appears to be too long"
            raise ValueError(msg)
        if any(char in token for char in [" ", "\n", "\t"]):
            msg = "Indexing API token contains invalid characters"
            raise ValueError(msg)
        return token

    @field_validator("token_cache_path", "user_id", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> str | None:
        if value is None:
            return None
        trimmed = str(value).strip()
        return trimmed or None

    @field_validator("timeout_sec", mode="before")
    @classmethod
    def _validate_timeout(cls, value: Any) -> float:
        if value in (None, ""):
            return 30.0
        try:
            parsed = float(str(value))
        except ValueError as exc:
            msg = "Timeout must be a valid number"
            raise ValueError(msg) from exc
        if parsed <= 0 or parsed > 600:
            msg = "Timeout must be between 0 and 600 seconds"
            raise ValueError(msg)
        return parsed

    @field_validator("max_retries", mode="before")
    @classmethod
    def _validate_max_retries(cls, value: Any) -> int:
        if value in (None, ""):
            return 2
        try:
            parsed = int(str(value))
        except ValueError as exc:
            msg = "Max retries must be a valid integer"
            raise ValueError(msg) from exc
        if parsed < 0 or parsed > 10:
            msg = "Max retries must be between 0 and 10"
            raise ValueError(msg)
        return parsed


class ReconcilerConfig(BaseModel):
    """Batch status reconciliation settings."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    batch_size: int = Field(default=10, validation_alias="RECONCILE_BATCH_SIZE")
    batch_delay_sec: float = Field(default=1.0, validation_alias="RECONCILE_BATCH_DELAY_SEC")
    backoff: str = Field(default="fixed", validation_alias="RECONCILE_BACKOFF")
    batch_timeout_sec: float | None = Field(
        default=None,
        validation_alias="RECONCILE_BATCH_TIMEOUT_SEC",
        description="Per-batch timeout; unset means the batch call is not bounded",
    )

    @field_validator("batch_size", mode="before")
    @classmethod
    def _validate_batch_size(cls, value: Any) -> int:
        if value in (None, ""):
            return 10
        try:
            parsed = int(str(value))
        except ValueError as exc:
            msg = "Batch size must be a valid integer"
            raise ValueError(msg) from exc
        if parsed < 1 or parsed > MAX_RECONCILE_BATCH_SIZE:
            msg = f"Batch size must be between 1 and {MAX_RECONCILE_BATCH_SIZE}"
            raise ValueError(msg)
        return parsed

    @field_validator("batch_delay_sec", mode="before")
    @classmethod
    def _validate_delay(cls, value: Any, info: ValidationInfo) -> float:
        if value in (None, ""):
            return float(cls.model_fields[info.field_name].default)
        try:
            parsed = float(str(value))
        except ValueError as exc:
            msg = f"{info.field_name.replace('_', ' ')} must be a valid number"
            raise ValueError(msg) from exc
        if parsed < 0 or parsed > 300:
            msg = f"{info.field_name.replace('_', ' ').capitalize()} must be between 0 and 300"
            raise ValueError(msg)
        return parsed

    @field_validator("backoff", mode="before")
    @classmethod
    def _validate_backoff(cls, value: Any) -> str:
        name = str(value or "fixed").strip().lower()
        if name not in BACKOFF_POLICIES:
            msg = f"Invalid backoff policy: {value}. Must be one of {BACKOFF_POLICIES}"
            raise ValueError(msg)
        return name

    @field_validator("batch_timeout_sec", mode="before")
    @classmethod
    def _validate_batch_timeout(cls, value: Any) -> float | None:
        if value in (None, ""):
            return None
        try:
            parsed = float(str(value))
        except ValueError as exc:
            msg = "Batch timeout must be a valid number"
            raise ValueError(msg) from exc
        if parsed <= 0:
            msg = "Batch timeout must be positive"
            raise ValueError(msg)
        if parsed > 3600:
            msg = "Batch timeout too large (max 3600 seconds)"
            raise ValueError(msg)
        return parsed
