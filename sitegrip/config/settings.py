from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .indexing import IndexingApiConfig, ReconcilerConfig
from .runtime import RuntimeConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppConfig:
    indexing: IndexingApiConfig
    reconciler: ReconcilerConfig
    runtime: RuntimeConfig


class Settings(BaseSettings):
    """Application settings loaded automatically from environment variables.

    Nested models are populated by matching validation_alias on each field.
    """

    model_config = SettingsConfigDict(
        extra="ignore",
        populate_by_name=True,
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    indexing: IndexingApiConfig = Field(default_factory=IndexingApiConfig)
    reconciler: ReconcilerConfig = Field(default_factory=ReconcilerConfig)
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)

    @model_validator(mode="before")
    @classmethod
    def _build_nested_from_env(cls, data: dict[str, Any]) -> dict[str, Any]:
        """Build nested config objects from flat environment variables.

        Constructor arguments take precedence over ``os.environ``.
        """
        if not isinstance(data, dict):
            return data

        result = dict(data)
        merged_source = {**dict(os.environ), **data}

        for field_name, field_info in cls.model_fields.items():
            annotation = field_info.annotation
            if not isinstance(annotation, type) or not issubclass(annotation, BaseModel):
                continue

            nested_data: dict[str, Any] = {}
            nested_model: type[BaseModel] = annotation

            for nested_field_name, nested_field in nested_model.model_fields.items():
                env_value = cls._resolve_env_value(merged_source, nested_field)
                if env_value is not None:
                    nested_data[nested_field_name] = env_value

            if nested_data:
                if field_name in result and isinstance(result[field_name], dict):
                    result[field_name] = {**nested_data, **result[field_name]}
                else:
                    result[field_name] = nested_data

        return result

    @staticmethod
    def _resolve_env_value(data: dict[str, Any], field: Any) -> Any | None:
        """Resolve environment variable value for a field using its aliases."""
        aliases: list[str] = []
        alias = field.validation_alias
        if isinstance(alias, AliasChoices):
            for choice in alias.choices:
                if isinstance(choice, str):
                    aliases.append(choice)
        elif isinstance(alias, str):
            aliases.append(alias)
        if field.alias:
            aliases.append(field.alias)

        for name in aliases:
            if name in data:
                return data[name]
        return None

    def as_app_config(self) -> AppConfig:
        return AppConfig(
            indexing=self.indexing,
            reconciler=self.reconciler,
            runtime=self.runtime,
        )


def load_config(**overrides: Any) -> AppConfig:
    """Load application configuration from environment variables and ``.env``.

    Args:
        **overrides: Per-section dictionaries (``indexing``, ``reconciler``,
            ``runtime``) keyed by field name; they win over the environment.

    Returns:
        Immutable AppConfig instance with all configuration sections.

    Raises:
        RuntimeError: If configuration validation fails.
    """
    try:
        settings = Settings(**overrides)
    except ValidationError as exc:
        msg = f"Configuration validation failed: {exc}"
        raise RuntimeError(msg) from exc

    config = settings.as_app_config()
    if not config.indexing.api_token and not config.indexing.token_cache_path:
        logger.warning(
            "indexing_credentials_missing",
            extra={"hint": "set INDEXING_API_TOKEN or INDEXING_TOKEN_CACHE_PATH"},
        )
    return config
