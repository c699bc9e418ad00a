from __future__ import annotations

from .indexing import DEFAULT_INDEXING_API_URL, IndexingApiConfig, ReconcilerConfig
from .runtime import RuntimeConfig
from .settings import AppConfig, Settings, load_config

__all__ = [
    "DEFAULT_INDEXING_API_URL",
    "AppConfig",
    "IndexingApiConfig",
    "ReconcilerConfig",
    "RuntimeConfig",
    "Settings",
    "load_config",
]
