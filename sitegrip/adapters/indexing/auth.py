"""Bearer token providers for the indexing client.

The client asks its provider for a token before every call; refreshing
expired tokens is the job of whoever writes the session file.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from sitegrip.domain.exceptions import IndexingAuthError

logger = logging.getLogger(__name__)

ANONYMOUS_USER_ID = "anonymous-user"


@runtime_checkable
class TokenProvider(Protocol):
    async def get_token(self) -> str: ...


class StaticTokenProvider:
    """Always returns the token it was built with."""

    def __init__(self, token: str, user_id: str | None = None) -> None:
        self._token = token.strip() if token else ""
        self.user_id = user_id or ANONYMOUS_USER_ID

    async def get_token(self) -> str:
        if not self._token:
            raise IndexingAuthError("No indexing API token configured")
        return self._token


class CachedSessionTokenProvider:
    """Reads the token from a locally cached session JSON file.

    Accepted layouts::

        {"token": "..."}
        {"accessToken": "..."}
        {"user": {"uid": "...", "stsTokenManager": {"accessToken": "..."}}}
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()

    def _load(self) -> dict[str, Any]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise IndexingAuthError(f"Session file not found: {self.path}") from exc
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning(
                "session_file_unreadable", extra={"path": str(self.path), "error": str(exc)}
            )
            raise IndexingAuthError(f"Session file is unreadable: {self.path}") from exc
        if not isinstance(data, dict):
            raise IndexingAuthError(f"Session file has an unexpected layout: {self.path}")
        return data

    @staticmethod
    def _find_token(data: dict[str, Any]) -> str | None:
        for key in ("token", "accessToken", "access_token", "idToken"):
            value = data.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
        user = data.get("user")
        if isinstance(user, dict):
            manager = user.get("stsTokenManager")
            if isinstance(manager, dict):
                value = manager.get("accessToken")
                if isinstance(value, str) and value.strip():
                    return value.strip()
            return CachedSessionTokenProvider._find_token(
                {k: v for k, v in user.items() if k != "user"}
            )
        return None

    async def get_token(self) -> str:
        token = self._find_token(self._load())
        if not token:
            raise IndexingAuthError(f"No token found in session file: {self.path}")
        return token

    @property
    def user_id(self) -> str:
        try:
            data = self._load()
        except IndexingAuthError:
            return ANONYMOUS_USER_ID
        user = data.get("user")
        if isinstance(user, dict) and user.get("uid"):
            return str(user["uid"])
        if data.get("uid"):
            return str(data["uid"])
        return ANONYMOUS_USER_ID


def build_token_provider(
    token: str | None,
    cache_path: str | None,
    user_id: str | None = None,
) -> TokenProvider:
    """Prefer an explicit token; fall back to the cached session file."""
    if token:
        return StaticTokenProvider(token, user_id=user_id)
    if cache_path:
        return CachedSessionTokenProvider(cache_path)
    return StaticTokenProvider("", user_id=user_id)
