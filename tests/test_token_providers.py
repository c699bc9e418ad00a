"""Tests for bearer token providers."""

from __future__ import annotations

import json
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory

import pytest

from sitegrip.adapters.indexing.auth import (
    ANONYMOUS_USER_ID,
    CachedSessionTokenProvider,
    StaticTokenProvider,
    TokenProvider,
    build_token_provider,
)
from sitegrip.domain.exceptions import IndexingAuthError


class TestStaticTokenProvider(unittest.IsolatedAsyncioTestCase):
    async def test_returns_trimmed_token(self):
        provider = StaticTokenProvider("  abc  ")
        assert await provider.get_token() == "abc"
        assert provider.user_id == ANONYMOUS_USER_ID

    async def test_empty_token_raises(self):
        with pytest.raises(IndexingAuthError):
            await StaticTokenProvider("").get_token()


class TestCachedSessionTokenProvider(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self._tmp = TemporaryDirectory()
        self.path = Path(self._tmp.name) / "session.json"

    def tearDown(self):
        self._tmp.cleanup()

    def _write(self, data) -> None:
        self.path.write_text(json.dumps(data), encoding="utf-8")

    async def test_flat_token(self):
        self._write({"token": "flat", "uid": "u-1"})
        provider = CachedSessionTokenProvider(self.path)

        assert await provider.get_token() == "flat"
        assert provider.user_id == "u-1"

    async def test_firebase_style_session(self):
        self._write({"user": {"uid": "u-2", "stsTokenManager": {"accessToken": "nested"}}})
        provider = CachedSessionTokenProvider(self.path)

        assert await provider.get_token() == "nested"
        assert provider.user_id == "u-2"

    async def test_file_is_reread_on_every_call(self):
        self._write({"accessToken": "first"})
        provider = CachedSessionTokenProvider(self.path)
        assert await provider.get_token() == "first"

        self._write({"accessToken": "second"})
        assert await provider.get_token() == "second"

    async def test_missing_file(self):
        provider = CachedSessionTokenProvider(self.path)

        with pytest.raises(IndexingAuthError):
            await provider.get_token()
        assert provider.user_id == ANONYMOUS_USER_ID

    async def test_file_without_token(self):
        self._write({"user": {"uid": "u-3"}})

        with pytest.raises(IndexingAuthError):
            await CachedSessionTokenProvider(self.path).get_token()

    async def test_corrupt_file(self):
        self.path.write_text("{not json", encoding="utf-8")

        with pytest.raises(IndexingAuthError):
            await CachedSessionTokenProvider(self.path).get_token()


class TestBuildTokenProvider(unittest.TestCase):
    def test_explicit_token_wins(self):
        provider = build_token_provider("tok", "/tmp/session.json", user_id="u")
        assert isinstance(provider, StaticTokenProvider)
        assert provider.user_id == "u"

    def test_cache_path_used_without_token(self):
        provider = build_token_provider(None, "/tmp/session.json")
        assert isinstance(provider, CachedSessionTokenProvider)
        assert isinstance(provider, TokenProvider)

    def test_nothing_configured(self):
        assert isinstance(build_token_provider("", None), StaticTokenProvider)
