"""Tests for URL helpers."""

from __future__ import annotations

import unittest

import pytest

from sitegrip.core.url_utils import chunked, extract_domain, validate_url


class TestValidateUrl(unittest.TestCase):
    def test_accepts_http_and_https(self):
        assert validate_url("https://example.com/page")
        assert validate_url("http://sub.example.com:8080/a?b=c")

    def test_rejects_other_inputs(self):
        for url in ("", "example.com", "ftp://example.com", "https://", "https://exa\nmple.com", None):
            with self.subTest(url=url):
                assert not validate_url(url)

    def test_rejects_overlong_url(self):
        assert not validate_url("https://example.com/" + "a" * 2100)


class TestExtractDomain(unittest.TestCase):
    def test_lowercases_hostname(self):
        assert extract_domain("https://WWW.Example.COM/path") == "www.example.com"

    def test_unknown_when_missing(self):
        assert extract_domain("not a url") == "unknown"
        assert extract_domain("") == "unknown"


class TestChunked(unittest.TestCase):
    def test_splits_into_groups(self):
        assert list(chunked(list(range(25)), 10)) == [
            list(range(10)),
            list(range(10, 20)),
            list(range(20, 25)),
        ]

    def test_empty_input(self):
        assert list(chunked([], 10)) == []

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            list(chunked([1, 2], 0))
