"""Tests for validation of status-check responses."""

from __future__ import annotations

import unittest

import pytest

from sitegrip.adapters.indexing.parsing import parse_check_status_payload
from sitegrip.domain.exceptions import MalformedResponseError

URLS = ["https://example.com/a", "https://example.com/b"]


class TestPayloadShape(unittest.TestCase):
    def test_non_object_payload_is_rejected(self):
        with pytest.raises(MalformedResponseError):
            parse_check_status_payload([{"url": URLS[0], "status": "indexed"}], URLS)

    def test_missing_results_list_is_rejected(self):
        with pytest.raises(MalformedResponseError):
            parse_check_status_payload({"data": []}, URLS)

    def test_results_must_be_a_list(self):
        with pytest.raises(MalformedResponseError):
            parse_check_status_payload({"results": {"url": URLS[0]}}, URLS)


class TestRecordMatching(unittest.TestCase):
    def test_matches_by_url_regardless_of_order(self):
        payload = {
            "results": [
                {"url": URLS[1], "status": "pending"},
                {"url": URLS[0], "status": "indexed"},
            ]
        }

        records = parse_check_status_payload(payload, URLS)

        assert [r.url for r in records] == URLS
        assert [r.status_tag for r in records] == ["indexed", "pending"]

    def test_positional_fallback_when_urls_absent(self):
        payload = {"results": [{"status": "indexed"}, {"status": "not_indexed"}]}

        records = parse_check_status_payload(payload, URLS)

        assert [r.status_tag for r in records] == ["indexed", "not_indexed"]
        assert [r.url for r in records] == URLS

    def test_no_positional_fallback_when_lengths_differ(self):
        payload = {"results": [{"status": "indexed"}]}

        records = parse_check_status_payload(payload, URLS)

        assert records == [None, None]

    def test_unrequested_url_falls_back_to_position(self):
        payload = {
            "results": [
                {"url": URLS[0] + "/", "status": "indexed"},
                {"url": URLS[1], "status": "pending"},
            ]
        }

        records = parse_check_status_payload(payload, URLS)

        assert [r.url for r in records] == URLS
        assert [r.status_tag for r in records] == ["indexed", "pending"]

    def test_unrequested_url_not_used_when_lengths_differ(self):
        payload = {"results": [{"url": URLS[0] + "/", "status": "indexed"}]}

        records = parse_check_status_payload(payload, URLS)

        assert records == [None, None]

    def test_missing_url_gets_empty_slot(self):
        payload = {"results": [{"url": URLS[0], "status": "indexed"}]}

        records = parse_check_status_payload(payload, URLS)

        assert records[0].status_tag == "indexed"
        assert records[1] is None

    def test_non_object_item_is_rejected_individually(self):
        payload = {"results": ["oops", {"url": URLS[1], "status": "pending"}]}

        records = parse_check_status_payload(payload, URLS)

        assert records[0] is None
        assert records[1].status_tag == "pending"

    def test_duplicate_urls_consume_records_in_order(self):
        url = URLS[0]
        payload = {
            "results": [
                {"url": url, "status": "pending"},
                {"url": url, "status": "indexed"},
            ]
        }

        records = parse_check_status_payload(payload, [url, url, url])

        assert [r.status_tag for r in records] == ["pending", "indexed", "indexed"]


class TestRecordContents(unittest.TestCase):
    def test_camel_case_and_nested_inspection(self):
        payload = {
            "results": [
                {
                    "inspectionUrl": URLS[0],
                    "indexingStatus": "indexed",
                    "coverageState": "top-level",
                    "inspectionResult": {
                        "indexStatusResult": {
                            "coverageState": "Submitted and indexed",
                            "lastCrawlTime": "2025-06-10T08:15:00Z",
                            "googleCanonical": URLS[0],
                        }
                    },
                    "indexing_details": {"crawledAs": "MOBILE", "pageFetchState": "SUCCESSFUL"},
                }
            ]
        }

        (record,) = parse_check_status_payload(payload, [URLS[0]])

        assert record.status_tag == "indexed"
        assert record.metadata.coverage_state == "Submitted and indexed"
        assert record.metadata.last_crawl_time == "2025-06-10T08:15:00Z"
        assert record.metadata.google_canonical == URLS[0]
        assert record.metadata.crawled_as == "MOBILE"
        assert record.metadata.page_fetch_state == "SUCCESSFUL"
        assert record.error is None

    def test_error_signals(self):
        payload = {
            "results": [
                {"url": URLS[0], "status": "indexed", "error": {"message": "quota exceeded"}},
                {"url": URLS[1], "status": "indexed", "success": False},
            ]
        }

        records = parse_check_status_payload(payload, URLS)

        assert records[0].error == "quota exceeded"
        assert records[1].error == "Backend reported a failed status check"

    def test_false_error_field_is_ignored(self):
        payload = {"results": [{"url": URLS[0], "status": "pending", "error": False}]}

        (record, _missing) = parse_check_status_payload(payload, URLS)

        assert record.error is None
