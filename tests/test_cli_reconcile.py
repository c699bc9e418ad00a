"""Tests for the reconcile command line tool."""

from __future__ import annotations

import json
from unittest.mock import patch

import httpx
import pytest

from sitegrip.cli.reconcile import (
    EXIT_ALL_FAILED,
    EXIT_INPUT_ERROR,
    EXIT_OK,
    format_progress,
    load_entries,
    parse_args,
    run_reconcile_cli,
)
from sitegrip.domain.exceptions import InvalidEntryError
from sitegrip.domain.models import COMPLETED_MARKER, ReconciliationProgress


def _status_handler(tags: dict[str, str]):
    def handler(request: httpx.Request) -> httpx.Response:
        urls = json.loads(request.content)["urls"]
        return httpx.Response(
            200, json={"results": [{"url": url, "status": tags.get(url, "indexed")} for url in urls]}
        )

    return handler


@pytest.fixture
def cli_env(clean_env):
    clean_env.setenv("INDEXING_API_URL", "https://indexing.test")
    clean_env.setenv("INDEXING_API_TOKEN", "tok")
    clean_env.setenv("RECONCILE_BACKOFF", "none")
    with patch("sitegrip.cli.reconcile.setup_json_logging"):
        yield clean_env


def test_load_entries_from_text(tmp_path):
    path = tmp_path / "urls.txt"
    path.write_text(
        "# submitted last week\nhttps://example.com/a\n\n  https://example.com/b  \n",
        encoding="utf-8",
    )

    entries = load_entries(path)

    assert [e.url for e in entries] == ["https://example.com/a", "https://example.com/b"]


def test_load_entries_from_json(tmp_path):
    path = tmp_path / "entries.json"
    path.write_text(
        json.dumps(
            ["https://example.com/a", {"url": "https://example.com/b", "id": "9", "status": "pending"}]
        ),
        encoding="utf-8",
    )

    entries = load_entries(path)

    assert entries[0].url == "https://example.com/a"
    assert entries[1].id == "9"
    assert entries[1].status.value == "pending"


def test_load_entries_rejects_bad_json_items(tmp_path):
    path = tmp_path / "entries.json"
    path.write_text(json.dumps([42]), encoding="utf-8")

    with pytest.raises(InvalidEntryError):
        load_entries(path)


def test_format_progress():
    assert format_progress(ReconciliationProgress(10, 25, "https://x.example")) == (
        "[10/25] checking https://x.example"
    )
    assert format_progress(ReconciliationProgress(25, 25, COMPLETED_MARKER)) == "[25/25] done"


@pytest.mark.asyncio
async def test_run_prints_summary_and_writes_output(cli_env, tmp_path, capsys):
    entries = tmp_path / "urls.txt"
    entries.write_text(
        "\n".join(f"https://example.com/{i}" for i in range(12)), encoding="utf-8"
    )
    output = tmp_path / "out.json"
    args = parse_args([str(entries), "--output", str(output)])
    handler = _status_handler({"https://example.com/3": "not_indexed"})

    code = await run_reconcile_cli(args, transport=httpx.MockTransport(handler))

    assert code == EXIT_OK
    printed = capsys.readouterr().out
    assert "[0/12] checking https://example.com/0" in printed
    assert "[10/12] checking https://example.com/10" in printed
    assert "[12/12] done" in printed
    assert "Checked 12 URLs: 11 indexed, 0 pending, 1 not indexed, 0 errors" in printed

    written = json.loads(output.read_text(encoding="utf-8"))
    assert len(written) == 12
    assert written[3]["status"] == "not_indexed"
    assert written[0]["status_label"] == "✅ Indexed"


@pytest.mark.asyncio
async def test_json_output(cli_env, tmp_path, capsys):
    entries = tmp_path / "urls.txt"
    entries.write_text("https://example.com/a\n", encoding="utf-8")
    args = parse_args([str(entries), "--json"])

    code = await run_reconcile_cli(args, transport=httpx.MockTransport(_status_handler({})))

    assert code == EXIT_OK
    payload = json.loads(capsys.readouterr().out)
    assert payload["summary"] == {
        "total": 1,
        "indexed": 1,
        "pending": 0,
        "errors": 0,
        "notIndexed": 0,
    }


@pytest.mark.asyncio
async def test_all_failed_exit_code(cli_env, tmp_path):
    cli_env.setenv("INDEXING_API_MAX_RETRIES", "0")
    entries = tmp_path / "urls.txt"
    entries.write_text("https://example.com/a\nhttps://example.com/b\n", encoding="utf-8")
    args = parse_args([str(entries)])

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"detail": "token expired"})

    code = await run_reconcile_cli(args, transport=httpx.MockTransport(handler))

    assert code == EXIT_ALL_FAILED


@pytest.mark.asyncio
async def test_missing_input_file(cli_env, tmp_path):
    args = parse_args([str(tmp_path / "missing.txt")])

    assert await run_reconcile_cli(args) == EXIT_INPUT_ERROR


@pytest.mark.asyncio
async def test_invalid_cli_override(cli_env, tmp_path):
    entries = tmp_path / "urls.txt"
    entries.write_text("https://example.com/a\n", encoding="utf-8")
    args = parse_args([str(entries), "--batch-size", "0"])

    assert await run_reconcile_cli(args) == EXIT_INPUT_ERROR


@pytest.mark.asyncio
async def test_entry_without_url(cli_env, tmp_path):
    entries = tmp_path / "entries.json"
    entries.write_text(json.dumps([{"id": "1"}]), encoding="utf-8")
    args = parse_args([str(entries)])

    assert await run_reconcile_cli(args) == EXIT_INPUT_ERROR


@pytest.mark.asyncio
@pytest.mark.parametrize("source", ["flag", "env"])
async def test_batch_size_above_backend_limit_is_rejected(cli_env, tmp_path, source):
    entries = tmp_path / "urls.txt"
    entries.write_text(
        "\n".join(f"https://example.com/{i}" for i in range(15)), encoding="utf-8"
    )
    argv = [str(entries)]
    if source == "flag":
        argv += ["--batch-size", "20"]
    else:
        cli_env.setenv("RECONCILE_BATCH_SIZE", "20")
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return _status_handler({})(request)

    code = await run_reconcile_cli(parse_args(argv), transport=httpx.MockTransport(handler))

    assert code == EXIT_INPUT_ERROR
    assert requests == []


@pytest.mark.asyncio
async def test_batch_size_override_sets_group_size(cli_env, tmp_path, capsys):
    entries = tmp_path / "urls.txt"
    entries.write_text(
        "\n".join(f"https://example.com/{i}" for i in range(12)), encoding="utf-8"
    )
    sizes: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        sizes.append(len(json.loads(request.content)["urls"]))
        return _status_handler({})(request)

    code = await run_reconcile_cli(
        parse_args([str(entries), "--batch-size", "5"]), transport=httpx.MockTransport(handler)
    )

    assert code == EXIT_OK
    assert sizes == [5, 5, 2]
    assert "Checked 12 URLs: 12 indexed" in capsys.readouterr().out
