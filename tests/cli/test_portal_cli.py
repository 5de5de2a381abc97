"""Tests for the portal CLI module."""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest
from click.testing import CliRunner

from dino_ingestor.cli import portal
from dino_ingestor.cli.portal import format_bytes, main
from dino_ingestor.portal.clients import build_http_client as real_build_http_client


class TestFormatBytes:
    """Test suite for format_bytes function."""

    def test_bytes(self):
        assert format_bytes(512) == "512.0B"

    def test_kilobytes(self):
        assert format_bytes(1536) == "1.5KB"

    def test_megabytes(self):
        assert format_bytes(1024 * 1024 * 2) == "2.0MB"

    def test_zero(self):
        assert format_bytes(0) == "0.0B"


def _backend_handler(requests: list[str], *, fail_uploads: bool = False):
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request.url.path)
        path = request.url.path
        if path == "/api/upload":
            if fail_uploads:
                return httpx.Response(500, json={"message": "disk full"})
            return httpx.Response(200, json={"message": "File uploaded successfully"})
        if path == "/api/file-count":
            return httpx.Response(200, json={"fileCount": 1})
        if path == "/api/total-data":
            return httpx.Response(200, json={"totalSize": 2048})
        if path == "/api/submitJob":
            return httpx.Response(200, json={"message": "Job submitted successfully", "data": {}})
        return httpx.Response(
            200,
            json={"totalCost": 3.5, "currency": "USD", "timeframe": "2024-03-01 to 2024-03-31"},
        )

    return handler


@pytest.fixture
def requests_seen(monkeypatch: pytest.MonkeyPatch):
    """Route the CLI's HTTP client through an in-memory backend."""

    seen: list[str] = []
    state = {"fail_uploads": False}

    def _build(settings, **kwargs):
        handler = _backend_handler(seen, fail_uploads=state["fail_uploads"])
        return real_build_http_client(settings, transport=httpx.MockTransport(handler))

    monkeypatch.setattr(portal, "build_http_client", _build)
    return seen, state


@pytest.fixture
def data_file(tmp_path: Path) -> Path:
    path = tmp_path / "orders.txt"
    path.write_bytes(b"x" * 2048)
    return path


def test_upload_json_output(requests_seen, data_file: Path) -> None:
    seen, _ = requests_seen
    runner = CliRunner()

    args = ["upload", "-d", "sales", "-t", "orders", "--json", str(data_file)]
    result = runner.invoke(main, args)

    assert result.exit_code == 0, result.output
    output = json.loads(result.output)
    assert output["aborted"] is False
    assert output["uploads"]["succeeded"] == 1
    assert output["uploads"]["progress"] == [100.0]
    assert output["metrics"]["total_bytes"] == 2048
    assert output["metrics"]["cost"] == 3.5
    assert [n["title"] for n in output["notifications"]] == [
        "File uploaded",
        "Ingested data updated",
        "Job submitted",
        "Cost updated",
    ]
    assert seen[0] == "/api/upload"


def test_upload_prints_summary(requests_seen, data_file: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(main, ["upload", "-d", "sales", "-t", "orders", str(data_file)])

    assert result.exit_code == 0
    assert "File uploaded" in result.output
    assert "INGESTION SUMMARY" in result.output
    assert "Files uploaded:   1/1" in result.output


def test_upload_without_target_makes_no_requests(requests_seen, data_file: Path) -> None:
    seen, _ = requests_seen
    runner = CliRunner()

    result = runner.invoke(main, ["upload", "--json", str(data_file)])

    assert result.exit_code == 1
    assert seen == []
    output = json.loads(result.output)
    assert output["aborted"] is True
    assert output["notifications"][0]["title"] == "Missing information"


def test_upload_failure_exits_non_zero(requests_seen, data_file: Path) -> None:
    _, state = requests_seen
    state["fail_uploads"] = True
    runner = CliRunner()

    args = ["upload", "-d", "sales", "-t", "orders", "--json", str(data_file)]
    result = runner.invoke(main, args)

    assert result.exit_code == 1
    output = json.loads(result.output)
    assert output["uploads"]["failed"] == 1
    assert "disk full" in output["notifications"][0]["body"]
