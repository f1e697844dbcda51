"""CLI tests against a stubbed HTTP layer."""

from __future__ import annotations

import pytest
from typer.testing import CliRunner

from thought_weaver.cli import main as cli


class _Response:
    def __init__(self, status_code: int, payload) -> None:
        self.status_code = status_code
        self.ok = status_code < 400
        self._payload = payload
        self.text = str(payload)

    def json(self):
        return self._payload


@pytest.fixture
def calls(monkeypatch: pytest.MonkeyPatch) -> list[dict]:
    recorded: list[dict] = []

    def fake_request(method, url, timeout, **kwargs):
        recorded.append({"method": method, "url": url, **kwargs})
        if url.endswith("/insights") and kwargs["json"]["userId"] == "limited":
            return _Response(429, {"error": "Too many requests. Please wait before trying again."})
        return _Response(200, {"ok": True})

    monkeypatch.setattr(cli.requests, "request", fake_request)
    monkeypatch.delenv("TW_HOST", raising=False)
    return recorded


def test_insights_posts_request_body(calls) -> None:
    result = CliRunner().invoke(cli.app, ["insights", "--user", "u1", "--app", "a1", "--content", "<p>hi</p>"])

    assert result.exit_code == 0
    assert calls[0]["method"] == "POST"
    assert calls[0]["url"] == "http://127.0.0.1:8080/insights"
    assert calls[0]["json"] == {"userId": "u1", "appId": "a1", "title": None, "content": "<p>hi</p>"}


def test_failed_request_exits_nonzero(calls) -> None:
    result = CliRunner().invoke(cli.app, ["insights", "--user", "limited", "--app", "a1", "--content", "x"])

    assert result.exit_code == 1


def test_reprocess_passes_force_flag(calls) -> None:
    result = CliRunner().invoke(
        cli.app, ["records", "reprocess", "a1", "u1", "note", "n1", "--force", "--host", "http://tw:9000/"]
    )

    assert result.exit_code == 0
    assert calls[0]["url"] == "http://tw:9000/records/a1/u1/note/n1/reprocess"
    assert calls[0]["params"] == {"force": "true"}


def test_put_sends_metadata(calls) -> None:
    result = CliRunner().invoke(
        cli.app,
        [
            "records", "put", "a1", "u1", "file", "f1",
            "--text", "Quarterly numbers",
            "--meta", "name=report.pdf",
            "--meta", "size=1024",
            "--meta", "uploadedAt=2024-01-01",
        ],
    )

    assert result.exit_code == 0
    assert calls[0]["method"] == "PUT"
    assert calls[0]["json"]["metadata"] == {"name": "report.pdf", "size": 1024, "uploadedAt": "2024-01-01"}


def test_put_rejects_malformed_metadata(calls) -> None:
    result = CliRunner().invoke(cli.app, ["records", "put", "a1", "u1", "file", "f1", "--meta", "no-separator"])

    assert result.exit_code != 0
    assert calls == []
