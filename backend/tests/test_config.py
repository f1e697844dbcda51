"""Tests for settings loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from thought_weaver.core.config import Settings


def test_yaml_sections_map_to_fields(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("TW_DB_PATH", raising=False)
    config = tmp_path / "config.yaml"
    config.write_text(
        "storage:\n"
        "  db_path: /tmp/weaver.db\n"
        "insights:\n"
        "  match_threshold: 0.7\n"
        "  match_count: 3\n"
        "generation:\n"
        "  temperature: 0.5\n"
    )

    settings = Settings.from_yaml(config)

    assert settings.db_path == Path("/tmp/weaver.db")
    assert settings.match_threshold == 0.7
    assert settings.match_count == 3
    assert settings.generation_temperature == 0.5
    assert settings.generation_top_k == 32


def test_environment_overrides_yaml(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config = tmp_path / "config.yaml"
    config.write_text("insights:\n  match_count: 3\n")
    monkeypatch.setenv("TW_MATCH_COUNT", "7")

    assert Settings.from_yaml(config).match_count == 7


def test_gemini_key_falls_back_to_standard_variable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("TW_GEMINI_API_KEY", raising=False)
    monkeypatch.setenv("GEMINI_API_KEY", "secret")

    assert Settings.from_yaml().gemini_api_key == "secret"


def test_defaults() -> None:
    settings = Settings()
    assert settings.match_threshold == 0.8
    assert settings.match_count == 5
    assert settings.rate_limit_interval_ms == 60_000
