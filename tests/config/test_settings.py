from __future__ import annotations

from pathlib import Path

import pytest

from oncall_planner.config import Settings, SettingsManager


_KEYS = ("API_URL", "TIMEZONE", "USER_AGENT", "PREVIEW_DEBOUNCE_MS", "REQUEST_TIMEOUT")


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _KEYS:
        monkeypatch.delenv(f"ONCALL_PLANNER_{key}", raising=False)


def test_defaults_without_env_file(tmp_path: Path) -> None:
    settings = SettingsManager(tmp_path / "missing.env").load()

    assert settings == Settings()
    assert settings.preview_debounce_seconds == pytest.approx(0.2)
    assert settings.is_configured


def test_environment_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ONCALL_PLANNER_API_URL", "https://oncall.example.com/api/v1/")
    monkeypatch.setenv("ONCALL_PLANNER_TIMEZONE", "Asia/Tokyo")
    monkeypatch.setenv("ONCALL_PLANNER_PREVIEW_DEBOUNCE_MS", "350")

    settings = SettingsManager(tmp_path / "missing.env").load()

    assert settings.api_url == "https://oncall.example.com/api/v1"
    assert settings.timezone == "Asia/Tokyo"
    assert settings.preview_debounce_seconds == pytest.approx(0.35)


def test_invalid_numbers_fall_back_to_defaults(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("ONCALL_PLANNER_PREVIEW_DEBOUNCE_MS", "soon")
    monkeypatch.setenv("ONCALL_PLANNER_REQUEST_TIMEOUT", "forever")

    settings = SettingsManager(tmp_path / "missing.env").load()

    assert settings.preview_debounce_ms == 200
    assert settings.request_timeout == 30.0


def test_save_then_load_round_trip(tmp_path: Path) -> None:
    env_file = tmp_path / "config" / "settings.env"
    manager = SettingsManager(env_file)
    original = Settings(
        api_url="https://oncall.example.com/api/internal/v1",
        timezone="America/New_York",
        preview_debounce_ms=150,
        request_timeout=12.5,
    )

    manager.save(original)

    assert env_file.exists()
    assert SettingsManager(env_file).load() == original


def test_negative_debounce_is_clamped() -> None:
    assert Settings(preview_debounce_ms=-10).preview_debounce_seconds == 0
