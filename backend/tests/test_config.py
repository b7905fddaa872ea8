from __future__ import annotations

import pytest

from study_planner.config import Settings, get_settings

_ENV_VARS = (
    "STUDY_PLANNER_MAX_MINUTES_PER_WEEK",
    "STUDY_PLANNER_MAX_MODULES_PER_WEEK",
    "STUDY_PLANNER_CATALOG_PATH",
    "STUDY_PLANNER_LOG_LEVEL",
)


def _clear_env(monkeypatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults(monkeypatch) -> None:
    _clear_env(monkeypatch)
    settings = Settings()

    assert settings.max_minutes_per_week == 25
    assert settings.max_modules_per_week == 3
    assert settings.catalog_path is None
    assert settings.log_level == "INFO"


def test_environment_overrides(monkeypatch) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("STUDY_PLANNER_MAX_MINUTES_PER_WEEK", "40")
    monkeypatch.setenv("STUDY_PLANNER_MAX_MODULES_PER_WEEK", "4")
    monkeypatch.setenv("STUDY_PLANNER_CATALOG_PATH", "/srv/catalog.json")
    monkeypatch.setenv("STUDY_PLANNER_LOG_LEVEL", "DEBUG")
    settings = Settings()

    assert settings.max_minutes_per_week == 40
    assert settings.max_modules_per_week == 4
    assert settings.catalog_path == "/srv/catalog.json"
    assert settings.log_level == "DEBUG"


def test_get_settings_is_cached(monkeypatch) -> None:
    _clear_env(monkeypatch)
    get_settings.cache_clear()
    try:
        assert get_settings() is get_settings()
    finally:
        get_settings.cache_clear()


def test_invalid_configuration_fails_at_startup(monkeypatch) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("STUDY_PLANNER_MAX_MINUTES_PER_WEEK", "0")
    get_settings.cache_clear()
    try:
        with pytest.raises(RuntimeError, match="Invalid study planner configuration"):
            get_settings()
    finally:
        get_settings.cache_clear()
