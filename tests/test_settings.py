from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from docnav.settings import Settings, configure_logging, get_settings


def test_defaults_match_documented_values(monkeypatch):
    for name in (
        "DOCNAV_LINE_TOLERANCE",
        "DOCNAV_CHAPTER_STRIDE",
        "DOCNAV_SECTION_SIZE",
        "DOCNAV_EXCERPT_CONTEXT",
        "DOCNAV_HISTORY_REPLACE_REASONS",
        "DOCNAV_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = Settings()

    assert settings.line_tolerance == 5.0
    assert settings.chapter_stride == 10
    assert settings.section_size == 1000
    assert settings.excerpt_context == 50
    assert settings.history_replace_reasons == frozenset({"snap", "page", "scroll"})
    assert settings.log_level == "INFO"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("DOCNAV_LINE_TOLERANCE", "2.5")
    monkeypatch.setenv("DOCNAV_CHAPTER_STRIDE", "4")
    monkeypatch.setenv("DOCNAV_HISTORY_REPLACE_REASONS", " scroll , ,page")
    monkeypatch.setenv("DOCNAV_LOG_LEVEL", "debug")

    settings = Settings()

    assert settings.line_tolerance == 2.5
    assert settings.chapter_stride == 4
    assert settings.history_replace_reasons == frozenset({"scroll", "page"})
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize(
    "overrides",
    [
        {"line_tolerance": -1.0},
        {"chapter_stride": 0},
        {"section_size": 0},
        {"log_level": "chatty"},
    ],
)
def test_invalid_values_are_rejected(overrides):
    with pytest.raises(ValidationError):
        Settings(**overrides)


def test_negative_excerpt_context_is_clamped():
    assert Settings(excerpt_context=-3).excerpt_context == 0


def test_settings_are_frozen_and_cached(monkeypatch):
    get_settings.cache_clear()
    first = get_settings()

    assert get_settings() is first
    with pytest.raises(ValidationError):
        first.chapter_stride = 3
    get_settings.cache_clear()


def test_configure_logging_applies_level(monkeypatch):
    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))

    configure_logging(Settings(log_level="warning"))

    assert calls[0]["level"] == "WARNING"
