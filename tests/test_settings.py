"""Tests for settings and configuration."""

import pytest
from pydantic import ValidationError

from newsbrief.models.settings import Settings


def test_settings_defaults(monkeypatch):
    """Test that settings have proper default values."""
    for var in ("OPENROUTER_API_KEY", "RSS_FEEDS", "DEBUG", "LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)

    settings = Settings(_env_file=None)
    assert settings.debug is False
    assert settings.log_level == "INFO"
    assert settings.openrouter_api_key is None
    assert settings.ai_fallback_enabled is False
    assert settings.signing_params_timeout == 10.0
    assert settings.batch_execute_timeout == 15.0
    assert settings.article_fetch_timeout == 15.0
    assert settings.scrape_request_delay == 0.5
    assert settings.aggregator_locale == "KR:ko"
    assert settings.accept_language.startswith("ko-KR")


def test_settings_from_env(monkeypatch):
    """Test that settings are loaded from environment variables."""
    monkeypatch.setenv("OPENROUTER_API_KEY", "test_openrouter_key")
    monkeypatch.setenv("DEBUG", "true")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("SCRAPE_REQUEST_DELAY", "2")

    settings = Settings(_env_file=None)
    assert settings.openrouter_api_key == "test_openrouter_key"
    assert settings.ai_fallback_enabled is True
    assert settings.debug is True
    assert settings.log_level == "DEBUG"
    assert settings.scrape_request_delay == 2.0


def test_settings_case_insensitive(monkeypatch):
    """Test that environment variable names are case insensitive."""
    monkeypatch.setenv("openrouter_model", "openai/gpt-4o-mini")

    settings = Settings(_env_file=None)
    assert settings.openrouter_model == "openai/gpt-4o-mini"


@pytest.mark.parametrize(
    "field,value",
    [
        ("log_level", "LOUD"),
        ("scrape_request_delay", -1),
        ("article_fetch_timeout", 0),
        ("ai_fallback_max_html_chars", 10),
    ],
)
def test_settings_validation(field, value):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **{field: value})


def test_feed_entries_parses_categories():
    settings = Settings(
        _env_file=None,
        rss_feeds=(
            "economy=https://news.google.com/rss/topics/ECON?hl=ko, "
            "https://example.com/feed.xml,"
            " ,https://example.com/search?q=a=b"
        ),
    )

    assert settings.feed_entries() == [
        ("economy", "https://news.google.com/rss/topics/ECON?hl=ko"),
        ("general", "https://example.com/feed.xml"),
        ("general", "https://example.com/search?q=a=b"),
    ]


def test_feed_entries_empty():
    assert Settings(_env_file=None, rss_feeds=None).feed_entries() == []
