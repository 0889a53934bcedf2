"""Tests for httpweave settings."""

import pytest
from pydantic import ValidationError

from httpweave.config import HttpWeaveSettings, get_settings


def test_defaults(monkeypatch):
    monkeypatch.delenv("HTTPWEAVE_USER_AGENT", raising=False)
    monkeypatch.delenv("HTTPWEAVE_LOG_LEVEL", raising=False)
    settings = HttpWeaveSettings(_env_file=None)
    assert settings.user_agent == "httpweave/0.1.0"
    assert settings.default_timeout is None
    assert settings.follow_redirects is False
    assert settings.max_redirects == 20
    assert settings.verify_ssl is True
    assert settings.log_level == "INFO"


def test_environment_variables_use_the_prefix(monkeypatch):
    """Test settings are read from HTTPWEAVE_ prefixed variables."""
    monkeypatch.setenv("HTTPWEAVE_USER_AGENT", "env-agent/1.0")
    monkeypatch.setenv("HTTPWEAVE_DEFAULT_TIMEOUT", "2.5")
    monkeypatch.setenv("httpweave_follow_redirects", "true")
    monkeypatch.setenv("HTTPWEAVE_MAX_REDIRECTS", "3")

    settings = HttpWeaveSettings(_env_file=None)

    assert settings.user_agent == "env-agent/1.0"
    assert settings.default_timeout == 2.5
    assert settings.follow_redirects is True
    assert settings.max_redirects == 3


@pytest.mark.parametrize(
    "overrides", [{"default_timeout": 0}, {"default_timeout": -1}, {"max_redirects": -1}]
)
def test_invalid_values_are_rejected(overrides):
    with pytest.raises(ValidationError):
        HttpWeaveSettings(_env_file=None, **overrides)


def test_get_settings_is_cached(monkeypatch):
    get_settings.cache_clear()
    monkeypatch.setenv("HTTPWEAVE_USER_AGENT", "cached/1.0")
    try:
        first = get_settings()
        monkeypatch.setenv("HTTPWEAVE_USER_AGENT", "changed/2.0")
        assert get_settings() is first
        assert first.user_agent == "cached/1.0"
    finally:
        get_settings.cache_clear()
