"""Tests for sinalverde.config.settings."""

import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

_ENV_KEYS = ("HOST", "PORT", "API_KEY", "AUTH_DIR", "LOG_LEVEL", "AUTO_CONNECT", "BROWSER_NAME")


class TestSettings:
    """Test the Settings pydantic-settings class."""

    @pytest.fixture(autouse=True)
    def _clean_env(self, monkeypatch, tmp_path):
        for key in _ENV_KEYS:
            monkeypatch.delenv(key, raising=False)
        # keep a developer's .env out of the way
        monkeypatch.chdir(tmp_path)

    def _make(self, **kwargs):
        from sinalverde.config.settings import Settings
        return Settings(**kwargs)

    # -- defaults --

    def test_defaults(self):
        s = self._make()
        assert s.HOST == "0.0.0.0"
        assert s.PORT == 3001
        assert s.API_KEY == "sinalverde-whatsapp-key-2026"
        assert s.AUTH_DIR == Path("./auth_data")
        assert s.AUTO_CONNECT is True
        assert s.BROWSER_NAME == "SinalVerde"
        assert s.LOG_LEVEL == "WARNING"
        assert s.log_level_value == logging.WARNING

    # -- LOG_LEVEL --

    @pytest.mark.parametrize("raw, expected", [
        ("warn", "WARNING"),
        ("debug", "DEBUG"),
        (" Info ", "INFO"),
        ("ERROR", "ERROR"),
    ])
    def test_log_level_normalized(self, raw, expected):
        assert self._make(LOG_LEVEL=raw).LOG_LEVEL == expected

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            self._make(LOG_LEVEL="loud")

    # -- API_KEY --

    def test_empty_api_key_rejected(self):
        with pytest.raises(ValidationError):
            self._make(API_KEY="")

    # -- environment --

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("PORT", "8080")
        monkeypatch.setenv("API_KEY", "secret")
        monkeypatch.setenv("AUTH_DIR", "/var/lib/sinalverde")
        monkeypatch.setenv("AUTO_CONNECT", "false")
        s = self._make()
        assert s.PORT == 8080
        assert s.API_KEY == "secret"
        assert s.AUTH_DIR == Path("/var/lib/sinalverde")
        assert s.AUTO_CONNECT is False

    def test_dotenv_file(self, tmp_path):
        (tmp_path / ".env").write_text("API_KEY=from-dotenv\nLOG_LEVEL=debug\n")
        s = self._make()
        assert s.API_KEY == "from-dotenv"
        assert s.LOG_LEVEL == "DEBUG"


class TestConfigureLogging:
    def test_sets_root_level(self):
        from sinalverde.config import configure_logging

        root = logging.getLogger()
        previous = root.level
        try:
            configure_logging(logging.DEBUG)
            assert root.level == logging.DEBUG
        finally:
            configure_logging(previous)
