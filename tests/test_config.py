"""Tests for settings and logging configuration."""

import json
import logging
import sys

import pytest
from pydantic import ValidationError

sys.path.insert(0, "src")

from feature_detect.config.logging import JSONFormatter, TextFormatter, configure_logging
from feature_detect.config.settings import Settings, get_settings


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Put the root logger back after each test."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestSettings:
    """Tests for Settings."""

    def test_default_values(self):
        """Settings have the detection defaults."""
        settings = Settings()
        assert settings.feature_cookie_name == "d"
        assert settings.default_width == 1024
        assert settings.default_height == 768
        assert settings.log_format == "text"

    def test_env_override(self, monkeypatch):
        """Environment variables override defaults."""
        monkeypatch.setenv("DEFAULT_WIDTH", "1366")
        monkeypatch.setenv("FEATURE_COOKIE_NAME", "features")
        settings = Settings()
        assert settings.default_width == 1366
        assert settings.feature_cookie_name == "features"

    @pytest.mark.parametrize("field", ["default_width", "default_height"])
    def test_rejects_non_positive_dimensions(self, field):
        """Dimensions must be positive."""
        with pytest.raises(ValidationError):
            Settings(**{field: 0})

    def test_rejects_empty_cookie_name(self):
        """Cookie name cannot be empty."""
        with pytest.raises(ValidationError):
            Settings(feature_cookie_name="")

    def test_log_format_normalized(self):
        """Log format is case-insensitive."""
        assert Settings(log_format="JSON").log_format == "json"

    def test_rejects_unknown_log_format(self):
        """Unknown log formats are rejected."""
        with pytest.raises(ValidationError):
            Settings(log_format="xml")

    def test_get_settings_cached(self):
        """get_settings returns one shared instance."""
        get_settings.cache_clear()
        assert get_settings() is get_settings()
        get_settings.cache_clear()


class TestLogging:
    """Tests for logging configuration."""

    def _record(self, **extra) -> logging.LogRecord:
        record = logging.LogRecord(
            name="feature_detect.test",
            level=logging.INFO,
            pathname=__file__,
            lineno=1,
            msg="parsed %d values",
            args=(3,),
            exc_info=None,
        )
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_json_formatter(self):
        """JSON formatter emits the standard fields."""
        data = json.loads(JSONFormatter().format(self._record()))
        assert data["level"] == "INFO"
        assert data["logger"] == "feature_detect.test"
        assert data["message"] == "parsed 3 values"
        assert data["timestamp"].endswith("Z")

    def test_json_formatter_extra_fields(self):
        """Request fields passed as extra are included."""
        record = self._record(path="/gallery", cookie_name="d", request_id="abc")
        data = json.loads(JSONFormatter().format(record))
        assert data["path"] == "/gallery"
        assert data["cookie_name"] == "d"
        assert data["request_id"] == "abc"
        assert "method" not in data

    def test_json_formatter_exception(self):
        """Exception text is included."""
        try:
            raise ValueError("boom")
        except ValueError:
            record = self._record()
            record.exc_info = sys.exc_info()
        data = json.loads(JSONFormatter().format(record))
        assert "ValueError: boom" in data["exception"]

    def test_text_formatter(self):
        """Text formatter includes level and logger name."""
        output = TextFormatter().format(self._record())
        assert "feature_detect.test - INFO - parsed 3 values" in output

    def test_configure_json(self):
        """configure_logging installs a JSON handler."""
        configure_logging(level="DEBUG", format="json")
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)

    def test_configure_text(self):
        """configure_logging uses text output when asked."""
        configure_logging(level="INFO", format="text")
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert isinstance(root.handlers[0].formatter, TextFormatter)

    def test_configure_from_settings(self, monkeypatch):
        """Level and format default to the settings."""
        monkeypatch.setenv("LOG_LEVEL", "WARNING")
        monkeypatch.setenv("LOG_FORMAT", "json")
        get_settings.cache_clear()
        try:
            configure_logging()
        finally:
            get_settings.cache_clear()
        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert isinstance(root.handlers[0].formatter, JSONFormatter)

    def test_unknown_level_falls_back_to_info(self):
        """Unknown levels fall back to INFO."""
        configure_logging(level="verbose", format="text")
        assert logging.getLogger().level == logging.INFO
