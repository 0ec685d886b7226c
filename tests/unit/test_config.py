"""
Unit tests for bootstrap/config.py

Tests settings defaults, environment and file loading.
"""

import json
import logging

import pytest

from pipecheck.bootstrap.config import (
    DEFAULT_TOPIC_TEMPLATE,
    LoggingConfig,
    PipecheckConfig,
    ValidationSettings,
    configure_logging,
    load_config,
)


class TestValidationSettings:
    """Test ValidationSettings."""

    def test_defaults(self):
        """Test default thresholds."""
        settings = ValidationSettings()
        assert settings.max_name_length == 64
        assert settings.max_backoff_ceiling_ms == 300_000
        assert settings.max_attempts_warning == 10
        assert settings.topic_template == DEFAULT_TOPIC_TEMPLATE
        assert settings.topic_whitelist == []
        assert settings.allow_dlq_topics is True

    def test_from_env(self, monkeypatch):
        """Test environment overrides."""
        monkeypatch.setenv("PIPECHECK_MAX_NAME_LENGTH", "32")
        monkeypatch.setenv("PIPECHECK_TOPIC_WHITELIST", "legacy.events, audit ,")
        monkeypatch.setenv("PIPECHECK_ALLOW_DLQ_TOPICS", "false")

        settings = ValidationSettings.from_env()

        assert settings.max_name_length == 32
        assert settings.topic_whitelist == ["legacy.events", "audit"]
        assert settings.allow_dlq_topics is False

    def test_from_dict_ignores_unknown(self, caplog):
        """Test unknown keys are dropped with a warning."""
        with caplog.at_level(logging.WARNING, logger="pipecheck"):
            settings = ValidationSettings.from_dict({"max_name_length": 10, "bogus": 1})
        assert settings.max_name_length == 10
        assert "bogus" in caplog.text

    def test_to_dict_roundtrip(self):
        """Test to_dict feeds from_dict."""
        settings = ValidationSettings(max_topic_length=100)
        assert ValidationSettings.from_dict(settings.to_dict()) == settings


class TestPipecheckConfig:
    """Test root configuration loading."""

    def test_from_file(self, tmp_path):
        """Test file values override defaults."""
        path = tmp_path / "pipecheck.json"
        path.write_text(json.dumps({
            "validation": {"max_attempts_warning": 3},
            "logging": {"level": "DEBUG"},
        }))

        config = PipecheckConfig.from_file(str(path))

        assert config.validation.max_attempts_warning == 3
        assert config.validation.max_name_length == 64
        assert config.logging.level == "DEBUG"

    def test_missing_file_uses_environment(self, tmp_path, monkeypatch):
        """Test a missing file falls back to the environment."""
        monkeypatch.setenv("PIPECHECK_LOG_LEVEL", "WARNING")
        config = PipecheckConfig.from_file(str(tmp_path / "absent.json"))
        assert config.logging.level == "WARNING"

    def test_load_config_discovers_local_file(self, tmp_path, monkeypatch):
        """Test load_config picks up ./pipecheck.json."""
        (tmp_path / "pipecheck.json").write_text(json.dumps({"validation": {"max_topic_length": 50}}))
        monkeypatch.chdir(tmp_path)
        assert load_config().validation.max_topic_length == 50

    def test_load_config_not_cached(self, tmp_path, monkeypatch):
        """Test each call returns a fresh object."""
        monkeypatch.chdir(tmp_path)
        assert load_config() is not load_config()

    def test_to_dict(self):
        """Test serialization shape."""
        data = PipecheckConfig().to_dict()
        assert set(data) == {"validation", "logging"}
        assert data["logging"]["level"] == "INFO"


class TestConfigureLogging:
    """Test configure_logging."""

    def test_handler_added_once(self):
        """Test repeated calls do not stack handlers."""
        logger = logging.getLogger("pipecheck")
        before = [h for h in logger.handlers if getattr(h, "_pipecheck", False)]

        configure_logging(LoggingConfig(level="debug"))
        configure_logging(LoggingConfig(level="debug"))

        ours = [h for h in logger.handlers if getattr(h, "_pipecheck", False)]
        assert len(ours) == 1
        assert logger.level == logging.DEBUG

        for handler in ours:
            if handler not in before:
                logger.removeHandler(handler)
        logger.setLevel(logging.NOTSET)
