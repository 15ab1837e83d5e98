"""Tests for settings and logging setup."""

import logging

import pytest
from pydantic import ValidationError

from xdotool_control.config import Settings
from xdotool_control.logger import get_logger, setup_logging


class TestSettingsFromEnv:
    def test_defaults(self):
        settings = Settings.from_env({})

        assert settings.binary == "xdotool"
        assert settings.timeout is None
        assert settings.log_level == "INFO"

    def test_values_read(self):
        settings = Settings.from_env({
            "XDOTOOL_CONTROL_BINARY": "/usr/local/bin/xdotool",
            "XDOTOOL_CONTROL_TIMEOUT": "2.5",
            "XDOTOOL_CONTROL_LOG_LEVEL": "debug",
        })

        assert settings.binary == "/usr/local/bin/xdotool"
        assert settings.timeout == 2.5
        assert settings.log_level == "DEBUG"

    @pytest.mark.parametrize("raw", ["", "0", "  "])
    def test_no_timeout_values(self, raw):
        assert Settings.from_env({"XDOTOOL_CONTROL_TIMEOUT": raw}).timeout is None

    @pytest.mark.parametrize("env", [
        {"XDOTOOL_CONTROL_TIMEOUT": "soon"},
        {"XDOTOOL_CONTROL_TIMEOUT": "-1"},
        {"XDOTOOL_CONTROL_LOG_LEVEL": "chatty"},
    ])
    def test_invalid_values(self, env):
        with pytest.raises(ValidationError):
            Settings.from_env(env)

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv("XDOTOOL_CONTROL_TIMEOUT", "7")

        assert Settings.from_env().timeout == 7.0


class TestLogging:
    def test_child_logger_names(self):
        assert get_logger().name == "xdotool_control"
        assert get_logger("runner").name == "xdotool_control.runner"

    def test_setup_logging_single_stderr_handler(self):
        logger = logging.getLogger("xdotool_control")
        before = list(logger.handlers)
        try:
            setup_logging("DEBUG")
            setup_logging("WARNING")

            streams = [h for h in logger.handlers if isinstance(h, logging.StreamHandler)]
            assert len(streams) == 1
            assert logger.level == logging.WARNING
        finally:
            logger.handlers = before
            logger.setLevel(logging.NOTSET)
