"""Tests for environment-driven configuration and logging setup."""

import logging

import pytest

from pinggraph.config import AppConfig, ConfigError
from pinggraph.logging_config import configure_logging


class TestAppConfig:
    """Test AppConfig.from_env()."""

    def test_defaults(self):
        config = AppConfig.from_env({})
        assert config == AppConfig()
        assert config.prober == "ping"
        assert config.probe_timeout_ms == 2000
        assert config.success_delay_s == 1.0
        assert config.failure_delay_s == 2.0
        assert config.max_samples is None

    def test_all_values(self):
        config = AppConfig.from_env(
            {
                "PINGGRAPH_PROBER": "FAKE",
                "PINGGRAPH_PROBE_TIMEOUT_MS": "3000",
                "PINGGRAPH_SUCCESS_DELAY_S": "0.5",
                "PINGGRAPH_FAILURE_DELAY_S": "5",
                "PINGGRAPH_MAX_SAMPLES": "600",
            }
        )
        assert config.prober == "fake"
        assert config.probe_timeout_ms == 3000
        assert config.success_delay_s == 0.5
        assert config.failure_delay_s == 5.0
        assert config.max_samples == 600

    @pytest.mark.parametrize(
        "name, value",
        [
            ("PINGGRAPH_PROBER", "icmp"),
            ("PINGGRAPH_PROBE_TIMEOUT_MS", "500"),
            ("PINGGRAPH_PROBE_TIMEOUT_MS", "9000"),
            ("PINGGRAPH_PROBE_TIMEOUT_MS", "soon"),
            ("PINGGRAPH_SUCCESS_DELAY_S", "-1"),
            ("PINGGRAPH_FAILURE_DELAY_S", "abc"),
            ("PINGGRAPH_FAILURE_DELAY_S", "0.5"),
            ("PINGGRAPH_MAX_SAMPLES", "-3"),
        ],
    )
    def test_invalid_values(self, name, value):
        with pytest.raises(ConfigError, match=name):
            AppConfig.from_env({name: value})

    def test_config_error_is_value_error(self):
        assert issubclass(ConfigError, ValueError)

    def test_reads_os_environ_by_default(self, monkeypatch):
        monkeypatch.setenv("PINGGRAPH_MAX_SAMPLES", "42")
        assert AppConfig.from_env().max_samples == 42


class TestLoggingConfig:
    """Test configure_logging() level selection."""

    @pytest.fixture(autouse=True)
    def restore_root_level(self):
        root = logging.getLogger()
        level = root.level
        yield
        root.setLevel(level)

    def test_default_level(self, monkeypatch):
        monkeypatch.delenv("PINGGRAPH_LOG_LEVEL", raising=False)
        configure_logging()
        assert logging.getLogger().level == logging.INFO

    def test_debug_level(self, monkeypatch):
        monkeypatch.setenv("PINGGRAPH_LOG_LEVEL", "debug")
        configure_logging()
        assert logging.getLogger().level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self, monkeypatch):
        monkeypatch.setenv("PINGGRAPH_LOG_LEVEL", "LOUD")
        configure_logging()
        assert logging.getLogger().level == logging.INFO
