"""
Tests for the CLI logging setup.
"""

import pytest

from drivemon import logging_config
from drivemon.logging_config import _build_logging_config, setup_logging


@pytest.fixture
def log_dir(tmp_path, monkeypatch):
    path = tmp_path / "logs"
    monkeypatch.setattr("drivemon.logging_config.DEFAULT_LOG_DIR", path)
    return path


@pytest.fixture
def unconfigured(monkeypatch):
    """Let setup_logging run again and record dictConfig calls instead of applying them."""
    calls = []
    monkeypatch.setattr(logging_config, "_logging_configured", False)
    monkeypatch.setattr("logging.config.dictConfig", calls.append)
    return calls


class TestBuildConfig:
    def test_defaults(self, isolated_config, log_dir):
        config = _build_logging_config()

        console = config["handlers"]["console"]
        assert console["level"] == "WARNING"
        assert console["formatter"] == "console"
        assert console["stream"] == "ext://sys.stderr"

        file_handler = config["handlers"]["file"]
        assert file_handler["filename"] == str(log_dir / "drivemon.log")
        assert file_handler["level"] == "DEBUG"
        assert file_handler["maxBytes"] == 10 * 1024 * 1024
        assert file_handler["backupCount"] == 5
        assert log_dir.is_dir()

        drivemon = config["loggers"]["drivemon"]
        assert drivemon["handlers"] == ["console", "file"]
        assert drivemon["propagate"] is False
        assert config["root"]["level"] == "WARNING"

    def test_analysis_logger_levels(self, isolated_config, log_dir):
        loggers = _build_logging_config()["loggers"]

        assert loggers["drivemon.analysis"]["level"] == "DEBUG"
        assert loggers["drivemon.analysis.movement"]["level"] == "INFO"
        assert loggers["drivemon.analysis.enrichment"]["level"] == "INFO"

    def test_verbose_opens_console_and_analysis(self, isolated_config, log_dir):
        config = _build_logging_config(verbose=True)

        assert config["handlers"]["console"]["level"] == "DEBUG"
        assert config["handlers"]["console"]["formatter"] == "verbose_console"
        assert config["loggers"]["drivemon.analysis.movement"]["level"] == "DEBUG"

    def test_file_disabled(self, isolated_config, log_dir):
        isolated_config.write_text("[logging]\nenabled = false\n")

        config = _build_logging_config()

        assert "file" not in config["handlers"]
        assert config["loggers"]["drivemon"]["handlers"] == ["console"]
        assert not log_dir.exists()

    def test_file_settings_from_config(self, isolated_config, log_dir):
        isolated_config.write_text(
            '[logging]\nlevel = "info"\nmax_size_mb = 2\nbackup_count = 3\n'
        )

        file_handler = _build_logging_config()["handlers"]["file"]

        assert file_handler["level"] == "INFO"
        assert file_handler["maxBytes"] == 2 * 1024 * 1024
        assert file_handler["backupCount"] == 3

    def test_logger_overrides(self, isolated_config, log_dir):
        isolated_config.write_text(
            "[logging.loggers]\n"
            '"drivemon.analysis.movement" = "DEBUG"\n'
            '"drivemon.analysis.detector" = "warning"\n'
            'urllib3 = "DEBUG"\n'
        )

        loggers = _build_logging_config()["loggers"]

        assert loggers["drivemon.analysis.movement"]["level"] == "DEBUG"
        assert loggers["drivemon.analysis.detector"]["level"] == "WARNING"
        assert "urllib3" not in loggers

    def test_non_table_logging_section_ignored(self, isolated_config, log_dir):
        isolated_config.write_text('logging = "loud"\n')

        config = _build_logging_config()

        assert config["handlers"]["file"]["level"] == "DEBUG"


class TestSetupLogging:
    def test_configures_once(self, isolated_config, log_dir, unconfigured):
        setup_logging(verbose=True)
        setup_logging()

        assert len(unconfigured) == 1
        assert unconfigured[0]["handlers"]["console"]["level"] == "DEBUG"

    def test_falls_back_to_console(self, isolated_config, log_dir, monkeypatch, capsys):
        basic_calls = []
        monkeypatch.setattr(logging_config, "_logging_configured", False)

        def broken(config):
            raise ValueError("Unknown level: 'LOUD'")

        monkeypatch.setattr("logging.config.dictConfig", broken)
        monkeypatch.setattr(
            "logging.basicConfig", lambda **kwargs: basic_calls.append(kwargs)
        )

        setup_logging()

        assert "Failed to configure logging" in capsys.readouterr().err
        assert basic_calls == [{"level": 30, "format": "%(levelname)s: %(message)s"}]
        assert logging_config._logging_configured
