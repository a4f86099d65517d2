"""Pytest configuration and fixtures for drivemon tests."""

import pytest

from drivemon.analysis.calibration import FIELD_TESTED_CONFIG
from drivemon.analysis.processor import DrivingDataProcessor


def pytest_configure(config):
    """Register custom test markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests that do not require external dependencies"
    )
    config.addinivalue_line(
        "markers", "business_logic: Tests for core detection logic and algorithms"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests combining multiple components"
    )


@pytest.fixture
def processor():
    """Processor with field-tested calibration and the default rate gate."""
    return DrivingDataProcessor()


@pytest.fixture
def ungated_processor():
    """Processor that accepts every sample regardless of spacing."""
    return DrivingDataProcessor(FIELD_TESTED_CONFIG.with_overrides(record_interval=0))


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Point the config file at a temporary directory."""
    config_path = tmp_path / "config.toml"
    monkeypatch.setattr("drivemon.config.get_config_path", lambda: config_path)
    monkeypatch.setattr("drivemon.cli.get_config_path", lambda: config_path)
    return config_path
