"""Pytest configuration and fixtures for consolehost tests."""

import json
import typing as t
from pathlib import Path

import loguru
import pytest
from typer.testing import CliRunner

from consolehost.app import create_app
from consolehost.cli.app import create_cli_app
from consolehost.config.settings import Environment, LogLevel, Settings
from consolehost.infrastructure.logging import configure_logger, reset_logging

TEST_ENV_PREFIX = "CONSOLEHOST_TEST_"


@pytest.fixture(autouse=True)
def clean_logging_state():
    """Automatically reset logging before each test for isolation."""
    reset_logging()
    yield
    reset_logging()


@pytest.fixture
def test_settings(tmp_path):
    """Provide test-specific settings rooted in a temporary directory."""
    return Settings(
        environment=Environment.TESTING,
        log_level=LogLevel.CRITICAL,  # Minimal logging during tests
        base_dir=tmp_path,
        env_prefix=TEST_ENV_PREFIX,
    )


@pytest.fixture
def test_app(test_settings):
    """Provide a test app with clean logging state."""
    reset_logging()
    app = create_app(settings=test_settings)
    yield app
    reset_logging()


@pytest.fixture
def write_json(tmp_path) -> t.Callable[..., Path]:
    """Write a JSON document under tmp_path and return its path."""

    def _write(data: t.Any, name: str = "appsettings.json") -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def mock_logger(mocker):
    """Provide a mock logger for testing that captures log calls."""
    logger = mocker.Mock(spec=loguru.logger)
    return logger


@pytest.fixture
def captured_records() -> t.Callable[..., list]:
    """Route all loguru output at or above ``level`` into a list.

    Returns a function that configures the sink and returns the list the
    formatted messages are appended to.
    """

    def _capture(level: LogLevel = LogLevel.TRACE) -> list:
        records: list = []
        configure_logger(level=level, sink=records.append)
        return records

    return _capture


# CLI-specific fixtures (shared across all tests)


@pytest.fixture
def cli_runner():
    """Provide Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def default_app():
    """Provide CLI app with default settings."""
    return create_cli_app()
