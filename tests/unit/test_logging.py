"""Unit tests for the structlog dual-renderer setup."""

from __future__ import annotations

import logging
import sys

import pytest
import structlog

from smartgov.utils.logging import configure_logging


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()
    logging.getLogger().handlers.clear()


def _renderer():
    return structlog.get_config()["processors"][-1]


def test_console_renderer_in_development(monkeypatch):
    monkeypatch.setenv("APP_ENV", "development")
    configure_logging("DEBUG")
    assert structlog.is_configured()
    assert isinstance(_renderer(), structlog.dev.ConsoleRenderer)


def test_json_renderer_in_production(monkeypatch):
    monkeypatch.setenv("APP_ENV", "production")
    configure_logging()
    assert isinstance(_renderer(), structlog.processors.JSONRenderer)


def test_json_output_can_be_forced(monkeypatch):
    monkeypatch.delenv("APP_ENV", raising=False)
    configure_logging(json_output=True)
    assert isinstance(_renderer(), structlog.processors.JSONRenderer)


def test_stdlib_root_logger_follows_level(monkeypatch):
    monkeypatch.setenv("APP_ENV", "development")
    configure_logging("warning")
    root = logging.getLogger()
    assert root.level == logging.WARNING
    assert len(root.handlers) == 1


def test_reconfiguring_replaces_the_stderr_handler(monkeypatch):
    monkeypatch.setenv("APP_ENV", "development")
    configure_logging()
    configure_logging("DEBUG")
    handlers = logging.getLogger().handlers
    assert len(handlers) == 1
    assert handlers[0].stream is sys.stderr
