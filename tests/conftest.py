"""Pytest configuration and fixtures for dep-scope tests."""
from __future__ import annotations

import logging

import pytest

from dep_scope import logging_config


@pytest.fixture(autouse=True)
def isolated_logging(monkeypatch: pytest.MonkeyPatch):
    """Give every test a fresh logging setup and a clean environment.

    `configure_logging` runs once per process, so the guard and the handlers
    it installs are reset around each test.
    """
    monkeypatch.delenv("DEPSCOPE_LOG_LEVEL", raising=False)
    monkeypatch.delenv("DEPSCOPE_LOG_FILE", raising=False)
    monkeypatch.setattr(logging_config, "_CONFIGURED", False)

    logger = logging.getLogger("dep_scope")
    handlers = list(logger.handlers)
    level = logger.level

    yield

    for handler in logger.handlers[:]:
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)
