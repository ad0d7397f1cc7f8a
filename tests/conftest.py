"""Pytest configuration for all tests."""

import logging
import os

import pytest
import structlog


@pytest.fixture(autouse=True)
def isolated_launcher_environment(monkeypatch):
    """Drop LAUNCHER_* overrides from the developer's shell."""
    for name in list(os.environ):
        if name.upper().startswith("LAUNCHER_"):
            monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo configure_logging calls made by a test."""
    yield
    structlog.reset_defaults()
    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler, logging.StreamHandler) and not hasattr(
            handler, "records"
        ):
            root.removeHandler(handler)
