"""Test configuration and fixtures."""

from __future__ import annotations

import logging

import pytest
from loguru import logger


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop sinks bound to CliRunner streams once a test finishes."""
    yield
    logger.remove()
    root = logging.getLogger()
    for handler in list(root.handlers):
        if handler.__class__.__name__ == "InterceptHandler":
            root.removeHandler(handler)
