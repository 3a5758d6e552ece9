"""Shared pytest configuration for recurrence_lite tests."""

import logging
from collections.abc import Generator
from typing import Any

import pytest


def pytest_configure(config: Any) -> None:
    """Configure pytest with project markers."""
    config.addinivalue_line("markers", "unit: Fast unit tests")
    config.addinivalue_line("markers", "critical_path: Core functionality tests")
    config.addinivalue_line("markers", "smoke: Basic smoke tests")


@pytest.fixture(autouse=True)
def restore_logging_levels() -> Generator[None, Any, None]:
    """Restore logger levels changed by logging configuration tests."""
    names = ["", "dateutil", "pydantic"]
    names += [name for name in logging.root.manager.loggerDict if name.startswith("recurrence_lite")]
    names.append("recurrence_lite")
    levels = {name: logging.getLogger(name).level for name in names}
    yield
    for name, level in levels.items():
        logging.getLogger(name).setLevel(level)
