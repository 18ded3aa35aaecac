"""
Shared test fixtures and configuration.
"""

import logging
import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest

from flatdeploy.adapters.mock import MockClusterTransport


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """Drop handlers installed by setup_logging (CLI runs) after each test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


@pytest.fixture
def write_compose(tmp_path: Path) -> Callable[[str], Path]:
    """Return a helper that writes compose.yaml into tmp_path."""

    def _write(content: str, name: str = "compose.yaml") -> Path:
        path = tmp_path / name
        path.write_text(textwrap.dedent(content))
        return path

    return _write


@pytest.fixture
def mock_transport() -> MockClusterTransport:
    """Two-machine mock cluster with nginx present everywhere."""
    return MockClusterTransport(images=["nginx:latest"])
