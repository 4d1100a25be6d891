"""Pytest configuration for repository test runs."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
import sys
from typing import Iterator

import pytest


def pytest_sessionstart() -> None:
    """Add src directory to sys.path for test imports."""
    project_root = Path(__file__).resolve().parent.parent
    src_path = project_root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


@pytest.fixture
def config(tmp_path: Path):
    """Runtime config pointing at an isolated data root."""
    from core.config import RecordbaseConfig

    return replace(RecordbaseConfig.from_env(), data_root=tmp_path)


@pytest.fixture
def database(config) -> Iterator[object]:
    """Open database handle closed after the test."""
    from store.database import Database

    handle = Database(config)
    yield handle
    handle.close()
