"""Pytest configuration helpers."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from pgabstract import Abstract, PgAbstract  # noqa: E402


@pytest.fixture
def abstract():
    """PostgreSQL builder with default quoting."""
    return PgAbstract()


@pytest.fixture
def base_abstract():
    """Generic builder without the PostgreSQL extensions."""
    return Abstract()
