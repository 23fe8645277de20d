"""CLI test fixtures."""

from __future__ import annotations

import pytest


@pytest.fixture(autouse=True)
def _wide_console(monkeypatch):
    """Keep rich from wrapping long paths in asserted output."""
    monkeypatch.setenv("COLUMNS", "200")
