"""Pytest configuration for test isolation.

The package reads ``FINANCE_INSIGHTS_SETTINGS``, ``FINANCE_INSIGHTS_TERM_TABLES``
and ``FINANCE_INSIGHTS_LOG_LEVEL`` when loaders are called. A developer's
shell (or a ``.env`` picked up by an earlier CLI test) can leak those into
unrelated tests, so an autouse fixture clears them for every test.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Make sure the workspace `packages/` dir is on sys.path so `finance_insights` is importable,
# and the repo root so `tests.helpers` resolves.
_ROOT = Path(__file__).resolve().parents[1]
_PKG_DIR = _ROOT / "packages"
sys.path[:0] = [p for p in [str(_PKG_DIR), str(_ROOT)] if p not in sys.path]

_ENV_VARS = (
    "FINANCE_INSIGHTS_SETTINGS",
    "FINANCE_INSIGHTS_TERM_TABLES",
    "FINANCE_INSIGHTS_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
