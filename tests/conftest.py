"""Pytest configuration for test isolation.

The engine reads a couple of ``BUDGET_ENGINE_*`` environment variables (log
level, output decimal places) and configures its package logger once per
process from the CLI entrypoint. Both would leak between tests run in the same
interpreter, so an autouse fixture clears the variables and resets the logger
around every test.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from budget_engine import logging_setup


@pytest.fixture(autouse=True)
def _isolate_engine_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.delenv("BUDGET_ENGINE_LOG_LEVEL", raising=False)
    monkeypatch.delenv("BUDGET_ENGINE_DECIMAL_PLACES", raising=False)
    logging_setup._reset_for_tests()
    yield
    logging_setup._reset_for_tests()
