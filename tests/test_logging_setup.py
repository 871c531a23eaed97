import io
import logging

from budget_engine import logging_setup
from budget_engine.logging_setup import configure_logging, get_logger


def test_unconfigured_package_logger_is_silent():
    get_logger("budget_engine.test")

    handlers = logging.getLogger("budget_engine").handlers
    assert len(handlers) == 1
    assert isinstance(handlers[0], logging.NullHandler)


def test_configure_logging_attaches_single_handler():
    stream = io.StringIO()
    get_logger("budget_engine.test")

    configure_logging("DEBUG", fmt="%(levelname)s %(message)s", stream=stream)
    configure_logging("ERROR", stream=io.StringIO())  # second call is a no-op

    pkg = logging.getLogger("budget_engine")
    assert len(pkg.handlers) == 1
    assert not isinstance(pkg.handlers[0], logging.NullHandler)
    assert pkg.propagate is False

    get_logger("budget_engine.test").debug("op:event key=%s", "val")
    assert stream.getvalue() == "DEBUG op:event key=val\n"


def test_level_from_environment(monkeypatch):
    monkeypatch.setenv("BUDGET_ENGINE_LOG_LEVEL", "warning")

    configure_logging(stream=io.StringIO())

    assert logging.getLogger("budget_engine").level == logging.WARNING


def test_parse_level_variants():
    assert logging_setup._parse_level(10) == 10
    assert logging_setup._parse_level("15") == 15
    assert logging_setup._parse_level("error") == logging.ERROR
    assert logging_setup._parse_level("bogus") == logging.INFO
    assert logging_setup._parse_level(None) == logging.INFO
