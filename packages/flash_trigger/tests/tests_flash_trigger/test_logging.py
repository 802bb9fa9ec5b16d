import logging

import pytest
from flash_trigger.config import TriggerSettings
from flash_trigger.logging import (
    TraceFormatter,
    TriggerKeyFilter,
    get_logger,
    scoped_trigger_key,
    setup_logging,
    setup_logging_from_settings,
    trigger_key,
)


@pytest.fixture
def package_logger():
    """Restores the package logger after setup_logging reconfigures it."""
    logger = logging.getLogger("flash_trigger")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield logger
    for handler in logger.handlers:
        handler.close()
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


def _record(msg="hello"):
    return logging.LogRecord("flash_trigger.triggers.simple", logging.INFO, __file__, 1, msg, None, None)


def test_formatter_injects_trigger_key():
    formatter = TraceFormatter("%(trace_str)s%(message)s")

    with scoped_trigger_key("DEFAULT.nightly"):
        assert formatter.format(_record()) == "[DEFAULT.nightly] hello"

    assert formatter.format(_record()) == "hello"


def test_formatter_uses_utc_iso_timestamps():
    formatter = TraceFormatter("%(asctime)s")
    record = _record()
    record.created = 0
    record.msecs = 7

    assert formatter.format(record) == "1970-01-01 00:00:00.007Z"


def test_scoped_trigger_key_resets():
    assert trigger_key.get() is None
    with scoped_trigger_key("a.b"):
        with scoped_trigger_key("c.d"):
            assert trigger_key.get() == "c.d"
        assert trigger_key.get() == "a.b"
    assert trigger_key.get() is None


def test_get_logger():
    assert get_logger("flash_trigger.x").name == "flash_trigger.x"


def test_setup_logging_writes_file(package_logger, tmp_path):
    log_file = tmp_path / "logs" / "trigger.log"
    setup_logging(level="DEBUG", log_file=log_file)

    assert package_logger.level == logging.DEBUG
    assert package_logger.propagate is False

    with scoped_trigger_key("DEFAULT.nightly"):
        get_logger("flash_trigger.triggers.simple").debug("advanced")
    for handler in package_logger.handlers:
        handler.flush()

    content = log_file.read_text(encoding="utf-8")
    assert "[DEFAULT.nightly] flash_trigger.triggers.simple: advanced" in content


def test_setup_logging_from_settings(package_logger):
    setup_logging_from_settings(TriggerSettings(LOG_LEVEL="warning"))
    assert package_logger.level == logging.WARNING


def test_transitions_carry_trigger_key(package_logger, tmp_path, make_trigger):
    log_file = tmp_path / "trigger.log"
    setup_logging(level="DEBUG", log_file=log_file)

    trigger = make_trigger(name="nightly", repeat_count=2, repeat_interval=10_000)
    trigger.compute_first_fire_time(None)
    trigger.triggered(None)
    trigger.update_with_new_calendar(None, misfire_threshold=60_000)
    for handler in package_logger.handlers:
        handler.flush()

    lines = log_file.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 3
    assert all("[DEFAULT.nightly] flash_trigger.triggers.simple:" in line for line in lines)


def test_filter_pins_key_at_emit_time():
    record = _record()
    with scoped_trigger_key("DEFAULT.nightly"):
        TriggerKeyFilter().filter(record)

    formatter = TraceFormatter("%(trace_str)s%(message)s")
    assert formatter.format(record) == "[DEFAULT.nightly] hello"
