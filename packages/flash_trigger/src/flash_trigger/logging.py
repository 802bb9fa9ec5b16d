import logging
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar, Token
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Generator, List, Optional, Union

# Key ("group.name") of the trigger whose state is currently being mutated
trigger_key: ContextVar[Optional[str]] = ContextVar("trigger_key", default=None)

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(trace_str)s%(name)s: %(message)s"


def _trace_prefix(key: Optional[str]) -> str:
    return f"[{key}] " if key else ""


class TriggerKeyFilter(logging.Filter):
    """
    Stamps each record with the trigger key active when it was emitted.

    Attached to handlers so the key is fixed before any formatting happens,
    even when a formatter runs outside the emitting context.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "trigger_key"):
            record.trigger_key = trigger_key.get()
        return True


class TraceFormatter(logging.Formatter):
    """
    Renders UTC ISO-8601 timestamps and a ``[group.name]`` trace prefix.

    The prefix comes from ``record.trigger_key`` when a TriggerKeyFilter
    stamped it, else from the current context.
    """

    converter = time.gmtime

    def formatTime(self, record, datefmt=None):
        ct = self.converter(record.created)
        if datefmt:
            return time.strftime(datefmt, ct)
        return "%s.%03dZ" % (time.strftime("%Y-%m-%d %H:%M:%S", ct), record.msecs)

    def format(self, record: logging.LogRecord) -> str:
        key = getattr(record, "trigger_key", None) or trigger_key.get()
        record.trace_str = _trace_prefix(key)
        return super().format(record)


def get_logger(name: str) -> logging.Logger:
    """
    Returns a standard logger instance.

    >>> logger = get_logger(__name__)
    """
    return logging.getLogger(name)


def _build_handlers(
    log_file: Optional[Union[str, Path]], max_bytes: int, backup_count: int
) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if not log_file:
        return handlers

    file_path = Path(log_file).resolve()
    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                file_path,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
        )
    except OSError as e:
        # Read-only file systems are common in containers
        sys.stderr.write(f"Failed to setup log file: {e}\n")
    return handlers


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
    max_bytes: int = 10_485_760,  # 10MB
    backup_count: int = 10,
    capture_roots: bool = False,
    module_name: str = "flash_trigger",
) -> logging.Logger:
    """
    Configures trigger logging and returns the configured logger.

    Args:
        level: Logging level name or number.
        log_file: Optional path; rotated at ``max_bytes``.
        capture_roots: Configure the root logger instead of ``module_name``.
            When False the package logger stops propagating, so records
            are not printed twice.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    target = logging.getLogger() if capture_roots else logging.getLogger(module_name)
    target.handlers.clear()
    target.setLevel(level)

    formatter = TraceFormatter(LOG_FORMAT)
    key_filter = TriggerKeyFilter()
    for handler in _build_handlers(log_file, max_bytes, backup_count):
        handler.setFormatter(formatter)
        handler.addFilter(key_filter)
        target.addHandler(handler)

    target.propagate = capture_roots
    return target


def setup_logging_from_settings(settings=None) -> logging.Logger:
    """Configures logging from ``TriggerSettings`` (LOG_LEVEL / LOG_FILE)."""
    if settings is None:
        from .config import trigger_settings as settings

    return setup_logging(level=settings.LOG_LEVEL, log_file=settings.LOG_FILE)


def set_trigger_key(value: str) -> Token:
    """
    Sets the trigger key and returns a token for cleanup.

    >>> token = set_trigger_key("DEFAULT.nightly")
    >>> reset_trigger_key(token)
    """
    return trigger_key.set(value)


def reset_trigger_key(token: Token) -> None:
    trigger_key.reset(token)


@contextmanager
def scoped_trigger_key(value: str) -> Generator[None, None, None]:
    """
    Tags every record logged inside the block with ``value``.

    >>> with scoped_trigger_key("DEFAULT.nightly"):
    ...     logger.debug("advanced")
    """
    token = set_trigger_key(value)
    try:
        yield
    finally:
        reset_trigger_key(token)
