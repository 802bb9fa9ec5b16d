"""Millisecond arithmetic shared by interval-based triggers.

Pure functions, no state. Instants are datetimes; intervals are whole
milliseconds.
"""

from __future__ import annotations

from datetime import datetime, timedelta

_ONE_MS = timedelta(milliseconds=1)


def elapsed_millis(start: datetime, end: datetime) -> int:
    """Whole milliseconds from ``start`` to ``end``, truncated toward zero."""
    micros = (end - start) // timedelta(microseconds=1)
    millis = abs(micros) // 1000
    return millis if micros >= 0 else -millis


def count_firings(start: datetime, end: datetime, interval: int) -> int:
    """
    Number of whole intervals between ``start`` and ``end``.

    Truncates toward zero, so a negative span yields a non-positive count.

    Raises:
        ValueError: If ``interval`` is not positive.
    """
    if interval <= 0:
        msg = f"interval must be positive, got {interval}"
        raise ValueError(msg)
    elapsed = elapsed_millis(start, end)
    count = abs(elapsed) // interval
    return count if elapsed >= 0 else -count


def instant_at_index(start: datetime, index: int, interval: int) -> datetime:
    """The ``index``-th scheduled instant: ``start + index * interval`` ms."""
    return start + index * interval * _ONE_MS
