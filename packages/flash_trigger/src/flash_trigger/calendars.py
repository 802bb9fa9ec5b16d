"""Calendar exclusion contract consumed by triggers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from datetime import datetime


class Calendar(ABC):
    """
    Interface for calendars that remove instants from a trigger's schedule.

    A trigger never owns its calendar; it only asks whether a candidate
    fire time is allowed.
    """

    @abstractmethod
    def is_time_included(self, instant: datetime) -> bool:
        """Returns True if the trigger may fire at ``instant``."""
        ...


class PredicateCalendar(Calendar):
    """
    Calendar backed by a plain callable.

    Examples:
        >>> # Skip weekends
        >>> weekdays = PredicateCalendar(lambda dt: dt.weekday() < 5)

        >>> # Skip weekends and the lunch hour
        >>> no_lunch = PredicateCalendar(lambda dt: dt.hour != 12, base_calendar=weekdays)

    Args:
        predicate: Returns True for included instants.
        base_calendar: Optional calendar that must also include the instant.
    """

    def __init__(
        self,
        predicate: Callable[[datetime], bool],
        base_calendar: Calendar | None = None,
    ):
        self.predicate = predicate
        self.base_calendar = base_calendar

    def is_time_included(self, instant: datetime) -> bool:
        if self.base_calendar is not None and not self.base_calendar.is_time_included(
            instant
        ):
            return False
        return bool(self.predicate(instant))

    def __repr__(self) -> str:
        return (
            f"PredicateCalendar(predicate={self.predicate!r}, "
            f"base_calendar={self.base_calendar!r})"
        )


def is_time_excluded(calendar: Calendar | None, instant: datetime | None) -> bool:
    """True when a calendar is present and rejects a present instant."""
    if instant is None or calendar is None:
        return False
    return not calendar.is_time_included(instant)
