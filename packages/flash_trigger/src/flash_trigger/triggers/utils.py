"""Helpers that preview a trigger's schedule without touching the trigger."""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from flash_trigger.calendars import Calendar

    from .base import Trigger


def compute_fire_times(
    trigger: Trigger, calendar: Calendar | None, num_times: int
) -> list[datetime]:
    """
    Lists up to ``num_times`` fire times the trigger would produce.

    Works on a copy, so the given trigger's progress is untouched.

    Examples:
        >>> compute_fire_times(trigger, None, 3)
        [datetime(2026, 1, 1, 12, 0, ...), datetime(2026, 1, 1, 12, 10, ...), ...]
    """
    preview = copy.deepcopy(trigger)
    preview.compute_first_fire_time(calendar)

    fire_times: list[datetime] = []
    for _ in range(num_times):
        fire_time = preview.next_fire_time
        if fire_time is None:
            break
        fire_times.append(fire_time)
        preview.triggered(calendar)

    return fire_times


def compute_fire_times_between(
    trigger: Trigger,
    calendar: Calendar | None,
    from_time: datetime,
    to_time: datetime,
) -> list[datetime]:
    """Lists the fire times falling within ``[from_time, to_time]``."""
    preview = copy.deepcopy(trigger)
    preview.compute_first_fire_time(calendar)

    fire_times: list[datetime] = []
    while preview.next_fire_time is not None:
        fire_time = preview.next_fire_time
        if fire_time > to_time:
            break
        if fire_time >= from_time:
            fire_times.append(fire_time)
        preview.triggered(calendar)

    return fire_times
