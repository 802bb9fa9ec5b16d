"""
Domain - Trigger System.

Triggers compute fire times from their own persisted state:
- Schedule parameters (start, end, repeat count, repeat interval)
- Firing progress (times triggered, next and previous fire time)

Fire time computation is deterministic given the same state and clock.
No I/O, no asyncio calls; the only side effects are on the trigger itself.
"""

from .arithmetic import count_firings, instant_at_index
from .base import Clock, Trigger, utc_now
from .misfire import resolve_misfire_instruction
from .simple import END_TIME_GRACE, SimpleTrigger
from .utils import compute_fire_times, compute_fire_times_between

__all__ = [
    "Clock",
    "END_TIME_GRACE",
    "SimpleTrigger",
    "Trigger",
    "compute_fire_times",
    "compute_fire_times_between",
    "count_firings",
    "instant_at_index",
    "resolve_misfire_instruction",
    "utc_now",
]
