from .calendars import Calendar, PredicateCalendar
from .config import TriggerSettings, trigger_settings
from .exceptions import ConfigurationError, FlashTriggerError
from .schemas import (
    REPEAT_INDEFINITELY,
    CompletedExecutionInstruction,
    ExecutionOutcome,
    MisfireInstruction,
    SimpleTriggerConfig,
    SimpleTriggerState,
)
from .triggers import SimpleTrigger, Trigger, compute_fire_times

__all__ = [
    "REPEAT_INDEFINITELY",
    "Calendar",
    "CompletedExecutionInstruction",
    "ConfigurationError",
    "ExecutionOutcome",
    "FlashTriggerError",
    "MisfireInstruction",
    "PredicateCalendar",
    "SimpleTrigger",
    "SimpleTriggerConfig",
    "SimpleTriggerState",
    "Trigger",
    "TriggerSettings",
    "compute_fire_times",
    "trigger_settings",
]
