"""Pydantic schemas/data contracts for triggers."""

from datetime import datetime, timedelta
from enum import Enum
from typing import Annotated, Any, Final, Literal

from pydantic import BaseModel, BeforeValidator, Field, field_validator

#: Repeat-count sentinel meaning "repeat until the end time, if any".
REPEAT_INDEFINITELY: Final[int] = -1


def validate_milliseconds(v: Any) -> Any:
    """Convert a timedelta to whole milliseconds; integers pass through."""
    if isinstance(v, timedelta):
        return v // timedelta(milliseconds=1)
    return v


# Interval in milliseconds. Accepts a timedelta for convenience.
Milliseconds = Annotated[int, BeforeValidator(validate_milliseconds)]


class MisfireInstruction(Enum):
    """What a trigger does once its owner reports a missed firing."""

    SMART_POLICY = 0
    FIRE_NOW = 1
    RESCHEDULE_NOW_WITH_EXISTING_REPEAT_COUNT = 2
    RESCHEDULE_NOW_WITH_REMAINING_REPEAT_COUNT = 3
    RESCHEDULE_NEXT_WITH_REMAINING_COUNT = 4
    RESCHEDULE_NEXT_WITH_EXISTING_COUNT = 5


class CompletedExecutionInstruction(Enum):
    """What the owning scheduler should do with a trigger after an execution."""

    NOOP = "NOOP"
    RE_EXECUTE_JOB = "RE_EXECUTE_JOB"
    SET_TRIGGER_COMPLETE = "SET_TRIGGER_COMPLETE"
    DELETE_TRIGGER = "DELETE_TRIGGER"
    SET_ALL_JOB_TRIGGERS_COMPLETE = "SET_ALL_JOB_TRIGGERS_COMPLETE"


def _check_repeat_count(v: int) -> int:
    if v < 0 and v != REPEAT_INDEFINITELY:
        msg = "Repeat count must be >= 0, use REPEAT_INDEFINITELY for infinite."
        raise ValueError(msg)
    return v


def _check_repeat_interval(v: int) -> int:
    if v < 0:
        msg = "Repeat interval must be >= 0"
        raise ValueError(msg)
    return v


def _require_aware(name: str, v: datetime | None) -> datetime | None:
    if v is not None and v.tzinfo is None:
        msg = f"{name} must be timezone-aware"
        raise ValueError(msg)
    return v


class SimpleTriggerConfig(BaseModel):
    """Configuration for a repeating, fixed-interval trigger.

    Examples:
        - repeat_count=0: fire once at start_time
        - repeat_count=9, repeat_interval=60_000: ten firings one minute apart
        - repeat_count=REPEAT_INDEFINITELY, repeat_interval=timedelta(hours=1),
          end_time=...: hourly until end_time
    """

    trigger_type: Literal["simple"] = "simple"
    name: str | None = None
    group: str | None = None
    job_name: str | None = None
    job_group: str | None = None
    description: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    repeat_count: int = 0
    repeat_interval: Milliseconds = 0
    misfire_instruction: MisfireInstruction | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_timezone(cls, v: datetime | None, info) -> datetime | None:
        return _require_aware(info.field_name, v)

    @field_validator("repeat_count")
    @classmethod
    def validate_repeat_count(cls, v: int) -> int:
        return _check_repeat_count(v)

    @field_validator("repeat_interval")
    @classmethod
    def validate_repeat_interval(cls, v: int) -> int:
        return _check_repeat_interval(v)


class SimpleTriggerState(BaseModel):
    """Complete persisted state of a SimpleTrigger.

    Produced by ``SimpleTrigger.snapshot()`` and consumed by
    ``SimpleTrigger.from_state()`` so a store can replay a trigger exactly.
    """

    name: str
    group: str
    job_name: str | None = None
    job_group: str | None = None
    description: str | None = None
    start_time: datetime
    end_time: datetime | None = None
    repeat_count: int
    repeat_interval: Milliseconds
    times_triggered: int = Field(default=0, ge=0)
    next_fire_time: datetime | None = None
    previous_fire_time: datetime | None = None
    complete: bool = False
    misfire_instruction: MisfireInstruction = MisfireInstruction.SMART_POLICY

    @field_validator("repeat_count")
    @classmethod
    def validate_repeat_count(cls, v: int) -> int:
        return _check_repeat_count(v)

    @field_validator("repeat_interval")
    @classmethod
    def validate_repeat_interval(cls, v: int) -> int:
        return _check_repeat_interval(v)

    @field_validator("start_time", "end_time", "next_fire_time", "previous_fire_time")
    @classmethod
    def validate_timezone(cls, v: datetime | None, info) -> datetime | None:
        return _require_aware(info.field_name, v)


class ExecutionOutcome(BaseModel):
    """Signals a job execution hands back to its trigger."""

    refire_immediately: bool = False
    unschedule_firing_trigger: bool = False
    unschedule_all_triggers: bool = False
