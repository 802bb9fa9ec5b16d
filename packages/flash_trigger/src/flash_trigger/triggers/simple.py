"""SimpleTrigger - Fires at a start time, then repeats at a fixed interval."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Final

from flash_trigger.calendars import is_time_excluded
from flash_trigger.config import trigger_settings
from flash_trigger.exceptions import ConfigurationError
from flash_trigger.logging import get_logger, scoped_trigger_key
from flash_trigger.schemas import (
    REPEAT_INDEFINITELY,
    CompletedExecutionInstruction,
    ExecutionOutcome,
    MisfireInstruction,
    SimpleTriggerConfig,
    SimpleTriggerState,
)

from .arithmetic import count_firings, elapsed_millis, instant_at_index
from .base import Clock, Trigger
from .misfire import SIMPLE_TRIGGER_INSTRUCTIONS, resolve_misfire_instruction

if TYPE_CHECKING:
    from flash_trigger.calendars import Calendar

logger = get_logger(__name__)

# Pushes a stale end time past a "reschedule now" fire time so it stays valid
END_TIME_GRACE: Final[timedelta] = timedelta(milliseconds=50)


class SimpleTrigger(Trigger):
    """
    Trigger that fires at ``start_time`` and then ``repeat_count`` more times,
    ``repeat_interval`` milliseconds apart, never at or after ``end_time``.

    The schedule is a pure function of the persisted fields: the n-th fire
    time is always ``start_time + n * repeat_interval``, so replaying a
    stored trigger gives the same answers as the original instance.

    Examples:
        >>> # 1. One-shot: fire once at 9:00 UTC
        >>> config = SimpleTriggerConfig(start_time=datetime(2026, 1, 1, 9, tzinfo=timezone.utc))
        >>> trigger = SimpleTrigger(config)

        >>> # 2. Ten firings, one minute apart
        >>> trigger = SimpleTrigger(SimpleTriggerConfig(repeat_count=9, repeat_interval=60_000))

        >>> # 3. Every hour until the end time
        >>> trigger = SimpleTrigger(
        ...     SimpleTriggerConfig(
        ...         repeat_count=REPEAT_INDEFINITELY,
        ...         repeat_interval=timedelta(hours=1),
        ...         end_time=datetime(2026, 2, 1, tzinfo=timezone.utc),
        ...     )
        ... )

    Args:
        config: SimpleTriggerConfig.
        clock: Source of "now". Defaults to ``utc_now``.
    """

    def __init__(self, config: SimpleTriggerConfig, clock: Clock | None = None):
        super().__init__(
            name=config.name,
            group=config.group,
            job_name=config.job_name,
            job_group=config.job_group,
            description=config.description,
            misfire_instruction=config.misfire_instruction,
            clock=clock,
        )
        self.start_time = config.start_time or self.now()
        self.end_time = config.end_time
        self.repeat_count = config.repeat_count
        self.repeat_interval = config.repeat_interval

        self._times_triggered = 0
        self._next_fire_time: datetime | None = None
        self._previous_fire_time: datetime | None = None
        self._complete = False

    # --- Schedule parameters ---

    @property
    def start_time(self) -> datetime:
        return self._start_time

    @start_time.setter
    def start_time(self, value: datetime) -> None:
        if value.tzinfo is None:
            raise ConfigurationError("start_time must be timezone-aware")
        self._start_time = value

    @property
    def end_time(self) -> datetime | None:
        return self._end_time

    @end_time.setter
    def end_time(self, value: datetime | None) -> None:
        if value is not None and value.tzinfo is None:
            raise ConfigurationError("end_time must be timezone-aware")
        self._end_time = value

    @property
    def repeat_count(self) -> int:
        return self._repeat_count

    @repeat_count.setter
    def repeat_count(self, value: int) -> None:
        if value < 0 and value != REPEAT_INDEFINITELY:
            raise ConfigurationError(
                "Repeat count must be >= 0, use REPEAT_INDEFINITELY for infinite."
            )
        self._repeat_count = value

    @property
    def repeat_interval(self) -> int:
        """Milliseconds between fire times."""
        return self._repeat_interval

    @repeat_interval.setter
    def repeat_interval(self, value: int) -> None:
        if value < 0:
            raise ConfigurationError("Repeat interval must be >= 0")
        self._repeat_interval = value

    @property
    def is_indefinite(self) -> bool:
        return self._repeat_count == REPEAT_INDEFINITELY

    # --- Firing progress ---

    @property
    def times_triggered(self) -> int:
        return self._times_triggered

    @times_triggered.setter
    def times_triggered(self, value: int) -> None:
        if value < 0:
            raise ConfigurationError("times_triggered must be >= 0")
        self._times_triggered = value

    @property
    def next_fire_time(self) -> datetime | None:
        return self._next_fire_time

    @property
    def previous_fire_time(self) -> datetime | None:
        return self._previous_fire_time

    @property
    def complete(self) -> bool:
        return self._complete

    def set_next_fire_time(self, fire_time: datetime | None) -> None:
        """
        Overwrites the next fire time.

        Not for general use: this exists so stores and recovery code can
        replay persisted state. Owners should call ``triggered`` instead.
        """
        self._next_fire_time = fire_time

    def set_previous_fire_time(self, fire_time: datetime | None) -> None:
        """
        Overwrites the previous fire time.

        Not for general use, see ``set_next_fire_time``.
        """
        self._previous_fire_time = fire_time

    def mark_complete(self) -> None:
        """Retires the trigger; no fire time is ever produced afterwards."""
        self._complete = True

    def validate_misfire_instruction(self, instruction: MisfireInstruction) -> bool:
        return instruction in SIMPLE_TRIGGER_INSTRUCTIONS

    def validate(self) -> None:
        """
        Raises:
            ConfigurationError: If the trigger repeats with a zero interval.
        """
        super().validate()
        if self._repeat_count != 0 and self._repeat_interval < 1:
            raise ConfigurationError("Repeat Interval cannot be zero.")

    # --- Fire time resolution ---

    def get_fire_time_after(self, after_time: datetime | None) -> datetime | None:
        """
        Next scheduled instant strictly after ``after_time``, ignoring calendars.

        ``None`` means the schedule is exhausted (or the trigger is complete).
        A missing ``after_time`` means "now".
        """
        if self._complete:
            return None

        if not self.is_indefinite and self._times_triggered > self._repeat_count:
            return None

        if after_time is None:
            after_time = self.now()

        if self._repeat_count == 0 and after_time >= self._start_time:
            return None

        end_time = self._end_time
        if end_time is not None and end_time <= after_time:
            return None

        if after_time < self._start_time:
            return self._start_time

        index = count_firings(self._start_time, after_time, self._repeat_interval) + 1
        if not self.is_indefinite and index > self._repeat_count:
            return None

        try:
            candidate = instant_at_index(self._start_time, index, self._repeat_interval)
        except OverflowError:
            # Past the last representable datetime
            return None
        if end_time is not None and end_time <= candidate:
            return None

        return candidate

    def get_fire_time_before(self, end: datetime) -> datetime | None:
        """
        Last scheduled instant at or before ``end``.

        Calendars are not consulted here, unlike ``get_fire_time_after``.
        """
        if end < self._start_time:
            return None
        if self._repeat_interval == 0:
            return self._start_time
        num_fires = count_firings(self._start_time, end, self._repeat_interval)
        return instant_at_index(self._start_time, num_fires, self._repeat_interval)

    @property
    def final_fire_time(self) -> datetime | None:
        """The last instant the trigger would fire at, or None if unbounded."""
        if self._repeat_count == 0:
            return self._start_time

        if self.is_indefinite:
            if self._end_time is None:
                return None
            return self.get_fire_time_before(self._end_time)

        try:
            last = instant_at_index(
                self._start_time, self._repeat_count, self._repeat_interval
            )
        except OverflowError:
            # The count outlives the datetime range; only end_time can bound it
            if self._end_time is None:
                return None
            return self.get_fire_time_before(self._end_time)
        if self._end_time is None or last < self._end_time:
            return last
        return self.get_fire_time_before(self._end_time)

    def _skip_excluded(
        self, calendar: Calendar | None, candidate: datetime | None
    ) -> datetime | None:
        while is_time_excluded(calendar, candidate):
            candidate = self.get_fire_time_after(candidate)
        return candidate

    def _count_between(self, start: datetime | None, end: datetime | None) -> int:
        if start is None or end is None or self._repeat_interval <= 0:
            return 0
        return count_firings(start, end, self._repeat_interval)

    # --- Owner-driven transitions ---

    def compute_first_fire_time(self, calendar: Calendar | None) -> datetime | None:
        """
        Seeds ``next_fire_time`` from ``start_time``.

        Call once before the trigger is scheduled; calling again recomputes
        from scratch. A completed trigger seeds to None.
        """
        first = None if self._complete else self._start_time
        self._next_fire_time = self._skip_excluded(calendar, first)
        with scoped_trigger_key(self.key):
            logger.debug("First fire time: %s", self._next_fire_time)
        return self._next_fire_time

    def triggered(self, calendar: Calendar | None) -> None:
        """Records that the current fire time was delivered and advances."""
        self._times_triggered += 1
        self._previous_fire_time = self._next_fire_time
        self._next_fire_time = self._skip_excluded(
            calendar, self.get_fire_time_after(self._next_fire_time)
        )
        with scoped_trigger_key(self.key):
            logger.debug(
                "Fired (%d times), next fire time: %s",
                self._times_triggered,
                self._next_fire_time,
            )

    def update_with_new_calendar(
        self, calendar: Calendar | None, misfire_threshold: int | None = None
    ) -> None:
        """
        Re-derives ``next_fire_time`` after the associated calendar changed.

        If the re-derived time is already late by ``misfire_threshold`` ms or
        more, it is advanced by exactly one step. That step is neither
        re-checked against the calendar nor repeated.

        Args:
            calendar: The new calendar.
            misfire_threshold: Milliseconds. Defaults to
                ``TriggerSettings.MISFIRE_THRESHOLD_MS``.
        """
        if misfire_threshold is None:
            misfire_threshold = trigger_settings.MISFIRE_THRESHOLD_MS

        next_fire_time = self._skip_excluded(
            calendar, self.get_fire_time_after(self._previous_fire_time)
        )

        now = self.now()
        if next_fire_time is not None and next_fire_time < now:
            if elapsed_millis(next_fire_time, now) >= misfire_threshold:
                next_fire_time = self.get_fire_time_after(next_fire_time)

        self._next_fire_time = next_fire_time
        with scoped_trigger_key(self.key):
            logger.debug("Calendar changed, next fire time: %s", next_fire_time)

    def update_after_misfire(self, calendar: Calendar | None) -> MisfireInstruction:
        """
        Applies the misfire instruction after the owner detected a missed firing.

        Returns:
            The concrete instruction that was applied.
        """
        with scoped_trigger_key(self.key):
            instruction = resolve_misfire_instruction(
                self.misfire_instruction, self._repeat_count
            )
            logger.info(
                "Misfire detected (next fire time %s), applying %s",
                self._next_fire_time,
                instruction.name,
            )
            now = self.now()

            if instruction is MisfireInstruction.FIRE_NOW:
                self._next_fire_time = now

            elif instruction is MisfireInstruction.RESCHEDULE_NEXT_WITH_EXISTING_COUNT:
                self._next_fire_time = self._skip_excluded(
                    calendar, self.get_fire_time_after(now)
                )

            elif instruction is MisfireInstruction.RESCHEDULE_NEXT_WITH_REMAINING_COUNT:
                new_fire_time = self._skip_excluded(
                    calendar, self.get_fire_time_after(now)
                )
                if new_fire_time is not None:
                    times_missed = self._count_between(
                        self._next_fire_time, new_fire_time
                    )
                    self._times_triggered += max(0, times_missed)
                self._next_fire_time = new_fire_time

            elif (
                instruction
                is MisfireInstruction.RESCHEDULE_NOW_WITH_EXISTING_REPEAT_COUNT
            ):
                if self._repeat_count != 0 and not self.is_indefinite:
                    self.repeat_count = max(
                        0, self._repeat_count - self._times_triggered
                    )
                    self._times_triggered = 0
                self.start_time = now
                self._next_fire_time = now

            elif (
                instruction
                is MisfireInstruction.RESCHEDULE_NOW_WITH_REMAINING_REPEAT_COUNT
            ):
                times_missed = self._count_between(self._next_fire_time, now)
                if self._repeat_count != 0 and not self.is_indefinite:
                    self.repeat_count = max(
                        0, self._repeat_count - (self._times_triggered + times_missed)
                    )
                    self._times_triggered = 0
                if self._end_time is not None and self._end_time <= now:
                    self.end_time = now + END_TIME_GRACE
                self.start_time = now
                self._next_fire_time = now

            logger.debug(
                "Recovered: next fire time %s, repeat count %d, times triggered %d",
                self._next_fire_time,
                self._repeat_count,
                self._times_triggered,
            )
            return instruction

    def execution_complete(
        self, outcome: ExecutionOutcome | None = None
    ) -> CompletedExecutionInstruction:
        """Tells the owner what to do with this trigger after a job ran."""
        if outcome is not None:
            if outcome.refire_immediately:
                return CompletedExecutionInstruction.RE_EXECUTE_JOB
            if outcome.unschedule_firing_trigger:
                return CompletedExecutionInstruction.SET_TRIGGER_COMPLETE
            if outcome.unschedule_all_triggers:
                return CompletedExecutionInstruction.SET_ALL_JOB_TRIGGERS_COMPLETE

        if not self.may_fire_again():
            return CompletedExecutionInstruction.DELETE_TRIGGER

        return CompletedExecutionInstruction.NOOP

    # --- Persistence hand-off ---

    def snapshot(self) -> SimpleTriggerState:
        """Captures every field needed to replay this trigger."""
        return SimpleTriggerState(
            name=self.name,
            group=self.group,
            job_name=self.job_name,
            job_group=self.job_group,
            description=self.description,
            start_time=self._start_time,
            end_time=self._end_time,
            repeat_count=self._repeat_count,
            repeat_interval=self._repeat_interval,
            times_triggered=self._times_triggered,
            next_fire_time=self._next_fire_time,
            previous_fire_time=self._previous_fire_time,
            complete=self._complete,
            misfire_instruction=self.misfire_instruction,
        )

    @classmethod
    def from_state(
        cls, state: SimpleTriggerState, clock: Clock | None = None
    ) -> SimpleTrigger:
        """Rebuilds a trigger from a snapshot."""
        trigger = cls(
            SimpleTriggerConfig(
                name=state.name,
                group=state.group,
                job_name=state.job_name,
                job_group=state.job_group,
                description=state.description,
                start_time=state.start_time,
                end_time=state.end_time,
                repeat_count=state.repeat_count,
                repeat_interval=state.repeat_interval,
                misfire_instruction=state.misfire_instruction,
            ),
            clock=clock,
        )
        trigger.times_triggered = state.times_triggered
        trigger.set_next_fire_time(state.next_fire_time)
        trigger.set_previous_fire_time(state.previous_fire_time)
        if state.complete:
            trigger.mark_complete()
        return trigger

    def __repr__(self) -> str:
        return (
            f"SimpleTrigger(key={self.key!r}, start_time={self._start_time!r}, "
            f"end_time={self._end_time!r}, repeat_count={self._repeat_count}, "
            f"repeat_interval={self._repeat_interval})"
        )
