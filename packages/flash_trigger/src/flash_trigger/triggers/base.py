from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable

from flash_trigger.config import trigger_settings
from flash_trigger.exceptions import ConfigurationError
from flash_trigger.schemas import MisfireInstruction

if TYPE_CHECKING:
    from flash_trigger.calendars import Calendar

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: the current UTC-aware instant."""
    return datetime.now(timezone.utc)


class Trigger(ABC):
    """
    Abstract base class for triggers.

    A trigger owns the schedule of one job: it answers "when next" and
    mutates its own firing progress when the owner reports a firing or
    a misfire. It never executes or persists anything.

    Args:
        name: Trigger name. Defaults to a generated hex id.
        group: Trigger group. Defaults to ``TriggerSettings.DEFAULT_GROUP``.
        job_name: Name of the job this trigger fires.
        job_group: Group of the job this trigger fires.
        description: Free-form text.
        misfire_instruction: Recovery behavior. Defaults to
            ``TriggerSettings.DEFAULT_MISFIRE_INSTRUCTION``.
        clock: Source of "now". Defaults to ``utc_now``.
    """

    def __init__(
        self,
        name: str | None = None,
        group: str | None = None,
        job_name: str | None = None,
        job_group: str | None = None,
        description: str | None = None,
        misfire_instruction: MisfireInstruction | int | None = None,
        clock: Clock | None = None,
    ):
        self.name = name if name is not None else uuid.uuid4().hex
        self.group = group if group is not None else trigger_settings.DEFAULT_GROUP
        self.job_name = job_name
        self.job_group = job_group
        self.description = description
        self.misfire_instruction = (
            misfire_instruction
            if misfire_instruction is not None
            else trigger_settings.DEFAULT_MISFIRE_INSTRUCTION
        )
        self.clock: Clock = clock or utc_now

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        if not value or not value.strip():
            raise ConfigurationError("Trigger name cannot be empty.")
        self._name = value

    @property
    def group(self) -> str:
        return self._group

    @group.setter
    def group(self, value: str) -> None:
        if not value or not value.strip():
            raise ConfigurationError("Trigger group cannot be empty.")
        self._group = value

    @property
    def key(self) -> str:
        return f"{self.group}.{self.name}"

    @property
    def misfire_instruction(self) -> MisfireInstruction:
        return self._misfire_instruction

    @misfire_instruction.setter
    def misfire_instruction(self, value: MisfireInstruction | int) -> None:
        try:
            instruction = MisfireInstruction(value)
        except ValueError as e:
            msg = f"The misfire instruction code is invalid for this type of trigger: {value!r}"
            raise ConfigurationError(msg) from e
        if not self.validate_misfire_instruction(instruction):
            msg = f"The misfire instruction code is invalid for this type of trigger: {instruction.name}"
            raise ConfigurationError(msg)
        self._misfire_instruction = instruction

    def validate_misfire_instruction(self, instruction: MisfireInstruction) -> bool:
        """Subclasses restrict the instructions they know how to apply."""
        return instruction is MisfireInstruction.SMART_POLICY

    def now(self) -> datetime:
        return self.clock()

    def validate(self) -> None:
        """
        Checks the trigger can enter a schedule.

        Raises:
            ConfigurationError: If the trigger is misconfigured.
        """
        if self.job_group is not None and not self.job_name:
            raise ConfigurationError("Trigger's job group is set without a job name.")

    def may_fire_again(self) -> bool:
        """True while the trigger still has a next fire time."""
        return self.next_fire_time is not None

    @property
    @abstractmethod
    def next_fire_time(self) -> datetime | None: ...

    @property
    @abstractmethod
    def previous_fire_time(self) -> datetime | None: ...

    @property
    @abstractmethod
    def final_fire_time(self) -> datetime | None: ...

    @abstractmethod
    def get_fire_time_after(self, after_time: datetime | None) -> datetime | None: ...

    @abstractmethod
    def compute_first_fire_time(self, calendar: Calendar | None) -> datetime | None: ...

    @abstractmethod
    def triggered(self, calendar: Calendar | None) -> None: ...

    @abstractmethod
    def update_after_misfire(self, calendar: Calendar | None) -> MisfireInstruction: ...

    @abstractmethod
    def update_with_new_calendar(
        self, calendar: Calendar | None, misfire_threshold: int | None = None
    ) -> None: ...

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Trigger):
            return type(self) is type(other) and self.key == other.key
        return False

    def __hash__(self) -> int:
        return hash((self.__class__.__name__, self.key))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(key={self.key!r})"
