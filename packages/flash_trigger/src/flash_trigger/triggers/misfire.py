"""Misfire instruction resolution for repeating triggers."""

from __future__ import annotations

from flash_trigger.schemas import REPEAT_INDEFINITELY, MisfireInstruction

#: Instructions a SimpleTrigger knows how to apply.
SIMPLE_TRIGGER_INSTRUCTIONS = frozenset(MisfireInstruction)


def resolve_misfire_instruction(
    instruction: MisfireInstruction, repeat_count: int
) -> MisfireInstruction:
    """
    Turn a configured instruction into the concrete action to apply.

    SMART_POLICY depends on the repeat count at the time of the misfire:

    - one-shot (``repeat_count == 0``): FIRE_NOW
    - indefinite: RESCHEDULE_NEXT_WITH_REMAINING_COUNT
    - finite: RESCHEDULE_NOW_WITH_EXISTING_REPEAT_COUNT

    FIRE_NOW only makes sense for one-shot triggers; repeating triggers are
    upgraded to RESCHEDULE_NOW_WITH_REMAINING_REPEAT_COUNT.

    Examples:
        >>> resolve_misfire_instruction(MisfireInstruction.SMART_POLICY, 5)
        <MisfireInstruction.RESCHEDULE_NOW_WITH_EXISTING_REPEAT_COUNT: 2>
    """
    if instruction is MisfireInstruction.SMART_POLICY:
        if repeat_count == 0:
            return MisfireInstruction.FIRE_NOW
        if repeat_count == REPEAT_INDEFINITELY:
            return MisfireInstruction.RESCHEDULE_NEXT_WITH_REMAINING_COUNT
        return MisfireInstruction.RESCHEDULE_NOW_WITH_EXISTING_REPEAT_COUNT

    if instruction is MisfireInstruction.FIRE_NOW and repeat_count != 0:
        return MisfireInstruction.RESCHEDULE_NOW_WITH_REMAINING_REPEAT_COUNT

    return instruction
