"""
Dialogue condition evaluation.

Pure functions over a PlayerNarrativeSnapshot: no mutation, no clock,
no randomness. The same conditions and snapshot always give the same
answer, so choices can be filtered for display and re-validated on
selection with identical results.
"""

from __future__ import annotations

import logging
from typing import Callable, Sequence

from ..state.schema import FlagScope
from ..state.snapshot import PlayerNarrativeSnapshot
from ..state.schemas.conditions import (
    DialogueCondition,
    QuestActiveCondition,
    QuestCompletedCondition,
    ClueDiscoveredCondition,
    TrustAtLeastCondition,
    TimeOfDayCondition,
    LocationCondition,
    FlagSetCondition,
    WorldFlagCondition,
    EvidenceAtLeastCondition,
    SkillAtLeastCondition,
)
from .evidence import meets_strength
from .trust import trust_level_for

logger = logging.getLogger(__name__)


def _quest_active(cond: QuestActiveCondition, snap: PlayerNarrativeSnapshot) -> bool:
    view = snap.active_quests.get(cond.quest_id)
    if view is None:
        return False
    return cond.phase is None or view.phase == cond.phase


def _quest_completed(cond: QuestCompletedCondition, snap: PlayerNarrativeSnapshot) -> bool:
    return cond.quest_id in snap.completed_quests


def _clue_discovered(cond: ClueDiscoveredCondition, snap: PlayerNarrativeSnapshot) -> bool:
    if cond.quest_id is None:
        return cond.clue_id in snap.discovered_clues
    return cond.clue_id in snap.quest_clues(cond.quest_id)


def _trust_at_least(cond: TrustAtLeastCondition, snap: PlayerNarrativeSnapshot) -> bool:
    npc_id = cond.npc_id or snap.focus_npc
    if npc_id is None:
        return False
    value = snap.trust_for(npc_id)
    if cond.value is not None and value < cond.value:
        return False
    if cond.level is not None and trust_level_for(value).rank < cond.level.rank:
        return False
    return True


def hour_in_range(hour: float, start: float, end: float) -> bool:
    """Half-open [start, end); wraps midnight when start > end."""
    if start <= end:
        return start <= hour < end
    return hour >= start or hour < end


def _time_of_day(cond: TimeOfDayCondition, snap: PlayerNarrativeSnapshot) -> bool:
    return hour_in_range(snap.hour, cond.start_hour, cond.end_hour)


def _location(cond: LocationCondition, snap: PlayerNarrativeSnapshot) -> bool:
    return snap.location == cond.location


def _flag_set(cond: FlagSetCondition, snap: PlayerNarrativeSnapshot) -> bool:
    npc_id = cond.npc_id or snap.focus_npc
    if npc_id is None:
        return False
    return snap.has_npc_flag(npc_id, cond.flag)


def flag_values_equal(left, right) -> bool:
    """Equality that keeps booleans apart from numbers (True != 1)."""
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    return left == right


def _world_flag(cond: WorldFlagCondition, snap: PlayerNarrativeSnapshot) -> bool:
    if cond.scope == FlagScope.QUEST:
        view = snap.active_quests.get(cond.quest_id)
        if view is not None:
            flags = view.flags
        else:
            # Finished runs keep their flags
            flags = snap.quest_flags.get(cond.quest_id, {})
    else:
        flags = snap.world_flags
    if cond.key not in flags:
        return False
    return flag_values_equal(flags[cond.key], cond.value)


def _evidence_at_least(cond: EvidenceAtLeastCondition, snap: PlayerNarrativeSnapshot) -> bool:
    view = snap.active_quests.get(cond.quest_id)
    if view is None:
        return False
    return meets_strength(view.evidence_strength, cond.strength)


def _skill_at_least(cond: SkillAtLeastCondition, snap: PlayerNarrativeSnapshot) -> bool:
    return snap.skills.get(cond.skill, 0) >= cond.level


# Every condition kind must have an entry here
CONDITION_EVALUATORS: dict[str, Callable[..., bool]] = {
    "quest_active": _quest_active,
    "quest_completed": _quest_completed,
    "clue_discovered": _clue_discovered,
    "trust_at_least": _trust_at_least,
    "time_of_day": _time_of_day,
    "location": _location,
    "flag_set": _flag_set,
    "world_flag": _world_flag,
    "evidence_at_least": _evidence_at_least,
    "skill_at_least": _skill_at_least,
}


def evaluate_condition(condition: DialogueCondition, snapshot: PlayerNarrativeSnapshot) -> bool:
    """Evaluate one condition, honoring its negate flag."""
    result = CONDITION_EVALUATORS[condition.kind](condition, snapshot)
    return result != condition.negate


def evaluate(
    conditions: Sequence[DialogueCondition],
    snapshot: PlayerNarrativeSnapshot,
) -> bool:
    """
    Check a conjunctive condition list.

    Args:
        conditions: Conditions that must all hold
        snapshot: Read-only player state

    Returns:
        True when every condition holds (and for an empty list)
    """
    for condition in conditions:
        if not evaluate_condition(condition, snapshot):
            logger.debug(f"Condition failed: {condition.kind} {condition.model_dump(exclude={'kind'})}")
            return False
    return True


def explain(
    conditions: Sequence[DialogueCondition],
    snapshot: PlayerNarrativeSnapshot,
) -> list[DialogueCondition]:
    """Return the conditions that do not hold (empty when all pass)."""
    return [c for c in conditions if not evaluate_condition(c, snapshot)]
