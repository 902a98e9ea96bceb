"""
Phase unlock rules.

A phase is eligible when the quest's evidence meets the required band,
every required objective is complete, and every required clue is known.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .evidence import meets_strength

if TYPE_CHECKING:
    from ..state.schema import QuestProgress
    from ..state.schemas.quest import QuestPhase


def missing_requirements(phase: "QuestPhase", progress: "QuestProgress") -> list[str]:
    """
    List what still blocks a phase.

    Args:
        phase: Candidate phase
        progress: Current quest run

    Returns:
        Human-readable requirement strings; empty when the phase is eligible
    """
    unlock = phase.unlock_conditions
    missing = []

    if not meets_strength(progress.evidence_strength, unlock.required_evidence_strength):
        missing.append(
            f"evidence {progress.evidence_strength.value} < "
            f"{unlock.required_evidence_strength.value}"
        )
    for objective_id in unlock.completed_objectives:
        if not progress.has_objective(objective_id):
            missing.append(f"objective {objective_id}")
    for clue_id in unlock.required_clues:
        if not progress.has_clue(clue_id):
            missing.append(f"clue {clue_id}")

    return missing


def phase_requirements_met(phase: "QuestPhase", progress: "QuestProgress") -> bool:
    return not missing_requirements(phase, progress)
