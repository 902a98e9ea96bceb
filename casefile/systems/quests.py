"""
Quest progression state machine.

    NotStarted → Active(phase) → {Completed, Failed}

Within Active, the quest moves along its phase graph whenever a directly
reachable, unvisited phase has its unlock conditions met. Advancement is
re-checked automatically after every clue discovery and objective
completion, and keeps going while phases keep unlocking.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..errors import (
    AlreadyActive,
    ContentIntegrityError,
    PhaseNotTerminal,
    QuestNotActive,
    UnknownObjective,
    UnknownQuest,
)
from ..rules.conditions import evaluate
from ..rules.progression import phase_requirements_met
from ..state.event_bus import EventType
from ..state.schema import QuestProgress, QuestStatus
from ..state.schemas.quest import QuestDefinition
from ..state.schemas.results import (
    ObjectiveOutcome,
    PhaseTransitionResult,
    QuestCompletionSummary,
    QuestFailureSummary,
    RewardRequest,
    TransitionStatus,
)

if TYPE_CHECKING:
    from ..state.manager import SessionManager

logger = logging.getLogger(__name__)


class QuestSystem:
    """
    Starts, advances, completes and fails quests.

    Phase choice when several unlock at once: lowest declared priority,
    then phase id. Phases are entered at most once per run, so
    advancement always terminates even on cyclic graphs.
    """

    def __init__(self, manager: "SessionManager"):
        self.manager = manager

    @property
    def _quest_log(self):
        return self.manager.current.quest_log

    def _definition(self, quest_id: str) -> QuestDefinition:
        definition = self.manager.catalog.lookup_quest(quest_id)
        if definition is None:
            raise UnknownQuest(quest_id)
        return definition

    def _active(self, quest_id: str) -> tuple[QuestDefinition, QuestProgress]:
        definition = self._definition(quest_id)
        progress = self._quest_log.active.get(quest_id)
        if progress is None:
            raise QuestNotActive(quest_id)
        return definition, progress

    # ─── Queries ─────────────────────────────────────────────────

    def status(self, quest_id: str) -> QuestStatus:
        return self._quest_log.status(quest_id)

    def progress(self, quest_id: str) -> QuestProgress | None:
        return self._quest_log.get(quest_id)

    def current_phase(self, quest_id: str) -> str | None:
        """Phase of the active run, or None if the quest is not active."""
        progress = self._quest_log.active.get(quest_id)
        return progress.current_phase if progress else None

    def active_quest_ids(self) -> list[str]:
        return list(self._quest_log.active)

    # ─── Lifecycle ───────────────────────────────────────────────

    def start_quest(self, quest_id: str) -> QuestProgress:
        """
        Begin a quest at its initial phase.

        A finished quest may be started again; its earlier run stays in
        the completed/failed map until the new run finishes.

        Raises:
            UnknownQuest: quest not in the catalog
            AlreadyActive: a run is already in progress
            ContentIntegrityError: initial phase is not defined
        """
        definition = self._definition(quest_id)
        if quest_id in self._quest_log.active:
            raise AlreadyActive(quest_id)

        start = definition.start_phase
        if start is None or definition.phase(start) is None:
            raise ContentIntegrityError(
                f"initial phase '{start}' is not defined",
                source=f"quest:{quest_id}",
            )

        now = self.manager.now()
        progress = QuestProgress(
            quest_id=quest_id,
            current_phase=start,
            started_at=now,
            updated_at=now,
        )
        self._quest_log.active[quest_id] = progress
        self.manager.touch()

        logger.info(f"Quest '{quest_id}' started at phase '{start}'")
        self.manager.emit(EventType.QUEST_STARTED, quest_id=quest_id, phase=start)
        return progress

    def complete_objective(self, quest_id: str, objective_id: str) -> ObjectiveOutcome:
        """
        Mark an objective complete and re-check phase advancement.

        Completing an objective twice is a no-op.

        Raises:
            UnknownQuest, QuestNotActive, UnknownObjective
        """
        definition, progress = self._active(quest_id)
        if not definition.declares_objective(objective_id):
            raise UnknownObjective(objective_id, quest_id)

        with self.manager.transaction():
            newly = progress.add_objective(objective_id, self.manager.now())
            outcome = ObjectiveOutcome(
                quest_id=quest_id,
                objective_id=objective_id,
                newly_completed=newly,
            )
            if not newly:
                return outcome

            self.manager.touch()
            logger.info(f"Objective '{objective_id}' completed for '{quest_id}'")
            self.manager.emit(
                EventType.QUEST_OBJECTIVE_COMPLETED,
                quest_id=quest_id,
                objective_id=objective_id,
            )
            outcome.transitions = self.advance_after_change(quest_id)
            outcome.quest_status = self.status(quest_id)
        return outcome

    def try_advance_phase(self, quest_id: str) -> PhaseTransitionResult:
        """
        Take one step along the phase graph if a successor has unlocked.

        Returns:
            ADVANCED with the new phase, or NO_ELIGIBLE_PHASE

        Raises:
            UnknownQuest, QuestNotActive
            ContentIntegrityError: a successor phase is not defined
        """
        definition, progress = self._active(quest_id)
        current = progress.current_phase
        visited = set(progress.completed_phases) | {current}

        eligible = []
        for phase_id in definition.successors(current):
            phase = definition.phase(phase_id)
            if phase is None:
                raise ContentIntegrityError(
                    f"phase '{current}' leads to undefined phase '{phase_id}'",
                    source=f"quest:{quest_id}",
                )
            if phase_id in visited:
                continue
            if phase_requirements_met(phase, progress):
                eligible.append(phase_id)

        if not eligible:
            return PhaseTransitionResult(
                quest_id=quest_id,
                status=TransitionStatus.NO_ELIGIBLE_PHASE,
                from_phase=current,
            )

        chosen = min(eligible, key=lambda pid: (definition.priority_of(pid), pid))
        progress.enter_phase(chosen, self.manager.now())
        self.manager.touch()

        logger.info(f"Quest '{quest_id}' advanced {current} -> {chosen}")
        self.manager.emit(
            EventType.QUEST_PHASE_ADVANCED,
            quest_id=quest_id,
            from_phase=current,
            to_phase=chosen,
        )
        return PhaseTransitionResult(
            quest_id=quest_id,
            status=TransitionStatus.ADVANCED,
            from_phase=current,
            to_phase=chosen,
            eligible=eligible,
        )

    def advance_after_change(self, quest_id: str) -> list[PhaseTransitionResult]:
        """
        Advance as far as the quest's state allows, then check fail conditions.

        Returns:
            Every transition taken, in order
        """
        definition = self._definition(quest_id)
        transitions = []
        for _ in range(len(definition.phases)):
            if quest_id not in self._quest_log.active:
                break
            result = self.try_advance_phase(quest_id)
            if not result.advanced:
                break
            transitions.append(result)

        if quest_id in self._quest_log.active:
            self.check_fail_conditions(quest_id)
        return transitions

    def complete_quest(self, quest_id: str) -> QuestCompletionSummary:
        """
        Finish a quest from a terminal phase and request its rewards.

        Raises:
            UnknownQuest, QuestNotActive
            PhaseNotTerminal: current phase is not terminal
        """
        definition, progress = self._active(quest_id)
        if not definition.is_terminal(progress.current_phase):
            raise PhaseNotTerminal(quest_id, progress.current_phase)

        now = self.manager.now()
        final_phase = progress.current_phase
        progress.finish(QuestStatus.COMPLETED, now)
        self._quest_log.file_terminal(progress)
        self.manager.touch()

        summary = QuestCompletionSummary(
            quest_id=quest_id,
            final_phase=final_phase,
            completed_phases=list(progress.completed_phases),
            clues=list(progress.discovered_clues),
            final_evidence_strength=progress.evidence_strength,
            evidence_total=progress.evidence_total,
            rewards=dict(definition.rewards),
            completed_at=now,
        )

        logger.info(
            f"Quest '{quest_id}' completed with {summary.final_evidence_strength.value} evidence"
        )
        self.manager.emit(
            EventType.QUEST_COMPLETED,
            quest_id=quest_id,
            final_phase=final_phase,
            evidence_strength=summary.final_evidence_strength.value,
        )
        self.manager.request_reward(RewardRequest(
            player_id=self.manager.player_id,
            quest_id=quest_id,
            rewards=dict(definition.rewards),
            final_evidence_strength=summary.final_evidence_strength,
            requested_at=now,
        ))
        return summary

    def fail_quest(self, quest_id: str, reason: str) -> QuestFailureSummary:
        """
        Fail an active quest.

        Raises:
            UnknownQuest, QuestNotActive
        """
        _, progress = self._active(quest_id)
        now = self.manager.now()
        progress.finish(QuestStatus.FAILED, now, reason=reason)
        self._quest_log.file_terminal(progress)
        self.manager.touch()

        logger.info(f"Quest '{quest_id}' failed: {reason}")
        self.manager.emit(
            EventType.QUEST_FAILED,
            quest_id=quest_id,
            phase=progress.current_phase,
            reason=reason,
        )
        return QuestFailureSummary(
            quest_id=quest_id,
            phase=progress.current_phase,
            reason=reason,
            failed_at=now,
        )

    def check_fail_conditions(self, quest_id: str) -> QuestFailureSummary | None:
        """
        Fail the quest if any authored fail condition now holds.

        Fail conditions with no conditions never fire.

        Returns:
            Failure summary if the quest failed, else None
        """
        definition, progress = self._active(quest_id)
        if not definition.fail_conditions:
            return None

        snapshot = self.manager.snapshot()
        for fail in definition.fail_conditions:
            if fail.phases and progress.current_phase not in fail.phases:
                continue
            if fail.conditions and evaluate(fail.conditions, snapshot):
                return self.fail_quest(quest_id, fail.reason or fail.id)
        return None

    def check_all_fail_conditions(self) -> list[QuestFailureSummary]:
        """Run fail checks for every active quest."""
        failures = []
        for quest_id in list(self._quest_log.active):
            if self.manager.catalog.lookup_quest(quest_id) is None:
                continue
            failure = self.check_fail_conditions(quest_id)
            if failure is not None:
                failures.append(failure)
        return failures

    def add_note(self, quest_id: str, note: str) -> list[str]:
        """
        Append an investigation note to an active quest.

        Returns:
            All notes for the run
        """
        _, progress = self._active(quest_id)
        progress.notes.append(note)
        progress.updated_at = self.manager.now()
        self.manager.touch()
        self.manager.emit(EventType.QUEST_NOTE_ADDED, quest_id=quest_id, note=note)
        return list(progress.notes)
