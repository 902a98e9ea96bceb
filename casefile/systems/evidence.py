"""
Evidence tracking.

Records clue discoveries against an active quest and keeps the quest's
evidence classification current. Rediscovering a clue changes nothing.
Phase advancement is not triggered from here; the session manager asks
the quest system to react after a discovery.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..errors import QuestNotActive, UnknownClue, UnknownQuest
from ..state.event_bus import EventType
from ..state.schema import DiscoveredClue, EvidenceStrength, QuestProgress
from ..state.schemas.results import ClueOutcome, ClueStatus

if TYPE_CHECKING:
    from ..state.manager import SessionManager

logger = logging.getLogger(__name__)


class EvidenceSystem:
    """Discovers clues and reports evidence strength per quest."""

    def __init__(self, manager: "SessionManager"):
        self.manager = manager

    @property
    def _quest_log(self):
        return self.manager.current.quest_log

    def _active_progress(self, quest_id: str) -> QuestProgress:
        if self.manager.catalog.lookup_quest(quest_id) is None:
            raise UnknownQuest(quest_id)
        progress = self._quest_log.active.get(quest_id)
        if progress is None:
            raise QuestNotActive(quest_id)
        return progress

    def record_clue(
        self,
        quest_id: str,
        clue_id: str,
        location: str | None = None,
        method: str | None = None,
    ) -> ClueOutcome:
        """
        Record a clue for an active quest.

        Args:
            quest_id: Quest the clue belongs to
            clue_id: Clue declared by that quest
            location: Where it was found (defaults to the player's location)
            method: How it was found (defaults to the authored method)

        Returns:
            ClueOutcome with DISCOVERED and the new strength, or
            ALREADY_KNOWN with nothing changed

        Raises:
            UnknownQuest, QuestNotActive, UnknownClue
        """
        progress = self._active_progress(quest_id)
        definition = self.manager.catalog.lookup_quest(quest_id)
        clue = definition.available_clues.get(clue_id)
        if clue is None:
            raise UnknownClue(clue_id, quest_id)

        if progress.has_clue(clue_id):
            return ClueOutcome(
                quest_id=quest_id,
                clue_id=clue_id,
                status=ClueStatus.ALREADY_KNOWN,
                new_strength=progress.evidence_strength,
                evidence_total=progress.evidence_total,
            )

        before = progress.evidence_strength
        progress.add_clue(DiscoveredClue(
            clue_id=clue_id,
            quest_id=quest_id,
            strength=clue.strength,
            location=location or self.manager.current.world.location or clue.location,
            discovery_method=method or clue.discovery_method,
            discovered_at=self.manager.now(),
        ))
        after = progress.evidence_strength
        self.manager.touch()

        logger.info(f"Clue '{clue_id}' found for '{quest_id}' (evidence {after.value})")
        self.manager.emit(
            EventType.CLUE_DISCOVERED,
            quest_id=quest_id,
            clue_id=clue_id,
            strength=clue.strength,
            evidence_strength=after.value,
        )
        if after != before:
            self.manager.emit(
                EventType.EVIDENCE_STRENGTH_CHANGED,
                quest_id=quest_id,
                before=before.value,
                after=after.value,
            )

        return ClueOutcome(
            quest_id=quest_id,
            clue_id=clue_id,
            status=ClueStatus.DISCOVERED,
            new_strength=after,
            evidence_total=progress.evidence_total,
        )

    def evidence_strength(self, quest_id: str) -> EvidenceStrength:
        """Current classification; NONE for a quest never started."""
        progress = self._quest_log.get(quest_id)
        return progress.evidence_strength if progress else EvidenceStrength.NONE

    def evidence_total(self, quest_id: str) -> float:
        progress = self._quest_log.get(quest_id)
        return progress.evidence_total if progress else 0.0

    def discovered(self, quest_id: str) -> list[DiscoveredClue]:
        """Discovered clues for a quest, in discovery order."""
        progress = self._quest_log.get(quest_id)
        return list(progress.discovered_clues.values()) if progress else []
