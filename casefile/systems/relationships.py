"""
NPC relationship tracking.

Each player holds one relationship per NPC, created neutral on first
contact. Trust moves by deltas; the visible value is clamped to
[-100, 100] and banded into trust levels.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..state.event_bus import EventType
from ..state.schema import InteractionRecord, NpcRelationship, TrustLevel
from ..state.schemas.results import TrustChange
from ..rules.trust import trust_level_for

if TYPE_CHECKING:
    from ..state.manager import SessionManager

logger = logging.getLogger(__name__)


class RelationshipSystem:
    """Trust, flags and interaction history between a player and NPCs."""

    def __init__(self, manager: "SessionManager"):
        self.manager = manager

    @property
    def _player(self):
        return self.manager.current

    def relationship(self, npc_id: str) -> NpcRelationship:
        """Get (or create) the relationship with an NPC."""
        return self._player.relationship_for(npc_id)

    def trust_value(self, npc_id: str) -> int:
        rel = self._player.relationships.get(npc_id)
        return rel.trust_value if rel else 0

    def trust_level(self, npc_id: str) -> TrustLevel:
        return trust_level_for(self.trust_value(npc_id))

    def modify_trust(self, npc_id: str, delta: int, reason: str = "") -> TrustChange:
        """
        Shift trust with an NPC.

        Args:
            npc_id: NPC whose trust changes
            delta: Signed change
            reason: Why (kept in the event payload)

        Returns:
            TrustChange with before/after values and levels
        """
        rel = self.relationship(npc_id)
        old_value, old_level = rel.trust_value, rel.trust_level
        rel.trust_ledger += delta
        change = TrustChange(
            npc_id=npc_id,
            applied_delta=delta,
            old_value=old_value,
            new_value=rel.trust_value,
            old_level=old_level,
            new_level=rel.trust_level,
            reason=reason,
        )
        self.manager.touch()

        logger.debug(f"Trust with '{npc_id}' {old_value} -> {change.new_value} ({reason or 'no reason'})")
        self.manager.emit(
            EventType.TRUST_CHANGED,
            npc_id=npc_id,
            delta=delta,
            before=old_value,
            after=change.new_value,
            reason=reason,
        )
        if change.level_changed:
            logger.info(f"Trust level with '{npc_id}' is now {change.new_level.value}")
            self.manager.emit(
                EventType.TRUST_LEVEL_CHANGED,
                npc_id=npc_id,
                before=old_level.value,
                after=change.new_level.value,
            )
        return change

    def set_flag(self, npc_id: str, flag: str) -> bool:
        """Set a relationship flag. Returns False if it was already set."""
        rel = self.relationship(npc_id)
        if rel.has_flag(flag):
            return False
        rel.flags[flag] = True
        self.manager.touch()
        self.manager.emit(EventType.NPC_FLAG_SET, npc_id=npc_id, flag=flag)
        return True

    def has_flag(self, npc_id: str, flag: str) -> bool:
        rel = self._player.relationships.get(npc_id)
        return rel.has_flag(flag) if rel else False

    def record_interaction(self, npc_id: str, record: InteractionRecord) -> InteractionRecord:
        """Append to interaction history. Only the dialogue system calls this."""
        self.relationship(npc_id).record_interaction(record)
        self.manager.touch()
        self.manager.emit(
            EventType.INTERACTION_RECORDED,
            npc_id=npc_id,
            conversation_id=record.conversation_id,
            net_trust_delta=record.net_trust_delta,
        )
        return record

    def history(self, npc_id: str) -> list[InteractionRecord]:
        rel = self._player.relationships.get(npc_id)
        return list(rel.history) if rel else []
