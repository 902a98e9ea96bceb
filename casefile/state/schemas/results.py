"""
Values returned by engine operations.

These are snapshots for the caller: mutating them never changes
player state.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from ..schema import (
    EmotionalState,
    EvidenceStrength,
    InteractionRecord,
    QuestStatus,
    Speaker,
    TrustLevel,
)


class ClueStatus(str, Enum):
    DISCOVERED = "discovered"
    ALREADY_KNOWN = "already_known"


class TransitionStatus(str, Enum):
    ADVANCED = "advanced"
    NO_ELIGIBLE_PHASE = "no_eligible_phase"


class PhaseTransitionResult(BaseModel):
    quest_id: str
    status: TransitionStatus
    from_phase: str
    to_phase: str | None = None
    eligible: list[str] = Field(default_factory=list)  # Every phase that qualified

    @property
    def advanced(self) -> bool:
        return self.status == TransitionStatus.ADVANCED


class ClueOutcome(BaseModel):
    quest_id: str
    clue_id: str
    status: ClueStatus
    new_strength: EvidenceStrength
    evidence_total: float
    transitions: list[PhaseTransitionResult] = Field(default_factory=list)
    quest_status: QuestStatus = QuestStatus.ACTIVE

    @property
    def discovered(self) -> bool:
        return self.status == ClueStatus.DISCOVERED


class ObjectiveOutcome(BaseModel):
    quest_id: str
    objective_id: str
    newly_completed: bool
    transitions: list[PhaseTransitionResult] = Field(default_factory=list)
    quest_status: QuestStatus = QuestStatus.ACTIVE


class QuestCompletionSummary(BaseModel):
    quest_id: str
    final_phase: str
    completed_phases: list[str]
    clues: list[str]
    final_evidence_strength: EvidenceStrength
    evidence_total: float
    rewards: dict[str, Any] = Field(default_factory=dict)
    completed_at: datetime


class QuestFailureSummary(BaseModel):
    quest_id: str
    phase: str
    reason: str
    failed_at: datetime


class RewardRequest(BaseModel):
    """Handed to character progression when a quest completes."""
    player_id: str
    quest_id: str
    rewards: dict[str, Any] = Field(default_factory=dict)
    final_evidence_strength: EvidenceStrength
    requested_at: datetime


class TrustChange(BaseModel):
    npc_id: str
    applied_delta: int
    old_value: int
    new_value: int
    old_level: TrustLevel
    new_level: TrustLevel
    reason: str = ""

    @property
    def level_changed(self) -> bool:
        return self.old_level != self.new_level


class ConversationHandle(BaseModel):
    """Caller's reference to an open conversation."""
    handle_id: str
    player_id: str
    npc_id: str
    conversation_id: str
    current_node: str
    active: bool = True
    started_at: datetime


class PresentedChoice(BaseModel):
    choice_id: str
    text: str


class PresentedNode(BaseModel):
    handle_id: str
    npc_id: str
    conversation_id: str
    node_id: str
    speaker: Speaker
    text: str
    emotional_state: EmotionalState
    choices: list[PresentedChoice] = Field(default_factory=list)
    ended: bool = False  # No choices were available
    record: InteractionRecord | None = None


class ChoiceOutcome(BaseModel):
    choice_id: str
    next_node: str | None = None
    ended: bool = False
    trust_delta: int = 0  # Applied to the conversation NPC
    revealed_clues: list[str] = Field(default_factory=list)
    started_quests: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)  # Consequences with nothing to act on
    outcome_tags: list[str] = Field(default_factory=list)
    record: InteractionRecord | None = None
