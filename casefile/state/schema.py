"""
Pydantic models for per-player narrative state.

Everything a player accumulates (quest progress, discovered clues, NPC
relationships, world flags) lives under PlayerState. All state is versioned
for migration support and round-trips through JSON.
"""

from datetime import datetime
from enum import Enum
from pydantic import BaseModel, Field, PrivateAttr
from uuid import uuid4


# -----------------------------------------------------------------------------
# Enums
# -----------------------------------------------------------------------------

class EvidenceStrength(str, Enum):
    NONE = "none"
    WEAK = "weak"
    MODERATE = "moderate"
    STRONG = "strong"
    OVERWHELMING = "overwhelming"

    @property
    def rank(self) -> int:
        return list(EvidenceStrength).index(self)


class TrustLevel(str, Enum):
    HOSTILE = "hostile"
    SUSPICIOUS = "suspicious"
    NEUTRAL = "neutral"
    FRIENDLY = "friendly"
    TRUSTED = "trusted"
    CONFIDANT = "confidant"

    @property
    def rank(self) -> int:
        return list(TrustLevel).index(self)


class QuestStatus(str, Enum):
    NOT_STARTED = "not_started"
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"


class EmotionalState(str, Enum):
    CALM = "calm"
    ANXIOUS = "anxious"
    EXCITED = "excited"
    SUSPICIOUS = "suspicious"
    MELANCHOLY = "melancholy"
    CHEERFUL = "cheerful"
    ANGRY = "angry"


class ConversationCategory(str, Enum):
    QUEST_INITIATION = "quest_initiation"
    QUEST_INVESTIGATION = "quest_investigation"
    LORE = "lore"
    TRADING = "trading"
    INFORMATION = "information"
    CASUAL = "casual"


class Speaker(str, Enum):
    NPC = "npc"
    PLAYER = "player"
    NARRATOR = "narrator"


class DialogueApproach(str, Enum):
    """How the player phrases a choice. NPCs react to approaches differently."""
    CASUAL = "casual"
    OBSERVANT = "observant"
    INQUISITIVE = "inquisitive"
    INVESTIGATIVE = "investigative"
    DIRECT = "direct"
    SUPPORTIVE = "supportive"
    HELPFUL = "helpful"
    DEFENSIVE = "defensive"
    ANALYTICAL = "analytical"
    CURIOUS = "curious"
    PATIENT = "patient"
    ASSERTIVE = "assertive"
    DIPLOMATIC = "diplomatic"
    HEROIC = "heroic"
    CAUTIOUS = "cautious"


class FlagScope(str, Enum):
    GLOBAL = "global"
    QUEST = "quest"


# World flag values stay scalar so they serialize cleanly
FlagValue = bool | int | float | str


# -----------------------------------------------------------------------------
# Core Models
# -----------------------------------------------------------------------------

def generate_id() -> str:
    return str(uuid4())[:8]


class DiscoveredClue(BaseModel):
    """A clue the player has found for a quest."""
    clue_id: str
    quest_id: str
    strength: float
    location: str | None = None
    discovery_method: str = ""
    discovered_at: datetime = Field(default_factory=datetime.now)


class QuestProgress(BaseModel):
    """
    One run of a quest.

    Use add_clue() to record discoveries: it keeps the cached evidence
    classification in step with the clue set.
    """
    quest_id: str
    status: QuestStatus = QuestStatus.ACTIVE
    current_phase: str
    completed_phases: list[str] = Field(default_factory=list)  # Append-only
    discovered_clues: dict[str, DiscoveredClue] = Field(default_factory=dict)
    completed_objectives: list[str] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)
    flags: dict[str, FlagValue] = Field(default_factory=dict)  # Quest-scoped world flags
    failure_reason: str | None = None
    started_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    finished_at: datetime | None = None

    _evidence_cache: EvidenceStrength | None = PrivateAttr(default=None)

    @property
    def is_active(self) -> bool:
        return self.status == QuestStatus.ACTIVE

    @property
    def evidence_total(self) -> float:
        from ..rules.evidence import evidence_total
        return evidence_total(self.discovered_clues.values())

    @property
    def evidence_strength(self) -> EvidenceStrength:
        """Classification of the discovered clue total (cached)."""
        if self._evidence_cache is None:
            from ..rules.evidence import classify_evidence
            self._evidence_cache = classify_evidence(self.evidence_total)
        return self._evidence_cache

    def has_clue(self, clue_id: str) -> bool:
        return clue_id in self.discovered_clues

    def add_clue(self, clue: DiscoveredClue) -> bool:
        """Record a discovery. Returns False if the clue was already known."""
        if clue.clue_id in self.discovered_clues:
            return False
        self.discovered_clues[clue.clue_id] = clue
        self._evidence_cache = None
        self.updated_at = clue.discovered_at
        return True

    def has_objective(self, objective_id: str) -> bool:
        return objective_id in self.completed_objectives

    def add_objective(self, objective_id: str, when: datetime) -> bool:
        """Mark an objective complete. Returns False if it already was."""
        if objective_id in self.completed_objectives:
            return False
        self.completed_objectives.append(objective_id)
        self.updated_at = when
        return True

    def enter_phase(self, phase_id: str, when: datetime) -> None:
        """Move to phase_id, closing out the current phase."""
        self.completed_phases.append(self.current_phase)
        self.current_phase = phase_id
        self.updated_at = when

    def finish(self, status: QuestStatus, when: datetime, reason: str | None = None) -> None:
        if status == QuestStatus.COMPLETED:
            self.completed_phases.append(self.current_phase)
        self.status = status
        self.failure_reason = reason
        self.finished_at = when
        self.updated_at = when


class QuestLog(BaseModel):
    """
    All quest runs for one player.

    Terminal runs are never deleted: restarting a finished quest moves
    the earlier run into archived.
    """
    active: dict[str, QuestProgress] = Field(default_factory=dict)
    completed: dict[str, QuestProgress] = Field(default_factory=dict)
    failed: dict[str, QuestProgress] = Field(default_factory=dict)
    archived: list[QuestProgress] = Field(default_factory=list)

    def get(self, quest_id: str) -> QuestProgress | None:
        """Most relevant run: the active one, else the most recently finished."""
        if quest_id in self.active:
            return self.active[quest_id]
        finished = [bucket[quest_id] for bucket in (self.completed, self.failed) if quest_id in bucket]
        if not finished:
            return None
        return max(finished, key=lambda progress: progress.finished_at or progress.updated_at)

    def status(self, quest_id: str) -> QuestStatus:
        progress = self.get(quest_id)
        return progress.status if progress else QuestStatus.NOT_STARTED

    def file_terminal(self, progress: QuestProgress) -> None:
        """Move a finished run out of active into its terminal map."""
        self.active.pop(progress.quest_id, None)
        bucket = self.completed if progress.status == QuestStatus.COMPLETED else self.failed
        previous = bucket.get(progress.quest_id)
        if previous is not None:
            self.archived.append(previous)
        bucket[progress.quest_id] = progress


class InteractionRecord(BaseModel):
    """Record of one finished conversation with an NPC."""
    npc_id: str
    conversation_id: str
    choices: list[str] = Field(default_factory=list)  # Choice ids, in order
    net_trust_delta: int = 0
    outcome_tags: list[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=datetime.now)


class NpcRelationship(BaseModel):
    """
    A player's standing with one NPC.

    trust_ledger is the sum of every applied delta; the visible trust
    value is that sum clamped to [-100, 100].
    """
    npc_id: str
    player_id: str
    trust_ledger: int = 0
    history: list[InteractionRecord] = Field(default_factory=list)  # Append-only
    conversation_count: int = 0
    last_interaction: datetime | None = None
    flags: dict[str, bool] = Field(default_factory=dict)

    @property
    def trust_value(self) -> int:
        from ..rules.trust import clamp_trust
        return clamp_trust(self.trust_ledger)

    @property
    def trust_level(self) -> TrustLevel:
        from ..rules.trust import trust_level_for
        return trust_level_for(self.trust_value)

    def has_flag(self, flag: str) -> bool:
        return self.flags.get(flag, False)

    def record_interaction(self, record: InteractionRecord) -> InteractionRecord:
        self.history.append(record)
        self.conversation_count += 1
        self.last_interaction = record.timestamp
        return record


class WorldContext(BaseModel):
    """Where and when the player is."""
    hour: float = Field(default=12.0, ge=0.0, lt=24.0)
    location: str | None = None


class PlayerState(BaseModel):
    """Root of everything the engine tracks for one player."""
    schema_version: str = "1.0.0"
    player_id: str = Field(default_factory=generate_id)
    quest_log: QuestLog = Field(default_factory=QuestLog)
    relationships: dict[str, NpcRelationship] = Field(default_factory=dict)
    world_flags: dict[str, FlagValue] = Field(default_factory=dict)
    world: WorldContext = Field(default_factory=WorldContext)
    skills: dict[str, int] = Field(default_factory=dict)  # Supplied by character progression
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    def relationship_for(self, npc_id: str) -> NpcRelationship:
        """Get the relationship with an NPC, creating a neutral one on first contact."""
        if npc_id not in self.relationships:
            self.relationships[npc_id] = NpcRelationship(
                npc_id=npc_id,
                player_id=self.player_id,
            )
        return self.relationships[npc_id]
