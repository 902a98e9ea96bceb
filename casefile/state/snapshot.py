"""
Read-only view of a player's narrative state.

The condition evaluator only ever sees a PlayerNarrativeSnapshot, never
live state, so evaluating twice against the same snapshot gives the
same answer.
"""

from pydantic import BaseModel, ConfigDict, Field

from .schema import EvidenceStrength, FlagValue, PlayerState, QuestProgress


class QuestView(BaseModel):
    model_config = ConfigDict(frozen=True)

    quest_id: str
    phase: str
    completed_objectives: frozenset[str] = frozenset()
    clues: frozenset[str] = frozenset()
    evidence_strength: EvidenceStrength = EvidenceStrength.NONE
    flags: dict[str, FlagValue] = Field(default_factory=dict)


class PlayerNarrativeSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    player_id: str
    focus_npc: str | None = None  # NPC the player is talking to
    active_quests: dict[str, QuestView] = Field(default_factory=dict)
    completed_quests: frozenset[str] = frozenset()
    failed_quests: frozenset[str] = frozenset()
    discovered_clues: frozenset[str] = frozenset()  # Across every quest run
    trust: dict[str, int] = Field(default_factory=dict)
    npc_flags: dict[str, frozenset[str]] = Field(default_factory=dict)
    world_flags: dict[str, FlagValue] = Field(default_factory=dict)
    quest_flags: dict[str, dict[str, FlagValue]] = Field(default_factory=dict)
    hour: float = 12.0
    location: str | None = None
    skills: dict[str, int] = Field(default_factory=dict)

    def trust_for(self, npc_id: str) -> int:
        return self.trust.get(npc_id, 0)

    def has_npc_flag(self, npc_id: str, flag: str) -> bool:
        return flag in self.npc_flags.get(npc_id, frozenset())

    def quest_clues(self, quest_id: str) -> frozenset[str]:
        view = self.active_quests.get(quest_id)
        return view.clues if view else frozenset()


def _quest_view(progress: QuestProgress) -> QuestView:
    return QuestView(
        quest_id=progress.quest_id,
        phase=progress.current_phase,
        completed_objectives=frozenset(progress.completed_objectives),
        clues=frozenset(progress.discovered_clues),
        evidence_strength=progress.evidence_strength,
        flags=dict(progress.flags),
    )


def build_snapshot(player: PlayerState, focus_npc: str | None = None) -> PlayerNarrativeSnapshot:
    """Copy everything conditions can read out of live player state."""
    log = player.quest_log
    runs = [*log.active.values(), *log.completed.values(), *log.failed.values()]

    # Active runs win over finished ones for quest-scoped flags
    quest_flags: dict[str, dict[str, FlagValue]] = {}
    for progress in [*log.failed.values(), *log.completed.values(), *log.active.values()]:
        quest_flags[progress.quest_id] = dict(progress.flags)

    return PlayerNarrativeSnapshot(
        player_id=player.player_id,
        focus_npc=focus_npc,
        active_quests={qid: _quest_view(p) for qid, p in log.active.items()},
        completed_quests=frozenset(log.completed),
        failed_quests=frozenset(log.failed),
        discovered_clues=frozenset(cid for p in runs for cid in p.discovered_clues),
        trust={npc_id: rel.trust_value for npc_id, rel in player.relationships.items()},
        npc_flags={
            npc_id: frozenset(flag for flag, on in rel.flags.items() if on)
            for npc_id, rel in player.relationships.items()
        },
        world_flags=dict(player.world_flags),
        quest_flags=quest_flags,
        hour=player.world.hour,
        location=player.world.location,
        skills=dict(player.skills),
    )
