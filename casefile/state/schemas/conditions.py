"""
Condition and consequence data carried by authored content.

Both are tagged unions keyed on ``kind`` so new variants are added as data
shapes, and evaluation/application dispatch stays exhaustive.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..schema import EvidenceStrength, FlagScope, FlagValue, TrustLevel


class _Condition(BaseModel):
    model_config = ConfigDict(frozen=True)

    negate: bool = False  # Invert the result


# ─── Conditions ──────────────────────────────────────────────────


class QuestActiveCondition(_Condition):
    """Quest is running, optionally at a specific phase."""
    kind: Literal["quest_active"] = "quest_active"
    quest_id: str
    phase: str | None = None


class QuestCompletedCondition(_Condition):
    kind: Literal["quest_completed"] = "quest_completed"
    quest_id: str


class ClueDiscoveredCondition(_Condition):
    """Clue found, in a given quest or in any quest."""
    kind: Literal["clue_discovered"] = "clue_discovered"
    clue_id: str
    quest_id: str | None = None


class TrustAtLeastCondition(_Condition):
    """
    Trust with an NPC meets a level and/or a numeric value.

    npc_id defaults to the NPC the player is talking to.
    """
    kind: Literal["trust_at_least"] = "trust_at_least"
    npc_id: str | None = None
    level: TrustLevel | None = None
    value: int | None = None

    @model_validator(mode="after")
    def _needs_threshold(self):
        if self.level is None and self.value is None:
            raise ValueError("trust_at_least needs a level or a value")
        return self


class TimeOfDayCondition(_Condition):
    """Hour falls in [start_hour, end_hour); wraps past midnight when start > end."""
    kind: Literal["time_of_day"] = "time_of_day"
    start_hour: float = Field(ge=0.0, le=24.0)
    end_hour: float = Field(ge=0.0, le=24.0)


class LocationCondition(_Condition):
    kind: Literal["location"] = "location"
    location: str


class FlagSetCondition(_Condition):
    """A prior-choice or unlock flag is set on an NPC relationship."""
    kind: Literal["flag_set"] = "flag_set"
    flag: str
    npc_id: str | None = None


class WorldFlagCondition(_Condition):
    kind: Literal["world_flag"] = "world_flag"
    key: str
    value: FlagValue = True
    scope: FlagScope = FlagScope.GLOBAL
    quest_id: str | None = None

    @model_validator(mode="after")
    def _quest_scope_needs_quest(self):
        if self.scope == FlagScope.QUEST and not self.quest_id:
            raise ValueError("quest-scoped world flags need a quest_id")
        return self


class EvidenceAtLeastCondition(_Condition):
    kind: Literal["evidence_at_least"] = "evidence_at_least"
    quest_id: str
    strength: EvidenceStrength

    @model_validator(mode="before")
    @classmethod
    def _coerce_strength(cls, data):
        if isinstance(data, dict) and "strength" in data:
            from ...rules.evidence import coerce_strength
            data = {**data, "strength": coerce_strength(data["strength"])}
        return data


class SkillAtLeastCondition(_Condition):
    kind: Literal["skill_at_least"] = "skill_at_least"
    skill: str
    level: int


DialogueCondition = Annotated[
    Union[
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
    ],
    Field(discriminator="kind"),
]


# ─── Consequences ────────────────────────────────────────────────


class _Consequence(BaseModel):
    model_config = ConfigDict(frozen=True)


class TrustDeltaConsequence(_Consequence):
    kind: Literal["trust_delta"] = "trust_delta"
    delta: int
    npc_id: str | None = None  # Defaults to the conversation NPC
    reason: str = ""


class RevealClueConsequence(_Consequence):
    """Reveal a clue; quest_id defaults to the quest that declares the clue."""
    kind: Literal["reveal_clue"] = "reveal_clue"
    clue_id: str
    quest_id: str | None = None
    location: str | None = None


class StartQuestConsequence(_Consequence):
    kind: Literal["start_quest"] = "start_quest"
    quest_id: str


class SetWorldFlagConsequence(_Consequence):
    kind: Literal["set_world_flag"] = "set_world_flag"
    key: str
    value: FlagValue = True
    scope: FlagScope = FlagScope.GLOBAL
    quest_id: str | None = None

    @model_validator(mode="after")
    def _quest_scope_needs_quest(self):
        if self.scope == FlagScope.QUEST and not self.quest_id:
            raise ValueError("quest-scoped world flags need a quest_id")
        return self


class UnlockFlagConsequence(_Consequence):
    """Set a one-off flag on an NPC relationship for future dialogue."""
    kind: Literal["unlock_flag"] = "unlock_flag"
    flag: str
    npc_id: str | None = None


class CompleteObjectiveConsequence(_Consequence):
    kind: Literal["complete_objective"] = "complete_objective"
    quest_id: str
    objective_id: str


class CompleteQuestConsequence(_Consequence):
    kind: Literal["complete_quest"] = "complete_quest"
    quest_id: str


DialogueConsequence = Annotated[
    Union[
        TrustDeltaConsequence,
        RevealClueConsequence,
        StartQuestConsequence,
        SetWorldFlagConsequence,
        UnlockFlagConsequence,
        CompleteObjectiveConsequence,
        CompleteQuestConsequence,
    ],
    Field(discriminator="kind"),
]
