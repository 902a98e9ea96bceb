"""
Quest content definitions.

Authored once, loaded into the catalog, never mutated at runtime.
Phases and clues are keyed by id; a missing inner ``id`` is filled
from its key.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..schema import EvidenceStrength
from .conditions import DialogueCondition


def _fill_ids(entries: Any) -> Any:
    """Copy each mapping key into its entry's ``id`` when absent."""
    if not isinstance(entries, dict):
        return entries
    filled = {}
    for key, entry in entries.items():
        if isinstance(entry, dict) and "id" not in entry:
            entry = {**entry, "id": key}
        filled[key] = entry
    return filled


class UnlockConditions(BaseModel):
    """What a phase needs before the quest can enter it."""
    model_config = ConfigDict(frozen=True)

    required_evidence_strength: EvidenceStrength = EvidenceStrength.NONE
    completed_objectives: list[str] = Field(default_factory=list)
    required_clues: list[str] = Field(default_factory=list)

    @field_validator("required_evidence_strength", mode="before")
    @classmethod
    def _coerce_strength(cls, value):
        from ...rules.evidence import coerce_strength
        return coerce_strength(value)


class QuestPhase(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    description: str = ""
    objectives: list[str] = Field(default_factory=list)
    unlock_conditions: UnlockConditions = Field(default_factory=UnlockConditions)
    next: list[str] | None = None  # None: the next declared phase
    priority: int | None = None  # None: declaration index; lower wins
    terminal: bool | None = None  # None: terminal when nothing follows


class ClueDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    description: str = ""
    strength: float = Field(default=1.0, ge=0.0)
    discovery_method: str = ""
    location: str | None = None
    requires_careful_reading: bool = False
    related_clues: list[str] = Field(default_factory=list)


class FailCondition(BaseModel):
    """Conjunctive conditions that fail the quest once they all hold."""
    model_config = ConfigDict(frozen=True)

    id: str
    reason: str = ""
    conditions: list[DialogueCondition] = Field(default_factory=list)
    phases: list[str] = Field(default_factory=list)  # Empty: checked in every phase


class QuestDefinition(BaseModel):
    """An investigation: a graph of phases plus the clues that feed it."""
    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    description: str = ""
    phases: dict[str, QuestPhase]
    available_clues: dict[str, ClueDefinition] = Field(default_factory=dict)
    initial_phase: str | None = None
    fail_conditions: list[FailCondition] = Field(default_factory=list)
    rewards: dict[str, Any] = Field(default_factory=dict)  # Passed through to reward requests

    @model_validator(mode="before")
    @classmethod
    def _fill_keyed_ids(cls, data):
        if isinstance(data, dict):
            data = {
                **data,
                "phases": _fill_ids(data.get("phases", {})),
                "available_clues": _fill_ids(data.get("available_clues", {})),
            }
        return data

    @property
    def start_phase(self) -> str | None:
        if self.initial_phase is not None:
            return self.initial_phase
        return next(iter(self.phases), None)

    def phase(self, phase_id: str) -> QuestPhase | None:
        return self.phases.get(phase_id)

    def successors(self, phase_id: str) -> list[str]:
        """Phases directly reachable from phase_id."""
        phase = self.phases.get(phase_id)
        if phase is None:
            return []
        if phase.next is not None:
            return list(phase.next)
        if phase.terminal:
            return []
        order = list(self.phases)
        index = order.index(phase_id)
        return order[index + 1:index + 2]

    def priority_of(self, phase_id: str) -> int:
        phase = self.phases[phase_id]
        if phase.priority is not None:
            return phase.priority
        return list(self.phases).index(phase_id)

    def is_terminal(self, phase_id: str) -> bool:
        phase = self.phases.get(phase_id)
        if phase is None:
            return False
        if phase.terminal is not None:
            return phase.terminal
        return not self.successors(phase_id)

    def declares_objective(self, objective_id: str) -> bool:
        return any(objective_id in phase.objectives for phase in self.phases.values())

    @property
    def objectives(self) -> list[str]:
        """Every objective id, in phase order."""
        return [obj for phase in self.phases.values() for obj in phase.objectives]
