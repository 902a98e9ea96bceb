"""
Dialogue content definitions.

A conversation tree is an arena of nodes keyed by id. Choices point at
other nodes by id or at the END_CONVERSATION sentinel, so cyclic graphs
are fine.
"""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from ..schema import (
    ConversationCategory,
    DialogueApproach,
    EmotionalState,
    Speaker,
    TrustLevel,
)
from .conditions import DialogueCondition, DialogueConsequence


START_NODE = "start"
END_CONVERSATION = "end_conversation"


class PersonalityModifiers(BaseModel):
    """How an NPC talks in a given conversation."""
    model_config = ConfigDict(frozen=True)

    verbosity: float = Field(default=1.0, ge=0.0)  # <1 terse, >1 rambling
    trust_building_speed: float = Field(default=1.0, ge=0.0)
    information_reluctance: float = Field(default=0.0, ge=0.0, le=1.0)
    speech_patterns: list[str] = Field(default_factory=list)
    emotional_state: EmotionalState = EmotionalState.CALM  # Used when none is supplied


class VariantPredicate(BaseModel):
    """Guard on a text variant. An empty predicate marks the default."""
    model_config = ConfigDict(frozen=True)

    emotional_states: list[EmotionalState] = Field(default_factory=list)
    min_trust: TrustLevel | None = None
    max_trust: TrustLevel | None = None

    @property
    def specificity(self) -> int:
        """Number of constrained facets."""
        return sum([
            bool(self.emotional_states),
            self.min_trust is not None,
            self.max_trust is not None,
        ])


class TextVariant(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    when: VariantPredicate = Field(default_factory=VariantPredicate)

    @property
    def is_default(self) -> bool:
        return self.when.specificity == 0


class DialogueChoice(BaseModel):
    model_config = ConfigDict(frozen=True)

    choice_id: str = Field(validation_alias=AliasChoices("choice_id", "id"))
    text: str
    next: str = END_CONVERSATION
    conditions: list[DialogueCondition] = Field(default_factory=list)
    approach: DialogueApproach | None = None  # Looked up in the NPC relationship_effects
    consequences: list[DialogueConsequence] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)  # Recorded in interaction history

    @property
    def ends_conversation(self) -> bool:
        return self.next == END_CONVERSATION


class DialogueNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    node_id: str = Field(validation_alias=AliasChoices("node_id", "id"))
    speaker: Speaker = Speaker.NPC
    variants: list[TextVariant] = Field(default_factory=list)
    choices: list[DialogueChoice] = Field(default_factory=list)
    on_enter: list[DialogueConsequence] = Field(default_factory=list)  # Quest triggers
    reveals_clues: list[str] = Field(default_factory=list)

    @property
    def default_variant(self) -> TextVariant | None:
        for variant in self.variants:
            if variant.is_default:
                return variant
        return None

    def choice(self, choice_id: str) -> DialogueChoice | None:
        for choice in self.choices:
            if choice.choice_id == choice_id:
                return choice
        return None


class ConversationTree(BaseModel):
    model_config = ConfigDict(frozen=True)

    npc_id: str
    conversation_id: str
    title: str = ""
    category: ConversationCategory = ConversationCategory.CASUAL
    conditions: list[DialogueCondition] = Field(default_factory=list)  # Applicability
    nodes: dict[str, DialogueNode]
    entry_node: str = START_NODE
    personality: PersonalityModifiers = Field(default_factory=PersonalityModifiers)

    @model_validator(mode="before")
    @classmethod
    def _fill_node_ids(cls, data):
        if isinstance(data, dict) and isinstance(data.get("nodes"), dict):
            nodes = {}
            for key, node in data["nodes"].items():
                if isinstance(node, dict) and "node_id" not in node and "id" not in node:
                    node = {**node, "node_id": key}
                nodes[key] = node
            data = {**data, "nodes": nodes}
        return data

    def node(self, node_id: str) -> DialogueNode | None:
        return self.nodes.get(node_id)


class RelationshipEffects(BaseModel):
    """
    How an NPC takes each dialogue approach.

    Building amounts raise trust and damaging amounts lower it, whatever
    sign they are authored with. An approach may appear in both maps.
    """
    model_config = ConfigDict(frozen=True)

    trust_building: dict[DialogueApproach, int] = Field(default_factory=dict)
    trust_damaging: dict[DialogueApproach, int] = Field(default_factory=dict)

    def delta_for(self, approach: DialogueApproach) -> int:
        gain = abs(self.trust_building.get(approach, 0))
        loss = abs(self.trust_damaging.get(approach, 0))
        return gain - loss

    def merged(self, other: "RelationshipEffects") -> "RelationshipEffects":
        return RelationshipEffects(
            trust_building={**self.trust_building, **other.trust_building},
            trust_damaging={**self.trust_damaging, **other.trust_damaging},
        )


class NpcDialogue(BaseModel):
    """Every conversation an NPC can hold."""
    model_config = ConfigDict(frozen=True)

    npc_id: str
    name: str = ""
    description: str = ""
    default_conversation: str | None = None
    conversations: dict[str, ConversationTree] = Field(default_factory=dict)
    relationship_effects: RelationshipEffects = Field(default_factory=RelationshipEffects)

    @model_validator(mode="before")
    @classmethod
    def _fill_conversation_keys(cls, data):
        if isinstance(data, dict) and isinstance(data.get("conversations"), dict):
            npc_id = data.get("npc_id")
            conversations = {}
            for key, tree in data["conversations"].items():
                if isinstance(tree, dict):
                    tree = {"conversation_id": key, "npc_id": npc_id, **tree}
                conversations[key] = tree
            data = {**data, "conversations": conversations}
        return data
