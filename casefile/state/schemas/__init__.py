"""
Content and result schemas for the investigation engine.

- quest: quest definitions (phases, clues, fail conditions)
- dialogue: conversation trees, nodes, text variants, personality
- conditions: condition and consequence tagged unions
- results: values returned to callers

All schemas are Pydantic BaseModel for validation and JSON serialization.
"""

from .conditions import (
    DialogueCondition,
    DialogueConsequence,
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
    TrustDeltaConsequence,
    RevealClueConsequence,
    StartQuestConsequence,
    SetWorldFlagConsequence,
    UnlockFlagConsequence,
    CompleteObjectiveConsequence,
    CompleteQuestConsequence,
)
from .quest import (
    QuestDefinition,
    QuestPhase,
    UnlockConditions,
    ClueDefinition,
    FailCondition,
)
from .dialogue import (
    START_NODE,
    END_CONVERSATION,
    PersonalityModifiers,
    VariantPredicate,
    TextVariant,
    DialogueChoice,
    DialogueNode,
    ConversationTree,
    RelationshipEffects,
    NpcDialogue,
)
from .results import (
    ClueStatus,
    ClueOutcome,
    ObjectiveOutcome,
    TransitionStatus,
    PhaseTransitionResult,
    QuestCompletionSummary,
    QuestFailureSummary,
    RewardRequest,
    TrustChange,
    ConversationHandle,
    PresentedChoice,
    PresentedNode,
    ChoiceOutcome,
)

__all__ = [
    # Conditions
    "DialogueCondition",
    "QuestActiveCondition",
    "QuestCompletedCondition",
    "ClueDiscoveredCondition",
    "TrustAtLeastCondition",
    "TimeOfDayCondition",
    "LocationCondition",
    "FlagSetCondition",
    "WorldFlagCondition",
    "EvidenceAtLeastCondition",
    "SkillAtLeastCondition",
    # Consequences
    "DialogueConsequence",
    "TrustDeltaConsequence",
    "RevealClueConsequence",
    "StartQuestConsequence",
    "SetWorldFlagConsequence",
    "UnlockFlagConsequence",
    "CompleteObjectiveConsequence",
    "CompleteQuestConsequence",
    # Quests
    "QuestDefinition",
    "QuestPhase",
    "UnlockConditions",
    "ClueDefinition",
    "FailCondition",
    # Dialogue
    "START_NODE",
    "END_CONVERSATION",
    "PersonalityModifiers",
    "VariantPredicate",
    "TextVariant",
    "DialogueChoice",
    "DialogueNode",
    "ConversationTree",
    "RelationshipEffects",
    "NpcDialogue",
    # Results
    "ClueStatus",
    "ClueOutcome",
    "ObjectiveOutcome",
    "TransitionStatus",
    "PhaseTransitionResult",
    "QuestCompletionSummary",
    "QuestFailureSummary",
    "RewardRequest",
    "TrustChange",
    "ConversationHandle",
    "PresentedChoice",
    "PresentedNode",
    "ChoiceOutcome",
]
