"""State management for investigation sessions."""

from .schema import (
    PlayerState,
    QuestLog,
    QuestProgress,
    DiscoveredClue,
    NpcRelationship,
    InteractionRecord,
    WorldContext,
    EvidenceStrength,
    TrustLevel,
    QuestStatus,
    EmotionalState,
    ConversationCategory,
    Speaker,
    DialogueApproach,
    FlagScope,
)
from .snapshot import PlayerNarrativeSnapshot, QuestView, build_snapshot
from .catalog import ContentCatalog
from .rewards import RewardSink, QueuedRewardSink
from .manager import SessionManager
from .event_bus import (
    EventBus,
    EventType,
    GameEvent,
    get_event_bus,
    reset_event_bus,
)

__all__ = [
    # Schema
    "PlayerState",
    "QuestLog",
    "QuestProgress",
    "DiscoveredClue",
    "NpcRelationship",
    "InteractionRecord",
    "WorldContext",
    "EvidenceStrength",
    "TrustLevel",
    "QuestStatus",
    "EmotionalState",
    "ConversationCategory",
    "Speaker",
    "DialogueApproach",
    "FlagScope",
    # Snapshot
    "PlayerNarrativeSnapshot",
    "QuestView",
    "build_snapshot",
    # Catalog
    "ContentCatalog",
    # Rewards
    "RewardSink",
    "QueuedRewardSink",
    # Manager
    "SessionManager",
    # Event Bus
    "EventBus",
    "EventType",
    "GameEvent",
    "get_event_bus",
    "reset_event_bus",
]
