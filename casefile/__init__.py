"""
casefile - evidence-driven quests and personality-driven dialogue.

Quest progression and dialogue conversations share one player state:
dialogue choices reveal clues, start quests and shift trust, and quest
state decides which conversations and choices are available.
"""

from .engine import InvestigationEngine, PlayerSession
from .errors import (
    EngineError,
    ErrorCode,
    Result,
    UnknownQuest,
    UnknownClue,
    UnknownObjective,
    UnknownConversation,
    QuestNotActive,
    AlreadyActive,
    PhaseNotTerminal,
    InvalidChoice,
    NoAvailableConversation,
    ContentIntegrityError,
)
from .state import (
    ContentCatalog,
    PlayerState,
    SessionManager,
    EvidenceStrength,
    TrustLevel,
    QuestStatus,
    EmotionalState,
)
from .content import catalog_from_payload, load_catalog, load_catalog_dir

__version__ = "0.1.0"

__all__ = [
    # Engine
    "InvestigationEngine",
    "PlayerSession",
    "SessionManager",
    # Errors
    "EngineError",
    "ErrorCode",
    "Result",
    "UnknownQuest",
    "UnknownClue",
    "UnknownObjective",
    "UnknownConversation",
    "QuestNotActive",
    "AlreadyActive",
    "PhaseNotTerminal",
    "InvalidChoice",
    "NoAvailableConversation",
    "ContentIntegrityError",
    # State
    "ContentCatalog",
    "PlayerState",
    "EvidenceStrength",
    "TrustLevel",
    "QuestStatus",
    "EmotionalState",
    # Content
    "catalog_from_payload",
    "load_catalog",
    "load_catalog_dir",
]
