"""
Game systems for investigation sessions.

Each system operates on the session manager's current player state and
publishes changes back through the manager.
"""

from .evidence import EvidenceSystem
from .quests import QuestSystem
from .relationships import RelationshipSystem
from .dialogue import DialogueSystem, choice_flag

__all__ = [
    "EvidenceSystem",
    "QuestSystem",
    "RelationshipSystem",
    "DialogueSystem",
    "choice_flag",
]
