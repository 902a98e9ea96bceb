"""
Event bus for narrative state changes.

Lets presentation and progression layers react to quest, clue, trust and
conversation changes without the engine knowing about them.

Usage:
    from .event_bus import get_event_bus, EventType

    bus = get_event_bus()
    bus.on(EventType.CLUE_DISCOVERED, my_handler)

    # Session manager emits when state changes
    bus.emit(EventType.CLUE_DISCOVERED, player_id="p1", quest_id="q", clue_id="c")

    def my_handler(event: GameEvent):
        logger.info(f"Clue {event.data['clue_id']} found")
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Narrative events that can be published."""

    # Quest events
    QUEST_STARTED = "quest.started"
    QUEST_OBJECTIVE_COMPLETED = "quest.objective_completed"
    QUEST_PHASE_ADVANCED = "quest.phase_advanced"
    QUEST_COMPLETED = "quest.completed"
    QUEST_FAILED = "quest.failed"
    QUEST_NOTE_ADDED = "quest.note_added"
    REWARD_REQUESTED = "reward.requested"

    # Evidence events
    CLUE_DISCOVERED = "clue.discovered"
    EVIDENCE_STRENGTH_CHANGED = "evidence.strength_changed"

    # Relationship events
    TRUST_CHANGED = "trust.changed"
    TRUST_LEVEL_CHANGED = "trust.level_changed"
    NPC_FLAG_SET = "npc.flag_set"
    INTERACTION_RECORDED = "npc.interaction_recorded"

    # World events
    WORLD_FLAG_SET = "world.flag_set"
    WORLD_CONTEXT_CHANGED = "world.context_changed"

    # Conversation events
    CONVERSATION_STARTED = "conversation.started"
    CONVERSATION_CHOICE = "conversation.choice"
    CONVERSATION_ENDED = "conversation.ended"

    # Content problems
    CONTENT_INTEGRITY_ERROR = "content.integrity_error"


@dataclass
class GameEvent:
    """
    Event payload for the event bus.

    Attributes:
        type: The event type (from EventType enum)
        data: Event-specific payload as dict
        player_id: Player whose state changed
        timestamp: When the event was emitted
    """

    type: EventType
    data: dict = field(default_factory=dict)
    player_id: str = ""
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"[{self.type.value}] {self.data}"


# Type alias for event handlers
EventHandler = Callable[[GameEvent], None]


class EventBus:
    """
    Synchronous event bus.

    Listeners are called immediately on emit(). A failing listener is
    logged and skipped so the others still run.
    """

    def __init__(self, history_limit: int = 100):
        self._listeners: dict[EventType, list[EventHandler]] = {}
        self._history: list[GameEvent] = []
        self._history_limit = history_limit

    def on(self, event_type: EventType, handler: EventHandler) -> None:
        """
        Subscribe to an event type.

        Args:
            event_type: The type of event to listen for
            handler: Callback function that receives GameEvent
        """
        if event_type not in self._listeners:
            self._listeners[event_type] = []
        if handler not in self._listeners[event_type]:
            self._listeners[event_type].append(handler)

    def off(self, event_type: EventType, handler: EventHandler) -> None:
        """Unsubscribe a handler from an event type."""
        if event_type in self._listeners and handler in self._listeners[event_type]:
            self._listeners[event_type].remove(handler)

    def emit(
        self,
        event_type: EventType,
        player_id: str = "",
        **data,
    ) -> GameEvent:
        """
        Emit an event to all subscribers.

        Args:
            event_type: The type of event
            player_id: Player context (optional)
            **data: Event-specific data

        Returns:
            The emitted GameEvent (for chaining/testing)
        """
        event = GameEvent(type=event_type, data=data, player_id=player_id)

        self._history.append(event)
        if len(self._history) > self._history_limit:
            self._history = self._history[-self._history_limit:]

        for handler in list(self._listeners.get(event_type, [])):
            try:
                handler(event)
            except Exception:
                logger.exception(f"Error in handler for {event_type.value}")

        return event

    def clear(self) -> None:
        """Clear all listeners. Useful for testing."""
        self._listeners.clear()

    def get_history(self, event_type: EventType | None = None) -> list[GameEvent]:
        """
        Get recent event history.

        Args:
            event_type: Filter by type, or None for all events

        Returns:
            List of recent events
        """
        if event_type is None:
            return list(self._history)
        return [e for e in self._history if e.type == event_type]

    def listener_count(self, event_type: EventType) -> int:
        """Get number of listeners for an event type."""
        return len(self._listeners.get(event_type, []))


# Global singleton instance
_event_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """Get the global event bus instance (created on first use)."""
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus()
    return _event_bus


def reset_event_bus() -> None:
    """Reset the global event bus. Useful for testing."""
    global _event_bus
    _event_bus = None
