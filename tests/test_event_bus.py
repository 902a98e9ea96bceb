"""
Tests for the event bus system.
"""

from casefile.state.event_bus import (
    EventBus,
    EventType,
    GameEvent,
    get_event_bus,
    reset_event_bus,
)


class TestEventBus:
    """Test EventBus subscribe/emit behavior."""

    def test_subscribe_and_emit(self):
        """Handlers receive emitted events."""
        bus = EventBus()
        received = []
        bus.on(EventType.CLUE_DISCOVERED, received.append)

        bus.emit(EventType.CLUE_DISCOVERED, player_id="p1", clue_id="suspicious_ledger")

        assert len(received) == 1
        assert received[0].data == {"clue_id": "suspicious_ledger"}
        assert received[0].player_id == "p1"

    def test_only_matching_type(self):
        bus = EventBus()
        received = []
        bus.on(EventType.QUEST_STARTED, received.append)

        bus.emit(EventType.QUEST_FAILED, quest_id="q")

        assert received == []

    def test_duplicate_subscription_ignored(self):
        bus = EventBus()
        handler = lambda event: None
        bus.on(EventType.TRUST_CHANGED, handler)
        bus.on(EventType.TRUST_CHANGED, handler)

        assert bus.listener_count(EventType.TRUST_CHANGED) == 1

    def test_off(self):
        bus = EventBus()
        received = []
        bus.on(EventType.TRUST_CHANGED, received.append)
        bus.off(EventType.TRUST_CHANGED, received.append)

        bus.emit(EventType.TRUST_CHANGED, npc_id="tess")

        assert received == []

    def test_failing_handler_does_not_stop_others(self):
        """A handler exception is logged and the next handler still runs."""
        bus = EventBus()
        received = []

        def broken(event):
            raise RuntimeError("handler bug")

        bus.on(EventType.QUEST_COMPLETED, broken)
        bus.on(EventType.QUEST_COMPLETED, received.append)

        bus.emit(EventType.QUEST_COMPLETED, quest_id="q")

        assert len(received) == 1

    def test_history_limit(self):
        bus = EventBus(history_limit=3)
        for i in range(5):
            bus.emit(EventType.QUEST_NOTE_ADDED, note=str(i))

        history = bus.get_history()
        assert [e.data["note"] for e in history] == ["2", "3", "4"]

    def test_history_filter(self):
        bus = EventBus()
        bus.emit(EventType.QUEST_STARTED, quest_id="a")
        bus.emit(EventType.QUEST_FAILED, quest_id="a")

        assert [e.type for e in bus.get_history(EventType.QUEST_FAILED)] == [EventType.QUEST_FAILED]

    def test_event_str(self):
        event = GameEvent(type=EventType.NPC_FLAG_SET, data={"flag": "met"})
        assert str(event) == "[npc.flag_set] {'flag': 'met'}"


class TestGlobalBus:

    def test_singleton(self):
        assert get_event_bus() is get_event_bus()

    def test_reset(self):
        first = get_event_bus()
        reset_event_bus()
        assert get_event_bus() is not first
