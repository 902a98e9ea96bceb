"""
Pytest fixtures for casefile tests.

Provides the merchant mystery content, a deterministic clock, and
sessions wired to an isolated event bus and reward queue.
"""

import pytest
from datetime import datetime, timedelta
from pathlib import Path

# Add project root to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from casefile.content import catalog_from_payload, load_catalog_dir
from casefile.engine import PlayerSession
from casefile.state import (
    EventBus,
    QueuedRewardSink,
    SessionManager,
    reset_event_bus,
)


DATA_DIR = Path(__file__).parent / "data"
QUEST_ID = "merchant_mystery"
NPC_ID = "aldric_goldweaver"


class FakeClock:
    """Clock that ticks one second per reading."""

    def __init__(self, start: datetime = datetime(2024, 3, 1, 9, 0, 0)):
        self.current = start

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


@pytest.fixture(autouse=True)
def fresh_event_bus():
    """Keep the global bus from leaking listeners between tests."""
    reset_event_bus()
    yield
    reset_event_bus()


@pytest.fixture
def catalog():
    """Merchant mystery quest plus Aldric's dialogue."""
    return load_catalog_dir(DATA_DIR)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def rewards():
    return QueuedRewardSink()


@pytest.fixture
def manager(catalog, bus, rewards, clock):
    """Session manager for one player."""
    return SessionManager(catalog, "player-1", event_bus=bus, reward_sink=rewards, clock=clock)


@pytest.fixture
def active_manager(manager):
    """Session manager with the merchant mystery already started."""
    manager.quests.start_quest(QUEST_ID)
    return manager


@pytest.fixture
def session(catalog, bus, rewards, clock):
    """Public result-returning session for one player."""
    return PlayerSession(catalog, "player-1", event_bus=bus, reward_sink=rewards, clock=clock)


def make_quest(quest_id: str = "branching", **overrides) -> dict:
    """Authored quest payload with a start phase fanning out to two siblings."""
    payload = {
        "id": quest_id,
        "phases": {
            "start": {"next": ["left", "right"]},
            "left": {"unlock_conditions": {"required_evidence_strength": "weak"}, "terminal": True},
            "right": {"unlock_conditions": {"required_evidence_strength": "weak"}, "terminal": True},
        },
        "available_clues": {
            f"{quest_id}_clue": {"strength": 1.0},
        },
    }
    payload.update(overrides)
    return payload


def make_dialogue(npc_id: str = "tess", conversations: dict | None = None) -> dict:
    """Authored dialogue payload; one casual conversation by default."""
    return {
        "npc_id": npc_id,
        "name": npc_id.title(),
        "conversations": conversations or {
            "chat": {
                "category": "casual",
                "nodes": {
                    "start": {"text": "Hello.", "choices": [
                        {"id": "bye", "text": "Bye.", "next": "end_conversation"},
                    ]},
                },
            },
        },
    }


@pytest.fixture
def build_session(bus, rewards, clock):
    """Factory: PlayerSession over a catalog built from authored payloads."""
    def _build(quests=(), dialogues=(), player_id="player-1", config=None):
        catalog = catalog_from_payload(quests, dialogues)
        return PlayerSession(
            catalog,
            player_id,
            config=config,
            event_bus=bus,
            reward_sink=rewards,
            clock=clock,
        )
    return _build
