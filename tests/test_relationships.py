"""
Tests for NPC relationships: trust, flags and interaction history.
"""

from casefile.state import EventType
from casefile.state.schema import InteractionRecord, TrustLevel

from conftest import NPC_ID


class TestTrust:
    """Test trust deltas, clamping and levels."""

    def test_first_contact_is_neutral(self, manager):
        rel = manager.relationships.relationship(NPC_ID)

        assert rel.trust_value == 0
        assert rel.trust_level == TrustLevel.NEUTRAL
        assert rel.player_id == "player-1"
        assert rel.history == []

    def test_unknown_npc_reads_neutral_without_creating(self, manager):
        assert manager.relationships.trust_value("stranger") == 0
        assert manager.relationships.trust_level("stranger") == TrustLevel.NEUTRAL
        assert "stranger" not in manager.current.relationships

    def test_modify_trust(self, manager):
        change = manager.relationships.modify_trust(NPC_ID, 25, "helped with crates")

        assert change.old_value == 0
        assert change.new_value == 25
        assert change.old_level == TrustLevel.NEUTRAL
        assert change.new_level == TrustLevel.FRIENDLY
        assert change.level_changed

    def test_value_is_clamped_sum(self, manager):
        """Visible trust is the clamped sum of every delta."""
        deltas = [60, 70, -20, -200, 15]
        for delta in deltas:
            manager.relationships.modify_trust(NPC_ID, delta)

        rel = manager.relationships.relationship(NPC_ID)
        assert rel.trust_ledger == sum(deltas)
        assert manager.relationships.trust_value(NPC_ID) == -75
        assert manager.relationships.trust_level(NPC_ID) == TrustLevel.HOSTILE

    def test_clamped_at_both_ends(self, manager):
        manager.relationships.modify_trust(NPC_ID, 500)
        assert manager.relationships.trust_value(NPC_ID) == 100
        assert manager.relationships.trust_level(NPC_ID) == TrustLevel.CONFIDANT

        manager.relationships.modify_trust(NPC_ID, -1000)
        assert manager.relationships.trust_value(NPC_ID) == -100

    def test_trust_events(self, manager, bus):
        manager.relationships.modify_trust(NPC_ID, 5)
        manager.relationships.modify_trust(NPC_ID, 20)

        assert len(bus.get_history(EventType.TRUST_CHANGED)) == 2
        [level_event] = bus.get_history(EventType.TRUST_LEVEL_CHANGED)
        assert level_event.data == {"npc_id": NPC_ID, "before": "neutral", "after": "friendly"}


class TestFlags:

    def test_set_flag_once(self, manager):
        assert manager.relationships.set_flag(NPC_ID, "knows_secret")
        assert not manager.relationships.set_flag(NPC_ID, "knows_secret")
        assert manager.relationships.has_flag(NPC_ID, "knows_secret")

    def test_flags_are_per_npc(self, manager):
        manager.relationships.set_flag(NPC_ID, "knows_secret")

        assert not manager.relationships.has_flag("tess", "knows_secret")


class TestHistory:
    """Test interaction history bookkeeping."""

    def test_record_interaction(self, manager, clock):
        record = InteractionRecord(
            npc_id=NPC_ID,
            conversation_id="aldric_greeting",
            choices=["compliment_shop"],
            net_trust_delta=5,
            timestamp=clock(),
        )

        manager.relationships.record_interaction(NPC_ID, record)

        rel = manager.relationships.relationship(NPC_ID)
        assert rel.conversation_count == 1
        assert rel.last_interaction == record.timestamp
        assert manager.relationships.history(NPC_ID) == [record]

    def test_history_is_append_only(self, manager, clock):
        for conv_id in ["aldric_greeting", "aldric_job_offer", "aldric_greeting"]:
            manager.relationships.record_interaction(
                NPC_ID,
                InteractionRecord(npc_id=NPC_ID, conversation_id=conv_id, timestamp=clock()),
            )

        history = manager.relationships.history(NPC_ID)
        assert [r.conversation_id for r in history] == [
            "aldric_greeting", "aldric_job_offer", "aldric_greeting",
        ]
        assert manager.relationships.relationship(NPC_ID).conversation_count == 3

    def test_history_copy_does_not_leak(self, manager, clock):
        manager.relationships.record_interaction(
            NPC_ID,
            InteractionRecord(npc_id=NPC_ID, conversation_id="aldric_greeting", timestamp=clock()),
        )

        manager.relationships.history(NPC_ID).clear()

        assert len(manager.relationships.history(NPC_ID)) == 1

    def test_unknown_npc_has_no_history(self, manager):
        assert manager.relationships.history("stranger") == []
