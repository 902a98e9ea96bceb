"""
Tests for the dialogue conversation engine.

Covers conversation selection, node presentation and text shaping,
choice validation, consequence application and rollback, and how
conversations are recorded when they end.
"""

import pytest

from casefile.content import catalog_from_payload
from casefile.errors import (
    ContentIntegrityError,
    InvalidChoice,
    NoAvailableConversation,
    UnknownConversation,
)
from casefile.state import EventType, QuestStatus
from casefile.state.schema import DialogueApproach, EmotionalState, Speaker, TrustLevel
from casefile.systems.dialogue import ABORTED_TAG, choice_flag

from conftest import NPC_ID, QUEST_ID, make_dialogue, make_quest


def chat(nodes, **extra):
    """One-conversation dialogue payload for tess."""
    return make_dialogue("tess", {"chat": {"category": "casual", "nodes": nodes, **extra}})


@pytest.fixture
def tess(build_session):
    """Factory: manager with the branching quest and a custom tess conversation."""
    def _build(nodes, quests=None, **extra):
        session = build_session(
            quests=[make_quest()] if quests is None else quests,
            dialogues=[chat(nodes, **extra)],
        )
        return session.manager
    return _build


def open_and_present(manager, npc_id="tess", emotional_state=None):
    handle = manager.dialogue.start_conversation(npc_id)
    return handle, manager.dialogue.present_node(handle, emotional_state)


class TestSelection:
    """Test which conversation an NPC opens with."""

    def test_quest_offer_wins_before_quest(self, manager):
        handle = manager.dialogue.start_conversation(NPC_ID)

        assert handle.conversation_id == "aldric_job_offer"
        assert handle.current_node == "start"
        assert handle.player_id == "player-1"

    def test_investigation_once_quest_active(self, active_manager):
        ranked = active_manager.dialogue.rank_conversations(NPC_ID)

        assert [tree.conversation_id for _, tree in ranked] == [
            "aldric_mystery_talk",
            "aldric_greeting",
        ]

    def test_offer_returns_after_failure(self, active_manager):
        active_manager.quests.fail_quest(QUEST_ID, "gave up")

        handle = active_manager.dialogue.start_conversation(NPC_ID)

        assert handle.conversation_id == "aldric_job_offer"

    def test_only_small_talk_after_completion(self, active_manager):
        active_manager.record_clue(QUEST_ID, "mysterious_amulet")
        active_manager.quests.complete_objective(QUEST_ID, "interview_witnesses")
        active_manager.quests.complete_quest(QUEST_ID)

        ranked = active_manager.dialogue.rank_conversations(NPC_ID)

        assert [tree.conversation_id for _, tree in ranked] == ["aldric_greeting"]

    def test_no_available_conversation(self, manager):
        with pytest.raises(NoAvailableConversation):
            manager.dialogue.start_conversation("nobody")

    def test_equal_scores_go_to_smaller_id(self, build_session):
        node = {"start": {"text": "Hi.", "choices": [{"id": "bye", "text": "Bye."}]}}
        dialogue = make_dialogue("tess", {
            "b_chat": {"category": "casual", "nodes": node},
            "a_chat": {"category": "casual", "nodes": node},
        })
        manager = build_session(dialogues=[dialogue]).manager

        handle = manager.dialogue.start_conversation("tess")

        assert handle.conversation_id == "a_chat"

    def test_trust_never_outweighs_category(self, manager):
        tree = manager.catalog.lookup_conversation(NPC_ID, "aldric_greeting")
        offer = manager.catalog.lookup_conversation(NPC_ID, "aldric_job_offer")

        assert manager.dialogue.score(tree, 100) == pytest.approx(11.0)
        assert manager.dialogue.score(offer, -100) > manager.dialogue.score(tree, 100)

    def test_fast_warming_npc_keeps_category_order(self, build_session):
        node = {"start": {"text": "Hi.", "choices": [{"id": "bye", "text": "Bye."}]}}
        dialogue = make_dialogue("tess", {
            "lore_talk": {"category": "lore", "nodes": node},
            "chitchat": {
                "category": "casual",
                "nodes": node,
                "personality": {"trust_building_speed": 40.0},
            },
        })
        manager = build_session(dialogues=[dialogue]).manager
        manager.relationships.modify_trust("tess", 100)

        ranked = manager.dialogue.rank_conversations("tess")

        assert [tree.conversation_id for _, tree in ranked] == ["lore_talk", "chitchat"]

    def test_trust_orders_same_category(self, build_session):
        node = {"start": {"text": "Hi.", "choices": [{"id": "bye", "text": "Bye."}]}}
        dialogue = make_dialogue("tess", {
            "a_chat": {"category": "casual", "nodes": node},
            "b_chat": {
                "category": "casual",
                "nodes": node,
                "personality": {"trust_building_speed": 2.0},
            },
        })
        manager = build_session(dialogues=[dialogue]).manager
        manager.relationships.modify_trust("tess", 50)

        assert manager.dialogue.start_conversation("tess").conversation_id == "b_chat"

    def test_player_mismatch(self, manager):
        with pytest.raises(ValueError):
            manager.dialogue.start_conversation(NPC_ID, player_id="someone-else")

    def test_missing_entry_node(self, tess, bus):
        manager = tess({"start": {"text": "Hi."}}, entry_node="opening")

        with pytest.raises(ContentIntegrityError):
            manager.dialogue.start_conversation("tess")

        assert manager.dialogue.open_handles == []
        assert len(bus.get_history(EventType.CONTENT_INTEGRITY_ERROR)) == 1


class TestPresentation:
    """Test node text and choice filtering."""

    def test_calm_text_is_unchanged(self, active_manager):
        _, node = open_and_present(active_manager, NPC_ID)

        assert node.text == "Ah, welcome back. Is there something you need?"
        assert node.emotional_state == EmotionalState.CALM
        assert node.speaker == Speaker.NPC
        assert not node.ended

    def test_emotion_variant(self, active_manager):
        _, node = open_and_present(active_manager, NPC_ID, EmotionalState.ANXIOUS)

        assert node.text == "*glances around* Ah... welcome back. Quickly now, what is it?"

    def test_emotion_marker_on_default_text(self, active_manager):
        _, node = open_and_present(active_manager, NPC_ID, EmotionalState.EXCITED)

        assert node.text == "*eagerly* Ah, welcome back. Is there something you need?"

    def test_presentation_is_deterministic(self, active_manager):
        handle = active_manager.dialogue.start_conversation(NPC_ID)
        first = active_manager.dialogue.present_node(handle, EmotionalState.SUSPICIOUS)
        second = active_manager.dialogue.present_node(handle, EmotionalState.SUSPICIOUS)

        assert first.text == second.text
        assert first.choices == second.choices

    def test_gated_choice_hidden_until_clue_found(self, active_manager):
        _, node = open_and_present(active_manager, NPC_ID)
        assert [c.choice_id for c in node.choices] == ["ask_travels", "leave"]

        active_manager.record_clue(QUEST_ID, "suspicious_ledger")
        _, node = open_and_present(active_manager, NPC_ID)

        assert [c.choice_id for c in node.choices] == ["ask_travels", "press_ledger", "leave"]

    def test_terse_npc_says_first_sentence(self, tess):
        manager = tess(
            {"start": {"text": "Hello there. Long day at the docks.", "choices": [{"id": "bye", "text": "Bye."}]}},
            personality={"verbosity": 0.5},
        )

        _, node = open_and_present(manager)

        assert node.text == "Hello there."

    def test_verbose_npc_adds_speech_patterns(self, tess):
        patterns = ["Hm.", "Aye.", "Well."]
        manager = tess(
            {"start": {"text": "Hello.", "choices": [{"id": "bye", "text": "Bye."}]}},
            personality={"verbosity": 1.5, "speech_patterns": patterns},
        )

        handle, node = open_and_present(manager)
        again = manager.dialogue.present_node(handle)

        words = node.text.split(" ")
        assert words[0] == "Hello."
        assert len(words) == 3
        assert set(words[1:]) <= set(patterns)
        assert words[1] != words[2]
        assert again.text == node.text

    def test_reluctant_npc_hesitates_until_friendly(self, tess):
        manager = tess(
            {"start": {"text": "I saw nothing.", "choices": [{"id": "bye", "text": "Bye."}]}},
            personality={"information_reluctance": 0.8},
        )

        _, node = open_and_present(manager)
        assert node.text == "... I saw nothing."

        manager.relationships.modify_trust("tess", 30)
        _, node = open_and_present(manager)
        assert node.text == "I saw nothing."

    def test_trust_variant(self, tess):
        manager = tess({"start": {
            "text": "What do you want?",
            "variants": [{"text": "Good to see you, friend.", "when": {"min_trust": "friendly"}}],
            "choices": [{"id": "bye", "text": "Bye."}],
        }})

        _, node = open_and_present(manager)
        assert node.text == "What do you want?"

        manager.relationships.modify_trust("tess", 25)
        _, node = open_and_present(manager)
        assert node.text == "Good to see you, friend."

    def test_missing_default_variant_aborts(self, tess):
        manager = tess({"start": {
            "variants": [{"text": "Grr.", "when": {"emotional_states": ["angry"]}}],
            "choices": [{"id": "bye", "text": "Bye."}],
        }})
        handle = manager.dialogue.start_conversation("tess")

        with pytest.raises(ContentIntegrityError):
            manager.dialogue.present_node(handle, EmotionalState.ANGRY)

        [record] = manager.relationships.history("tess")
        assert record.outcome_tags == [ABORTED_TAG]
        assert not handle.active

    def test_unknown_handle(self, manager):
        with pytest.raises(UnknownConversation):
            manager.dialogue.present_node("not-a-handle")


class TestChoices:
    """Test choosing and consequence application."""

    def test_accepting_the_job(self, manager):
        handle, node = open_and_present(manager, NPC_ID)
        assert node.speaker == Speaker.NARRATOR
        assert [c.choice_id for c in node.choices] == ["accept", "decline"]

        outcome = manager.dialogue.choose(handle, "accept")

        assert outcome.started_quests == [QUEST_ID]
        assert outcome.next_node == "briefing"
        assert outcome.outcome_tags == ["accepted_job", f"quest_started:{QUEST_ID}"]
        assert manager.quests.status(QUEST_ID) == QuestStatus.ACTIVE
        assert manager.relationships.has_flag(NPC_ID, choice_flag("aldric_job_offer", "accept"))

        briefing = manager.dialogue.present_node(handle)

        assert briefing.ended
        assert briefing.record.choices == ["accept"]
        assert briefing.record.outcome_tags == ["accepted_job", f"quest_started:{QUEST_ID}"]
        assert manager.relationships.history(NPC_ID) == [briefing.record]

    def test_conversation_reveals_clue_and_advances_quest(self, active_manager):
        handle, _ = open_and_present(active_manager, NPC_ID)
        active_manager.dialogue.choose(handle, "ask_travels")
        travels = active_manager.dialogue.present_node(handle)
        assert [c.choice_id for c in travels.choices] == ["doubt_timing", "thank"]

        outcome = active_manager.dialogue.choose(handle, "doubt_timing")

        assert outcome.revealed_clues == ["travel_time_inconsistency"]
        assert active_manager.quests.current_phase(QUEST_ID) == "evidence_gathering"

        defensive = active_manager.dialogue.present_node(handle)
        assert defensive.ended
        assert defensive.record.choices == ["ask_travels", "doubt_timing"]
        assert defensive.record.outcome_tags == ["clue:travel_time_inconsistency"]
        assert len(active_manager.relationships.history(NPC_ID)) == 1

    def test_trust_delta_ends_conversation(self, active_manager):
        handle, _ = open_and_present(active_manager, NPC_ID)
        active_manager.dialogue.choose(handle, "ask_travels")
        active_manager.dialogue.present_node(handle)

        outcome = active_manager.dialogue.choose(handle, "thank")

        assert outcome.ended
        assert outcome.trust_delta == 5
        assert outcome.record.net_trust_delta == 5
        assert active_manager.relationships.trust_value(NPC_ID) == 5

    def test_losses_are_not_scaled(self, active_manager):
        active_manager.record_clue(QUEST_ID, "suspicious_ledger")
        handle, _ = open_and_present(active_manager, NPC_ID)

        outcome = active_manager.dialogue.choose(handle, "press_ledger")

        assert outcome.trust_delta == -10
        assert outcome.outcome_tags == ["pressed_ledger"]
        assert active_manager.relationships.trust_value(NPC_ID) == -10

    def test_gains_scale_with_trust_building_speed(self, tess):
        manager = tess(
            {"start": {"text": "Hi.", "choices": [{"id": "joke", "text": "A joke.", "trust_delta": 10}]}},
            personality={"trust_building_speed": 1.5},
        )
        handle, _ = open_and_present(manager)

        outcome = manager.dialogue.choose(handle, "joke")

        assert outcome.trust_delta == 15
        assert manager.relationships.trust_value("tess") == 15

    def test_delta_records_clamped_movement(self, tess):
        """At full trust a gain moves nothing, so nothing is recorded."""
        manager = tess(
            {"start": {"text": "Hi.", "choices": [{"id": "joke", "text": "A joke.", "trust_delta": 10}]}},
        )
        manager.relationships.modify_trust("tess", 100)
        handle, _ = open_and_present(manager)

        outcome = manager.dialogue.choose(handle, "joke")

        assert outcome.trust_delta == 0
        assert outcome.record.net_trust_delta == 0
        assert manager.relationships.trust_value("tess") == 100


class TestApproach:
    """Test trust changes NPCs attach to how a choice is phrased."""

    @pytest.fixture
    def guarded(self, build_session):
        dialogue = chat({"start": {"text": "What?", "choices": [
            {"id": "kind", "text": "Take your time.", "approach": "supportive"},
            {"id": "blunt", "text": "Out with it.", "approach": "direct"},
            {"id": "wonder", "text": "Odd weather.", "approach": "curious"},
        ]}})
        dialogue["relationship_effects"] = {
            "trust_building": {"supportive": 8},
            "trust_damaging": {"direct": 6},
        }
        return build_session(dialogues=[dialogue]).manager

    def test_loader_keeps_approach(self, guarded):
        tree = guarded.catalog.lookup_conversation("tess", "chat")
        effects = guarded.catalog.npc_dialogue("tess").relationship_effects

        assert tree.node("start").choice("kind").approach == DialogueApproach.SUPPORTIVE
        assert effects.delta_for(DialogueApproach.SUPPORTIVE) == 8
        assert effects.delta_for(DialogueApproach.DIRECT) == -6

    def test_trust_building_approach(self, guarded, bus):
        handle, _ = open_and_present(guarded)

        outcome = guarded.dialogue.choose(handle, "kind")

        assert outcome.trust_delta == 8
        assert "approach:supportive" in outcome.outcome_tags
        assert guarded.relationships.trust_value("tess") == 8
        [event] = bus.get_history(EventType.TRUST_CHANGED)
        assert event.data["reason"] == "approach:supportive"

    def test_trust_damaging_approach(self, guarded):
        handle, _ = open_and_present(guarded)

        outcome = guarded.dialogue.choose(handle, "blunt")

        assert outcome.trust_delta == -6
        assert outcome.record.net_trust_delta == -6
        assert guarded.relationships.trust_value("tess") == -6

    def test_unmapped_approach_only_tags(self, guarded):
        handle, _ = open_and_present(guarded)

        outcome = guarded.dialogue.choose(handle, "wonder")

        assert outcome.trust_delta == 0
        assert outcome.outcome_tags == ["approach:curious"]
        assert guarded.relationships.trust_value("tess") == 0

    def test_unknown_approach_is_rejected(self, build_session):
        dialogue = chat({"start": {"text": "Hi.", "choices": [
            {"id": "odd", "text": "Hm.", "approach": "sarcastic"},
        ]}})

        with pytest.raises(ContentIntegrityError):
            build_session(dialogues=[dialogue])

    def test_effects_merge_across_files(self):
        first = make_dialogue("tess")
        first["relationship_effects"] = {"trust_building": {"helpful": 3}}
        second = make_dialogue("tess", {"other": {"nodes": {"start": {"text": "Hm."}}}})
        second["relationship_effects"] = {"trust_damaging": {"assertive": 4}}

        catalog = catalog_from_payload(dialogues=[first, second])
        effects = catalog.npc_dialogue("tess").relationship_effects

        assert effects.delta_for(DialogueApproach.HELPFUL) == 3
        assert effects.delta_for(DialogueApproach.ASSERTIVE) == -4

    def test_choice_not_offered(self, active_manager):
        handle, _ = open_and_present(active_manager, NPC_ID)
        before = active_manager.current.model_dump()

        with pytest.raises(InvalidChoice):
            active_manager.dialogue.choose(handle, "press_ledger")

        assert active_manager.current.model_dump() == before
        assert handle.active

    def test_choose_before_present(self, active_manager):
        handle = active_manager.dialogue.start_conversation(NPC_ID)

        with pytest.raises(InvalidChoice):
            active_manager.dialogue.choose(handle, "ask_travels")

    def test_choice_revalidated_on_selection(self, tess):
        manager = tess({"start": {"text": "Psst.", "choices": [
            {"id": "secret", "text": "Tell me.", "requires": {"world_flags": {"gate_open": True}}},
            {"id": "bye", "text": "Bye."},
        ]}})
        manager.set_world_flag("gate_open", True)
        handle, node = open_and_present(manager)
        assert [c.choice_id for c in node.choices] == ["secret", "bye"]

        manager.set_world_flag("gate_open", False)

        with pytest.raises(InvalidChoice) as exc_info:
            manager.dialogue.choose(handle, "secret")
        assert "no longer hold" in str(exc_info.value)
        assert not manager.relationships.has_flag("tess", choice_flag("chat", "secret"))

    def test_entering_node_reveals_clue(self, tess):
        manager = tess({
            "start": {"text": "Look at this.", "choices": [{"id": "look", "text": "Show me.", "next": "shown"}]},
            "shown": {"text": "A button.", "clue_flags": ["branching_clue"]},
        })
        manager.quests.start_quest("branching")
        handle, _ = open_and_present(manager)

        outcome = manager.dialogue.choose(handle, "look")

        assert outcome.revealed_clues == ["branching_clue"]
        assert manager.quests.current_phase("branching") == "left"

    def test_inactive_quest_consequence_is_skipped(self, tess):
        manager = tess({"start": {"text": "Here.", "choices": [
            {"id": "take", "text": "Thanks.", "consequences": [
                {"kind": "reveal_clue", "clue_id": "branching_clue"},
                {"kind": "unlock_flag", "flag": "gave_button"},
            ]},
        ]}})
        handle, _ = open_and_present(manager)

        outcome = manager.dialogue.choose(handle, "take")

        assert outcome.skipped == ["reveal_clue:branching_clue"]
        assert outcome.revealed_clues == []
        assert manager.relationships.has_flag("tess", "gave_button")

    def test_start_quest_twice_is_skipped(self, tess):
        manager = tess({"start": {"text": "Help?", "choices": [
            {"id": "yes", "text": "Yes.", "quest_action": {"type": "start_quest", "quest_id": "branching"}},
        ]}})
        manager.quests.start_quest("branching")
        handle, _ = open_and_present(manager)

        outcome = manager.dialogue.choose(handle, "yes")

        assert outcome.started_quests == []
        assert outcome.skipped == ["start_quest:branching"]

    def test_complete_quest_from_dialogue(self, tess, rewards):
        manager = tess({"start": {"text": "Well?", "choices": [
            {"id": "report", "text": "Case closed.", "consequences": [
                {"kind": "complete_quest", "quest_id": "branching"},
            ]},
        ]}})
        manager.quests.start_quest("branching")
        manager.record_clue("branching", "branching_clue")
        handle, _ = open_and_present(manager)

        outcome = manager.dialogue.choose(handle, "report")

        assert "quest_completed:branching" in outcome.outcome_tags
        assert manager.quests.status("branching") == QuestStatus.COMPLETED
        assert len(rewards) == 1

    def test_complete_quest_from_non_terminal_phase_is_skipped(self, tess, rewards):
        manager = tess({"start": {"text": "Well?", "choices": [
            {"id": "report", "text": "Case closed.", "consequences": [
                {"kind": "complete_quest", "quest_id": "branching"},
            ]},
        ]}})
        manager.quests.start_quest("branching")
        handle, _ = open_and_present(manager)

        outcome = manager.dialogue.choose(handle, "report")

        assert outcome.skipped == ["complete_quest:branching"]
        assert manager.quests.status("branching") == QuestStatus.ACTIVE
        assert len(rewards) == 0

    def test_world_flag_consequence_can_fail_quest(self, build_session):
        quest = make_quest(fail_conditions=[{
            "id": "alarm",
            "reason": "raised the alarm",
            "conditions": [{"kind": "world_flag", "key": "alarm"}],
        }])
        dialogue = chat({"start": {"text": "Shh.", "choices": [
            {"id": "shout", "text": "HELP!", "consequences": [{"kind": "set_world_flag", "key": "alarm"}]},
        ]}})
        manager = build_session(quests=[quest], dialogues=[dialogue]).manager
        manager.quests.start_quest("branching")
        handle, _ = open_and_present(manager)

        manager.dialogue.choose(handle, "shout")

        assert manager.quests.status("branching") == QuestStatus.FAILED


class TestAtomicity:
    """Test that a failing choice changes nothing but the abort record."""

    def test_broken_consequence_rolls_back(self, tess, bus):
        manager = tess({"start": {"text": "Hi.", "choices": [
            {"id": "oops", "text": "Hm?", "consequences": [
                {"kind": "trust_delta", "delta": 10},
                {"kind": "reveal_clue", "clue_id": "no_such_clue"},
            ]},
        ]}})
        handle, _ = open_and_present(manager)

        with pytest.raises(ContentIntegrityError):
            manager.dialogue.choose(handle, "oops")

        assert manager.relationships.trust_value("tess") == 0
        assert not manager.relationships.has_flag("tess", choice_flag("chat", "oops"))
        assert bus.get_history(EventType.TRUST_CHANGED) == []

        [record] = manager.relationships.history("tess")
        assert record.choices == []
        assert record.net_trust_delta == 0
        assert record.outcome_tags == [ABORTED_TAG]
        assert manager.dialogue.open_handles == []

    def test_unknown_objective_rolls_back_earlier_effects(self, tess):
        manager = tess({"start": {"text": "Hi.", "choices": [
            {"id": "bad", "text": "Go.", "consequences": [
                {"kind": "set_world_flag", "key": "went"},
                {"kind": "complete_objective", "quest_id": "branching", "objective_id": "nope"},
            ]},
        ]}})
        manager.quests.start_quest("branching")
        handle, _ = open_and_present(manager)

        with pytest.raises(ContentIntegrityError):
            manager.dialogue.choose(handle, "bad")

        assert "went" not in manager.current.world_flags

    def test_dangling_target_node(self, tess):
        manager = tess({"start": {"text": "Hi.", "choices": [
            {"id": "go", "text": "Go.", "next": "nowhere"},
        ]}})
        handle, _ = open_and_present(manager)

        with pytest.raises(ContentIntegrityError):
            manager.dialogue.choose(handle, "go")

        assert not handle.active
        assert manager.relationships.history("tess")[0].outcome_tags == [ABORTED_TAG]

    def test_aborted_handle_is_closed(self, tess):
        manager = tess({"start": {"text": "Hi.", "choices": [
            {"id": "go", "text": "Go.", "next": "nowhere"},
        ]}})
        handle, _ = open_and_present(manager)
        with pytest.raises(ContentIntegrityError):
            manager.dialogue.choose(handle, "go")

        with pytest.raises(UnknownConversation):
            manager.dialogue.present_node(handle)


class TestEnding:
    """Test conversation close and interaction records."""

    def test_end_conversation_records_once(self, manager):
        handle, _ = open_and_present(manager, NPC_ID)

        record = manager.dialogue.end_conversation(handle)
        again = manager.dialogue.end_conversation(handle)

        assert record.conversation_id == "aldric_job_offer"
        assert record.choices == []
        assert again is None
        assert len(manager.relationships.history(NPC_ID)) == 1
        assert manager.relationships.relationship(NPC_ID).conversation_count == 1

    def test_choosing_end_records(self, manager):
        handle, _ = open_and_present(manager, NPC_ID)

        outcome = manager.dialogue.choose(handle, "decline")

        assert outcome.ended
        assert outcome.next_node is None
        assert outcome.record.choices == ["decline"]
        assert manager.dialogue.end_conversation(handle) is None

    def test_conversation_events(self, manager, bus):
        handle, _ = open_and_present(manager, NPC_ID)
        manager.dialogue.choose(handle, "decline")

        assert len(bus.get_history(EventType.CONVERSATION_STARTED)) == 1
        assert bus.get_history(EventType.CONVERSATION_CHOICE)[0].data["choice_id"] == "decline"
        [ended] = bus.get_history(EventType.CONVERSATION_ENDED)
        assert ended.data["choices"] == ["decline"]

    def test_trust_level_from_conversation(self, tess):
        manager = tess({"start": {"text": "Hi.", "choices": [
            {"id": "gift", "text": "A gift.", "trust_delta": 30},
        ]}})
        handle, _ = open_and_present(manager)

        manager.dialogue.choose(handle, "gift")

        assert manager.relationships.trust_level("tess") == TrustLevel.FRIENDLY
