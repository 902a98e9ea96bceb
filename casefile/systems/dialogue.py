"""
Dialogue conversation engine.

Selects a conversation for an NPC, presents nodes with personality-shaped
text and condition-filtered choices, applies the consequences of a chosen
option, and records the finished conversation in the NPC relationship.

    start_conversation → present_node ⇄ choose → end_conversation

A node with no available choices ends the conversation when presented.
Consequences of one choice land together or not at all.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

from ..errors import (
    ContentIntegrityError,
    InvalidChoice,
    NoAvailableConversation,
    PhaseNotTerminal,
    UnknownClue,
    UnknownConversation,
    UnknownObjective,
    UnknownQuest,
)
from ..rules.conditions import evaluate
from ..rules.text import select_variant, shape_text
from ..rules.trust import scale_delta
from ..state.event_bus import EventType
from ..state.schema import (
    DialogueApproach,
    EmotionalState,
    FlagScope,
    InteractionRecord,
    QuestStatus,
    generate_id,
)
from ..state.schemas.conditions import (
    CompleteObjectiveConsequence,
    CompleteQuestConsequence,
    DialogueConsequence,
    RevealClueConsequence,
    SetWorldFlagConsequence,
    StartQuestConsequence,
    TrustDeltaConsequence,
    UnlockFlagConsequence,
)
from ..state.schemas.dialogue import ConversationTree
from ..state.schemas.results import (
    ChoiceOutcome,
    ConversationHandle,
    PresentedChoice,
    PresentedNode,
)

if TYPE_CHECKING:
    from ..state.manager import SessionManager

logger = logging.getLogger(__name__)


ABORTED_TAG = "aborted:content_integrity"


def choice_flag(conversation_id: str, choice_id: str) -> str:
    """Relationship flag recorded whenever a choice is taken."""
    return f"{conversation_id}:{choice_id}"


@dataclass
class _Effects:
    """What one batch of consequences did."""
    trust_delta: int = 0
    revealed: list[str] = field(default_factory=list)
    started: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)


@dataclass
class _OpenConversation:
    handle: ConversationHandle
    tree: ConversationTree
    presented: list[str] | None = None  # Choice ids from the last present_node
    choices_made: list[str] = field(default_factory=list)
    trust_delta: int = 0
    outcome_tags: list[str] = field(default_factory=list)

    @property
    def npc_id(self) -> str:
        return self.handle.npc_id

    @property
    def conversation_id(self) -> str:
        return self.handle.conversation_id

    @property
    def source(self) -> str:
        return f"conversation:{self.npc_id}/{self.conversation_id}"


class DialogueSystem:
    """
    Runs conversations between the player and NPCs.

    Open conversations are tracked by handle id. Interaction history is
    only ever written when a conversation ends.
    """

    def __init__(self, manager: "SessionManager"):
        self.manager = manager
        self._open: dict[str, _OpenConversation] = {}
        self._appliers: dict[str, Callable[[_OpenConversation, DialogueConsequence, _Effects], None]] = {
            "trust_delta": self._apply_trust_delta,
            "reveal_clue": self._apply_reveal_clue,
            "start_quest": self._apply_start_quest,
            "set_world_flag": self._apply_set_world_flag,
            "unlock_flag": self._apply_unlock_flag,
            "complete_objective": self._apply_complete_objective,
            "complete_quest": self._apply_complete_quest,
        }

    @property
    def _config(self):
        return self.manager.config

    @property
    def open_handles(self) -> list[ConversationHandle]:
        return [conv.handle for conv in self._open.values()]

    def _conversation(self, handle: ConversationHandle | str) -> _OpenConversation:
        handle_id = handle.handle_id if isinstance(handle, ConversationHandle) else handle
        conv = self._open.get(handle_id)
        if conv is None:
            raise UnknownConversation(handle_id)
        return conv

    # ─── Selection ───────────────────────────────────────────────

    def category_weight(self, tree: ConversationTree) -> float:
        return self._config["category_weights"].get(tree.category.value, 0.0)

    def trust_term(self, tree: ConversationTree, trust_value: int) -> float:
        return self._config["trust_score_factor"] * trust_value * tree.personality.trust_building_speed

    def score(self, tree: ConversationTree, trust_value: int) -> float:
        """Category weight plus a small trust contribution."""
        return self.category_weight(tree) + self.trust_term(tree, trust_value)

    def rank_conversations(self, npc_id: str) -> list[tuple[float, ConversationTree]]:
        """
        Applicable conversations for an NPC, best first.

        Category weight decides first; trust only orders conversations
        of equal weight, however fast the NPC warms up. Remaining ties
        go to the lexically smallest conversation id.
        """
        snapshot = self.manager.snapshot(focus_npc=npc_id)
        trust = self.manager.relationships.trust_value(npc_id)
        applicable = [
            tree
            for tree in self.manager.catalog.conversations_for(npc_id)
            if evaluate(tree.conditions, snapshot)
        ]
        applicable.sort(key=lambda tree: (
            -self.category_weight(tree),
            -self.trust_term(tree, trust),
            tree.conversation_id,
        ))
        return [(self.score(tree, trust), tree) for tree in applicable]

    def start_conversation(self, npc_id: str, player_id: str | None = None) -> ConversationHandle:
        """
        Open the best applicable conversation with an NPC.

        Args:
            npc_id: NPC to talk to
            player_id: Must match the session's player when given

        Returns:
            Handle for present_node/choose/end_conversation

        Raises:
            NoAvailableConversation: nothing applies right now
            ContentIntegrityError: entry node missing or entry effects broken
        """
        if player_id is not None and player_id != self.manager.player_id:
            raise ValueError(
                f"Session belongs to player '{self.manager.player_id}', not '{player_id}'"
            )

        ranked = self.rank_conversations(npc_id)
        if not ranked:
            raise NoAvailableConversation(npc_id)
        tree = ranked[0][1]

        if tree.node(tree.entry_node) is None:
            exc = ContentIntegrityError(
                f"entry node '{tree.entry_node}' is not defined",
                source=f"conversation:{npc_id}/{tree.conversation_id}",
            )
            self._report_integrity(exc)
            raise exc

        handle = ConversationHandle(
            handle_id=generate_id(),
            player_id=self.manager.player_id,
            npc_id=npc_id,
            conversation_id=tree.conversation_id,
            current_node=tree.entry_node,
            started_at=self.manager.now(),
        )
        conv = _OpenConversation(handle=handle, tree=tree)
        self._open[handle.handle_id] = conv

        logger.info(f"Conversation '{tree.conversation_id}' started with '{npc_id}'")
        self.manager.emit(
            EventType.CONVERSATION_STARTED,
            npc_id=npc_id,
            conversation_id=tree.conversation_id,
            handle_id=handle.handle_id,
        )

        effects = _Effects()
        try:
            with self.manager.transaction():
                self._enter_node(conv, tree.entry_node, effects)
                self.manager.quests.check_all_fail_conditions()
        except ContentIntegrityError as exc:
            self._abort(conv, exc)
            raise
        self._commit(conv, effects)
        return handle

    # ─── Presentation ────────────────────────────────────────────

    def present_node(
        self,
        handle: ConversationHandle | str,
        emotional_state: EmotionalState | None = None,
    ) -> PresentedNode:
        """
        Render the current node for the player.

        Args:
            handle: Open conversation
            emotional_state: NPC's mood right now (personality default when omitted)

        Returns:
            PresentedNode; ended=True with the interaction record when
            no choice was available

        Raises:
            UnknownConversation: handle is not open
            ContentIntegrityError: node has no default text variant
        """
        conv = self._conversation(handle)
        node = conv.tree.node(conv.handle.current_node)
        if node is None or node.default_variant is None:
            what = "is not defined" if node is None else "has no default text variant"
            exc = ContentIntegrityError(
                f"node '{conv.handle.current_node}' {what}",
                source=conv.source,
            )
            self._abort(conv, exc)
            raise exc

        personality = conv.tree.personality
        emotion = emotional_state or personality.emotional_state
        trust_level = self.manager.relationships.trust_level(conv.npc_id)
        _, variant = select_variant(node, emotion, trust_level)
        text = shape_text(
            variant,
            personality,
            emotion,
            trust_level,
            seed_key=f"{conv.conversation_id}:{node.node_id}",
            config=self._config,
        )

        snapshot = self.manager.snapshot(focus_npc=conv.npc_id)
        available = [choice for choice in node.choices if evaluate(choice.conditions, snapshot)]
        conv.presented = [choice.choice_id for choice in available]

        presented = PresentedNode(
            handle_id=conv.handle.handle_id,
            npc_id=conv.npc_id,
            conversation_id=conv.conversation_id,
            node_id=node.node_id,
            speaker=node.speaker,
            text=text,
            emotional_state=emotion,
            choices=[PresentedChoice(choice_id=c.choice_id, text=c.text) for c in available],
        )
        if not available:
            presented.ended = True
            presented.record = self._close(conv)
        return presented

    # ─── Choices ─────────────────────────────────────────────────

    def choose(self, handle: ConversationHandle | str, choice_id: str) -> ChoiceOutcome:
        """
        Take one of the choices from the last present_node.

        The choice is re-checked against fresh state before anything
        changes. Its consequences and the next node's entry effects are
        applied together; if any fails, nothing is kept.

        Raises:
            UnknownConversation: handle is not open
            InvalidChoice: not offered, or its conditions no longer hold
            ContentIntegrityError: target node missing or a consequence
                references content that does not exist
        """
        conv = self._conversation(handle)
        if conv.presented is None or choice_id not in conv.presented:
            raise InvalidChoice(choice_id)

        node = conv.tree.node(conv.handle.current_node)
        choice = node.choice(choice_id)
        snapshot = self.manager.snapshot(focus_npc=conv.npc_id)
        if not evaluate(choice.conditions, snapshot):
            raise InvalidChoice(choice_id, "its conditions no longer hold")

        if not choice.ends_conversation and conv.tree.node(choice.next) is None:
            exc = ContentIntegrityError(
                f"choice '{choice_id}' leads to undefined node '{choice.next}'",
                source=conv.source,
            )
            self._abort(conv, exc)
            raise exc

        effects = _Effects(tags=list(choice.tags))
        try:
            with self.manager.transaction():
                self.manager.relationships.set_flag(
                    conv.npc_id, choice_flag(conv.conversation_id, choice_id)
                )
                if choice.approach is not None:
                    self._apply_approach(conv, choice.approach, effects)
                self._apply_all(conv, choice.consequences, effects)
                if not choice.ends_conversation:
                    self._enter_node(conv, choice.next, effects)
                self.manager.quests.check_all_fail_conditions()
        except ContentIntegrityError as exc:
            self._abort(conv, exc)
            raise

        conv.choices_made.append(choice_id)
        self._commit(conv, effects)
        self.manager.emit(
            EventType.CONVERSATION_CHOICE,
            npc_id=conv.npc_id,
            conversation_id=conv.conversation_id,
            node_id=node.node_id,
            choice_id=choice_id,
        )

        outcome = ChoiceOutcome(
            choice_id=choice_id,
            trust_delta=effects.trust_delta,
            revealed_clues=effects.revealed,
            started_quests=effects.started,
            skipped=effects.skipped,
            outcome_tags=effects.tags,
        )
        if choice.ends_conversation:
            outcome.ended = True
            outcome.record = self._close(conv)
        else:
            conv.handle.current_node = choice.next
            conv.presented = None
            outcome.next_node = choice.next
        return outcome

    def end_conversation(self, handle: ConversationHandle | str) -> InteractionRecord | None:
        """
        Close a conversation and record it.

        Returns:
            The new InteractionRecord, or None if it had already ended
        """
        handle_id = handle.handle_id if isinstance(handle, ConversationHandle) else handle
        conv = self._open.get(handle_id)
        if conv is None:
            return None
        return self._close(conv)

    # ─── Internals ───────────────────────────────────────────────

    def _enter_node(self, conv: _OpenConversation, node_id: str, effects: _Effects) -> None:
        node = conv.tree.node(node_id)
        self._apply_all(conv, node.on_enter, effects)
        for clue_id in node.reveals_clues:
            self._apply_reveal_clue(conv, RevealClueConsequence(clue_id=clue_id), effects)

    def _apply_all(
        self,
        conv: _OpenConversation,
        consequences: list[DialogueConsequence],
        effects: _Effects,
    ) -> None:
        for consequence in consequences:
            self._appliers[consequence.kind](conv, consequence, effects)

    def _commit(self, conv: _OpenConversation, effects: _Effects) -> None:
        conv.trust_delta += effects.trust_delta
        conv.outcome_tags.extend(effects.tags)

    def _skip(self, conv: _OpenConversation, effects: _Effects, what: str, why: str) -> None:
        logger.warning(f"{conv.source}: skipped {what} ({why})")
        effects.skipped.append(what)

    def _require_quest(self, conv: _OpenConversation, quest_id: str) -> None:
        if self.manager.catalog.lookup_quest(quest_id) is None:
            raise ContentIntegrityError(f"unknown quest '{quest_id}'", source=conv.source)

    def _report_integrity(self, exc: ContentIntegrityError) -> None:
        logger.error(f"Content integrity error: {exc}")
        self.manager.emit(EventType.CONTENT_INTEGRITY_ERROR, source=exc.source, message=exc.message)

    def _abort(self, conv: _OpenConversation, exc: ContentIntegrityError) -> None:
        self._report_integrity(exc)
        self._close(conv, extra_tags=[ABORTED_TAG])

    def _close(self, conv: _OpenConversation, extra_tags: list[str] | None = None) -> InteractionRecord:
        record = InteractionRecord(
            npc_id=conv.npc_id,
            conversation_id=conv.conversation_id,
            choices=list(conv.choices_made),
            net_trust_delta=conv.trust_delta,
            outcome_tags=[*conv.outcome_tags, *(extra_tags or [])],
            timestamp=self.manager.now(),
        )
        self._open.pop(conv.handle.handle_id, None)
        conv.handle.active = False
        self.manager.relationships.record_interaction(conv.npc_id, record)

        logger.info(f"Conversation '{conv.conversation_id}' with '{conv.npc_id}' ended")
        self.manager.emit(
            EventType.CONVERSATION_ENDED,
            npc_id=conv.npc_id,
            conversation_id=conv.conversation_id,
            handle_id=conv.handle.handle_id,
            choices=record.choices,
            net_trust_delta=record.net_trust_delta,
        )
        return record

    # ─── Consequence appliers ────────────────────────────────────

    def _apply_approach(self, conv, approach: DialogueApproach, effects: _Effects) -> None:
        """Trust change the NPC attaches to how the player spoke."""
        effects.tags.append(f"approach:{approach.value}")
        dialogue = self.manager.catalog.npc_dialogue(conv.npc_id)
        delta = dialogue.relationship_effects.delta_for(approach) if dialogue else 0
        if delta:
            self._apply_trust_delta(
                conv, TrustDeltaConsequence(delta=delta, reason=f"approach:{approach.value}"), effects
            )

    def _apply_trust_delta(self, conv, consequence: TrustDeltaConsequence, effects: _Effects) -> None:
        npc_id = consequence.npc_id or conv.npc_id
        delta = consequence.delta
        if npc_id == conv.npc_id:
            delta = scale_delta(delta, conv.tree.personality.trust_building_speed)
        change = self.manager.relationships.modify_trust(
            npc_id, delta, consequence.reason or f"dialogue:{conv.conversation_id}"
        )
        if npc_id == conv.npc_id:
            # Clamped movement, not the ledger delta
            effects.trust_delta += change.new_value - change.old_value

    def _apply_reveal_clue(self, conv, consequence: RevealClueConsequence, effects: _Effects) -> None:
        clue_id = consequence.clue_id
        quest_id = consequence.quest_id or self.manager.catalog.quest_for_clue(clue_id)
        if quest_id is None:
            raise ContentIntegrityError(f"clue '{clue_id}' is not declared by any quest", source=conv.source)
        self._require_quest(conv, quest_id)
        if self.manager.quests.status(quest_id) != QuestStatus.ACTIVE:
            self._skip(conv, effects, f"reveal_clue:{clue_id}", f"quest '{quest_id}' is not active")
            return

        try:
            outcome = self.manager.record_clue(
                quest_id, clue_id, location=consequence.location, method="dialogue"
            )
        except (UnknownQuest, UnknownClue) as exc:
            raise ContentIntegrityError(exc.message, source=conv.source) from exc
        if outcome.discovered:
            effects.revealed.append(clue_id)
            effects.tags.append(f"clue:{clue_id}")

    def _apply_start_quest(self, conv, consequence: StartQuestConsequence, effects: _Effects) -> None:
        quest_id = consequence.quest_id
        self._require_quest(conv, quest_id)
        if self.manager.quests.status(quest_id) == QuestStatus.ACTIVE:
            self._skip(conv, effects, f"start_quest:{quest_id}", "already active")
            return
        self.manager.quests.start_quest(quest_id)
        effects.started.append(quest_id)
        effects.tags.append(f"quest_started:{quest_id}")

    def _apply_set_world_flag(self, conv, consequence: SetWorldFlagConsequence, effects: _Effects) -> None:
        if consequence.scope == FlagScope.QUEST:
            self._require_quest(conv, consequence.quest_id)
            if self.manager.quests.status(consequence.quest_id) != QuestStatus.ACTIVE:
                self._skip(
                    conv, effects, f"set_world_flag:{consequence.key}",
                    f"quest '{consequence.quest_id}' is not active",
                )
                return
        self.manager.set_world_flag(
            consequence.key,
            consequence.value,
            scope=consequence.scope,
            quest_id=consequence.quest_id,
        )

    def _apply_unlock_flag(self, conv, consequence: UnlockFlagConsequence, effects: _Effects) -> None:
        self.manager.relationships.set_flag(consequence.npc_id or conv.npc_id, consequence.flag)

    def _apply_complete_objective(self, conv, consequence: CompleteObjectiveConsequence, effects: _Effects) -> None:
        quest_id = consequence.quest_id
        self._require_quest(conv, quest_id)
        if self.manager.quests.status(quest_id) != QuestStatus.ACTIVE:
            self._skip(
                conv, effects, f"complete_objective:{consequence.objective_id}",
                f"quest '{quest_id}' is not active",
            )
            return
        try:
            self.manager.quests.complete_objective(quest_id, consequence.objective_id)
        except UnknownObjective as exc:
            raise ContentIntegrityError(exc.message, source=conv.source) from exc

    def _apply_complete_quest(self, conv, consequence: CompleteQuestConsequence, effects: _Effects) -> None:
        quest_id = consequence.quest_id
        self._require_quest(conv, quest_id)
        if self.manager.quests.status(quest_id) != QuestStatus.ACTIVE:
            self._skip(conv, effects, f"complete_quest:{quest_id}", "quest is not active")
            return
        try:
            self.manager.quests.complete_quest(quest_id)
        except PhaseNotTerminal as exc:
            self._skip(conv, effects, f"complete_quest:{quest_id}", exc.message)
            return
        effects.tags.append(f"quest_completed:{quest_id}")
