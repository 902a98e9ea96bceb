"""
Public surface of the investigation engine.

PlayerSession wraps one player's SessionManager and returns Result
values: engine errors never escape to the caller. InvestigationEngine
keeps one session per player.

Usage:
    catalog = load_catalog_dir("content")
    engine = InvestigationEngine(catalog)
    session = engine.session("player-1")

    session.start_quest("merchant_mystery")
    result = session.record_clue("merchant_mystery", "suspicious_ledger")
    if result.ok:
        print(result.value.new_strength)
"""

import logging
from datetime import datetime
from typing import Callable, TypeVar

from .config import EngineConfig, default_config
from .errors import ContentIntegrityError, EngineError, Result
from .state.catalog import ContentCatalog
from .state.event_bus import EventBus
from .state.manager import SessionManager
from .state.rewards import QueuedRewardSink, RewardSink
from .state.schema import (
    EmotionalState,
    EvidenceStrength,
    FlagScope,
    FlagValue,
    InteractionRecord,
    NpcRelationship,
    PlayerState,
    QuestProgress,
    QuestStatus,
    TrustLevel,
)
from .state.schemas.results import (
    ChoiceOutcome,
    ClueOutcome,
    ConversationHandle,
    ObjectiveOutcome,
    PhaseTransitionResult,
    PresentedNode,
    QuestCompletionSummary,
    QuestFailureSummary,
    TrustChange,
)
from .state.snapshot import PlayerNarrativeSnapshot

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PlayerSession:
    """
    Result-returning operations for one player.

    Rejected operations (unknown ids, inactive quests, invalid choices)
    are logged at INFO and leave state untouched. Content integrity
    errors are logged at ERROR.
    """

    def __init__(
        self,
        catalog: ContentCatalog,
        player: PlayerState | str | None = None,
        config: EngineConfig | None = None,
        event_bus: EventBus | None = None,
        reward_sink: RewardSink | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.manager = SessionManager(
            catalog,
            player,
            config=config,
            event_bus=event_bus,
            reward_sink=reward_sink,
            clock=clock,
        )

    @property
    def player_id(self) -> str:
        return self.manager.player_id

    @property
    def state(self) -> PlayerState:
        """Live player state (serialize with model_dump_json)."""
        return self.manager.current

    def _run(self, operation: str, fn: Callable[..., T], *args, **kwargs) -> Result[T]:
        try:
            return Result(value=fn(*args, **kwargs))
        except ContentIntegrityError as exc:
            logger.error(f"{operation} aborted: {exc}")
            return Result(error=exc)
        except EngineError as exc:
            logger.info(f"{operation} rejected: {exc}")
            return Result(error=exc)

    # -------------------------------------------------------------------------
    # Quests and evidence
    # -------------------------------------------------------------------------

    def start_quest(self, quest_id: str) -> Result[QuestProgress]:
        return self._run("start_quest", self.manager.quests.start_quest, quest_id)

    def record_clue(
        self,
        quest_id: str,
        clue_id: str,
        location: str | None = None,
        method: str | None = None,
    ) -> Result[ClueOutcome]:
        return self._run("record_clue", self.manager.record_clue, quest_id, clue_id, location, method)

    def complete_objective(self, quest_id: str, objective_id: str) -> Result[ObjectiveOutcome]:
        return self._run(
            "complete_objective", self.manager.quests.complete_objective, quest_id, objective_id
        )

    def try_advance_phase(self, quest_id: str) -> Result[PhaseTransitionResult]:
        return self._run("try_advance_phase", self.manager.quests.try_advance_phase, quest_id)

    def complete_quest(self, quest_id: str) -> Result[QuestCompletionSummary]:
        return self._run("complete_quest", self.manager.quests.complete_quest, quest_id)

    def fail_quest(self, quest_id: str, reason: str) -> Result[QuestFailureSummary]:
        return self._run("fail_quest", self.manager.quests.fail_quest, quest_id, reason)

    def check_fail_conditions(self, quest_id: str) -> Result[QuestFailureSummary | None]:
        return self._run("check_fail_conditions", self.manager.quests.check_fail_conditions, quest_id)

    def add_note(self, quest_id: str, note: str) -> Result[list[str]]:
        return self._run("add_note", self.manager.quests.add_note, quest_id, note)

    def evidence_strength(self, quest_id: str) -> EvidenceStrength:
        return self.manager.evidence.evidence_strength(quest_id)

    def evidence_total(self, quest_id: str) -> float:
        return self.manager.evidence.evidence_total(quest_id)

    def current_phase(self, quest_id: str) -> str | None:
        return self.manager.quests.current_phase(quest_id)

    def quest_status(self, quest_id: str) -> QuestStatus:
        return self.manager.quests.status(quest_id)

    def quest_progress(self, quest_id: str) -> QuestProgress | None:
        return self.manager.quests.progress(quest_id)

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------

    def modify_trust(self, npc_id: str, delta: int, reason: str = "") -> Result[TrustChange]:
        return self._run("modify_trust", self.manager.relationships.modify_trust, npc_id, delta, reason)

    def trust_value(self, npc_id: str) -> int:
        return self.manager.relationships.trust_value(npc_id)

    def trust_level(self, npc_id: str) -> TrustLevel:
        return self.manager.relationships.trust_level(npc_id)

    def relationship(self, npc_id: str) -> NpcRelationship:
        return self.manager.relationships.relationship(npc_id)

    def history(self, npc_id: str) -> list[InteractionRecord]:
        return self.manager.relationships.history(npc_id)

    # -------------------------------------------------------------------------
    # Dialogue
    # -------------------------------------------------------------------------

    def start_conversation(self, npc_id: str, player_id: str | None = None) -> Result[ConversationHandle]:
        return self._run(
            "start_conversation", self.manager.dialogue.start_conversation, npc_id, player_id
        )

    def present_node(
        self,
        handle: ConversationHandle | str,
        emotional_state: EmotionalState | None = None,
    ) -> Result[PresentedNode]:
        return self._run("present_node", self.manager.dialogue.present_node, handle, emotional_state)

    def choose(self, handle: ConversationHandle | str, choice_id: str) -> Result[ChoiceOutcome]:
        return self._run("choose", self.manager.dialogue.choose, handle, choice_id)

    def end_conversation(self, handle: ConversationHandle | str) -> Result[InteractionRecord | None]:
        return self._run("end_conversation", self.manager.dialogue.end_conversation, handle)

    # -------------------------------------------------------------------------
    # World
    # -------------------------------------------------------------------------

    def set_world_context(self, hour: float | None = None, location: str | None = None) -> None:
        self.manager.set_world_context(hour=hour, location=location)

    def set_world_flag(
        self,
        key: str,
        value: FlagValue = True,
        scope: FlagScope = FlagScope.GLOBAL,
        quest_id: str | None = None,
    ) -> Result[None]:
        def set_and_check():
            self.manager.set_world_flag(key, value, scope=scope, quest_id=quest_id)
            self.manager.quests.check_all_fail_conditions()

        return self._run("set_world_flag", set_and_check)

    def set_skill(self, skill: str, level: int) -> None:
        self.manager.set_skill(skill, level)

    def snapshot(self, focus_npc: str | None = None) -> PlayerNarrativeSnapshot:
        return self.manager.snapshot(focus_npc)


class InvestigationEngine:
    """
    Holds one PlayerSession per player over a shared catalog.

    Sessions share content, config, event bus, reward sink and clock;
    their player state is fully separate.
    """

    def __init__(
        self,
        catalog: ContentCatalog,
        config: EngineConfig | None = None,
        event_bus: EventBus | None = None,
        reward_sink: RewardSink | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.catalog = catalog
        self.config = config or default_config()
        self.event_bus = event_bus or EventBus(history_limit=self.config.get("history_limit", 100))
        self.reward_sink = reward_sink if reward_sink is not None else QueuedRewardSink()
        self.clock = clock
        self.sessions: dict[str, PlayerSession] = {}

    def session(self, player_id: str, state: PlayerState | None = None) -> PlayerSession:
        """
        Get a player's session, creating it on first use.

        Args:
            player_id: Player to look up
            state: Saved state to resume from (only used on creation)
        """
        if player_id not in self.sessions:
            if state is not None and state.player_id != player_id:
                raise ValueError(f"State belongs to '{state.player_id}', not '{player_id}'")
            self.sessions[player_id] = PlayerSession(
                self.catalog,
                state or player_id,
                config=self.config,
                event_bus=self.event_bus,
                reward_sink=self.reward_sink,
                clock=self.clock,
            )
        return self.sessions[player_id]

    def start_conversation(self, npc_id: str, player_id: str) -> Result[ConversationHandle]:
        """Open a conversation for a player, routed to their session."""
        return self.session(player_id).start_conversation(npc_id, player_id)

    def close_session(self, player_id: str) -> PlayerState | None:
        """Drop a session, returning its state for persistence."""
        session = self.sessions.pop(player_id, None)
        return session.state if session else None
