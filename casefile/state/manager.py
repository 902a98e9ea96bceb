"""
Per-player session management.

A SessionManager owns one player's narrative state and wires the game
systems (evidence, quests, relationships, dialogue) to it. Systems read
and write state through ``manager.current`` and publish changes through
``manager.emit``.
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Iterator

from ..config import EngineConfig, default_config
from ..errors import QuestNotActive
from .catalog import ContentCatalog
from .event_bus import EventBus, EventType, get_event_bus
from .rewards import QueuedRewardSink, RewardSink
from .schema import FlagScope, FlagValue, PlayerState
from .schemas.results import ClueOutcome, RewardRequest
from .snapshot import PlayerNarrativeSnapshot, build_snapshot

logger = logging.getLogger(__name__)


class SessionManager:
    """
    Owns one player's state and the systems that operate on it.

    Single-threaded: one session per player, no locking.

    Mutations that must land together run inside transaction(): on any
    exception player state is restored and the events and reward
    requests raised inside it are dropped.
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
        """
        Initialize a session.

        Args:
            catalog: Read-only content
            player: Existing PlayerState, or a player id for a fresh one
            config: Engine tuning (defaults when omitted)
            event_bus: Bus for change events (global bus when omitted)
            reward_sink: Receiver for quest reward requests
            clock: Time source for timestamps
        """
        if isinstance(player, PlayerState):
            self.current = player
        elif player is None:
            self.current = PlayerState()
        else:
            self.current = PlayerState(player_id=player)

        self.catalog = catalog
        self.config = config or default_config()
        self.bus = event_bus or get_event_bus()
        self.rewards = reward_sink if reward_sink is not None else QueuedRewardSink()
        self.clock = clock or datetime.now

        # Deferred side effects while a transaction is open
        self._deferred: list[Callable[[], None]] | None = None

        # Game systems (lazily initialized)
        self._evidence_system = None
        self._quest_system = None
        self._relationship_system = None
        self._dialogue_system = None

    @property
    def player_id(self) -> str:
        return self.current.player_id

    @property
    def evidence(self):
        """Get the evidence system (lazy initialization)."""
        if self._evidence_system is None:
            from ..systems.evidence import EvidenceSystem
            self._evidence_system = EvidenceSystem(self)
        return self._evidence_system

    @property
    def quests(self):
        """Get the quest system (lazy initialization)."""
        if self._quest_system is None:
            from ..systems.quests import QuestSystem
            self._quest_system = QuestSystem(self)
        return self._quest_system

    @property
    def relationships(self):
        """Get the relationship system (lazy initialization)."""
        if self._relationship_system is None:
            from ..systems.relationships import RelationshipSystem
            self._relationship_system = RelationshipSystem(self)
        return self._relationship_system

    @property
    def dialogue(self):
        """Get the dialogue system (lazy initialization)."""
        if self._dialogue_system is None:
            from ..systems.dialogue import DialogueSystem
            self._dialogue_system = DialogueSystem(self)
        return self._dialogue_system

    # -------------------------------------------------------------------------
    # Plumbing
    # -------------------------------------------------------------------------

    def now(self) -> datetime:
        return self.clock()

    def touch(self) -> None:
        self.current.updated_at = self.now()

    def snapshot(self, focus_npc: str | None = None) -> PlayerNarrativeSnapshot:
        """Fresh read-only view of the player's state."""
        return build_snapshot(self.current, focus_npc)

    def emit(self, event_type: EventType, **data) -> None:
        """Publish a change, or hold it until the open transaction commits."""
        def publish():
            self.bus.emit(event_type, player_id=self.player_id, **data)

        if self._deferred is not None:
            self._deferred.append(publish)
        else:
            publish()

    def request_reward(self, request: RewardRequest) -> None:
        """Hand a reward request to the sink (after commit inside a transaction)."""
        def send():
            self.rewards.request_reward(request)
            self.bus.emit(
                EventType.REWARD_REQUESTED,
                player_id=self.player_id,
                quest_id=request.quest_id,
                rewards=request.rewards,
            )

        if self._deferred is not None:
            self._deferred.append(send)
        else:
            send()

    @property
    def in_transaction(self) -> bool:
        return self._deferred is not None

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """
        Apply a group of mutations all-or-nothing.

        Nested transactions join the outermost one.
        """
        if self._deferred is not None:
            yield
            return

        backup = self.current.model_copy(deep=True)
        self._deferred = []
        try:
            yield
        except Exception:
            self.current = backup
            self._deferred = None
            logger.debug(f"Rolled back state for player {self.player_id}")
            raise

        pending, self._deferred = self._deferred, None
        for action in pending:
            action()

    # -------------------------------------------------------------------------
    # Cross-system operations
    # -------------------------------------------------------------------------

    def record_clue(
        self,
        quest_id: str,
        clue_id: str,
        location: str | None = None,
        method: str | None = None,
    ) -> ClueOutcome:
        """
        Record a clue, then let the quest react to the new evidence.

        The evidence system only records; phase advancement and fail
        checks are run here by the quest system. If advancement fails,
        the clue is not kept either.
        """
        with self.transaction():
            outcome = self.evidence.record_clue(quest_id, clue_id, location, method)
            if outcome.discovered:
                outcome.transitions = self.quests.advance_after_change(quest_id)
                outcome.quest_status = self.current.quest_log.status(quest_id)
        return outcome

    def set_world_flag(
        self,
        key: str,
        value: FlagValue = True,
        scope: FlagScope = FlagScope.GLOBAL,
        quest_id: str | None = None,
    ) -> None:
        """Set a global flag, or a flag on an active quest run."""
        if scope == FlagScope.QUEST:
            progress = self.current.quest_log.active.get(quest_id or "")
            if progress is None:
                raise QuestNotActive(quest_id or "")
            progress.flags[key] = value
            progress.updated_at = self.now()
        else:
            self.current.world_flags[key] = value

        self.touch()
        self.emit(
            EventType.WORLD_FLAG_SET,
            key=key,
            value=value,
            scope=scope.value,
            quest_id=quest_id,
        )

    def set_world_context(self, hour: float | None = None, location: str | None = None) -> None:
        """Update time of day and/or location for condition checks."""
        if hour is not None:
            self.current.world.hour = hour % 24.0
        if location is not None:
            self.current.world.location = location
        self.touch()
        self.emit(
            EventType.WORLD_CONTEXT_CHANGED,
            hour=self.current.world.hour,
            location=self.current.world.location,
        )

    def set_skill(self, skill: str, level: int) -> None:
        """Record a skill level supplied by character progression."""
        self.current.skills[skill] = level
        self.touch()
