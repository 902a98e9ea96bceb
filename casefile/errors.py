"""
Error taxonomy for the investigation engine.

Systems raise these; the public session facade converts them to Result
values so no engine error escapes to a caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar


class ErrorCode(str, Enum):
    """Stable codes for every engine error."""
    UNKNOWN_QUEST = "unknown_quest"
    UNKNOWN_CLUE = "unknown_clue"
    UNKNOWN_OBJECTIVE = "unknown_objective"
    UNKNOWN_CONVERSATION = "unknown_conversation"
    QUEST_NOT_ACTIVE = "quest_not_active"
    ALREADY_ACTIVE = "already_active"
    PHASE_NOT_TERMINAL = "phase_not_terminal"
    INVALID_CHOICE = "invalid_choice"
    NO_AVAILABLE_CONVERSATION = "no_available_conversation"
    CONTENT_INTEGRITY = "content_integrity"


class EngineError(Exception):
    """Base error for all engine operations."""
    code: ErrorCode

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# ─── Caller errors ───────────────────────────────────────────────


class UnknownQuest(EngineError):
    """Quest id is not in the content catalog."""
    code = ErrorCode.UNKNOWN_QUEST

    def __init__(self, quest_id: str):
        self.quest_id = quest_id
        super().__init__(f"Unknown quest '{quest_id}'.")


class UnknownClue(EngineError):
    """Clue id is not declared by the quest."""
    code = ErrorCode.UNKNOWN_CLUE

    def __init__(self, clue_id: str, quest_id: str | None = None):
        self.clue_id = clue_id
        self.quest_id = quest_id
        where = f" in quest '{quest_id}'" if quest_id else ""
        super().__init__(f"Unknown clue '{clue_id}'{where}.")


class UnknownObjective(EngineError):
    """Objective id is not declared by any phase of the quest."""
    code = ErrorCode.UNKNOWN_OBJECTIVE

    def __init__(self, objective_id: str, quest_id: str):
        self.objective_id = objective_id
        self.quest_id = quest_id
        super().__init__(f"Quest '{quest_id}' has no objective '{objective_id}'.")


class UnknownConversation(EngineError):
    """Conversation handle is not open in this session."""
    code = ErrorCode.UNKNOWN_CONVERSATION

    def __init__(self, handle_id: str):
        self.handle_id = handle_id
        super().__init__(f"No open conversation with handle '{handle_id}'.")


class QuestNotActive(EngineError):
    """Operation needs an active quest."""
    code = ErrorCode.QUEST_NOT_ACTIVE

    def __init__(self, quest_id: str):
        self.quest_id = quest_id
        super().__init__(f"Quest '{quest_id}' is not active.")


class AlreadyActive(EngineError):
    """Quest already has a non-terminal progress record."""
    code = ErrorCode.ALREADY_ACTIVE

    def __init__(self, quest_id: str):
        self.quest_id = quest_id
        super().__init__(f"Quest '{quest_id}' is already active.")


class PhaseNotTerminal(EngineError):
    """Quest can only be completed from a terminal phase."""
    code = ErrorCode.PHASE_NOT_TERMINAL

    def __init__(self, quest_id: str, phase_id: str):
        self.quest_id = quest_id
        self.phase_id = phase_id
        super().__init__(
            f"Cannot complete quest '{quest_id}' from non-terminal phase '{phase_id}'."
        )


class InvalidChoice(EngineError):
    """Choice was not offered, or no longer passes its conditions."""
    code = ErrorCode.INVALID_CHOICE

    def __init__(self, choice_id: str, reason: str = "not in the presented choices"):
        self.choice_id = choice_id
        self.reason = reason
        super().__init__(f"Invalid choice '{choice_id}': {reason}.")


class NoAvailableConversation(EngineError):
    """No conversation tree for the NPC passes its applicability conditions."""
    code = ErrorCode.NO_AVAILABLE_CONVERSATION

    def __init__(self, npc_id: str):
        self.npc_id = npc_id
        super().__init__(f"No conversation available with '{npc_id}'.")


# ─── Content errors ──────────────────────────────────────────────


class ContentIntegrityError(EngineError):
    """Authored content references something that does not exist."""
    code = ErrorCode.CONTENT_INTEGRITY

    def __init__(self, message: str, source: str = ""):
        self.source = source
        super().__init__(f"{source}: {message}" if source else message)


T = TypeVar("T")


@dataclass
class Result(Generic[T]):
    """
    Outcome of a public engine operation.

    Exactly one of value/error is meaningful: check ``ok`` first,
    or call ``unwrap()`` to re-raise the error.
    """

    value: T | None = None
    error: EngineError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def code(self) -> ErrorCode | None:
        return self.error.code if self.error else None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    def __bool__(self) -> bool:
        return self.ok
