"""
Reward hand-off to character progression.

The engine never resolves rewards itself. Completing a quest produces a
RewardRequest that goes to whatever RewardSink the session was given.
"""

from typing import Protocol, runtime_checkable

from .schemas.results import RewardRequest


@runtime_checkable
class RewardSink(Protocol):
    """
    Receiver for reward requests.

    Implementations:
    - QueuedRewardSink: keeps requests until drained (default, testing)
    """

    def request_reward(self, request: RewardRequest) -> None:
        """Accept a reward request for later resolution."""
        ...


class QueuedRewardSink:
    """In-memory queue of pending reward requests."""

    def __init__(self):
        self.pending: list[RewardRequest] = []

    def request_reward(self, request: RewardRequest) -> None:
        self.pending.append(request)

    def drain(self) -> list[RewardRequest]:
        """Return and clear all pending requests."""
        requests, self.pending = self.pending, []
        return requests

    def __len__(self) -> int:
        return len(self.pending)
