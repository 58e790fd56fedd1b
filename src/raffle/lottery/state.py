from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class RaffleState(str, Enum):
    OPEN = "open"
    CALCULATING = "calculating"


@dataclass(frozen=True, slots=True)
class PendingPayout:
    """
    A completed draw whose transfer has not gone through yet.
    """

    request_id: int
    random_value: int
    winner_index: int
    winner: str
    amount: int


@dataclass(slots=True)
class RoundState:
    """
    The single mutable aggregate every raffle operation works on.

    Invariants:
      - state == CALCULATING  <=>  pending_request_id is not None
      - pool_balance == sum of fees paid by the current players
      - pending_payout is only set while CALCULATING
    """

    last_timestamp: int
    state: RaffleState = RaffleState.OPEN
    players: list[str] = field(default_factory=list)
    pool_balance: int = 0
    pending_request_id: int | None = None
    pending_payout: PendingPayout | None = None
    recent_winner: str | None = None
    round_number: int = 1

    @property
    def is_open(self) -> bool:
        return self.state is RaffleState.OPEN

    @property
    def player_count(self) -> int:
        return len(self.players)

    def lock(self) -> None:
        """
        Close the round to entries. Until bind_request() runs, the round is
        CALCULATING without a request; callers hold this only inside one
        operation.
        """
        self.state = RaffleState.CALCULATING

    def bind_request(self, request_id: int) -> None:
        if self.state is not RaffleState.CALCULATING or self.pending_request_id is not None:
            raise RuntimeError("request can only be bound to a freshly locked round")
        self.pending_request_id = request_id

    def unlock(self) -> None:
        """
        Undo lock() when the randomness request could not be issued.
        """
        self.state = RaffleState.OPEN
        self.pending_request_id = None

    def reset(self, *, winner: str, now: int) -> None:
        """
        Close out a paid round. All fields change together.
        """
        self.players = []
        self.pool_balance = 0
        self.pending_request_id = None
        self.pending_payout = None
        self.state = RaffleState.OPEN
        self.last_timestamp = now
        self.recent_winner = winner
        self.round_number += 1

    def check_invariants(self) -> None:
        locked = self.state is RaffleState.CALCULATING
        if locked != (self.pending_request_id is not None):
            raise AssertionError(
                f"state={self.state.value} inconsistent with pending_request_id={self.pending_request_id}"
            )
        if self.pending_payout is not None and not locked:
            raise AssertionError("pending payout outside CALCULATING")
        if self.pool_balance < 0:
            raise AssertionError("negative pool balance")
        if not self.players and self.pool_balance != 0:
            raise AssertionError("pool balance without players")


@dataclass(frozen=True, slots=True)
class RoundSnapshot:
    """
    Read-only view of the round, safe to hand out to callers.
    """

    state: RaffleState
    players: tuple[str, ...]
    pool_balance: int
    last_timestamp: int
    pending_request_id: int | None
    pending_payout: PendingPayout | None
    recent_winner: str | None
    round_number: int
    entrance_fee: int
    interval: int

    @property
    def player_count(self) -> int:
        return len(self.players)
