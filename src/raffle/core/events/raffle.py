from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from raffle.core.events.base import Event


@dataclass(frozen=True, slots=True)
class EntryAccepted(Event):
    """
    A player paid the entrance fee and holds a new slot in the current round.
    """
    event_type: ClassVar[str] = "raffle.entry_accepted"

    player: str
    amount: int

    # Player count AFTER this entry
    player_count: int
    round_number: int


@dataclass(frozen=True, slots=True)
class RoundLocked(Event):
    """
    Upkeep closed the round to new entries and requested randomness.
    """
    event_type: ClassVar[str] = "raffle.round_locked"

    request_id: int
    round_number: int


@dataclass(frozen=True, slots=True)
class WinnerSelected(Event):
    """
    The pooled balance was paid out and the round was reset.
    """
    event_type: ClassVar[str] = "raffle.winner_selected"

    winner: str
    amount: int

    request_id: int
    winner_index: int
    round_number: int


@dataclass(frozen=True, slots=True)
class PayoutFailed(Event):
    """
    A winner was drawn but the transfer could not complete.
    The round stays locked until the payout is retried.
    """
    event_type: ClassVar[str] = "raffle.payout_failed"

    winner: str
    amount: int

    request_id: int
    reason: str
    round_number: int
