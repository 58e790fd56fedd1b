from __future__ import annotations

from raffle.lottery.state import RaffleState


class RaffleError(Exception):
    """
    Base class for every rejected raffle operation.

    A rejection never mutates the round; `code` is a stable machine-friendly
    reason the HTTP layer returns as-is.
    """

    code: str = "raffle_error"


class InsufficientFee(RaffleError):
    code = "insufficient_fee"

    def __init__(self, *, amount: int, entrance_fee: int) -> None:
        self.amount = amount
        self.entrance_fee = entrance_fee
        super().__init__(f"amount {amount} is below the entrance fee {entrance_fee}")


class RoundNotOpen(RaffleError):
    code = "round_not_open"

    def __init__(self, *, state: RaffleState) -> None:
        self.state = state
        super().__init__(f"round is not open (state={state.value})")


class UpkeepNotNeeded(RaffleError):
    code = "upkeep_not_needed"

    def __init__(self, *, balance: int, player_count: int, state: RaffleState) -> None:
        self.balance = balance
        self.player_count = player_count
        self.state = state
        super().__init__(
            f"upkeep not needed (balance={balance}, players={player_count}, state={state.value})"
        )


class UnknownRequest(RaffleError):
    code = "unknown_request"

    def __init__(self, *, request_id: int, pending_request_id: int | None) -> None:
        self.request_id = request_id
        self.pending_request_id = pending_request_id
        super().__init__(f"unknown randomness request {request_id} (pending={pending_request_id})")


class PayoutFailed(RaffleError):
    """
    The draw happened but the winner could not be paid.

    The round stays CALCULATING with the draw recorded; retry_payout()
    re-attempts the transfer without a new draw.
    """

    code = "payout_failed"

    def __init__(self, *, winner: str, amount: int, reason: str) -> None:
        self.winner = winner
        self.amount = amount
        self.reason = reason
        super().__init__(f"payout of {amount} to {winner} failed: {reason}")


class NoPendingPayout(RaffleError):
    code = "no_pending_payout"

    def __init__(self) -> None:
        super().__init__("no failed payout is waiting for a retry")
