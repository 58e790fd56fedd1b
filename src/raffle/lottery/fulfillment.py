from __future__ import annotations

import structlog

from raffle.core.clock import Clock
from raffle.core.engine.state import EngineState
from raffle.core.events.bus import EventBus
from raffle.core.events.raffle import PayoutFailed as PayoutFailedEvent
from raffle.core.events.raffle import WinnerSelected
from raffle.lottery.errors import NoPendingPayout, PayoutFailed, UnknownRequest
from raffle.lottery.state import PendingPayout, RaffleState, RoundState
from raffle.payments.accounts import PayoutChannel, TransferError

log = structlog.get_logger()


def select_winner_index(random_value: int, player_count: int) -> int:
    """
    winner_index = random_value mod player_count
    """
    if player_count <= 0:
        raise ValueError("player_count must be > 0")
    if random_value < 0:
        raise ValueError("random_value must be >= 0")
    return random_value % player_count


class FulfillmentHandler:
    """
    Oracle callback: draws the winner, pays the pool, reopens the round.

    Consumes the delivery for the pending request only. A failed transfer
    keeps the draw (PendingPayout) so retry_payout() can finish the round
    without asking the oracle again.
    """

    def __init__(
        self,
        *,
        round_state: RoundState,
        clock: Clock,
        payouts: PayoutChannel,
        bus: EventBus,
        engine_state: EngineState,
    ) -> None:
        self._round = round_state
        self._clock = clock
        self._payouts = payouts
        self._bus = bus
        self._engine_state = engine_state

    def on_randomness_delivered(self, request_id: int, random_value: int) -> None:
        r = self._round
        if (
            r.state is not RaffleState.CALCULATING
            or r.pending_request_id != request_id
            or r.pending_payout is not None
        ):
            log.warning(
                "raffle.unknown_request",
                request_id=request_id,
                pending_request_id=r.pending_request_id,
                state=r.state.value,
                payout_pending=r.pending_payout is not None,
            )
            raise UnknownRequest(request_id=request_id, pending_request_id=r.pending_request_id)

        winner_index = select_winner_index(random_value, r.player_count)
        draw = PendingPayout(
            request_id=request_id,
            random_value=random_value,
            winner_index=winner_index,
            winner=r.players[winner_index],
            amount=r.pool_balance,
        )
        self._pay(draw)

    def retry_payout(self) -> str:
        draw = self._round.pending_payout
        if draw is None:
            raise NoPendingPayout()

        log.info("raffle.payout_retry", winner=draw.winner, amount=draw.amount, request_id=draw.request_id)
        self._pay(draw)
        return draw.winner

    # --- Internal ---------------------------------------------------------

    def _pay(self, draw: PendingPayout) -> None:
        r = self._round
        round_number = r.round_number

        try:
            self._payouts.transfer(recipient=draw.winner, amount=draw.amount)
        except TransferError as exc:
            r.pending_payout = draw
            self._bus.publish(
                PayoutFailedEvent.create(
                    winner=draw.winner,
                    amount=draw.amount,
                    request_id=draw.request_id,
                    reason=str(exc),
                    round_number=round_number,
                    sequence=self._engine_state.next_sequence(),
                )
            )
            log.error(
                "raffle.payout_failed",
                winner=draw.winner,
                amount=draw.amount,
                request_id=draw.request_id,
                reason=str(exc),
            )
            raise PayoutFailed(winner=draw.winner, amount=draw.amount, reason=str(exc)) from exc

        r.reset(winner=draw.winner, now=self._clock.now())

        self._bus.publish(
            WinnerSelected.create(
                winner=draw.winner,
                amount=draw.amount,
                request_id=draw.request_id,
                winner_index=draw.winner_index,
                round_number=round_number,
                sequence=self._engine_state.next_sequence(),
            )
        )

        log.info(
            "raffle.winner_selected",
            winner=draw.winner,
            amount=draw.amount,
            winner_index=draw.winner_index,
            request_id=draw.request_id,
            round_number=round_number,
        )
