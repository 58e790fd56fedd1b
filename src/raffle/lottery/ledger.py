from __future__ import annotations

import structlog

from raffle.core.engine.state import EngineState
from raffle.core.events.bus import EventBus
from raffle.core.events.raffle import EntryAccepted
from raffle.lottery.config import RaffleConfig
from raffle.lottery.errors import InsufficientFee, RoundNotOpen
from raffle.lottery.state import RoundState

log = structlog.get_logger()


class EntryLedger:
    """
    Accepts entrant funds into the current round.

    Each accepted entry is its own slot: the same player may hold many.
    The player list grows without bound within a round; winner lookup is
    O(1) by index so its size only costs memory.
    """

    def __init__(
        self,
        *,
        config: RaffleConfig,
        round_state: RoundState,
        bus: EventBus,
        engine_state: EngineState,
    ) -> None:
        self._config = config
        self._round = round_state
        self._bus = bus
        self._engine_state = engine_state

    def enter(self, player: str, amount: int) -> int:
        """
        Record one entry and return the new player count.
        """
        if not player:
            raise ValueError("player must be non-empty")

        if amount < self._config.entrance_fee:
            log.info(
                "raffle.entry_rejected",
                player=player,
                amount=amount,
                reason=InsufficientFee.code,
            )
            raise InsufficientFee(amount=amount, entrance_fee=self._config.entrance_fee)

        if not self._round.is_open:
            log.info(
                "raffle.entry_rejected",
                player=player,
                amount=amount,
                reason=RoundNotOpen.code,
                state=self._round.state.value,
            )
            raise RoundNotOpen(state=self._round.state)

        self._round.players.append(player)
        self._round.pool_balance += amount
        player_count = self._round.player_count

        self._bus.publish(
            EntryAccepted.create(
                player=player,
                amount=amount,
                player_count=player_count,
                round_number=self._round.round_number,
                sequence=self._engine_state.next_sequence(),
            )
        )

        log.info(
            "raffle.entered",
            player=player,
            amount=amount,
            player_count=player_count,
            pool_balance=self._round.pool_balance,
        )
        return player_count
