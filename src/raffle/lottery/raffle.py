from __future__ import annotations

import structlog

from raffle.core.clock import Clock
from raffle.core.engine.state import EngineState
from raffle.core.events.bus import EventBus
from raffle.lottery.config import RaffleConfig
from raffle.lottery.fulfillment import FulfillmentHandler
from raffle.lottery.ledger import EntryLedger
from raffle.lottery.state import PendingPayout, RaffleState, RoundSnapshot, RoundState
from raffle.lottery.upkeep import UpkeepCheck, UpkeepExecutor
from raffle.oracle.base import RandomnessOracle
from raffle.payments.accounts import PayoutChannel

log = structlog.get_logger()


class Raffle:
    """
    Autonomous raffle.

    Owns the single RoundState and hands it by reference to the three
    state-changing components:
      - EntryLedger         enter()
      - UpkeepExecutor      check_upkeep() / perform_upkeep()
      - FulfillmentHandler  on_randomness_delivered() / retry_payout()

    Callers are expected to be serialized by the host (one operation runs
    to completion before the next); the OPEN/CALCULATING flag is the only
    mutual exclusion between entries and finalization.
    """

    def __init__(
        self,
        *,
        config: RaffleConfig,
        clock: Clock,
        oracle: RandomnessOracle,
        payouts: PayoutChannel,
        bus: EventBus,
        engine_state: EngineState,
    ) -> None:
        self._config = config
        self._clock = clock
        self._round = RoundState(last_timestamp=clock.now())

        self._ledger = EntryLedger(
            config=config,
            round_state=self._round,
            bus=bus,
            engine_state=engine_state,
        )
        self._fulfillment = FulfillmentHandler(
            round_state=self._round,
            clock=clock,
            payouts=payouts,
            bus=bus,
            engine_state=engine_state,
        )
        self._upkeep = UpkeepExecutor(
            config=config,
            round_state=self._round,
            clock=clock,
            oracle=oracle,
            consumer=self,
            bus=bus,
            engine_state=engine_state,
        )

        log.info(
            "raffle.created",
            entrance_fee=config.entrance_fee,
            interval=config.interval,
            last_timestamp=self._round.last_timestamp,
        )

    # --- Entrance ---------------------------------------------------------

    def enter(self, player: str, amount: int) -> int:
        return self._ledger.enter(player, amount)

    # --- Automation -------------------------------------------------------

    def check_upkeep(self) -> UpkeepCheck:
        return self._upkeep.check()

    def is_upkeep_needed(self) -> bool:
        return self._upkeep.check().needed

    def perform_upkeep(self) -> int:
        return self._upkeep.perform_upkeep()

    # --- Oracle callback --------------------------------------------------

    def on_randomness_delivered(self, request_id: int, random_value: int) -> None:
        self._fulfillment.on_randomness_delivered(request_id, random_value)

    def retry_payout(self) -> str:
        return self._fulfillment.retry_payout()

    # --- Queries ----------------------------------------------------------

    @property
    def config(self) -> RaffleConfig:
        return self._config

    @property
    def entrance_fee(self) -> int:
        return self._config.entrance_fee

    @property
    def interval(self) -> int:
        return self._config.interval

    @property
    def state(self) -> RaffleState:
        return self._round.state

    @property
    def players(self) -> tuple[str, ...]:
        return tuple(self._round.players)

    def player(self, index: int) -> str:
        if index < 0 or index >= self._round.player_count:
            raise IndexError(f"no player at index {index}")
        return self._round.players[index]

    @property
    def player_count(self) -> int:
        return self._round.player_count

    @property
    def pool_balance(self) -> int:
        return self._round.pool_balance

    @property
    def last_timestamp(self) -> int:
        return self._round.last_timestamp

    @property
    def pending_request_id(self) -> int | None:
        return self._round.pending_request_id

    @property
    def pending_payout(self) -> PendingPayout | None:
        return self._round.pending_payout

    @property
    def recent_winner(self) -> str | None:
        return self._round.recent_winner

    @property
    def round_number(self) -> int:
        return self._round.round_number

    def snapshot(self) -> RoundSnapshot:
        r = self._round
        return RoundSnapshot(
            state=r.state,
            players=tuple(r.players),
            pool_balance=r.pool_balance,
            last_timestamp=r.last_timestamp,
            pending_request_id=r.pending_request_id,
            pending_payout=r.pending_payout,
            recent_winner=r.recent_winner,
            round_number=r.round_number,
            entrance_fee=self._config.entrance_fee,
            interval=self._config.interval,
        )

    def check_invariants(self) -> None:
        self._round.check_invariants()
