from __future__ import annotations

from dataclasses import dataclass

import structlog

from raffle.core.clock import Clock
from raffle.core.engine.state import EngineState
from raffle.core.events.bus import EventBus
from raffle.core.events.raffle import RoundLocked
from raffle.lottery.config import RaffleConfig
from raffle.lottery.errors import UpkeepNotNeeded
from raffle.lottery.state import RoundState
from raffle.oracle.base import RandomnessConsumer, RandomnessOracle

log = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class UpkeepCheck:
    """
    Result of the maintenance predicate, with each conjunct exposed
    so pollers and operators can see why upkeep is (not) due.
    """

    is_open: bool
    time_passed: bool
    has_players: bool
    has_balance: bool

    @property
    def needed(self) -> bool:
        return self.is_open and self.time_passed and self.has_players and self.has_balance


def evaluate_upkeep(*, round_state: RoundState, config: RaffleConfig, now: int) -> UpkeepCheck:
    """
    Pure read of the round: no side effects, callable at any time.
    """
    return UpkeepCheck(
        is_open=round_state.is_open,
        time_passed=(now - round_state.last_timestamp) >= config.interval,
        has_players=round_state.player_count > 0,
        has_balance=round_state.pool_balance > 0,
    )


class UpkeepExecutor:
    """
    Locks the round and requests randomness when the predicate holds.

    The predicate is always re-evaluated here, whatever the caller checked
    before; it is the only thing standing between a poller and a duplicate
    randomness request.
    """

    def __init__(
        self,
        *,
        config: RaffleConfig,
        round_state: RoundState,
        clock: Clock,
        oracle: RandomnessOracle,
        consumer: RandomnessConsumer,
        bus: EventBus,
        engine_state: EngineState,
    ) -> None:
        self._config = config
        self._round = round_state
        self._clock = clock
        self._oracle = oracle
        self._consumer = consumer
        self._bus = bus
        self._engine_state = engine_state

    def check(self) -> UpkeepCheck:
        return evaluate_upkeep(round_state=self._round, config=self._config, now=self._clock.now())

    def perform_upkeep(self) -> int:
        """
        Returns the request id of the randomness request that now owns the round.
        """
        check = self.check()
        if not check.needed:
            log.info(
                "raffle.upkeep_not_needed",
                balance=self._round.pool_balance,
                player_count=self._round.player_count,
                state=self._round.state.value,
                time_passed=check.time_passed,
            )
            raise UpkeepNotNeeded(
                balance=self._round.pool_balance,
                player_count=self._round.player_count,
                state=self._round.state,
            )

        self._round.lock()
        try:
            request_id = self._oracle.request_random_value(consumer=self._consumer)
        except Exception:
            self._round.unlock()
            log.exception("raffle.randomness_request_failed", round_number=self._round.round_number)
            raise
        self._round.bind_request(request_id)

        self._bus.publish(
            RoundLocked.create(
                request_id=request_id,
                round_number=self._round.round_number,
                sequence=self._engine_state.next_sequence(),
            )
        )

        log.info(
            "raffle.round_locked",
            request_id=request_id,
            round_number=self._round.round_number,
            player_count=self._round.player_count,
            pool_balance=self._round.pool_balance,
        )
        return request_id
