from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from raffle.core.clock import ManualClock
from raffle.core.engine.state import EngineState
from raffle.core.events.base import Event
from raffle.core.events.bus import EventBus
from raffle.lottery.config import RaffleConfig
from raffle.lottery.raffle import Raffle
from raffle.oracle.local import LocalRandomnessCoordinator
from raffle.payments.accounts import InMemoryAccounts

FEE = 10
INTERVAL = 30


@dataclass
class Collector:
    """
    Records every published event of the given types, in order.
    """
    event_types: tuple[str, ...]
    events: list[Event] = field(default_factory=list)

    def subscriptions(self):
        return [(et, self._on_event) for et in self.event_types]

    def _on_event(self, e: Event) -> None:
        self.events.append(e)

    def of_type(self, event_type: str) -> list[Event]:
        return [e for e in self.events if e.event_type == event_type]


@dataclass
class RaffleRig:
    raffle: Raffle
    clock: ManualClock
    coordinator: LocalRandomnessCoordinator
    accounts: InMemoryAccounts
    bus: EventBus
    collector: Collector

    def lock_round(self, *players: str) -> int:
        for p in players:
            self.raffle.enter(p, FEE)
        self.clock.advance(INTERVAL + 1)
        return self.raffle.perform_upkeep()


@pytest.fixture
def rig() -> RaffleRig:
    bus = EventBus()
    state = EngineState(run_id="test")
    clock = ManualClock(current=1_000)
    accounts = InMemoryAccounts()
    coordinator = LocalRandomnessCoordinator(seed=7, bus=bus, state=state)
    raffle = Raffle(
        config=RaffleConfig(entrance_fee=FEE, interval=INTERVAL),
        clock=clock,
        oracle=coordinator,
        payouts=accounts,
        bus=bus,
        engine_state=state,
    )

    collector = Collector(
        event_types=(
            "raffle.entry_accepted",
            "raffle.round_locked",
            "raffle.winner_selected",
            "raffle.payout_failed",
            "oracle.randomness_requested",
            "oracle.randomness_fulfilled",
        )
    )
    for event_type, handler in collector.subscriptions():
        bus.subscribe(event_type=event_type, handler=handler)

    return RaffleRig(
        raffle=raffle,
        clock=clock,
        coordinator=coordinator,
        accounts=accounts,
        bus=bus,
        collector=collector,
    )
