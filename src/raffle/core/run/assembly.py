from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from threading import Lock
from typing import Iterable, Sequence

import structlog

from raffle.automation.keeper import AutoFulfiller, AutomationKeeper, ClockDriver
from raffle.core.clock import Clock, ManualClock, SystemClock
from raffle.core.engine.engine import Engine
from raffle.core.engine.router import EngineRouter
from raffle.core.engine.state import EngineState
from raffle.core.events.base import Event
from raffle.core.events.bus import EventBus, Subscription
from raffle.core.run.spec import RunSpec
from raffle.lottery.errors import RaffleError
from raffle.lottery.raffle import Raffle
from raffle.oracle.local import LocalRandomnessCoordinator
from raffle.payments.accounts import InMemoryAccounts
from raffle.storage.jsonl import JsonlEventStore

log = structlog.get_logger()


@dataclass(slots=True)
class EventLogComponent:
    """
    Append-only persistence of every event to a JSONL file.
    """
    store: JsonlEventStore

    event_types: tuple[str, ...] = (
        "system.run_started",
        "system.run_stopped",
        "system.engine_error",
        "raffle.entry_accepted",
        "raffle.round_locked",
        "raffle.winner_selected",
        "raffle.payout_failed",
        "oracle.randomness_requested",
        "oracle.randomness_fulfilled",
    )

    def subscriptions(self) -> Sequence[tuple[str, callable]]:
        return [(et, self._on_event) for et in self.event_types]

    def _on_event(self, e: Event) -> None:
        self.store.append(e)


@dataclass(frozen=True, slots=True)
class RaffleHandle:
    """
    Canonical handle for a wired raffle in this process.

    Every state-changing call goes through `lock`, so concurrent HTTP
    requests and engine runs reach the raffle one at a time.
    """
    spec: RunSpec
    bus: EventBus
    state: EngineState
    clock: Clock
    raffle: Raffle
    coordinator: LocalRandomnessCoordinator
    accounts: InMemoryAccounts
    keeper: AutomationKeeper
    engine: Engine
    wiring: tuple[Subscription, ...]
    components: tuple[object, ...]
    event_store: JsonlEventStore | None = None
    lock: Lock = field(default_factory=Lock)

    def enter_from(self, player: str, amount: int) -> int:
        """
        Pay from the player's account and enter; the debit is returned
        when the raffle rejects the entry.
        """
        with self.lock:
            self.accounts.debit(player, amount)
            try:
                return self.raffle.enter(player, amount)
            except RaffleError:
                self.accounts.credit(player, amount)
                raise

    def perform_upkeep(self) -> int:
        with self.lock:
            return self.raffle.perform_upkeep()

    def fulfill(self, request_id: int) -> int:
        with self.lock:
            return self.coordinator.fulfill(request_id)

    def retry_payout(self) -> str:
        with self.lock:
            return self.raffle.retry_payout()

    def fund(self, identity: str, amount: int) -> int:
        with self.lock:
            return self.accounts.fund(identity, amount)

    def run(self, *, ticks: int) -> None:
        with self.lock:
            self.engine.run(max_ticks=ticks)

    def close(self) -> None:
        if self.event_store is not None:
            self.event_store.close()


def build_raffle(
    spec: RunSpec,
    *,
    clock: Clock | None = None,
    accounts: InMemoryAccounts | None = None,
    events_path: Path | None = None,
    extra_components: Iterable[object] = (),
) -> RaffleHandle:
    bus = EventBus()
    state = EngineState(run_id=spec.run_id)

    if clock is None:
        clock = ManualClock() if spec.clock == "manual" else SystemClock()
    if accounts is None:
        accounts = InMemoryAccounts()

    coordinator = LocalRandomnessCoordinator(seed=spec.oracle.seed, bus=bus, state=state)
    raffle = Raffle(
        config=spec.raffle,
        clock=clock,
        oracle=coordinator,
        payouts=accounts,
        bus=bus,
        engine_state=state,
    )
    keeper = AutomationKeeper(raffle=raffle)

    components: list[object] = []

    event_store = None
    if events_path is not None:
        event_store = JsonlEventStore(path=events_path, fsync=False)
        components.append(EventLogComponent(store=event_store))

    # Tick order: time moves, pending requests are fulfilled, then the keeper polls
    if isinstance(clock, ManualClock):
        components.append(ClockDriver(clock=clock, tick_seconds=spec.keeper.tick_seconds))
    if spec.keeper.auto_fulfill:
        components.append(AutoFulfiller(coordinator=coordinator))
    components.append(keeper)

    components.extend(extra_components)

    wiring = EngineRouter(bus=bus).register(components)
    engine = Engine(run_id=spec.run_id, bus=bus, state=state)

    log.info(
        "raffle.assembled",
        run_id=spec.run_id,
        spec_hash=spec.config_hash(),
        clock=type(clock).__name__,
        components=[type(c).__name__ for c in components],
        events_path=str(events_path) if events_path is not None else None,
    )

    return RaffleHandle(
        spec=spec,
        bus=bus,
        state=state,
        clock=clock,
        raffle=raffle,
        coordinator=coordinator,
        accounts=accounts,
        keeper=keeper,
        engine=engine,
        wiring=wiring,
        components=tuple(components),
        event_store=event_store,
    )
