from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

import structlog

from raffle.core.clock import ManualClock
from raffle.core.events.base import Event
from raffle.core.events.raffle import RoundLocked
from raffle.core.events.system import EngineTick
from raffle.lottery.errors import PayoutFailed
from raffle.lottery.raffle import Raffle
from raffle.oracle.local import LocalRandomnessCoordinator, NonexistentRequest

log = structlog.get_logger()


@dataclass(slots=True)
class ClockDriver:
    """
    Advances simulated time on every engine tick.

    Wire it before the keeper so the keeper sees the new time.
    """
    clock: ManualClock
    tick_seconds: int = 1

    def subscriptions(self) -> Sequence[tuple[str, callable]]:
        return [(EngineTick.event_type, self._on_tick)]

    def _on_tick(self, e: Event) -> None:
        self.clock.advance(self.tick_seconds)


@dataclass(slots=True)
class AutomationKeeper:
    """
    External automation caller: polls the upkeep predicate once per tick
    and performs upkeep when it holds.

    The raffle re-checks the predicate itself, so a late or duplicate poll
    cannot lock the round twice.
    """
    raffle: Raffle
    performed: list[int] = field(default_factory=list)

    def subscriptions(self) -> Sequence[tuple[str, callable]]:
        return [(EngineTick.event_type, self._on_tick)]

    def _on_tick(self, e: Event) -> None:
        assert isinstance(e, EngineTick)
        if not self.raffle.is_upkeep_needed():
            return

        request_id = self.raffle.perform_upkeep()
        self.performed.append(request_id)
        log.info("keeper.performed_upkeep", tick=e.tick, request_id=request_id)


@dataclass(slots=True)
class AutoFulfiller:
    """
    Plays the oracle's side in local runs: a request seen on one tick is
    fulfilled on the next, which keeps the request/callback gap visible.

    A failed payout does not stop the engine; the round stays locked and
    waits for Raffle.retry_payout().
    """
    coordinator: LocalRandomnessCoordinator
    _queued: list[int] = field(default_factory=list)

    def subscriptions(self) -> Sequence[tuple[str, callable]]:
        return [
            (RoundLocked.event_type, self._on_round_locked),
            (EngineTick.event_type, self._on_tick),
        ]

    def _on_round_locked(self, e: Event) -> None:
        assert isinstance(e, RoundLocked)
        self._queued.append(e.request_id)

    def _on_tick(self, e: Event) -> None:
        queued, self._queued = self._queued, []
        for request_id in queued:
            try:
                self.coordinator.fulfill(request_id)
            except NonexistentRequest:
                # delivered out of band before this tick
                log.info("keeper.fulfillment_skipped", request_id=request_id)
            except PayoutFailed as exc:
                log.warning(
                    "keeper.fulfillment_payout_failed",
                    request_id=request_id,
                    winner=exc.winner,
                    amount=exc.amount,
                    reason=exc.reason,
                )
