from __future__ import annotations

import pytest
import structlog

from raffle.core.engine.engine import Engine
from raffle.core.engine.router import EngineRouter
from raffle.core.events.base import Event
from raffle.core.events.bus import EventBus
from raffle.core.events.system import EngineTick, RunStarted


class TickCounter:
    def __init__(self) -> None:
        self.ticks: list[int] = []
        self.sequences: list[int] = []

    def subscriptions(self):
        return [("system.engine_tick", self._on_tick)]

    def _on_tick(self, e: Event) -> None:
        assert isinstance(e, EngineTick)
        self.ticks.append(e.tick)
        self.sequences.append(e.sequence)


class Exploding:
    def subscriptions(self):
        return [("system.engine_tick", self._on_tick)]

    def _on_tick(self, e: Event) -> None:
        raise RuntimeError("boom")


def test_engine_emits_ordered_ticks() -> None:
    bus = EventBus()
    counter = TickCounter()
    engine = Engine(run_id="test", bus=bus, components=[counter])

    engine.run(max_ticks=3)

    assert counter.ticks == [1, 2, 3]
    assert counter.sequences == sorted(counter.sequences)
    assert engine.state.is_running is False


def test_engine_stops_and_reraises_on_handler_error() -> None:
    bus = EventBus()
    engine = Engine(run_id="test", bus=bus, components=[Exploding()])

    with pytest.raises(RuntimeError):
        engine.run(max_ticks=2)

    assert engine.state.is_running is False


def test_router_rejects_duplicate_wiring() -> None:
    bus = EventBus()
    counter = TickCounter()

    with pytest.raises(RuntimeError):
        EngineRouter(bus=bus).register([counter, counter])


def test_event_create_requires_positive_sequence() -> None:
    with pytest.raises(ValueError):
        RunStarted.create(run_id="test", sequence=0)


def test_run_context_is_bound_only_while_running() -> None:
    seen: list[dict] = []

    class ContextReader:
        def subscriptions(self):
            return [("system.engine_tick", self._on_tick)]

        def _on_tick(self, e: Event) -> None:
            seen.append(structlog.contextvars.get_contextvars())

    Engine(run_id="ctx", bus=EventBus(), components=[ContextReader()]).run(max_ticks=1)

    assert seen == [{"run_id": "ctx", "component": "engine"}]
    assert structlog.contextvars.get_contextvars() == {}
