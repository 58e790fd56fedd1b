from __future__ import annotations

import structlog

from raffle.core.engine.state import EngineState
from raffle.core.events.bus import EventBus
from raffle.core.events.system import RunStarted, RunStopped
from raffle.core.logging.setup import bind_context, clear_context

log = structlog.get_logger()


class EngineLifecycle:
    """
    Start/stop of an engine run, announced on the bus.

    A run only bounds the keeper's polling; the raffle itself outlives
    every run, so nothing about the round is reset here.
    """

    def __init__(self, *, bus: EventBus, state: EngineState) -> None:
        self._bus = bus
        self._state = state

    def start(self) -> None:
        if self._state.is_running:
            raise RuntimeError("engine already running")

        bind_context(run_id=self._state.run_id, component="engine")

        self._state.tick = 0
        self._state.is_running = True

        self._bus.publish(RunStarted.create(run_id=self._state.run_id, sequence=self._state.next_sequence()))
        log.info("engine.started")

    def stop(self) -> None:
        if not self._state.is_running:
            raise RuntimeError("engine not running")

        self._state.is_running = False

        self._bus.publish(RunStopped.create(run_id=self._state.run_id, sequence=self._state.next_sequence()))
        log.info("engine.stopped", ticks=self._state.tick)
        clear_context()
