from __future__ import annotations

import hashlib
from dataclasses import dataclass

import structlog

from raffle.core.engine.state import EngineState
from raffle.core.events.bus import EventBus
from raffle.core.events.oracle import RandomnessFulfilled, RandomnessRequested
from raffle.oracle.base import RandomnessConsumer

log = structlog.get_logger()


class NonexistentRequest(Exception):
    def __init__(self, request_id: int) -> None:
        self.request_id = request_id
        super().__init__(f"nonexistent request: {request_id}")


@dataclass(frozen=True, slots=True)
class _Request:
    request_id: int
    consumer: RandomnessConsumer


class LocalRandomnessCoordinator:
    """
    In-process randomness coordinator for local runs and tests.

    - request ids start at 1 and increase by one
    - fulfill() derives a 256-bit value from (seed, request_id) with sha256,
      so a run with the same seed draws the same winners
    - a request is consumed before delivery; the consumer's failure does
      not make it deliverable again
    """

    def __init__(self, *, seed: int, bus: EventBus, state: EngineState) -> None:
        self._seed = seed
        self._bus = bus
        self._state = state
        self._next_id = 1
        self._pending: dict[int, _Request] = {}

    # ---------------- Outbound (consumer -> oracle) ----------------

    def request_random_value(self, *, consumer: RandomnessConsumer) -> int:
        request_id = self._next_id
        self._next_id += 1
        self._pending[request_id] = _Request(request_id=request_id, consumer=consumer)

        self._bus.publish(
            RandomnessRequested.create(
                request_id=request_id,
                consumer=type(consumer).__name__,
                sequence=self._state.next_sequence(),
            )
        )
        log.info("oracle.requested", request_id=request_id, consumer=type(consumer).__name__)
        return request_id

    # ---------------- Inbound (oracle -> consumer) ----------------

    def derive_value(self, request_id: int) -> int:
        blob = f"{self._seed}:{request_id}".encode("utf-8")
        return int.from_bytes(hashlib.sha256(blob).digest(), "big")

    def fulfill(self, request_id: int) -> int:
        return self.fulfill_with(request_id, self.derive_value(request_id))

    def fulfill_with(self, request_id: int, random_value: int) -> int:
        req = self._pending.pop(request_id, None)
        if req is None:
            log.warning("oracle.nonexistent_request", request_id=request_id)
            raise NonexistentRequest(request_id)

        self._bus.publish(
            RandomnessFulfilled.create(
                request_id=request_id,
                random_value=str(random_value),
                sequence=self._state.next_sequence(),
            )
        )
        log.info("oracle.fulfilled", request_id=request_id)

        req.consumer.on_randomness_delivered(request_id, random_value)
        return random_value

    def pending(self) -> tuple[int, ...]:
        return tuple(sorted(self._pending))
