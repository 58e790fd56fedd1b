from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from raffle.core.events.base import Event


@dataclass(frozen=True, slots=True)
class RandomnessRequested(Event):
    """
    A consumer asked the coordinator for a random value.
    """
    event_type: ClassVar[str] = "oracle.randomness_requested"

    request_id: int
    consumer: str


@dataclass(frozen=True, slots=True)
class RandomnessFulfilled(Event):
    """
    The coordinator delivered a random value to its consumer.

    random_value is a 256-bit integer, carried as a decimal string so
    JSON consumers do not lose precision.
    """
    event_type: ClassVar[str] = "oracle.randomness_fulfilled"

    request_id: int
    random_value: str
