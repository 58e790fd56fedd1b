from __future__ import annotations

from typing import Protocol


class RandomnessConsumer(Protocol):
    """
    Receives the asynchronous callback for a randomness request.
    """

    def on_randomness_delivered(self, request_id: int, random_value: int) -> None:
        ...


class RandomnessOracle(Protocol):
    """
    Outbound side of the oracle contract.

    request_random_value() must return the request id synchronously and
    deliver the value later, exactly once, through the consumer.
    """

    def request_random_value(self, *, consumer: RandomnessConsumer) -> int:
        ...
