from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Protocol


class Clock(Protocol):
    """
    Source of "now" in whole seconds.
    """

    def now(self) -> int:
        ...


class SystemClock:
    def now(self) -> int:
        return int(time.time())


@dataclass(slots=True)
class ManualClock:
    """
    Deterministic clock for simulations and tests.

    Time only moves forward, like block timestamps.
    """

    current: int = 0

    def now(self) -> int:
        return self.current

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("seconds must be >= 0")
        self.current += seconds
        return self.current
