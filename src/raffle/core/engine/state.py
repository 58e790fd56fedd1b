from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class EngineState:
    """
    Engine state that must remain deterministic across runs.

    - tick: engine step counter
    - sequence: monotonic sequence used for event ordering (audit log order)

    Guardrails:
      - next_tick only valid while the engine is running
      - next_sequence is valid at any time: entries, upkeep and oracle
        callbacks also arrive from the HTTP surface, outside an engine run
    """

    run_id: str
    tick: int = 0
    sequence: int = 0
    is_running: bool = False

    def next_tick(self) -> int:
        if not self.is_running:
            raise RuntimeError("cannot advance tick when engine is not running")
        self.tick += 1
        return self.tick

    def next_sequence(self) -> int:
        self.sequence += 1
        return self.sequence
