from __future__ import annotations

import hashlib
import json
from typing import Literal

from pydantic import BaseModel, Field

from raffle.core.config.settings import AppSettings
from raffle.lottery.config import RaffleConfig


# -----------------------
# RunSpec building blocks
# -----------------------

ClockKind = Literal["system", "manual"]
OracleKind = Literal["local"]


class OracleSpec(BaseModel):
    kind: OracleKind = Field(default="local")
    seed: int = Field(default=42, description="Seed for deterministic local randomness")


class KeeperSpec(BaseModel):
    # Simulated seconds per engine tick (manual clock only)
    tick_seconds: int = Field(default=1, gt=0)

    # Local coordinator fulfills requests one tick after they are made
    auto_fulfill: bool = Field(default=True)


# -----------------------
# The RunSpec (top-level)
# -----------------------

class RunSpec(BaseModel):
    """
    Canonical description of a wired raffle.

    - deterministic config hash
    - versioned schema
    - explicit clock/oracle/keeper choices
    """
    schema_version: int = Field(default=1, description="RunSpec schema version")

    run_id: str = Field(default="local")
    clock: ClockKind = Field(default="system")

    raffle: RaffleConfig
    oracle: OracleSpec = Field(default_factory=OracleSpec)
    keeper: KeeperSpec = Field(default_factory=KeeperSpec)

    tags: dict[str, str] = Field(default_factory=dict, description="Arbitrary run tags")

    @classmethod
    def from_settings(cls, s: AppSettings) -> "RunSpec":
        return cls(
            raffle=RaffleConfig(entrance_fee=s.entrance_fee, interval=s.interval),
            oracle=OracleSpec(seed=s.oracle_seed),
            keeper=KeeperSpec(tick_seconds=s.keeper_tick_seconds),
            tags={"env": s.env},
        )

    def to_canonical_dict(self) -> dict:
        return self.model_dump(mode="json")

    def config_hash(self) -> str:
        """
        Deterministic hash of the spec (run fingerprint).
        """
        payload = self.to_canonical_dict()
        blob = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
        return hashlib.sha256(blob.encode("utf-8")).hexdigest()
