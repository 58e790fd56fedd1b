from __future__ import annotations

from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Global application-level configuration.

    This class is the single source of truth for:
    - environment selection
    - logging behavior
    - default raffle parameters (fee, interval)
    - local randomness coordinator seed
    - audit log location
    """

    model_config = SettingsConfigDict(
        env_prefix="RAFFLE_",
        env_file=".env",
        extra="ignore",
    )

    # ---- Environment -------------------------------------------------

    env: Literal["local", "staging", "prod"] = "local"

    # ---- Logging -----------------------------------------------------

    log_level: str = "INFO"

    # ---- Raffle ------------------------------------------------------

    # Smallest currency unit (e.g. wei-like integer amounts)
    entrance_fee: int = Field(
        default=10_000_000_000_000_000,
        gt=0,
        description="Minimum amount an entrant must pay",
    )

    interval: int = Field(
        default=30,
        ge=0,
        description="Minimum seconds between finalizations",
    )

    # ---- Oracle & automation ----------------------------------------

    oracle_seed: int = Field(
        default=42,
        description="Seed for the local randomness coordinator",
    )

    keeper_tick_seconds: int = Field(
        default=1,
        gt=0,
        description="Simulated seconds per engine tick",
    )

    # ---- Audit -------------------------------------------------------

    events_path: Optional[Path] = Field(
        default=None,
        description="Optional JSONL file receiving every published event",
    )


# Singleton settings object
settings = AppSettings()
