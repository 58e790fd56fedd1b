from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class RaffleConfig(BaseModel):
    """
    Immutable raffle parameters, fixed at construction.
    """

    model_config = ConfigDict(frozen=True)

    entrance_fee: int = Field(..., gt=0, description="Minimum amount per entry (smallest unit)")
    interval: int = Field(..., ge=0, description="Minimum seconds between finalizations")
