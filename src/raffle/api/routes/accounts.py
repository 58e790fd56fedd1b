from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from raffle.api.deps import get_handle
from raffle.core.run.assembly import RaffleHandle

router = APIRouter(prefix="/accounts", tags=["accounts"])


class BalanceResponse(BaseModel):
    identity: str
    balance: int


class FundRequest(BaseModel):
    amount: int = Field(..., gt=0)


@router.get("/{identity}", response_model=BalanceResponse)
def get_balance(identity: str, handle: RaffleHandle = Depends(get_handle)) -> BalanceResponse:
    with handle.lock:
        balance = handle.accounts.balance_of(identity)
    return BalanceResponse(identity=identity, balance=balance)


@router.post("/{identity}/fund", response_model=BalanceResponse)
def fund(identity: str, payload: FundRequest, handle: RaffleHandle = Depends(get_handle)) -> BalanceResponse:
    balance = handle.fund(identity, payload.amount)
    return BalanceResponse(identity=identity, balance=balance)
