from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from raffle.api.deps import get_handle, raffle_http_error
from raffle.core.run.assembly import RaffleHandle
from raffle.lottery.errors import RaffleError
from raffle.lottery.state import RaffleState
from raffle.oracle.local import NonexistentRequest
from raffle.payments.accounts import TransferError

router = APIRouter(prefix="/raffle", tags=["raffle"])


# =========================
# Schemas
# =========================

class PendingPayoutResponse(BaseModel):
    request_id: int
    winner: str
    winner_index: int
    amount: int


class RaffleSnapshotResponse(BaseModel):
    state: RaffleState
    players: list[str]
    player_count: int
    pool_balance: int
    last_timestamp: int
    pending_request_id: int | None = None
    pending_payout: PendingPayoutResponse | None = None
    recent_winner: str | None = None
    round_number: int
    entrance_fee: int
    interval: int


class EnterRequest(BaseModel):
    player: str = Field(..., min_length=1)
    amount: int = Field(..., ge=0)


class EnterResponse(BaseModel):
    player: str
    player_count: int
    pool_balance: int


class UpkeepCheckResponse(BaseModel):
    upkeep_needed: bool
    is_open: bool
    time_passed: bool
    has_players: bool
    has_balance: bool


class PerformUpkeepResponse(BaseModel):
    request_id: int
    state: RaffleState


class FulfillResponse(BaseModel):
    request_id: int
    state: RaffleState
    recent_winner: str | None = None


class RetryPayoutResponse(BaseModel):
    winner: str
    state: RaffleState


# =========================
# Routes
# =========================

@router.get("", response_model=RaffleSnapshotResponse)
def get_raffle(handle: RaffleHandle = Depends(get_handle)) -> RaffleSnapshotResponse:
    with handle.lock:
        snap = handle.raffle.snapshot()
    pending = snap.pending_payout
    return RaffleSnapshotResponse(
        state=snap.state,
        players=list(snap.players),
        player_count=snap.player_count,
        pool_balance=snap.pool_balance,
        last_timestamp=snap.last_timestamp,
        pending_request_id=snap.pending_request_id,
        pending_payout=None if pending is None else PendingPayoutResponse(
            request_id=pending.request_id,
            winner=pending.winner,
            winner_index=pending.winner_index,
            amount=pending.amount,
        ),
        recent_winner=snap.recent_winner,
        round_number=snap.round_number,
        entrance_fee=snap.entrance_fee,
        interval=snap.interval,
    )


@router.post("/enter", response_model=EnterResponse)
def enter(payload: EnterRequest, handle: RaffleHandle = Depends(get_handle)) -> EnterResponse:
    try:
        count = handle.enter_from(payload.player, payload.amount)
    except TransferError as e:
        raise HTTPException(status_code=409, detail={"code": "insufficient_funds", "message": str(e)})
    except RaffleError as e:
        raise raffle_http_error(e)

    with handle.lock:
        pool_balance = handle.raffle.pool_balance
    return EnterResponse(player=payload.player, player_count=count, pool_balance=pool_balance)


@router.get("/upkeep", response_model=UpkeepCheckResponse)
def check_upkeep(handle: RaffleHandle = Depends(get_handle)) -> UpkeepCheckResponse:
    with handle.lock:
        check = handle.raffle.check_upkeep()
    return UpkeepCheckResponse(
        upkeep_needed=check.needed,
        is_open=check.is_open,
        time_passed=check.time_passed,
        has_players=check.has_players,
        has_balance=check.has_balance,
    )


@router.post("/upkeep", response_model=PerformUpkeepResponse)
def perform_upkeep(handle: RaffleHandle = Depends(get_handle)) -> PerformUpkeepResponse:
    try:
        request_id = handle.perform_upkeep()
    except RaffleError as e:
        raise raffle_http_error(e)
    with handle.lock:
        state = handle.raffle.state
    return PerformUpkeepResponse(request_id=request_id, state=state)


@router.post("/oracle/{request_id}/fulfill", response_model=FulfillResponse)
def fulfill(request_id: int, handle: RaffleHandle = Depends(get_handle)) -> FulfillResponse:
    """
    Local coordinator only: deliver the randomness for an outstanding request.
    """
    try:
        handle.fulfill(request_id)
    except NonexistentRequest as e:
        raise HTTPException(status_code=404, detail={"code": "nonexistent_request", "message": str(e)})
    except RaffleError as e:
        raise raffle_http_error(e)

    with handle.lock:
        return FulfillResponse(
            request_id=request_id,
            state=handle.raffle.state,
            recent_winner=handle.raffle.recent_winner,
        )


@router.post("/payout/retry", response_model=RetryPayoutResponse)
def retry_payout(handle: RaffleHandle = Depends(get_handle)) -> RetryPayoutResponse:
    try:
        winner = handle.retry_payout()
    except RaffleError as e:
        raise raffle_http_error(e)
    with handle.lock:
        state = handle.raffle.state
    return RetryPayoutResponse(winner=winner, state=state)
