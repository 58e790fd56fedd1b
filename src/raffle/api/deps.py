from __future__ import annotations

from fastapi import HTTPException, Request

from raffle.core.run.assembly import RaffleHandle
from raffle.lottery.errors import InsufficientFee, RaffleError


def get_handle(request: Request) -> RaffleHandle:
    return request.app.state.raffle


def raffle_http_error(exc: RaffleError) -> HTTPException:
    """
    Rejections keep their machine-friendly code; a fee problem is the
    caller's input, everything else is a conflict with the round state.
    """
    status = 422 if isinstance(exc, InsufficientFee) else 409
    return HTTPException(status_code=status, detail={"code": exc.code, "message": str(exc)})
