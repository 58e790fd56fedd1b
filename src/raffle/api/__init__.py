from __future__ import annotations

from fastapi import APIRouter

from raffle.api.routes.accounts import router as accounts_router
from raffle.api.routes.health import router as health_router
from raffle.api.routes.raffle import router as raffle_router

# Top-level API router
router = APIRouter()

# Route composition
router.include_router(health_router)
router.include_router(raffle_router)
router.include_router(accounts_router)
