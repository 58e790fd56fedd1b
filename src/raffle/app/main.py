from __future__ import annotations

import structlog
from fastapi import FastAPI

from raffle.api import router as api_router
from raffle.core.config.settings import settings
from raffle.core.logging.setup import configure_logging
from raffle.core.run.assembly import RaffleHandle, build_raffle
from raffle.core.run.spec import RunSpec

log = structlog.get_logger()


def create_app(handle: RaffleHandle | None = None) -> FastAPI:
    """
    Application factory.

    Without a handle, a raffle is wired from settings (system clock,
    local randomness coordinator, in-memory accounts).
    """
    configure_logging(level=settings.log_level)

    if handle is None:
        handle = build_raffle(RunSpec.from_settings(settings), events_path=settings.events_path)

    app = FastAPI(
        title="Raffle Backend",
        version="0.1.0",
    )
    app.state.raffle = handle

    @app.on_event("startup")
    async def on_startup() -> None:
        log.info(
            "app.startup",
            environment=settings.env,
            entrance_fee=handle.raffle.entrance_fee,
            interval=handle.raffle.interval,
        )

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        handle.close()
        log.info("app.shutdown")

    # Mount API
    app.include_router(api_router, prefix="/api")

    return app


# ASGI entrypoint
app = create_app()
