"""
FastAPI app wiring for Streamify.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI

import core.config as config
from core.db import DB, init_db
from core.services import activity
from app.errors import register_exception_handlers
from app.middleware import configure_middleware
from app.routes.activity import router as activity_router
from app.routes.follows import router as follows_router
from app.routes.health import router as health_router
from app.routes.history import router as history_router
from app.routes.notifications import router as notifications_router
from app.routes.profiles import router as profiles_router
from app.routes.root import router as root_router
from app.routes.subscriptions import router as subscriptions_router
from app.routes.watch_later import router as watch_later_router


activity_purge_task = None


async def _activity_purge_loop() -> None:
    if config.ACTIVITY_PURGE_INTERVAL_SECONDS <= 0:
        return
    while True:
        await asyncio.sleep(config.ACTIVITY_PURGE_INTERVAL_SECONDS)
        try:
            await asyncio.to_thread(activity.run_activity_retention_tick)
        except Exception as exc:
            config.logger.warning(f"Activity purge task error: {exc}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize on startup, cleanup on shutdown."""
    global activity_purge_task
    init_db()
    if config.ACTIVITY_PURGE_INTERVAL_SECONDS > 0:
        await asyncio.to_thread(activity.run_activity_retention_tick)
        activity_purge_task = asyncio.create_task(_activity_purge_loop())
    try:
        yield
    finally:
        if activity_purge_task:
            activity_purge_task.cancel()
            try:
                await activity_purge_task
            except asyncio.CancelledError:
                pass
            activity_purge_task = None
        if DB.engine:
            DB.engine.dispose()


def create_app(use_lifespan: bool = True) -> FastAPI:
    app = FastAPI(
        title=config.SERVICE_NAME,
        version=config.SERVICE_VERSION,
        redirect_slashes=False,
        lifespan=lifespan if use_lifespan else None,
    )
    configure_middleware(app)
    register_exception_handlers(app)

    for router in (
        follows_router,
        subscriptions_router,
        activity_router,
        notifications_router,
        history_router,
        watch_later_router,
        profiles_router,
    ):
        app.include_router(router, prefix=config.API_PREFIX)

    # Health and root endpoints
    app.include_router(health_router)
    app.include_router(root_router)
    return app


app = create_app()
