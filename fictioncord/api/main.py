"""FastAPI application entry point for Fictioncord.

The lifespan configures logging, prepares the session store and runs the
session scheduler for as long as the app serves requests.

Run with:
    uvicorn fictioncord.api.main:app
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from structlog import get_logger

from fictioncord import __version__
from fictioncord.api.middleware.logging_middleware import LoggingMiddleware
from fictioncord.api.routes.health import router as health_router
from fictioncord.api.routes.metrics import router as metrics_router
from fictioncord.api.routes.story_session import router as story_session_router
from fictioncord.bootstrap.database import close_database_engine
from fictioncord.bootstrap.logging import configure_logging, get_environment
from fictioncord.bootstrap.story_session import (
    get_session_scheduler,
    get_session_store,
)
from fictioncord.infrastructure.adapters.persistence import SqlSessionStore

logger = get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    configure_logging()
    store = get_session_store()
    if isinstance(store, SqlSessionStore):
        await store.ensure_schema()

    scheduler = get_session_scheduler()
    await scheduler.start()
    logger.info(
        "fictioncord_started",
        environment=get_environment(),
        version=__version__,
        store=type(store).__name__,
    )
    try:
        yield
    finally:
        await scheduler.stop()
        await close_database_engine()
        logger.info("fictioncord_stopped")


def create_app() -> FastAPI:
    application = FastAPI(
        title="Fictioncord API",
        description="Turn-based collaborative storytelling sessions",
        version=__version__,
        lifespan=lifespan,
    )
    application.add_middleware(LoggingMiddleware)
    application.include_router(health_router)
    application.include_router(metrics_router)
    application.include_router(story_session_router)
    return application


app = create_app()
