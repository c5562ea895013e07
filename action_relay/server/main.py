"""
Main Application Entry Point.

This module builds the FastAPI application, configures middleware (CORS),
registers exception handlers and includes all API routers.
"""

from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from action_relay import __version__
from action_relay.core.config import settings
from action_relay.core.database import create_all, create_engine, create_sessionmaker
from action_relay.core.logging_config import get_logger, setup_logging

from . import constant
from .api.v1 import actions, health, sources, tools
from .container import RelayServices, build_services
from .exception_handlers import setup_exception_handlers

logger = get_logger(__name__)


def _interrupted_after() -> timedelta:
    longest = max(settings.executor.http_timeout_seconds, settings.protocol.request_timeout_seconds)
    return timedelta(seconds=longest * 2)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events.

    Builds the database and services on startup unless they were supplied to
    ``create_app``, and releases them on shutdown.
    """
    engine = None
    if getattr(app.state, "services", None) is None:
        logger.info("Starting up %s...", constant.PROJECT_NAME)
        engine = create_engine(settings.database.url, echo=settings.database.echo)
        await create_all(engine)
        logger.info("Database initialized successfully")
        app.state.services = build_services(settings, create_sessionmaker(engine))
        swept = await app.state.services.actions.fail_interrupted(_interrupted_after())
        if swept:
            logger.warning("Recovered %d actions interrupted by a previous shutdown", swept)

    yield

    logger.info("Shutting down %s...", constant.PROJECT_NAME)
    if engine is not None:
        await app.state.services.aclose()
        await engine.dispose()


def create_app(services: Optional[RelayServices] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        services: Pre-built services; when omitted they are built from settings
            on startup

    Returns:
        The configured application
    """
    app = FastAPI(
        title=constant.PROJECT_NAME,
        description="""
        Action Relay API

        Turns API descriptions and tool-protocol servers into a catalog of tools,
        executes tool actions for principals, holds dangerous actions for
        confirmation and keeps an audit trail of every action.
        """,
        version=__version__,
        openapi_url=f"{constant.API_V1_STR}/openapi.json",
        docs_url=f"{constant.API_V1_STR}/docs",
        redoc_url=f"{constant.API_V1_STR}/redoc",
        lifespan=lifespan,
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_exception_handlers(app)

    app.include_router(health.router, tags=["health"])
    app.include_router(actions.router, prefix=f"{constant.API_V1_STR}/actions", tags=["actions"])
    app.include_router(sources.router, prefix=f"{constant.API_V1_STR}/sources", tags=["sources"])
    app.include_router(tools.router, prefix=f"{constant.API_V1_STR}/tools", tags=["tools"])
    return app


def main() -> None:
    setup_logging()
    uvicorn.run(create_app(), host=settings.server_host, port=settings.server_port)


app = create_app()
