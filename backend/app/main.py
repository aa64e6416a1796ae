"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import api_router
from app.config import AppSettings, get_settings
from app.core.logging import setup_logging
from app.core.telemetry import setup_telemetry
from app.db.init import init_database
from app.db.session import Database
from app.providers.tastytrade import TastytradeClient

logger = logging.getLogger(__name__)


def create_app(
    settings: AppSettings | None = None,
    *,
    database: Database | None = None,
    broker: TastytradeClient | None = None,
    llm_client: Any | None = None,
) -> FastAPI:
    """Build the service; collaborators can be injected for tests."""

    settings = settings or get_settings()
    database = database or Database(settings.database_url)
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Starting %s with %s", settings.app_name, settings.dict_for_logging())
        await init_database(database)
        try:
            yield
        finally:
            if app.state.broker is not None:
                await app.state.broker.aclose()
            await database.dispose()

    app = FastAPI(title=settings.app_name, version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database
    app.state.broker = broker
    app.state.llm_client = llm_client
    setup_telemetry(app, settings, engine=database.engine)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["traceparent", "tracestate"],
    )

    @app.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        """Return service readiness metadata."""

        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    app.include_router(api_router)
    return app


app = create_app()

__all__ = ["app", "create_app"]
