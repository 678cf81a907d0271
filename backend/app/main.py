from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response

from app.config import LEGACY_ENDPOINT_PATH, RelaySettings, load_settings
from routes.relay import create_router
from services.file_store import FileSessionStore
from services.protocol import SessionProtocol
from services.reaper import SessionReaper
from services.store import SessionStore, StorageError

logger = logging.getLogger(__name__)


def build_store(settings: RelaySettings) -> SessionStore:
    if not settings.storage_dir:
        return SessionStore()
    store = FileSessionStore(settings.storage_dir)
    store.load()
    return store


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    reaper: SessionReaper | None = app.state.reaper
    if reaper is not None:
        reaper.start()
    logger.info("[main] Relay starting: capacity=%d", app.state.protocol.max_session_capacity)
    try:
        yield
    finally:
        if reaper is not None:
            await reaper.stop()
        logger.info("[main] Relay shutting down")


async def storage_error_handler(request: Request, exc: Exception) -> Response:
    logger.error("[main] Storage failure on %s %s", request.method, request.url.path, exc_info=exc)
    return Response(status_code=503)


def create_app(
    settings: RelaySettings | None = None,
    *,
    store: SessionStore | None = None,
    clock: Callable[[], float] = time.time,
) -> FastAPI:
    settings = settings or load_settings()
    store = store if store is not None else build_store(settings)

    app = FastAPI(title="State Relay", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.protocol = SessionProtocol(
        store,
        max_session_capacity=settings.max_session_capacity,
        clock=clock,
    )
    app.state.reaper = (
        SessionReaper(
            store,
            grace_seconds=settings.reap_grace_seconds,
            interval_seconds=settings.reap_interval_seconds,
            clock=clock,
        )
        if settings.reaping_enabled
        else None
    )
    app.add_exception_handler(StorageError, storage_error_handler)
    app.include_router(create_router(settings.endpoint_path, LEGACY_ENDPOINT_PATH))

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
