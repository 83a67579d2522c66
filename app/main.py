from __future__ import annotations
import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import router
from logging_config import configure_logging
from settings import get_settings
from storage.reading_store import build_default_store

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    store = build_default_store()
    logger.info("Reading store ready", extra={"readings_count": store.count()})
    try:
        yield
    finally:
        store.clear()
        build_default_store.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Height Monitor",
        description="Bounded in-memory history of sensor height readings.",
        version="0.1.0",
        lifespan=lifespan,
    )
    # devices and dashboards post from other origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(get_settings().cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.started_at = time.monotonic()
    app.include_router(router)
    return app

app = create_app()
