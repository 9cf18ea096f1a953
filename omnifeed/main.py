from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from omnifeed.api.rss import INTERNAL_ERROR, router as rss_router
from omnifeed.core.config import Settings, settings as default_settings
from omnifeed.core.db import make_engine
from omnifeed.core.scheduler import start_scheduler, shutdown_scheduler
from omnifeed.services.fetcher import Fetcher
from omnifeed.services.normalizer import FeedNormalizer
from omnifeed.services.poller import FeedPoller
from omnifeed.services.query import FeedQueryService
from omnifeed.services.store import FeedStore

def create_app(settings: Optional[Settings] = None, fetcher: Optional[Fetcher] = None) -> FastAPI:
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store = FeedStore(make_engine(settings.database_url))
        # Create tables (idempotent, no migration tool)
        await store.initialize()
        normalizer = FeedNormalizer(fetcher or Fetcher(settings.user_agent, settings.request_timeout_seconds))
        app.state.store = store
        app.state.query_service = FeedQueryService(store, normalizer, page_size=settings.page_size)
        app.state.poller = FeedPoller(
            store,
            normalizer,
            interval_seconds=settings.poll_interval_seconds,
            concurrency=settings.poll_concurrency,
        )
        scheduler = None
        if settings.poller_enabled:
            scheduler = start_scheduler(app.state.poller, settings.poll_interval_seconds)
        logger.info("omnifeed started (db={}, poller={})", settings.database_url, settings.poller_enabled)
        try:
            yield
        finally:
            shutdown_scheduler(scheduler)
            await store.close()

    app = FastAPI(title="omnifeed", version="1.0.0", lifespan=lifespan)

    # Open CORS: the client UI is served from another origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1024)

    app.include_router(rss_router)

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.opt(exception=exc).error("{} {} failed", request.method, request.url.path)
        return JSONResponse(status_code=500, content=INTERNAL_ERROR)

    @app.get("/health")
    async def health():
        return {"ok": True}

    return app

app = create_app()
