"""Read-only HTTP surface over the snapshot cache."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException

from fundhub_indexer.cache import SnapshotCache
from fundhub_indexer.config import Settings, get_settings
from fundhub_indexer.errors import IndexerError
from fundhub_indexer.logger import configure_logging
from fundhub_indexer.rpc import RPCClient
from fundhub_indexer.snapshot import Snapshot, SnapshotBuilder, isoformat_utc, utcnow

logger = logging.getLogger(__name__)


def build_cache(settings: Settings) -> tuple[SnapshotCache, RPCClient, Any]:
    """Wire RPC client, builder and optional redis store from settings.

    Returns the cache together with the RPC client and store so the caller
    can close them.
    """
    rpc = RPCClient(settings.RPC_ENDPOINT, timeout=settings.RPC_TIMEOUT_SECONDS)
    builder = SnapshotBuilder(
        rpc,
        settings.program_ids,
        kind_specs=settings.kind_specs,
        partial=settings.PARTIAL_SNAPSHOTS,
    )
    store = None
    if settings.REDIS_URL:
        import redis.asyncio as redis

        store = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_timeout=settings.STORE_TIMEOUT_SECONDS,
            socket_connect_timeout=settings.STORE_TIMEOUT_SECONDS,
        )
        logger.info("snapshot persistence enabled (ttl %ds)", settings.SNAPSHOT_TTL_SECONDS)
    else:
        logger.info("REDIS_URL not set, snapshots are kept in memory only")
    cache = SnapshotCache(
        builder,
        freshness_window=settings.FRESHNESS_WINDOW_SECONDS,
        store=store,
        store_ttl=settings.SNAPSHOT_TTL_SECONDS,
        store_timeout=settings.STORE_TIMEOUT_SECONDS,
    )
    return cache, rpc, store


def create_app(
    settings: Settings | None = None,
    cache: SnapshotCache | None = None,
    refresh_interval: float | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    When ``cache`` is given it is used as-is; otherwise one is wired from
    ``settings``. A ``refresh_interval`` of 0 disables the background
    refresh task.
    """
    rpc = store = None
    if cache is None:
        settings = settings or get_settings()
        configure_logging(settings.LOG_LEVEL)
        cache, rpc, store = build_cache(settings)
    if refresh_interval is None:
        refresh_interval = settings.REFRESH_INTERVAL_SECONDS if settings is not None else 0

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        task = None
        if refresh_interval:
            task = asyncio.create_task(cache.run_periodic(refresh_interval))
        try:
            yield
        finally:
            if task is not None:
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
            await cache.wait_idle()
            if rpc is not None:
                await rpc.close()
            if store is not None:
                await store.aclose()

    app = FastAPI(title="fundhub-indexer", lifespan=lifespan)
    app.state.cache = cache

    async def load() -> Snapshot:
        try:
            return await cache.get()
        except IndexerError as e:
            logger.error("snapshot unavailable: %s", e)
            raise HTTPException(status_code=502, detail=str(e)) from e

    @app.get("/health")
    async def health() -> dict:
        return {"ok": True, "timestamp": isoformat_utc(utcnow())}

    @app.get("/snapshot")
    async def snapshot() -> dict:
        return (await load()).to_dict()

    @app.get("/projects")
    async def projects() -> dict:
        snap = await load()
        return {
            "projects": [p.to_dict() for p in snap.projects],
            "metrics": snap.metrics.to_dict(),
        }

    @app.get("/daos")
    async def daos() -> dict:
        snap = await load()
        return {"daos": [d.to_dict() for d in snap.daos]}

    @app.get("/governance")
    async def governance() -> dict:
        snap = await load()
        return {"proposals": [p.to_dict() for p in snap.proposals]}

    @app.get("/savings")
    async def savings() -> dict:
        snap = await load()
        return {"vaults": [v.to_dict() for v in snap.vaults]}

    return app
