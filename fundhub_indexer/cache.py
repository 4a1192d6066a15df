"""In-process snapshot cache with stale-while-revalidate and single-flight rebuilds.

The cache is either empty or holds one ``(snapshot, built_at)`` pair. A
rebuild constructs the new snapshot off to the side and publishes it with
a single attribute assignment, so readers see either the previous snapshot
or the new one. At most one rebuild runs at a time; concurrent callers of
``refresh`` await the same task.

An optional redis-compatible store keeps the last snapshot across process
restarts. It is best effort: every store call is bounded by ``store_timeout``
and failures or timeouts are logged and ignored. Persisting runs after the
rebuild has been published, so a slow store never holds up readers or
later rebuilds.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Any, Callable, Protocol

from fundhub_indexer.errors import CacheMiss
from fundhub_indexer.snapshot import Snapshot

logger = logging.getLogger(__name__)

STORE_KEY = "snapshot"


class Builder(Protocol):
    async def build(self, previous: Snapshot | None = None) -> Snapshot: ...


class SnapshotStore(Protocol):
    """Subset of ``redis.asyncio.Redis`` used for persistence."""

    async def get(self, name: str) -> Any: ...

    async def set(self, name: str, value: str, ex: int | None = None) -> Any: ...


class SnapshotCache:
    def __init__(
        self,
        builder: Builder,
        freshness_window: float = 60.0,
        store: SnapshotStore | None = None,
        store_ttl: int = 60,
        store_timeout: float = 2.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._builder = builder
        self._freshness_window = freshness_window
        self._store = store
        self._store_ttl = store_ttl
        self._store_timeout = store_timeout
        self._clock = clock
        self._entry: tuple[Snapshot, float] | None = None
        self._inflight: asyncio.Task[Snapshot] | None = None
        self._background: set[asyncio.Task] = set()
        self.builds = 0

    @property
    def state(self) -> str:
        return "empty" if self._entry is None else "populated"

    @property
    def built_at(self) -> float | None:
        return None if self._entry is None else self._entry[1]

    @property
    def refreshing(self) -> bool:
        return self._inflight is not None

    def current(self) -> Snapshot:
        """Return the held snapshot without any I/O."""
        entry = self._entry
        if entry is None:
            raise CacheMiss("no snapshot has been built yet")
        return entry[0]

    async def get(self) -> Snapshot:
        """Return a snapshot for a reader.

        Empty: restore from the store or build synchronously (build errors
        propagate). Stale: schedule a background rebuild and return the
        held snapshot. Fresh: return the held snapshot.
        """
        entry = self._entry
        if entry is None:
            restored = await self._restore()
            if restored is None:
                return await self.refresh()
            entry = restored

        snapshot, built_at = entry
        age = self._clock() - built_at
        if age > self._freshness_window:
            logger.debug("serving stale snapshot (age %.1fs), revalidating", age)
            self._schedule_refresh()
        return snapshot

    async def refresh(self) -> Snapshot:
        """Rebuild now, joining an in-flight rebuild if there is one."""
        if self._inflight is None:
            self._inflight = asyncio.create_task(self._rebuild())
        # shield: a cancelled waiter must not cancel the shared rebuild
        return await asyncio.shield(self._inflight)

    async def run_periodic(self, interval: float) -> None:
        """Refresh every ``interval`` seconds until cancelled."""
        logger.info("periodic refresh every %.0fs", interval)
        while True:
            try:
                await self.refresh()
            except Exception:
                logger.exception("scheduled refresh failed")
            await asyncio.sleep(interval)

    async def wait_idle(self) -> None:
        """Wait for in-flight and background rebuilds to settle."""
        pending = list(self._background)
        if self._inflight is not None:
            pending.append(self._inflight)
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    # -- Internal helpers --

    async def _rebuild(self) -> Snapshot:
        try:
            previous = self._entry[0] if self._entry is not None else None
            snapshot = await self._builder.build(previous)
            self.builds += 1
            self._entry = (snapshot, self._clock())
        finally:
            self._inflight = None
        if self._store is not None:
            self._spawn(self._persist(snapshot))
        return snapshot

    def _schedule_refresh(self) -> None:
        if self._inflight is not None:
            return
        self._spawn(self._refresh_logged())

    def _spawn(self, coro) -> None:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _refresh_logged(self) -> None:
        try:
            await self.refresh()
        except Exception as e:
            logger.warning("background refresh failed, keeping stale snapshot: %s", e)

    async def _restore(self) -> tuple[Snapshot, float] | None:
        if self._store is None:
            return None
        try:
            raw = await asyncio.wait_for(self._store.get(STORE_KEY), self._store_timeout)
            if not raw:
                return None
            snapshot = Snapshot.from_dict(json.loads(raw))
        except Exception as e:
            logger.warning("could not restore snapshot from store: %s", e)
            return None
        # another reader may have populated the cache while we awaited the store
        if self._entry is not None:
            return self._entry
        self._entry = (snapshot, snapshot.generated_at.timestamp())
        logger.info("restored snapshot generated at %s from store", snapshot.generated_at)
        return self._entry

    async def _persist(self, snapshot: Snapshot) -> None:
        if self._store is None:
            return
        try:
            await asyncio.wait_for(
                self._store.set(STORE_KEY, json.dumps(snapshot.to_dict()), ex=self._store_ttl),
                self._store_timeout,
            )
        except Exception as e:
            logger.warning("could not persist snapshot to store: %s", e)
