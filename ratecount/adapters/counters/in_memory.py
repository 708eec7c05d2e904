"""In-process counter tier with background eviction.

Notes:
- Per-process only: each worker holds its own counts. The Redis tier is the
  shared source of truth.
- Thread-safe: a single reader/writer lock guards the whole key space.
  Critical sections never await, so holding the lock never spans I/O.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Literal

from ratecount.adapters.counters.base import AbstractCounterStore
from ratecount.core.errors import counter_not_found
from ratecount.utils.rwlock import ReadWriteLock

logger = logging.getLogger(__name__)

EvictionMode = Literal["key", "bucket"]

_TIER = "memory"


class InMemoryCounterStore(AbstractCounterStore):
    """Fast tier: ``key -> {bucket: count}`` held in process memory.

    A background sweep drops data older than the retention horizon. In
    ``key`` mode a key loses all of its buckets as soon as its oldest one is
    stale; in ``bucket`` mode only the stale buckets go. A key left with no
    buckets is removed, so reads report it as not found and the service
    falls back to the durable tier.
    """

    def __init__(
        self,
        *,
        retention_seconds: int = 60,
        sweep_interval_seconds: float = 3.0,
        eviction_mode: EvictionMode = "key",
        clock: Callable[[], float] = time.time,
        shutdown_event: asyncio.Event | None = None,
    ) -> None:
        """Initialize the in-memory counter.

        Args:
            retention_seconds: Buckets older than ``now - retention_seconds``
                are stale.
            sweep_interval_seconds: Delay between background sweeps.
            eviction_mode: ``key`` for whole-key eviction, ``bucket`` for
                per-bucket eviction.
            clock: Time source function returning UNIX time in seconds.
            shutdown_event: Signal that stops the background sweep. Created
                internally when omitted.

        Raises:
            ValueError: If any argument is out of range.
        """
        if retention_seconds < 1:
            raise ValueError("retention_seconds must be >= 1")
        if sweep_interval_seconds <= 0:
            raise ValueError("sweep_interval_seconds must be > 0")
        if eviction_mode not in ("key", "bucket"):
            raise ValueError("eviction_mode must be 'key' or 'bucket'")

        self._retention = retention_seconds
        self._sweep_interval = sweep_interval_seconds
        self._eviction_mode = eviction_mode
        self._clock = clock
        self._shutdown = shutdown_event or asyncio.Event()
        self._lock = ReadWriteLock()
        self._counters: dict[str, dict[int, int]] = {}
        self._evictions = 0
        self._sweeper: asyncio.Task[None] | None = None

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"InMemoryCounterStore(retention_seconds={self._retention}, "
            f"eviction_mode={self._eviction_mode!r}, keys={len(self._counters)})"
        )

    async def inc(self, key: str, bucket: int) -> None:
        with self._lock.write():
            buckets = self._counters.setdefault(key, {})
            buckets[bucket] = buckets.get(bucket, 0) + 1

    async def count(self, key: str, bucket: int) -> int:
        with self._lock.read():
            buckets = self._counters.get(key)
            if buckets is None or bucket not in buckets:
                raise counter_not_found(_TIER)
            return buckets[bucket]

    async def count_all(self, key: str) -> int:
        with self._lock.read():
            buckets = self._counters.get(key)
            if buckets is None:
                raise counter_not_found(_TIER)
            return sum(buckets.values())

    def snapshot(self, key: str) -> dict[int, int]:
        """Return a copy of the buckets currently held for ``key``."""

        with self._lock.read():
            return dict(self._counters.get(key, {}))

    def stats(self) -> dict[str, int]:
        """Return lightweight metrics without exposing keys."""

        with self._lock.read():
            return {
                "keys": len(self._counters),
                "buckets": sum(len(b) for b in self._counters.values()),
                "evictions": self._evictions,
                "retention_seconds": self._retention,
            }

    def sweep(self, now: float | None = None) -> int:
        """Evict stale data once.

        Args:
            now: UNIX time to judge staleness against (defaults to the clock).

        Returns:
            Number of buckets removed.
        """

        cutoff = int(self._clock() if now is None else now) - self._retention
        evicted_keys = 0
        evicted_buckets = 0

        with self._lock.write():
            for key in list(self._counters):
                buckets = self._counters[key]
                if self._eviction_mode == "key":
                    if buckets and min(buckets) >= cutoff:
                        continue
                    removed = len(buckets)
                    buckets.clear()
                else:
                    stale = [b for b in buckets if b < cutoff]
                    for b in stale:
                        del buckets[b]
                    removed = len(stale)

                evicted_buckets += removed
                if not buckets:
                    del self._counters[key]
                    evicted_keys += 1

            self._evictions += evicted_buckets

        if evicted_buckets:
            logger.debug(
                "counter.sweep",
                extra={
                    "evicted_keys": evicted_keys,
                    "evicted_buckets": evicted_buckets,
                    "eviction_mode": self._eviction_mode,
                },
            )
        return evicted_buckets

    @property
    def running(self) -> bool:
        return self._sweeper is not None and not self._sweeper.done()

    def start(self) -> None:
        """Spawn the background sweep on the running event loop.

        Raises:
            RuntimeError: If the sweep was already shut down.
        """

        if self.running:
            return
        if self._shutdown.is_set():
            raise RuntimeError("counter sweep already shut down")

        self._sweeper = asyncio.get_running_loop().create_task(
            self._sweep_forever(), name="ratecount-sweep"
        )
        logger.info(
            "counter.sweep_started",
            extra={
                "interval_s": self._sweep_interval,
                "retention_s": self._retention,
                "eviction_mode": self._eviction_mode,
            },
        )

    async def stop(self) -> None:
        """Signal shutdown and wait for the background sweep to exit."""

        self._shutdown.set()
        if self._sweeper is None:
            return
        await self._sweeper
        self._sweeper = None
        logger.info("counter.sweep_stopped")

    async def _sweep_forever(self) -> None:
        while not self._shutdown.is_set():
            try:
                await asyncio.wait_for(self._shutdown.wait(), timeout=self._sweep_interval)
            except asyncio.TimeoutError:
                try:
                    self.sweep()
                except Exception:
                    logger.exception("counter.sweep_failed")
