"""Rate accounting service orchestrating the fast and durable counter tiers.

This service is the core business logic behind the HTTP layer. It handles:
- Recording calls in the fast tier synchronously
- Propagating each call to the durable tier in a detached, time-bounded task
- Answering counts from the fast tier, falling back to the durable tier
- Mapping a logical segment (second/hour) to the tier operation it needs

Counts from the two tiers are never merged for one query: whichever tier
answers first is taken as is, so a call is never counted twice.
"""

from __future__ import annotations

import asyncio
import logging
import time
from enum import Enum
from typing import Callable

from ratecount.adapters.counters.base import AbstractCounterStore
from ratecount.core.errors import CounterNotFoundError, UnknownSegmentError
from ratecount.core.logging import hash_key

logger = logging.getLogger(__name__)


class Segment(str, Enum):
    """Time window a count query targets."""

    SECOND = "second"
    HOUR = "hour"


def _resolve_segment(segment: Segment | str) -> Segment:
    try:
        return Segment(segment)
    except ValueError as exc:
        raise UnknownSegmentError(
            code="unknown_segment",
            message=f"Unknown segment: {segment!r}. Supported segments: second, hour",
            details={"segment": str(segment)},
        ) from exc


class RateLimitService:
    """Record and count calls per key across two counter tiers.

    Attributes:
        fast: Low-latency, process-local tier (written synchronously).
        durable: Shared tier (written best-effort in the background).
    """

    def __init__(
        self,
        *,
        fast: AbstractCounterStore,
        durable: AbstractCounterStore,
        durable_write_timeout_seconds: float = 1.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if durable_write_timeout_seconds <= 0:
            raise ValueError("durable_write_timeout_seconds must be > 0")

        self.fast = fast
        self.durable = durable
        self._write_timeout = durable_write_timeout_seconds
        self._clock = clock
        self._pending: set[asyncio.Task[None]] = set()

    def current_bucket(self) -> int:
        """Return the current whole-second UTC bucket."""

        return int(self._clock())

    @property
    def pending_writes(self) -> int:
        return len(self._pending)

    async def inc(self, key: str) -> None:
        """Record one call for ``key`` at the current second.

        The fast-tier write is awaited and its errors propagate. The durable
        write runs in its own task with its own timeout, so cancelling the
        caller does not abort it and a slow store does not delay the caller.

        Args:
            key: Rate-limited subject.
        """

        bucket = self.current_bucket()
        await self.fast.inc(key, bucket)

        task = asyncio.get_running_loop().create_task(self._write_durable(key, bucket))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _write_durable(self, key: str, bucket: int) -> None:
        try:
            await asyncio.wait_for(self.durable.inc(key, bucket), timeout=self._write_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "durable.write_timeout",
                extra={
                    "key_hash": hash_key(key),
                    "bucket": bucket,
                    "timeout_s": self._write_timeout,
                },
            )
        except asyncio.CancelledError:
            logger.warning(
                "durable.write_cancelled",
                extra={"key_hash": hash_key(key), "bucket": bucket},
            )
            raise
        except Exception as exc:
            logger.warning(
                "durable.write_failed",
                extra={
                    "key_hash": hash_key(key),
                    "bucket": bucket,
                    "error_type": type(exc).__name__,
                    "error_msg": str(exc),
                },
            )

    async def count(self, key: str, segment: Segment | str) -> int | None:
        """Return the number of calls recorded for ``key`` in ``segment``.

        Args:
            key: Rate-limited subject.
            segment: ``second`` for the current bucket, ``hour`` for the sum
                of every bucket the tier still holds.

        Returns:
            The count, or ``None`` when neither tier has a record for the key.

        Raises:
            UnknownSegmentError: If segment is not second/hour. No tier is read.
            StorageAppError: If the durable tier fails after a fast-tier miss.
        """

        seg = _resolve_segment(segment)

        if seg is Segment.SECOND:
            bucket = self.current_bucket()
            try:
                return await self.fast.count(key, bucket)
            except CounterNotFoundError:
                self._log_fallback(key, seg)
            try:
                return await self.durable.count(key, bucket)
            except CounterNotFoundError:
                return None

        try:
            return await self.fast.count_all(key)
        except CounterNotFoundError:
            self._log_fallback(key, seg)
        try:
            return await self.durable.count_all(key)
        except CounterNotFoundError:
            return None

    def _log_fallback(self, key: str, segment: Segment) -> None:
        logger.debug(
            "service.fallback",
            extra={"key_hash": hash_key(key), "segment": segment.value},
        )

    async def drain(self, timeout: float) -> None:
        """Wait up to ``timeout`` seconds for in-flight durable writes.

        Writes still running afterwards are cancelled.
        """

        if not self._pending:
            return

        pending = set(self._pending)
        done, still_running = await asyncio.wait(pending, timeout=timeout)
        for task in still_running:
            task.cancel()
        if still_running:
            await asyncio.gather(*still_running, return_exceptions=True)

        logger.info(
            "service.drained",
            extra={"completed": len(done), "cancelled": len(still_running)},
        )
