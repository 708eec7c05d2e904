"""Counter store interfaces.

The service depends on this abstraction (not the concrete implementation)
so the in-process tier and the Redis tier are interchangeable, and tests can
substitute a stub tier.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class AbstractCounterStore(ABC):
    """Interface shared by every counter tier.

    Buckets are Unix timestamps truncated to whole seconds (UTC).
    """

    @abstractmethod
    async def inc(self, key: str, bucket: int) -> None:
        """Increment the counter for ``(key, bucket)`` by one.

        Args:
            key: Rate-limited subject (e.g., API consumer id).
            bucket: Whole-second Unix timestamp.

        Raises:
            StorageAppError: If the tier cannot record the increment.
        """
        raise NotImplementedError

    @abstractmethod
    async def count(self, key: str, bucket: int) -> int:
        """Return the counter for exactly one bucket.

        Raises:
            CounterNotFoundError: If the key or the bucket is unknown to this tier.
            StorageAppError: If the tier cannot be read.
        """
        raise NotImplementedError

    @abstractmethod
    async def count_all(self, key: str) -> int:
        """Return the sum of every bucket held for ``key``.

        Raises:
            CounterNotFoundError: If the key is unknown to this tier.
            StorageAppError: If the tier cannot be read.
        """
        raise NotImplementedError

    async def aclose(self) -> None:
        """Release resources owned by the tier (no-op by default)."""
