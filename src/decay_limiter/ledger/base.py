"""Abstract token ledger contract."""

import asyncio
from abc import ABC, abstractmethod


class KeyedLocks:
    """Lazily created ``asyncio.Lock`` per identity key."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}

    def get(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def discard(self, key: str) -> None:
        lock = self._locks.get(key)
        if lock is not None and not lock.locked():
            del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


class Ledger(ABC):
    """Holds one decaying usage counter per identity key.

    ``increment`` is not serialised internally: callers that read a counter
    and then increment it hold ``key_lock(key)`` around both calls.
    """

    def __init__(self) -> None:
        self._locks = KeyedLocks()

    def key_lock(self, key: str) -> asyncio.Lock:
        """Lock serialising read-modify-write cycles on ``key``."""
        return self._locks.get(key)

    @abstractmethod
    async def get(self, key: str) -> float | None:
        """Get the counter for key.

        Args:
            key: Identity key

        Returns:
            Counter value, or None if the key has never been counted
        """
        pass

    @abstractmethod
    async def increment(self, key: str) -> float:
        """Add one unit of usage to key, starting at 1 if absent.

        Args:
            key: Identity key

        Returns:
            New counter value
        """
        pass

    @abstractmethod
    async def decay_all(self, amount: float) -> int:
        """Subtract amount from every counter that is above zero.

        Counters are not floored at zero. Counters already at or below zero
        are left as they are.

        Args:
            amount: Amount to subtract from each positive counter

        Returns:
            Number of counters decayed
        """
        pass

    @abstractmethod
    async def keys(self) -> list[str]:
        """List tracked identity keys."""
        pass

    @abstractmethod
    async def reset(self, key: str) -> None:
        """Forget usage recorded for key."""
        pass
