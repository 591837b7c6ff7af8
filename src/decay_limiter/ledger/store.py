"""Ledger backed by an external asynchronous key/value store."""

import inspect
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

import redis.asyncio as redis
import structlog
from redis.exceptions import RedisError

from ..config.settings import RedisSettings
from ..exceptions import LedgerStoreError
from .base import Ledger

logger = structlog.get_logger()


class LedgerStore(ABC):
    """Abstract read-by-key / write-by-key counter store."""

    @abstractmethod
    async def get(self, key: str) -> float | None:
        """Get the stored counter for key.

        Args:
            key: Identity key

        Returns:
            Counter value or None
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: float) -> None:
        """Store the counter for key.

        Args:
            key: Identity key
            value: Counter value
        """
        pass


class CallbackLedgerStore(LedgerStore):
    """Store built from a user supplied accessor/mutator pair.

    Either callback may be a coroutine function, return an awaitable, or
    return a plain value.
    """

    def __init__(
        self,
        accessor: Callable[[str], Any],
        mutator: Callable[[str, float], Any],
    ) -> None:
        self._accessor = accessor
        self._mutator = mutator

    async def get(self, key: str) -> float | None:
        value = self._accessor(key)
        if inspect.isawaitable(value):
            value = await value
        if value is None:
            return None
        return float(value)

    async def set(self, key: str, value: float) -> None:
        result = self._mutator(key, value)
        if inspect.isawaitable(result):
            await result


class RedisLedgerStore(LedgerStore):
    """Redis-based counter store."""

    def __init__(self, redis_client: Any, key_prefix: str = "rate_limit:"):
        """Initialize Redis store.

        Args:
            redis_client: ``redis.asyncio`` client instance
            key_prefix: Prefix applied to every identity key
        """
        self.redis = redis_client
        self.key_prefix = key_prefix
        self.logger = logger.bind(store="redis")

    @classmethod
    def from_settings(cls, settings: RedisSettings) -> "RedisLedgerStore":
        """Create a store connected to the configured Redis URL."""
        client = redis.from_url(settings.url)
        return cls(client, key_prefix=settings.key_prefix)

    def _make_key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    async def get(self, key: str) -> float | None:
        try:
            data = await self.redis.get(self._make_key(key))
        except RedisError as e:
            self.logger.error("Failed to read counter", key=key, error=str(e))
            raise LedgerStoreError("Failed to read counter", key, "get") from e

        if data is None:
            return None
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        return float(data)

    async def set(self, key: str, value: float) -> None:
        try:
            await self.redis.set(self._make_key(key), value)
        except RedisError as e:
            self.logger.error("Failed to write counter", key=key, error=str(e))
            raise LedgerStoreError("Failed to write counter", key, "set") from e

    async def close(self) -> None:
        """Close the Redis connection."""
        await self.redis.aclose()


class StoreLedger(Ledger):
    """Token ledger whose counters live in a ``LedgerStore``.

    The store has no way to list keys, so the ledger decays every key it has
    read a counter for or written itself. Each key's decay runs under that
    key's lock.
    """

    def __init__(self, store: LedgerStore, evict_settled: bool = False) -> None:
        """Initialize store-backed ledger.

        Args:
            store: Counter store
            evict_settled: Stop decaying keys once they reach zero or below
        """
        super().__init__()
        self.store = store
        self.evict_settled = evict_settled
        self._known: set[str] = set()
        self.logger = logger.bind(ledger=type(store).__name__)

    async def get(self, key: str) -> float | None:
        value = await self.store.get(key)
        if value is not None:
            # Counters written by other processes or earlier runs decay too.
            self._known.add(key)
        return value

    async def increment(self, key: str) -> float:
        current = await self.store.get(key)
        value = 1.0 if current is None else current + 1
        await self.store.set(key, value)
        self._known.add(key)
        return value

    async def decay_all(self, amount: float) -> int:
        decayed = 0
        for key in list(self._known):
            async with self.key_lock(key):
                value = await self.store.get(key)
                forget = value is None
                if value is not None and value > 0:
                    value -= amount
                    await self.store.set(key, value)
                    decayed += 1
                if self.evict_settled and value is not None and value <= 0:
                    forget = True
            if forget:
                self._known.discard(key)
                self._locks.discard(key)
        return decayed

    async def keys(self) -> list[str]:
        return sorted(self._known)

    async def reset(self, key: str) -> None:
        async with self.key_lock(key):
            await self.store.set(key, 0.0)
        self._known.discard(key)
        self._locks.discard(key)
