"""In-memory token ledger."""

import threading

import structlog

from .base import Ledger

logger = structlog.get_logger()


class TokenLedger(Ledger):
    """Token ledger kept in a process-local dict.

    None of the operations suspend, so on a single event loop they never
    interleave. The thread lock only guards the counter dict itself; the
    per-key ``asyncio.Lock`` objects from ``key_lock`` belong to one event
    loop.
    """

    def __init__(self, evict_settled: bool = False) -> None:
        """Initialize in-memory ledger.

        Args:
            evict_settled: Drop counters that are at or below zero after a
                decay tick instead of keeping them forever
        """
        super().__init__()
        self.evict_settled = evict_settled
        self._counters: dict[str, float] = {}
        self._guard = threading.Lock()
        self.logger = logger.bind(ledger="in_memory")

    async def get(self, key: str) -> float | None:
        with self._guard:
            return self._counters.get(key)

    async def increment(self, key: str) -> float:
        with self._guard:
            current = self._counters.get(key)
            value = 1.0 if current is None else current + 1
            self._counters[key] = value
            return value

    async def decay_all(self, amount: float) -> int:
        decayed = 0
        with self._guard:
            for key, value in self._counters.items():
                if value > 0:
                    self._counters[key] = value - amount
                    decayed += 1

            if self.evict_settled:
                settled = [key for key, value in self._counters.items() if value <= 0]
                for key in settled:
                    del self._counters[key]
                    self._locks.discard(key)
                if settled:
                    self.logger.debug("Evicted settled counters", count=len(settled))

        return decayed

    async def keys(self) -> list[str]:
        with self._guard:
            return list(self._counters)

    async def reset(self, key: str) -> None:
        with self._guard:
            self._counters.pop(key, None)
        self._locks.discard(key)

    def snapshot(self) -> dict[str, float]:
        """Copy of every counter, keyed by identity."""
        with self._guard:
            return dict(self._counters)

    def __len__(self) -> int:
        return len(self._counters)
