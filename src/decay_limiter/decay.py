"""Periodic decay of ledger counters."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import structlog

logger = structlog.get_logger()


class DecayScheduler:
    """Runs a decay tick on a fixed interval until stopped."""

    def __init__(
        self,
        tick: Callable[[], Awaitable[Any]],
        interval: float = 1.0,
        name: str = "decay",
    ):
        """Initialize decay scheduler.

        Args:
            tick: Coroutine function run once per interval
            interval: Seconds between ticks
            name: Name used for the task and in logs
        """
        self.tick = tick
        self.interval = interval
        self.name = name
        self.ticks = 0
        self._task: asyncio.Task[None] | None = None
        self._stop_event = asyncio.Event()

    @property
    def running(self) -> bool:
        """Whether the decay task is alive."""
        if self._task is None or self._task.done():
            return False
        return not self._task.get_loop().is_closed()

    def start(self) -> None:
        """Start ticking. Must be called from a running event loop."""
        if self.running:
            logger.warning("Decay already started", scheduler=self.name)
            return

        self._stop_event = asyncio.Event()
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name=self.name
        )
        logger.info("Started decay", scheduler=self.name, interval=self.interval)

    async def stop(self) -> None:
        """Stop ticking and wait for the task to finish."""
        if self._task is None:
            return

        self._stop_event.set()
        self._task.cancel()

        try:
            await self._task
        except asyncio.CancelledError:
            pass

        self._task = None
        logger.info("Stopped decay", scheduler=self.name, ticks=self.ticks)

    async def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                await asyncio.sleep(self.interval)
                await self.tick()
                self.ticks += 1
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("Error in decay loop", scheduler=self.name, error=str(e))
