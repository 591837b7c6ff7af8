"""Tests for the decay scheduler."""

import asyncio

import pytest

from decay_limiter.decay import DecayScheduler


class TestDecayScheduler:
    """Test periodic decay scheduling."""

    @pytest.mark.asyncio
    async def test_ticks_until_stopped(self):
        """Test the tick runs repeatedly and stops on request."""
        calls = []

        async def tick():
            calls.append(1)

        scheduler = DecayScheduler(tick, interval=0.01)
        scheduler.start()
        await asyncio.sleep(0.1)
        await scheduler.stop()
        ticked = len(calls)

        assert ticked >= 2
        assert scheduler.ticks == ticked
        assert scheduler.running is False

        await asyncio.sleep(0.05)
        assert len(calls) == ticked

    @pytest.mark.asyncio
    async def test_first_tick_waits_one_interval(self):
        """Test nothing decays at the moment the scheduler starts."""
        calls = []

        async def tick():
            calls.append(1)

        scheduler = DecayScheduler(tick, interval=10)
        scheduler.start()
        await asyncio.sleep(0)

        assert calls == []
        await scheduler.stop()

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self):
        """Test starting twice keeps a single task."""

        async def tick():
            pass

        scheduler = DecayScheduler(tick, interval=10)
        scheduler.start()
        task = scheduler._task
        scheduler.start()

        assert scheduler._task is task
        await scheduler.stop()

    @pytest.mark.asyncio
    async def test_stop_without_start(self):
        """Test stopping an idle scheduler is a no-op."""

        async def tick():
            pass

        scheduler = DecayScheduler(tick)
        await scheduler.stop()

        assert scheduler.running is False

    @pytest.mark.asyncio
    async def test_failing_tick_keeps_running(self):
        """Test a tick error is logged and the loop continues."""
        calls = []

        async def tick():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("store down")

        scheduler = DecayScheduler(tick, interval=0.01)
        scheduler.start()
        await asyncio.sleep(0.1)

        assert scheduler.running is True
        await scheduler.stop()

        assert len(calls) >= 2
        assert scheduler.ticks == len(calls) - 1

    def test_start_requires_running_loop(self):
        """Test start outside an event loop fails loudly."""

        async def tick():
            pass

        scheduler = DecayScheduler(tick)

        with pytest.raises(RuntimeError):
            scheduler.start()
