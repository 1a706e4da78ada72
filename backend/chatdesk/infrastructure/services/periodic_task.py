"""
Periodic Task

Runs an async callback on a fixed interval in a background asyncio task.

- The delay is re-armed only after a run completes, so runs never overlap
  even when one takes longer than the interval.
- `run_once()` skips (returns False) if a run is already in flight, which
  makes manual triggers safe to call at any time.
- `stop()` wakes the sleeping loop and waits for an in-flight run to finish.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTask:
    """
    Fixed-interval scheduler with overlap prevention and graceful shutdown.

    Args:
        name: Label used in log lines
        callback: Coroutine function executed every interval
        interval: Seconds between the end of one run and the start of the next
    """

    def __init__(
        self,
        name: str,
        callback: Callable[[], Awaitable[Any]],
        interval: float,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.name = name
        self.interval = interval
        self._callback = callback
        self._lock = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def is_busy(self) -> bool:
        """A run is currently in flight."""
        return self._lock.locked()

    async def start(self) -> None:
        """Arm the timer. No-op when already running."""
        if self.is_running:
            logger.warning(f"[{self.name}] already running")
            return

        self._stop_event.clear()
        self._task = asyncio.create_task(self._loop(), name=self.name)
        logger.info(f"[{self.name}] started (interval: {self.interval}s)")

    async def stop(self) -> None:
        """Stop future runs and wait for the current one to finish."""
        self._stop_event.set()
        if self._task:
            await self._task
            self._task = None
            logger.info(f"[{self.name}] stopped")

    async def run_once(self) -> bool:
        """
        Execute the callback now unless a run is already in flight.

        Errors raised by the callback are logged, never propagated, so a bad
        run cannot kill the schedule.

        Returns:
            True if the callback ran, False if it was skipped as busy
        """
        if self._lock.locked():
            logger.info(f"[{self.name}] previous run still in progress, skipping")
            return False

        async with self._lock:
            try:
                await self._callback()
            except Exception as e:
                logger.error(f"[{self.name}] run failed: {e}", exc_info=True)
        return True

    async def _loop(self) -> None:
        try:
            while not self._stop_event.is_set():
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval)
                except asyncio.TimeoutError:
                    await self.run_once()
        except asyncio.CancelledError:
            logger.info(f"[{self.name}] loop cancelled")
            raise
