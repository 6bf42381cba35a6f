"""Provisioning countdown.

The provisioning wait is a fixed simulated delay, not derived from remote
telemetry. ``tick()`` is pure bookkeeping so tests can drive it directly;
``start()`` runs it on the event loop once per ``tick_seconds``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

logger = logging.getLogger(__name__)


def format_remaining(seconds: int) -> str:
    """Render seconds as ``m:ss``."""
    mins, secs = divmod(max(seconds, 0), 60)
    return f'{mins}:{secs:02d}'


class CountdownTimer:
    """Counts down once per tick and flips ``details_visible`` at zero.

    The gate is monotonic: once visible it never hides again, and ticks
    after zero change nothing.
    """

    def __init__(
        self,
        duration_seconds: int,
        *,
        tick_seconds: float = 1.0,
        on_elapsed: Callable[[], None] | None = None,
        on_tick: Callable[[int], None] | None = None,
    ) -> None:
        if duration_seconds < 0:
            raise ValueError('duration_seconds must be >= 0')
        self.duration_seconds = int(duration_seconds)
        self.remaining = self.duration_seconds
        self.details_visible = self.remaining == 0
        self._tick_seconds = tick_seconds
        self._on_elapsed = on_elapsed
        self._on_tick = on_tick
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def tick(self) -> bool:
        """Advance one second. Returns True if anything changed."""
        if self.remaining == 0:
            return False

        self.remaining -= 1
        if self._on_tick is not None:
            self._on_tick(self.remaining)
        if self.remaining == 0:
            self.details_visible = True
            logger.debug('Countdown elapsed after %ss', self.duration_seconds)
            if self._on_elapsed is not None:
                self._on_elapsed()
        return True

    def start(self) -> None:
        if self.is_running or self.remaining == 0:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name='status-page-countdown'
        )

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while self.remaining > 0:
            await asyncio.sleep(self._tick_seconds)
            self.tick()
