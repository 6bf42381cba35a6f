"""Registry of open status pages.

Each entry is one page lifetime. Opening a page builds and starts a fresh
session; closing it tears the session down. The registry enforces a global
limit, and a background sweep closes pages nobody has read or acted on for
``page_idle_ttl_seconds`` (a browser tab that went away without saying so).

Single event loop assumption: no locking.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from typing import Callable

from .launch import ServerReference
from .lifecycle.session import StatusPageSession
from .observability.metrics import OPEN_STATUS_PAGES
from .protocols import InstanceService, TokenProvider
from .settings import StatusPageSettings

logger = logging.getLogger(__name__)

SWEEP_INTERVAL_SECONDS = 10.0


class RegistryFullError(Exception):
    """Raised when the open-page limit is reached."""

    def __init__(self, max_pages: int) -> None:
        self.max_pages = max_pages
        super().__init__(f"status page limit reached ({max_pages})")


class StatusPageRegistry:
    def __init__(
        self,
        settings: StatusPageSettings,
        instance_service: InstanceService,
        *,
        sweep_interval_seconds: float = SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._settings = settings
        self._service = instance_service
        self._sweep_interval = sweep_interval_seconds
        self._clock = clock
        self._pages: dict[str, StatusPageSession] = {}
        self._last_access: dict[str, float] = {}
        self._cleanup_task: asyncio.Task | None = None

    @property
    def open_count(self) -> int:
        return len(self._pages)

    def open(
        self,
        reference: ServerReference,
        token_provider: TokenProvider,
    ) -> StatusPageSession:
        """Build and start a session for a newly entered page.

        Raises:
            RegistryFullError: If max_pages sessions are already open.
        """
        if len(self._pages) >= self._settings.max_pages:
            raise RegistryFullError(self._settings.max_pages)

        page_id = f"pg_{uuid.uuid4().hex[:12]}"
        session = StatusPageSession(
            reference,
            settings=self._settings,
            token_provider=token_provider,
            instance_service=self._service,
            page_id=page_id,
        )
        self._pages[page_id] = session
        self._last_access[page_id] = self._clock()
        OPEN_STATUS_PAGES.set(len(self._pages))
        session.start()
        self.ensure_cleanup_running()
        return session

    def get(self, page_id: str) -> StatusPageSession | None:
        """Look up a page and mark it as still in use."""
        session = self._pages.get(page_id)
        if session is not None:
            self._last_access[page_id] = self._clock()
        return session

    def idle_seconds(self, page_id: str) -> float | None:
        last = self._last_access.get(page_id)
        if last is None:
            return None
        return self._clock() - last

    async def close(self, page_id: str) -> bool:
        session = self._pages.pop(page_id, None)
        self._last_access.pop(page_id, None)
        if session is None:
            return False
        OPEN_STATUS_PAGES.set(len(self._pages))
        await session.close()
        return True

    async def close_all(self) -> int:
        task, self._cleanup_task = self._cleanup_task, None
        if task is not None and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

        page_ids = list(self._pages)
        for page_id in page_ids:
            await self.close(page_id)
        if page_ids:
            logger.info("Closed %d status pages", len(page_ids))
        return len(page_ids)

    # ── Idle sweep ───────────────────────────────────────────────

    def ensure_cleanup_running(self) -> None:
        if self._cleanup_task is None or self._cleanup_task.done():
            self._cleanup_task = asyncio.get_running_loop().create_task(
                self._cleanup_idle_pages(), name="status-page-idle-sweep"
            )

    async def evict_idle(self) -> int:
        """Close every page idle for longer than the configured TTL."""
        ttl = self._settings.page_idle_ttl_seconds
        now = self._clock()
        idle = [
            page_id
            for page_id, last in self._last_access.items()
            if now - last > ttl
        ]
        for page_id in idle:
            logger.info(
                "Evicting idle status page: page=%s",
                page_id,
                extra={"page_id": page_id},
            )
            await self.close(page_id)
        return len(idle)

    async def _cleanup_idle_pages(self) -> None:
        while self._pages:
            await asyncio.sleep(self._sweep_interval)
            try:
                await self.evict_idle()
            except Exception:
                logger.exception("Idle page sweep failed")
