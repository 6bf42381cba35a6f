"""Recurring status poll for one instance.

Polls immediately on start and then every ``interval_seconds``. Each cycle is
its own task launched on the wall-clock interval, so a slow response delays
only its own result. Results are delivered in launch order: a cycle that
finishes after a newer one already delivered is discarded.

A cycle that cannot produce an answer (no token, transport failure, non-2xx)
delivers nothing: remote state stays as it was, and the next interval is the
retry.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from ..errors import AuthMissingError, StatusPageError
from ..observability.metrics import POLL_CYCLES_TOTAL
from ..protocols import InstanceService, TokenProvider
from .state_machine import RemoteState

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 5.0


def classify_remote_state(payload: Any) -> RemoteState:
    """Map a successful status response to running/stopped.

    Only an explicit ``running: true`` flag or ``state == "running"`` counts
    as running; every other successful response is stopped.
    """
    if isinstance(payload, dict):
        if payload.get('running') is True or payload.get('state') == 'running':
            return RemoteState.RUNNING
    return RemoteState.STOPPED


class StatusPoller:
    def __init__(
        self,
        instance_id: str,
        *,
        token_provider: TokenProvider,
        instance_service: InstanceService,
        on_result: Callable[[RemoteState], None],
        interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
    ) -> None:
        self.instance_id = instance_id
        self._token_provider = token_provider
        self._service = instance_service
        self._on_result = on_result
        self._interval = interval_seconds

        self._stopped = False
        self._launched = 0
        self._delivered = 0
        self._loop_task: asyncio.Task | None = None
        self._in_flight: set[asyncio.Task] = set()

    @property
    def is_stopped(self) -> bool:
        return self._stopped

    @property
    def is_running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    def start(self) -> None:
        if self._stopped or self.is_running:
            return
        self._loop_task = asyncio.get_running_loop().create_task(
            self._run(), name=f'status-poller-{self.instance_id}'
        )

    def stop(self) -> None:
        """Stop permanently; in-flight cycles are cancelled and never deliver."""
        if self._stopped:
            return
        self._stopped = True
        current = asyncio.current_task()
        for task in [self._loop_task, *self._in_flight]:
            if task is not None and task is not current and not task.done():
                task.cancel()
        logger.debug(
            'Status poller stopped: instance=%s',
            self.instance_id,
            extra={'instance_id': self.instance_id},
        )

    async def aclose(self) -> None:
        """Stop and wait until every task owned by the poller has finished."""
        self.stop()
        current = asyncio.current_task()
        pending = [
            t for t in [self._loop_task, *self._in_flight]
            if t is not None and t is not current
        ]
        self._loop_task = None
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    async def poll_once(self) -> RemoteState | None:
        """Run one cycle now; returns the delivered state, if any."""
        return await self._cycle(self._next_sequence())

    async def _run(self) -> None:
        while not self._stopped:
            task = asyncio.get_running_loop().create_task(
                self._cycle(self._next_sequence())
            )
            self._in_flight.add(task)
            task.add_done_callback(self._cycle_done)
            await asyncio.sleep(self._interval)

    def _next_sequence(self) -> int:
        self._launched += 1
        return self._launched

    def _cycle_done(self, task: asyncio.Task) -> None:
        self._in_flight.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                'Status poll cycle crashed: instance=%s',
                self.instance_id,
                exc_info=exc,
                extra={'instance_id': self.instance_id},
            )

    async def _cycle(self, sequence: int) -> RemoteState | None:
        if self._stopped:
            return None

        try:
            token = await self._token_provider.get_token()
            if not token:
                raise AuthMissingError()
            payload = await self._service.get_instance(
                self.instance_id, token=token
            )
        except AuthMissingError:
            POLL_CYCLES_TOTAL.labels(outcome='no_token').inc()
            logger.info(
                'Status poll skipped, no token: instance=%s',
                self.instance_id,
                extra={'instance_id': self.instance_id},
            )
            return None
        except StatusPageError as exc:
            POLL_CYCLES_TOTAL.labels(outcome='failed').inc()
            logger.warning(
                'Status poll failed: instance=%s error=%s',
                self.instance_id,
                exc,
                extra={'instance_id': self.instance_id},
            )
            return None

        remote_state = classify_remote_state(payload)
        if self._stopped or sequence < self._delivered:
            POLL_CYCLES_TOTAL.labels(outcome='discarded').inc()
            return None

        self._delivered = sequence
        POLL_CYCLES_TOTAL.labels(outcome=remote_state.value).inc()
        self._on_result(remote_state)
        return remote_state
