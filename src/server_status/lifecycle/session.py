"""One status page lifetime: mount, run, unmount.

A ``StatusPageSession`` is built from launch parameters each time a page is
entered; nothing survives ``close()``. It wires the countdown, the poller and
the stop coordinator to a single ``LifecycleStore`` and exposes the read-only
view plus the five user actions.
"""

from __future__ import annotations

import logging
from typing import Callable

from ..launch import ServerReference
from ..observability.metrics import INACTIVITY_ALERTS_TOTAL, PHASE_TRANSITIONS_TOTAL
from ..protocols import InstanceService, TokenProvider
from ..settings import StatusPageSettings
from .coordinator import StopActionCoordinator, StopResult
from .countdown import CountdownTimer
from .poller import StatusPoller
from .presentation import StatusView, derive_view
from .state_machine import (
    LifecycleState,
    Phase,
    RemoteState,
    apply_countdown_elapsed,
    apply_poll_result,
    create_initial_state,
    dismiss_inactivity_alert,
    dismiss_success_alert,
)
from .store import LifecycleStore

logger = logging.getLogger(__name__)

ViewListener = Callable[[StatusView], None]


class StatusPageSession:
    def __init__(
        self,
        reference: ServerReference,
        *,
        settings: StatusPageSettings,
        token_provider: TokenProvider,
        instance_service: InstanceService,
        page_id: str | None = None,
    ) -> None:
        self.reference = reference
        self.page_id = page_id
        self._settings = settings
        self._view_listeners: list[ViewListener] = []
        self._started = False
        self._closed = False

        self.countdown = CountdownTimer(
            settings.provisioning_seconds,
            tick_seconds=settings.tick_seconds,
            on_elapsed=self._on_countdown_elapsed,
            on_tick=self._on_countdown_tick,
        )
        self.store = LifecycleStore(
            create_initial_state(countdown_elapsed=self.countdown.details_visible)
        )
        self.store.subscribe(self._on_state_change)

        self.poller = StatusPoller(
            reference.instance_id,
            token_provider=token_provider,
            instance_service=instance_service,
            on_result=self._on_poll_result,
            interval_seconds=settings.poll_interval_seconds,
        )
        self.coordinator = StopActionCoordinator(
            reference.instance_id,
            store=self.store,
            token_provider=token_provider,
            instance_service=instance_service,
            on_stopped=self.poller.stop,
        )

    # ── Read side ────────────────────────────────────────────────

    @property
    def state(self) -> LifecycleState:
        return self.store.state

    @property
    def phase(self) -> Phase:
        return self.store.state.phase

    @property
    def is_closed(self) -> bool:
        return self._closed

    def view(self) -> StatusView:
        return derive_view(
            self.store.state,
            self.reference,
            remaining_seconds=self.countdown.remaining,
            overview_path=self._settings.overview_path,
        )

    def add_view_listener(self, listener: ViewListener) -> None:
        self._view_listeners.append(listener)

    # ── Mount / unmount ──────────────────────────────────────────

    def start(self) -> None:
        """Start the countdown and the poller on the running event loop."""
        if self._started or self._closed:
            return
        self._started = True
        self.countdown.start()
        if not self.state.is_terminal:
            self.poller.start()
        logger.info(
            'Status page opened: page=%s instance=%s',
            self.page_id,
            self.reference.instance_id,
            extra=self._log_extra(),
        )

    async def close(self) -> None:
        """Tear down both timers and any in-flight poll. Idempotent."""
        if self._closed:
            return
        self._closed = True
        await self.countdown.stop()
        await self.poller.aclose()
        self._view_listeners.clear()
        logger.info(
            'Status page closed: page=%s phase=%s',
            self.page_id,
            self.phase.value,
            extra=self._log_extra(),
        )

    # ── Actions ──────────────────────────────────────────────────

    def request_stop(self) -> None:
        self.coordinator.request_stop()

    async def confirm_stop(self) -> StopResult:
        return await self.coordinator.confirm_stop()

    def cancel_stop(self) -> None:
        self.coordinator.cancel_stop()

    def dismiss_success_alert(self) -> None:
        self.store.apply(dismiss_success_alert)

    def dismiss_inactivity_alert(self) -> None:
        self.store.apply(dismiss_inactivity_alert)

    # ── Signal handlers ──────────────────────────────────────────

    def _on_countdown_elapsed(self) -> None:
        self.store.apply(apply_countdown_elapsed)

    def _on_countdown_tick(self, remaining: int) -> None:
        if remaining > 0:
            self._notify_view()

    def _on_poll_result(self, remote_state: RemoteState) -> None:
        if self._closed:
            return
        self.store.apply(apply_poll_result, remote_state)

    def _on_state_change(
        self, before: LifecycleState, after: LifecycleState
    ) -> None:
        if before.phase is not after.phase:
            PHASE_TRANSITIONS_TOTAL.labels(
                from_phase=before.phase.value, to_phase=after.phase.value
            ).inc()
            logger.info(
                'Status page phase %s -> %s: instance=%s',
                before.phase.value,
                after.phase.value,
                self.reference.instance_id,
                extra=self._log_extra(),
            )
        if after.is_terminal and not before.is_terminal:
            self.poller.stop()
        if after.show_inactivity_alert and not before.show_inactivity_alert:
            INACTIVITY_ALERTS_TOTAL.inc()
            logger.warning(
                'Server stopped unexpectedly: instance=%s',
                self.reference.instance_id,
                extra=self._log_extra(),
            )
        self._notify_view()

    def _notify_view(self) -> None:
        if not self._view_listeners:
            return
        view = self.view()
        for listener in list(self._view_listeners):
            try:
                listener(view)
            except Exception:
                logger.exception(
                    'Status page view listener failed: page=%s',
                    self.page_id,
                    extra=self._log_extra(),
                )

    def _log_extra(self) -> dict[str, str | None]:
        return {
            'page_id': self.page_id,
            'instance_id': self.reference.instance_id,
            'phase': self.phase.value,
        }
