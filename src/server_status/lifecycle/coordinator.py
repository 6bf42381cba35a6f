"""User-initiated stop flow: confirm -> request -> success/failure feedback.

Only one stop request may be in flight per page (``is_stopping`` guard). A
successful stop sets the sticky local intent in the same snapshot swap as the
phase change, so a poll reporting ``stopped`` afterwards can never be read as
an unexpected shutdown.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable

from ..errors import (
    GENERIC_STOP_FAILURE_MESSAGE,
    AuthMissingError,
    NetworkFailureError,
    RemoteRejectedError,
)
from ..observability.metrics import STOP_REQUEST_DURATION_SECONDS, STOP_REQUESTS_TOTAL
from ..protocols import InstanceService, TokenProvider
from .state_machine import (
    begin_stop,
    cancel_stop_confirmation,
    complete_stop,
    fail_stop,
    open_stop_confirmation,
)
from .store import LifecycleStore

logger = logging.getLogger(__name__)


class StopAlreadyInFlight(Exception):
    """Raised when a confirm arrives while a stop request is outstanding."""


@dataclass(frozen=True, slots=True)
class StopResult:
    """Outcome of ``confirm_stop``.

    ``attempted`` is False when there was no open confirmation to act on.
    """

    attempted: bool
    succeeded: bool = False
    error_message: str | None = None


class StopActionCoordinator:
    def __init__(
        self,
        instance_id: str,
        *,
        store: LifecycleStore,
        token_provider: TokenProvider,
        instance_service: InstanceService,
        on_stopped: Callable[[], None] | None = None,
    ) -> None:
        self.instance_id = instance_id
        self._store = store
        self._token_provider = token_provider
        self._service = instance_service
        self._on_stopped = on_stopped

    @property
    def is_stopping(self) -> bool:
        return self._store.state.is_stopping

    def request_stop(self) -> None:
        self._store.apply(open_stop_confirmation)

    def cancel_stop(self) -> None:
        self._store.apply(cancel_stop_confirmation)

    async def confirm_stop(self) -> StopResult:
        """Send the stop request for the open confirmation.

        Raises:
            StopAlreadyInFlight: If a previous confirm is still pending.
        """
        state = self._store.state
        if state.is_stopping:
            raise StopAlreadyInFlight(self.instance_id)
        if not state.show_confirm:
            return StopResult(attempted=False)

        self._store.apply(begin_stop)
        try:
            with STOP_REQUEST_DURATION_SECONDS.time():
                token = await self._token_provider.get_token()
                if not token:
                    raise AuthMissingError()
                await self._service.stop_instance(self.instance_id, token=token)
        except AuthMissingError as exc:
            return self._fail('no_token', exc.message)
        except RemoteRejectedError as exc:
            return self._fail(
                'rejected', exc.message or GENERIC_STOP_FAILURE_MESSAGE
            )
        except NetworkFailureError:
            return self._fail('failed', GENERIC_STOP_FAILURE_MESSAGE)
        except asyncio.CancelledError:
            # The request outcome is unknown; release the in-flight guard.
            self._fail('cancelled', GENERIC_STOP_FAILURE_MESSAGE)
            raise
        except Exception:
            logger.exception(
                'Stop request crashed: instance=%s',
                self.instance_id,
                extra={'instance_id': self.instance_id},
            )
            return self._fail('failed', GENERIC_STOP_FAILURE_MESSAGE)

        self._store.apply(complete_stop)
        STOP_REQUESTS_TOTAL.labels(outcome='succeeded').inc()
        logger.info(
            'Server stopped by user: instance=%s',
            self.instance_id,
            extra={'instance_id': self.instance_id},
        )
        if self._on_stopped is not None:
            self._on_stopped()
        return StopResult(attempted=True, succeeded=True)

    def _fail(self, outcome: str, message: str) -> StopResult:
        self._store.apply(fail_stop, message=message)
        STOP_REQUESTS_TOTAL.labels(outcome=outcome).inc()
        logger.warning(
            'Stop request failed: instance=%s outcome=%s message=%s',
            self.instance_id,
            outcome,
            message,
            extra={'instance_id': self.instance_id},
        )
        return StopResult(attempted=True, error_message=message)
