"""Tests for the stop action coordinator."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from server_status.errors import (
    AUTH_MISSING_MESSAGE,
    GENERIC_STOP_FAILURE_MESSAGE,
    NetworkFailureError,
    RemoteRejectedError,
)
from server_status.lifecycle.coordinator import (
    StopActionCoordinator,
    StopAlreadyInFlight,
    StopResult,
)
from server_status.lifecycle.state_machine import (
    Dialog,
    Phase,
    RemoteState,
    apply_poll_result,
    begin_stop,
    create_initial_state,
    open_stop_confirmation,
)
from server_status.lifecycle.store import LifecycleStore
from server_status.providers import CallableTokenProvider, StaticTokenProvider


def _make(*, token='tok', stop_side_effect=None):
    store = LifecycleStore(create_initial_state(countdown_elapsed=True))
    service = AsyncMock()
    service.stop_instance = AsyncMock(side_effect=stop_side_effect)
    on_stopped = MagicMock()
    coordinator = StopActionCoordinator(
        'i-0abc123',
        store=store,
        token_provider=StaticTokenProvider(token),
        instance_service=service,
        on_stopped=on_stopped,
    )
    return coordinator, store, service, on_stopped


@pytest.mark.asyncio
async def test_confirm_without_open_prompt_does_nothing():
    coordinator, store, service, on_stopped = _make()
    before = store.state

    result = await coordinator.confirm_stop()

    assert result == StopResult(attempted=False)
    assert store.state is before
    service.stop_instance.assert_not_called()


@pytest.mark.asyncio
async def test_successful_stop():
    coordinator, store, service, on_stopped = _make()
    coordinator.request_stop()
    assert store.state.dialog is Dialog.CONFIRM_STOP

    result = await coordinator.confirm_stop()

    assert result == StopResult(attempted=True, succeeded=True)
    service.stop_instance.assert_awaited_once_with('i-0abc123', token='tok')
    on_stopped.assert_called_once_with()
    assert store.state.phase is Phase.INACTIVE
    assert store.state.local_intent is True
    assert store.state.dialog is Dialog.STOP_SUCCEEDED
    assert coordinator.is_stopping is False


@pytest.mark.asyncio
async def test_cancel_closes_prompt_without_request():
    coordinator, store, service, _ = _make()
    coordinator.request_stop()
    coordinator.cancel_stop()

    assert store.state.dialog is Dialog.NONE
    result = await coordinator.confirm_stop()
    assert result.attempted is False
    service.stop_instance.assert_not_called()


@pytest.mark.parametrize(
    'exc, message',
    [
        (RemoteRejectedError(500, 'quota exceeded'), 'quota exceeded'),
        (RemoteRejectedError(403), GENERIC_STOP_FAILURE_MESSAGE),
        (NetworkFailureError('connection refused'), GENERIC_STOP_FAILURE_MESSAGE),
    ],
)
@pytest.mark.asyncio
async def test_failed_stop_surfaces_message(exc, message):
    coordinator, store, service, on_stopped = _make(stop_side_effect=exc)
    coordinator.request_stop()

    result = await coordinator.confirm_stop()

    assert result == StopResult(attempted=True, error_message=message)
    on_stopped.assert_not_called()
    assert store.state.phase is Phase.READY
    assert store.state.local_intent is False
    assert store.state.stop_error == message
    assert store.state.dialog is Dialog.NONE
    assert coordinator.is_stopping is False


@pytest.mark.asyncio
async def test_missing_token_fails_without_request():
    coordinator, store, service, _ = _make(token=None)
    coordinator.request_stop()

    result = await coordinator.confirm_stop()

    assert result.error_message == AUTH_MISSING_MESSAGE
    assert store.state.stop_error == AUTH_MISSING_MESSAGE
    service.stop_instance.assert_not_called()


@pytest.mark.asyncio
async def test_confirm_while_in_flight_raises():
    coordinator, store, service, _ = _make()
    store.apply(open_stop_confirmation)
    store.apply(begin_stop)

    with pytest.raises(StopAlreadyInFlight):
        await coordinator.confirm_stop()
    service.stop_instance.assert_not_called()


# ── Unexpected outcomes release the in-flight guard ──────────────


@pytest.mark.asyncio
async def test_cancelled_stop_releases_guard():
    entered = asyncio.Event()

    async def _hang(instance_id, *, token):
        entered.set()
        await asyncio.Event().wait()

    coordinator, store, service, on_stopped = _make(stop_side_effect=_hang)
    store.apply(apply_poll_result, RemoteState.RUNNING)
    coordinator.request_stop()

    task = asyncio.create_task(coordinator.confirm_stop())
    await entered.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert coordinator.is_stopping is False
    assert store.state.can_request_stop is True
    assert store.state.stop_error == GENERIC_STOP_FAILURE_MESSAGE
    on_stopped.assert_not_called()

    # Poll results are applied again, so the inactivity edge still fires.
    store.apply(apply_poll_result, RemoteState.STOPPED)
    assert store.state.phase is Phase.ALERTED_INACTIVE
    assert store.state.dialog is Dialog.INACTIVITY_ALERT


@pytest.mark.asyncio
async def test_unexpected_service_error_is_a_failed_stop():
    coordinator, store, service, on_stopped = _make(
        stop_side_effect=RuntimeError('driver bug')
    )
    coordinator.request_stop()

    result = await coordinator.confirm_stop()

    assert result == StopResult(
        attempted=True, error_message=GENERIC_STOP_FAILURE_MESSAGE
    )
    assert coordinator.is_stopping is False
    assert store.state.phase is Phase.READY
    on_stopped.assert_not_called()


@pytest.mark.asyncio
async def test_token_hook_error_is_a_failed_stop():
    async def _broken_refresh():
        raise RuntimeError('session refresh failed')

    store = LifecycleStore(create_initial_state(countdown_elapsed=True))
    service = AsyncMock()
    coordinator = StopActionCoordinator(
        'i-0abc123',
        store=store,
        token_provider=CallableTokenProvider(_broken_refresh),
        instance_service=service,
    )
    coordinator.request_stop()

    result = await coordinator.confirm_stop()

    assert result.error_message == GENERIC_STOP_FAILURE_MESSAGE
    assert store.state.is_stopping is False
    assert store.state.can_request_stop is True
    service.stop_instance.assert_not_called()
