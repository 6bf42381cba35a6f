"""Tests for the recurring status poller."""

from __future__ import annotations

import asyncio

import pytest

from server_status.errors import RemoteRejectedError
from server_status.lifecycle.poller import StatusPoller, classify_remote_state
from server_status.lifecycle.state_machine import RemoteState
from server_status.providers import StaticTokenProvider


class _ScriptedService:
    """Each status call waits on its own gate and returns a scripted payload."""

    def __init__(self):
        self._script = []
        self.calls = 0

    def script(self, payload) -> asyncio.Event:
        gate = asyncio.Event()
        self._script.append((gate, payload))
        return gate

    async def get_instance(self, instance_id, *, token):
        self.calls += 1
        gate, payload = self._script.pop(0)
        await gate.wait()
        if isinstance(payload, Exception):
            raise payload
        return payload

    async def stop_instance(self, instance_id, *, token):
        return None


def _poller(service, results, *, token='tok', interval=60.0):
    return StatusPoller(
        'i-0abc123',
        token_provider=StaticTokenProvider(token),
        instance_service=service,
        on_result=results.append,
        interval_seconds=interval,
    )


@pytest.mark.parametrize(
    'payload, expected',
    [
        ({'running': True}, RemoteState.RUNNING),
        ({'state': 'running'}, RemoteState.RUNNING),
        ({'running': False, 'state': 'running'}, RemoteState.RUNNING),
        ({'running': 'yes'}, RemoteState.STOPPED),
        ({'state': 'stopped'}, RemoteState.STOPPED),
        ({'state': 'pending'}, RemoteState.STOPPED),
        ({}, RemoteState.STOPPED),
        ([], RemoteState.STOPPED),
        (None, RemoteState.STOPPED),
    ],
)
def test_classify_remote_state(payload, expected):
    assert classify_remote_state(payload) is expected


@pytest.mark.asyncio
async def test_poll_once_delivers_result(instance_service):
    instance_service.set_state('i-0abc123', 'running')
    results = []
    poller = _poller(instance_service, results)

    assert await poller.poll_once() is RemoteState.RUNNING
    assert results == [RemoteState.RUNNING]
    assert instance_service.calls == [('get_instance', 'i-0abc123', 'tok')]


@pytest.mark.asyncio
async def test_no_token_skips_request(instance_service):
    results = []
    poller = _poller(instance_service, results, token=None)

    assert await poller.poll_once() is None
    assert results == []
    assert instance_service.calls == []


@pytest.mark.asyncio
async def test_rejected_status_delivers_nothing(instance_service):
    instance_service.fail_next_status(RemoteRejectedError(503))
    results = []
    poller = _poller(instance_service, results)

    assert await poller.poll_once() is None
    assert results == []


@pytest.mark.asyncio
async def test_unknown_instance_delivers_nothing():
    from server_status.inmemory import InMemoryInstanceService

    results = []
    poller = _poller(InMemoryInstanceService(), results)
    assert await poller.poll_once() is None
    assert results == []


@pytest.mark.asyncio
async def test_late_result_is_discarded():
    service = _ScriptedService()
    slow = service.script({'state': 'running'})
    fast = service.script({'state': 'stopped'})
    results = []
    poller = _poller(service, results)

    first = asyncio.create_task(poller.poll_once())
    second = asyncio.create_task(poller.poll_once())
    await asyncio.sleep(0)

    fast.set()
    assert await second is RemoteState.STOPPED
    slow.set()
    assert await first is None
    assert results == [RemoteState.STOPPED]


@pytest.mark.asyncio
async def test_stop_prevents_in_flight_delivery():
    service = _ScriptedService()
    gate = service.script({'state': 'running'})
    results = []
    poller = _poller(service, results)

    poller.start()
    while service.calls == 0:
        await asyncio.sleep(0)

    poller.stop()
    gate.set()
    await poller.aclose()

    assert results == []
    assert poller.is_stopped is True
    assert poller.is_running is False


@pytest.mark.asyncio
async def test_start_polls_immediately_and_repeats(instance_service):
    instance_service.set_state('i-0abc123', 'running')
    results = []
    got_three = asyncio.Event()

    def _on_result(state):
        results.append(state)
        if len(results) >= 3:
            got_three.set()

    poller = StatusPoller(
        'i-0abc123',
        token_provider=StaticTokenProvider('tok'),
        instance_service=instance_service,
        on_result=_on_result,
        interval_seconds=0.01,
    )
    poller.start()
    poller.start()
    try:
        await asyncio.wait_for(got_three.wait(), timeout=2)
    finally:
        await poller.aclose()

    assert results[:3] == [RemoteState.RUNNING] * 3


@pytest.mark.asyncio
async def test_stopped_poller_does_not_restart(instance_service):
    results = []
    poller = _poller(instance_service, results)
    poller.stop()
    poller.start()

    assert poller.is_running is False
    assert await poller.poll_once() is None
    assert instance_service.calls == []
