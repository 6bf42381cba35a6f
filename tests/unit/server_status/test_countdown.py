"""Tests for the provisioning countdown."""

from __future__ import annotations

import asyncio

import pytest

from server_status.lifecycle.countdown import CountdownTimer, format_remaining


@pytest.mark.parametrize(
    'seconds, text',
    [(180, '3:00'), (125, '2:05'), (59, '0:59'), (0, '0:00'), (-4, '0:00')],
)
def test_format_remaining(seconds, text):
    assert format_remaining(seconds) == text


def test_ticks_down_and_flips_gate_once():
    ticks = []
    elapsed = []
    timer = CountdownTimer(
        3, on_tick=ticks.append, on_elapsed=lambda: elapsed.append(True)
    )
    assert timer.details_visible is False

    assert timer.tick() is True
    assert timer.tick() is True
    assert timer.details_visible is False
    assert timer.tick() is True

    assert timer.details_visible is True
    assert timer.remaining == 0
    assert ticks == [2, 1, 0]
    assert elapsed == [True]

    assert timer.tick() is False
    assert timer.remaining == 0
    assert elapsed == [True]


def test_zero_duration_is_visible_immediately():
    elapsed = []
    timer = CountdownTimer(0, on_elapsed=lambda: elapsed.append(True))
    assert timer.details_visible is True
    assert timer.tick() is False
    assert elapsed == []


def test_negative_duration_rejected():
    with pytest.raises(ValueError):
        CountdownTimer(-1)


@pytest.mark.asyncio
async def test_start_runs_to_zero():
    done = asyncio.Event()
    timer = CountdownTimer(3, tick_seconds=0.001, on_elapsed=done.set)

    timer.start()
    assert timer.is_running is True
    await asyncio.wait_for(done.wait(), timeout=2)

    assert timer.remaining == 0
    assert timer.details_visible is True


@pytest.mark.asyncio
async def test_stop_cancels_pending_ticks():
    timer = CountdownTimer(100, tick_seconds=10)
    timer.start()
    await timer.stop()

    assert timer.is_running is False
    assert timer.remaining == 100
    await timer.stop()


@pytest.mark.asyncio
async def test_start_is_noop_when_elapsed():
    timer = CountdownTimer(0)
    timer.start()
    assert timer.is_running is False
