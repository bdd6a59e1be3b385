import asyncio

import pytest

from exam_runner.timer import Ticker


@pytest.mark.asyncio
async def test_ticker_runs_until_keep_running_is_false() -> None:
    calls = []

    async def callback() -> None:
        calls.append(len(calls))

    ticker = Ticker(callback, interval=0.01, keep_running=lambda: len(calls) < 3)
    ticker.start()
    await asyncio.wait_for(ticker.wait(), timeout=2)

    assert calls == [0, 1, 2]
    assert ticker.ticks == 3
    assert not ticker.running


@pytest.mark.asyncio
async def test_failing_callback_does_not_stop_ticker() -> None:
    calls = []

    async def callback() -> None:
        calls.append(1)
        raise RuntimeError("boom")

    ticker = Ticker(callback, interval=0.01, keep_running=lambda: len(calls) < 3)
    ticker.start()
    await asyncio.wait_for(ticker.wait(), timeout=2)

    assert len(calls) == 3


@pytest.mark.asyncio
async def test_stop_cancels_loop() -> None:
    calls = []

    async def callback() -> None:
        calls.append(1)

    ticker = Ticker(callback, interval=10)
    ticker.start()
    assert ticker.running
    await ticker.stop()

    assert not ticker.running
    assert calls == []
    # Stopping twice is harmless.
    await ticker.stop()


@pytest.mark.asyncio
async def test_slow_callback_skips_missed_ticks() -> None:
    calls = []

    async def callback() -> None:
        calls.append(asyncio.get_running_loop().time())
        if len(calls) == 1:
            await asyncio.sleep(0.12)

    ticker = Ticker(callback, interval=0.05, keep_running=lambda: len(calls) < 3)
    ticker.start()
    await asyncio.wait_for(ticker.wait(), timeout=2)

    # Ticks missed during the slow call are dropped, not replayed back-to-back.
    assert calls[2] - calls[1] >= 0.03


@pytest.mark.asyncio
async def test_restart_pushes_next_tick_a_full_interval_out() -> None:
    loop = asyncio.get_running_loop()
    calls = []

    async def callback() -> None:
        calls.append(loop.time())

    ticker = Ticker(callback, interval=0.5)
    ticker.start()
    await asyncio.sleep(0.3)
    restarted_at = loop.time()
    ticker.restart()

    await asyncio.sleep(0.3)
    # The tick that was due 0.5s after start did not fire.
    assert calls == []

    await asyncio.sleep(0.4)
    await ticker.stop()
    assert len(calls) == 1
    assert calls[0] - restarted_at >= 0.45


@pytest.mark.asyncio
async def test_restart_before_start_is_ignored() -> None:
    async def callback() -> None:
        pass

    ticker = Ticker(callback, interval=0.5)
    ticker.restart()
    assert not ticker.running
