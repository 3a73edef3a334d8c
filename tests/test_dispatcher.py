#!/usr/bin/env python3
"""RFP2MQTT - Test the dispatcher (its queue, and rate-limited writes)."""

import asyncio
import logging

import pytest

from rfp2mqtt import exceptions as exc
from rfp2mqtt.dispatcher import Dispatcher

from .conftest import FakeTransport, wait_for

pytestmark = pytest.mark.asyncio()

GAP = 0.05  # seconds
_EPSILON = 1e-9  # float rounding of loop.time() sums


async def test_dispatcher_rate_limit() -> None:
    """Check consecutive writes are never closer than the gap."""

    transport = FakeTransport()
    dispatcher = Dispatcher(transport, gap_between_writes=GAP)
    dispatcher.start()

    frames = [bytes((i,)) * 4 for i in range(6)]
    for frame in frames:
        dispatcher.enqueue(frame)

    await dispatcher.stop(flush=True)

    assert transport.written == frames  # in enqueue order
    gaps = [b - a for a, b in zip(transport.write_times, transport.write_times[1:])]
    assert all(gap >= GAP - _EPSILON for gap in gaps), gaps


async def test_dispatcher_rate_limit_trickle() -> None:
    """Check the gap is honoured when frames are queued while others are written."""

    transport = FakeTransport()
    dispatcher = Dispatcher(transport, gap_between_writes=GAP)
    dispatcher.start()

    for i in range(4):
        dispatcher.enqueue(bytes((i,)))
        await asyncio.sleep(GAP / 3)

    await dispatcher.stop(flush=True)

    assert len(transport.written) == 4
    gaps = [b - a for a, b in zip(transport.write_times, transport.write_times[1:])]
    assert all(gap >= GAP - _EPSILON for gap in gaps), gaps


async def test_dispatcher_queue_full() -> None:
    transport = FakeTransport()
    dispatcher = Dispatcher(transport, max_queue_size=2)  # not started

    dispatcher.enqueue(b"\x01")
    dispatcher.enqueue(b"\x02")
    with pytest.raises(exc.DispatcherQueueFull):
        dispatcher.enqueue(b"\x03")

    assert dispatcher.qsize() == 2

    await dispatcher.stop(flush=True)  # can't flush, as it was never started
    assert transport.written == []
    assert dispatcher.qsize() == 0


async def test_dispatcher_closed() -> None:
    dispatcher = Dispatcher(FakeTransport())
    dispatcher.start()

    await dispatcher.stop()

    with pytest.raises(exc.DispatcherClosed):
        dispatcher.enqueue(b"\x01")
    assert not dispatcher.is_running


async def test_dispatcher_stop_drops(caplog: pytest.LogCaptureFixture) -> None:
    """Check the frame waiting out its gap is counted as dropped, as are the queued."""

    transport = FakeTransport()
    dispatcher = Dispatcher(transport, gap_between_writes=10.0)
    dispatcher.start()

    for i in range(3):
        dispatcher.enqueue(bytes((i,)))
    await wait_for(lambda: len(transport.written) == 1)  # the 1st is not delayed
    await wait_for(lambda: dispatcher.qsize() == 1)  # the 2nd is waiting its turn

    with caplog.at_level(logging.WARNING):
        await dispatcher.stop(flush=False)

    assert transport.written == [b"\x00"]
    assert "dropped 2 unwritten frame(s)" in caplog.text


async def test_dispatcher_stop_flushes(caplog: pytest.LogCaptureFixture) -> None:
    transport = FakeTransport()
    dispatcher = Dispatcher(transport, gap_between_writes=0.01)
    dispatcher.start()

    for i in range(3):
        dispatcher.enqueue(bytes((i,)))

    with caplog.at_level(logging.WARNING):
        await dispatcher.stop(flush=True)

    assert transport.written == [b"\x00", b"\x01", b"\x02"]
    assert "dropped" not in caplog.text


async def test_dispatcher_write_error(caplog: pytest.LogCaptureFixture) -> None:
    """Check a failed write is logged, and the next frame is still written."""

    transport = FakeTransport(write_error=exc.TransportSerialError("port is away"))
    dispatcher = Dispatcher(transport, gap_between_writes=0.0)
    dispatcher.start()

    with caplog.at_level(logging.ERROR):
        dispatcher.enqueue(b"\x01")
        dispatcher.enqueue(b"\x02")
        await dispatcher.stop(flush=True)

    assert transport.written == [b"\x02"]
    assert "Failed to write frame" in caplog.text
