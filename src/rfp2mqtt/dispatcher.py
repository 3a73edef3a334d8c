#!/usr/bin/env python3
"""RFP2MQTT - The dispatcher: a bounded queue of frames, and its rate-limited drain.

The dongle will be overrun if frames are written to it too quickly, so there is a
minimum gap between consecutive writes to the transport.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

from . import exceptions as exc
from .const import DEFAULT_GAP_BETWEEN_WRITES, DEFAULT_MAX_QUEUE_SIZE

if TYPE_CHECKING:
    from .transport import Transport


__all__ = ["Dispatcher"]

_LOGGER = logging.getLogger(__name__)


class Dispatcher:
    """Write frames to the transport, in order, with a minimum gap between writes.

    There is only one consumer (the drain task), but there can be many producers.
    """

    def __init__(
        self,
        transport: Transport,
        gap_between_writes: float = DEFAULT_GAP_BETWEEN_WRITES,
        max_queue_size: int = DEFAULT_MAX_QUEUE_SIZE,
    ) -> None:
        self._transport = transport
        self._gap_between_writes = gap_between_writes

        self._queue: asyncio.Queue[bytes] = asyncio.Queue(maxsize=max_queue_size)
        self._drain_task: asyncio.Task[None] | None = None
        self._last_write: float | None = None  # loop.time() of the last write
        self._in_flight: bytes | None = None  # dequeued by the drain task, not written
        self._closing = False

    def __repr__(self) -> str:
        cls = self.__class__.__name__
        return f"{cls}(queued={self.qsize()}, closing={self._closing})"

    def qsize(self) -> int:
        return self._queue.qsize()

    @property
    def is_running(self) -> bool:
        return self._drain_task is not None and not self._drain_task.done()

    def start(self) -> None:
        """Start the drain task (must be called from within the event loop)."""

        if self.is_running:
            return
        self._drain_task = asyncio.get_running_loop().create_task(
            self._drain(), name="Dispatcher._drain()"
        )

    def enqueue(self, data: bytes) -> None:
        """Queue the frame for writing, without blocking.

        Raise DispatcherQueueFull if the queue is full, or DispatcherClosed if the
        dispatcher is shutting down.
        """

        if self._closing:
            raise exc.DispatcherClosed("Dispatcher is closing, frame not queued")

        try:
            self._queue.put_nowait(data)
        except asyncio.QueueFull as err:
            raise exc.DispatcherQueueFull(
                f"Dispatcher queue is full ({self._queue.maxsize} frames)"
            ) from err

        _LOGGER.debug("Queued: %r (queued: %s)", data, self._queue.qsize())

    async def _drain(self) -> None:
        loop = asyncio.get_running_loop()

        while True:
            data = await self._queue.get()
            self._in_flight = data
            try:
                if self._last_write is not None:
                    next_write = self._last_write + self._gap_between_writes
                    while (delay := next_write - loop.time()) > 0:
                        await asyncio.sleep(delay)

                await self._write(data)
                self._last_write = loop.time()
            finally:
                self._in_flight = None
                self._queue.task_done()

    async def _write(self, data: bytes) -> None:
        _LOGGER.info("Tx: %r", data)

        try:
            await self._transport.write(data)
        except exc.TransportError as err:
            _LOGGER.error("Failed to write frame: %r: %s", data, err)

    async def stop(self, flush: bool = True) -> None:
        """Stop accepting frames, then write (flush) or drop what is queued.

        Any frames that are still queued are written with the usual gap between them.
        """

        self._closing = True

        if flush and self.is_running:
            await self._queue.join()

        dropped = 0
        while not self._queue.empty():
            self._queue.get_nowait()
            self._queue.task_done()
            dropped += 1

        if self._drain_task:
            if self._in_flight is not None:  # the drain task is waiting to write it
                dropped += 1
            self._drain_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._drain_task
            self._drain_task = None

        if dropped:
            _LOGGER.warning("Dispatcher stopped, dropped %s unwritten frame(s)", dropped)
