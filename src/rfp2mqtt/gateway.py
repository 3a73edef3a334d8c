#!/usr/bin/env python3
"""RFP2MQTT - the gateway (i.e. RFPlayer <-> MQTT).

The gateway owns the registry, and runs the activities that bridge the dongle and the
message bus:
  - the reader: bytes -> frames -> readings -> the publish queue
  - the publisher: the publish queue -> bridge
  - the command handler: bridge -> commands -> the dispatcher
  - the dispatcher: the dispatcher queue -> bytes (rate-limited)
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from types import SimpleNamespace
from typing import TYPE_CHECKING, Any, Final

from . import exceptions as exc
from .command import ActuatorCommand, Encoder, actuator_from_topic, ascii_command
from .const import DEFAULT_PUBLISH_QUEUE_SIZE, SUBSCRIBE_TOPIC
from .dispatcher import Dispatcher
from .frame import Reassembler
from .reading import Decoder
from .registry import Registry
from .schemas import (
    SCH_ENGINE_CONFIG,
    SZ_SERIAL_PORT,
    extract_serial_port,
    load_config,
)
from .transport import PortTransport

if TYPE_CHECKING:
    from .bridge import Bridge
    from .frame import RawFrame
    from .transport import Transport


__all__ = ["Gateway", "create_gateway"]

_LOGGER = logging.getLogger(__name__)

_READ_RETRY_DELAY: Final[float] = 0.1  # after a transport error


class Gateway:
    """The gateway class."""

    def __init__(
        self,
        transport: Transport,
        bridge: Bridge,
        publish_queue_size: int = DEFAULT_PUBLISH_QUEUE_SIZE,
        **kwargs: Any,
    ) -> None:
        self.config = SimpleNamespace(**load_config(kwargs, schema=SCH_ENGINE_CONFIG))

        self._transport = transport
        self._bridge = bridge

        self.registry = Registry.from_config(
            self.config.sensors, self.config.actuators
        )
        self._reassembler = Reassembler()
        self._decoder = Decoder(self.registry, topic_root=self.config.topic_root)
        self._encoder = Encoder(self.registry)
        self._dispatcher = Dispatcher(
            transport,
            gap_between_writes=self.config.gap_between_writes,
            max_queue_size=self.config.max_queue_size,
        )

        self._publish_queue: asyncio.Queue[tuple[str, str]] = asyncio.Queue(
            maxsize=publish_queue_size
        )

        self._loop: asyncio.AbstractEventLoop | None = None
        self._stop_event = asyncio.Event()
        self._read_task: asyncio.Task[None] | None = None
        self._publish_task: asyncio.Task[None] | None = None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._transport}, {self.registry})"

    @property
    def desync_count(self) -> int:
        """Return the number of times the inbound stream has lost synchronisation."""
        return self._reassembler.desync_count

    @property
    def is_stopping(self) -> bool:
        return self._stop_event.is_set()

    async def start(self) -> None:
        """Start the activities, after queuing the dongle's initialisation commands.

        Raise BridgeError, after stopping what was started, if the bridge cannot
        subscribe to the commands topic.
        """

        _LOGGER.info("Gateway: Starting...")

        self._loop = asyncio.get_running_loop()
        self._dispatcher.start()

        for text in self.config.initialisation:
            try:
                self._dispatcher.enqueue(ascii_command(text))
            except (exc.CommandInvalid, exc.DispatcherError) as err:
                _LOGGER.warning("Initialisation command not sent: %s", err)

        self._publish_task = self._loop.create_task(
            self._publisher(), name="Gateway._publisher()"
        )

        if self.config.enable_rx:
            self._read_task = self._loop.create_task(
                self._reader(), name="Gateway._reader()"
            )
        else:
            _LOGGER.warning("Gateway: Receiving has been disabled (enable_rx=False)")

        try:
            self._bridge.subscribe(SUBSCRIBE_TOPIC, self._msg_received)
        except exc.BridgeError as err:
            _LOGGER.error("Gateway: Failed to start: %s", err)
            await self.stop(flush=False)
            raise

    async def stop(self, flush: bool = True) -> None:
        """Stop the activities, flushing (or dropping) what is queued, and close.

        Stops reading, unsubscribes, then flushes/drops the dispatcher queue, then
        drains the publish queue, and finally closes the transport.
        """

        if self._stop_event.is_set():
            return
        self._stop_event.set()

        _LOGGER.info("Gateway: Stopping...")

        try:
            self._bridge.unsubscribe(SUBSCRIBE_TOPIC)
        except exc.BridgeError as err:
            _LOGGER.warning("Failed to unsubscribe: %s", err)

        await _cancel(self._read_task)

        await self._dispatcher.stop(flush=flush)

        if self._publish_task and not self._publish_task.done():
            await self._publish_queue.join()
        await _cancel(self._publish_task)

        self._transport.close()
        await self._transport.wait_closed()

        _LOGGER.info("Gateway: Stopped")

    async def wait_stopped(self) -> None:
        await self._stop_event.wait()

    # the inbound path
    async def _reader(self) -> None:
        while not self._stop_event.is_set():
            try:
                data = await self._transport.read()
            except exc.TransportError as err:
                _LOGGER.error("Failed to read: %s", err)
                await asyncio.sleep(_READ_RETRY_DELAY)
                continue

            if not data:
                _LOGGER.warning("Gateway: End of stream, no longer reading")
                return

            for frame in self._reassembler.feed(data):
                self._frame_received(frame)

    def _frame_received(self, frame: RawFrame) -> None:
        try:
            reading = self._decoder.decode(frame)
        except exc.FrameInvalid as err:
            _LOGGER.warning("%s < %s", frame, err)
            return

        if reading is None:
            return

        _LOGGER.info("Rx: %s", reading)
        self._publish(reading.topic, reading.as_json())

    def _publish(self, topic: str, payload: str) -> None:
        """Queue the payload for publishing, without waiting."""

        try:
            self._publish_queue.put_nowait((topic, payload))
        except asyncio.QueueFull:
            _LOGGER.warning("Publish queue is full, dropped: %s %s", topic, payload)

    async def _publisher(self) -> None:
        while True:
            topic, payload = await self._publish_queue.get()
            try:
                self._bridge.publish(topic, payload)
            except exc.BridgeError as err:
                _LOGGER.error("Failed to publish: %s", err)
            finally:
                self._publish_queue.task_done()

    # the outbound path
    def _msg_received(self, topic: str, payload: bytes) -> None:
        """Process a message from the bridge (may be called from any thread)."""

        if self._loop is None or self._stop_event.is_set():
            _LOGGER.debug("Gateway is not running, ignored: %s %s", topic, payload)
            return

        with contextlib.suppress(RuntimeError):  # the loop is closed
            self._loop.call_soon_threadsafe(self._cmd_received, topic, payload)

    def _cmd_received(self, topic: str, payload: bytes) -> None:
        if self._stop_event.is_set():
            return

        if (name := actuator_from_topic(topic)) is None:
            _LOGGER.debug("Not an actuator's topic, ignored: %s", topic)
            return

        token = payload.decode("utf-8", errors="replace")

        try:
            self.send_cmd(name, token)
        except (exc.CommandInvalid, exc.DispatcherError) as err:
            _LOGGER.warning("%s %r < Command not sent: %s", topic, token, err)

    def send_cmd(self, name: str, token: str) -> ActuatorCommand:
        """Encode the command for the named actuator and queue it for the dongle.

        Raise CommandInvalid if it cannot be encoded, or DispatcherError if it cannot
        be queued.
        """

        cmd = self._encoder.encode(name, token)
        self._dispatcher.enqueue(bytes(cmd))

        _LOGGER.info("Command: %s", cmd)
        return cmd


async def _cancel(task: asyncio.Task[None] | None) -> None:
    if task is None or task.done():
        return
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task


async def create_gateway(config: dict[str, Any], bridge: Bridge) -> Gateway:
    """Validate the configuration, open its serial port and return a gateway.

    May: raise ConfigInvalid, or TransportSerialError.
    """

    config = load_config(config)
    port_name, port_config = extract_serial_port(config.pop(SZ_SERIAL_PORT))

    transport = await PortTransport.create(port_name, port_config)
    return Gateway(transport, bridge, **config)
