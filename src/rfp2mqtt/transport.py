#!/usr/bin/env python3
"""RFP2MQTT - The duplex byte transport to/from the RFPlayer dongle.

The gateway only requires something that quacks like a Transport. PortTransport is
the serial port implementation (via pyserial-asyncio).
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING, Any, Protocol

from serial import SerialException  # type: ignore[import-untyped]

from . import exceptions as exc
from .const import DEFAULT_READ_SIZE
from .schemas import SCH_SERIAL_PORT_CONFIG

if TYPE_CHECKING:
    from .schemas import PortConfigT


__all__ = ["PortTransport", "Transport"]

_LOGGER = logging.getLogger(__name__)


try:
    import serial_asyncio_fast as serial_asyncio  # type: ignore[import-not-found]

    _LOGGER.warning(
        "EXPERIMENTAL: Using pyserial-asyncio-fast in place of pyserial-asyncio"
    )
except ImportError:
    import serial_asyncio  # type: ignore[import-untyped]


class Transport(Protocol):
    """A typing.Protocol (i.e. a structural type) of a duplex byte stream."""

    async def read(self) -> bytes:
        """Return the next chunk of bytes, or b"" at end of stream."""
        ...

    async def write(self, data: bytes) -> None: ...

    def close(self) -> None: ...

    async def wait_closed(self) -> None: ...


class PortTransport:
    """Send/receive bytes async to/from an RFPlayer via a serial port."""

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        port_name: str = "",
        read_size: int = DEFAULT_READ_SIZE,
    ) -> None:
        self._reader = reader
        self._writer = writer
        self._port_name = port_name
        self._read_size = read_size

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._port_name!r})"

    @classmethod
    async def create(
        cls, port_name: str, port_config: PortConfigT | dict[str, Any] | None = None
    ) -> PortTransport:
        """Open the serial port and return a transport for it.

        May: raise TransportSerialError("Unable to open the serial port...")
        """

        # For example:
        # - '/dev/ttyUSB0', '/dev/serial/by-id/usb-GCE_RFPLAYER...'
        # - 'rfc2217://localhost:5001'

        ser_config = SCH_SERIAL_PORT_CONFIG(port_config or {})

        try:
            reader, writer = await serial_asyncio.open_serial_connection(
                url=port_name, **ser_config
            )
        except SerialException as err:
            _LOGGER.error(
                "Failed to open %s (config: %s): %s", port_name, ser_config, err
            )
            raise exc.TransportSerialError(
                f"Unable to open the serial port: {port_name}"
            ) from err

        _LOGGER.info("Opened serial port: %s (config: %s)", port_name, ser_config)
        return cls(reader, writer, port_name=port_name)

    async def read(self) -> bytes:
        try:
            return await self._reader.read(self._read_size)
        except SerialException as err:
            raise exc.TransportSerialError(f"Failed to read: {err}") from err

    async def write(self, data: bytes) -> None:
        try:
            self._writer.write(data)
            await self._writer.drain()
        except (SerialException, ConnectionError) as err:
            raise exc.TransportSerialError(f"Failed to write: {err}") from err

    def close(self) -> None:
        if not self._writer.is_closing():
            self._writer.close()

    async def wait_closed(self) -> None:
        with contextlib.suppress(SerialException, ConnectionError):
            await self._writer.wait_closed()
        _LOGGER.info("Closed serial port: %s", self._port_name)
