#!/usr/bin/env python3
"""RFP2MQTT - a config for testing, incl. fakes of the transport & bridge."""

from __future__ import annotations

import asyncio
import struct
from collections.abc import Callable
from typing import Any

import pytest

from rfp2mqtt import exceptions as exc
from rfp2mqtt.bridge import MessageHandlerT

SZ_HEADER_PREFIX = b"\x00\x00\x00"  # frameType, cluster, dataFlag


# ### FRAME BUILDERS ##################################################################


def make_frame(
    info_type: int,
    infos: bytes,
    rf_level: int = -60,
    floor_noise: int = -100,
    rf_quality: int = 5,
    protocol: int = 8,
    source_dest: int = 0x01,
) -> bytes:
    """Return an inbound binary frame, as sent by the dongle."""

    payload = (
        SZ_HEADER_PREFIX
        + struct.pack("<bbBBB", rf_level, floor_noise, rf_quality, protocol, info_type)
        + infos
    )
    return b"ZI" + bytes((source_dest,)) + struct.pack("<H", len(payload)) + payload


def infos_32(subtype: int, device_id: int, qualifier: int = 0) -> bytes:
    """Return the common infos words, with a 32-bit id."""
    return struct.pack("<HIH", subtype, device_id, qualifier)


def infos_phy(subtype: int, id_phy: int, id_channel: int, qualifier: int = 0) -> bytes:
    """Return the common infos words, with an idPHY/idChannel id (Oregon/OWL)."""
    return struct.pack("<HHHH", subtype, id_phy, id_channel, qualifier)


# one sample frame for each infoType
SAMPLE_FRAMES: dict[int, bytes] = {
    0: make_frame(0, struct.pack("<IH", 0x00010023, 0)),
    1: make_frame(1, infos_32(1, 987654)),
    2: make_frame(2, infos_32(0, 4040404, qualifier=0b1011)),
    3: make_frame(3, infos_32(1, 8234567, qualifier=4)),
    4: make_frame(4, infos_phy(0x1A2D, 0xFA28, 3, 1) + struct.pack("<hH", 215, 45)),
    5: make_frame(5, infos_phy(0x5A6D, 0x2D10, 1) + struct.pack("<hHH", -52, 80, 1013)),
    6: make_frame(6, infos_phy(0x1984, 0x0A01, 0) + struct.pack("<HH", 42, 270)),
    7: make_frame(7, infos_phy(0xEC70, 0x0B02, 1) + struct.pack("<H", 6)),
    8: make_frame(
        8, infos_phy(3, 0x0080, 0) + struct.pack("<IHHHH", 123456, 1500, 400, 500, 600)
    ),
    9: make_frame(9, infos_phy(0x2914, 0x0C01, 0) + struct.pack("<IH", 1234, 17)),
    10: make_frame(10, infos_32(1, 1234567, qualifier=0b110101) + bytes(6)),
    11: make_frame(11, infos_32(0, 7654321, qualifier=0b000010) + bytes(6)),
    12: make_frame(12, infos_32(0, 112233, qualifier=2) + struct.pack("<hh", 190, 200)),
    13: make_frame(
        13,
        infos_32(0, 3344556, qualifier=1)
        + struct.pack("<HHIIH", 2, 30, 1000000, 2000000, 2300),
    ),
    14: make_frame(14, infos_32(0, 99887, qualifier=7)),
    15: make_frame(15, infos_32(1, 0)),
}


# ### FAKES ###########################################################################


class FakeTransport:
    """A fake of the duplex byte transport (b"" is the end of the stream)."""

    def __init__(self, write_error: Exception | None = None) -> None:
        self._inbound: asyncio.Queue[bytes | Exception] = asyncio.Queue()
        self._write_error = write_error

        self.reads = 0
        self.written: list[bytes] = []
        self.write_times: list[float] = []
        self.closed = False
        self.wait_closed_called = False

    def inject(self, data: bytes | Exception) -> None:
        """Make the data (or an exception) the result of a future read()."""
        self._inbound.put_nowait(data)

    async def read(self) -> bytes:
        self.reads += 1
        data = await self._inbound.get()
        if isinstance(data, Exception):
            raise data
        return data

    async def write(self, data: bytes) -> None:
        if self._write_error is not None:
            err, self._write_error = self._write_error, None  # fail only once
            raise err
        self.written.append(data)
        self.write_times.append(asyncio.get_running_loop().time())

    def close(self) -> None:
        self.closed = True

    async def wait_closed(self) -> None:
        self.wait_closed_called = True


class FakeBridge:
    """A fake of the pub/sub bridge."""

    def __init__(
        self, publish_error: bool = False, subscribe_error: bool = False
    ) -> None:
        self._publish_error = publish_error
        self._subscribe_error = subscribe_error

        self.published: list[tuple[str, str]] = []
        self.subscriptions: dict[str, MessageHandlerT] = {}
        self.unsubscribed: list[str] = []

    def publish(self, topic: str, payload: str) -> None:
        if self._publish_error:
            self._publish_error = False  # fail only once
            raise exc.BridgeError(f"Failed to publish to {topic}: broker is away")
        self.published.append((topic, payload))

    def subscribe(self, topic: str, callback: MessageHandlerT) -> None:
        if self._subscribe_error:
            raise exc.BridgeError(f"Failed to subscribe to {topic}: broker is away")
        self.subscriptions[topic] = callback

    def unsubscribe(self, topic: str) -> None:
        self.subscriptions.pop(topic, None)
        self.unsubscribed.append(topic)


async def wait_for(condition: Callable[[], Any], timeout: float = 2.0) -> None:
    """Wait until the condition is true (or fail the test)."""

    async def _wait() -> None:
        while not condition():
            await asyncio.sleep(0.005)

    await asyncio.wait_for(_wait(), timeout=timeout)


# ### FIXTURES ########################################################################


@pytest.fixture()
def fake_bridge() -> FakeBridge:
    return FakeBridge()


@pytest.fixture()
def sensors() -> list[dict[str, str]]:
    return [
        {"id": f"4-{0xFA28 << 16 | 3}", "name": "salon", "topic": "home/salon/th"},
        {"id": "2-4040404", "name": "porte"},  # no topic, so the name is used
    ]


@pytest.fixture()
def actuators() -> list[dict[str, str]]:
    return [
        {"name": "volet", "id": "B1", "protocol": "rts", "topic": "home/volet"},
        {"name": "prise", "id": "A1", "protocol": "chacon"},
        {"name": "radiateur", "id": "123456", "protocol": "x2dhaelec"},
    ]
