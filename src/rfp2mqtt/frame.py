#!/usr/bin/env python3
"""RFP2MQTT - an RFPlayer to MQTT gateway.

Provide the RawFrame class, and the Reassembler that recovers frames from a stream.

The frame container is: `Z I <sourceDest> <lenLsb> <lenMsb> <payload[len]>`
"""

from __future__ import annotations

import logging
from typing import Final

from . import exceptions as exc
from .const import (
    DESYNC_THRESHOLD,
    HEADER_LEN,
    MAX_PAYLOAD_LEN,
    OFFSET_DATA_FLAG,
    OFFSET_FLOOR_NOISE,
    OFFSET_INFO_TYPE,
    OFFSET_LEN,
    OFFSET_PROTOCOL,
    OFFSET_RF_LEVEL,
    OFFSET_RF_QUALITY,
    OFFSET_SOURCE_DEST,
    SYNC_MARKER,
)
from .helpers import u16_from_le

_LOGGER = logging.getLogger(__name__)

_SYNC_1: Final = SYNC_MARKER[:1]


class RawFrame:
    """The RawFrame class - one complete, length-delimited frame (inbound or outbound).

    `ZI 01 0C00 000003010000000000000000`
    """

    def __init__(self, data: bytes) -> None:
        """Create a frame from bytes.

        Will raise FrameInvalid if it is invalid.
        """

        self._data = bytes(data)

        if self._data[:2] != SYNC_MARKER:
            raise exc.FrameInvalid(f"Bad frame: no sync marker: {self._data!r}")
        if len(self._data) < HEADER_LEN:
            raise exc.FrameInvalid(f"Bad frame: truncated header: {self._data!r}")
        if len(self._data) != HEADER_LEN + self.payload_len:
            raise exc.FrameInvalid(
                f"Bad frame: length is {len(self._data)}, "
                f"but header says {HEADER_LEN + self.payload_len}"
            )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._data!r})"

    def __str__(self) -> str:
        """Return the frame as hex, e.g. `5A49 01 0C00 00000301...`."""
        return (
            f"{self._data[:2].hex().upper()} {self._data[2:3].hex().upper()} "
            f"{self._data[3:5].hex().upper()} {self.payload.hex().upper()}"
        )

    def __bytes__(self) -> bytes:
        return self._data

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RawFrame):
            return NotImplemented
        return self._data == other._data

    def __hash__(self) -> int:
        return hash(self._data)

    @property
    def source_dest(self) -> int:
        return self._data[OFFSET_SOURCE_DEST]

    @property
    def payload_len(self) -> int:
        return u16_from_le(self._data, OFFSET_LEN)

    @property
    def payload(self) -> bytes:
        return self._data[HEADER_LEN:]

    def _byte(self, offset: int) -> int:
        try:
            return self._data[offset]
        except IndexError as err:
            raise exc.FrameInvalid(
                f"Bad frame: {len(self._data)} bytes, need {offset + 1}"
            ) from err

    @property
    def data_flag(self) -> int:
        """Return the band of the received frame (0: 433MHz, 1: 868MHz)."""
        return self._byte(OFFSET_DATA_FLAG)

    @property
    def rf_level(self) -> int:
        """Return the RF level, dB (-40 for a high signal, to -110)."""
        value = self._byte(OFFSET_RF_LEVEL)
        return value - 0x100 if value & 0x80 else value

    @property
    def floor_noise(self) -> int:
        value = self._byte(OFFSET_FLOOR_NOISE)
        return value - 0x100 if value & 0x80 else value

    @property
    def rf_quality(self) -> int:
        return self._byte(OFFSET_RF_QUALITY)

    @property
    def protocol(self) -> int:
        return self._byte(OFFSET_PROTOCOL)

    @property
    def info_type(self) -> int:
        return self._byte(OFFSET_INFO_TYPE)


class Reassembler:
    """Recover complete frames from an (unreliable, arbitrarily chunked) byte stream.

    There should be one per transport connection. Garbage that precedes a sync marker
    is discarded, and a buffer that grows beyond DESYNC_THRESHOLD bytes without any
    sync marker is discarded in its entirety (a desynchronisation).

    A sync marker whose header declares a payload longer than max_payload_len is
    taken to be a chance occurrence of "ZI" in the stream, and is skipped.
    """

    def __init__(
        self,
        threshold: int = DESYNC_THRESHOLD,
        max_payload_len: int = MAX_PAYLOAD_LEN,
    ) -> None:
        self._threshold = threshold
        self._max_payload_len = max_payload_len
        self._buffer = bytearray()

        self.desync_count: int = 0

    def __len__(self) -> int:
        """Return the number of bytes waiting for the rest of their frame."""
        return len(self._buffer)

    def reset(self) -> None:
        """Discard any buffered bytes (e.g. after the transport has reconnected)."""
        self._buffer.clear()

    def feed(self, data: bytes) -> list[RawFrame]:
        """Append the bytes to the buffer and return any frames now complete.

        The frames are returned in stream order.
        """

        self._buffer += data
        frames: list[RawFrame] = []

        while True:
            idx = self._buffer.find(SYNC_MARKER)

            if idx == -1:
                if len(self._buffer) > self._threshold:
                    self._desync()
                break

            if len(self._buffer) < idx + HEADER_LEN:  # can't read the length, yet
                break

            payload_len = u16_from_le(self._buffer, idx + OFFSET_LEN)
            if payload_len > self._max_payload_len:  # not a real sync marker
                _LOGGER.warning(
                    "Skipping sync marker with a payload length of %s (max is %s)",
                    payload_len,
                    self._max_payload_len,
                )
                del self._buffer[: idx + 1]
                continue

            frame_len = HEADER_LEN + payload_len
            if len(self._buffer) < idx + frame_len:  # the frame is incomplete
                break

            if idx:
                _LOGGER.debug(
                    "Discarding %s bytes before sync marker: %r",
                    idx,
                    bytes(self._buffer[:idx]),
                )

            frames.append(RawFrame(self._buffer[idx : idx + frame_len]))
            del self._buffer[: idx + frame_len]

        return frames

    def _desync(self) -> None:
        """Discard the buffer, but for the 1st half of a sync marker, if any."""

        self.desync_count += 1
        _LOGGER.warning(
            "No sync marker in the last %s bytes, discarding them (desync count: %s)",
            len(self._buffer),
            self.desync_count,
        )

        keep = self._buffer[-1:] == _SYNC_1
        self._buffer = bytearray(_SYNC_1 if keep else b"")
