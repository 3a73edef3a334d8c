#!/usr/bin/env python3
"""RFP2MQTT - Frame/Command layer - Helper functions."""

from __future__ import annotations

import struct
from datetime import datetime as dt

from . import exceptions as exc

_U16 = struct.Struct("<H")
_I16 = struct.Struct("<h")
_U32 = struct.Struct("<I")


def dt_now() -> dt:
    """Return the current datetime as an aware (local) datetime object."""
    return dt.now().astimezone()


def rfc3339(dtm: dt) -> str:
    """Return the datetime as an RFC3339 string, e.g. 2020-08-28T17:02:16+02:00."""
    return dtm.isoformat(timespec="seconds")


def _unpack(fmt: struct.Struct, buf: bytes, offset: int) -> int:
    try:
        return fmt.unpack_from(buf, offset)[0]  # type: ignore[no-any-return]
    except struct.error as err:
        raise exc.FrameInvalid(
            f"Bad frame: {len(buf)} bytes, need {offset + fmt.size}"
        ) from err


def u16_from_le(buf: bytes, offset: int) -> int:
    """Return the unsigned 16-bit little-endian value at offset."""
    return _unpack(_U16, buf, offset)


def i16_from_le(buf: bytes, offset: int) -> int:
    """Return the signed 16-bit little-endian value at offset."""
    return _unpack(_I16, buf, offset)


def u32_from_le(buf: bytes, offset: int) -> int:
    """Return the unsigned 32-bit little-endian value at offset."""
    return _unpack(_U32, buf, offset)


def u32_from_words(msb: int, lsb: int) -> int:
    """Return an unsigned 32-bit value from two unsigned 16-bit words."""
    return (msb << 16) | lsb


def u32_to_le(value: int) -> bytes:
    """Return the unsigned 32-bit value as 4 little-endian bytes."""
    return _U32.pack(value)


def bit_str(value: int, bit: int) -> str:
    """Return "1" if the bit of value is set, otherwise "0"."""
    return "1" if value & (1 << bit) else "0"


def tenths_str(value: int) -> str:
    """Return a value in tenths as a string with one decimal place, e.g. 215 -> 21.5."""
    return f"{value / 10:.1f}"


def hex_dump(data: bytes) -> str:
    """Return a classic hex dump (offset, 16 bytes, printable chars) of the data."""

    lines = []
    for idx in range(0, len(data), 16):
        chunk = data[idx : idx + 16]
        hex_part = " ".join(f"{b:02X}" for b in chunk[:8])
        if len(chunk) > 8:
            hex_part += "  " + " ".join(f"{b:02X}" for b in chunk[8:])
        text = "".join(chr(b) if 32 <= b <= 126 else "." for b in chunk)
        lines.append(f"{idx:4d}  {hex_part:<48}  {text}")
    return "\n".join(lines)
