#!/usr/bin/env python3
"""RFP2MQTT - payload processors.

There is one parser per infoType. Each is passed the infos words of a binary frame
(i.e. everything after the InfosType byte) and returns a tuple of the numeric device
id, and a dict of the variant-specific measurements (all values are strings).

Offsets of the common infos words (all little-endian):

  subtype     | u16 @ 0
  id          | u32 @ 2, or: idPHY u16 @ 2, idChannel u16 @ 4 (Oregon/OWL)
  qualifier   | u16 @ 6
  measurement | @ 8 onwards
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from .const import (
    SZ_APPARENT_POWER,
    SZ_CONTRACT_TYPE,
    SZ_COUNTER_1,
    SZ_COUNTER_2,
    SZ_DIRECTION,
    SZ_ENERGY,
    SZ_FLAG_ALARM,
    SZ_FLAG_ALIVE,
    SZ_FLAG_ANOMALY,
    SZ_FLAG_DOMESTIC,
    SZ_FLAG_LOW_BATT,
    SZ_FLAG_TAMPER,
    SZ_FLAG_TEST_ASSOC,
    SZ_HUMIDITY,
    SZ_LIGHT,
    SZ_POWER,
    SZ_POWER_I1,
    SZ_POWER_I2,
    SZ_POWER_I3,
    SZ_PRESSURE,
    SZ_QUALIFIER,
    SZ_RAIN,
    SZ_SETPOINT,
    SZ_SPEED,
    SZ_TEMPERATURE,
    SZ_TOTAL_RAIN,
)
from .helpers import (
    bit_str,
    i16_from_le,
    tenths_str,
    u16_from_le,
    u32_from_le,
    u32_from_words,
)

_LOGGER = logging.getLogger(__name__)

_INFO_SUBTYPE = 0
_INFO_ID = 2
_INFO_ID_PHY = 2
_INFO_ID_CHANNEL = 4
_INFO_QUALIFIER = 6
_INFO_DATA = 8

PayloadT = tuple[int, dict[str, str]]


def subtype(infos: bytes) -> int:
    """Return the subtype of the infos (common to all infoTypes)."""
    return u16_from_le(infos, _INFO_SUBTYPE)


def _id_32(infos: bytes) -> int:  # scheme A
    return u32_from_le(infos, _INFO_ID)


def _id_phy(infos: bytes) -> int:  # scheme B: (idPHY << 16) | idChannel
    return u32_from_words(
        u16_from_le(infos, _INFO_ID_PHY), u16_from_le(infos, _INFO_ID_CHANNEL)
    )


def _qualifier(infos: bytes) -> int:
    return u16_from_le(infos, _INFO_QUALIFIER)


def _data_u16(infos: bytes, idx: int) -> str:
    return str(u16_from_le(infos, _INFO_DATA + idx))


def _data_u32(infos: bytes, idx: int) -> str:
    return str(u32_from_le(infos, _INFO_DATA + idx))


def _temperature(infos: bytes, idx: int = 0) -> str:
    return tenths_str(i16_from_le(infos, _INFO_DATA + idx))


def _low_batt(infos: bytes) -> dict[str, str]:  # Oregon/OWL: bit 0 of the qualifier
    return {SZ_FLAG_LOW_BATT: bit_str(_qualifier(infos), 0)}


def _x2d_flags(infos: bytes) -> dict[str, str]:
    qualifier = _qualifier(infos)
    return {
        SZ_QUALIFIER: str(qualifier),
        SZ_FLAG_TAMPER: bit_str(qualifier, 0),
        SZ_FLAG_ANOMALY: bit_str(qualifier, 1),
        SZ_FLAG_LOW_BATT: bit_str(qualifier, 2),
        SZ_FLAG_TEST_ASSOC: bit_str(qualifier, 4),
        SZ_FLAG_DOMESTIC: bit_str(qualifier, 5),
    }


# X10, DOMIA LITE, PARROT
def parser_00(infos: bytes) -> PayloadT:
    # the id is the 1st u32, which overlaps the subtype
    return u32_from_le(infos, _INFO_SUBTYPE), {}


# CHACON
def parser_01(infos: bytes) -> PayloadT:
    return _id_32(infos), {}


# VISONIC
def parser_02(infos: bytes) -> PayloadT:
    qualifier = _qualifier(infos)
    return _id_32(infos), {
        SZ_QUALIFIER: str(qualifier),
        SZ_FLAG_TAMPER: bit_str(qualifier, 0),
        SZ_FLAG_ALARM: bit_str(qualifier, 1),
        SZ_FLAG_LOW_BATT: bit_str(qualifier, 2),
        SZ_FLAG_ALIVE: bit_str(qualifier, 3),  # a supervision frame
    }


# RTS
def parser_03(infos: bytes) -> PayloadT:
    return _id_32(infos), {SZ_QUALIFIER: str(_qualifier(infos))}


# OREGON thermo/hygro
def parser_04(infos: bytes) -> PayloadT:
    return _id_phy(infos), {
        SZ_TEMPERATURE: _temperature(infos),
        SZ_HUMIDITY: _data_u16(infos, 2),
    } | _low_batt(infos)


# OREGON thermo/hygro/pressure
def parser_05(infos: bytes) -> PayloadT:
    return _id_phy(infos), {
        SZ_TEMPERATURE: _temperature(infos),
        SZ_HUMIDITY: _data_u16(infos, 2),
        SZ_PRESSURE: _data_u16(infos, 4),
    } | _low_batt(infos)


# OREGON wind
def parser_06(infos: bytes) -> PayloadT:
    return _id_phy(infos), {
        SZ_SPEED: _data_u16(infos, 0),
        SZ_DIRECTION: _data_u16(infos, 2),
    } | _low_batt(infos)


# OREGON UV
def parser_07(infos: bytes) -> PayloadT:
    return _id_phy(infos), {SZ_LIGHT: _data_u16(infos, 0)} | _low_batt(infos)


# OWL power meter
def parser_08(infos: bytes) -> PayloadT:
    return _id_phy(infos), {
        SZ_ENERGY: _data_u32(infos, 0),
        SZ_POWER: _data_u16(infos, 4),
        SZ_POWER_I1: _data_u16(infos, 6),
        SZ_POWER_I2: _data_u16(infos, 8),
        SZ_POWER_I3: _data_u16(infos, 10),
    } | _low_batt(infos)


# OREGON rain
def parser_09(infos: bytes) -> PayloadT:
    return _id_phy(infos), {
        SZ_TOTAL_RAIN: _data_u32(infos, 0),
        SZ_RAIN: _data_u16(infos, 4),
    } | _low_batt(infos)


# X2D thermostat/contact
def parser_10(infos: bytes) -> PayloadT:
    return _id_32(infos), _x2d_flags(infos)


# X2D shutter
def parser_11(infos: bytes) -> PayloadT:
    return _id_32(infos), _x2d_flags(infos)


# DIGIMAX TS10 (deprecated)
def parser_12(infos: bytes) -> PayloadT:
    return _id_32(infos), {SZ_QUALIFIER: str(_qualifier(infos))}


# Cartelectronic meter (TIC/Linky, or pulses)
def parser_13(infos: bytes) -> PayloadT:
    return _id_32(infos), {
        SZ_CONTRACT_TYPE: _data_u16(infos, 0),
        SZ_SETPOINT: _data_u16(infos, 2),
        SZ_COUNTER_1: _data_u32(infos, 4),
        SZ_COUNTER_2: _data_u32(infos, 8),
        SZ_APPARENT_POWER: _data_u16(infos, 12),
        SZ_QUALIFIER: str(_qualifier(infos)),
    }


# FS20
def parser_14(infos: bytes) -> PayloadT:
    return _id_32(infos), {SZ_QUALIFIER: str(_qualifier(infos))}


# jamming detection
def parser_15(infos: bytes) -> PayloadT:
    return _id_32(infos), {SZ_SPEED: str(subtype(infos))}  # NOTE: "s" is the subtype


_PAYLOAD_PARSERS: dict[int, Callable[[bytes], PayloadT]] = {
    int(k[7:]): v
    for k, v in locals().items()
    if callable(v) and k.startswith("parser_") and len(k) == 9
}


def parse_infos(info_type: int, infos: bytes) -> PayloadT | None:
    """Return the device id & measurements of the infos, or None if not supported.

    Raise FrameInvalid if the infos are too short for the infoType's layout.
    """

    if (parser := _PAYLOAD_PARSERS.get(info_type)) is None:
        _LOGGER.debug("Unknown infoType: %s (ignored)", info_type)
        return None
    return parser(infos)
