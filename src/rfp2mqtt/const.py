#!/usr/bin/env python3
"""RFP2MQTT - an RFPlayer to MQTT gateway."""

from __future__ import annotations

from enum import IntEnum, StrEnum
from typing import Final

# used by the dispatcher...
DEFAULT_GAP_BETWEEN_WRITES: Final[float] = 0.5  # seconds, the dongle's ingestion rate
DEFAULT_MAX_QUEUE_SIZE: Final[int] = 100  # frames waiting to be written
DEFAULT_PUBLISH_QUEUE_SIZE: Final[int] = 100  # readings waiting to be published

# used by the transport...
DEFAULT_READ_SIZE: Final[int] = 1024
DEFAULT_BAUDRATE: Final[int] = 115200

# used by the bridge...
DEFAULT_TOPIC_ROOT: Final = "rfp2mqtt"
SUBSCRIBE_TOPIC: Final = "home/action/#"
ACTION_TOPIC_ROOT: Final = ("home", "action")
MQTT_QOS: Final[int] = 2


#
# The frame container (header), common to inbound & outbound frames
SYNC_MARKER: Final = b"ZI"
HEADER_LEN: Final[int] = 5  # sync1, sync2, sourceDest, lenLsb, lenMsb
DESYNC_THRESHOLD: Final[int] = 64  # no inbound frame is anywhere near this long
MAX_PAYLOAD_LEN: Final[int] = 1024  # longer than any binary frame, or ASCII reply

SOURCE_DEST_433_868: Final[int] = 0x01
ASCII_CONTAINER_MASK: Final[int] = 0x40

# offsets (from the start of the frame) of the inbound binary fields
OFFSET_SOURCE_DEST: Final[int] = 2
OFFSET_LEN: Final[int] = 3
OFFSET_DATA_FLAG: Final[int] = 7
OFFSET_RF_LEVEL: Final[int] = 8
OFFSET_FLOOR_NOISE: Final[int] = 9
OFFSET_RF_QUALITY: Final[int] = 10
OFFSET_PROTOCOL: Final[int] = 11
OFFSET_INFO_TYPE: Final[int] = 12
OFFSET_INFOS: Final[int] = 13

# the outbound binary frame has a fixed-length payload
OUTBOUND_PAYLOAD_LEN: Final[int] = 12


class InfoType(IntEnum):
    """The discriminant of the inbound payload layouts."""

    X10 = 0  # also DOMIA LITE, PARROT
    CHACON = 1
    VISONIC = 2
    RTS = 3
    OREGON_TH = 4
    OREGON_PRESSURE = 5
    OREGON_WIND = 6
    OREGON_UV = 7
    OWL = 8
    OREGON_RAIN = 9
    X2D_THERMOSTAT = 10
    X2D_SHUTTER = 11
    DEPRECATED = 12  # was: DIGIMAX TS10
    LINKY = 13  # Cartelectronic TIC/pulses
    FS20 = 14
    JAMMING = 15


# family name, and the suffix of the default topic, by infoType
INFO_TYPE_FAMILY: Final[dict[InfoType, str]] = {
    InfoType.X10: "X10",
    InfoType.CHACON: "CHACON",
    InfoType.VISONIC: "VISONIC",
    InfoType.RTS: "RTS",
    InfoType.OREGON_TH: "OREGON",
    InfoType.OREGON_PRESSURE: "OREGON",
    InfoType.OREGON_WIND: "OREGON",
    InfoType.OREGON_UV: "OREGON",
    InfoType.OWL: "OWL",
    InfoType.OREGON_RAIN: "OREGON",
    InfoType.X2D_THERMOSTAT: "X2D",
    InfoType.X2D_SHUTTER: "X2D",
    InfoType.DEPRECATED: "DEPRECATED",
    InfoType.LINKY: "LINKY",
    InfoType.FS20: "FS20",
    InfoType.JAMMING: "JAMMING",
}

INFO_TYPE_TOPIC_SUFFIX: Final[dict[InfoType, str]] = {
    InfoType.X10: "x10",
    InfoType.CHACON: "chacon",
    InfoType.VISONIC: "visonic",
    InfoType.RTS: "rts",
    InfoType.OREGON_TH: "th",
    InfoType.OREGON_PRESSURE: "thpa",
    InfoType.OREGON_WIND: "wind",
    InfoType.OREGON_UV: "uv",
    InfoType.OWL: "owl",
    InfoType.OREGON_RAIN: "rain",
    InfoType.X2D_THERMOSTAT: "x2dcontact",
    InfoType.X2D_SHUTTER: "x2dshutter",
    InfoType.DEPRECATED: "null",
    InfoType.LINKY: "linky",
    InfoType.FS20: "fs20",
    InfoType.JAMMING: "jamming",
}


class Action(IntEnum):
    """The action byte of an outbound frame."""

    OFF = 0
    ON = 1
    DIM = 2
    BRIGHT = 3
    ALL_OFF = 4
    ALL_ON = 5
    ASSOC = 6
    DISSOC = 7
    ASSOC_OFF = 8
    DISSOC_OFF = 9


class SendProtocol(StrEnum):
    """The (configurable) protocol names of actuators."""

    VISONIC_433 = "visonic433"
    VISONIC_868 = "visonic868"
    CHACON = "chacon"
    DIO = "dio"
    DOMIA = "domia"
    X10 = "x10"
    X2D_433 = "x2d433"
    X2D_868 = "x2d868"
    X2D_SHUTTER = "x2dshutter"
    X2D_HA_ELEC = "x2dhaelec"
    X2D_HA_GAS = "x2dhagas"
    SOMFY_RTS = "somfyrts"
    RTS = "rts"
    BLYSS = "blyss"
    PARROT = "parrot"
    FS20 = "fs20"
    KD101 = "kd101"
    EDISIO = "edisio"


# protocol code of an outbound frame, by protocol name (chacon/dio & rts/somfyrts alias)
PROTOCOL_CODES: Final[dict[str, int]] = {
    SendProtocol.VISONIC_433: 1,
    SendProtocol.VISONIC_868: 2,
    SendProtocol.CHACON: 3,
    SendProtocol.DIO: 3,
    SendProtocol.DOMIA: 4,
    SendProtocol.X10: 5,
    SendProtocol.X2D_433: 6,
    SendProtocol.X2D_868: 7,
    SendProtocol.X2D_SHUTTER: 8,
    SendProtocol.X2D_HA_ELEC: 9,
    SendProtocol.X2D_HA_GAS: 10,
    SendProtocol.SOMFY_RTS: 11,
    SendProtocol.RTS: 11,
    SendProtocol.BLYSS: 12,
    SendProtocol.PARROT: 13,
    SendProtocol.FS20: 14,
    SendProtocol.KD101: 15,
    SendProtocol.EDISIO: 16,
}

RTS_PROTOCOLS: Final = (SendProtocol.SOMFY_RTS, SendProtocol.RTS)

# command tokens (MQTT payloads) understood by all protocols, but x2dhaelec
GENERIC_ACTIONS: Final[dict[str, Action]] = {
    "0": Action.OFF,
    "1": Action.ON,
    "2": Action.DIM,
    "6": Action.ASSOC,
}
RTS_MY_TOKEN: Final = "2"
RTS_MY_DIM_VALUE: Final[int] = 4  # a DIM of 4% has an RTS motor stop mid-travel

# command tokens of the X2D electric heating protocol (the 'Low' modes are OFF)
HA_ELEC_ACTIONS: Final[dict[str, Action]] = {
    "AutoLow": Action.OFF,
    "EcoLow": Action.OFF,
    "ConfortLow": Action.OFF,
    "Auto": Action.ON,
    "Eco": Action.ON,
    "Confort": Action.ON,
    "Stop": Action.ON,
    "HorsGel": Action.ON,
}
HA_ELEC_DIM_VALUES: Final[dict[str, int]] = {
    "Eco": 0,
    "EcoLow": 0,
    "Confort": 3,
    "ConfortLow": 3,
    "Stop": 4,
    "HorsGel": 5,
    "Auto": 7,
    "AutoLow": 7,
}


#
# keys of the JSON payload of a published reading
SZ_TIMECODE: Final = "tc"
SZ_NAME: Final = "n"
SZ_REFERENCE: Final = "r"
SZ_SUBTYPE: Final = "st"

SZ_TEMPERATURE: Final = "t"
SZ_HUMIDITY: Final = "h"
SZ_PRESSURE: Final = "p"  # NOTE: also power (OWL)
SZ_POWER: Final = "p"
SZ_SPEED: Final = "s"  # NOTE: also subtype (JAMMING)
SZ_DIRECTION: Final = "d"
SZ_LIGHT: Final = "l"
SZ_ENERGY: Final = "e"
SZ_POWER_I1: Final = "pi1"
SZ_POWER_I2: Final = "pi2"
SZ_POWER_I3: Final = "pi3"
SZ_TOTAL_RAIN: Final = "tra"
SZ_RAIN: Final = "ra"
SZ_QUALIFIER: Final = "q"
SZ_CONTRACT_TYPE: Final = "ct"
SZ_SETPOINT: Final = "sp"
SZ_COUNTER_1: Final = "cnt1"
SZ_COUNTER_2: Final = "cnt2"
SZ_APPARENT_POWER: Final = "ap"

SZ_FLAG_TAMPER: Final = "ftamper"
SZ_FLAG_ALARM: Final = "falarm"
SZ_FLAG_LOW_BATT: Final = "flowbatt"
SZ_FLAG_ALIVE: Final = "falive"
SZ_FLAG_ANOMALY: Final = "fanomaly"
SZ_FLAG_TEST_ASSOC: Final = "ftestassoc"
SZ_FLAG_DOMESTIC: Final = "fdomestic"
