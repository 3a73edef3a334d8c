#!/usr/bin/env python3
"""RFP2MQTT - an RFPlayer to MQTT gateway.

Schema processor for the gateway configuration.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Final, TypedDict

import voluptuous as vol

from . import exceptions as exc
from .const import (
    DEFAULT_BAUDRATE,
    DEFAULT_GAP_BETWEEN_WRITES,
    DEFAULT_MAX_QUEUE_SIZE,
    DEFAULT_TOPIC_ROOT,
    PROTOCOL_CODES,
)

_LOGGER = logging.getLogger(__name__)


#
# 1/4: Serial port configuration
SZ_PORT_CONFIG: Final = "port_config"
SZ_PORT_NAME: Final = "port_name"
SZ_SERIAL_PORT: Final = "serial_port"

SZ_BAUDRATE: Final = "baudrate"
SZ_RTSCTS: Final = "rtscts"
SZ_TIMEOUT: Final = "timeout"

SCH_SERIAL_PORT_CONFIG = vol.Schema(
    {
        vol.Optional(SZ_BAUDRATE, default=DEFAULT_BAUDRATE): vol.All(
            vol.Coerce(int), vol.Any(57600, 115200)
        ),
        vol.Optional(SZ_RTSCTS, default=False): bool,
        vol.Optional(SZ_TIMEOUT, default=0): vol.Any(None, vol.Coerce(float)),
    },
    extra=vol.PREVENT_EXTRA,
)


class PortConfigT(TypedDict):
    baudrate: int  # 57600, 115200
    rtscts: bool
    timeout: float | None


def sch_serial_port_dict_factory() -> dict[vol.Required, vol.Any]:
    """Return a serial port dict.

    usage:

    SCH_SERIAL_PORT = vol.Schema(
        sch_serial_port_dict_factory(), extra=vol.PREVENT_EXTRA
    )
    """

    SCH_SERIAL_PORT_NAME = str

    def NormaliseSerialPort() -> Callable[[str | dict[str, Any]], dict[str, Any]]:
        def normalise_serial_port(node_value: str | dict[str, Any]) -> dict[str, Any]:
            if isinstance(node_value, str):
                return {SZ_PORT_NAME: node_value} | SCH_SERIAL_PORT_CONFIG({})  # type: ignore[no-any-return]
            return node_value

        return normalise_serial_port

    return {  # SCH_SERIAL_PORT_DICT
        vol.Required(SZ_SERIAL_PORT): vol.Any(
            vol.All(
                SCH_SERIAL_PORT_NAME,
                NormaliseSerialPort(),
            ),
            SCH_SERIAL_PORT_CONFIG.extend(
                {vol.Required(SZ_PORT_NAME): SCH_SERIAL_PORT_NAME}
            ),
        )
    }


def extract_serial_port(ser_port_dict: dict[str, Any]) -> tuple[str, PortConfigT]:
    """Extract a serial port, port_config_dict tuple from a sch_serial_port_dict."""
    port_name: str = ser_port_dict.get(SZ_PORT_NAME)  # type: ignore[assignment]
    port_config = {k: v for k, v in ser_port_dict.items() if k != SZ_PORT_NAME}
    return port_name, port_config  # type: ignore[return-value]


#
# 2/4: Dongle (RFPlayer) configuration
SZ_ENABLE_RX: Final = "enable_rx"
SZ_GAP_BETWEEN_WRITES: Final = "gap_between_writes"
SZ_INITIALISATION: Final = "initialisation"
SZ_MAX_QUEUE_SIZE: Final = "max_queue_size"

SCH_DONGLE_DICT = {
    vol.Optional(SZ_ENABLE_RX, default=True): bool,
    vol.Optional(SZ_GAP_BETWEEN_WRITES, default=DEFAULT_GAP_BETWEEN_WRITES): vol.All(
        vol.Coerce(float), vol.Range(min=0.0, max=10.0)
    ),
    vol.Optional(SZ_INITIALISATION, default=[]): [vol.All(str, vol.Length(min=1))],
    vol.Optional(SZ_MAX_QUEUE_SIZE, default=DEFAULT_MAX_QUEUE_SIZE): vol.All(
        int, vol.Range(min=1, max=1000)
    ),
}


#
# 3/4: Bridge (MQTT) configuration
SZ_TOPIC_ROOT: Final = "topic_root"

SCH_TOPIC_ROOT = vol.All(str, vol.Length(min=1), lambda v: v.strip("/"))

SCH_BRIDGE_DICT = {
    vol.Optional(SZ_TOPIC_ROOT, default=DEFAULT_TOPIC_ROOT): SCH_TOPIC_ROOT,
}


#
# 4/4: Registry (sensors & actuators) configuration
SZ_ACTUATORS: Final = "actuators"
SZ_COMMAND: Final = "command"
SZ_ID: Final = "id"
SZ_NAME: Final = "name"
SZ_PROTOCOL: Final = "protocol"
SZ_REF: Final = "ref"
SZ_SENSORS: Final = "sensors"
SZ_TOPIC: Final = "topic"


class SensorConfigT(TypedDict, total=False):
    id: str  # the reference of the reading, e.g. "4-1234"
    name: str
    topic: str
    ref: str


class ActuatorConfigT(TypedDict, total=False):
    name: str
    id: str  # e.g. "A1", or "123456"
    protocol: str
    topic: str
    command: str


SCH_SENSOR = vol.Schema(
    {
        vol.Required(SZ_ID): vol.All(vol.Coerce(str), vol.Match(r"^\d{1,2}-\d+$")),
        vol.Required(SZ_NAME): vol.All(str, vol.Length(min=1)),
        vol.Optional(SZ_TOPIC): vol.All(str, vol.Length(min=1)),
        vol.Optional(SZ_REF): vol.Coerce(str),  # informational only
    },
    extra=vol.PREVENT_EXTRA,
)

SCH_DEVICE_CODE = vol.All(  # A1 to P16, or a numeric id
    vol.Coerce(str), vol.Match(r"^([A-Pa-p](1[0-6]|[1-9])|\d+)$")
)

SCH_ACTUATOR = vol.Schema(
    {
        vol.Required(SZ_NAME): vol.All(str, vol.Length(min=1), vol.Match(r"^[^/#+]+$")),
        vol.Required(SZ_ID): SCH_DEVICE_CODE,
        vol.Required(SZ_PROTOCOL): vol.All(str, vol.Lower, vol.In(PROTOCOL_CODES)),
        vol.Optional(SZ_TOPIC, default=""): str,
        vol.Optional(SZ_COMMAND, default=""): str,  # informational only
    },
    extra=vol.PREVENT_EXTRA,
)

SCH_REGISTRY_DICT = {
    vol.Optional(SZ_SENSORS, default=[]): vol.Any(None, [SCH_SENSOR]),
    vol.Optional(SZ_ACTUATORS, default=[]): vol.Any(None, [SCH_ACTUATOR]),
}


#
# The gateway configuration, all of the above (the engine config has no serial port)
SCH_ENGINE_DICT = SCH_DONGLE_DICT | SCH_BRIDGE_DICT | SCH_REGISTRY_DICT

SCH_ENGINE_CONFIG = vol.Schema(SCH_ENGINE_DICT, extra=vol.PREVENT_EXTRA)

SCH_GATEWAY_CONFIG = vol.Schema(
    sch_serial_port_dict_factory() | SCH_ENGINE_DICT,
    extra=vol.PREVENT_EXTRA,
)


def load_config(
    config: dict[str, Any], schema: vol.Schema = SCH_GATEWAY_CONFIG
) -> dict[str, Any]:
    """Validate (and normalise) a gateway configuration dict.

    Raise ConfigInvalid if it is not valid.
    """

    try:
        result: dict[str, Any] = schema(config)
    except vol.Invalid as err:
        raise exc.ConfigInvalid(f"Invalid configuration: {err}") from err

    # an explicit null list (e.g. 'sensors:' in YAML) is the same as an empty one
    result[SZ_SENSORS] = result[SZ_SENSORS] or []
    result[SZ_ACTUATORS] = result[SZ_ACTUATORS] or []

    _LOGGER.debug("Configuration is valid: %s", result)
    return result
