#!/usr/bin/env python3
"""RFP2MQTT - an RFPlayer to MQTT gateway."""

from __future__ import annotations

from .bridge import Bridge, MqttBridge
from .command import ActuatorCommand, Encoder, device_id_from_code
from .const import SUBSCRIBE_TOPIC, Action, InfoType, SendProtocol
from .dispatcher import Dispatcher
from .exceptions import (
    BridgeError,
    CommandInvalid,
    ConfigInvalid,
    DispatcherClosed,
    DispatcherError,
    DispatcherQueueFull,
    FrameInvalid,
    RfpException,
    TransportError,
    TransportSerialError,
)
from .frame import RawFrame, Reassembler
from .gateway import Gateway, create_gateway
from .reading import Decoder, SensorReading
from .registry import Registry
from .schemas import SCH_GATEWAY_CONFIG, SZ_SERIAL_PORT, load_config
from .transport import PortTransport, Transport
from .version import VERSION

__all__ = [
    "VERSION",
    "Gateway",
    "create_gateway",
    #
    "SCH_GATEWAY_CONFIG",
    "SUBSCRIBE_TOPIC",
    "SZ_SERIAL_PORT",
    "load_config",
    #
    "Action",
    "InfoType",
    "SendProtocol",
    #
    "RawFrame",
    "Reassembler",
    "Decoder",
    "SensorReading",
    "ActuatorCommand",
    "Encoder",
    "device_id_from_code",
    "Registry",
    "Dispatcher",
    #
    "Bridge",
    "MqttBridge",
    "PortTransport",
    "Transport",
    #
    "BridgeError",
    "CommandInvalid",
    "ConfigInvalid",
    "DispatcherClosed",
    "DispatcherError",
    "DispatcherQueueFull",
    "FrameInvalid",
    "RfpException",
    "TransportError",
    "TransportSerialError",
]
