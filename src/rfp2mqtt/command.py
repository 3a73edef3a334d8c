#!/usr/bin/env python3
"""RFP2MQTT - Construct a command (frames for transmission to the dongle).

Construct a command (a binary frame for transmission), from an actuator's name and a
command token (the payload of an MQTT message), e.g.:

  `home/action/volet_salon` `2`  ->  `ZI 01 0C00 00000B02 10000000 04000000`
"""

from __future__ import annotations

import dataclasses
import logging
import re
from typing import TYPE_CHECKING, Final

from . import exceptions as exc
from .const import (
    ACTION_TOPIC_ROOT,
    GENERIC_ACTIONS,
    HA_ELEC_ACTIONS,
    HA_ELEC_DIM_VALUES,
    OUTBOUND_PAYLOAD_LEN,
    PROTOCOL_CODES,
    RTS_MY_DIM_VALUE,
    RTS_MY_TOKEN,
    RTS_PROTOCOLS,
    SOURCE_DEST_433_868,
    SYNC_MARKER,
    Action,
    SendProtocol,
)
from .frame import RawFrame
from .helpers import hex_dump, u32_to_le

if TYPE_CHECKING:
    from .registry import Registry


__all__ = ["ActuatorCommand", "Encoder"]

_LOGGER = logging.getLogger(__name__)

_DEVICE_CODE_REGEX: Final = re.compile(r"^([A-Pa-p])(1[0-6]|[1-9])$")  # A1-P16
_MAX_DEVICE_ID: Final[int] = 0xFFFFFFFF


def device_id_from_code(code: str) -> int:
    """Return the numeric device id of a device code, e.g. A1 -> 0, B1 -> 16, C2 -> 33.

    A purely numeric code is used as is (e.g. for protocols with 32-bit ids). Raise
    CommandInvalid if the code is invalid.
    """

    if code.isdigit():
        device_id = int(code)
        if device_id > _MAX_DEVICE_ID:
            raise exc.CommandInvalid(f"Device id is out of range: {code}")
        return device_id

    if not (match := _DEVICE_CODE_REGEX.match(code)):
        raise exc.CommandInvalid(f"Device id is invalid: {code!r}")

    letter, number = match.group(1).upper(), int(match.group(2))
    return (ord(letter) - ord("A")) * 16 + number - 1


def actuator_from_topic(topic: str) -> str | None:
    """Return the actuator name of a topic shaped `home/action/<name>`, else None."""

    segments = topic.split("/")
    if len(segments) != 3 or tuple(segments[:2]) != ACTION_TOPIC_ROOT:
        return None
    return segments[2] or None


def ascii_command(text: str) -> bytes:
    """Return the bytes of an ASCII command (e.g. `ZIA++FORMAT BINARY`) for the dongle."""

    try:
        return text.encode("ascii") + b"\x00"
    except UnicodeEncodeError as err:
        raise exc.CommandInvalid(f"Command is not ASCII: {text!r}") from err


@dataclasses.dataclass(frozen=True, kw_only=True)
class ActuatorCommand:
    """A command for an actuator, serialised as a (fixed-length) binary frame.

    `ZI 01 0C00 | frameType cluster protocol action | id[4] | dim burst qualifier rsvd`
    """

    name: str
    protocol: str
    device_id: int
    action: Action
    dim_value: int = 0

    def __str__(self) -> str:
        return (
            f"{self.name} ({self.protocol}): {self.action.name}, "
            f"id={self.device_id}, dim={self.dim_value}"
        )

    def __bytes__(self) -> bytes:
        payload = (
            bytes((0, 0, self.protocol_code, self.action))  # frameType, cluster, ...
            + u32_to_le(self.device_id)
            + bytes((self.dim_value, 0, 0, 0))  # burst, qualifier, reserved
        )
        return (
            SYNC_MARKER
            + bytes((SOURCE_DEST_433_868,))
            + OUTBOUND_PAYLOAD_LEN.to_bytes(2, "little")
            + payload
        )

    @property
    def protocol_code(self) -> int:
        return PROTOCOL_CODES[self.protocol]

    @property
    def frame(self) -> RawFrame:
        return RawFrame(bytes(self))


class Encoder:
    """Encode a command token for a (named) actuator, via the registry."""

    def __init__(self, registry: Registry) -> None:
        self._registry = registry

    def encode(self, name: str, token: str) -> ActuatorCommand:
        """Return the command for the actuator.

        Raise CommandInvalid if the actuator is unknown, or if the token cannot be
        resolved to an action for the actuator's protocol.
        """

        if (protocol := self._registry.actuator_protocol(name)) is None:
            raise exc.CommandInvalid(f"Actuator is unknown: {name}")
        if protocol not in PROTOCOL_CODES:
            raise exc.CommandInvalid(f"Protocol is unknown: {protocol} (for {name})")

        if (code := self._registry.actuator_id(name)) is None:  # shouldn't happen
            raise exc.CommandInvalid(f"Actuator has no device id: {name}")

        if protocol == SendProtocol.X2D_HA_ELEC:
            action = HA_ELEC_ACTIONS.get(token)
            dim_value = HA_ELEC_DIM_VALUES.get(token, 0)
        else:
            action = GENERIC_ACTIONS.get(token)
            dim_value = 0
            if protocol in RTS_PROTOCOLS and token == RTS_MY_TOKEN:
                dim_value = RTS_MY_DIM_VALUE

        if action is None:
            raise exc.CommandInvalid(
                f"Command is unknown: {token!r} (for {name}, protocol {protocol})"
            )

        cmd = ActuatorCommand(
            name=name,
            protocol=protocol,
            device_id=device_id_from_code(code),
            action=action,
            dim_value=dim_value,
        )

        if _LOGGER.isEnabledFor(logging.DEBUG):
            _LOGGER.debug("Encoded: %s\n%s", cmd, hex_dump(bytes(cmd)))
        return cmd
