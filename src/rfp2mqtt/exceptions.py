#!/usr/bin/env python3
"""RFP2MQTT - exceptions within the frame/command/transport layer."""

from __future__ import annotations


class _RfpBaseException(Exception):
    """Base class for all rfp2mqtt exceptions."""

    pass


class RfpException(_RfpBaseException):
    """Base class for all rfp2mqtt exceptions."""

    HINT: None | str = None

    def __init__(self, *args: object):
        super().__init__(*args)
        self.message: str | None = args[0] if args else None  # type: ignore[assignment]

    def __str__(self) -> str:
        if self.message and self.HINT:
            return f"{self.message} (hint: {self.HINT})"
        if self.message:
            return self.message
        if self.HINT:
            return f"Hint: {self.HINT}"
        return ""


class ConfigInvalid(RfpException):
    """The gateway configuration is not valid."""

    HINT = "check the sensors/actuators sections of the configuration"


########################################################################################
# Errors at/below the frame layer, incl. decoding and encoding


class _RfpLowerError(RfpException):
    """A failure in the lower layer (frame, command, dispatcher, transport)."""


class FrameInvalid(_RfpLowerError):
    """The frame is corrupt/not internally consistent, or cannot be decoded."""


class CommandInvalid(_RfpLowerError):
    """The command cannot be encoded for the named actuator."""


########################################################################################
# Errors in the outbound path


class DispatcherError(_RfpLowerError):
    """An error when queuing frames for the dongle."""


class DispatcherQueueFull(DispatcherError):
    """The queue of frames waiting to be written is full."""

    HINT = "the dongle is being sent commands faster than gap_between_writes allows"


class DispatcherClosed(DispatcherError):
    """The dispatcher is stopping, or has stopped, and accepts no more frames."""


class TransportError(_RfpLowerError):
    """An error when reading or writing bytes."""


class TransportSerialError(TransportError):
    """The transport's serial port has thrown an error."""


class BridgeError(_RfpLowerError):
    """The pub/sub bridge failed to publish, or to (un)subscribe."""
