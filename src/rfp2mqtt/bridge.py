#!/usr/bin/env python3
"""RFP2MQTT - The publish/subscribe bridge to/from the message bus (MQTT).

The gateway only requires something that quacks like a Bridge. MqttBridge adapts a
paho-mqtt client that has already been connected (and has its network loop running),
as the connection lifecycle is the responsibility of the host application.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Protocol, TypeAlias

from paho.mqtt import MQTTException, client as mqtt

from . import exceptions as exc
from .const import MQTT_QOS

__all__ = ["Bridge", "MessageHandlerT", "MqttBridge"]

_LOGGER = logging.getLogger(__name__)


# called with: topic, payload; possibly from a thread other than the event loop's
MessageHandlerT: TypeAlias = Callable[[str, bytes], None]


class Bridge(Protocol):
    """A typing.Protocol (i.e. a structural type) of a pub/sub bus adapter."""

    def publish(self, topic: str, payload: str) -> None: ...

    def subscribe(self, topic: str, callback: MessageHandlerT) -> None: ...

    def unsubscribe(self, topic: str) -> None: ...


class MqttBridge:
    """Publish to/subscribe from an MQTT broker via a (connected) paho-mqtt client."""

    def __init__(self, client: mqtt.Client, qos: int = MQTT_QOS) -> None:
        self.client = client
        self._mqtt_qos = qos

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(qos={self._mqtt_qos})"

    def publish(self, topic: str, payload: str) -> None:
        """Publish the payload (non-blocking, the client's loop does the sending)."""

        try:
            info: mqtt.MQTTMessageInfo = self.client.publish(
                topic, payload=payload, qos=self._mqtt_qos
            )
        except (MQTTException, ValueError) as err:
            raise exc.BridgeError(f"Failed to publish to {topic}: {err}") from err

        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise exc.BridgeError(
                f"Failed to publish to {topic}: {mqtt.error_string(info.rc)}"
            )

    def subscribe(self, topic: str, callback: MessageHandlerT) -> None:
        """Subscribe to the topic (which may have wildcards), and route its messages."""

        def on_message(
            client: mqtt.Client, userdata: Any | None, msg: mqtt.MQTTMessage
        ) -> None:
            _LOGGER.debug("Rx: %s %s", msg.topic, msg.payload)
            callback(msg.topic, msg.payload)

        self.client.message_callback_add(topic, on_message)

        rc, _ = self.client.subscribe(topic, qos=self._mqtt_qos)
        if rc != mqtt.MQTT_ERR_SUCCESS:
            self.client.message_callback_remove(topic)
            raise exc.BridgeError(
                f"Failed to subscribe to {topic}: {mqtt.error_string(rc)}"
            )

        _LOGGER.info("Subscribed to: %s", topic)

    def unsubscribe(self, topic: str) -> None:
        self.client.message_callback_remove(topic)
        self.client.unsubscribe(topic)

        _LOGGER.info("Unsubscribed from: %s", topic)
