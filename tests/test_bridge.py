#!/usr/bin/env python3
"""RFP2MQTT - Test the MQTT bridge (with a mocked paho-mqtt client)."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from paho.mqtt import client as mqtt

from rfp2mqtt import exceptions as exc
from rfp2mqtt.bridge import MqttBridge
from rfp2mqtt.const import SUBSCRIBE_TOPIC


@pytest.fixture()
def client() -> MagicMock:
    client = MagicMock(spec=mqtt.Client)
    client.publish.return_value = MagicMock(rc=mqtt.MQTT_ERR_SUCCESS)
    client.subscribe.return_value = (mqtt.MQTT_ERR_SUCCESS, 1)
    return client


def test_bridge_publish(client: MagicMock) -> None:
    bridge = MqttBridge(client)

    bridge.publish("home/salon/th", '{"t": "21.5"}')

    client.publish.assert_called_once_with(
        "home/salon/th", payload='{"t": "21.5"}', qos=2
    )


def test_bridge_publish_qos(client: MagicMock) -> None:
    bridge = MqttBridge(client, qos=1)

    bridge.publish("home/salon/th", "{}")

    assert client.publish.call_args.kwargs["qos"] == 1


def test_bridge_publish_fails(client: MagicMock) -> None:
    bridge = MqttBridge(client)

    client.publish.return_value = MagicMock(rc=mqtt.MQTT_ERR_NO_CONN)
    with pytest.raises(exc.BridgeError):
        bridge.publish("home/salon/th", "{}")

    client.publish.side_effect = ValueError("Invalid topic.")
    with pytest.raises(exc.BridgeError):
        bridge.publish("home/#", "{}")


def test_bridge_subscribe(client: MagicMock) -> None:
    received: list[tuple[str, bytes]] = []
    bridge = MqttBridge(client)

    bridge.subscribe(SUBSCRIBE_TOPIC, lambda t, p: received.append((t, p)))

    client.subscribe.assert_called_once_with(SUBSCRIBE_TOPIC, qos=2)
    topic, on_message = client.message_callback_add.call_args.args
    assert topic == SUBSCRIBE_TOPIC

    msg = SimpleNamespace(topic="home/action/volet", payload=b"1")
    on_message(client, None, msg)

    assert received == [("home/action/volet", b"1")]


def test_bridge_subscribe_fails(client: MagicMock) -> None:
    bridge = MqttBridge(client)

    client.subscribe.return_value = (mqtt.MQTT_ERR_NO_CONN, None)
    with pytest.raises(exc.BridgeError):
        bridge.subscribe(SUBSCRIBE_TOPIC, lambda t, p: None)

    client.message_callback_remove.assert_called_once_with(SUBSCRIBE_TOPIC)


def test_bridge_unsubscribe(client: MagicMock) -> None:
    bridge = MqttBridge(client)

    bridge.subscribe(SUBSCRIBE_TOPIC, lambda t, p: None)
    bridge.unsubscribe(SUBSCRIBE_TOPIC)

    client.message_callback_remove.assert_called_once_with(SUBSCRIBE_TOPIC)
    client.unsubscribe.assert_called_once_with(SUBSCRIBE_TOPIC)
