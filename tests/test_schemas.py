#!/usr/bin/env python3
"""RFP2MQTT - Test the configuration schemas (as YAML)."""

import pytest
import voluptuous as vol
import yaml

from rfp2mqtt import exceptions as exc
from rfp2mqtt.schemas import (
    SCH_ACTUATOR,
    SCH_GATEWAY_CONFIG,
    SCH_SENSOR,
    extract_serial_port,
    load_config,
)


def no_duplicates_constructor(loader, node, deep=False):
    """Check for duplicate keys."""
    mapping = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in mapping:
            raise yaml.constructor.ConstructorError(
                f"Duplicate key: {key} ('{mapping[key]}' overwrites '{value_node}')"
            )
        value = loader.construct_object(value_node, deep=deep)
        mapping[key] = value
    return loader.construct_mapping(node, deep)


class CheckForDuplicatesLoader(yaml.SafeLoader):
    """Local class to prevent pollution of global yaml.Loader."""

    pass


CheckForDuplicatesLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG, no_duplicates_constructor
)


def _load(config: str) -> dict:
    # cant use yaml.safe_load(config): PyYAML silently swallows duplicate dict keys!
    return load_config(yaml.load(config, CheckForDuplicatesLoader))


CONFIG_GOOD = """
    serial_port:
      port_name: /dev/serial/by-id/usb-GCE_Electronics_RFPLAYER-if00-port0
      baudrate: 115200
    topic_root: rfp2mqtt
    gap_between_writes: 0.5
    initialisation:
      - ZIA++FORMAT BINARY
      - ZIA++RECEIVER + *
    sensors:
      - id: 4-4196925443
        name: salon
        topic: home/salon/th
      - id: 2-4040404
        name: porte
        ref: contact de porte
    actuators:
      - name: volet
        id: B1
        protocol: RTS
        topic: home/volet
        command: "0: close, 1: open, 2: my"
      - name: prise
        id: A1
        protocol: chacon
"""

CONFIG_BAD = (
    """
    #  required key not provided @ data['serial_port']
    topic_root: rfp2mqtt
    """,
    """
    serial_port: /dev/ttyUSB0
    other_key: null  # extra keys not allowed
    """,
    """
    serial_port: /dev/ttyUSB0
    gap_between_writes: 20  # value must be at most 10.0
    """,
    """
    serial_port: /dev/ttyUSB0
    max_queue_size: 0  # value must be at least 1
    """,
    """
    serial_port:
      port_name: /dev/ttyUSB0
      baudrate: 9600  # not a valid value
    """,
    """
    serial_port: /dev/ttyUSB0
    sensors:
      - id: salon  # does not match regular expression
        name: salon
    """,
    """
    serial_port: /dev/ttyUSB0
    actuators:
      - name: volet
        id: B1
        protocol: zwave  # value must be one of [...]
    """,
    """
    serial_port: /dev/ttyUSB0
    actuators:
      - name: volet
        id: A17  # does not match regular expression (A1 to P16)
        protocol: rts
    """,
    """
    serial_port: /dev/ttyUSB0
    actuators:
      - name: volet
        id: B1
        protocol: rts
        protocol: dio  # duplicate key
    """,
)


def test_config_good() -> None:
    config = _load(CONFIG_GOOD)

    assert config["topic_root"] == "rfp2mqtt"
    assert config["max_queue_size"] == 100  # default
    assert config["enable_rx"] is True  # default
    assert config["initialisation"] == ["ZIA++FORMAT BINARY", "ZIA++RECEIVER + *"]
    assert config["sensors"][0]["id"] == "4-4196925443"
    assert config["actuators"][0]["protocol"] == "rts"  # lower case
    assert config["actuators"][1]["topic"] == ""  # default

    port_name, port_config = extract_serial_port(config["serial_port"])
    assert port_name.endswith("RFPLAYER-if00-port0")
    assert port_config == {"baudrate": 115200, "rtscts": False, "timeout": 0}


def test_config_minimal() -> None:
    config = _load(
        """
        serial_port: /dev/ttyUSB0
        sensors:
        actuators:
        """
    )

    assert config["serial_port"]["port_name"] == "/dev/ttyUSB0"
    assert config["serial_port"]["baudrate"] == 115200
    assert config["sensors"] == []
    assert config["actuators"] == []
    assert config["gap_between_writes"] == 0.5


@pytest.mark.parametrize("index", range(len(CONFIG_BAD)))
def test_config_bad(index: int) -> None:
    with pytest.raises((exc.ConfigInvalid, yaml.YAMLError)):
        _load(CONFIG_BAD[index])


def test_config_invalid_names_key() -> None:
    with pytest.raises(exc.ConfigInvalid) as excinfo:
        load_config({})

    assert "serial_port" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, vol.Invalid)


@pytest.mark.parametrize("device_id", ["A1", "p16", "123456", 123456])
def test_actuator_id_good(device_id: str | int) -> None:
    result = SCH_ACTUATOR({"name": "volet", "id": device_id, "protocol": "rts"})

    assert result["id"] == str(device_id)


@pytest.mark.parametrize("device_id", ["Z1", "A0", "A17", "P99", "A123", "A-1", ""])
def test_actuator_id_bad(device_id: str) -> None:
    with pytest.raises(vol.Invalid):
        SCH_ACTUATOR({"name": "volet", "id": device_id, "protocol": "rts"})


@pytest.mark.parametrize("name", ["home/volet", "volet#", "+", ""])
def test_actuator_name_bad(name: str) -> None:
    with pytest.raises(vol.Invalid):
        SCH_ACTUATOR({"name": name, "id": "A1", "protocol": "rts"})


def test_sensor_schema() -> None:
    assert SCH_SENSOR({"id": "4-123", "name": "salon"}) == {
        "id": "4-123",
        "name": "salon",
    }

    with pytest.raises(vol.Invalid):
        SCH_SENSOR({"id": "4-123"})  # required key not provided


def test_gateway_schema_serial_port() -> None:
    result = SCH_GATEWAY_CONFIG({"serial_port": "rfc2217://localhost:5001"})

    assert result["serial_port"] == {
        "port_name": "rfc2217://localhost:5001",
        "baudrate": 115200,
        "rtscts": False,
        "timeout": 0,
    }
