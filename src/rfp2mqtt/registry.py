#!/usr/bin/env python3
"""RFP2MQTT - the registry of known sensors & actuators.

The registry is loaded once, at start-up, from the (validated) configuration, and is
read-only thereafter. It is owned by the gateway and passed by reference to the
decoder & encoder.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .schemas import (
    SZ_COMMAND,
    SZ_ID,
    SZ_NAME,
    SZ_PROTOCOL,
    SZ_TOPIC,
    ActuatorConfigT,
    SensorConfigT,
)

_LOGGER = logging.getLogger(__name__)


class _Store:
    """A key/value store where the first write of a key wins."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._data: dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def add(self, key: str, value: str) -> bool:
        """Add the key/value pair, and return True, unless the key already exists."""

        if key in self._data:
            _LOGGER.warning(
                "Duplicate key in %s: %s (ignored, keeping: %s)",
                self.name,
                key,
                self._data[key],
            )
            return False

        self._data[key] = value
        return True

    def get(self, key: str) -> str | None:
        return self._data.get(key)


class Registry:
    """The sensors (by reference) and the actuators (by name) known to the gateway."""

    def __init__(self) -> None:
        self._sensor_names = _Store("sensor names")
        self._sensor_topics = _Store("sensor topics")

        self._actuator_ids = _Store("actuator ids")
        self._actuator_topics = _Store("actuator topics")
        self._actuator_commands = _Store("actuator commands")
        self._actuator_protocols = _Store("actuator protocols")

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}"
            f"(sensors={self.sensor_count}, actuators={self.actuator_count})"
        )

    @classmethod
    def from_config(
        cls,
        sensors: Iterable[SensorConfigT] | None = None,
        actuators: Iterable[ActuatorConfigT] | None = None,
    ) -> Registry:
        """Create a registry from the sensors/actuators sections of the configuration.

        Duplicate entries are logged and ignored, the first entry is retained.
        """

        registry = cls()

        for sensor in sensors or []:
            registry.add_sensor(
                sensor[SZ_ID], sensor[SZ_NAME], topic=sensor.get(SZ_TOPIC)
            )
        _LOGGER.info("Number of sensors defined: %s", registry.sensor_count)

        for actuator in actuators or []:
            registry.add_actuator(
                actuator[SZ_NAME],
                actuator[SZ_ID],
                actuator[SZ_PROTOCOL],
                topic=actuator.get(SZ_TOPIC, ""),
                command=actuator.get(SZ_COMMAND, ""),
            )
        _LOGGER.info("Number of actuators defined: %s", registry.actuator_count)

        return registry

    @property
    def sensor_count(self) -> int:
        return len(self._sensor_names)

    @property
    def actuator_count(self) -> int:
        return len(self._actuator_ids)

    def add_sensor(self, sensor_id: str, name: str, topic: str | None = None) -> bool:
        """Add a sensor, return False if it was rejected as a duplicate.

        If it has no topic of its own, the sensor's name is used as its topic.
        """

        _LOGGER.debug("Loading sensor: id=%s, name=%s, topic=%s", sensor_id, name, topic)

        added = self._sensor_names.add(sensor_id, name)
        return self._sensor_topics.add(sensor_id, topic or name) and added

    def add_actuator(
        self,
        name: str,
        device_id: str,
        protocol: str,
        topic: str = "",
        command: str = "",
    ) -> bool:
        """Add an actuator, return False if it was rejected as a duplicate."""

        _LOGGER.debug(
            "Loading actuator: name=%s, id=%s, protocol=%s, topic=%s, command=%s",
            name,
            device_id,
            protocol,
            topic,
            command,
        )

        added = self._actuator_ids.add(name, device_id)
        added = self._actuator_topics.add(name, topic) and added
        added = self._actuator_commands.add(name, command) and added
        return self._actuator_protocols.add(name, protocol.lower()) and added

    def sensor_name(self, sensor_id: str) -> str | None:
        """Return the name of the sensor, or None if it is not known."""
        return self._sensor_names.get(sensor_id)

    def sensor_topic(self, sensor_id: str) -> str | None:
        """Return the topic of the sensor, or None if it is not known."""

        topic = self._sensor_topics.get(sensor_id)
        if topic is None:
            _LOGGER.info("Failed to find sensor id: %s", sensor_id)
        return topic

    def actuator_id(self, name: str) -> str | None:
        """Return the device id code of the actuator (e.g. A1), or None."""
        return self._actuator_ids.get(name)

    def actuator_topic(self, name: str) -> str | None:
        return self._actuator_topics.get(name)

    def actuator_command(self, name: str) -> str | None:
        return self._actuator_commands.get(name)

    def actuator_protocol(self, name: str) -> str | None:
        """Return the protocol of the actuator (e.g. chacon), or None."""
        return self._actuator_protocols.get(name)
