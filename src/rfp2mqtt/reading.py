#!/usr/bin/env python3
"""RFP2MQTT - Decode a binary frame into a sensor reading (payload into JSON)."""

from __future__ import annotations

import dataclasses
import json
import logging
from datetime import datetime as dt
from typing import TYPE_CHECKING

from .const import (
    ASCII_CONTAINER_MASK,
    DEFAULT_TOPIC_ROOT,
    INFO_TYPE_FAMILY,
    INFO_TYPE_TOPIC_SUFFIX,
    OFFSET_INFOS,
    SZ_NAME,
    SZ_REFERENCE,
    SZ_SUBTYPE,
    SZ_TIMECODE,
    InfoType,
)
from .helpers import dt_now, rfc3339
from .parsers import parse_infos, subtype

if TYPE_CHECKING:
    from .frame import RawFrame
    from .registry import Registry


__all__ = ["Decoder", "SensorReading"]

_LOGGER = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True, kw_only=True)
class SensorReading:
    """A reading decoded from a binary frame, ready to be published."""

    info_type: InfoType
    reference: str  # "<infoType>-<id>", e.g. "4-39690"
    subtype: str
    measurements: dict[str, str]
    topic: str
    name: str | None = None  # the sensor's name, if known to the registry

    rf_level: int = 0
    floor_noise: int = 0
    rf_quality: int = 0
    protocol: int = 0

    dtm: dt = dataclasses.field(default_factory=dt_now)

    def __str__(self) -> str:
        return f"{self.reference} ({self.family}) {self.measurements} -> {self.topic}"

    @property
    def family(self) -> str:
        """Return the family of the reading, e.g. VISONIC, OREGON, X2D."""
        return INFO_TYPE_FAMILY[self.info_type]

    @property
    def short_name(self) -> str:
        """Return the 2nd segment of the topic, or all of the topic if it has none."""

        segments = self.topic.split("/")
        return segments[1] if len(segments) > 1 else self.topic

    def as_dict(self) -> dict[str, str]:
        return (
            {
                SZ_TIMECODE: rfc3339(self.dtm),
                SZ_NAME: self.short_name,
                SZ_REFERENCE: self.reference,
            }
            | self.measurements
            | {SZ_SUBTYPE: self.subtype}
        )

    def as_json(self) -> str:
        """Return the reading as the JSON payload of an MQTT message."""
        return json.dumps(self.as_dict())


class Decoder:
    """Decode binary frames into readings, resolving their topics via the registry."""

    def __init__(self, registry: Registry, topic_root: str = DEFAULT_TOPIC_ROOT) -> None:
        self._registry = registry
        self._topic_root = topic_root

    def decode(self, frame: RawFrame) -> SensorReading | None:
        """Return a reading from the frame, or None if the frame has no reading.

        Raise FrameInvalid if the frame is too short for its infoType.
        """

        if frame.source_dest & ASCII_CONTAINER_MASK:  # e.g. a reply to a command
            _LOGGER.info("Rx (ascii): %r", frame.payload)
            return None

        _LOGGER.debug(
            "RFLevel=%s, FloorNoise=%s, RFQuality=%s, Protocol=%s, InfosType=%s",
            frame.rf_level,
            frame.floor_noise,
            frame.rf_quality,
            frame.protocol,
            frame.info_type,
        )

        infos = bytes(frame)[OFFSET_INFOS:]
        if (result := parse_infos(frame.info_type, infos)) is None:
            return None

        info_type = InfoType(frame.info_type)
        device_id, measurements = result
        reference = f"{frame.info_type}-{device_id}"

        topic = self._registry.sensor_topic(reference)
        if topic is None:
            suffix = INFO_TYPE_TOPIC_SUFFIX[info_type]
            topic = f"{self._topic_root}/{reference}/{suffix}"

        reading = SensorReading(
            info_type=info_type,
            reference=reference,
            subtype=str(subtype(infos)),
            measurements=measurements,
            topic=topic,
            name=self._registry.sensor_name(reference),
            rf_level=frame.rf_level,
            floor_noise=frame.floor_noise,
            rf_quality=frame.rf_quality,
            protocol=frame.protocol,
        )

        _LOGGER.debug("Rx: %s", reading)
        return reading
