"""Home Assistant MQTT discovery: shared entity configuration and publishing."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Optional, Protocol

from goveebridge.version import govee_version

MODEL = "gv2mqtt"


class _Publisher(Protocol):
    async def publish(self, topic: str, payload: Any) -> None: ...

    async def publish_obj(self, topic: str, obj: Any) -> None: ...


class _Serializable(Protocol):
    def to_dict(self) -> dict[str, Any]: ...


@dataclass(frozen=True)
class DeviceRef:
    """The details of a known device that its entities are described by."""

    sku: str
    name: str
    safe_id: str
    room_name: Optional[str] = None


@dataclass
class Origin:
    name: str = MODEL
    sw_version: str = field(default_factory=govee_version)
    url: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"name": self.name, "sw_version": self.sw_version}
        if self.url is not None:
            result["url"] = self.url
        return result


@dataclass
class Device:
    name: str = ""
    manufacturer: str = ""
    model: str = ""
    sw_version: Optional[str] = None
    suggested_area: Optional[str] = None
    via_device: Optional[str] = None
    identifiers: list[str] = field(default_factory=list)
    connections: list[tuple[str, str]] = field(default_factory=list)

    @classmethod
    def for_device(cls, device: DeviceRef) -> Device:
        return cls(
            name=device.name,
            manufacturer="Govee",
            model=device.sku,
            suggested_area=device.room_name,
            via_device=MODEL,
            identifiers=[f"{MODEL}-{device.safe_id}"],
        )

    @classmethod
    def this_service(cls) -> Device:
        return cls(
            name="Govee to MQTT",
            manufacturer=MODEL,
            model="govee2mqtt",
            sw_version=govee_version(),
            identifiers=[MODEL],
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "manufacturer": self.manufacturer,
            "model": self.model,
        }
        optional = {
            "sw_version": self.sw_version,
            "suggested_area": self.suggested_area,
            "via_device": self.via_device,
        }
        result.update({k: v for k, v in optional.items() if v is not None})
        if self.identifiers:
            result["identifiers"] = list(self.identifiers)
        if self.connections:
            result["connections"] = [list(pair) for pair in self.connections]
        return result


@dataclass
class EntityConfig:
    """Discovery fields common to every entity kind."""

    availability_topic: str
    unique_id: str
    device: Device = field(default_factory=Device)
    name: Optional[str] = None
    device_class: Optional[str] = None
    origin: Origin = field(default_factory=Origin)
    entity_category: Optional[str] = None
    icon: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "availability_topic": self.availability_topic,
            "name": self.name,
        }
        if self.device_class is not None:
            result["device_class"] = self.device_class
        result["origin"] = self.origin.to_dict()
        result["device"] = self.device.to_dict()
        result["unique_id"] = self.unique_id
        if self.entity_category is not None:
            result["entity_category"] = self.entity_category
        if self.icon is not None:
            result["icon"] = self.icon
        return result


class EntityInstance(ABC):
    """Something that is announced to Home Assistant and reports state."""

    @abstractmethod
    async def publish_config(self, disco_prefix: str, client: _Publisher) -> None:
        """Announce this entity's discovery configuration."""

    @abstractmethod
    async def notify_state(self, client: _Publisher) -> None:
        """Publish this entity's current state."""


async def publish_entity_config(
    integration: str,
    disco_prefix: str,
    client: _Publisher,
    base: EntityConfig,
    config: _Serializable,
) -> None:
    topic = f"{disco_prefix}/{integration}/{base.unique_id}/config"
    await client.publish_obj(topic, config.to_dict())


class EntityList:
    """An ordered collection of entities."""

    def __init__(self, entities: Optional[Iterable[EntityInstance]] = None) -> None:
        self._entities: list[EntityInstance] = list(entities or ())

    def add(self, entity: EntityInstance) -> None:
        self._entities.append(entity)

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self) -> Iterator[EntityInstance]:
        return iter(self._entities)

    async def publish_config(
        self, disco_prefix: str, client: _Publisher, delay: float = 0.1
    ) -> None:
        """Announce every entity, pausing so Home Assistant can keep up."""
        for entity in self._entities:
            await entity.publish_config(disco_prefix, client)
            await asyncio.sleep(delay)

    async def notify_state(self, client: _Publisher) -> None:
        for entity in self._entities:
            await entity.notify_state(client)