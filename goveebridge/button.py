"""Home Assistant button, scene, cover and switch entities."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from goveebridge.entity import (
    Device,
    DeviceRef,
    EntityConfig,
    EntityInstance,
    publish_entity_config,
)

log = logging.getLogger(__name__)

POWER_SWITCH = "powerSwitch"


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


@dataclass
class ButtonConfig(EntityInstance):
    """A push button; pressing it publishes ``payload_press`` to the command topic."""

    base: EntityConfig
    command_topic: str
    payload_press: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        result = self.base.to_dict()
        result["command_topic"] = self.command_topic
        if self.payload_press is not None:
            result["payload_press"] = self.payload_press
        return result

    @classmethod
    def for_capability(
        cls, device: DeviceRef, instance: str, name: str, availability_topic: str
    ) -> ButtonConfig:
        return cls(
            base=EntityConfig(
                availability_topic=availability_topic,
                unique_id=f"gv2mqtt-{device.safe_id}-{instance}",
                name=name,
                device=Device.for_device(device),
            ),
            command_topic=f"gv2mqtt/switch/{device.safe_id}/command/{instance}",
        )

    @classmethod
    def global_button(
        cls, name: str, safe_name: str, topic: str, availability_topic: str
    ) -> ButtonConfig:
        """A button that belongs to the service itself rather than a device."""
        return cls(
            base=EntityConfig(
                availability_topic=availability_topic,
                unique_id=f"global-{safe_name}",
                name=name,
                device=Device.this_service(),
            ),
            command_topic=topic,
        )

    @classmethod
    def activate_work_mode_preset(
        cls,
        device: DeviceRef,
        name: str,
        safe_mode_name: str,
        mode_num: int,
        value: int,
        availability_topic: str,
    ) -> ButtonConfig:
        return cls(
            base=EntityConfig(
                availability_topic=availability_topic,
                unique_id=(
                    f"gv2mqtt-{device.safe_id}-preset-{safe_mode_name}-{mode_num}-{value}"
                ),
                name=name,
                device=Device.for_device(device),
            ),
            command_topic=(
                f"gv2mqtt/number/{device.safe_id}/command/{safe_mode_name}/{mode_num}"
            ),
            payload_press=str(value),
        )

    @classmethod
    def request_platform_data_for_device(
        cls, device: DeviceRef, availability_topic: str
    ) -> ButtonConfig:
        return cls(
            base=EntityConfig(
                availability_topic=availability_topic,
                unique_id=f"gv2mqtt-{device.safe_id}-request-platform-data",
                name="Request Platform API State",
                entity_category="diagnostic",
                device=Device.for_device(device),
            ),
            command_topic=f"gv2mqtt/{device.safe_id}/request-platform-data",
        )

    async def publish_config(self, disco_prefix: str, client: Any) -> None:
        await publish_entity_config("button", disco_prefix, client, self.base, self)

    async def notify_state(self, client: Any) -> None:
        """Buttons have no state."""


@dataclass
class SceneConfig(EntityInstance):
    base: EntityConfig
    command_topic: str
    payload_on: str

    def to_dict(self) -> dict[str, Any]:
        result = self.base.to_dict()
        result["command_topic"] = self.command_topic
        result["payload_on"] = self.payload_on
        return result

    async def publish_config(self, disco_prefix: str, client: Any) -> None:
        await publish_entity_config("scene", disco_prefix, client, self.base, self)

    async def notify_state(self, client: Any) -> None:
        """Scenes have no state."""


@dataclass
class CoverConfig:
    base: EntityConfig
    state_topic: str
    position_topic: str
    set_position_topic: str
    command_topic: str

    def to_dict(self) -> dict[str, Any]:
        result = self.base.to_dict()
        result.update(
            state_topic=self.state_topic,
            position_topic=self.position_topic,
            set_position_topic=self.set_position_topic,
            command_topic=self.command_topic,
        )
        return result


@dataclass
class SwitchConfig:
    base: EntityConfig
    command_topic: str
    state_topic: str

    def to_dict(self) -> dict[str, Any]:
        result = self.base.to_dict()
        result["command_topic"] = self.command_topic
        result["state_topic"] = self.state_topic
        return result

    @classmethod
    def for_capability(
        cls,
        device: DeviceRef,
        instance: str,
        name: str,
        state_topic: str,
        availability_topic: str,
    ) -> SwitchConfig:
        return cls(
            base=EntityConfig(
                availability_topic=availability_topic,
                unique_id=f"gv2mqtt-{device.safe_id}-{instance}",
                name=name,
                device=Device.for_device(device),
            ),
            command_topic=f"gv2mqtt/switch/{device.safe_id}/command/{instance}",
            state_topic=state_topic,
        )

    async def publish_config(self, disco_prefix: str, client: Any) -> None:
        await publish_entity_config("switch", disco_prefix, client, self.base, self)


def switch_state_payload(
    instance: str,
    power_on: Optional[bool],
    capability_state: Optional[Mapping[str, Any]],
) -> Optional[str]:
    """The ON/OFF payload for a switch, or None if nothing should be published.

    ``power_on`` is the device's overall power state, used for the
    ``powerSwitch`` instance; ``capability_state`` is the reported state
    object of the capability for any other instance.
    """
    if instance == POWER_SWITCH:
        if power_on is None:
            return None
        return "ON" if power_on else "OFF"

    if capability_state is None:
        log.debug("no state reported for switch %s", instance)
        return None

    value = capability_state.get("value")
    number = _as_int(value)
    if number is not None:
        return "ON" if number != 0 else "OFF"
    if value == "" and not isinstance(value, bool):
        log.debug("ignoring empty string state for switch %s", instance)
    else:
        log.warning("switch %s: unhandled state %r", instance, capability_state)
    return None