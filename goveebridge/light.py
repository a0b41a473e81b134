"""Home Assistant light entities, using the JSON schema."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence

from goveebridge.entity import (
    Device,
    DeviceRef,
    EntityConfig,
    publish_entity_config,
)

_OFF = {"state": "OFF"}


@dataclass
class LightConfig:
    """Discovery configuration of a light using the JSON schema."""

    base: EntityConfig
    command_topic: str
    state_topic: str
    schema: str = "json"
    optimistic: bool = False
    supported_color_modes: list[str] = field(default_factory=list)
    brightness: bool = False
    brightness_scale: int = 100
    icon: Optional[str] = None
    effect: bool = True
    effect_list: list[str] = field(default_factory=list)
    min_mireds: Optional[int] = None
    max_mireds: Optional[int] = None
    payload_available: str = "online"

    def to_dict(self) -> dict[str, Any]:
        result = self.base.to_dict()
        result["schema"] = self.schema
        result["command_topic"] = self.command_topic
        result["state_topic"] = self.state_topic
        result["optimistic"] = self.optimistic
        result["supported_color_modes"] = list(self.supported_color_modes)
        result["brightness"] = self.brightness
        result["brightness_scale"] = self.brightness_scale
        if self.icon is not None:
            result["icon"] = self.icon
        result["effect"] = self.effect
        if self.effect_list:
            result["effect_list"] = list(self.effect_list)
        if self.min_mireds is not None:
            result["min_mireds"] = self.min_mireds
        if self.max_mireds is not None:
            result["max_mireds"] = self.max_mireds
        result["payload_available"] = self.payload_available
        return result

    async def publish_config(self, disco_prefix: str, client: Any) -> None:
        await publish_entity_config("light", disco_prefix, client, self.base, self)


def light_for_device(
    device: DeviceRef,
    state_topic: str,
    availability_topic: str,
    segment: Optional[int] = None,
    is_light: bool = True,
    is_humidifier: bool = False,
    icon: Optional[str] = None,
    effect_list: Sequence[str] = (),
    supports_rgb: bool = False,
    mired_range: Optional[tuple[int, int]] = None,
    supports_brightness: bool = False,
) -> LightConfig:
    """The light entity of a device, or of one of its segments.

    ``mired_range`` is ``(min_mireds, max_mireds)`` derived from the
    device's colour temperature range; ``icon`` is the icon its model
    suggests. Segments are always optimistic RGB lights with brightness.
    """
    is_segment = segment is not None

    if is_segment:
        command_topic = f"gv2mqtt/light/{device.safe_id}/command/{segment}"
        unique_id = f"gv2mqtt-{device.safe_id}-{segment}"
        name: Optional[str] = f"Segment {segment + 1:03}"
    else:
        command_topic = f"gv2mqtt/light/{device.safe_id}/command"
        unique_id = f"gv2mqtt-{device.safe_id}"
        name = "Night Light" if is_humidifier else None

    color_modes = []
    if is_segment or supports_rgb:
        color_modes.append("rgb")

    min_mireds = max_mireds = None
    if not is_segment and mired_range is not None:
        color_modes.append("color_temp")
        min_mireds, max_mireds = mired_range

    return LightConfig(
        base=EntityConfig(
            availability_topic=availability_topic,
            unique_id=unique_id,
            name=name,
            device=Device.for_device(device),
        ),
        command_topic=command_topic,
        state_topic=state_topic,
        optimistic=is_segment,
        supported_color_modes=color_modes,
        brightness=is_segment or supports_brightness,
        icon=icon if (not is_segment and is_light) else None,
        effect_list=[] if is_segment else list(effect_list),
        min_mireds=min_mireds,
        max_mireds=max_mireds,
    )


def light_state_payload(
    device_state: Optional[Mapping[str, Any]], color_temp: Optional[int] = None
) -> dict[str, Any]:
    """The JSON state of a light.

    ``device_state`` holds ``light_on``, ``kelvin``, ``color`` (with ``r``,
    ``g``, ``b``), ``brightness`` and ``scene``; ``color_temp`` is the
    colour temperature in mireds, needed when ``kelvin`` is not zero.
    """
    if device_state is None or not device_state.get("light_on"):
        return dict(_OFF)

    brightness = device_state.get("brightness")
    scene = device_state.get("scene")
    if not device_state.get("kelvin"):
        color = device_state.get("color") or {}
        return {
            "state": "ON",
            "color_mode": "rgb",
            "color": {
                "r": color.get("r", 0),
                "g": color.get("g", 0),
                "b": color.get("b", 0),
            },
            "brightness": brightness,
            "effect": scene,
        }

    if color_temp is None:
        raise ValueError("a colour temperature in mireds is required")
    return {
        "state": "ON",
        "color_mode": "color_temp",
        "brightness": brightness,
        "color_temp": color_temp,
        "effect": scene,
    }