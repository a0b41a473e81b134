"""Home Assistant select entities for work modes and scenes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence

from goveebridge.entity import (
    Device,
    DeviceRef,
    EntityConfig,
    publish_entity_config,
)
from goveebridge.work_mode import ParsedWorkMode


@dataclass
class SelectConfig:
    """A drop-down list of options; the chosen one goes to the command topic."""

    base: EntityConfig
    command_topic: str
    state_topic: str
    options: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        result = self.base.to_dict()
        result["command_topic"] = self.command_topic
        result["options"] = list(self.options)
        result["state_topic"] = self.state_topic
        return result

    async def publish_config(self, disco_prefix: str, client: Any) -> None:
        await publish_entity_config("select", disco_prefix, client, self.base, self)


def work_mode_select(
    device: DeviceRef, work_modes: ParsedWorkMode, availability_topic: str
) -> SelectConfig:
    """A select listing every work mode of a device."""
    return SelectConfig(
        base=EntityConfig(
            availability_topic=availability_topic,
            unique_id=f"gv2mqtt-{device.safe_id}-workMode",
            name="Mode",
            device=Device.for_device(device),
        ),
        command_topic=f"gv2mqtt/{device.safe_id}/set-work-mode",
        state_topic=f"gv2mqtt/{device.safe_id}/notify-work-mode",
        options=work_modes.get_mode_names(),
    )


def scene_mode_select(
    device: DeviceRef, scenes: Sequence[str], availability_topic: str
) -> Optional[SelectConfig]:
    """A select listing the scenes of a device, or None if it has none."""
    if not scenes:
        return None
    return SelectConfig(
        base=EntityConfig(
            availability_topic=availability_topic,
            unique_id=f"gv2mqtt-{device.safe_id}-mode-scene",
            name="Mode/Scene",
            device=Device.for_device(device),
        ),
        command_topic=f"gv2mqtt/{device.safe_id}/set-mode-scene",
        state_topic=f"gv2mqtt/{device.safe_id}/notify-mode-scene",
        options=list(scenes),
    )


def work_mode_state(
    work_modes: ParsedWorkMode,
    humidifier_work_mode: Optional[int],
    capability_state: Optional[Mapping[str, Any]],
) -> Optional[str]:
    """The name of the current work mode, or None if it cannot be told.

    A work mode remembered for the device wins; otherwise the ``workMode``
    reported in the state of the ``workMode`` capability is used.
    """
    if humidifier_work_mode is not None:
        mode = work_modes.mode_for_value(humidifier_work_mode)
        return mode.name if mode is not None else None

    if capability_state is None:
        return None
    reported = capability_state.get("value")
    if not isinstance(reported, Mapping) or "workMode" not in reported:
        return None
    mode = work_modes.mode_for_value(reported["workMode"])
    return mode.name if mode is not None else None