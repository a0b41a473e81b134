"""Home Assistant number entities, used for work mode parameters."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from goveebridge.entity import (
    Device,
    DeviceRef,
    EntityConfig,
    publish_entity_config,
)

_INTEGER = re.compile(r"[+-]?[0-9]+")


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


def _same_json(a: Any, b: Any) -> bool:
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    return a == b


def _parse_int(text: Union[str, bytes], what: str) -> int:
    if isinstance(text, bytes):
        text = text.decode("utf-8")
    if not _INTEGER.fullmatch(text):
        raise ValueError(f"invalid {what}: {text!r}")
    return int(text)


@dataclass
class NumberConfig:
    base: EntityConfig
    command_topic: str
    state_topic: Optional[str] = None
    min: Optional[float] = None
    max: Optional[float] = None
    step: float = 1.0
    unit_of_measurement: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        result = self.base.to_dict()
        result["command_topic"] = self.command_topic
        if self.state_topic is not None:
            result["state_topic"] = self.state_topic
        if self.min is not None:
            result["min"] = self.min
        if self.max is not None:
            result["max"] = self.max
        result["step"] = self.step
        if self.unit_of_measurement is not None:
            result["unit_of_measurement"] = self.unit_of_measurement
        return result

    async def publish_config(self, disco_prefix: str, client: Any) -> None:
        await publish_entity_config("number", disco_prefix, client, self.base, self)

    async def notify_state(self, client: Any, value: str) -> None:
        if self.state_topic is None:
            raise ValueError("number has no state_topic")
        await client.publish(self.state_topic, value)


def work_mode_number(
    device: DeviceRef,
    label: str,
    safe_mode_name: str,
    work_mode: Any,
    value_range: Optional[range],
    availability_topic: str,
) -> NumberConfig:
    """A slider for the parameter of one work mode."""
    mode_num = _as_int(work_mode)
    mode_text = str(mode_num) if mode_num is not None else "work-mode-was-not-int"
    return NumberConfig(
        base=EntityConfig(
            availability_topic=availability_topic,
            unique_id=f"gv2mqtt-{device.safe_id}-{safe_mode_name}-number",
            name=label,
            device=Device.for_device(device),
        ),
        command_topic=(
            f"gv2mqtt/number/{device.safe_id}/command/{safe_mode_name}/{mode_text}"
        ),
        state_topic=f"gv2mqtt/number/{device.safe_id}/state/{safe_mode_name}",
        min=float(value_range.start) if value_range is not None else 0.0,
        max=float(value_range.stop - 1) if value_range is not None else 255.0,
        step=1.0,
    )


def work_mode_number_state(
    capability_state: Optional[Mapping[str, Any]],
    work_mode: Any,
    param_by_mode: Mapping[int, int],
) -> Optional[str]:
    """The value to report for a work mode's number, or None if unknown.

    ``capability_state`` is the reported state of the ``workMode``
    capability; ``param_by_mode`` holds parameters remembered per mode.
    """
    if capability_state is not None:
        reported = capability_state.get("value")
        if isinstance(reported, Mapping) and "workMode" in reported:
            if _same_json(reported["workMode"], work_mode):
                number = _as_int(reported.get("modeValue"))
                if number is not None:
                    return str(number)

    mode_num = _as_int(work_mode)
    if mode_num is not None:
        param = param_by_mode.get(mode_num & 0xFF)
        if param is not None:
            return str(param)
    return None


def parse_number_command(
    work_mode: Union[str, bytes], payload: Union[str, bytes]
) -> tuple[int, int]:
    """Parse a number command into ``(work_mode, value)``."""
    value = _parse_int(payload, "number payload")
    mode = _parse_int(work_mode, "work mode")
    return mode, value