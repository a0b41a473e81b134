"""Interpretation of the ``workMode`` capability reported by the platform API.

A capability is the JSON object the platform API returns for a device, for
example::

    {
        "type": "devices.capabilities.work_mode",
        "instance": "workMode",
        "parameters": {
            "dataType": "STRUCT",
            "fields": [
                {"fieldName": "workMode", "dataType": "ENUM",
                 "options": [{"name": "Normal", "value": 1}]},
                {"fieldName": "modeValue", "dataType": "ENUM",
                 "options": [{"name": "Normal", "range": {"min": 1, "max": 8}}]},
            ],
        },
    }
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping

_OPTION_KEYS = ("name", "value")


def _as_int(value: Any) -> int | None:
    """Return ``value`` if it is a JSON integer, otherwise None."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


def _json_equal(a: Any, b: Any) -> bool:
    """Compare JSON values without treating booleans as numbers."""
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if isinstance(a, list) and isinstance(b, list):
        return len(a) == len(b) and all(_json_equal(x, y) for x, y in zip(a, b))
    if isinstance(a, dict) and isinstance(b, dict):
        return a.keys() == b.keys() and all(_json_equal(a[k], b[k]) for k in a)
    return type(a) is type(b) and a == b or (
        _is_number(a) and _is_number(b) and a == b
    )


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _json_text(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def _struct_field(cap: Mapping[str, Any], name: str) -> Mapping[str, Any] | None:
    params = cap.get("parameters")
    if not isinstance(params, Mapping) or params.get("dataType") != "STRUCT":
        return None
    for struct_field in params.get("fields") or ():
        if isinstance(struct_field, Mapping) and struct_field.get("fieldName") == name:
            return struct_field
    return None


def _enum_options(struct_field: Mapping[str, Any]) -> list[Mapping[str, Any]]:
    if struct_field.get("dataType") != "ENUM":
        return []
    return [opt for opt in struct_field.get("options") or () if isinstance(opt, Mapping)]


def _parse_range(raw: Any) -> range | None:
    if not isinstance(raw, Mapping):
        return None
    low, high = _as_int(raw.get("min")), _as_int(raw.get("max"))
    if low is None or high is None:
        return None
    return range(low, high + 1)


@dataclass
class WorkModeValue:
    """One selectable parameter value of a work mode."""

    value: Any
    name: str | None = None
    computed_label: str = ""


def _parse_mode_options(raw: Any) -> list[WorkModeValue] | None:
    if not isinstance(raw, list):
        return None
    parsed = []
    for item in raw:
        if not isinstance(item, Mapping) or "value" not in item:
            return None
        name = item.get("name")
        if name is not None and not isinstance(name, str):
            return None
        parsed.append(WorkModeValue(value=item["value"], name=name))
    return parsed


@dataclass
class WorkMode:
    """A single work mode and the parameter values it accepts."""

    name: str
    value: Any = None
    default_value: Any = None
    label: str = ""
    values: list[WorkModeValue] = field(default_factory=list)
    value_range: range | None = None

    def add_values(self, opt: Mapping[str, Any]) -> None:
        """Absorb a ``modeValue`` enum option describing this mode's parameters."""
        extras = {k: v for k, v in opt.items() if k not in _OPTION_KEYS}
        self.default_value = extras.get("defaultValue")

        value_range = _parse_range(extras.get("range"))
        if value_range is not None:
            self.value_range = value_range
            return

        options = _parse_mode_options(extras.get("options"))
        if options is None:
            return
        self.values.extend(options)

        contiguous = self.contiguous_value_range()
        if contiguous is not None:
            self.values.clear()
            self.value_range = contiguous
            return

        for v in self.values:
            option_name = v.name if v.name is not None else _json_text(v.value)
            v.computed_label = f"Activate {self.name} Preset {option_name}"

    def effective_label(self) -> str:
        """The label to show, falling back to the mode name."""
        return self.label or self.name

    def resolved_default(self) -> int:
        """The parameter value to use when activating this mode."""
        default = _as_int(self.default_value)
        if default is not None:
            return default
        if self.values:
            first = _as_int(self.values[0].value)
            if first is not None:
                return first
        if self.value_range is not None:
            return self.value_range.start
        return 0

    def contiguous_value_range(self) -> range | None:
        """The values as a contiguous range, or None if they are not one."""
        if self.value_range is not None:
            return self.value_range

        numbers = []
        for v in self.values:
            number = _as_int(v.value)
            if number is None or v.name is not None:
                # Non-numeric or named values are presets, not a slider
                return None
            numbers.append(number)
        if not numbers:
            return None

        numbers.sort()
        low = numbers[0]
        if numbers != list(range(low, low + len(numbers))):
            return None
        return range(low, numbers[-1] + 1)

    def should_show_as_preset(self) -> bool:
        return self.contiguous_value_range() is None and not self.values


@dataclass
class ParsedWorkMode:
    """All work modes of a device, keyed by mode name."""

    modes: dict[str, WorkMode] = field(default_factory=dict)

    def _ordered(self) -> Iterator[WorkMode]:
        return (self.modes[name] for name in sorted(self.modes))

    @classmethod
    def with_capability(cls, cap: Mapping[str, Any]) -> ParsedWorkMode:
        """Parse a ``workMode`` capability object."""
        work_modes = cls()

        wm = _struct_field(cap, "workMode")
        if wm is None:
            raise ValueError(f"workMode not found in {cap!r}")
        for opt in _enum_options(wm):
            work_modes.add(str(opt.get("name", "")), opt.get("value"))

        mv = _struct_field(cap, "modeValue")
        if mv is not None:
            for opt in _enum_options(mv):
                mode = work_modes.modes.get(opt.get("name"))
                if mode is not None:
                    mode.add_values(opt)
        return work_modes

    def add(self, name: str, value: Any) -> None:
        self.modes[name] = WorkMode(name=name, value=value)

    def adjust_for_device(self, sku: str) -> None:
        """Apply per-model label tweaks."""
        if sku in ("H7160", "H7143"):
            if "Manual" in self.modes:
                self.modes["Manual"].label = "Manual: Mist Level"
        elif sku in ("H7131", "H7173"):
            if "gearMode" in self.modes:
                self.modes["gearMode"].label = "Heat"
        else:
            for mode in self.modes.values():
                mode.label = mode.name

    def mode_for_value(self, value: Any) -> WorkMode | None:
        return next((m for m in self._ordered() if _json_equal(m.value, value)), None)

    def mode_by_name(self, name: str) -> WorkMode | None:
        return self.modes.get(name)

    def mode_by_label(self, name: str) -> WorkMode | None:
        return next((m for m in self._ordered() if m.effective_label() == name), None)

    def get_mode_names(self) -> list[str]:
        return sorted(mode.name for mode in self.modes.values())

    def get_mode_labels(self) -> list[str]:
        return sorted(mode.effective_label() for mode in self.modes.values())

    def modes_with_values(self) -> Iterator[WorkMode]:
        return (mode for mode in self._ordered() if mode.values)