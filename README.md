# goveebridge

Building blocks for bridging Govee smart-home devices to Home Assistant over
MQTT:

- `goveebridge.work_mode`: turns a device's `workMode` capability (the JSON
  object the platform API reports) into named modes, value ranges and presets.
- `goveebridge.cache`: a small SQLite-backed cache with soft and hard TTLs,
  negative caching and stale reads on failure.
- `goveebridge.version`: the version tag the service reports.
- `goveebridge.entity`, `goveebridge.button`, `goveebridge.number`,
  `goveebridge.select`, `goveebridge.light`: Home Assistant discovery
  configuration objects that serialise to discovery payloads, plus helpers
  that compute state payloads.

## Installation

```
pip install goveebridge
```

## Work modes

```python
from goveebridge.work_mode import ParsedWorkMode

capability = {
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

modes = ParsedWorkMode.with_capability(capability)
modes.adjust_for_device("H7160")
normal = modes.mode_by_name("Normal")
assert normal.contiguous_value_range() == range(1, 9)
assert not normal.should_show_as_preset()
assert normal.resolved_default() == 1
```

`with_capability` raises `ValueError` when there is no `workMode` field.
`adjust_for_device` relabels `Manual` for the H7160 and H7143, `gearMode` for
the H7131 and H7173, and otherwise sets every label to the mode name. Modes
whose values are neither a range nor contiguous numbers get one
`WorkModeValue` per preset, labelled `Activate <mode> Preset <name>`.
Lookups: `mode_by_name`, `mode_by_label`, `mode_for_value`,
`get_mode_names`, `get_mode_labels`, `modes_with_values`.

## Caching

```python
from datetime import timedelta
from goveebridge.cache import CacheComputeResult, CacheGetOptions, cache_get

async def fetch():
    return CacheComputeResult({"devices": []})

options = CacheGetOptions(
    key="device-list",
    topic="platform",
    soft_ttl=timedelta(minutes=15),
    hard_ttl=timedelta(days=1),
    negative_ttl=timedelta(minutes=1),
    allow_stale=True,
)
result = await cache_get(options, fetch)
```

`compute` is only awaited when no unexpired entry exists. A
`CacheComputeResult` may carry its own `ttl`, which replaces `soft_ttl`.
When computing fails the error text is stored for `negative_ttl` and
`CachedError` is raised; with `allow_stale` and a previous entry, that entry
is kept and its result returned (or its error raised again). Entries are
dropped from the database once `hard_ttl` has passed.

The database is `govee2mqtt-cache.sqlite` in the user cache directory, or in
the directory named by `GOVEE_CACHE_DIR`. `get_cache()` returns the shared
`Cache`, `purge_cache()` deletes the file and opens a fresh one, and
`invalidate_key(topic, key)` drops a single entry. `Cache` can also be used
directly with `get`, `put`, `delete` and `close`, or as a context manager.

## Discovery entities

Entities are built from a `DeviceRef` (SKU, display name, topic-safe id and
optional room):

```python
from goveebridge.entity import DeviceRef, EntityList
from goveebridge.button import ButtonConfig

device = DeviceRef(sku="H6159", name="Desk Lamp", safe_id="AA_BB_CC", room_name="Office")
button = ButtonConfig.request_platform_data_for_device(device, "gv2mqtt/availability")
button.to_dict()["command_topic"]   # "gv2mqtt/AA_BB_CC/request-platform-data"

entities = EntityList([button])
await entities.publish_config("homeassistant", client)
```

`publish_config` sends `to_dict()` to `<prefix>/<integration>/<unique_id>/config`
through `client.publish_obj(topic, obj)`; state goes through
`client.publish(topic, payload)`. `EntityList.publish_config` pauses `delay`
seconds (0.1 by default) between entities.

Available configurations and helpers:

- `goveebridge.button`: `ButtonConfig` (`for_capability`, `global_button`,
  `activate_work_mode_preset`, `request_platform_data_for_device`),
  `SceneConfig`, `CoverConfig`, `SwitchConfig.for_capability`, and
  `switch_state_payload(instance, power_on, capability_state)`.
- `goveebridge.number`: `NumberConfig`, `work_mode_number(...)` (range 0–255
  when none is known), `work_mode_number_state(...)` and
  `parse_number_command(work_mode, payload)`, which returns
  `(work_mode, value)` or raises `ValueError`.
- `goveebridge.select`: `SelectConfig`, `work_mode_select`,
  `scene_mode_select` (None when there are no scenes) and `work_mode_state`.
- `goveebridge.light`: `LightConfig`, `light_for_device(...)` for whole
  devices and segments, and `light_state_payload(device_state, color_temp)`.

`Origin` and `Device.this_service()` report `govee_version()`.

## Version

`goveebridge.version.govee_version()` is resolved once: the `GOVEE_CI_TAG`
environment variable, else the contents of `.tag` in the working directory,
else the date and short hash of the current git commit from `git show`.
`resolve_ci_tag(env, tag_file)` performs the same lookup with the given
environment and tag file.

## What this package does not do

It holds no MQTT connection and no service loop: publishing goes through a
client object you supply. It does not talk to Govee devices or APIs, has no
device state store, builds no sensor or humidifier entities, and provides no
command-line program.

## Running the tests

```
pip install goveebridge[test]
pytest
```