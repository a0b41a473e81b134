import pytest

from goveebridge.entity import DeviceRef
from goveebridge.light import LightConfig, light_for_device, light_state_payload

DEVICE = DeviceRef(sku="H6000", name="Desk Lamp", safe_id="dev1", room_name="Office")


def make(**kwargs):
    return light_for_device(DEVICE, "gv2mqtt/light/dev1/state", "gv2mqtt/avail", **kwargs)


def test_whole_device_light_topics_and_modes():
    light = make(supports_rgb=True, mired_range=(153, 500), supports_brightness=True,
                 icon="mdi:lightbulb", effect_list=["Forest", "Ocean"])
    assert light.command_topic == "gv2mqtt/light/dev1/command"
    assert light.base.unique_id == "gv2mqtt-dev1"
    assert light.supported_color_modes == ["rgb", "color_temp"]
    assert (light.min_mireds, light.max_mireds) == (153, 500)
    assert light.icon == "mdi:lightbulb"
    assert light.effect_list == ["Forest", "Ocean"]
    assert light.optimistic is False
    assert light.base.name is None


def test_segment_light():
    light = make(segment=0, supports_rgb=False, mired_range=(153, 500),
                 icon="mdi:lightbulb", effect_list=["Forest"])
    assert light.command_topic == "gv2mqtt/light/dev1/command/0"
    assert light.base.unique_id == "gv2mqtt-dev1-0"
    assert light.base.name == "Segment 001"
    assert light.supported_color_modes == ["rgb"]
    assert light.min_mireds is None and light.max_mireds is None
    assert light.effect_list == []
    assert light.icon is None
    assert light.optimistic is True
    assert light.brightness is True


def test_humidifier_night_light_name_and_no_icon():
    light = make(is_light=False, is_humidifier=True, icon="mdi:lightbulb")
    assert light.base.name == "Night Light"
    assert light.icon is None
    assert light.supported_color_modes == []


def test_to_dict_skips_empty_fields():
    data = make().to_dict()
    assert data["schema"] == "json"
    assert data["brightness_scale"] == 100
    assert data["payload_available"] == "online"
    assert data["effect"] is True
    for key in ("effect_list", "min_mireds", "max_mireds", "icon"):
        assert key not in data
    assert data["unique_id"] == "gv2mqtt-dev1"


def test_state_off_when_missing_or_off():
    assert light_state_payload(None) == {"state": "OFF"}
    assert light_state_payload({"light_on": False, "kelvin": 0}) == {"state": "OFF"}


def test_state_rgb():
    state = {"light_on": True, "kelvin": 0, "color": {"r": 1, "g": 2, "b": 3},
             "brightness": 40, "scene": None}
    payload = light_state_payload(state)
    assert payload["color_mode"] == "rgb"
    assert payload["color"] == {"r": 1, "g": 2, "b": 3}
    assert payload["brightness"] == 40
    assert payload["state"] == "ON"


def test_state_color_temp():
    state = {"light_on": True, "kelvin": 4000, "brightness": 70, "scene": "Forest"}
    payload = light_state_payload(state, color_temp=250)
    assert payload["color_mode"] == "color_temp"
    assert payload["color_temp"] == 250
    assert payload["effect"] == "Forest"
    assert "color" not in payload


def test_state_color_temp_requires_mireds():
    with pytest.raises(ValueError):
        light_state_payload({"light_on": True, "kelvin": 4000})


class Recorder:
    def __init__(self):
        self.objs = []

    async def publish(self, topic, payload):
        self.objs.append((topic, payload))

    async def publish_obj(self, topic, obj):
        self.objs.append((topic, obj))


@pytest.mark.asyncio
async def test_publish_config_topic():
    client = Recorder()
    light = make()
    await light.publish_config("homeassistant", client)
    assert client.objs == [("homeassistant/light/gv2mqtt-dev1/config", light.to_dict())]
    assert isinstance(light, LightConfig)