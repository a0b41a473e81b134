import pytest

from goveebridge.entity import DeviceRef
from goveebridge.select import (
    SelectConfig,
    scene_mode_select,
    work_mode_select,
    work_mode_state,
)
from goveebridge.work_mode import ParsedWorkMode

AVAIL = "gv2mqtt/availability"


class RecordingClient:
    def __init__(self):
        self.published = []
        self.objects = []

    async def publish(self, topic, payload):
        self.published.append((topic, payload))

    async def publish_obj(self, topic, obj):
        self.objects.append((topic, obj))


@pytest.fixture
def device():
    return DeviceRef(sku="H7160", name="Humidifier", safe_id="dev1", room_name="Office")


@pytest.fixture
def modes():
    wm = ParsedWorkMode()
    wm.add("Manual", 1)
    wm.add("Auto", 3)
    wm.add("Custom", 2)
    return wm


def test_work_mode_select_lists_sorted_names(device, modes):
    cfg = work_mode_select(device, modes, AVAIL)
    assert cfg.options == ["Auto", "Custom", "Manual"]
    assert cfg.base.name == "Mode"
    assert cfg.base.unique_id == f"gv2mqtt-{device.safe_id}-workMode"
    assert cfg.command_topic == f"gv2mqtt/{device.safe_id}/set-work-mode"
    assert cfg.state_topic == f"gv2mqtt/{device.safe_id}/notify-work-mode"


def test_scene_mode_select_none_without_scenes(device):
    assert scene_mode_select(device, [], AVAIL) is None


def test_scene_mode_select_keeps_scene_order(device):
    cfg = scene_mode_select(device, ["Sunrise", "Forest"], AVAIL)
    assert cfg.options == ["Sunrise", "Forest"]
    assert cfg.base.name == "Mode/Scene"
    assert cfg.command_topic == f"gv2mqtt/{device.safe_id}/set-mode-scene"


def test_to_dict_fields(device, modes):
    d = work_mode_select(device, modes, AVAIL).to_dict()
    assert d["options"] == ["Auto", "Custom", "Manual"]
    assert d["availability_topic"] == AVAIL
    assert d["device"]["model"] == "H7160"
    assert d["device"]["suggested_area"] == "Office"


def test_work_mode_state_prefers_remembered_mode(modes):
    state = {"value": {"workMode": 1}}
    assert work_mode_state(modes, 3, state) == "Auto"


def test_work_mode_state_from_capability(modes):
    assert work_mode_state(modes, None, {"value": {"workMode": 1}}) == "Manual"


@pytest.mark.parametrize(
    "remembered, state",
    [(9, None), (None, None), (None, {"value": {"workMode": 9}}), (None, {"value": 1})],
)
def test_work_mode_state_unknown(modes, remembered, state):
    assert work_mode_state(modes, remembered, state) is None


@pytest.mark.asyncio
async def test_publish_config(device, modes):
    cfg = work_mode_select(device, modes, AVAIL)
    client = RecordingClient()
    await cfg.publish_config("homeassistant", client)
    assert client.objects == [
        (f"homeassistant/select/{cfg.base.unique_id}/config", cfg.to_dict())
    ]


def test_select_config_default_options(device):
    cfg = SelectConfig(
        base=work_mode_select(device, ParsedWorkMode(), AVAIL).base,
        command_topic="c",
        state_topic="s",
    )
    assert cfg.to_dict()["options"] == []