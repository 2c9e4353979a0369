"""测试目标设备解析。"""

import unittest

from home_control.config import PipelineConfig
from home_control.models import CommandDescriptor, DeviceRecord, DirectorySnapshot, ExecutionOutcome, Zone
from home_control.selection import prefer_lights, select_by_ids, select_targets


def _snapshot():
    zones = [Zone("z-living", "Living Room"), Zone("z-kitchen", "Kitchen")]
    devices = [
        DeviceRecord("l1", "Ceiling Light", "z-living", "light", capabilities={"onoff", "dim"}),
        DeviceRecord("l2", "Floor Lamp", "z-living", "light", capabilities={"onoff"}),
        DeviceRecord("s1", "Sonos", "z-living", "speaker", capabilities={"speaker_playing"}),
        DeviceRecord("tv1", "TV", "z-living", "tv", capabilities={"onoff"}),
        DeviceRecord("k1", "Coffee Machine", "z-kitchen", "socket", capabilities={"onoff"}),
        DeviceRecord("t1", "Thermostat", "z-kitchen", "thermostat", capabilities={"target_temperature"}),
    ]
    return DirectorySnapshot.from_lists(zones, devices)


def _ids(selection):
    return [entry.id if not isinstance(entry, ExecutionOutcome) else entry.device_id for entry in selection.entries]


class TestSelectByRoom(unittest.IsolatedAsyncioTestCase):
    """测试房间目标。"""

    async def test_generic_room_command_prefers_lights(self):
        selection = await select_targets(
            CommandDescriptor("turn_on", room="living room"), _snapshot(), "en"
        )
        self.assertIsNone(selection.error)
        self.assertEqual([device.id for device in selection.writable], ["l1", "l2"])
        self.assertEqual(selection.room_match.match, "Living Room")

    async def test_light_preference_disabled(self):
        config = PipelineConfig(light_preference_ratio=None)
        selection = await select_targets(
            CommandDescriptor("turn_on", room="all"), _snapshot(), "en", config=config
        )
        self.assertEqual(_ids(selection), ["l1", "l2", "s1", "tv1", "k1"])
        self.assertIsNone(selection.room_match)

    async def test_filter_reports_unsupported_devices(self):
        selection = await select_targets(
            CommandDescriptor("dim", room="Living Room", device_filter="light"), _snapshot(), "en"
        )
        self.assertEqual([device.id for device in selection.writable], ["l1"])
        outcome = selection.entries[1]
        self.assertEqual(outcome.status, "unsupported")
        self.assertEqual(outcome.message, "does not support dim")

    async def test_no_capable_device(self):
        selection = await select_targets(
            CommandDescriptor("turn_on", room="Kitchen", device_filter="thermostat"), _snapshot(), "en"
        )
        self.assertEqual(selection.entries, [])
        self.assertEqual(selection.error.kind, "validation")
        self.assertEqual(
            selection.error.message,
            'No devices with required capabilities found in room "Kitchen" for command "turn_on".',
        )

    async def test_unknown_room(self):
        selection = await select_targets(CommandDescriptor("turn_on", room="Attic"), _snapshot(), "en")
        self.assertEqual(selection.error.kind, "no_match")
        self.assertEqual(
            selection.error.message,
            'No room matching "Attic" found. Available rooms: Living Room, Kitchen',
        )
        self.assertEqual(selection.error.candidates, ["Living Room", "Kitchen"])

    async def test_unknown_device_filter(self):
        selection = await select_targets(
            CommandDescriptor("turn_on", room="Kitchen", device_filter="xyzzy"), _snapshot(), "en"
        )
        self.assertEqual(selection.error.message, 'Unknown device type "xyzzy".')

    async def test_semantic_room(self):
        async def oracle(query, candidates):
            return {"match": "Kitchen", "confidence": 0.9}

        selection = await select_targets(
            CommandDescriptor("turn_on", room="where I cook"), _snapshot(), "en", oracle
        )
        self.assertEqual(_ids(selection), ["k1"])
        self.assertEqual(selection.room_match.method, "semantic")

    async def test_missing_target(self):
        selection = await select_targets(CommandDescriptor("turn_on"), _snapshot(), "en")
        self.assertEqual(selection.error.kind, "validation")


class TestSelectByIds(unittest.TestCase):
    """测试设备 ID 目标。"""

    def test_unknown_duplicate_and_unsupported(self):
        selection = select_by_ids(["l1", "missing", "l1", "s1"], "dim", _snapshot())
        self.assertEqual(_ids(selection), ["l1", "missing", "s1"])
        self.assertEqual(selection.entries[1].message, "device not found")
        self.assertEqual(selection.entries[2].status, "unsupported")

    def test_unavailable_device(self):
        snapshot = _snapshot()
        snapshot.devices["l2"].available = False
        selection = select_by_ids(["l2"], "turn_on", snapshot)
        self.assertEqual(selection.writable, [])
        self.assertEqual(selection.entries[0].message, "device is unavailable")


class TestPreferLights(unittest.TestCase):
    """测试灯光优先策略。"""

    def test_ratio_threshold(self):
        devices = list(_snapshot().devices.values())[:4]
        self.assertEqual(len(prefer_lights(devices, "turn_on", 0.3)), 2)
        self.assertEqual(len(prefer_lights(devices, "turn_on", 0.8)), 4)

    def test_non_light_action_untouched(self):
        devices = list(_snapshot().devices.values())[:4]
        self.assertEqual(prefer_lights(devices, "play_music", 0.3), devices)


if __name__ == "__main__":
    unittest.main()
