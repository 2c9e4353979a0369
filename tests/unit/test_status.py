"""测试状态问句的识别、解析与回答。"""

import unittest

from home_control.demo_data import build_demo_snapshot
from home_control.models import DeviceRecord, DirectorySnapshot, Zone
from home_control.status import (
    DEVICE_STATUS,
    DEVICE_TYPE_STATUS,
    GLOBAL_STATUS,
    ROOM_STATUS,
    answer_status_query,
    device_status,
    is_status_query,
    parse_status_query,
    summarize_device,
)


class _BrokenSensor(DeviceRecord):
    def get_capability_value(self, capability):
        if capability == "measure_humidity":
            raise RuntimeError("bridge timeout")
        return super().get_capability_value(capability)


class TestParseStatusQuery(unittest.TestCase):
    """测试问句识别与分类。"""

    def test_commands_are_not_queries(self):
        for text, language in (
            ("turn on the lights in the kitchen", "en"),
            ("Tänd lamporna i trädgården", "sv"),
            ("Dim the bedroom to 30%", "en"),
        ):
            with self.subTest(text=text):
                self.assertIsNone(parse_status_query(text, language))
                self.assertFalse(is_status_query(text, language))

    def test_device_type_in_room(self):
        query = parse_status_query("Is the kitchen light on?", "en")
        self.assertEqual(query.kind, DEVICE_TYPE_STATUS)
        self.assertEqual(query.room, "kitchen")
        self.assertEqual(query.device_type, "light")

    def test_room_query_multilingual(self):
        cases = (
            ("What's the status of the bedroom?", "en"),
            ("Vad är status för trädgården?", "sv"),
            ("Wie ist der Zustand der Küche?", "de"),
            ("¿Cuál es el estado de la cocina?", "es"),
        )
        for text, language in cases:
            with self.subTest(text=text):
                query = parse_status_query(text, language)
                self.assertEqual(query.kind, ROOM_STATUS)
                self.assertEqual(query.confidence, 0.9)

    def test_english_patterns_as_fallback(self):
        query = parse_status_query("show me all devices", "sv")
        self.assertEqual(query.kind, GLOBAL_STATUS)

    def test_device_query(self):
        query = parse_status_query("is sonos playing?", "en")
        self.assertEqual(query.kind, DEVICE_STATUS)
        self.assertEqual(query.confidence, 0.8)


class TestSummarizeDevice(unittest.TestCase):
    """测试单台设备的状态摘要。"""

    def test_light_brightness_only_when_on(self):
        lamp = DeviceRecord("l1", "Lamp", "z1", "light", capabilities=frozenset({"onoff", "dim"}))
        self.assertEqual(summarize_device(lamp, {"onoff": True, "dim": 0.8}), "on, 80% brightness")
        self.assertEqual(summarize_device(lamp, {"onoff": False, "dim": 0.8}), "off")

    def test_other_classes(self):
        lock = DeviceRecord("k1", "Front Door", "z1", "lock", capabilities=frozenset({"locked"}))
        speaker = DeviceRecord("s1", "Sonos", "z1", "speaker", capabilities=frozenset({"speaker_playing"}))
        unknown = DeviceRecord("x1", "Gizmo", "z1", "other", capabilities=frozenset({"fan_speed"}))

        self.assertEqual(summarize_device(lock, {"locked": False}), "unlocked")
        self.assertEqual(summarize_device(speaker, {"speaker_playing": True, "volume_set": 0.5}), "playing, volume 50%")
        self.assertEqual(summarize_device(unknown, {}), "no status available")

    def test_offline_device(self):
        lamp = DeviceRecord(
            "l1", "Lamp", "z1", "light", capabilities=frozenset({"onoff"}), available=False, values={"onoff": True}
        )
        status = device_status(lamp)
        self.assertFalse(status.online)
        self.assertEqual(status.line, "❌ Lamp: offline, on")

    def test_failed_read_is_skipped(self):
        sensor = _BrokenSensor(
            "t1",
            "Hall Sensor",
            "z1",
            "sensor",
            capabilities=frozenset({"measure_temperature", "measure_humidity"}),
            values={"measure_temperature": 21.5, "measure_humidity": 40},
        )
        with self.assertLogs("home_control.status", level="WARNING"):
            status = device_status(sensor)
        self.assertEqual(status.values, {"measure_temperature": 21.5})
        self.assertEqual(status.summary, "21.5°C")


class TestAnswerStatusQuery(unittest.IsolatedAsyncioTestCase):
    """在演示目录上回答状态问句。"""

    def setUp(self):
        self.snapshot = build_demo_snapshot()

    async def test_light_in_room(self):
        report = await answer_status_query("Is the kitchen light on?", self.snapshot, "en")

        self.assertEqual(report.text, "light in Kök (1/1 devices online)\n✅ Köksbelysning: on, 80% brightness")
        self.assertEqual(report.room_match.resolved, "Kök")

    async def test_room_status(self):
        report = await answer_status_query("What's the status of the bedroom?", self.snapshot, "en")

        self.assertEqual(
            report.text,
            "Bedroom (2/2 devices online)\n"
            "✅ Bedroom Thermostat: set to 19.0°C, currently 20.5°C\n"
            "✅ Bedroom Blinds: 0% open",
        )
        self.assertEqual(report.room_match.method, "exact")

    async def test_swedish_room_status(self):
        report = await answer_status_query("Vad är status för trädgården?", self.snapshot, "sv")

        self.assertEqual(report.text, "Trägården (1/1 devices online)\n✅ Trädgårdsbelysning: off")

    async def test_global_status(self):
        report = await answer_status_query("show me all devices", self.snapshot, "en")

        self.assertEqual(report.header, "All rooms (10/10 devices online)")
        self.assertEqual(len(report.devices), 10)
        self.assertFalse(report.truncated)

    async def test_device_named_in_text(self):
        report = await answer_status_query("is the kitchen coffee machine on?", self.snapshot, "en")

        self.assertEqual(
            report.text,
            "Matched devices (1/1 devices online)\n"
            "✅ Kitchen Coffee Machine: off, Socket controlling coffee machine",
        )

    async def test_device_by_name_token(self):
        report = await answer_status_query("is sonos playing?", self.snapshot, "en")

        self.assertEqual([status.device_id for status in report.devices], ["speaker-living"])
        self.assertEqual(report.devices[0].summary, "stopped")

    async def test_unknown_room(self):
        report = await answer_status_query("What's the status of the attic?", self.snapshot, "en")

        self.assertEqual(
            report.text,
            '❌ No room matching "attic" found. Available rooms: Vardagsrum, Kök, Trägården, Bedroom',
        )

    async def test_not_a_status_query(self):
        report = await answer_status_query("turn on the lights", self.snapshot, "en")

        self.assertIsNone(report.query)
        self.assertEqual(report.text, "❌ Not recognized as a status query.")

    async def test_semantic_room_through_oracle(self):
        async def oracle(query, candidates):
            return {"match": "Bedroom", "confidence": 0.9}

        report = await answer_status_query(
            "what's the status of the office?", self.snapshot, "en", oracle=oracle
        )

        self.assertEqual(report.scope, "Bedroom")
        self.assertEqual(report.room_match.method, "semantic")

    async def test_offline_devices_counted(self):
        snapshot = DirectorySnapshot.from_lists(
            [Zone(id="z-hall", name="Hall")],
            [
                DeviceRecord("l1", "Lamp", "z-hall", "light", capabilities=frozenset({"onoff"}), values={"onoff": True}),
                DeviceRecord(
                    "l2", "Spot", "z-hall", "light", capabilities=frozenset({"onoff"}), available=False,
                    values={"onoff": False},
                ),
            ],
        )

        report = await answer_status_query("status of the hall", snapshot, "en")

        self.assertEqual(
            report.text,
            "Hall (1/2 devices online)\n✅ Lamp: on\n❌ Spot: offline, off",
        )


if __name__ == "__main__":
    unittest.main()
