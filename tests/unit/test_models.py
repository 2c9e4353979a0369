"""测试核心数据模型。"""

import unittest

from home_control.models import (
    CommandDescriptor,
    CommandEnvelope,
    CommandError,
    DeviceRecord,
    DirectorySnapshot,
    ExecutionOutcome,
    ExecutionReport,
    MatchResult,
    Zone,
)


class TestMatchResult(unittest.TestCase):
    """测试 MatchResult 不变量。"""

    def test_none_match_forces_zero_confidence(self):
        result = MatchResult("x", None, 0.7, "fuzzy")
        self.assertEqual(result.confidence, 0.0)
        self.assertEqual(result.method, "none")

    def test_zero_confidence_forces_none_match(self):
        result = MatchResult("x", "Kitchen", 0.0, "fuzzy")
        self.assertIsNone(result.match)
        self.assertEqual(result.method, "none")

    def test_confidence_clamped(self):
        self.assertEqual(MatchResult("x", "Kitchen", 1.7, "semantic").confidence, 1.0)

    def test_below_threshold_not_resolved(self):
        result = MatchResult("x", "Kitchen", 0.4, "semantic")
        self.assertEqual(result.match, "Kitchen")
        self.assertFalse(result.is_confident)
        self.assertIsNone(result.resolved)

    def test_at_threshold_resolved(self):
        self.assertEqual(MatchResult("x", "Kitchen", 0.6, "fuzzy").resolved, "Kitchen")


class TestDeviceRecord(unittest.IsolatedAsyncioTestCase):
    """测试字典设备实现。"""

    async def test_set_value_stores(self):
        device = DeviceRecord("d1", "Lamp", "z1", "light", capabilities={"onoff"})
        self.assertIsInstance(device.capabilities, frozenset)
        result = await device.set_capability_value("onoff", True)
        self.assertTrue(result)
        self.assertTrue(device.get_capability_value("onoff"))

    async def test_async_writer_rejection(self):
        async def writer(capability, value):
            return False

        device = DeviceRecord("d1", "Lamp", "z1", "light", capabilities={"onoff"}, writer=writer)
        result = await device.set_capability_value("onoff", True)
        self.assertIs(result, False)
        self.assertIsNone(device.get_capability_value("onoff"))

    async def test_unknown_capability_raises(self):
        device = DeviceRecord("d1", "Lamp", "z1", "light", capabilities={"onoff"})
        with self.assertRaises(ValueError):
            await device.set_capability_value("dim", 0.5)


class TestSnapshot(unittest.TestCase):
    """测试目录快照。"""

    def test_room_names_deduplicated(self):
        snapshot = DirectorySnapshot.from_lists(
            [Zone("z1", "Kitchen"), Zone("z2", "Kitchen"), Zone("z3", "Hall")],
            [DeviceRecord("d1", "Lamp", "z2", "light")],
        )
        self.assertEqual(snapshot.room_names, ["Kitchen", "Hall"])
        self.assertEqual(len(snapshot.zones_named("Kitchen")), 2)
        self.assertEqual(len(snapshot.devices_in_zones({"z1", "z2"})), 1)


class TestEnvelopeAndReport(unittest.TestCase):
    """测试命令信封与报告格式。"""

    def test_descriptor_to_dict(self):
        descriptor = CommandDescriptor(action="dim", room="Kök", parameters={"brightness": 30})
        self.assertEqual(
            descriptor.to_dict(),
            {"room": "Kök", "command": "dim", "parameters": {"brightness": 30}},
        )
        self.assertEqual(descriptor.target_kind, "room")

    def test_compound_envelope(self):
        envelope = CommandEnvelope(
            commands=[CommandDescriptor("turn_on", room="A"), CommandDescriptor("turn_off", device_id="d1")]
        )
        self.assertTrue(envelope.is_compound)
        self.assertEqual(len(envelope.descriptors()), 2)
        self.assertEqual(envelope.to_dict()["commands"][1], {"device_id": "d1", "command": "turn_off"})

    def test_report_text(self):
        report = ExecutionReport(
            outcomes=[
                ExecutionOutcome("d1", "Lamp", "success", "onoff set to true"),
                ExecutionOutcome("d2", "Plug", "failure", "write rejected"),
                ExecutionOutcome("d3", "Thermostat", "unsupported", "does not support turn_on"),
            ],
            errors=[CommandError("no_match", 'No room matching "Attic" found.')],
        )
        self.assertEqual(
            report.text,
            "1/3 devices updated\n"
            "✅ Lamp: onoff set to true\n"
            "❌ Plug: write rejected\n"
            "⚠️ Thermostat: does not support turn_on\n"
            '❌ No room matching "Attic" found.',
        )

    def test_error_to_dict(self):
        error = CommandError("no_match", "nope", candidates=["Kök"])
        self.assertEqual(error.to_dict(), {"error": "nope", "kind": "no_match", "candidates": ["Kök"]})


if __name__ == "__main__":
    unittest.main()
