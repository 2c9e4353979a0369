"""测试规则规划：拆分、抽取、房间匹配与房间继承。"""

import unittest

from command_parser.validator import MISSING_ACTION_ERROR
from home_control.capabilities import value_for_action
from home_control.demo_data import build_demo_snapshot
from home_control.models import DeviceRecord, DirectorySnapshot, Zone
from home_control.planner import ALL_ROOMS, plan_commands


class TestPlanCommands(unittest.IsolatedAsyncioTestCase):
    """测试 plan_commands。"""

    def setUp(self):
        self.snapshot = build_demo_snapshot()

    async def test_swedish_definite_room(self):
        plan = await plan_commands("Tänd lamporna i trädgården", self.snapshot, "sv")

        self.assertFalse(plan.is_multi_command)
        envelope = plan.to_envelope()
        self.assertEqual(
            envelope.to_dict(),
            {"room": "Trägården", "command": "turn_on", "device_filter": "light"},
        )
        self.assertEqual(plan.segments[0].room_match.method, "alias")

    async def test_room_inherited_from_next_segment(self):
        plan = await plan_commands(
            "Turn on the lights and play music in the living room", self.snapshot, "en"
        )

        self.assertTrue(plan.is_multi_command)
        first, second = plan.segments
        self.assertEqual(first.room, "Vardagsrum")
        self.assertTrue(first.inherited_room)
        self.assertFalse(second.inherited_room)
        self.assertEqual(
            plan.to_envelope().to_dict(),
            {
                "commands": [
                    {"room": "Vardagsrum", "command": "turn_on", "device_filter": "light"},
                    {"room": "Vardagsrum", "command": "play_music", "device_filter": "speaker"},
                ]
            },
        )

    async def test_literal_room_names(self):
        plan = await plan_commands(
            "tänd lamporna i köket och släck ljuset i vardagsrummet", self.snapshot, "sv"
        )

        self.assertEqual([segment.room for segment in plan.segments], ["Kök", "Vardagsrum"])
        self.assertEqual([d.action for d in plan.descriptors], ["turn_on", "turn_off"])
        self.assertEqual(plan.segments[0].room_match.method, "exact")

    async def test_appliance_group_filter(self):
        plan = await plan_commands("switch on the kitchen appliances", self.snapshot, "en")

        descriptor = plan.descriptors[0]
        self.assertEqual(descriptor.room, "Kök")
        self.assertEqual(descriptor.device_filter, "kitchen")

    async def test_all_rooms(self):
        plan = await plan_commands("turn off everything", self.snapshot, "en")

        self.assertEqual(plan.descriptors[0].room, ALL_ROOMS)
        self.assertIsNone(plan.descriptors[0].device_filter)

    async def test_parameters(self):
        plan = await plan_commands("Dim the bedroom to 30%", self.snapshot, "en")
        self.assertEqual(plan.descriptors[0].parameters, {"brightness": 30})

        plan = await plan_commands("set the bedroom temperature to 21 degrees", self.snapshot, "en")
        descriptor = plan.descriptors[0]
        self.assertEqual(descriptor.action, "set_temperature")
        self.assertEqual(descriptor.device_filter, "thermostat")
        self.assertEqual(descriptor.parameters, {"temperature": 21})

    async def test_one_percent_level(self):
        plan = await plan_commands("dim the kitchen lights to 1%", self.snapshot, "en")

        descriptor = plan.descriptors[0]
        self.assertEqual(descriptor.room, "Kök")
        self.assertEqual(descriptor.parameters, {"brightness": 1})
        lamp = self.snapshot.devices["light-kitchen"]
        self.assertEqual(value_for_action(lamp, "dim", "dim", descriptor.parameters), 0.01)

    async def test_last_literal_room_wins(self):
        snapshot = DirectorySnapshot.from_lists(
            [Zone(id="z-kitchen", name="Kitchen"), Zone(id="z-bedroom", name="Bedroom")],
            [DeviceRecord("lamp", "Lamp", "z-bedroom", "light", capabilities=frozenset({"onoff"}))],
        )

        plan = await plan_commands("turn on the kitchen lamp in the bedroom", snapshot, "en")

        self.assertEqual(plan.descriptors[0].room, "Bedroom")
        self.assertEqual(plan.segments[0].room_match.method, "exact")

    async def test_missing_action(self):
        plan = await plan_commands("blah blah", self.snapshot, "en")

        self.assertIsNone(plan.to_envelope())
        self.assertEqual(plan.errors[0].message, MISSING_ACTION_ERROR)

    async def test_unknown_room(self):
        plan = await plan_commands("turn on the lights in the attic", self.snapshot, "en")

        error = plan.errors[0]
        self.assertEqual(error.kind, "no_match")
        self.assertEqual(
            error.message,
            'No room matching "attic" found. Available rooms: Vardagsrum, Kök, Trägården, Bedroom',
        )

    async def test_no_room_anywhere(self):
        plan = await plan_commands("turn on the lights", self.snapshot, "en")

        self.assertEqual(
            plan.errors[0].message,
            'No room found in command "turn on the lights". '
            "Available rooms: Vardagsrum, Kök, Trägården, Bedroom",
        )

    async def test_semantic_room(self):
        queries = []

        async def oracle(query, candidates):
            queries.append(query)
            return {"match": "Bedroom", "confidence": 0.9}

        plan = await plan_commands("turn on the lights in the office", self.snapshot, "en", oracle)

        self.assertEqual(queries, ["office"])
        self.assertEqual(plan.descriptors[0].room, "Bedroom")
        self.assertEqual(plan.segments[0].room_match.method, "semantic")


if __name__ == "__main__":
    unittest.main()
