"""测试多命令检测与拆分。"""

import unittest

from command_parser.splitter import detect_multi_command, split_command


class TestDetectMultiCommand(unittest.TestCase):
    """测试多命令检测。"""

    def test_connector(self):
        self.assertTrue(detect_multi_command("turn on the lights and play music", "en"))
        self.assertTrue(detect_multi_command("tänd lamporna och spela musik", "sv"))

    def test_english_connector_in_other_language(self):
        self.assertTrue(detect_multi_command("tänd lamporna and spela musik", "sv"))

    def test_comma(self):
        self.assertTrue(detect_multi_command("turn on the lights, play music", "en"))

    def test_decimal_comma_is_not_a_separator(self):
        self.assertFalse(detect_multi_command("set temperature to 21,5 degrees", "en"))

    def test_single_command(self):
        self.assertFalse(detect_multi_command("turn on the lights", "en"))
        self.assertFalse(detect_multi_command("", "en"))


class TestSplitCommand(unittest.TestCase):
    """测试命令拆分。"""

    def test_split_on_connector(self):
        self.assertEqual(
            split_command("Turn on the lights and play music in the living room", "en"),
            ["Turn on the lights", "play music in the living room"],
        )

    def test_split_swedish(self):
        self.assertEqual(
            split_command("tänd lamporna i köket och släck ljuset i vardagsrummet", "sv"),
            ["tänd lamporna i köket", "släck ljuset i vardagsrummet"],
        )

    def test_split_on_comma(self):
        self.assertEqual(
            split_command("turn on the lights, play music", "en"),
            ["turn on the lights", "play music"],
        )

    def test_rooms_joined_by_connector_stay_together(self):
        self.assertEqual(
            split_command("turn on kitchen and living room lights", "en"),
            ["turn on kitchen and living room lights"],
        )

    def test_leading_piece_without_action_merges_forward(self):
        self.assertEqual(
            split_command("kitchen, turn on the lights", "en"),
            ["kitchen, turn on the lights"],
        )

    def test_decimal_comma_kept(self):
        self.assertEqual(
            split_command("set temperature to 21,5 degrees", "en"),
            ["set temperature to 21,5 degrees"],
        )

    def test_no_action_returns_whole_text(self):
        self.assertEqual(split_command(" blah and blah ", "en"), ["blah and blah"])

    def test_blank(self):
        self.assertEqual(split_command("   ", "en"), [])


if __name__ == "__main__":
    unittest.main()
