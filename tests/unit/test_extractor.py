"""测试实体抽取与命令预处理。"""

import unittest

from home_control.extractor import (
    count_action_mentions,
    extract_entities,
    extract_modifiers,
    extract_values,
    normalize_action,
    normalize_device_type,
    normalize_phrases,
    normalize_room_name,
    preprocess_command,
    suggest_improvement,
)


class TestExtractEntities(unittest.TestCase):
    """测试房间、动作、设备类型抽取。"""

    def test_english_command(self):
        result = extract_entities("Turn on the lights in the living room", "en")
        self.assertEqual([m.canonical for m in result.rooms], ["living room"])
        self.assertEqual([m.canonical for m in result.actions], ["turn_on"])
        self.assertEqual([m.canonical for m in result.device_types], ["light"])
        self.assertFalse(result.used_fallback)

    def test_swedish_command(self):
        result = extract_entities("tänd lamporna i trädgården", "sv")
        self.assertEqual([m.canonical for m in result.rooms], ["garden"])
        self.assertEqual([m.canonical for m in result.actions], ["turn_on"])
        self.assertEqual([m.canonical for m in result.device_types], ["light"])
        self.assertEqual(result.matched_languages["rooms"], "sv")

    def test_falls_back_to_other_languages(self):
        result = extract_entities("enciende la luz de la cocina", "en")
        self.assertEqual([m.canonical for m in result.rooms], ["kitchen"])
        self.assertEqual(result.matched_languages["rooms"], "es")
        self.assertTrue(result.used_fallback)

    def test_longest_action_first(self):
        result = extract_entities("turn on the lights and play music", "en")
        self.assertEqual([m.canonical for m in result.actions], ["play_music", "turn_on"])

    def test_empty_text(self):
        self.assertEqual(extract_entities("   ", "en").total_matches, 0)

    def test_count_action_mentions(self):
        self.assertEqual(count_action_mentions("turn on the lights and play music", "en"), 2)
        self.assertEqual(count_action_mentions("turn on the lights", "en"), 1)


class TestNormalize(unittest.TestCase):
    """测试单词规整。"""

    def test_normalize_action(self):
        self.assertEqual(normalize_action("tänd", "sv"), "turn_on")
        self.assertEqual(normalize_action("Switch Off", "en"), "turn_off")

    def test_normalize_device_type(self):
        self.assertEqual(normalize_device_type("lamporna", "sv"), "light")

    def test_normalize_room_name(self):
        self.assertEqual(normalize_room_name("Köket", "sv"), "kitchen")

    def test_unknown_word_unchanged(self):
        self.assertEqual(normalize_action("xyzzy", "en"), "xyzzy")


class TestPreprocess(unittest.TestCase):
    """测试预处理与改进建议。"""

    def test_phrase_normalization(self):
        self.assertEqual(normalize_phrases("Please switch on the lamp"), "turn on the lamp")

    def test_values(self):
        self.assertEqual(extract_values("set temperature to 21,5 degrees"), {"temperature": 21.5})
        self.assertEqual(extract_values("set it to 22°"), {"temperature": 22})
        self.assertEqual(extract_values("dim to 30%"), {"percentage": 30})

    def test_modifiers(self):
        self.assertEqual(extract_modifiers("turn off everything"), ["all"])
        self.assertEqual(extract_modifiers("turn off the lamp"), [])

    def test_clear_command(self):
        command = preprocess_command("Turn on the lights in the living room", "en")
        self.assertEqual(command.intent, "turn_on")
        self.assertEqual(command.rooms, ["living room"])
        self.assertEqual(command.device_types, ["light"])
        self.assertEqual(command.confidence, 1.0)
        self.assertIsNone(suggest_improvement(command))

    def test_unclear_command(self):
        command = preprocess_command("blah blah", "en")
        self.assertIsNone(command.intent)
        self.assertEqual(command.confidence, 0.0)
        suggestion = suggest_improvement(command)
        self.assertTrue(suggestion.startswith("Try to"))
        self.assertIn("specify which room", suggestion)


if __name__ == "__main__":
    unittest.main()
