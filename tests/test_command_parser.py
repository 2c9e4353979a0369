"""Tests for the decision-output envelope parser."""

import logging
import unittest

from command_parser import CommandParser, CommandParserConfig, parse_envelope_output
from command_parser.parser import _sanitize_log_value


class TestCommandParser(unittest.TestCase):
    """Unit tests for envelope parsing."""

    def test_parse_single_command(self):
        parser = CommandParser()
        result = parser.parse('{"room": "Kök", "command": "turn_on", "device_filter": "light"}')

        self.assertTrue(result.valid)
        self.assertFalse(result.degraded)
        descriptor = result.envelope.descriptor
        self.assertEqual(descriptor.room, "Kök")
        self.assertEqual(descriptor.action, "turn_on")
        self.assertEqual(descriptor.device_filter, "light")

    def test_parse_compound_command(self):
        parser = CommandParser()
        result = parser.parse(
            '{"commands": [{"room": "Kök", "command": "turn_on"}, {"device_id": "d1", "command": "turn_off"}]}'
        )

        self.assertTrue(result.envelope.is_compound)
        self.assertEqual([d.action for d in result.envelope.descriptors()], ["turn_on", "turn_off"])

    def test_code_fence_is_degraded(self):
        result = parse_envelope_output('```json\n{"room": "Kök", "command": "turn_on"}\n```')

        self.assertTrue(result.valid)
        self.assertTrue(result.degraded)
        self.assertEqual(result.errors, ["json_code_fence"])

    def test_object_inside_prose(self):
        result = parse_envelope_output('Sure! {"room": "Kök", "command": "turn_off"} Done.')

        self.assertTrue(result.valid)
        self.assertIn("json_extracted", result.errors)

    def test_array_is_wrapped(self):
        single = parse_envelope_output('[{"room": "Kök", "command": "turn_on"}]')
        self.assertFalse(single.envelope.is_compound)
        self.assertIn("json_array_wrapped", single.errors)

        many = parse_envelope_output([{"room": "Kök", "command": "turn_on"}, {"room": "Hall", "command": "turn_off"}])
        self.assertTrue(many.envelope.is_compound)

    def test_unparseable_output(self):
        result = parse_envelope_output("I don't know")

        self.assertFalse(result.valid)
        self.assertIsNone(result.envelope)
        self.assertEqual(result.error.message, "Could not parse command output.")
        self.assertIn("json_decode_error", result.errors)

    def test_empty_and_non_string(self):
        self.assertEqual(parse_envelope_output("  ").errors, ["output_empty"])
        self.assertEqual(parse_envelope_output(42).errors, ["output_not_string"])
        self.assertIn("json_not_object", parse_envelope_output('"text"').errors)
        self.assertIn("json_array_empty", parse_envelope_output("[]").errors)

    def test_error_payload_propagates(self):
        result = parse_envelope_output('{"error": "Command not understood."}')

        self.assertFalse(result.valid)
        self.assertEqual(result.error.message, "Command not understood.")
        self.assertIn("validation_failed", result.errors)

    def test_metrics(self):
        parser = CommandParser()
        parser.parse('{"room": "Kök", "command": "turn_on"}')
        parser.parse("nonsense")

        self.assertEqual(parser.metrics.total_outputs, 2)
        self.assertEqual(parser.metrics.degraded_outputs, 1)
        self.assertAlmostEqual(parser.metrics.rejected_ratio, 0.5)

    def test_log_line_is_truncated(self):
        test_logger = logging.getLogger("test.envelope_parser")
        parser = CommandParser(CommandParserConfig(max_log_chars=20), logger_override=test_logger)

        with self.assertLogs("test.envelope_parser", level="INFO") as logs:
            parser.parse("x" * 100)

        self.assertIn("envelope_parser valid=False", logs.output[0])
        self.assertIn("x" * 17 + "...", logs.output[0])
        self.assertNotIn("x" * 18, logs.output[0])

    def test_sanitize_control_chars(self):
        self.assertEqual(_sanitize_log_value("a\nb\tc", 10), "a b c")


if __name__ == "__main__":
    unittest.main()
