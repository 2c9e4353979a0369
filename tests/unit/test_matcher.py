"""测试分层匹配（精确、别名、模糊、语义）。"""

import asyncio
import unittest

from home_control.matcher import (
    CONFIDENCE_ALIAS,
    OracleReplyError,
    batch_match,
    coerce_oracle_reply,
    match,
    match_device_type,
    match_sync,
)

ROOMS = ["Vardagsrum", "Kök", "Trägården"]


class TestLexicalTiers(unittest.TestCase):
    """测试同步的三层匹配。"""

    def test_exact_ignores_case_and_diacritics(self):
        result = match_sync("kok", ROOMS, "sv")
        self.assertEqual(result.match, "Kök")
        self.assertEqual(result.method, "exact")
        self.assertEqual(result.confidence, 1.0)

    def test_definite_form_resolves_by_alias(self):
        result = match_sync("trädgården", ROOMS, "sv")
        self.assertEqual(result.match, "Trägården")
        self.assertEqual(result.method, "alias")
        self.assertEqual(result.confidence, CONFIDENCE_ALIAS)

    def test_cross_language_alias(self):
        result = match_sync("garden", ROOMS, "en")
        self.assertEqual(result.resolved, "Trägården")
        self.assertEqual(result.method, "alias")

    def test_fuzzy_typo(self):
        result = match_sync("Plairoom", ["Master Suite", "Playroom"], "en")
        self.assertEqual(result.match, "Playroom")
        self.assertEqual(result.method, "fuzzy")
        self.assertAlmostEqual(result.confidence, 0.875)

    def test_unknown_room(self):
        result = match_sync("Attic", ["Living Room", "Kitchen", "Trägården"], "en")
        self.assertIsNone(result.match)
        self.assertEqual(result.method, "none")
        self.assertEqual(result.confidence, 0.0)
        self.assertEqual(result.candidates, ["Living Room", "Kitchen", "Trägården"])

    def test_empty_inputs(self):
        self.assertEqual(match_sync("", ROOMS).method, "none")
        self.assertEqual(match_sync("Kök", []).method, "none")

    def test_device_type(self):
        result = match_device_type("lamporna", "sv")
        self.assertEqual(result.resolved, "light")


class TestSemanticTier(unittest.IsolatedAsyncioTestCase):
    """测试语义 oracle 层及其故障退化。"""

    async def test_oracle_not_consulted_when_lexical_succeeds(self):
        calls = []

        async def oracle(query, candidates):
            calls.append(query)
            return {"match": "Kök", "confidence": 0.9}

        result = await match("köket", ROOMS, "sv", oracle)
        self.assertEqual(result.match, "Kök")
        self.assertEqual(calls, [])

    async def test_semantic_match(self):
        async def oracle(query, candidates):
            self.assertEqual(candidates, ROOMS)
            return {"match": "Vardagsrum", "confidence": 0.8, "reasoning": "cozy means living room"}

        result = await match("the cozy place", ROOMS, "en", oracle)
        self.assertEqual(result.match, "Vardagsrum")
        self.assertEqual(result.method, "semantic")
        self.assertAlmostEqual(result.confidence, 0.8)
        self.assertEqual(result.reasoning, "cozy means living room")

    async def test_semantic_match_returns_candidate_spelling(self):
        async def oracle(query, candidates):
            return {"match": "trägården", "confidence": 0.7}

        result = await match("the cozy place", ROOMS, "en", oracle)
        self.assertEqual(result.match, "Trägården")

    async def test_low_confidence_is_not_resolved(self):
        async def oracle(query, candidates):
            return {"match": "Kök", "confidence": 0.3}

        result = await match("the cozy place", ROOMS, "en", oracle)
        self.assertEqual(result.match, "Kök")
        self.assertIsNone(result.resolved)

    async def test_non_candidate_rejected(self):
        async def oracle(query, candidates):
            return {"match": "Garage", "confidence": 0.9}

        result = await match("the cozy place", ROOMS, "en", oracle)
        self.assertIsNone(result.match)
        self.assertEqual(result.method, "none")

    async def test_oracle_timeout_degrades(self):
        async def oracle(query, candidates):
            await asyncio.sleep(5)
            return {"match": "Kök", "confidence": 1.0}

        with self.assertLogs("home_control.matcher", level="WARNING") as logs:
            result = await match("the cozy place", ROOMS, "en", oracle, timeout=0.01)
        self.assertIsNone(result.match)
        self.assertIn("oracle timeout", result.reasoning)
        self.assertTrue(any("semantic_oracle_failed" in line for line in logs.output))

    async def test_oracle_exception_degrades(self):
        async def oracle(query, candidates):
            raise RuntimeError("down")

        with self.assertLogs("home_control.matcher", level="WARNING"):
            result = await match("the cozy place", ROOMS, "en", oracle)
        self.assertEqual(result.method, "none")
        self.assertIn("oracle failure: down", result.reasoning)

    async def test_malformed_reply_degrades(self):
        async def oracle(query, candidates):
            return ["Kök"]

        with self.assertLogs("home_control.matcher", level="WARNING"):
            result = await match("the cozy place", ROOMS, "en", oracle)
        self.assertIsNone(result.match)

    async def test_batch_keeps_order(self):
        results = await batch_match(["garden", "kok", "Attic"], ROOMS, "en")
        self.assertEqual([result.match for result in results], ["Trägården", "Kök", None])


class TestCoerceOracleReply(unittest.TestCase):
    """测试 oracle 返回值校验。"""

    def test_confidence_clamped(self):
        self.assertEqual(coerce_oracle_reply({"match": "Kök", "confidence": 3}, ROOMS), ("Kök", 1.0, ""))

    def test_empty_match(self):
        self.assertEqual(coerce_oracle_reply({"match": "", "confidence": 0.9}, ROOMS)[0], None)

    def test_invalid_confidence(self):
        with self.assertRaises(OracleReplyError):
            coerce_oracle_reply({"match": "Kök", "confidence": "high"}, ROOMS)

    def test_not_a_mapping(self):
        with self.assertRaises(OracleReplyError):
            coerce_oracle_reply("Kök", ROOMS)


if __name__ == "__main__":
    unittest.main()
