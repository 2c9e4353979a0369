"""Command parser package."""

from command_parser.parser import (
    CommandParser,
    CommandParserConfig,
    EnvelopeParseResult,
    ParserMetrics,
    parse_envelope_output,
)
from command_parser.prompt import (
    DEFAULT_SYSTEM_PROMPT,
    PROMPT_REGRESSION_CASES,
    SEMANTIC_MATCH_PROMPT,
    build_decision_prompt,
    build_semantic_match_prompt,
)
from command_parser.splitter import detect_multi_command, split_command
from command_parser.validator import ValidationResult, validate_envelope

__all__ = [
    "DEFAULT_SYSTEM_PROMPT",
    "PROMPT_REGRESSION_CASES",
    "SEMANTIC_MATCH_PROMPT",
    "CommandParser",
    "CommandParserConfig",
    "EnvelopeParseResult",
    "ParserMetrics",
    "ValidationResult",
    "build_decision_prompt",
    "build_semantic_match_prompt",
    "detect_multi_command",
    "parse_envelope_output",
    "split_command",
    "validate_envelope",
]
