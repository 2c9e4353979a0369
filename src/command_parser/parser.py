"""Strict envelope parser for decision-step outputs."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from command_parser.validator import ValidationResult, validate_envelope
from home_control.models import CommandEnvelope, CommandError

logger = logging.getLogger(__name__)

_CONTROL_CHARS_RE = re.compile(r"[\r\n\t]")
_CODE_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)
_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


@dataclass
class EnvelopeParseResult:
    envelope: CommandEnvelope | None
    validation: ValidationResult
    raw_output: str
    errors: list[str] = field(default_factory=list)
    degraded: bool = False

    @property
    def valid(self) -> bool:
        return self.validation.valid

    @property
    def error(self) -> CommandError | None:
        return self.validation.error


@dataclass
class ParserMetrics:
    total_outputs: int = 0
    degraded_outputs: int = 0
    rejected_outputs: int = 0

    @property
    def rejected_ratio(self) -> float:
        if self.total_outputs == 0:
            return 0.0
        return self.rejected_outputs / self.total_outputs

    def record(self, *, degraded: bool, rejected: bool) -> None:
        self.total_outputs += 1
        if degraded:
            self.degraded_outputs += 1
        if rejected:
            self.rejected_outputs += 1


@dataclass
class CommandParserConfig:
    max_log_chars: int = 400


class CommandParser:
    """Parse decision-step outputs into validated envelopes."""

    def __init__(
        self,
        config: CommandParserConfig | None = None,
        logger_override: logging.Logger | None = None,
    ) -> None:
        self.config = config or CommandParserConfig()
        self.metrics = ParserMetrics()
        self._logger = logger_override or logger

    def parse(self, raw_output: object) -> EnvelopeParseResult:
        """将决策输出解析为校验后的命令信封。"""
        return parse_envelope_output(
            raw_output,
            config=self.config,
            logger_override=self._logger,
            metrics=self.metrics,
        )


def _load_json_text(raw_text: str, errors: list[str]) -> object | None:
    """解析 JSON 文本，依次尝试原文、代码块与首个 {...} 片段。"""
    try:
        return json.loads(raw_text)
    except json.JSONDecodeError:
        pass

    fenced = _CODE_FENCE_RE.search(raw_text)
    if fenced:
        try:
            parsed = json.loads(fenced.group(1))
            errors.append("json_code_fence")
            return parsed
        except json.JSONDecodeError:
            pass

    found = _OBJECT_RE.search(raw_text)
    if found:
        try:
            parsed = json.loads(found.group(0))
            errors.append("json_extracted")
            return parsed
        except json.JSONDecodeError:
            pass

    errors.append("json_decode_error")
    return None


def _to_payload(parsed: object, errors: list[str]) -> Mapping[str, Any] | None:
    if isinstance(parsed, Mapping):
        return parsed
    if isinstance(parsed, list):
        if not parsed:
            errors.append("json_array_empty")
            return None
        errors.append("json_array_wrapped")
        if len(parsed) == 1 and isinstance(parsed[0], Mapping):
            return parsed[0]
        return {"commands": parsed}
    errors.append("json_not_object")
    return None


def parse_envelope_output(
    raw_output: object,
    *,
    config: CommandParserConfig | None = None,
    logger_override: logging.Logger | None = None,
    metrics: ParserMetrics | None = None,
) -> EnvelopeParseResult:
    """解析决策步骤输出为命令信封。

    支持 JSON 对象文本、带代码块或多余文字的文本、已解析的字典或列表。
    无法解析或校验失败时 envelope 为 None，validation.error 携带错误信息。
    """
    config = config or CommandParserConfig()
    metrics = metrics or ParserMetrics()
    active_logger = logger_override or logger

    errors: list[str] = []
    parsed: object | None = None
    raw_text = ""

    if isinstance(raw_output, (Mapping, list)):
        parsed = raw_output
        try:
            raw_text = json.dumps(raw_output, ensure_ascii=False)
        except (TypeError, ValueError):
            raw_text = repr(raw_output)
    elif isinstance(raw_output, str):
        raw_text = raw_output
        if not raw_text.strip():
            errors.append("output_empty")
        else:
            parsed = _load_json_text(raw_text, errors)
    else:
        raw_text = repr(raw_output)
        errors.append("output_not_string")

    payload = _to_payload(parsed, errors) if parsed is not None else None
    if payload is None:
        validation = ValidationResult(
            valid=False,
            error=CommandError("validation", "Could not parse command output."),
        )
    else:
        validation = validate_envelope(payload)
        if not validation.valid:
            errors.append("validation_failed")

    degraded = bool(errors)
    metrics.record(degraded=degraded, rejected=not validation.valid)

    _log_parse_result(
        active_logger,
        raw_text,
        errors,
        degraded,
        metrics,
        config.max_log_chars,
        valid=validation.valid,
    )

    return EnvelopeParseResult(
        envelope=validation.envelope if validation.valid else None,
        validation=validation,
        raw_output=raw_text,
        errors=errors,
        degraded=degraded,
    )


def _log_parse_result(
    active_logger: logging.Logger,
    raw_output: str,
    errors: Iterable[str],
    degraded: bool,
    metrics: ParserMetrics,
    max_log_chars: int,
    *,
    valid: bool,
) -> None:
    """记录解析结果、错误与统计指标。"""
    error_text = ",".join(errors) if errors else "-"
    active_logger.info(
        "envelope_parser valid=%s degraded=%s errors=%s degraded_count=%d rejected_ratio=%.3f raw=%s",
        valid,
        degraded,
        _sanitize_log_value(error_text, max_log_chars),
        metrics.degraded_outputs,
        metrics.rejected_ratio,
        _sanitize_log_value(raw_output, max_log_chars),
    )


def _sanitize_log_value(value: str, max_len: int) -> str:
    """清理日志文本中的控制字符并截断长度。"""
    if not isinstance(value, str):
        value = repr(value)
    cleaned = _CONTROL_CHARS_RE.sub(" ", value)
    if len(cleaned) > max_len:
        cleaned = cleaned[: max_len - 3] + "..."
    return cleaned
