"""端到端命令管线。

文本 → 规划（拆分/抽取/匹配）→ 决策（可选 LLM）→ 校验 → 执行 → 报告。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from command_parser.parser import CommandParserConfig, EnvelopeParseResult, parse_envelope_output
from command_parser.validator import FORMAT_ERROR, ValidationResult, validate_envelope
from home_control.config import PipelineConfig
from home_control.execution import ExecutionEngine
from home_control.extractor import suggest_improvement
from home_control.models import (
    CommandEnvelope,
    CommandError,
    DirectorySnapshot,
    ExecutionReport,
    InvalidCommandInput,
    SemanticOracle,
)
from home_control.planner import CommandPlan, plan_commands
from home_control.vocabulary import resolve_language

logger = logging.getLogger(__name__)

# 决策步骤：接收规划结果，返回原始命令对象（JSON 文本或字典）
Decider = Callable[[CommandPlan], Awaitable[Any]]


@dataclass
class PipelineResult:
    text: str
    language: str
    plan: CommandPlan | None = None
    envelope: CommandEnvelope | None = None
    validation: ValidationResult | None = None
    parse_result: EnvelopeParseResult | None = None
    report: ExecutionReport = field(default_factory=ExecutionReport)
    suggestion: str | None = None

    @property
    def reply(self) -> str:
        """发送给用户的报告字符串。"""
        return self.report.text


def check_command_text(text: object, config: PipelineConfig) -> str:
    """校验调用方输入。

    Raises:
        InvalidCommandInput: 非字符串、空白或超长
    """
    if not isinstance(text, str):
        raise InvalidCommandInput(f"command text must be a string, got {type(text).__name__}")
    if not text.strip():
        raise InvalidCommandInput("command text is empty")
    if len(text) > config.max_command_chars:
        raise InvalidCommandInput(
            f"command text is too long ({len(text)} > {config.max_command_chars} characters)"
        )
    return text


async def _decide(
    decider: Decider,
    plan: CommandPlan,
    config: PipelineConfig,
    result: PipelineResult,
) -> ValidationResult | None:
    """运行决策步骤；失败时返回 None 以回退到规则规划。"""
    try:
        raw = await decider(plan)
    except Exception as exc:
        logger.warning("decider_failed error=%s", exc)
        return None
    parsed = parse_envelope_output(
        raw,
        config=CommandParserConfig(max_log_chars=config.max_log_chars),
    )
    result.parse_result = parsed
    return parsed.validation


async def run_command(
    text: str,
    snapshot: DirectorySnapshot,
    language: str | None = None,
    oracle: SemanticOracle | None = None,
    decider: Decider | None = None,
    config: PipelineConfig | None = None,
) -> PipelineResult:
    """执行一条用户命令。

    Args:
        text: 命令文本
        snapshot: 区域与设备快照
        language: 声明语言（如 "sv" 或 "sv-SE"）
        oracle: 可选的异步语义 oracle
        decider: 可选的决策步骤；缺省时使用规则规划结果
        config: 管线配置

    Returns:
        PipelineResult；`reply` 为报告字符串

    Raises:
        InvalidCommandInput: 输入文本无效
    """
    config = config or PipelineConfig()
    check_command_text(text, config)
    code = resolve_language(language or config.default_language)

    # 1. 规划
    plan = await plan_commands(text, snapshot, code, oracle, config)
    result = PipelineResult(text=text, language=code, plan=plan)

    # 2. 决策与校验
    validation = None
    if decider is not None:
        validation = await _decide(decider, plan, config, result)

    rule_based = validation is None
    if rule_based:
        envelope = plan.to_envelope()
        if envelope is None:
            errors = plan.errors or [CommandError("validation", FORMAT_ERROR)]
            result.report.errors.extend(errors)
            result.suggestion = _suggestion(plan)
            logger.info("run_command_unplanned language=%s errors=%d", code, len(errors))
            return result
        validation = validate_envelope(envelope)

    result.validation = validation
    if not validation.valid or validation.envelope is None:
        if validation.error is not None:
            result.report.errors.append(validation.error)
        result.suggestion = _suggestion(plan)
        return result

    # 3. 执行
    result.envelope = validation.envelope
    engine = ExecutionEngine(snapshot, code, oracle, config)
    report = await engine.execute(validation.envelope)
    if rule_based:
        report.errors = plan.errors + report.errors
    result.report = report

    logger.info(
        "run_command language=%s rule_based=%s success=%d total=%d errors=%d",
        code,
        rule_based,
        report.success_count,
        report.total,
        len(report.errors),
    )
    return result


def _suggestion(plan: CommandPlan) -> str | None:
    for segment in plan.segments:
        hint = suggest_improvement(segment.command)
        if hint:
            return hint
    return None
