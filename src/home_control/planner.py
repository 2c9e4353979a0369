"""命令规划：拆分 → 抽取 → 匹配 → 原子命令描述。

不依赖 LLM 的规则路径。每个片段独立抽取与匹配，
未提及房间的片段继承最近片段的房间（先看后一个，再看前一个）。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from command_parser.splitter import detect_multi_command, split_command
from command_parser.validator import MISSING_ACTION_ERROR
from home_control.appliances import APPLIANCE_GROUP_TERMS, APPLIANCE_PATTERNS
from home_control.config import PipelineConfig
from home_control.extractor import ProcessedCommand, preprocess_command
from home_control.matcher import match
from home_control.models import (
    CommandDescriptor,
    CommandEnvelope,
    CommandError,
    DirectorySnapshot,
    MatchResult,
    SemanticOracle,
)
from home_control.text import contains_term, find_spans, fold, overlaps
from home_control.vocabulary import ALL_ROOMS_TERMS, resolve_language

logger = logging.getLogger(__name__)

ALL_ROOMS = "all"
_SHORT_TERM_LENGTH = 3
_LEVEL_ACTIONS = frozenset({"dim", "brighten"})


@dataclass
class SegmentPlan:
    """单个命令片段的规划结果。"""

    text: str
    command: ProcessedCommand
    room: str | None = None
    room_match: MatchResult | None = None
    inherited_room: bool = False
    device_filter: str | None = None
    descriptor: CommandDescriptor | None = None
    error: CommandError | None = None


@dataclass
class CommandPlan:
    text: str
    language: str
    snapshot: DirectorySnapshot
    segments: list[SegmentPlan] = field(default_factory=list)
    is_multi_command: bool = False

    @property
    def descriptors(self) -> list[CommandDescriptor]:
        return [segment.descriptor for segment in self.segments if segment.descriptor is not None]

    @property
    def errors(self) -> list[CommandError]:
        return [segment.error for segment in self.segments if segment.error is not None]

    def to_envelope(self) -> CommandEnvelope | None:
        """单条描述生成单命令信封，多条生成 commands 信封。"""
        descriptors = self.descriptors
        if not descriptors:
            return None
        if len(descriptors) == 1 and not self.is_multi_command:
            return CommandEnvelope(descriptor=descriptors[0])
        return CommandEnvelope(commands=descriptors)


def find_literal_room(folded: str, room_names: list[str]) -> str | None:
    """查找片段中直接出现的目录房间名。

    长名先占位，被长名覆盖的短名忽略；多个房间名都出现时取最后出现的一个
    （"the kitchen lamp in the bedroom" 指 bedroom）。
    """
    claimed: list[tuple[tuple[int, int], str]] = []
    for name in sorted(room_names, key=len, reverse=True):
        folded_name = fold(name)
        for span in find_spans(folded, folded_name):
            if not any(overlaps(span, taken) for taken, _ in claimed):
                claimed.append((span, name))
    if not claimed:
        return None
    return max(claimed, key=lambda item: item[0][0])[1]


def _mentions_all_rooms(folded: str, command: ProcessedCommand) -> bool:
    if "all" in command.modifiers:
        return True
    return any(contains_term(folded, fold(term), whole_word=True) for term in ALL_ROOMS_TERMS)


def _appliance_filter(folded: str, language: str) -> str | None:
    """在片段中查找电器分组或电器说法，返回可用于 device_filter 的键。"""
    for group, phrases in APPLIANCE_GROUP_TERMS.items():
        if any(contains_term(folded, fold(phrase)) for phrase in phrases):
            return group
    for pattern in APPLIANCE_PATTERNS:
        if pattern.key == "light":
            continue
        for term in pattern.terms.get(language, ()):
            folded_term = fold(term)
            if contains_term(folded, folded_term, whole_word=len(folded_term) <= _SHORT_TERM_LENGTH):
                return pattern.key
    return None


def _parameters(command: ProcessedCommand) -> dict[str, Any]:
    parameters: dict[str, Any] = {}
    if "temperature" in command.values:
        parameters["temperature"] = command.values["temperature"]
    if "percentage" in command.values:
        key = "brightness" if command.intent in _LEVEL_ACTIONS else "value"
        parameters[key] = command.values["percentage"]
    return parameters


def _no_room_error(query: str, room_names: list[str]) -> CommandError:
    message = f'No room matching "{query}" found.'
    if room_names:
        message += f" Available rooms: {', '.join(room_names)}"
    return CommandError("no_match", message, candidates=list(room_names))


async def _resolve_room(
    segment: SegmentPlan,
    snapshot: DirectorySnapshot,
    language: str,
    oracle: SemanticOracle | None,
    config: PipelineConfig,
) -> None:
    room_names = snapshot.room_names
    folded = fold(segment.text)

    # 1. 目录房间名原文出现
    literal = find_literal_room(folded, room_names)
    if literal is not None:
        segment.room = literal
        segment.room_match = MatchResult(
            literal, literal, 1.0, "exact", language=language, candidates=room_names
        )
        return

    # 2. 词表识别出的房间说法
    mentions = segment.command.extraction.rooms
    if mentions:
        query = mentions[0].surface
        result = await match(query, room_names, language, oracle, timeout=config.oracle_timeout)
        segment.room_match = result
        if result.resolved is not None:
            segment.room = result.resolved
        else:
            segment.error = _no_room_error(query, room_names)
        return

    # 3. 全屋
    if _mentions_all_rooms(folded, segment.command):
        segment.room = ALL_ROOMS


def _inherit_rooms(segments: list[SegmentPlan]) -> None:
    """未提及房间的片段继承距离最近的片段房间，同距离时先取后一个。"""
    own = [segment.room if segment.error is None else None for segment in segments]
    for index, segment in enumerate(segments):
        if segment.room is not None or segment.error is not None:
            continue
        for distance in range(1, len(segments)):
            candidates = (index + distance, index - distance)
            donor = next(
                (own[i] for i in candidates if 0 <= i < len(segments) and own[i] is not None),
                None,
            )
            if donor is not None:
                segment.room = donor
                segment.inherited_room = True
                break


def _build_descriptor(segment: SegmentPlan, room_names: list[str]) -> None:
    if segment.error is not None:
        return
    command = segment.command
    if command.intent is None:
        segment.error = CommandError("validation", MISSING_ACTION_ERROR)
        return
    if segment.room is None:
        message = f'No room found in command "{segment.text}".'
        if room_names:
            message += f" Available rooms: {', '.join(room_names)}"
        segment.error = CommandError("no_match", message, candidates=list(room_names))
        return
    segment.descriptor = CommandDescriptor(
        action=command.intent,
        room=segment.room,
        parameters=_parameters(command),
        device_filter=segment.device_filter,
    )


async def plan_commands(
    text: str,
    snapshot: DirectorySnapshot,
    language: str | None = None,
    oracle: SemanticOracle | None = None,
    config: PipelineConfig | None = None,
) -> CommandPlan:
    """将命令文本规划为原子命令描述。

    Args:
        text: 命令文本
        snapshot: 区域与设备快照
        language: 声明语言，缺省时使用配置中的默认语言
        oracle: 可选的异步语义 oracle
        config: 管线配置

    Returns:
        CommandPlan；无法规划的片段以 CommandError 附在片段上
    """
    config = config or PipelineConfig()
    code = resolve_language(language or config.default_language)
    is_multi = detect_multi_command(text, code)
    pieces = split_command(text, code) if is_multi else [text.strip()]

    plan = CommandPlan(
        text=text,
        language=code,
        snapshot=snapshot,
        is_multi_command=is_multi and len(pieces) > 1,
    )
    for piece in pieces:
        command = preprocess_command(piece, code)
        segment = SegmentPlan(text=piece, command=command)
        if command.device_types:
            segment.device_filter = command.device_types[0]
        else:
            segment.device_filter = _appliance_filter(fold(command.processed), code)
        await _resolve_room(segment, snapshot, code, oracle, config)
        plan.segments.append(segment)

    _inherit_rooms(plan.segments)
    room_names = snapshot.room_names
    for segment in plan.segments:
        _build_descriptor(segment, room_names)
        logger.info(
            "plan_segment text=%s intent=%s room=%s inherited=%s filter=%s error=%s",
            segment.text,
            segment.command.intent,
            segment.room,
            segment.inherited_room,
            segment.device_filter or "-",
            segment.error.message if segment.error else "-",
        )
    return plan
