"""多语言实体抽取与命令规整。

在折叠后的命令文本中扫描房间、动作、设备类型的词表表层形式。
某类别在声明语言中没有命中时回退到所有语言扫描，并记录最终命中的语言。
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any

from home_control.models import EntityMention, ExtractionResult
from home_control.text import find_spans, fold, overlaps
from home_control.vocabulary import (
    ACTION_VOCABULARY,
    ALL_MODIFIERS,
    DEVICE_TYPE_VOCABULARY,
    FILLER_PHRASES,
    PHRASE_NORMALIZATIONS,
    ROOM_VOCABULARY,
    SOME_MODIFIERS,
    VocabularyTable,
    iter_surface_forms,
    resolve_language,
)

logger = logging.getLogger(__name__)

# (类别, 词表, 是否要求右侧词边界)
_CATEGORIES: tuple[tuple[str, VocabularyTable, bool], ...] = (
    ("rooms", ROOM_VOCABULARY, False),
    ("actions", ACTION_VOCABULARY, True),
    ("device_types", DEVICE_TYPE_VOCABULARY, False),
)

_TEMPERATURE_RE = re.compile(
    r"(\d+(?:[.,]\d+)?)\s*(?:degrees?|°|celsius|grader|grad|grados|degres|gradi|graus|graden|c)(?!\w)"
)
_PERCENT_RE = re.compile(
    r"(\d+)\s*(?:%|percent|procent|prozent|pour cent|por ciento|per cento|por cento)"
)
_WHITESPACE_RE = re.compile(r"\s+")

# 无词表命中时的兜底意图模式（英文）
_INTENT_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("set_temperature", re.compile(r"\b(set|adjust|change)\b.*\b(temperature|temp|heat|cool)\b")),
    ("play_music", re.compile(r"\b(play|start)\b.*\b(music|audio)\b")),
    ("stop_music", re.compile(r"\b(stop|pause)\b.*\b(music|audio)\b")),
    ("dim", re.compile(r"\b(dim|lower|reduce|decrease)\b")),
    ("brighten", re.compile(r"\b(brighten|increase|raise|boost)\b")),
    ("turn_on", re.compile(r"\b(turn on|switch on|activate|enable)\b")),
    ("turn_off", re.compile(r"\b(turn off|switch off|deactivate|disable|shut)\b")),
    ("unlock", re.compile(r"\bunlock\b")),
    ("lock", re.compile(r"\b(lock|secure)\b")),
)

_CLEAR_ON_RE = re.compile(r"\b(turn on|switch on|activate)\b")


def _scan(
    text: str,
    table: VocabularyTable,
    language: str | None,
    whole_word: bool,
) -> list[tuple[tuple[int, int], EntityMention]]:
    """扫描文本，返回去重叠后的命中（最长优先）。"""
    hits: list[tuple[tuple[int, int], EntityMention]] = []
    for code, canonical, form in iter_surface_forms(table, language):
        folded_form = fold(form)
        for span in find_spans(text, folded_form, whole_word=whole_word):
            hits.append((span, EntityMention(form, canonical, code, span[0])))

    hits.sort(key=lambda hit: (-(hit[0][1] - hit[0][0]), hit[0][0]))
    kept: list[tuple[tuple[int, int], EntityMention]] = []
    for span, mention in hits:
        if any(overlaps(span, existing) for existing, _ in kept):
            continue
        kept.append((span, mention))
    return kept


def _dedupe(mentions: list[EntityMention]) -> list[EntityMention]:
    seen: set[str] = set()
    result: list[EntityMention] = []
    for mention in mentions:
        if mention.canonical in seen:
            continue
        seen.add(mention.canonical)
        result.append(mention)
    return result


def _extract_category(
    text: str,
    category: str,
    table: VocabularyTable,
    language: str,
    whole_word: bool,
) -> tuple[list[EntityMention], str | None]:
    hits = _scan(text, table, language, whole_word)
    if not hits:
        hits = _scan(text, table, None, whole_word)
        if hits:
            logger.info(
                "extract_fallback category=%s declared=%s matched_language=%s",
                category,
                language,
                hits[0][1].language,
            )
    if not hits:
        return [], None

    if category == "actions":
        ordered = [mention for _, mention in hits]
    else:
        ordered = [mention for _, mention in sorted(hits, key=lambda hit: hit[0][0])]
    return _dedupe(ordered), hits[0][1].language


def extract_entities(text: str, language: str | None = "en") -> ExtractionResult:
    """从命令文本中抽取房间、动作、设备类型。

    Args:
        text: 命令文本
        language: 声明语言

    Returns:
        ExtractionResult；动作按表层形式长度降序，房间与设备类型按出现顺序
    """
    code = resolve_language(language)
    result = ExtractionResult(language=code)
    folded = fold(text)
    if not folded:
        return result

    for category, table, whole_word in _CATEGORIES:
        mentions, matched_language = _extract_category(
            folded, category, table, code, whole_word
        )
        setattr(result, category, mentions)
        if matched_language:
            result.matched_languages[category] = matched_language
    return result


def count_action_mentions(text: str, language: str | None = "en") -> int:
    """统计文本中（不重叠的）动作出现次数，用于多命令检测。"""
    code = resolve_language(language)
    folded = fold(text)
    hits = _scan(folded, ACTION_VOCABULARY, code, True)
    if not hits:
        hits = _scan(folded, ACTION_VOCABULARY, None, True)
    return len(hits)


def _normalize(word: str, table: VocabularyTable, language: str | None) -> str:
    folded = fold(word)
    if not folded:
        return word
    code = resolve_language(language)

    for scope in (code, None):
        best: tuple[int, str] | None = None
        for _, canonical, form in iter_surface_forms(table, scope):
            folded_form = fold(form)
            if folded_form == folded:
                return canonical
            if folded_form in folded or folded in folded_form:
                if best is None or len(folded_form) > best[0]:
                    best = (len(folded_form), canonical)
        if best is not None:
            return best[1]
    return word


def normalize_action(word: str, language: str | None = "en") -> str:
    """将动作说法规整为规范动作键；无法识别时原样返回。"""
    return _normalize(word, ACTION_VOCABULARY, language)


def normalize_device_type(word: str, language: str | None = "en") -> str:
    """将设备类型说法规整为规范类型键；无法识别时原样返回。"""
    return _normalize(word, DEVICE_TYPE_VOCABULARY, language)


def normalize_room_name(word: str, language: str | None = "en") -> str:
    """将房间说法规整为规范房间键；无法识别时原样返回。"""
    return _normalize(word, ROOM_VOCABULARY, language)


@dataclass
class ProcessedCommand:
    """预处理后的命令。"""

    original: str
    processed: str
    language: str
    extraction: ExtractionResult
    intent: str | None
    rooms: list[str] = field(default_factory=list)
    device_types: list[str] = field(default_factory=list)
    values: dict[str, Any] = field(default_factory=dict)
    modifiers: list[str] = field(default_factory=list)
    confidence: float = 0.0


def normalize_phrases(text: str) -> str:
    """去掉礼貌用语并统一常见动作短语。"""
    processed = fold(text)
    for filler in FILLER_PHRASES:
        processed = re.sub(rf"\b{re.escape(filler)}\b", " ", processed)
    for source, target in PHRASE_NORMALIZATIONS.items():
        processed = re.sub(rf"\b{re.escape(source)}\b", target, processed)
    return _WHITESPACE_RE.sub(" ", processed).strip()


def extract_values(text: str) -> dict[str, Any]:
    """抽取温度与百分比数值。"""
    values: dict[str, Any] = {}
    folded = fold(text)

    temperature = _TEMPERATURE_RE.search(folded)
    if temperature:
        raw = temperature.group(1).replace(",", ".")
        number = float(raw)
        values["temperature"] = int(number) if number.is_integer() else number

    percentage = _PERCENT_RE.search(folded)
    if percentage:
        values["percentage"] = int(percentage.group(1))
    return values


def extract_modifiers(text: str) -> list[str]:
    folded = fold(text)
    modifiers: list[str] = []
    if any(re.search(rf"\b{re.escape(fold(word))}\b", folded) for word in ALL_MODIFIERS):
        modifiers.append("all")
    if any(re.search(rf"\b{re.escape(fold(word))}\b", folded) for word in SOME_MODIFIERS):
        modifiers.append("some")
    return modifiers


def _fallback_intent(text: str) -> str | None:
    for intent, pattern in _INTENT_PATTERNS:
        if pattern.search(text):
            return intent
    return None


def _score_confidence(
    processed: str,
    intent: str | None,
    extraction: ExtractionResult,
) -> float:
    """按命中情况估算命令清晰度。"""
    confidence = 0.5
    if intent is not None and (intent != "turn_on" or _CLEAR_ON_RE.search(processed)):
        confidence += 0.2
    if extraction.rooms:
        confidence += 0.35
    if extraction.actions:
        confidence += 0.15
    if extraction.device_types:
        confidence += 0.2

    multilingual = min(extraction.total_matches * 0.3, 1.0)
    confidence = max(confidence, multilingual)

    if len(processed) < 5:
        confidence -= 0.2
    if not extraction.rooms and not extraction.device_types:
        confidence -= 0.3
    if intent is None:
        confidence -= 0.3
    return max(0.0, min(1.0, confidence))


def preprocess_command(text: str, language: str | None = "en") -> ProcessedCommand:
    """预处理命令：规整短语、抽取实体、识别意图与数值。

    Args:
        text: 原始命令文本
        language: 声明语言

    Returns:
        ProcessedCommand；无法识别动作时 intent 为 None
    """
    code = resolve_language(language)
    processed = normalize_phrases(text)
    extraction = extract_entities(processed, code)

    intent = extraction.actions[0].canonical if extraction.actions else None
    if intent is None:
        intent = _fallback_intent(processed)

    command = ProcessedCommand(
        original=text,
        processed=processed,
        language=code,
        extraction=extraction,
        intent=intent,
        rooms=[mention.canonical for mention in extraction.rooms],
        device_types=[mention.canonical for mention in extraction.device_types],
        values=extract_values(processed),
        modifiers=extract_modifiers(processed),
    )
    command.confidence = _score_confidence(processed, intent, extraction)
    return command


def suggest_improvement(command: ProcessedCommand) -> str | None:
    """为低置信度命令生成改进提示；足够清晰时返回 None。"""
    if command.confidence > 0.7:
        return None

    suggestions: list[str] = []
    if not command.rooms:
        suggestions.append("specify which room (e.g., 'living room', 'kitchen')")
    if command.intent is None:
        suggestions.append("be more specific about the action (e.g., 'turn on', 'turn off')")
    if not command.device_types and not command.rooms:
        suggestions.append("mention what device or room you want to control")

    if not suggestions:
        return "Try being more specific about what you want to control and what action to take."
    return f"Try to {' and '.join(suggestions)}."
