"""多命令检测与拆分。"""

from __future__ import annotations

import logging
import re
from functools import lru_cache

from home_control.extractor import count_action_mentions, preprocess_command
from home_control.text import fold
from home_control.vocabulary import CONNECTORS, DEFAULT_LANGUAGE, resolve_language

logger = logging.getLogger(__name__)

# 逗号后紧跟字母（排除 "21,5" 这类小数）
_COMMA_RE = re.compile(r",\s*(?=[^\W\d])")


def _connectors(language: str) -> list[str]:
    terms = set(CONNECTORS.get(language, ())) | set(CONNECTORS[DEFAULT_LANGUAGE])
    return sorted(terms, key=len, reverse=True)


@lru_cache(maxsize=None)
def _split_pattern(language: str) -> re.Pattern[str]:
    alternation = "|".join(re.escape(term) for term in _connectors(language))
    return re.compile(
        rf"\s*,?\s*(?<!\w)(?:{alternation})(?!\w)\s*|\s*,\s*(?=[^\W\d])",
        re.IGNORECASE,
    )


def detect_multi_command(text: str, language: str | None = "en") -> bool:
    """判断文本是否可能包含多条命令。

    命中连接词、逗号分隔或出现多个动作词任一即视为多命令。
    """
    code = resolve_language(language)
    folded = fold(text)
    if not folded:
        return False
    for connector in _connectors(code):
        if re.search(rf"(?<!\w){re.escape(fold(connector))}(?!\w)", folded):
            return True
    if _COMMA_RE.search(folded):
        return True
    return count_action_mentions(folded, code) > 1


def _has_action(piece: str, language: str) -> bool:
    return preprocess_command(piece, language).intent is not None


def split_command(text: str, language: str | None = "en") -> list[str]:
    """按连接词与逗号拆分命令，保持从左到右的顺序。

    不含动作的片段并回相邻片段（"turn on kitchen and living room lights"
    仍是一条命令）。

    Args:
        text: 原始命令文本
        language: 声明语言

    Returns:
        命令片段列表；单一意图的句子返回单元素列表
    """
    code = resolve_language(language)
    if not isinstance(text, str) or not text.strip():
        return []

    # 1. 按分隔符切出片段区间（保留原文大小写）
    spans: list[tuple[int, int]] = []
    position = 0
    for separator in _split_pattern(code).finditer(text):
        if separator.start() > position:
            spans.append((position, separator.start()))
        position = max(position, separator.end())
    spans.append((position, len(text)))
    spans = [(start, end) for start, end in spans if text[start:end].strip()]

    # 2. 无动作片段并入相邻片段
    merged: list[list[int]] = []
    pending_start: int | None = None
    for start, end in spans:
        if _has_action(text[start:end], code):
            if pending_start is not None:
                start, pending_start = pending_start, None
            merged.append([start, end])
        elif merged:
            merged[-1][1] = end
        elif pending_start is None:
            pending_start = start

    if not merged:
        segments = [text.strip()]
    else:
        segments = [text[start:end].strip() for start, end in merged]

    logger.info("split_command language=%s segments=%d", code, len(segments))
    return segments
