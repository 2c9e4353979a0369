"""文本规整与模糊匹配工具。

使用 unicodedata 折叠变音符，使用 rapidfuzz 计算编辑距离相似度。
所有比较都在折叠后的文本上进行，原始文本由调用方保留用于展示。
"""

from __future__ import annotations

import re
import unicodedata

from rapidfuzz.distance import Levenshtein

_WHITESPACE_RE = re.compile(r"\s+")
_DASH_TRANSLATION = str.maketrans(
    {
        "－": "-",
        "—": "-",
        "–": "-",
        "―": "-",
        "−": "-",
    }
)
_APOSTROPHE_TRANSLATION = str.maketrans(
    {
        "’": "'",
        "‘": "'",
        "´": "'",
        "`": "'",
    }
)
# NFD 无法分解的字母
_LETTER_TRANSLATION = str.maketrans(
    {
        "æ": "a",
        "ø": "o",
        "œ": "oe",
        "đ": "d",
        "ł": "l",
    }
)

_ARTICLE_PREFIXES: dict[str, tuple[str, ...]] = {
    "en": ("the ",),
    "de": ("der ", "die ", "das "),
    "fr": ("les ", "le ", "la ", "l'"),
    "es": ("los ", "las ", "el ", "la "),
    "it": ("gli ", "il ", "lo ", "la ", "le ", "l'"),
    "pt": ("os ", "as ", "o ", "a "),
    "nl": ("het ", "de "),
}
_ARTICLE_SUFFIXES: dict[str, tuple[str, ...]] = {
    "sv": ("en", "et", "n"),
    "no": ("en", "et", "a"),
    "da": ("en", "et"),
}
_MIN_STEM_LENGTH = 3

_PHONETIC_SUBSTITUTIONS = (
    ("ph", "f"),
    ("th", "t"),
    ("ck", "k"),
    ("qu", "kv"),
    ("x", "ks"),
    ("z", "s"),
    ("v", "w"),
    ("w", "v"),
)
_DOUBLE_CONSONANT_RE = re.compile(r"([b-df-hj-np-tv-z])\1")


def fold(value: str | None) -> str:
    """折叠大小写与变音符，得到可比较的稳定形式。

    "Trägården" 与 "tragarden" 折叠后相同；ß 展开为 ss。

    Args:
        value: 原始文本

    Returns:
        折叠后的文本；非字符串返回空串
    """
    if not isinstance(value, str):
        return ""
    cleaned = value.strip().casefold()
    if not cleaned:
        return ""
    decomposed = unicodedata.normalize("NFD", cleaned)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    stripped = stripped.translate(_LETTER_TRANSLATION)
    stripped = stripped.translate(_DASH_TRANSLATION)
    stripped = stripped.translate(_APOSTROPHE_TRANSLATION)
    stripped = _WHITESPACE_RE.sub(" ", stripped)
    return stripped.strip()


def strip_articles(value: str, language: str) -> str:
    """去掉定冠词（前置冠词或北欧语言的词尾定指形式）。

    Args:
        value: 文本（会先折叠）
        language: 语言代码

    Returns:
        去冠词后的折叠文本
    """
    folded = fold(value)
    if not folded:
        return ""

    for prefix in _ARTICLE_PREFIXES.get(language, ()):
        if folded.startswith(prefix) and len(folded) > len(prefix):
            return folded[len(prefix):].strip()

    for suffix in _ARTICLE_SUFFIXES.get(language, ()):
        if folded.endswith(suffix) and len(folded) - len(suffix) >= _MIN_STEM_LENGTH:
            return folded[: -len(suffix)]

    return folded


def article_variants(value: str, language: str) -> set[str]:
    """生成带/不带定冠词的变体集合。

    北欧语言额外补上词干的 -en/-et 定指形式，
    使 "tradgard" 与 "tradgarden" 可以互相命中。
    """
    folded = fold(value)
    if not folded:
        return set()
    stem = strip_articles(folded, language)
    variants = {folded, stem}
    if language in _ARTICLE_SUFFIXES:
        for suffix in ("en", "et"):
            variants.add(stem + suffix)
    return {variant for variant in variants if variant}


def phonetic_variants(value: str) -> set[str]:
    """生成常见的发音近似拼写变体。"""
    folded = fold(value)
    if not folded:
        return set()
    variants = {folded}
    for pattern, replacement in _PHONETIC_SUBSTITUTIONS:
        if pattern in folded:
            variants.add(folded.replace(pattern, replacement))
    variants.add(_DOUBLE_CONSONANT_RE.sub(r"\1", folded))
    return variants


def similarity(text: str, query: str) -> float:
    """计算归一化编辑距离相似度。

    等价于 1 - distance / max(len(text), len(query))。

    Args:
        text: 目标文本
        query: 查询串

    Returns:
        相似度 [0, 1]
    """
    if not text or not query:
        return 0.0
    return Levenshtein.normalized_similarity(text, query)


def containment_score(text: str, query: str) -> float:
    """一方包含另一方时按长度比例给分，否则为 0。"""
    if not text or not query:
        return 0.0
    if query in text or text in query:
        return min(len(text), len(query)) / max(len(text), len(query))
    return 0.0


def find_spans(text: str, term: str, *, whole_word: bool = False) -> list[tuple[int, int]]:
    """查找词在文本中的所有出现位置。

    左侧总是要求词边界；`whole_word` 为 True 时右侧也要求词边界，
    否则允许词尾附加后缀（复数、定指形式）。
    """
    if not text or not term:
        return []
    pattern = r"(?<!\w)" + re.escape(term)
    if whole_word:
        pattern += r"(?!\w)"
    return [(m.start(), m.end()) for m in re.finditer(pattern, text)]


def contains_term(text: str, term: str, *, whole_word: bool = False) -> bool:
    """检查文本是否包含词（带边界约束）。"""
    return bool(find_spans(text, term, whole_word=whole_word))


def overlaps(span: tuple[int, int], other: tuple[int, int]) -> bool:
    return span[0] < other[1] and other[0] < span[1]
