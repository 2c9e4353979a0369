"""分层房间/设备类型匹配。

按 精确 → 别名 → 模糊 → 语义 的顺序尝试，第一层成功即返回。
语义层依赖外部注入的异步 oracle，任何 oracle 故障都被捕获并记录，
退化为已经计算好的模糊结果。
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from home_control.models import SIMILARITY_THRESHOLD, MatchResult, SemanticOracle
from home_control.text import (
    article_variants,
    containment_score,
    contains_term,
    fold,
    phonetic_variants,
    similarity,
    strip_articles,
)
from home_control.vocabulary import (
    DEVICE_TYPE_VOCABULARY,
    ROOM_VOCABULARY,
    VocabularyTable,
    canonical_keys,
    iter_surface_forms,
    resolve_language,
    translation_set,
)

logger = logging.getLogger(__name__)

CONFIDENCE_EXACT = 1.0
CONFIDENCE_ALIAS = 0.85
CONFIDENCE_NO_ARTICLES = 0.95
PHONETIC_PENALTY = 0.9
PHONETIC_THRESHOLD = 0.7
MIN_ALIAS_LENGTH = 3


class OracleReplyError(ValueError):
    """oracle 返回了无法使用的数据。"""


@dataclass
class _Scored:
    candidate: str
    score: float


def _clean_candidates(candidates: Iterable[str]) -> list[str]:
    cleaned: list[str] = []
    for candidate in candidates:
        if isinstance(candidate, str) and candidate.strip() and candidate not in cleaned:
            cleaned.append(candidate)
    return cleaned


def _match_exact(query: str, candidates: list[str]) -> str | None:
    folded = fold(query)
    for candidate in candidates:
        if fold(candidate) == folded:
            return candidate
    return None


def _query_canonicals(query: str, table: VocabularyTable, language: str) -> list[str]:
    """查找查询串对应的规范键（声明语言优先，然后所有语言）。"""
    folded = fold(query)
    stripped = strip_articles(folded, language)
    probes = {folded, stripped}

    for scope in (language, None):
        found: list[str] = []
        for _, canonical, form in iter_surface_forms(table, scope):
            folded_form = fold(form)
            if len(folded_form) < MIN_ALIAS_LENGTH:
                continue
            for probe in probes:
                if not probe:
                    continue
                if (
                    probe == folded_form
                    or contains_term(probe, folded_form)
                    or (len(probe) >= MIN_ALIAS_LENGTH and contains_term(folded_form, probe))
                ):
                    if canonical not in found:
                        found.append(canonical)
                    break
        if found:
            return found
    return []


def _alias_overlap(candidate: str, forms: frozenset[str], language: str) -> int:
    """返回候选名与翻译集合的最长重叠长度，0 表示无交集。"""
    folded = fold(candidate)
    variants = article_variants(folded, language)
    best = 0
    for form in forms:
        if len(form) < MIN_ALIAS_LENGTH:
            continue
        if form in variants:
            best = max(best, len(form) + 100)
        elif contains_term(folded, form):
            best = max(best, len(form))
    return best


def _match_alias(
    query: str,
    candidates: list[str],
    table: VocabularyTable,
    language: str,
) -> str | None:
    best: tuple[int, str] | None = None
    for canonical in _query_canonicals(query, table, language):
        forms = translation_set(table, canonical)
        for candidate in candidates:
            overlap = _alias_overlap(candidate, forms, language)
            if overlap and (best is None or overlap > best[0]):
                best = (overlap, candidate)
    return best[1] if best else None


def _fuzzy_score(query: str, candidate: str, language: str) -> float:
    """综合编辑距离、包含比例、冠词变体与发音变体的模糊分数。"""
    folded_query = fold(query)
    folded_candidate = fold(candidate)
    query_stem = strip_articles(folded_query, language)
    candidate_stem = strip_articles(folded_candidate, language)

    if query_stem and query_stem == candidate_stem:
        return CONFIDENCE_NO_ARTICLES

    score = 0.0
    for left in article_variants(folded_query, language):
        for right in article_variants(folded_candidate, language):
            score = max(score, similarity(right, left), containment_score(right, left))

    phonetic = 0.0
    for left in phonetic_variants(query_stem):
        for right in phonetic_variants(candidate_stem):
            phonetic = max(phonetic, similarity(right, left))
    if phonetic >= PHONETIC_THRESHOLD:
        score = max(score, phonetic * PHONETIC_PENALTY)
    return min(score, CONFIDENCE_NO_ARTICLES)


def _best_fuzzy(query: str, candidates: list[str], language: str) -> _Scored | None:
    best: _Scored | None = None
    for candidate in candidates:
        score = _fuzzy_score(query, candidate, language)
        logger.debug("fuzzy_score query=%s candidate=%s score=%.3f", query, candidate, score)
        if best is None or score > best.score:
            best = _Scored(candidate, score)
    return best


def match_sync(
    query: str,
    candidates: Iterable[str],
    language: str | None = "en",
    *,
    vocabulary: VocabularyTable = ROOM_VOCABULARY,
) -> MatchResult:
    """只运行精确、别名、模糊三层的同步匹配。

    模糊层未达阈值时返回 none 结果（附带候选列表）。
    """
    result, _ = _match_lexical(query, list(candidates), resolve_language(language), vocabulary)
    return result


def _match_lexical(
    query: str,
    candidates: list[str],
    language: str,
    vocabulary: VocabularyTable,
) -> tuple[MatchResult, _Scored | None]:
    cleaned = _clean_candidates(candidates)
    if not isinstance(query, str) or not fold(query) or not cleaned:
        return MatchResult.no_match(query or "", cleaned, language=language), None

    # 1. 精确匹配
    exact = _match_exact(query, cleaned)
    if exact is not None:
        return MatchResult(query, exact, CONFIDENCE_EXACT, "exact", language=language, candidates=cleaned), None

    # 2. 别名匹配
    alias = _match_alias(query, cleaned, vocabulary, language)
    if alias is not None:
        return MatchResult(query, alias, CONFIDENCE_ALIAS, "alias", language=language, candidates=cleaned), None

    # 3. 模糊匹配
    best = _best_fuzzy(query, cleaned, language)
    if best is not None and best.score >= SIMILARITY_THRESHOLD:
        return (
            MatchResult(query, best.candidate, best.score, "fuzzy", language=language, candidates=cleaned),
            best,
        )
    return MatchResult.no_match(query, cleaned, language=language), best


def coerce_oracle_reply(reply: Any, candidates: list[str]) -> tuple[str | None, float, str]:
    """校验 oracle 返回值。

    Returns:
        (候选原名或 None, 截断后的置信度, 理由)

    Raises:
        OracleReplyError: 返回值不是映射或字段类型错误
    """
    if not isinstance(reply, Mapping):
        raise OracleReplyError(f"oracle reply is not an object: {type(reply).__name__}")

    raw_match = reply.get("match")
    reasoning = reply.get("reasoning") or ""
    if not isinstance(reasoning, str):
        reasoning = str(reasoning)

    try:
        confidence = float(reply.get("confidence") or 0.0)
    except (TypeError, ValueError) as exc:
        raise OracleReplyError("oracle confidence is not a number") from exc
    if confidence != confidence:
        raise OracleReplyError("oracle confidence is NaN")
    confidence = max(0.0, min(1.0, confidence))

    if raw_match is None or (isinstance(raw_match, str) and not raw_match.strip()):
        return None, 0.0, reasoning
    if not isinstance(raw_match, str):
        raise OracleReplyError("oracle match is not a string")

    folded = fold(raw_match)
    for candidate in candidates:
        if fold(candidate) == folded:
            return candidate, confidence, reasoning

    logger.info("semantic_match_rejected match=%s reason=not_a_candidate", raw_match)
    return None, 0.0, reasoning


async def _ask_oracle(
    oracle: SemanticOracle,
    query: str,
    candidates: list[str],
    timeout: float | None,
) -> tuple[str | None, float, str]:
    if timeout is not None:
        reply = await asyncio.wait_for(oracle(query, list(candidates)), timeout)
    else:
        reply = await oracle(query, list(candidates))
    return coerce_oracle_reply(reply, candidates)


async def match(
    query: str,
    candidates: Iterable[str],
    language: str | None = "en",
    oracle: SemanticOracle | None = None,
    *,
    vocabulary: VocabularyTable = ROOM_VOCABULARY,
    timeout: float | None = None,
) -> MatchResult:
    """分层匹配查询串到候选名。

    Args:
        query: 用户说法（如 "trädgården"）
        candidates: 目录中的候选名
        language: 声明语言
        oracle: 可选的异步语义 oracle
        vocabulary: 用于别名层的词表
        timeout: oracle 调用超时（秒）

    Returns:
        MatchResult；全部失败时 match 为 None、method 为 none
    """
    code = resolve_language(language)
    cleaned = _clean_candidates(candidates)
    result, best = _match_lexical(query, cleaned, code, vocabulary)
    if result.method != "none" or oracle is None or not cleaned or not fold(query):
        _log_match(result)
        return result

    # 4. 语义匹配
    try:
        semantic, confidence, reasoning = await _ask_oracle(oracle, query, cleaned, timeout)
    except asyncio.TimeoutError:
        logger.warning("semantic_oracle_failed query=%s error=timeout", query)
        return _degrade(query, cleaned, code, best, "oracle timeout")
    except Exception as exc:
        logger.warning("semantic_oracle_failed query=%s error=%s", query, exc)
        return _degrade(query, cleaned, code, best, f"oracle failure: {exc}")

    if semantic is None:
        return _degrade(query, cleaned, code, best, reasoning or "oracle found no match")

    result = MatchResult(
        query,
        semantic,
        confidence,
        "semantic",
        reasoning=reasoning,
        language=code,
        candidates=cleaned,
    )
    _log_match(result)
    return result


def _degrade(
    query: str,
    candidates: list[str],
    language: str,
    best: _Scored | None,
    reasoning: str,
) -> MatchResult:
    """oracle 不可用时退化为模糊层结果。

    能走到语义层说明模糊层未达阈值，因此结果为 none，最接近的候选只写进 reasoning。
    """
    if best is not None and best.score > 0:
        reasoning = f"{reasoning}; closest={best.candidate} score={best.score:.2f}"
    result = MatchResult.no_match(query, candidates, reasoning=reasoning, language=language)
    _log_match(result)
    return result


def _log_match(result: MatchResult) -> None:
    logger.info(
        "match query=%s match=%s method=%s confidence=%.2f language=%s",
        result.query,
        result.match,
        result.method,
        result.confidence,
        result.language,
    )


async def batch_match(
    queries: Iterable[str],
    candidates: Iterable[str],
    language: str | None = "en",
    oracle: SemanticOracle | None = None,
    *,
    vocabulary: VocabularyTable = ROOM_VOCABULARY,
    timeout: float | None = None,
) -> list[MatchResult]:
    """并发匹配多个查询串，结果顺序与输入一致。"""
    candidate_list = _clean_candidates(candidates)
    return list(
        await asyncio.gather(
            *[
                match(
                    query,
                    candidate_list,
                    language,
                    oracle,
                    vocabulary=vocabulary,
                    timeout=timeout,
                )
                for query in queries
            ]
        )
    )


def match_device_type(query: str, language: str | None = "en") -> MatchResult:
    """将设备类型说法匹配到规范类型键（如 "lampor" -> "light"）。"""
    return match_sync(
        query,
        canonical_keys(DEVICE_TYPE_VOCABULARY),
        language,
        vocabulary=DEVICE_TYPE_VOCABULARY,
    )
