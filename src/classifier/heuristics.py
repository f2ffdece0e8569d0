"""确定性的本地分类规则

不依赖网络，任何输入都不会抛异常。远程分类不可用或失败时由它兜底。
"""

from typing import Iterable, Optional

from datamodel import ClassificationResult, Kind, Period
from classifier.keywords import (
    GOAL_MARKERS,
    NOTE_MARKERS,
    NOTE_PREFIXES,
    PERIOD_KEYWORDS,
    PERIOD_PRIORITY,
    PERIOD_TOKENS,
)

__all__ = ["parse_period", "strip_note_prefix", "find_period", "looks_like_note", "looks_like_goal",
           "classify_heuristic"]


def parse_period(value: Optional[str]) -> Optional[Period]:
    """把 'urgent' / 'through_day' / 'Through Day' 等写法解析为 Period，无法识别时返回 None"""
    if value is None:
        return None
    return PERIOD_TOKENS.get(value.strip().lower())


def strip_note_prefix(text: str) -> Optional[str]:
    """若 text 以笔记前缀开头，返回去掉前缀后的内容，否则返回 None"""
    lower = text.lower()
    for prefix in NOTE_PREFIXES:
        if lower.startswith(prefix):
            return text[len(prefix):].strip()
    return None


def _contains_any(lower: str, markers: Iterable[str]) -> bool:
    return any(marker in lower for marker in markers)


def find_period(lower: str) -> Optional[Period]:
    for period in PERIOD_PRIORITY:
        if _contains_any(lower, PERIOD_KEYWORDS[period]):
            return period
    return None


def looks_like_note(lower: str) -> bool:
    return _contains_any(lower, NOTE_MARKERS)


def looks_like_goal(lower: str) -> bool:
    return _contains_any(lower, GOAL_MARKERS)


def classify_heuristic(raw_text: str) -> ClassificationResult:
    text = (raw_text or "").strip()
    if text == "":
        return ClassificationResult(Kind.NOTE, None, "")

    stripped = strip_note_prefix(text)
    if stripped is not None:
        return ClassificationResult(Kind.NOTE, None, stripped)

    lower = text.lower()
    if looks_like_note(lower):
        return ClassificationResult(Kind.NOTE, None, text)

    period = find_period(lower)
    if period is not None:
        return ClassificationResult(Kind.GOAL, period, text)

    if looks_like_goal(lower):
        # 没有显式期限的目标默认当天完成
        return ClassificationResult(Kind.GOAL, Period.THROUGH_DAY, text)

    return ClassificationResult(Kind.NOTE, None, text)
