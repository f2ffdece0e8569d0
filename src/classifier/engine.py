"""目标/笔记分类入口

判定顺序(先命中者生效):
1. 空输入 -> 空笔记
2. 显式笔记前缀 ("note:" / "заметка:")
3. 远程分类(仅在提供 remote 时)，失败或结果不可用时静默降级
4. 本地规则: 心情/日记标记 -> 期限关键词 -> 行动标记 -> 默认笔记
"""

from typing import Any, Dict, Optional

from logger import logger
from datamodel import ClassificationResult, Kind, Period
from llm.base import RemoteClassifier
from metrics import runtime_metrics
from classifier.heuristics import classify_heuristic, parse_period, strip_note_prefix

__all__ = ["classify", "result_from_remote"]


def result_from_remote(payload: Dict[str, Any]) -> Optional[ClassificationResult]:
    """校验远程返回的 {isGoal, period, text}，不可用时返回 None"""
    if not isinstance(payload, dict):
        return None
    text = payload.get("text")
    if not isinstance(text, str) or text.strip() == "":
        return None
    # 缺省 isGoal 视为笔记；给了但不是布尔值则整条结果不可用
    is_goal = payload.get("isGoal", False)
    if not isinstance(is_goal, bool):
        return None

    if not is_goal:
        return ClassificationResult(Kind.NOTE, None, text.strip())

    period = payload.get("period")
    parsed = parse_period(period) if isinstance(period, str) else None
    # 远程认为是目标但没给出可识别的期限时，与本地规则一致默认当天
    return ClassificationResult(Kind.GOAL, parsed or Period.THROUGH_DAY, text.strip())


async def classify(raw_text: str, remote: Optional[RemoteClassifier] = None) -> ClassificationResult:
    text = (raw_text or "").strip()
    if text == "":
        return ClassificationResult(Kind.NOTE, None, "")

    stripped = strip_note_prefix(text)
    if stripped is not None:
        return ClassificationResult(Kind.NOTE, None, stripped)

    if remote is not None:
        try:
            payload = await remote.classify(text)
        except Exception as e:
            logger.warning(f"远程分类失败, 改用本地规则: {e!r}", exc_info=e)
        else:
            result = result_from_remote(payload)
            if result is not None:
                logger.debug(f"远程分类结果: is_goal={result.is_goal}, period={result.period}")
                return result
            logger.warning(f"远程分类结果不可用, 改用本地规则: {payload!r}")
        runtime_metrics.record_heuristic_fallback()

    result = classify_heuristic(text)
    logger.debug(f"本地规则分类结果: kind={result.kind}, period={result.period}")
    return result
