from dataclasses import dataclass
from typing import Dict, List, Optional
from enum import Enum
from datetime import datetime

__all__ = [
    "Period", "Kind", "ReminderScope", "PERIOD_SCOPE",
    "periods_for_scope",
    "ClassificationResult",
    "Goal", "Note", "ReminderLog", "SendAttempt",
    "UserInfo",
]

# ----------------- 分类词汇 ----------------
class Period(str, Enum):
    """目标的时间范围标签，顺序没有语义"""
    URGENT = "urgent"
    THROUGH_DAY = "through_day"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    LIFE = "life"

    def __str__(self) -> str:
        return self.value


class Kind(str, Enum):
    GOAL = "goal"
    NOTE = "note"

    def __str__(self) -> str:
        return self.value


class ReminderScope(str, Enum):
    """提醒的粒度，多个 Period 归入同一个 Scope"""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    def __str__(self) -> str:
        return self.value


# Life 不属于任何 Scope，永远不会被提醒
PERIOD_SCOPE: Dict[Period, ReminderScope] = {
    Period.URGENT: ReminderScope.DAILY,
    Period.THROUGH_DAY: ReminderScope.DAILY,
    Period.DAILY: ReminderScope.DAILY,
    Period.WEEKLY: ReminderScope.WEEKLY,
    Period.MONTHLY: ReminderScope.MONTHLY,
}


def periods_for_scope(scope: ReminderScope) -> List[Period]:
    return [period for period, mapped in PERIOD_SCOPE.items() if mapped == scope]


@dataclass(frozen=True)
class ClassificationResult:
    kind: Kind
    period: Optional[Period]
    text: str  # 已去除首尾空白与 "note:" 之类的前缀

    @property
    def is_goal(self) -> bool:
        return self.kind == Kind.GOAL


# ----------------- 记录数据模型 ----------------
@dataclass
class Goal:
    goal_id: int
    user_id: int
    period: Period
    text: str
    created_at_utc: str  # 格式: "YYYY-MM-DD HH:MM:SS"


@dataclass
class Note:
    note_id: int
    user_id: int
    text: str
    created_at_utc: str  # 格式: "YYYY-MM-DD HH:MM:SS"


@dataclass
class ReminderLog:
    user_id: int
    scope: ReminderScope
    last_sent_at_utc: str  # 格式: "YYYY-MM-DD HH:MM:SS"


@dataclass
class SendAttempt:
    """一次摘要发送尝试的结果，由 ReminderScheduler.tick 返回"""
    user_id: int
    telegram_user_id: int
    scope: ReminderScope
    goal_count: int
    sent: bool
    error: Optional[str] = None
    attempted_at: Optional[datetime] = None


# ----------------- User 数据模型 ----------------
@dataclass
class UserInfo:
    user_id: int
    telegram_user_id: int
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
