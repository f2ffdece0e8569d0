"""分类用的关键词表

全部为小写子串，匹配前输入会先被转为小写。新增语言时只需要扩充这里的表。
"""

from typing import Dict, Tuple

from datamodel import Period

__all__ = ["NOTE_PREFIXES", "NOTE_MARKERS", "GOAL_MARKERS", "PERIOD_KEYWORDS", "PERIOD_PRIORITY", "PERIOD_TOKENS"]

# 以这些前缀开头的消息强制视为笔记，前缀本身会被去掉
NOTE_PREFIXES: Tuple[str, ...] = (
    "note:",
    "заметка:",
)

# 心情/日记类标记
NOTE_MARKERS: Tuple[str, ...] = (
    "i feel",
    "mood",
    "feeling",
    "journal",
    "reflection",
    "заметка",
    "мысл",
    "наблюден",
    "чувств",
    "настроен",
    "дневник",
    "итоги",
    # 当天回顾
    "сегодня было",
    "сегодня я",
)

# 行动/意图标记，命中后视为没有显式期限的目标
GOAL_MARKERS: Tuple[str, ...] = (
    "need to",
    "i need",
    "i have to",
    "have to",
    "plan to",
    "todo",
    "task",
    "goal",
    "надо",
    "нужно",
    "хочу",
    "план",
    "сделать",
    "купить",
    "позвонить",
    "написать",
    "подготовить",
    "записаться",
    "отправить",
    "сегодня",
    "завтра",
)

PERIOD_KEYWORDS: Dict[Period, Tuple[str, ...]] = {
    Period.URGENT: ("urgent", "asap", "срочно"),
    Period.THROUGH_DAY: ("through day", "through-day", "through_day", "today", "сегодня"),
    Period.DAILY: ("daily", "every day", "каждый день", "ежедневно"),
    Period.WEEKLY: ("weekly", "every week", "this week", "каждую неделю", "еженедельно", "на этой неделе"),
    Period.MONTHLY: ("monthly", "every month", "this month", "каждый месяц", "ежемесячно", "в этом месяце"),
    Period.LIFE: ("life", "long term", "long-term"),
}

# 多个期限同时命中时，排在前面的优先
PERIOD_PRIORITY: Tuple[Period, ...] = (
    Period.URGENT,
    Period.THROUGH_DAY,
    Period.DAILY,
    Period.WEEKLY,
    Period.MONTHLY,
    Period.LIFE,
)

# 远程结果与 /goal 命令中允许的期限写法
PERIOD_TOKENS: Dict[str, Period] = {
    "urgent": Period.URGENT,
    "through_day": Period.THROUGH_DAY,
    "through day": Period.THROUGH_DAY,
    "daily": Period.DAILY,
    "weekly": Period.WEEKLY,
    "monthly": Period.MONTHLY,
    "life": Period.LIFE,
}
