from typing import Iterable

from datamodel import Goal, Period, ReminderScope

__all__ = ["DIGEST_HEADERS", "PERIOD_LABELS", "format_goal_line", "compose_digest"]

DIGEST_HEADERS = {
    ReminderScope.DAILY: "Хе-хей! Вот твои цели на сегодня, которые еще не выполнены:",
    ReminderScope.WEEKLY: "Хе-хей! Вот цели этой недели, которые еще не выполнены:",
    ReminderScope.MONTHLY: "Хе-хей! Вот цели этого месяца, которые еще не выполнены:",
}

PERIOD_LABELS = {
    Period.URGENT: "Urgent",
    Period.THROUGH_DAY: "ThroughDay",
    Period.DAILY: "Daily",
    Period.WEEKLY: "Weekly",
    Period.MONTHLY: "Monthly",
    Period.LIFE: "Life",
}


def format_goal_line(goal: Goal) -> str:
    return f"• [{PERIOD_LABELS[goal.period]}] {goal.text}"


def compose_digest(scope: ReminderScope, goals: Iterable[Goal]) -> str:
    lines = [DIGEST_HEADERS.get(scope, "Напоминание о целях:")]
    lines.extend(format_goal_line(goal) for goal in goals)
    return "\n".join(lines)
