import storage.db_config as db_config
from datamodel import Goal, Period
from logger import logger
from utils import now_utc_str
from typing import Iterable, Optional

__all__ = ["create_goal", "list_goals"]

_GOAL_COLUMNS = "goal_id, user_id, period, text, created_at_utc"


def _row_to_goal(row) -> Goal:
    return Goal(
        goal_id=row[0],
        user_id=row[1],
        period=Period(row[2]),
        text=row[3],
        created_at_utc=row[4],
    )


async def create_goal(user_id: int, period: Period, text: str, created_at_utc: Optional[str] = None) -> Goal:
    """创建目标"""
    conn = db_config.ensure_conn()
    created_at_utc = created_at_utc or now_utc_str()
    async with conn.execute(
        "INSERT INTO goals (user_id, period, text, created_at_utc) VALUES (?, ?, ?, ?)",
        (user_id, period.value, text, created_at_utc)
    ) as cursor:
        goal_id = cursor.lastrowid
    await conn.commit()
    logger.trace(f"创建目标: user_id={user_id}, period={period}, goal_id={goal_id}")
    return Goal(goal_id=goal_id, user_id=user_id, period=period, text=text, created_at_utc=created_at_utc)


async def list_goals(
    user_id: int,
    since_utc: Optional[str] = None,
    periods: Optional[Iterable[Period]] = None,
    limit: int = 20,
) -> list[Goal]:
    """按创建时间倒序列出目标，可按起始时间与期限过滤"""
    conn = db_config.ensure_conn()
    sql = f"SELECT {_GOAL_COLUMNS} FROM goals WHERE user_id = ?"
    params: list = [user_id]
    if since_utc is not None:
        sql += " AND created_at_utc >= ?"
        params.append(since_utc)
    if periods is not None:
        period_values = [Period(p).value for p in periods]
        if not period_values:
            return []
        sql += f" AND period IN ({', '.join('?' for _ in period_values)})"
        params.extend(period_values)
    sql += " ORDER BY created_at_utc DESC, goal_id DESC LIMIT ?"
    params.append(limit)

    async with conn.execute(sql, params) as cursor:
        rows = await cursor.fetchall()
    return [_row_to_goal(row) for row in rows]
