import storage.db_config as db_config
from datamodel import ReminderLog, ReminderScope
from logger import logger

__all__ = ["get_reminder_log", "upsert_reminder_log"]


async def get_reminder_log(user_id: int, scope: ReminderScope) -> ReminderLog | None:
    conn = db_config.ensure_conn()
    async with conn.execute(
        "SELECT user_id, scope, last_sent_at_utc FROM reminder_logs WHERE user_id = ? AND scope = ?",
        (user_id, scope.value)
    ) as cursor:
        row = await cursor.fetchone()
    if row is None:
        return None
    return ReminderLog(user_id=row[0], scope=ReminderScope(row[1]), last_sent_at_utc=row[2])


async def upsert_reminder_log(user_id: int, scope: ReminderScope, last_sent_at_utc: str) -> None:
    """记录某用户某 Scope 的最近一次发送时间，首次发送时创建"""
    conn = db_config.ensure_conn()
    await conn.execute(
        "INSERT INTO reminder_logs (user_id, scope, last_sent_at_utc) VALUES (?, ?, ?) "
        "ON CONFLICT (user_id, scope) DO UPDATE SET last_sent_at_utc = excluded.last_sent_at_utc",
        (user_id, scope.value, last_sent_at_utc)
    )
    await conn.commit()
    logger.trace(f"更新提醒记录: user_id={user_id}, scope={scope}, last_sent_at_utc={last_sent_at_utc}")
