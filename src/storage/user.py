import storage.db_config as db_config
from datamodel import UserInfo
from logger import logger
from typing import Optional

__all__ = ["get_or_create_user", "get_user_by_telegram_id", "list_users"]

_USER_COLUMNS = "user_id, telegram_user_id, username, first_name, last_name"


def _row_to_user(row) -> UserInfo:
    return UserInfo(
        user_id=row[0],
        telegram_user_id=row[1],
        username=row[2],
        first_name=row[3],
        last_name=row[4],
    )


async def get_or_create_user(
    telegram_user_id: int,
    username: Optional[str] = None,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
) -> UserInfo:
    """按 Telegram ID 取用户，不存在则创建；已存在时刷新用户名等资料"""
    conn = db_config.ensure_conn()
    await conn.execute(
        "INSERT INTO users (telegram_user_id, username, first_name, last_name) VALUES (?, ?, ?, ?) "
        "ON CONFLICT (telegram_user_id) DO UPDATE SET "
        "username = excluded.username, first_name = excluded.first_name, last_name = excluded.last_name",
        (telegram_user_id, username, first_name, last_name)
    )
    await conn.commit()
    user = await get_user_by_telegram_id(telegram_user_id)
    if user is None:
        raise RuntimeError(f"写入后仍找不到 Telegram 用户 {telegram_user_id}")
    logger.trace(f"获取或创建用户: telegram_user_id={telegram_user_id}, user_id={user.user_id}")
    return user

async def get_user_by_telegram_id(telegram_user_id: int) -> UserInfo | None:
    """通过 Telegram 用户 ID 获取用户信息"""
    conn = db_config.ensure_conn()
    async with conn.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE telegram_user_id = ?", (telegram_user_id,)) as cursor:
        row = await cursor.fetchone()
    return _row_to_user(row) if row else None

async def list_users() -> list[UserInfo]:
    conn = db_config.ensure_conn()
    async with conn.execute(f"SELECT {_USER_COLUMNS} FROM users ORDER BY user_id") as cursor:
        rows = await cursor.fetchall()
    return [_row_to_user(row) for row in rows]
