import storage.db_config as db_config
from datamodel import Note
from logger import logger
from utils import now_utc_str
from typing import Optional

__all__ = ["create_note", "list_notes"]


async def create_note(user_id: int, text: str, created_at_utc: Optional[str] = None) -> Note:
    """创建笔记"""
    conn = db_config.ensure_conn()
    created_at_utc = created_at_utc or now_utc_str()
    async with conn.execute(
        "INSERT INTO notes (user_id, text, created_at_utc) VALUES (?, ?, ?)",
        (user_id, text, created_at_utc)
    ) as cursor:
        note_id = cursor.lastrowid
    await conn.commit()
    logger.trace(f"创建笔记: user_id={user_id}, note_id={note_id}")
    return Note(note_id=note_id, user_id=user_id, text=text, created_at_utc=created_at_utc)


async def list_notes(user_id: int, since_utc: Optional[str] = None, limit: int = 20) -> list[Note]:
    conn = db_config.ensure_conn()
    sql = "SELECT note_id, user_id, text, created_at_utc FROM notes WHERE user_id = ?"
    params: list = [user_id]
    if since_utc is not None:
        sql += " AND created_at_utc >= ?"
        params.append(since_utc)
    sql += " ORDER BY created_at_utc DESC, note_id DESC LIMIT ?"
    params.append(limit)

    async with conn.execute(sql, params) as cursor:
        rows = await cursor.fetchall()
    return [Note(note_id=row[0], user_id=row[1], text=row[2], created_at_utc=row[3]) for row in rows]
