"""提醒调度器使用的持久化接口及其 SQLite 实现"""

from abc import ABC, abstractmethod
from typing import Iterable, Optional

from datamodel import Goal, Period, ReminderLog, ReminderScope, UserInfo
import storage.goal as goal_storage
import storage.reminder_log as reminder_log_storage
import storage.user as user_storage

__all__ = ["ReminderStore", "SqliteReminderStore"]


class ReminderStore(ABC):
    @abstractmethod
    async def list_users(self) -> list[UserInfo]:
        pass

    @abstractmethod
    async def list_goals(
        self,
        user_id: int,
        since_utc: str,
        periods: Iterable[Period],
        limit: int,
    ) -> list[Goal]:
        """按创建时间倒序返回 since_utc 之后(含)创建、期限属于 periods 的目标"""
        pass

    @abstractmethod
    async def get_reminder_log(self, user_id: int, scope: ReminderScope) -> Optional[ReminderLog]:
        pass

    @abstractmethod
    async def upsert_reminder_log(self, user_id: int, scope: ReminderScope, last_sent_at_utc: str) -> None:
        pass


class SqliteReminderStore(ReminderStore):
    async def list_users(self) -> list[UserInfo]:
        return await user_storage.list_users()

    async def list_goals(self, user_id, since_utc, periods, limit) -> list[Goal]:
        return await goal_storage.list_goals(user_id, since_utc=since_utc, periods=periods, limit=limit)

    async def get_reminder_log(self, user_id, scope) -> Optional[ReminderLog]:
        return await reminder_log_storage.get_reminder_log(user_id, scope)

    async def upsert_reminder_log(self, user_id, scope, last_sent_at_utc) -> None:
        await reminder_log_storage.upsert_reminder_log(user_id, scope, last_sent_at_utc)
