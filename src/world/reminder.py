"""
目标摘要提醒

每个 tick 对所有用户逐个检查 Daily / Weekly / Monthly 三个 Scope:
到了触发时间且本周期内尚未发送过，就把本周期内创建的相关目标汇总成一条消息发出，
发送成功后再写入 reminder_logs。先发送后记录，进程若在两步之间退出，下个 tick 会重复发送一次。

周期内没有任何目标时不发送，也不写记录，同一周期内之后新增目标仍会在下一个 tick 触发。
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, time, timezone
from typing import Callable, Dict, List, Optional

from channels.base import Notifier
from datamodel import ReminderScope, SendAttempt, UserInfo, periods_for_scope
from events import bus, E
from logger import logger
from metrics import runtime_metrics
from storage.repository import ReminderStore
from utils import (
    is_last_day_of_month,
    now_utc,
    start_of_day,
    start_of_month,
    start_of_week,
    to_user_local,
    to_utc_str,
)
from world.digest import compose_digest

__all__ = ["ReminderConfig", "ReminderScheduler", "is_reminder_due", "get_period_start", "SCOPES"]

SCOPES = (ReminderScope.DAILY, ReminderScope.WEEKLY, ReminderScope.MONTHLY)


@dataclass(frozen=True)
class ReminderConfig:
    daily_time: time = time(21, 0)
    weekly_time: time = time(21, 0)
    monthly_time: time = time(21, 0)
    weekly_day: int = 6  # 0 为周一，默认周日发送周摘要
    week_start_day: int = 0  # 周期从周一零点开始
    tick_seconds: float = 60.0
    max_goals: int = 20
    timezone: str = "UTC"

    def trigger_time(self, scope: ReminderScope) -> time:
        return {
            ReminderScope.DAILY: self.daily_time,
            ReminderScope.WEEKLY: self.weekly_time,
            ReminderScope.MONTHLY: self.monthly_time,
        }[scope]

    @classmethod
    def from_settings(cls) -> "ReminderConfig":
        from config import settings

        return cls(
            daily_time=settings.REMINDER_DAILY_TIME,
            weekly_time=settings.REMINDER_WEEKLY_TIME,
            monthly_time=settings.REMINDER_MONTHLY_TIME,
            weekly_day=settings.REMINDER_WEEKLY_DAY,
            week_start_day=settings.REMINDER_WEEK_START_DAY,
            tick_seconds=settings.REMINDER_TICK_SECONDS,
            max_goals=settings.REMINDER_MAX_GOALS,
            timezone=settings.USER_TIMEZONE,
        )


def is_reminder_due(scope: ReminderScope, now_local: datetime, config: ReminderConfig) -> bool:
    """now_local 需为用户本地时间"""
    trigger = config.trigger_time(scope)
    scheduled = start_of_day(now_local).replace(hour=trigger.hour, minute=trigger.minute)
    if now_local < scheduled:
        return False

    if scope == ReminderScope.DAILY:
        return True
    if scope == ReminderScope.WEEKLY:
        return now_local.weekday() == config.weekly_day
    if scope == ReminderScope.MONTHLY:
        return is_last_day_of_month(now_local)
    return False


def get_period_start(scope: ReminderScope, now_local: datetime, config: ReminderConfig) -> datetime:
    if scope == ReminderScope.DAILY:
        return start_of_day(now_local)
    if scope == ReminderScope.WEEKLY:
        return start_of_week(now_local, config.week_start_day)
    if scope == ReminderScope.MONTHLY:
        return start_of_month(now_local)
    raise ValueError(f"未知的提醒范围: {scope}")


class ReminderScheduler:
    """配置、时钟与两个协作者(存储、通知)在构造时注入，运行期间不再变化"""

    def __init__(
        self,
        config: ReminderConfig,
        store: ReminderStore,
        notifier: Notifier,
        clock: Callable[[], datetime] = now_utc,
    ) -> None:
        self.config = config
        self.store = store
        self.notifier = notifier
        self.clock = clock
        self._tick_lock = asyncio.Lock()
        self._running = False
        self._last_tick_at: Optional[datetime] = None

    def get_status(self) -> Dict[str, object]:
        return {
            "running": self._running,
            "last_tick_at_utc": to_utc_str(self._last_tick_at) if self._last_tick_at else None,
        }

    async def tick(self, now: Optional[datetime] = None) -> List[SendAttempt]:
        """执行一次检查，返回本次的发送尝试(不含因未到期/已发送/无内容而跳过的 Scope)"""
        if self._tick_lock.locked():
            logger.warning("上一次提醒检查尚未结束，跳过本次 tick")
            return []

        async with self._tick_lock:
            now = now or self.clock()
            if now.tzinfo is None:
                now = now.replace(tzinfo=timezone.utc)
            self._last_tick_at = now
            now_local = to_user_local(now, self.config.timezone)

            try:
                users = await self.store.list_users()
            except Exception as e:
                logger.error(f"读取用户列表失败, 本次 tick 跳过: {e!r}", exc_info=e)
                return []

            attempts: List[SendAttempt] = []
            for user in users:
                for scope in SCOPES:
                    attempt = await self._handle_scope(user, scope, now, now_local)
                    if attempt is not None:
                        attempts.append(attempt)
            return attempts

    async def _handle_scope(
        self,
        user: UserInfo,
        scope: ReminderScope,
        now: datetime,
        now_local: datetime,
    ) -> Optional[SendAttempt]:
        if not is_reminder_due(scope, now_local, self.config):
            return None

        period_start_utc = to_utc_str(get_period_start(scope, now_local, self.config))
        sent = False
        goal_count = 0
        try:
            log = await self.store.get_reminder_log(user.user_id, scope)
            if log is not None and log.last_sent_at_utc >= period_start_utc:
                return None

            goals = await self.store.list_goals(
                user.user_id,
                since_utc=period_start_utc,
                periods=periods_for_scope(scope),
                limit=self.config.max_goals,
            )
            if not goals:
                logger.trace(f"用户 {user.user_id} 的 {scope} 周期内没有目标, 不发送")
                return None
            goal_count = len(goals)

            await self.notifier.send(user.telegram_user_id, compose_digest(scope, goals))
            sent = True
            await self.store.upsert_reminder_log(user.user_id, scope, to_utc_str(now))
        except Exception as e:
            if sent:
                logger.error(f"用户 {user.user_id} 的 {scope} 摘要已发送, 但写入提醒记录失败: {e!r}", exc_info=e)
            else:
                logger.error(f"用户 {user.user_id} 的 {scope} 摘要发送失败: {e!r}", exc_info=e)
            runtime_metrics.record_digest(sent=sent)
            return SendAttempt(
                user_id=user.user_id,
                telegram_user_id=user.telegram_user_id,
                scope=scope,
                goal_count=goal_count,
                sent=sent,
                error=repr(e),
                attempted_at=now,
            )

        logger.info(f"已向用户 {user.user_id} 发送 {scope} 摘要, 共 {goal_count} 条目标")
        runtime_metrics.record_digest(sent=True)
        attempt = SendAttempt(
            user_id=user.user_id,
            telegram_user_id=user.telegram_user_id,
            scope=scope,
            goal_count=goal_count,
            sent=True,
            attempted_at=now,
        )
        bus.emit(E.DIGEST_SENT, attempt=attempt)
        return attempt

    async def run_loop(self, shutdown_event: asyncio.Event) -> None:
        """按固定间隔执行 tick，停止信号只在两次 tick 之间生效"""
        self._running = True
        logger.info(f"提醒主循环已启动, 间隔 {self.config.tick_seconds} 秒")
        try:
            while not shutdown_event.is_set():
                try:
                    await self.tick()
                except Exception as e:
                    logger.error(f"提醒检查出现未处理的异常: {e!r}", exc_info=e)

                try:
                    await asyncio.wait_for(shutdown_event.wait(), timeout=self.config.tick_seconds)
                except asyncio.TimeoutError:
                    pass
        finally:
            self._running = False
            logger.info("提醒主循环已关闭")
