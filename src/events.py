"""事件总线模块，定义了事件总线类 Bus 及事件名集合 E

处理器可以是普通函数或协程函数; 协程处理器会被调度到当前事件循环上执行，
emit 方不会等待其完成。
"""

from __future__ import annotations
from pyee.asyncio import AsyncIOEventEmitter
from typing import Any, Callable

from logger import logger

Handler = Callable[..., Any]

# 事件名集中定义
class E:
    RECORD_SAVED = "record.saved"  # kwargs: user_id, kind, record
    DIGEST_SENT = "reminder.digest_sent"  # kwargs: attempt


class Bus(AsyncIOEventEmitter):
    def __init__(self) -> None:
        super().__init__()
        # 处理器抛出的异常只记录，不影响 emit 方
        super(Bus, self).on("error", self._log_handler_error)

    @staticmethod
    def _log_handler_error(error: Exception) -> None:
        logger.error(f"事件处理器执行失败: {error!r}", exc_info=error)

    def on(self, event: str) -> Callable[[Handler], Handler]:
        """注册事件处理器装饰器"""
        def decorator(handler: Handler) -> Handler:
            logger.debug(f"注册事件处理器: {event} -> {handler.__name__}")
            super(Bus, self).on(event, handler)
            return handler

        return decorator


bus = Bus()

__all__ = ["bus", "E"]
