from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional
from enum import Enum
from datetime import datetime

__all__ = ["ChannelType", "IncomingMessage", "Notifier"]


class ChannelType(str, Enum):
    TELEGRAM_BOT_POLLING = "telegram_bot_polling"
    #TELEGRAM_BOT_WEBHOOK = "telegram_bot_webhook"

@dataclass
class IncomingMessage:
    channel_type: ChannelType
    telegram_user_id: int  # 注意，这里是平台侧的用户 ID，不是数据库里的 user_id
    content: str
    voice: Optional[bytes] = None  # 语音消息的原始音频
    voice_filename: str = "voice.ogg"
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    timestamp: Optional[datetime] = None  # 平台侧的消息时间，为空时按入库时间


class Notifier(ABC):
    """通知通道，发送失败时必须抛异常，调度器据此跳过提醒记录的更新"""

    @abstractmethod
    async def send(self, telegram_user_id: int, text: str) -> None:
        pass
