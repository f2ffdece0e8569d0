from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

__all__ = ["RemoteClassifier", "Transcriber"]


class RemoteClassifier(ABC):
    """远程分类器：一次 prompt/response 往返，返回解析后的 JSON 对象"""

    @abstractmethod
    async def classify(self, text: str) -> Dict[str, Any]:
        """失败时直接抛异常，由调用方决定如何降级"""
        pass


class Transcriber(ABC):
    @abstractmethod
    async def transcribe(self, audio: bytes, filename: str) -> Optional[str]:
        """返回转写文本，失败或无结果时返回 None，不抛异常"""
        pass
