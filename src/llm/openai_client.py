from logger import logger
from config.settings import (
    OPENAI_API_KEY,
    OPENAI_BASE_URL,
    OPENAI_MODEL,
    OPENAI_TRANSCRIBE_MODEL,
    REMOTE_TIMEOUT_SECONDS,
)
from config.prompts import CLASSIFIER_SYSTEM_PROMPT
from llm.base import RemoteClassifier, Transcriber
from metrics import runtime_metrics
from openai import AsyncOpenAI
from typing import Any, Dict, Optional
import asyncio
import json
import re
import time

__all__ = ["OpenAIClassifier", "OpenAITranscriber", "load_json_object", "create_remote_clients"]

_CODE_FENCE_OPEN = re.compile(r"^```[a-zA-Z0-9_\-]*\s*\n")
_CODE_FENCE_CLOSE = re.compile(r"\n```\s*$")


def load_json_object(raw: str) -> Dict[str, Any]:
    """解析模型返回的 JSON 对象，允许外层包裹 markdown 代码块

    解析失败或顶层不是对象时抛 ValueError。
    """
    text = raw.strip()
    if text.startswith("```"):
        text = _CODE_FENCE_OPEN.sub("", text)
        text = _CODE_FENCE_CLOSE.sub("", text)
    loaded = json.loads(text)  # json.JSONDecodeError 是 ValueError 的子类
    if not isinstance(loaded, dict):
        raise ValueError(f"期望 JSON 对象, 实际为 {type(loaded).__name__}")
    return loaded


class OpenAIClassifier(RemoteClassifier):
    def __init__(
        self,
        api_key: str = OPENAI_API_KEY,
        base_url: str = OPENAI_BASE_URL,
        model: str = OPENAI_MODEL,
        timeout: float = REMOTE_TIMEOUT_SECONDS,
        inst: str = CLASSIFIER_SYSTEM_PROMPT,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url
        self.model = model
        self.timeout = timeout
        self.inst = inst
        # 重试交给下一条消息，这里只做一次往返
        self.client = AsyncOpenAI(
            api_key=self.api_key,
            base_url=self.base_url,
            timeout=self.timeout,
            max_retries=0,
        )

    async def classify(self, text: str) -> Dict[str, Any]:
        logger.trace(f"远程分类请求发起 BaseUrl:{self.base_url}; Model:{self.model}; Text:{text}")
        started = time.monotonic()
        error = False
        try:
            response = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": self.inst},
                        {"role": "user", "content": text},
                    ],
                    response_format={"type": "json_object"},
                ),
                timeout=self.timeout,
            )
        except BaseException:
            error = True
            raise
        finally:
            runtime_metrics.record_remote_call((time.monotonic() - started) * 1000, error=error)

        logger.trace(f"远程分类收到响应: {response}")
        if not response.choices:
            raise ValueError("远程分类响应中没有 choices")
        content = response.choices[0].message.content
        if content is None or content.strip() == "":
            raise ValueError("远程分类响应内容为空")
        return load_json_object(content)


class OpenAITranscriber(Transcriber):
    def __init__(
        self,
        api_key: str = OPENAI_API_KEY,
        base_url: str = OPENAI_BASE_URL,
        model: str = OPENAI_TRANSCRIBE_MODEL,
        timeout: float = REMOTE_TIMEOUT_SECONDS,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url
        self.model = model
        self.timeout = timeout
        self.client = AsyncOpenAI(
            api_key=self.api_key,
            base_url=self.base_url,
            timeout=self.timeout,
            max_retries=0,
        )

    async def transcribe(self, audio: bytes, filename: str) -> Optional[str]:
        logger.trace(f"语音转写请求发起 Model:{self.model}; File:{filename}; Size:{len(audio)}")
        try:
            result = await asyncio.wait_for(
                self.client.audio.transcriptions.create(
                    model=self.model,
                    file=(filename, audio),
                ),
                timeout=self.timeout,
            )
        except Exception as e:
            logger.warning(f"语音转写失败: {e!r}", exc_info=e)
            return None

        text = getattr(result, "text", None)
        if not text or not text.strip():
            return None
        return text.strip()


def create_remote_clients() -> tuple[Optional[RemoteClassifier], Optional[Transcriber]]:
    """根据配置创建远程客户端，未配置 OPENAI_API_KEY 时两者都为 None"""
    if not OPENAI_API_KEY:
        logger.info("未设置 OPENAI_API_KEY, 仅使用本地规则分类, 语音转写不可用")
        return None, None
    return OpenAIClassifier(), OpenAITranscriber()
