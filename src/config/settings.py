import os
from datetime import time
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from dotenv import load_dotenv
from logger import logger
from utils import parse_hhmm, parse_weekday
load_dotenv()

__all__ = [
    "TELEGRAM_BOT_TOKEN", "ALLOWED_TELEGRAM_USER_IDS",
    "OPENAI_API_KEY", "OPENAI_BASE_URL", "OPENAI_MODEL", "OPENAI_TRANSCRIBE_MODEL",
    "REMOTE_TIMEOUT_SECONDS",
    "USER_TIMEZONE",
    "REMINDER_DAILY_TIME", "REMINDER_WEEKLY_TIME", "REMINDER_MONTHLY_TIME",
    "REMINDER_WEEKLY_DAY", "REMINDER_WEEK_START_DAY",
    "REMINDER_TICK_SECONDS", "REMINDER_MAX_GOALS",
    "DB_PATH", "LOG_LEVEL", "LOG_FILE",
]

DEFAULT_TRIGGER_TIME = time(21, 0)


def _parse_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"{name}={raw!r} 非法, 已回退到 {default}")
        return default
    if value <= 0:
        logger.warning(f"{name}={raw!r} 必须为正数, 已回退到 {default}")
        return default
    return value


def _parse_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        logger.warning(f"{name}={raw!r} 不是整数, 已回退到 {default}")
        return default
    if value < 1:
        logger.warning(f"{name}={raw!r} 必须为正整数, 已回退到 {default}")
        return default
    return value


def _parse_time(name: str, default: time = DEFAULT_TRIGGER_TIME) -> time:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    parsed = parse_hhmm(raw, None)
    if parsed is None:
        logger.warning(f"{name}={raw!r} 不是合法的 HH:MM, 已回退到 {default.strftime('%H:%M')}")
        return default
    return parsed


def _parse_weekday(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    parsed = parse_weekday(raw, -1)
    if parsed == -1:
        logger.warning(f"{name}={raw!r} 不是合法的星期, 已回退到默认值")
        return default
    return parsed


def _parse_id_list(name: str) -> list[int]:
    raw = os.getenv(name, "")
    ids: list[int] = []
    for part in raw.split(","):
        part = part.strip()
        if part == "":
            continue
        try:
            ids.append(int(part))
        except ValueError:
            logger.warning(f"{name} 中的 {part!r} 不是合法的 Telegram ID, 已忽略")
    return ids


# Telegram Bot
TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN", "")
ALLOWED_TELEGRAM_USER_IDS = _parse_id_list("ALLOWED_TELEGRAM_USER_IDS")  # 为空表示不限制


# 远程分类/转写 (OpenAI 兼容接口)，未设置 key 时整条远程路径关闭
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY") or None
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1").rstrip("/")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
OPENAI_TRANSCRIBE_MODEL = os.getenv("OPENAI_TRANSCRIBE_MODEL", "whisper-1")
REMOTE_TIMEOUT_SECONDS = _parse_float("REMOTE_TIMEOUT_SECONDS", 15.0)


# 用户时区，用于计算本地零点
USER_TIMEZONE = os.getenv("USER_TIMEZONE", "UTC").strip()
try:
    ZoneInfo(USER_TIMEZONE)
except (ZoneInfoNotFoundError, ValueError):
    logger.warning(f"USER_TIMEZONE={USER_TIMEZONE!r} 不是合法的 IANA 时区, 已回退到 UTC")
    USER_TIMEZONE = "UTC"


# 提醒
REMINDER_DAILY_TIME = _parse_time("REMINDER_DAILY_TIME")
REMINDER_WEEKLY_TIME = _parse_time("REMINDER_WEEKLY_TIME")
REMINDER_MONTHLY_TIME = _parse_time("REMINDER_MONTHLY_TIME")
REMINDER_WEEKLY_DAY = _parse_weekday("REMINDER_WEEKLY_DAY", 6)  # 周日
REMINDER_WEEK_START_DAY = _parse_weekday("REMINDER_WEEK_START_DAY", 0)  # 周一
REMINDER_TICK_SECONDS = _parse_float("REMINDER_TICK_SECONDS", 60.0)
REMINDER_MAX_GOALS = _parse_int("REMINDER_MAX_GOALS", 20)


# 存储与日志
DB_PATH = os.getenv("DB_PATH", "data/routine.db")
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG").strip().upper()
LOG_FILE = os.getenv("LOG_FILE", "logs/routine.log")
