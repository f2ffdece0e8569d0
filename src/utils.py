import calendar
import re
from datetime import datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

__all__ = ["UTC_STR_FORMAT", "now_utc", "now_utc_str", "to_utc_str", "utc_str_to_datetime",
           "to_user_local", "utc_str_to_user_local_min",
           "parse_hhmm", "parse_weekday", "WEEKDAY_NAMES",
           "start_of_day", "start_of_week", "start_of_month", "last_day_of_month", "is_last_day_of_month"]

# 与 SQLite CURRENT_TIMESTAMP 的格式保持一致，便于直接做字符串比较
UTC_STR_FORMAT = "%Y-%m-%d %H:%M:%S"

_HHMM_PATTERN = re.compile(r'^([01]?[0-9]|2[0-3]):([0-5][0-9])$')

WEEKDAY_NAMES = {
    "monday": 0, "mon": 0,
    "tuesday": 1, "tue": 1,
    "wednesday": 2, "wed": 2,
    "thursday": 3, "thu": 3,
    "friday": 4, "fri": 4,
    "saturday": 5, "sat": 5,
    "sunday": 6, "sun": 6,
}


def now_utc() -> datetime:
    """获取当前 UTC 时间"""
    return datetime.now(timezone.utc)

def now_utc_str() -> str:
    """获取当前 UTC 时间字符串，格式: 'YYYY-MM-DD HH:MM:SS'"""
    return to_utc_str(now_utc())

def to_utc_str(dt: datetime) -> str:
    # naive datetime 视为 UTC
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).strftime(UTC_STR_FORMAT)

def utc_str_to_datetime(utc_str: str) -> datetime:
    return datetime.strptime(utc_str, UTC_STR_FORMAT).replace(tzinfo=timezone.utc)

def to_user_local(dt: datetime, user_tz: str) -> datetime:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(ZoneInfo(user_tz))

def utc_str_to_user_local_min(utc_str: str, user_tz: str) -> str:
    return to_user_local(utc_str_to_datetime(utc_str), user_tz).strftime("%Y-%m-%d %H:%M")


def parse_hhmm(value: str | None, fallback: time | None) -> time | None:
    """解析 'HH:MM'，格式不合法时返回 fallback"""
    if not isinstance(value, str):
        return fallback
    match = _HHMM_PATTERN.match(value.strip())
    if match is None:
        return fallback
    return time(hour=int(match.group(1)), minute=int(match.group(2)))

def parse_weekday(value: str | None, fallback: int) -> int:
    """解析星期名称(monday/mon/...)或 0-6 的数字, 0 为周一"""
    if value is None:
        return fallback
    raw = value.strip().lower()
    if raw in WEEKDAY_NAMES:
        return WEEKDAY_NAMES[raw]
    if raw.isdigit() and 0 <= int(raw) <= 6:
        return int(raw)
    return fallback


# ----------------- 周期边界 ----------------
# 以下函数均保留 dt 的时区，调用方应先转换到用户本地时间

def start_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)

def start_of_week(dt: datetime, week_start: int) -> datetime:
    """最近一次(含当天) week_start 对应日期的零点"""
    diff = (7 + dt.weekday() - week_start) % 7
    return start_of_day(dt) - timedelta(days=diff)

def start_of_month(dt: datetime) -> datetime:
    return start_of_day(dt).replace(day=1)

def last_day_of_month(dt: datetime) -> int:
    return calendar.monthrange(dt.year, dt.month)[1]

def is_last_day_of_month(dt: datetime) -> bool:
    return dt.day == last_day_of_month(dt)
