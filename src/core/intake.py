"""消息入口：把收到的文字/语音归档为目标或笔记，并处理手动命令

这里与具体通道无关，返回值就是要回复给用户的文本。
"""

from datetime import datetime
from typing import Optional

from channels.base import IncomingMessage
from classifier.engine import classify
from classifier.heuristics import parse_period
from datamodel import ClassificationResult, Kind, UserInfo
from events import bus, E
from llm.base import RemoteClassifier, Transcriber
from logger import logger
from metrics import runtime_metrics
from utils import to_utc_str, utc_str_to_user_local_min
from world.digest import PERIOD_LABELS, format_goal_line
from zoneinfo import ZoneInfo
import storage.goal as goal_storage
import storage.note as note_storage
import storage.user as user_storage

__all__ = ["Intake", "HELP_TEXT", "LIST_LIMIT"]

LIST_LIMIT = 20

HELP_TEXT = (
    "Send a message or voice note. I will file it as a goal or note.\n"
    "Commands:\n"
    "/goals [period] - list goals (urgent, through_day, daily, weekly, monthly, life).\n"
    "/notes [since date] - list notes (optional ISO date).\n"
    "/goal <period> <text> - save a goal manually.\n"
    "/note <text> - save a note manually."
)

GOAL_USAGE = "Usage: /goal monthly Invest $3k monthly"
NOTE_USAGE = "Usage: /note I felt great today"
UNKNOWN_PERIOD = "Unknown period. Use urgent, through_day, daily, weekly, monthly, life."
VOICE_FAILED = "I received a voice message but could not transcribe it yet. Please try again or send text."
EMPTY_MESSAGE = "Send text or a voice note."


class Intake:
    def __init__(
        self,
        remote: Optional[RemoteClassifier] = None,
        transcriber: Optional[Transcriber] = None,
        timezone: str = "UTC",
    ) -> None:
        self.remote = remote
        self.transcriber = transcriber
        self.timezone = timezone

    async def _get_user(self, msg: IncomingMessage) -> UserInfo:
        return await user_storage.get_or_create_user(
            msg.telegram_user_id,
            username=msg.username,
            first_name=msg.first_name,
            last_name=msg.last_name,
        )

    async def _transcribe(self, msg: IncomingMessage) -> Optional[str]:
        if self.transcriber is None:
            logger.info(f"收到 Telegram 用户 {msg.telegram_user_id} 的语音, 但未配置语音转写")
            return None
        return await self.transcriber.transcribe(msg.voice, msg.voice_filename)

    @staticmethod
    def _created_at(msg: IncomingMessage) -> Optional[str]:
        return to_utc_str(msg.timestamp) if msg.timestamp is not None else None

    async def _save(self, user: UserInfo, msg: IncomingMessage, result: ClassificationResult) -> str:
        created_at = self._created_at(msg)
        if result.is_goal and result.period is not None:
            record = await goal_storage.create_goal(user.user_id, result.period, result.text, created_at)
            reply = f"Saved goal for {PERIOD_LABELS[result.period]}."
        else:
            record = await note_storage.create_note(user.user_id, result.text, created_at)
            reply = "Saved note."
        bus.emit(E.RECORD_SAVED, user_id=user.user_id, kind=result.kind, record=record)
        return reply

    async def handle_message(self, msg: IncomingMessage) -> str:
        """处理非命令消息，返回回复文本"""
        runtime_metrics.record_msg_in()
        content = (msg.content or "").strip()

        if msg.voice is not None:
            content = (await self._transcribe(msg) or "").strip()
            if content == "":
                return VOICE_FAILED

        if content == "":
            return EMPTY_MESSAGE

        user = await self._get_user(msg)
        result = await classify(content, self.remote)
        logger.info(f"用户 {user.user_id} 的消息归档为 {result.kind}" + (f" ({result.period})" if result.period else ""))
        return await self._save(user, msg, result)

    async def handle_command(self, msg: IncomingMessage) -> str:
        parts = msg.content.strip().split(maxsplit=1)
        # 群组中的命令形如 /goals@SomeBot
        command = parts[0].split("@", 1)[0].lower() if parts else ""
        argument = parts[1].strip() if len(parts) > 1 else ""
        logger.info(f"收到 {command} 命令来自 Telegram ID: {msg.telegram_user_id}")

        if command in ("/start", "/help"):
            await self._get_user(msg)
            return HELP_TEXT
        if command == "/goals":
            return await self._list_goals(msg, argument)
        if command == "/notes":
            return await self._list_notes(msg, argument)
        if command == "/goal":
            return await self._save_manual_goal(msg, argument)
        if command == "/note":
            return await self._save_manual_note(msg, argument)
        return "Unknown command. Type /help."

    async def _list_goals(self, msg: IncomingMessage, argument: str) -> str:
        user = await self._get_user(msg)
        period = parse_period(argument) if argument else None
        goals = await goal_storage.list_goals(
            user.user_id,
            periods=[period] if period is not None else None,
            limit=LIST_LIMIT,
        )
        if not goals:
            return "No goals found for that period."

        header = "Your latest goals:" if period is None else f"Your {PERIOD_LABELS[period]} goals:"
        return "\n".join([header, *(format_goal_line(goal) for goal in goals)])

    def _parse_since(self, argument: str) -> Optional[str]:
        if argument == "":
            return None
        try:
            since = datetime.fromisoformat(argument)
        except ValueError:
            logger.debug(f"/notes 参数不是合法的 ISO 日期, 已忽略: {argument!r}")
            return None
        if since.tzinfo is None:
            since = since.replace(tzinfo=ZoneInfo(self.timezone))
        return to_utc_str(since)

    async def _list_notes(self, msg: IncomingMessage, argument: str) -> str:
        user = await self._get_user(msg)
        notes = await note_storage.list_notes(user.user_id, since_utc=self._parse_since(argument), limit=LIST_LIMIT)
        if not notes:
            return "No notes found."

        lines = ["Your latest notes:"]
        lines.extend(
            f"• {utc_str_to_user_local_min(note.created_at_utc, self.timezone)} {note.text}" for note in notes
        )
        return "\n".join(lines)

    async def _save_manual_goal(self, msg: IncomingMessage, argument: str) -> str:
        pieces = argument.split(maxsplit=1)
        if len(pieces) < 2:
            return GOAL_USAGE

        period = parse_period(pieces[0])
        if period is None:
            return UNKNOWN_PERIOD

        user = await self._get_user(msg)
        goal = await goal_storage.create_goal(user.user_id, period, pieces[1].strip(), self._created_at(msg))
        bus.emit(E.RECORD_SAVED, user_id=user.user_id, kind=Kind.GOAL, record=goal)
        return "Saved goal."

    async def _save_manual_note(self, msg: IncomingMessage, argument: str) -> str:
        if argument == "":
            return NOTE_USAGE

        user = await self._get_user(msg)
        note = await note_storage.create_note(user.user_id, argument, self._created_at(msg))
        bus.emit(E.RECORD_SAVED, user_id=user.user_id, kind=Kind.NOTE, record=note)
        return "Saved note."
