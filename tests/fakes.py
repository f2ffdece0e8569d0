"""In-memory collaborators for scheduler, classifier and intake tests."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

from channels.base import Notifier
from datamodel import Goal, Period, ReminderLog, UserInfo
from llm.base import RemoteClassifier, Transcriber
from storage.repository import ReminderStore


class FakeStore(ReminderStore):
    def __init__(self, users: List[UserInfo] | None = None) -> None:
        self.users: List[UserInfo] = list(users or [])
        self.goals: List[Goal] = []
        self.logs: Dict[tuple, ReminderLog] = {}
        self.failing_goal_users: set[int] = set()
        self._next_goal_id = 1

    def add_goal(self, user_id: int, period: Period, text: str, created_at_utc: str) -> Goal:
        goal = Goal(self._next_goal_id, user_id, period, text, created_at_utc)
        self._next_goal_id += 1
        self.goals.append(goal)
        return goal

    def set_log(self, user_id: int, scope, last_sent_at_utc: str) -> None:
        self.logs[(user_id, scope)] = ReminderLog(user_id, scope, last_sent_at_utc)

    async def list_users(self) -> List[UserInfo]:
        return list(self.users)

    async def list_goals(self, user_id, since_utc, periods, limit) -> List[Goal]:
        if user_id in self.failing_goal_users:
            raise RuntimeError("database is locked")
        wanted = set(periods)
        matched = [
            goal for goal in self.goals
            if goal.user_id == user_id and goal.created_at_utc >= since_utc and goal.period in wanted
        ]
        matched.sort(key=lambda goal: (goal.created_at_utc, goal.goal_id), reverse=True)
        return matched[:limit]

    async def get_reminder_log(self, user_id, scope) -> Optional[ReminderLog]:
        return self.logs.get((user_id, scope))

    async def upsert_reminder_log(self, user_id, scope, last_sent_at_utc) -> None:
        self.set_log(user_id, scope, last_sent_at_utc)


class FakeNotifier(Notifier):
    def __init__(self, gate: asyncio.Event | None = None) -> None:
        self.sent: List[tuple[int, str]] = []
        self.failing_ids: set[int] = set()
        self.gate = gate

    async def send(self, telegram_user_id: int, text: str) -> None:
        if self.gate is not None:
            await self.gate.wait()
        if telegram_user_id in self.failing_ids:
            raise ConnectionError("telegram unavailable")
        self.sent.append((telegram_user_id, text))


class FakeRemote(RemoteClassifier):
    def __init__(self, payload: Any = None, error: BaseException | None = None) -> None:
        self.payload = payload
        self.error = error
        self.calls: List[str] = []

    async def classify(self, text: str) -> Dict[str, Any]:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return self.payload


class FakeTranscriber(Transcriber):
    def __init__(self, text: Optional[str]) -> None:
        self.text = text
        self.calls: List[tuple[bytes, str]] = []

    async def transcribe(self, audio: bytes, filename: str) -> Optional[str]:
        self.calls.append((audio, filename))
        return self.text
