"""Message intake: classification, persistence and manual commands."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import storage.goal as goal_storage
import storage.note as note_storage
import storage.user as user_storage
from channels.base import ChannelType, IncomingMessage
from core.intake import (
    EMPTY_MESSAGE,
    GOAL_USAGE,
    HELP_TEXT,
    NOTE_USAGE,
    UNKNOWN_PERIOD,
    VOICE_FAILED,
    Intake,
)
from datamodel import Kind, Period
from events import bus, E
from fakes import FakeRemote, FakeTranscriber


def message(content: str = "", voice: bytes | None = None, telegram_user_id: int = 42) -> IncomingMessage:
    return IncomingMessage(
        channel_type=ChannelType.TELEGRAM_BOT_POLLING,
        telegram_user_id=telegram_user_id,
        content=content,
        voice=voice,
        username="ann",
        first_name="Ann",
    )


async def _records(telegram_user_id: int = 42):
    user = await user_storage.get_user_by_telegram_id(telegram_user_id)
    return await goal_storage.list_goals(user.user_id), await note_storage.list_notes(user.user_id)


def test_text_goal_is_saved(run_with_db) -> None:
    async def scenario():
        reply = await Intake().handle_message(message("нужно купить молоко"))
        return reply, await _records()

    reply, (goals, notes) = run_with_db(scenario)
    assert reply == "Saved goal for ThroughDay."
    assert [(g.period, g.text) for g in goals] == [(Period.THROUGH_DAY, "нужно купить молоко")]
    assert notes == []


def test_text_note_is_saved_with_marker_stripped(run_with_db) -> None:
    async def scenario():
        reply = await Intake().handle_message(message("note: quiet evening"))
        return reply, await _records()

    reply, (goals, notes) = run_with_db(scenario)
    assert reply == "Saved note."
    assert goals == []
    assert [n.text for n in notes] == ["quiet evening"]


def test_remote_classifier_is_used(run_with_db) -> None:
    remote = FakeRemote(payload={"isGoal": True, "period": "monthly", "text": "Invest $3k"})

    async def scenario():
        reply = await Intake(remote=remote).handle_message(message("put three grand into the index fund"))
        return reply, await _records()

    reply, (goals, _) = run_with_db(scenario)
    assert reply == "Saved goal for Monthly."
    assert [(g.period, g.text) for g in goals] == [(Period.MONTHLY, "Invest $3k")]


def test_voice_message_is_transcribed_and_classified(run_with_db) -> None:
    transcriber = FakeTranscriber("weekly: clean the garage")

    async def scenario():
        reply = await Intake(transcriber=transcriber).handle_message(message(voice=b"OggS..."))
        return reply, await _records()

    reply, (goals, _) = run_with_db(scenario)
    assert reply == "Saved goal for Weekly."
    assert transcriber.calls == [(b"OggS...", "voice.ogg")]
    assert goals[0].text == "weekly: clean the garage"


def test_voice_without_transcription(run_with_db) -> None:
    async def scenario():
        no_backend = await Intake().handle_message(message(voice=b"OggS..."))
        empty_result = await Intake(transcriber=FakeTranscriber(None)).handle_message(message(voice=b"OggS..."))
        return no_backend, empty_result, await user_storage.list_users()

    no_backend, empty_result, users = run_with_db(scenario)
    assert no_backend == VOICE_FAILED
    assert empty_result == VOICE_FAILED
    assert users == []


def test_empty_text_is_rejected(run_with_db) -> None:
    async def scenario():
        return await Intake().handle_message(message("   "))

    assert run_with_db(scenario) == EMPTY_MESSAGE


def test_record_saved_event(run_with_db) -> None:
    seen = []

    def on_saved(user_id, kind, record):
        seen.append((kind, record.text))

    async def scenario():
        await Intake().handle_message(message("I feel calm"))
        await Intake().handle_command(message("/goal life learn piano"))

    bus.on(E.RECORD_SAVED)(on_saved)
    try:
        run_with_db(scenario)
    finally:
        bus.remove_listener(E.RECORD_SAVED, on_saved)

    assert seen == [(Kind.NOTE, "I feel calm"), (Kind.GOAL, "learn piano")]


def test_help_and_unknown_commands(run_with_db) -> None:
    async def scenario():
        intake = Intake()
        return (
            await intake.handle_command(message("/start")),
            await intake.handle_command(message("/help@RoutineBot")),
            await intake.handle_command(message("/dance")),
            await user_storage.list_users(),
        )

    start, help_text, unknown, users = run_with_db(scenario)
    assert start == HELP_TEXT and help_text == HELP_TEXT
    assert unknown == "Unknown command. Type /help."
    assert [(u.telegram_user_id, u.username) for u in users] == [(42, "ann")]


def test_manual_goal_command(run_with_db) -> None:
    async def scenario():
        intake = Intake()
        return (
            await intake.handle_command(message("/goal")),
            await intake.handle_command(message("/goal weekly")),
            await intake.handle_command(message("/goal someday fix the bike")),
            await intake.handle_command(message("/goal Through_Day fix the bike")),
            await _records(),
        )

    no_args, no_text, bad_period, saved, (goals, _) = run_with_db(scenario)
    assert no_args == GOAL_USAGE and no_text == GOAL_USAGE
    assert bad_period == UNKNOWN_PERIOD
    assert saved == "Saved goal."
    assert [(g.period, g.text) for g in goals] == [(Period.THROUGH_DAY, "fix the bike")]


def test_manual_note_command(run_with_db) -> None:
    async def scenario():
        intake = Intake()
        return (
            await intake.handle_command(message("/note")),
            await intake.handle_command(message("/note need to buy milk")),
            await _records(),
        )

    usage, saved, (goals, notes) = run_with_db(scenario)
    assert usage == NOTE_USAGE
    assert saved == "Saved note."
    assert goals == []
    assert [n.text for n in notes] == ["need to buy milk"]


def test_goals_listing(run_with_db) -> None:
    async def scenario():
        intake = Intake()
        empty = await intake.handle_command(message("/goals"))
        user = await user_storage.get_or_create_user(42)
        await goal_storage.create_goal(user.user_id, Period.WEEKLY, "clean garage", "2026-10-19 10:00:00")
        await goal_storage.create_goal(user.user_id, Period.URGENT, "pay rent", "2026-10-20 10:00:00")
        return (
            empty,
            await intake.handle_command(message("/goals")),
            await intake.handle_command(message("/goals weekly")),
            await intake.handle_command(message("/goals monthly")),
        )

    empty, everything, weekly, monthly = run_with_db(scenario)
    assert empty == "No goals found for that period."
    assert everything == "Your latest goals:\n• [Urgent] pay rent\n• [Weekly] clean garage"
    assert weekly == "Your Weekly goals:\n• [Weekly] clean garage"
    assert monthly == "No goals found for that period."


def test_notes_listing_in_user_timezone(run_with_db) -> None:
    async def scenario():
        intake = Intake(timezone="Europe/Moscow")
        user = await user_storage.get_or_create_user(42)
        await note_storage.create_note(user.user_id, "old thought", "2026-10-18 10:00:00")
        await note_storage.create_note(user.user_id, "new thought", "2026-10-20 10:00:00")
        return (
            await intake.handle_command(message("/notes")),
            await intake.handle_command(message("/notes 2026-10-19")),
            await intake.handle_command(message("/notes not-a-date")),
            await intake.handle_command(message("/notes 2030-01-01")),
        )

    everything, since, bad_date, future = run_with_db(scenario)
    assert everything == "Your latest notes:\n• 2026-10-20 13:00 new thought\n• 2026-10-18 13:00 old thought"
    assert since == "Your latest notes:\n• 2026-10-20 13:00 new thought"
    assert bad_date == everything
    assert future == "No notes found."


def test_records_use_message_time(run_with_db) -> None:
    sent_at = datetime(2026, 10, 19, 23, 30, tzinfo=timezone(timedelta(hours=3)))

    async def scenario():
        intake = Intake()
        msg = message("срочно оплатить счет")
        msg.timestamp = sent_at
        await intake.handle_message(msg)
        manual = message("/note evening walk")
        manual.timestamp = sent_at
        await intake.handle_command(manual)
        return await _records()

    goals, notes = run_with_db(scenario)
    assert [(g.text, g.created_at_utc) for g in goals] == [("срочно оплатить счет", "2026-10-19 20:30:00")]
    assert [(n.text, n.created_at_utc) for n in notes] == [("evening walk", "2026-10-19 20:30:00")]
