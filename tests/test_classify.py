"""Classification entry point with and without a remote classifier."""

from __future__ import annotations

import asyncio

import pytest

from classifier.engine import classify, result_from_remote
from datamodel import ClassificationResult, Kind, Period
from fakes import FakeRemote
from llm.openai_client import load_json_object


def run(coro):
    return asyncio.run(coro)


def test_heuristics_only_when_no_remote() -> None:
    assert run(classify("нужно купить молоко")) == ClassificationResult(
        Kind.GOAL, Period.THROUGH_DAY, "нужно купить молоко"
    )


def test_empty_input_never_reaches_remote() -> None:
    remote = FakeRemote(payload={"isGoal": True, "period": "daily", "text": "x"})
    assert run(classify("", remote)) == ClassificationResult(Kind.NOTE, None, "")
    assert remote.calls == []


def test_note_prefix_wins_over_remote() -> None:
    remote = FakeRemote(payload={"isGoal": True, "period": "urgent", "text": "call the bank"})
    result = run(classify("note: call the bank", remote))
    assert result == ClassificationResult(Kind.NOTE, None, "call the bank")
    assert remote.calls == []


def test_remote_goal_is_accepted() -> None:
    remote = FakeRemote(payload={"isGoal": True, "period": "weekly", "text": " Clean the garage "})
    result = run(classify("hello world", remote))
    assert result == ClassificationResult(Kind.GOAL, Period.WEEKLY, "Clean the garage")
    assert remote.calls == ["hello world"]


def test_remote_note_drops_period() -> None:
    remote = FakeRemote(payload={"isGoal": False, "period": "weekly", "text": "nice walk"})
    assert run(classify("need to walk", remote)) == ClassificationResult(Kind.NOTE, None, "nice walk")


def test_remote_goal_with_unknown_period_defaults_to_through_day() -> None:
    remote = FakeRemote(payload={"isGoal": True, "period": "yearly", "text": "file taxes"})
    assert run(classify("file taxes", remote)).period == Period.THROUGH_DAY

    remote = FakeRemote(payload={"isGoal": True, "period": None, "text": "file taxes"})
    assert run(classify("file taxes", remote)).period == Period.THROUGH_DAY


@pytest.mark.parametrize(
    "error",
    [
        asyncio.TimeoutError(),
        ConnectionError("connection reset"),
        ValueError("Expecting value: line 1 column 1"),
    ],
)
def test_remote_failure_falls_back_to_heuristics(error: BaseException) -> None:
    remote = FakeRemote(error=error)
    result = run(classify("срочно отправить отчет", remote))
    assert result == ClassificationResult(Kind.GOAL, Period.URGENT, "срочно отправить отчет")
    assert remote.calls == ["срочно отправить отчет"]


@pytest.mark.parametrize(
    "payload",
    [
        {"isGoal": True, "period": "daily", "text": ""},
        {"isGoal": True, "period": "daily", "text": "   "},
        {"isGoal": True, "period": "daily"},
        {"isGoal": "yes", "period": "daily", "text": "run"},
        {"isGoal": 1, "period": "daily", "text": "run"},
        ["not", "an", "object"],
        None,
    ],
)
def test_unusable_remote_result_falls_back_to_heuristics(payload) -> None:
    result = run(classify("I feel great", FakeRemote(payload=payload)))
    assert result == ClassificationResult(Kind.NOTE, None, "I feel great")


def test_result_from_remote_rejects_missing_text() -> None:
    assert result_from_remote({"isGoal": False}) is None


def test_remote_result_without_is_goal_is_a_note() -> None:
    assert result_from_remote({"period": "daily", "text": "run"}) == ClassificationResult(Kind.NOTE, None, "run")

    remote = FakeRemote(payload={"period": None, "text": "a thought"})
    result = run(classify("buy milk today", remote))
    assert result == ClassificationResult(Kind.NOTE, None, "a thought")
    assert not result.is_goal
    assert remote.calls == ["buy milk today"]


def test_load_json_object_accepts_code_fences() -> None:
    raw = '```json\n{"isGoal": true, "period": "monthly", "text": "budget"}\n```'
    assert load_json_object(raw) == {"isGoal": True, "period": "monthly", "text": "budget"}


@pytest.mark.parametrize("raw", ["not json", "[1, 2]", ""])
def test_load_json_object_rejects_non_objects(raw: str) -> None:
    with pytest.raises(ValueError):
        load_json_object(raw)
