"""Tests for messages and the bounded message history."""

import pytest

from recallchat.core.models.chat import Message, MessageHistory


def _history(count: int, max_messages: int = 50) -> tuple[list[Message], MessageHistory]:
    appended = [Message.create("user" if i % 2 == 0 else "assistant", f"m{i}") for i in range(count)]
    history = MessageHistory(max_messages=max_messages)
    for message in appended:
        history.append(message)
    return appended, history


def test_append_under_cap_keeps_everything() -> None:
    """Nothing is dropped while the history is within its cap."""
    appended, history = _history(10)
    assert history.snapshot() == appended


@pytest.mark.parametrize("count", [51, 75, 120])
def test_truncation_keeps_first_and_most_recent(count: int) -> None:
    """Overflow keeps index 0 plus the last cap - 1 messages, in order."""
    appended, history = _history(count)

    result = history.snapshot()
    assert len(result) == 50
    assert result[0] == appended[0]
    assert result[1:] == appended[-49:]


def test_truncation_small_cap() -> None:
    """Middle messages are the ones that go."""
    _, history = _history(5, max_messages=3)
    assert [m.content for m in history] == ["m0", "m3", "m4"]


def test_truncation_is_deterministic() -> None:
    """Same append sequence gives the same result."""
    appended, first = _history(60)
    second = MessageHistory()
    for message in appended:
        second.append(message)
    assert first.snapshot() == second.snapshot()


def test_snapshot_is_a_copy() -> None:
    """Mutating a snapshot never touches the live history."""
    _, history = _history(3)
    snapshot = history.snapshot()
    snapshot.append(Message.create("user", "extra"))
    snapshot.clear()
    assert len(history) == 3


def test_to_list_strips_metadata() -> None:
    """LLM payload carries role and content only."""
    history = MessageHistory()
    history.append(Message.create("user", "hello", theme="general"))
    assert history.to_list() == [{"role": "user", "content": "hello"}]


def test_from_dicts_tolerates_missing_content() -> None:
    """Malformed persisted messages load with zero words."""
    history = MessageHistory.from_dicts([{"role": "assistant"}, "garbage", {"role": "user", "content": "a b"}])

    assert len(history) == 2
    assert history[0].content is None
    assert history[0].word_count == 0
    assert history[1].word_count == 2


def test_message_round_trip_keeps_thinking() -> None:
    """Thinking text survives persistence next to the content."""
    message = Message.create("assistant", "answer", theme="programming", thinking="reasoning")
    restored = Message.from_dict(message.to_dict())
    assert restored == message


def test_message_ids_are_unique() -> None:
    """Messages created in a tight loop still get distinct ids."""
    ids = {Message.create("user", "x").id for _ in range(200)}
    assert len(ids) == 200


def test_invalid_role_rejected() -> None:
    with pytest.raises(ValueError):
        Message.create("robot", "beep")


def test_cap_below_two_rejected() -> None:
    with pytest.raises(ValueError):
        MessageHistory(max_messages=1)
