"""Tests for a full chat turn."""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest

from recallchat.core.exceptions import UpstreamError
from recallchat.core.models.pending import PendingState
from recallchat.core.services.chat_service import ChatService
from recallchat.core.services.context_service import ContextBuilder
from recallchat.core.services.conversation_store import ConversationStore
from recallchat.core.services.scrubber import TextScrubber
from recallchat.core.services.session import ChatSession
from recallchat.core.services.theme_service import ThemeClassifier


@pytest.fixture
def session(storage, clock) -> ChatSession:
    return ChatSession(storage=storage, store=ConversationStore(storage, clock=clock))


@pytest.fixture
def llm() -> AsyncMock:
    llm = AsyncMock()
    llm.complete.return_value = "Tamam."
    return llm


@pytest.fixture
def service(llm) -> ChatService:
    classifier = ThemeClassifier()
    scrubber = TextScrubber()
    return ChatService(
        llm=llm,
        context_builder=ContextBuilder(classifier=classifier, scrubber=scrubber),
        classifier=classifier,
        scrubber=scrubber,
    )


@pytest.mark.asyncio
async def test_turn_stores_scrubbed_reply_and_thinking(service, session, llm) -> None:
    llm.complete.return_value = (
        "<think>Kullanıcı selam verdi.</think>\n\nMerhaba! İyiyim, teşekkür ederim."
    )

    result = await service.send_message(session, "Merhaba, nasılsın?")

    assert not result.failed
    assert result.message.content == "Merhaba! İyiyim, teşekkür ederim."
    assert result.thinking == "Kullanıcı selam verdi."

    assert [m.role for m in session.history] == ["user", "assistant"]
    assert session.history[1].thinking == "Kullanıcı selam verdi."
    stored = session.store.get(session.active_id).messages
    assert [m.content for m in stored] == ["Merhaba, nasılsın?", "Merhaba! İyiyim, teşekkür ederim."]

    kwargs = llm.complete.await_args.kwargs
    assert kwargs["prompt"] == "Merhaba, nasılsın?"
    context = kwargs["context"]
    assert context[0]["role"] == "system"
    assert context[-1] == {"role": "user", "content": "Merhaba, nasılsın?"}


@pytest.mark.asyncio
async def test_field_thinking_combined_with_worker_reply(service, session, llm) -> None:
    llm.complete.return_value = json.dumps({"thinking": "plan", "response": "Hi"})

    result = await service.send_message(session, "hello")

    assert result.message.content == "Hi"
    assert result.thinking == "plan"


@pytest.mark.asyncio
async def test_user_message_gets_theme(service, session) -> None:
    await service.send_message(session, "python kodumda hata var")
    assert session.history[0].theme == "programming"


@pytest.mark.asyncio
async def test_blank_input_is_ignored(service, session, llm) -> None:
    assert await service.send_message(session, "   ") is None
    assert len(session.history) == 0
    llm.complete.assert_not_awaited()


@pytest.mark.asyncio
async def test_upstream_failure_recorded_as_error_message(service, session, llm) -> None:
    llm.complete.side_effect = UpstreamError("API Error (500): boom")

    result = await service.send_message(session, "hello")

    assert result.failed
    assert result.message.role == "assistant"
    assert result.message.content == "Sorry, an error occurred: API Error (500): boom"
    assert [m.role for m in session.history] == ["user", "assistant"]
    assert service.pending is None


@pytest.mark.asyncio
async def test_error_payload_is_a_failure(service, session, llm) -> None:
    llm.complete.return_value = json.dumps({"error": "quota exceeded"})

    result = await service.send_message(session, "hello")

    assert result.failed
    assert result.message.content == "Sorry, an error occurred: quota exceeded"


@pytest.mark.asyncio
async def test_empty_reply_is_a_failure(service, session, llm) -> None:
    llm.complete.return_value = json.dumps({"response": "   "})

    result = await service.send_message(session, "hello")

    assert result.failed
    assert result.message.content == "Sorry, an error occurred: Empty response from the model"


@pytest.mark.asyncio
async def test_cancelled_turn_commits_nothing(service, session, llm) -> None:
    """Cancellation propagates and only the user message remains."""
    seen = []

    async def cancelled(prompt, context):
        seen.append(service.pending)
        raise asyncio.CancelledError()

    llm.complete.side_effect = cancelled

    with pytest.raises(asyncio.CancelledError):
        await service.send_message(session, "hello")

    assert [m.role for m in session.history] == ["user"]
    assert seen[0].state is PendingState.DISCARDED
    assert service.pending is None


@pytest.mark.asyncio
async def test_pending_reply_visible_during_call(service, session, llm) -> None:
    seen = []

    async def complete(prompt, context):
        seen.append((service.pending.is_pending, service.pending.text))
        return "Tamam."

    llm.complete.side_effect = complete

    await service.send_message(session, "hello")

    assert seen == [(True, "Thinking...")]
    assert service.pending is None


@pytest.mark.asyncio
async def test_history_grows_across_turns(service, session, llm) -> None:
    await service.send_message(session, "first")
    await service.send_message(session, "second")

    context = llm.complete.await_args.kwargs["context"]

    assert [m.content for m in session.history] == ["first", "Tamam.", "second", "Tamam."]
    assert [entry["content"] for entry in context[1:]] == ["first", "Tamam.", "second"]


@pytest.mark.asyncio
async def test_deeply_nested_reply_does_not_fail_turn(service, session, llm) -> None:
    raw = '{"a":' * 100000 + "1" + "}" * 100000
    llm.complete.return_value = raw

    result = await service.send_message(session, "hello")

    assert not result.failed
    assert result.message.content == raw
    assert [m.role for m in session.history] == ["user", "assistant"]


@pytest.mark.asyncio
async def test_reasoning_only_reply_is_a_failure(service, session, llm) -> None:
    """A reply with nothing outside the think markup is not stored as an answer."""
    llm.complete.return_value = "<think>only reasoning</think>"

    result = await service.send_message(session, "hello")

    assert result.failed
    assert result.message.content == "Sorry, an error occurred: The model returned only its reasoning"
    assert "<think>" not in session.history[-1].content
