"""Tests for upstream reply shape detection."""

import json

import pytest

from recallchat.core.models.reply import ReplyShape
from recallchat.core.services.reply_parser import ReplyParser, decode_json_documents


@pytest.fixture
def parser() -> ReplyParser:
    return ReplyParser()


def test_plain_text(parser) -> None:
    reply = parser.parse("Merhaba! Size nasıl yardımcı olabilirim?")
    assert reply.shape is ReplyShape.PLAIN_TEXT
    assert reply.text == "Merhaba! Size nasıl yardımcı olabilirim?"


def test_response_field(parser) -> None:
    reply = parser.parse(json.dumps({"response": "hi"}))
    assert reply.shape is ReplyShape.RESPONSE
    assert reply.text == "hi"
    assert reply.thinking is None


def test_thinking_field_wins_priority(parser) -> None:
    reply = parser.parse(json.dumps({"thinking": "planning", "response": "answer"}))
    assert reply.shape is ReplyShape.THINKING
    assert reply.text == "answer"
    assert reply.thinking == "planning"


def test_streamed_worker_body(parser) -> None:
    """Concatenated JSON objects merge in order, later keys winning."""
    raw = (
        '{"thinking": "Düşünüyorum..."}'
        '{"thinking": "Yanıt hazırlanıyor: Merhaba..."}'
        '{"response": "Merhaba!"}'
    )

    reply = parser.parse(raw)

    assert reply.shape is ReplyShape.THINKING
    assert reply.text == "Merhaba!"
    assert reply.thinking == "Yanıt hazırlanıyor: Merhaba..."


def test_chat_completion(parser) -> None:
    payload = {
        "choices": [
            {"message": {"role": "assistant", "content": "42", "reasoning_content": "6 * 7"}}
        ]
    }
    reply = parser.parse(json.dumps(payload))
    assert reply.shape is ReplyShape.CHAT_COMPLETION
    assert reply.text == "42"
    assert reply.thinking == "6 * 7"


def test_message_content(parser) -> None:
    reply = parser.parse(json.dumps({"message": {"role": "assistant", "content": "ok"}}))
    assert reply.shape is ReplyShape.MESSAGE
    assert reply.text == "ok"


@pytest.mark.parametrize("field", ["content", "text", "answer", "result"])
def test_alternate_fields(parser, field) -> None:
    reply = parser.parse(json.dumps({field: "value"}))
    assert reply.shape is ReplyShape.ALTERNATE
    assert reply.text == "value"


def test_response_outranks_chat_completion(parser) -> None:
    payload = {"response": "a", "choices": [{"message": {"content": "b"}}]}
    assert parser.parse(json.dumps(payload)).text == "a"


def test_error_field(parser) -> None:
    reply = parser.parse(json.dumps({"error": "quota exceeded", "response": "ignored"}))
    assert reply.is_error
    assert reply.text == "quota exceeded"


def test_unknown_json_used_verbatim(parser) -> None:
    reply = parser.parse('{"status": "ok", "count": 3}')
    assert reply.shape is ReplyShape.UNKNOWN_JSON
    assert json.loads(reply.text) == {"status": "ok", "count": 3}


@pytest.mark.parametrize("raw", ["[1, 2]", '{"response": "a"} trailing', '"just a string"', ""])
def test_non_object_bodies_are_plain_text(parser, raw) -> None:
    """Anything that is not made of JSON objects degrades to text."""
    reply = parser.parse(raw)
    assert reply.shape is ReplyShape.PLAIN_TEXT
    assert reply.text == raw


def test_decode_json_documents_whitespace_between() -> None:
    assert decode_json_documents('{"a": 1}\n  {"b": 2}\n') == {"a": 1, "b": 2}


@pytest.mark.parametrize(
    "raw",
    ["[" * 100000 + "]" * 100000, '{"a":' * 100000 + "1" + "}" * 100000],
)
def test_deeply_nested_body_is_plain_text(parser, raw) -> None:
    reply = parser.parse(raw)
    assert reply.shape is ReplyShape.PLAIN_TEXT
    assert reply.text == raw
