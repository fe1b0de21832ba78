"""Reply parser - resolves upstream reply bodies to final text."""

import json
import logging
from typing import Any, Callable, Optional

from ..models.reply import ParsedReply, ReplyShape

logger = logging.getLogger(__name__)

ALTERNATE_TEXT_FIELDS = ("content", "text", "answer", "result")

Detector = Callable[[dict[str, Any]], Optional[ParsedReply]]


def _as_text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value:
        return value
    return None


def _chat_completion_message(payload: dict[str, Any]) -> Optional[dict[str, Any]]:
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    message = choices[0].get("message")
    return message if isinstance(message, dict) else None


def _final_text(payload: dict[str, Any]) -> Optional[str]:
    """Final text under any accepted field, highest priority first."""
    for detector in (_detect_response, _detect_chat_completion, _detect_message, _detect_alternate):
        reply = detector(payload)
        if reply is not None:
            return reply.text
    return None


def _detect_error(payload: dict[str, Any]) -> Optional[ParsedReply]:
    error = payload.get("error")
    if not error:
        return None
    if isinstance(error, dict):
        error = error.get("message") or json.dumps(error, ensure_ascii=False)
    return ParsedReply(shape=ReplyShape.ERROR, text=str(error))


def _detect_thinking(payload: dict[str, Any]) -> Optional[ParsedReply]:
    thinking = _as_text(payload.get("thinking"))
    if thinking is None:
        return None
    return ParsedReply(
        shape=ReplyShape.THINKING, text=_final_text(payload) or "", thinking=thinking
    )


def _detect_response(payload: dict[str, Any]) -> Optional[ParsedReply]:
    text = _as_text(payload.get("response"))
    if text is None:
        return None
    return ParsedReply(shape=ReplyShape.RESPONSE, text=text)


def _detect_chat_completion(payload: dict[str, Any]) -> Optional[ParsedReply]:
    message = _chat_completion_message(payload)
    if message is None:
        return None
    text = _as_text(message.get("content"))
    if text is None:
        return None
    return ParsedReply(
        shape=ReplyShape.CHAT_COMPLETION,
        text=text,
        thinking=_as_text(message.get("reasoning_content")),
    )


def _detect_message(payload: dict[str, Any]) -> Optional[ParsedReply]:
    message = payload.get("message")
    if not isinstance(message, dict):
        return None
    text = _as_text(message.get("content"))
    if text is None:
        return None
    return ParsedReply(
        shape=ReplyShape.MESSAGE, text=text, thinking=_as_text(message.get("thinking"))
    )


def _detect_alternate(payload: dict[str, Any]) -> Optional[ParsedReply]:
    for name in ALTERNATE_TEXT_FIELDS:
        text = _as_text(payload.get(name))
        if text is not None:
            return ParsedReply(shape=ReplyShape.ALTERNATE, text=text)
    return None


DETECTORS: tuple[Detector, ...] = (
    _detect_error,
    _detect_thinking,
    _detect_response,
    _detect_chat_completion,
    _detect_message,
    _detect_alternate,
)


def decode_json_documents(raw: str) -> Optional[dict[str, Any]]:
    """Decode one or more concatenated JSON objects, merged in order.

    Streaming proxies write a JSON object per update into one body
    (``{"thinking": ...}{"thinking": ...}{"response": ...}``); later keys win.
    Returns None when the body is not made of JSON objects only, or is
    nested too deeply to decode.
    """
    decoder = json.JSONDecoder()
    merged: dict[str, Any] = {}
    position = 0
    length = len(raw)
    found = False

    while True:
        while position < length and raw[position].isspace():
            position += 1
        if position >= length:
            break
        try:
            document, position = decoder.raw_decode(raw, position)
        except (ValueError, RecursionError):
            return None
        if not isinstance(document, dict):
            return None
        merged.update(document)
        found = True

    return merged if found else None


class ReplyParser:
    """Resolves an upstream body with an ordered list of shape detectors."""

    def __init__(self, detectors: tuple[Detector, ...] = DETECTORS):
        self._detectors = detectors

    def parse(self, raw: str) -> ParsedReply:
        """Parse raw body text; anything that is not JSON is plain text."""
        payload = decode_json_documents(raw)
        if payload is None:
            logger.info("Reply is not JSON, treating it as plain text")
            return ParsedReply(shape=ReplyShape.PLAIN_TEXT, text=raw)

        for detector in self._detectors:
            reply = detector(payload)
            if reply is not None:
                logger.debug(f"Reply shape: {reply.shape.value}")
                return reply

        logger.info("Reply JSON has no known text field, using it verbatim")
        try:
            text = json.dumps(payload, indent=2, ensure_ascii=False)
        except RecursionError:
            logger.warning("Reply JSON is nested too deeply, treating it as plain text")
            return ParsedReply(shape=ReplyShape.PLAIN_TEXT, text=raw)
        return ParsedReply(shape=ReplyShape.UNKNOWN_JSON, text=text)
