"""Chat core exceptions."""
from typing import Any


class ChatError(Exception):
    """Base exception for the chat core."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class UpstreamError(ChatError):
    """Remote model call rejected, unreachable or timed out."""


class UpstreamReplyError(UpstreamError):
    """Remote model answered with an error payload or without final text."""
