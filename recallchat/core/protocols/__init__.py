"""Protocol interfaces for dependency injection."""
from .llm import LLMProtocol
from .storage import KeyValueStorageProtocol

__all__ = [
    "LLMProtocol",
    "KeyValueStorageProtocol",
]
