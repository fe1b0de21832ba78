"""Tests for dependency wiring."""

import pytest

from recallchat.config.settings import Settings
from recallchat.container import configure_container, container
from recallchat.core.protocols.llm import LLMProtocol
from recallchat.core.services.chat_service import ChatService
from recallchat.core.services.session import ChatSession
from recallchat.infrastructure.llm.openai_client import OpenAICompatibleClient
from recallchat.infrastructure.llm.worker_client import WorkerClient


@pytest.fixture(autouse=True)
def clean_container():
    container.reset()
    yield
    container.reset()


def _settings(tmp_path, **overrides) -> Settings:
    return Settings(
        storage_path=str(tmp_path / "data"),
        themes_config_path=str(tmp_path / "themes.json"),
        **overrides,
    )


def test_resolves_chat_stack(tmp_path) -> None:
    configure_container(_settings(tmp_path))

    assert isinstance(container.resolve(ChatService), ChatService)
    assert container.resolve(ChatSession) is container.resolve(ChatSession)
    assert isinstance(container.resolve(LLMProtocol), WorkerClient)


def test_openai_backend(tmp_path) -> None:
    configure_container(_settings(tmp_path, llm_backend="openai"))
    assert isinstance(container.resolve(LLMProtocol), OpenAICompatibleClient)


def test_unknown_backend(tmp_path) -> None:
    configure_container(_settings(tmp_path, llm_backend="carrier-pigeon"))
    with pytest.raises(ValueError):
        container.resolve(LLMProtocol)
