import logging
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

from .config.settings import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Container:
    _factories: dict[type, Callable[[], Any]] = field(default_factory=dict)
    _singletons: dict[type, Any] = field(default_factory=dict)
    _singleton_flags: set[type] = field(default_factory=set)

    def register(
        self, interface: type[T], factory: Callable[[], T], singleton: bool = False
    ) -> None:
        """Register factory for interface.

        Args:
            interface: Interface type.
            factory: Factory function.
            singleton: Whether to cache instance.
        """
        self._factories[interface] = factory
        if singleton:
            self._singleton_flags.add(interface)

    def resolve(self, interface: type[T]) -> T:
        if interface in self._singletons:
            return self._singletons[interface]

        if interface not in self._factories:
            raise KeyError(f"No factory registered for {interface}")

        instance = self._factories[interface]()

        if interface in self._singleton_flags:
            self._singletons[interface] = instance

        return instance

    def reset(self) -> None:
        """Reset singletons (for testing)."""
        self._singletons.clear()


container = Container()


def configure_container(settings: Settings) -> Container:
    """Configure container with all dependencies.

    Args:
        settings: Application settings.

    Returns:
        Configured container.
    """
    from .core.protocols.llm import LLMProtocol
    from .core.protocols.storage import KeyValueStorageProtocol
    from .core.services.chat_service import ChatService
    from .core.services.context_service import ContextBuilder
    from .core.services.reply_parser import ReplyParser
    from .core.services.scrubber import TextScrubber
    from .core.services.session import ChatSession
    from .core.services.theme_service import ThemeClassifier
    from .core.strategies.themes import load_registry
    from .infrastructure.llm.openai_client import OpenAICompatibleClient
    from .infrastructure.llm.worker_client import WorkerClient
    from .infrastructure.storage.json_file_store import JsonFileStorage

    def llm_factory() -> LLMProtocol:
        if settings.llm_backend == "openai":
            return OpenAICompatibleClient(
                base_url=settings.llm_base_url,
                model=settings.llm_model,
                api_key=settings.llm_api_key,
                max_tokens=settings.llm_max_tokens,
                temperature=settings.llm_temperature,
                timeout=settings.request_timeout,
            )
        if settings.llm_backend == "worker":
            return WorkerClient(url=settings.worker_url, timeout=settings.request_timeout)
        raise ValueError(f"Unknown llm_backend: {settings.llm_backend}")

    container.register(LLMProtocol, llm_factory, singleton=True)

    container.register(
        KeyValueStorageProtocol,
        lambda: JsonFileStorage(settings.storage_path),
        singleton=True,
    )

    container.register(
        ThemeClassifier,
        lambda: ThemeClassifier(
            registry=load_registry(settings.themes_config_path),
            window=settings.theme_window,
        ),
        singleton=True,
    )

    container.register(TextScrubber, TextScrubber, singleton=True)

    container.register(
        ContextBuilder,
        lambda: ContextBuilder(
            classifier=container.resolve(ThemeClassifier),
            scrubber=container.resolve(TextScrubber),
            max_messages=settings.max_context_messages,
            max_words=settings.max_context_words,
            ai_name=settings.ai_name,
        ),
        singleton=True,
    )

    container.register(
        ChatService,
        lambda: ChatService(
            llm=container.resolve(LLMProtocol),
            context_builder=container.resolve(ContextBuilder),
            classifier=container.resolve(ThemeClassifier),
            scrubber=container.resolve(TextScrubber),
            parser=ReplyParser(),
        ),
        singleton=True,
    )

    container.register(
        ChatSession,
        lambda: ChatSession.restore(
            container.resolve(KeyValueStorageProtocol),
            max_conversations=settings.max_conversations,
            max_history_length=settings.max_history_length,
        ),
        singleton=True,
    )

    logger.info("Container configured")
    return container
