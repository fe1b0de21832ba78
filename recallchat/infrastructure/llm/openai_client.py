import logging

from openai import APIError, AsyncOpenAI

from recallchat.core.exceptions import UpstreamError

logger = logging.getLogger(__name__)


class OpenAICompatibleClient:
    """LLM client for OpenAI-compatible APIs (Ollama, DeepSeek, ...)."""

    def __init__(
        self,
        base_url: str = "http://localhost:11434/v1",
        model: str = "deepseek-r1:7b",
        api_key: str = "ollama",
        max_tokens: int = 2048,
        temperature: float = 0.7,
        timeout: float = 120.0,
        client: AsyncOpenAI | None = None,
    ):
        """Initialize client.

        Args:
            base_url: API URL.
            model: Model name.
            api_key: API key (any value for Ollama).
            max_tokens: Max response tokens.
            temperature: Sampling temperature.
            timeout: Request timeout in seconds.
            client: Preconfigured SDK client.
        """
        self._client = client or AsyncOpenAI(base_url=base_url, api_key=api_key, timeout=timeout)
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature

    async def complete(self, prompt: str, context: list[dict]) -> str:
        """Send context plus the new user message.

        Returns:
            The completion serialised as JSON, so the core resolves it
            like any other reply shape.
        """
        messages = [{"role": m["role"], "content": m["content"]} for m in context]
        messages.append({"role": "user", "content": prompt})

        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                max_tokens=self._max_tokens,
                temperature=self._temperature,
            )
        except APIError as e:
            logger.error(f"[llm] Completion failed: {e}")
            raise UpstreamError(str(e)) from e

        return response.model_dump_json()

    async def aclose(self) -> None:
        await self._client.close()
