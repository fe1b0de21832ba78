"""LLM protocol for dependency injection."""
from typing import Protocol, runtime_checkable


@runtime_checkable
class LLMProtocol(Protocol):
    """Protocol for the remote model collaborator."""

    async def complete(self, prompt: str, context: list[dict]) -> str:
        """Send one turn upstream.

        Args:
            prompt: The user's new message.
            context: ``{role, content}`` entries selected for this turn.

        Returns:
            Raw reply body as text; shape detection happens in the core.

        Raises:
            UpstreamError: Transport failure or non-success status.
        """
        ...

    async def aclose(self) -> None:
        """Release the underlying HTTP connections."""
        ...
