import json
import logging

import httpx

from recallchat.core.exceptions import UpstreamError

logger = logging.getLogger(__name__)


class WorkerClient:
    """LLM client for a GET proxy taking ``prompt`` and ``context`` query params."""

    def __init__(
        self,
        url: str,
        timeout: float = 120.0,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize worker client.

        Args:
            url: Proxy URL.
            timeout: Request timeout in seconds.
            client: Preconfigured HTTP client.
        """
        self._url = url
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def complete(self, prompt: str, context: list[dict]) -> str:
        """Send one turn and return the raw body text."""
        params = {
            "prompt": prompt,
            "context": json.dumps(context, ensure_ascii=False),
        }

        try:
            response = await self._client.get(
                self._url, params=params, headers={"Accept": "application/json"}
            )
        except httpx.HTTPError as e:
            logger.error(f"[worker] Request failed: {e}")
            raise UpstreamError(f"Request failed: {e}") from e

        if response.status_code >= 400:
            detail = response.text
            try:
                payload = response.json()
            except ValueError:
                payload = None
            if isinstance(payload, dict) and payload.get("error"):
                detail = str(payload["error"])
            logger.error(f"[worker] API error {response.status_code}: {detail[:200]}")
            raise UpstreamError(
                f"API Error ({response.status_code}): {detail}",
                details={"status_code": response.status_code},
            )

        return response.text

    async def aclose(self) -> None:
        await self._client.aclose()
