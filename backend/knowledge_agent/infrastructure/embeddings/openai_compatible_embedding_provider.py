"""OpenAI-compatible embedding provider — calls the /embeddings endpoint.

Uses the same httpx client pattern as OpenAICompatibleChatClient.
Default model: all-MiniLM-L6-v2 (384 dimensions).
"""

import logging
from typing import Any

import httpx

from knowledge_agent.application.interfaces.embedding_provider import EmbeddingProvider
from knowledge_agent.domain.exceptions import EmbeddingProviderError

logger = logging.getLogger(__name__)

# nomic-embed-text models require a task prefix; others do not.
_NOMIC_DOCUMENT_PREFIX = "search_document: "
_NOMIC_QUERY_PREFIX = "search_query: "


class OpenAICompatibleEmbeddingProvider(EmbeddingProvider):
    """Infrastructure adapter — generates embeddings via an /embeddings API."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        model: str = "all-MiniLM-L6-v2",
        model_dimensions: int = 384,
        provider: str = "embeddings",
        timeout: float = 60.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._model = model
        self._dimensions = model_dimensions
        self._provider = provider
        self._timeout = timeout
        self._http_client = http_client

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def _get_headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is not None:
            return self._http_client
        return httpx.AsyncClient(timeout=self._timeout)

    @property
    def _is_nomic(self) -> bool:
        """Whether the configured model is a nomic model requiring task prefixes."""
        return "nomic" in self._model.lower()

    def _error(self, status_code: int, message: str) -> EmbeddingProviderError:
        return EmbeddingProviderError(
            provider=self._provider, status_code=status_code, message=message
        )

    async def generate_embeddings(
        self,
        texts: list[str],
        *,
        _query_mode: bool = False,
    ) -> list[list[float]]:
        """Generate embeddings for a batch of texts.

        For nomic models, applies the appropriate task prefix automatically.
        """
        if not texts:
            return []

        if self._is_nomic:
            prefix = _NOMIC_QUERY_PREFIX if _query_mode else _NOMIC_DOCUMENT_PREFIX
            input_texts = [f"{prefix}{t}" for t in texts]
        else:
            input_texts = texts

        url = f"{self._base_url}/embeddings"
        payload: dict[str, Any] = {
            "model": self._model,
            "input": input_texts,
        }

        client = await self._get_client()
        should_close = self._http_client is None

        try:
            response = await client.post(url, headers=self._get_headers(), json=payload)
        except httpx.HTTPError as exc:
            logger.error("Embedding API unreachable: %s", exc)
            raise self._error(502, f"Request failed: {exc}") from exc
        finally:
            if should_close:
                await client.aclose()

        if response.status_code != 200:
            error_text = response.text[:500]
            logger.error("Embedding API error %d: %s", response.status_code, error_text)
            raise self._error(response.status_code, error_text)

        try:
            embeddings_data = response.json().get("data", [])
        except ValueError as exc:
            raise self._error(502, "Response body is not valid JSON") from exc

        # Sort by index to ensure correct ordering
        embeddings_data.sort(key=lambda x: x.get("index", 0))
        result = [item["embedding"] for item in embeddings_data]

        if len(result) != len(texts):
            raise self._error(
                502, f"Expected {len(texts)} embeddings, received {len(result)}"
            )
        for vector in result:
            if len(vector) != self._dimensions:
                raise self._error(
                    502,
                    f"Model {self._model} returned {len(vector)}-dimensional embeddings, "
                    f"expected {self._dimensions}",
                )

        logger.debug(
            "Generated %d embeddings (model=%s, dims=%d)",
            len(result),
            self._model,
            len(result[0]) if result else 0,
        )
        return result

    async def generate_query_embedding(self, query: str) -> list[float]:
        """Generate a single embedding for a search query."""
        results = await self.generate_embeddings([query], _query_mode=True)
        return results[0]
