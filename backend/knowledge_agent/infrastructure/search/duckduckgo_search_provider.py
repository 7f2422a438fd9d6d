"""DuckDuckGo web search — implements the WebSearchProvider interface.

Wraps the ``ddgs`` metasearch client. Its API is synchronous, so each
query runs in a worker thread to keep the event loop free.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from ddgs import DDGS

from knowledge_agent.application.interfaces.web_search_provider import (
    WebSearchProvider,
    WebSearchResult,
)

logger = logging.getLogger(__name__)


class DuckDuckGoSearchProvider(WebSearchProvider):
    """Infrastructure adapter — text search through DuckDuckGo."""

    def __init__(
        self,
        region: str = "us-en",
        safesearch: str = "moderate",
        timeout: float = 15.0,
        client_factory: Callable[[], Any] | None = None,
    ):
        self._region = region
        self._safesearch = safesearch
        self._timeout = timeout
        self._client_factory = client_factory or (lambda: DDGS(timeout=int(self._timeout)))

    async def search(self, query: str, max_results: int = 5) -> list[WebSearchResult]:
        raw = await asyncio.to_thread(self._text_search, query, max_results)
        results = self._parse(raw)[:max_results]
        logger.info("Web search for %r returned %d results", query, len(results))
        return results

    def _text_search(self, query: str, max_results: int) -> list[dict[str, Any]]:
        client = self._client_factory()
        return list(
            client.text(
                query,
                region=self._region,
                safesearch=self._safesearch,
                max_results=max_results,
            )
            or []
        )

    @staticmethod
    def _parse(raw: list[dict[str, Any]]) -> list[WebSearchResult]:
        results: list[WebSearchResult] = []
        seen: set[str] = set()
        for hit in raw:
            link = hit.get("href") or hit.get("url") or ""
            snippet = (hit.get("body") or "").strip()
            if not link or link in seen or not snippet:
                continue
            seen.add(link)
            results.append(
                WebSearchResult(title=(hit.get("title") or link).strip(), link=link, snippet=snippet)
            )
        return results
