"""web_search — internet lookup for information outside the knowledge base."""

import logging

from pydantic import BaseModel, Field

from knowledge_agent.application.interfaces.web_search_provider import WebSearchProvider
from knowledge_agent.application.services.tools.base import Tool

logger = logging.getLogger(__name__)


class WebSearchArgs(BaseModel):
    query: str = Field(min_length=1, description="The search query to look up on the internet")
    max_results: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Maximum number of search results to return (default: 5)",
    )


class WebSearchTool(Tool[WebSearchArgs]):
    name = "web_search"
    description = (
        "Search the internet using DuckDuckGo. Use this when you need current "
        "information, news, or facts that might not be in your knowledge base. "
        "Good for: latest news, current events, real-time data, recent updates, "
        "external information."
    )
    args_model = WebSearchArgs

    def __init__(self, provider: WebSearchProvider):
        self._provider = provider

    async def run(self, args: WebSearchArgs) -> str:
        try:
            results = await self._provider.search(args.query, args.max_results)
        except Exception as e:
            logger.warning("Web search for %r failed: %s", args.query, e)
            reason = str(e) or type(e).__name__
            return (
                f"Search failed: {reason}. Please try a different query or "
                "rephrase your search."
            )

        if not results:
            return f'No search results found for: "{args.query}"'

        digest = "\n\n".join(
            f"[{i}] {r.title}\n{r.link}\n{r.snippet}" for i, r in enumerate(results, start=1)
        )
        return f'Web search results for "{args.query}":\n\n{digest}'
