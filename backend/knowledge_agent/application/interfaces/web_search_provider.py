"""Abstract interface (port) for internet search."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class WebSearchResult:
    """A single web search hit."""

    title: str
    link: str
    snippet: str


class WebSearchProvider(ABC):
    """Port for web search engines."""

    @abstractmethod
    async def search(self, query: str, max_results: int = 5) -> list[WebSearchResult]:
        """Run a web query.

        Raises:
            Exception: Any transport failure; callers turn it into text.
        """
        ...
