from .duckduckgo_search_provider import DuckDuckGoSearchProvider

__all__ = ["DuckDuckGoSearchProvider"]
