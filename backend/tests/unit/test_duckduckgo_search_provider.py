"""Unit tests for the DuckDuckGoSearchProvider."""

import pytest

from knowledge_agent.application.services.tools import WebSearchTool
from knowledge_agent.application.services.tools.web_search_tool import WebSearchArgs
from knowledge_agent.infrastructure.search import DuckDuckGoSearchProvider


TEXT_HITS = [
    {
        "title": "Python 3.13 released",
        "href": "https://www.python.org/downloads/release/python-3130/",
        "body": "Python 3.13 is the newest major release of the Python programming language.",
    },
    {
        "title": "What's new in Python 3.13",
        "href": "https://docs.python.org/3/whatsnew/3.13.html",
        "body": "This article explains the new features in Python 3.13.",
    },
    {
        "title": "Duplicate",
        "href": "https://www.python.org/downloads/release/python-3130/",
        "body": "Same link again.",
    },
    {"title": "No snippet", "href": "https://example.com/empty", "body": ""},
]


class FakeDDGS:
    def __init__(self, hits=None, error: Exception | None = None):
        self.hits = hits if hits is not None else TEXT_HITS
        self.error = error
        self.calls: list[dict] = []

    def text(self, query, **kwargs):
        self.calls.append({"query": query, **kwargs})
        if self.error:
            raise self.error
        return self.hits


def _provider(client: FakeDDGS) -> DuckDuckGoSearchProvider:
    return DuckDuckGoSearchProvider(region="wt-wt", client_factory=lambda: client)


@pytest.mark.asyncio
async def test_search_maps_text_hits_and_drops_duplicates():
    client = FakeDDGS()

    results = await _provider(client).search("latest python release", max_results=10)

    assert [r.title for r in results] == ["Python 3.13 released", "What's new in Python 3.13"]
    assert results[1].link == "https://docs.python.org/3/whatsnew/3.13.html"
    assert results[0].snippet.startswith("Python 3.13 is the newest")
    assert client.calls == [
        {
            "query": "latest python release",
            "region": "wt-wt",
            "safesearch": "moderate",
            "max_results": 10,
        }
    ]


@pytest.mark.asyncio
async def test_search_respects_max_results():
    results = await _provider(FakeDDGS()).search("python", max_results=1)

    assert len(results) == 1


@pytest.mark.asyncio
async def test_no_hits_gives_no_results():
    assert await _provider(FakeDDGS(hits=[])).search("zzzz") == []


@pytest.mark.asyncio
async def test_search_errors_propagate():
    client = FakeDDGS(error=RuntimeError("ratelimited"))

    with pytest.raises(RuntimeError, match="ratelimited"):
        await _provider(client).search("python")


@pytest.mark.asyncio
async def test_tool_reports_results_and_failures_as_text():
    ok = WebSearchTool(_provider(FakeDDGS()))
    failing = WebSearchTool(_provider(FakeDDGS(error=RuntimeError("ratelimited"))))

    found = await ok.run(WebSearchArgs(query="current events"))
    failed = await failing.run(WebSearchArgs(query="current events"))

    assert found.startswith('Web search results for "current events"')
    assert "[1] Python 3.13 released" in found
    assert failed.startswith("Search failed: ratelimited")
