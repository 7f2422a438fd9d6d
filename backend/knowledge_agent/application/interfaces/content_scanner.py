"""Abstract interface (port) for malware / malicious-URL scanning."""

from abc import ABC, abstractmethod

from knowledge_agent.domain.entities.ingestion import ScanResult


class ContentScanner(ABC):
    """Port for content-safety checks.

    Implementations fail open: when the scanner is unavailable they return
    an INCONCLUSIVE verdict instead of raising.
    """

    @abstractmethod
    async def scan_file(self, content: bytes) -> ScanResult:
        ...

    @abstractmethod
    async def scan_url(self, url: str) -> ScanResult:
        ...
