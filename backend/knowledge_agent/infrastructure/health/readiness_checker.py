"""Readiness checks for the database and the chat model server."""

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = logging.getLogger(__name__)


@dataclass
class ComponentStatus:
    """Outcome of one readiness probe."""

    name: str
    healthy: bool
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"status": "up" if self.healthy else "down", **self.details}


class ReadinessChecker:
    """Checks the dependencies a chat turn needs.

    With no session factory (in-memory storage) the database check is
    skipped and reported as up.
    """

    def __init__(
        self,
        llm_base_url: str,
        llm_model: str,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        timeout: float = 5.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._llm_base_url = llm_base_url.rstrip("/")
        self._llm_model = llm_model
        self._session_factory = session_factory
        self._timeout = timeout
        self._http_client = http_client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is not None:
            return self._http_client
        return httpx.AsyncClient(timeout=self._timeout)

    async def check(self) -> list[ComponentStatus]:
        return [await self.check_database(), await self.check_llm()]

    async def check_database(self) -> ComponentStatus:
        if self._session_factory is None:
            return ComponentStatus("database", True, {"backend": "memory"})
        try:
            async with self._session_factory() as session:
                await session.execute(text("SELECT 1"))
        except Exception as exc:
            logger.warning("Database readiness check failed: %s", exc)
            return ComponentStatus("database", False, {"error": str(exc)})
        return ComponentStatus("database", True, {"backend": "postgres"})

    async def check_llm(self) -> ComponentStatus:
        details: dict[str, Any] = {"model": self._llm_model, "url": self._llm_base_url}

        client = await self._get_client()
        should_close = self._http_client is None
        try:
            response = await client.get(f"{self._llm_base_url}/models")
            response.raise_for_status()
            models = [m.get("id") for m in response.json().get("data", [])]
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("LLM readiness check failed: %s", exc)
            return ComponentStatus("llm", False, {**details, "error": str(exc)})
        finally:
            if should_close:
                await client.aclose()

        details["available_models"] = models
        if self._llm_model not in models:
            details["error"] = f"Model {self._llm_model} not available"
            return ComponentStatus("llm", False, details)
        return ComponentStatus("llm", True, details)
