"""Cleanup scheduler — asyncio daemon that sweeps expired temporary documents."""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone

from knowledge_agent.application.interfaces.document_store import DocumentStore
from knowledge_agent.infrastructure.logging.colored_logger import PipelineLogger, PipelineStage

logger = logging.getLogger(__name__)
plog = PipelineLogger("CleanupScheduler")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CleanupScheduler:
    """Runs ``DocumentStore.sweep_expired`` on a fixed period.

    Runs as an asyncio.Task inside FastAPI's lifespan. A failing tick is
    logged and the schedule continues.
    """

    def __init__(
        self,
        document_store: DocumentStore,
        interval_seconds: float = 3600,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = document_store
        self._interval = interval_seconds
        self._clock = clock
        self._running = False
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the periodic sweep loop."""
        if self._task is not None:
            return
        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info("CleanupScheduler started (interval=%ss)", self._interval)

    async def stop(self) -> None:
        """Stop the loop and wait for the task to finish."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("CleanupScheduler stopped")

    async def tick(self) -> int:
        """Run one sweep now. Returns the number of deleted documents."""
        deleted = await self._store.sweep_expired(self._clock())
        if deleted > 0:
            plog.step_complete(PipelineStage.CLEANUP, f"Deleted {deleted} expired documents")
        return deleted

    async def _loop(self) -> None:
        while self._running:
            await asyncio.sleep(self._interval)
            try:
                await self.tick()
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("CleanupScheduler sweep failed")
