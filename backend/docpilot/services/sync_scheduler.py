"""Periodic sync of every active repository."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Optional

from docpilot.repositories.interfaces import Store
from docpilot.services.ingestion_service import IngestionPipeline
from docpilot.services.pipeline_exceptions import PipelineError

logger = logging.getLogger(__name__)


class SyncScheduler:
    """
    Background sweep started from the application lifespan.

    Every ``interval_seconds`` each active repository with a credential is
    synced in turn. Repositories with a run already in flight are skipped
    until the next sweep. A failing repository is logged and skipped; the
    sweep carries on with the next one.
    """

    def __init__(
        self, store: Store, pipeline: IngestionPipeline, interval_seconds: float
    ):
        self.store = store
        self.pipeline = pipeline
        self.interval_seconds = interval_seconds
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self._loop())
        logger.info("Scheduled sync started (every %ss)", self.interval_seconds)

    async def stop(self) -> None:
        self._stop_event.set()
        if self._task is not None and not self._task.done():
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        self._task = None

    async def _loop(self) -> None:
        while not self._stop_event.is_set():
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(
                    self._stop_event.wait(), timeout=self.interval_seconds
                )
            if self._stop_event.is_set():
                return
            await self.sweep()

    async def sweep(self) -> int:
        """Sync all eligible repositories once. Returns how many succeeded."""
        synced = 0
        for repository in await self.store.repositories.list(active_only=True):
            if not repository.credential_value():
                continue
            if self.pipeline.locks.is_locked(repository.id_str):
                logger.info(
                    "Skipping scheduled sync of %s: a run is already in progress",
                    repository.full_name,
                )
                continue
            try:
                await self.pipeline.sync_repository(
                    repository.id_str, pipeline_type="scheduled_sync"
                )
                synced += 1
            except PipelineError as exc:
                logger.warning(
                    "Scheduled sync failed for %s: %s", repository.full_name, exc
                )
            except Exception:
                logger.exception(
                    "Unexpected error during scheduled sync of %s", repository.full_name
                )
        return synced
