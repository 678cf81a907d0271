from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from contextlib import suppress

from services.store import SessionStore

logger = logging.getLogger(__name__)

DEFAULT_GRACE_SECONDS = 3600.0
DEFAULT_INTERVAL_SECONDS = 60.0


class SessionReaper:
    """
    Periodically deletes sessions whose deadline passed more than
    ``grace_seconds`` ago. Sessions are otherwise never removed.
    """

    def __init__(
        self,
        store: SessionStore,
        *,
        grace_seconds: float = DEFAULT_GRACE_SECONDS,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if grace_seconds < 0:
            raise ValueError("grace_seconds must not be negative")
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._store = store
        self._grace = grace_seconds
        self._interval = interval_seconds
        self._clock = clock
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def reap_once(self) -> list[int]:
        return await self._store.reap_expired(self._clock() - self._grace)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop())
        logger.info(
            "[reaper] Started: interval=%.1fs grace=%.1fs",
            self._interval,
            self._grace,
        )

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
        logger.info("[reaper] Stopped")

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.reap_once()
            except Exception:
                logger.exception("[reaper] Reap pass failed; retrying next interval")
