"""
Time-bounded undo history for structural department moves
"""

import asyncio
import time
from collections import deque
from typing import Callable

from app.core.config import settings
from app.core.logging import get_logger
from app.schemas.department_layout import MoveAction, UndoEntry

logger = get_logger(__name__)


class UndoStack:
    """
    Bounded ring buffer of move actions

    The oldest entry is evicted once ``max_entries`` is reached. Entries
    past ``expires_at`` are invisible to readers even before a sweep
    removes them.
    """

    def __init__(
        self,
        *,
        max_entries: int | None = None,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.max_entries = max_entries or settings.undo_max_entries
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.undo_ttl_seconds
        self._clock = clock
        self._entries: deque[UndoEntry] = deque(maxlen=self.max_entries)

    def __len__(self) -> int:
        return len(self._entries)

    def push(self, action: MoveAction) -> UndoEntry:
        entry = UndoEntry(action=action, expires_at=self._clock() + self.ttl_seconds)
        self._entries.append(entry)
        return entry

    def active_entries(self) -> list[UndoEntry]:
        """Unexpired entries, most recent first"""

        now = self._clock()
        return [entry for entry in reversed(self._entries) if entry.expires_at > now]

    def latest(self) -> UndoEntry | None:
        active = self.active_entries()
        return active[0] if active else None

    def remove(self, action_id: str) -> bool:
        for entry in self._entries:
            if entry.action.id == action_id:
                self._entries.remove(entry)
                return True
        return False

    def prune_expired(self) -> int:
        now = self._clock()
        before = len(self._entries)
        self._entries = deque(
            (entry for entry in self._entries if entry.expires_at > now),
            maxlen=self.max_entries,
        )
        return before - len(self._entries)

    def clear(self) -> None:
        self._entries.clear()


class PeriodicSweeper:
    """
    Runs ``sweep`` every ``interval_seconds`` on the running event loop
    """

    def __init__(
        self,
        sweep: Callable[[], int],
        *,
        interval_seconds: float | None = None,
    ) -> None:
        self._sweep = sweep
        self.interval_seconds = (
            interval_seconds
            if interval_seconds is not None
            else settings.undo_sweep_interval_seconds
        )
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run())
        logger.info("undo_sweeper_started", interval_seconds=self.interval_seconds)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("undo_sweeper_stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                pruned = self._sweep()
            except Exception as exc:  # noqa: BLE001
                logger.error("undo_sweep_failed", error=str(exc))
                continue
            if pruned:
                logger.debug("undo_entries_pruned", pruned=pruned)
