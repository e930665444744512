"""Debounced auto-save: coalesce rapid edits into one write per quiet period."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from enum import StrEnum

from sqlnb.core import Result
from sqlnb.files.handler import FileMeta, SQLNBFileHandler
from sqlnb.notebook.cell import CellResult
from sqlnb.notebook.notebook import Notebook

logger = logging.getLogger("sqlnb.autosave")

DEFAULT_DELAY_SECONDS = 2.0


class SaveState(StrEnum):
    IDLE = "idle"
    PENDING = "pending"
    SAVING = "saving"


class _PendingSave:
    """A snapshot waiting for its timer to fire."""

    def __init__(self, task: asyncio.Task[None], notebook: Notebook, results: dict[str, CellResult]) -> None:
        self.task = task
        self.notebook = notebook
        self.results = results


class AutoSaver:
    """Per-key debounce scheduler in front of a file handler.

    Each ``schedule_save`` for a key restarts that key's quiet period, so only
    the last state scheduled within a window is written. Keys never interact.
    A save that has already started is not cancelled by later calls; writes
    are whole-document overwrites, so the last one wins.
    """

    def __init__(self, handler: SQLNBFileHandler, delay: float = DEFAULT_DELAY_SECONDS) -> None:
        self._handler = handler
        self._delay = delay
        self._pending: dict[str, _PendingSave] = {}
        self._saving: dict[str, int] = {}
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def handler(self) -> SQLNBFileHandler:
        return self._handler

    @property
    def delay(self) -> float:
        return self._delay

    def state(self, key: str) -> SaveState:
        if self._saving.get(key):
            return SaveState.SAVING
        if key in self._pending:
            return SaveState.PENDING
        return SaveState.IDLE

    def pending_keys(self) -> list[str]:
        return sorted(self._pending)

    def schedule_save(
        self,
        key: str,
        notebook: Notebook,
        results: Mapping[str, CellResult] | None = None,
    ) -> None:
        """Arm (or re-arm) the timer for ``key``. Must be called from a running event loop."""
        self.cancel_save(key)
        snapshot = notebook.model_copy(deep=True)
        results_snapshot = {cid: r.model_copy(deep=True) for cid, r in (results or {}).items()}

        task = asyncio.create_task(self._save_after_delay(key), name=f"autosave:{key}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self._pending[key] = _PendingSave(task, snapshot, results_snapshot)
        logger.debug("Scheduled save of %s in %.2fs", key, self._delay)

    def cancel_save(self, key: str) -> bool:
        """Drop the pending save for ``key``. Returns False if nothing was pending."""
        pending = self._pending.pop(key, None)
        if pending is None:
            return False
        pending.task.cancel()
        return True

    async def force_save(
        self,
        key: str,
        notebook: Notebook,
        results: Mapping[str, CellResult] | None = None,
    ) -> Result[FileMeta]:
        """Cancel any pending save for ``key`` and persist ``notebook`` now."""
        self.cancel_save(key)
        result = await self._run_save(key, notebook, results)
        if not result.ok:
            logger.warning("Save of %s failed: %s", key, "; ".join(result.errors))
        return result

    async def flush(self) -> dict[str, Result[FileMeta]]:
        """Perform every pending save immediately instead of waiting for its timer."""
        outcomes: dict[str, Result[FileMeta]] = {}
        for key in list(self._pending):
            pending = self._pending.pop(key)
            pending.task.cancel()
            outcomes[key] = await self._run_save(key, pending.notebook, pending.results)
        return outcomes

    async def aclose(self) -> None:
        """Flush pending saves and wait for saves already in flight."""
        await self.flush()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def _save_after_delay(self, key: str) -> None:
        await asyncio.sleep(self._delay)
        pending = self._pending.get(key)
        if pending is None or pending.task is not asyncio.current_task():
            return
        del self._pending[key]
        try:
            result = await self._run_save(key, pending.notebook, pending.results)
        except Exception:
            logger.exception("Auto-save of %s crashed", key)
            return
        if not result.ok:
            # The edit stays in memory until the next successful save.
            logger.warning("Auto-save of %s failed: %s", key, "; ".join(result.errors))

    async def _run_save(
        self,
        key: str,
        notebook: Notebook,
        results: Mapping[str, CellResult] | None,
    ) -> Result[FileMeta]:
        self._saving[key] = self._saving.get(key, 0) + 1
        try:
            return await self._handler.save(key, notebook, results)
        finally:
            self._saving[key] -= 1
            if not self._saving[key]:
                del self._saving[key]
