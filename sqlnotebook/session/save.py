"""Save protocol: flush open documents, persist, promote an untitled notebook, commit."""

from __future__ import annotations

import asyncio
import logging
from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel

from sqlnotebook.core import Result
from sqlnotebook.session.dirty import DirtyTracker
from sqlnotebook.session.ports import NotebookStorePort, PromptSurface
from sqlnotebook.session.progress import run_with_progress
from sqlnotebook.session.registry import OpenItemRegistry

logger = logging.getLogger("sqlnotebook.session")

SAVE_IN_PROGRESS = "A save is already in progress"


class SaveStatus(StrEnum):
    SAVED = "saved"
    CANCELLED_BY_SAVE_AS = "cancelled_by_save_as"
    FAILED = "failed"


class SaveResult(BaseModel):
    status: SaveStatus
    reason: str | None = None

    @property
    def saved(self) -> bool:
        return self.status == SaveStatus.SAVED

    @classmethod
    def ok(cls) -> SaveResult:
        return cls(status=SaveStatus.SAVED)

    @classmethod
    def cancelled(cls) -> SaveResult:
        return cls(status=SaveStatus.CANCELLED_BY_SAVE_AS)

    @classmethod
    def failed(cls, reason: str) -> SaveResult:
        return cls(status=SaveStatus.FAILED, reason=reason)


class SaveCoordinator:
    """Runs one save at a time under the session's writer lock."""

    def __init__(
        self,
        registry: OpenItemRegistry,
        tracker: DirtyTracker,
        store: NotebookStorePort,
        prompts: PromptSurface,
        *,
        lock: asyncio.Lock | None = None,
        file_extension: str = ".sqlnb",
        busy_delay_ms: int = 25,
    ) -> None:
        self._registry = registry
        self._tracker = tracker
        self._store = store
        self._prompts = prompts
        self._lock = lock if lock is not None else asyncio.Lock()
        self._file_extension = file_extension
        self._busy_delay_ms = busy_delay_ms
        self._in_progress = False

    @property
    def in_progress(self) -> bool:
        return self._in_progress

    async def save(self) -> SaveResult:
        """Run the full protocol. A second save while one is running is rejected, never interleaved."""
        if self._in_progress:
            logger.warning("Rejected save request: %s", SAVE_IN_PROGRESS)
            return SaveResult.failed(SAVE_IN_PROGRESS)
        self._in_progress = True
        try:
            async with self._lock:
                return await self._run()
        finally:
            self._in_progress = False

    async def _run(self) -> SaveResult:
        # 1. Flush
        flushed = self._registry.flush_all()
        logger.debug("Flushed %d open documents", flushed)

        # 2. Persist
        persisted = await run_with_progress(
            self._prompts,
            "Save",
            "Saving your notebook...",
            self._store.persist,
            delay_ms=self._busy_delay_ms,
        )
        if not persisted.ok:
            return self._fail(persisted)

        # 3. Promote. A cancelled prompt leaves the temporary file written.
        if self._tracker.untitled:
            path = await self._prompts.ask_save_path()
            if path is None:
                logger.info("Save cancelled at the save-as prompt")
                return SaveResult.cancelled()
            path = self._with_extension(path)
            moved = await run_with_progress(
                self._prompts,
                "Save",
                "Saving your notebook...",
                lambda: self._store.move_to(path),
                delay_ms=self._busy_delay_ms,
            )
            if not moved.ok:
                return self._fail(moved)
            self._tracker.promote(path)

        # 4. Commit
        self._tracker.mark_clean()
        logger.info("Saved notebook to %s", self._store.current_path)
        return SaveResult.ok()

    def _with_extension(self, path: Path) -> Path:
        if path.suffix:
            return path
        return path.with_suffix(self._file_extension)

    def _fail(self, result: Result[None]) -> SaveResult:
        diag = result.first_error()
        reason = diag.message if diag is not None else "Unknown error"
        logger.error("Save failed: %s", reason)
        self._prompts.show_error("Save Error", "There was a problem saving the notebook.", reason)
        return SaveResult.failed(reason)
