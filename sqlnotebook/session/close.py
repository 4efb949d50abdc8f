"""Decide whether a session may close, asking to save when it is dirty."""

from __future__ import annotations

import asyncio
import logging
from enum import StrEnum

from sqlnotebook.session.dirty import DirtyTracker
from sqlnotebook.session.ports import CloseChoice, PromptSurface
from sqlnotebook.session.save import SAVE_IN_PROGRESS, SaveCoordinator, SaveStatus

logger = logging.getLogger("sqlnotebook.session")


class CloseDecision(StrEnum):
    PROCEED = "proceed"
    ABORT = "abort"


class CloseConfirmation:
    def __init__(
        self,
        tracker: DirtyTracker,
        saver: SaveCoordinator,
        prompts: PromptSurface,
        *,
        lock: asyncio.Lock | None = None,
    ) -> None:
        self._tracker = tracker
        self._saver = saver
        self._prompts = prompts
        self._lock = lock if lock is not None else asyncio.Lock()

    async def decide(self) -> CloseDecision:
        if self._saver.in_progress:
            logger.debug("Close requested during a save; waiting for it to finish")
        # The dirty flag is read under the writer lock, after any running save has committed.
        async with self._lock:
            dirty = self._tracker.dirty
            short_name = self._tracker.short_name
        if not dirty:
            return CloseDecision.PROCEED

        choice = await self._prompts.confirm_close(short_name)
        if choice == CloseChoice.DISCARD:
            logger.info("Closing without saving")
            return CloseDecision.PROCEED
        if choice == CloseChoice.CANCEL:
            return CloseDecision.ABORT

        result = await self._saver.save()
        if result.status == SaveStatus.SAVED:
            return CloseDecision.PROCEED
        if result.reason == SAVE_IN_PROGRESS:
            self._prompts.show_error("Save Error", "The notebook is already being saved.", result.reason)
        logger.info("Close aborted: save ended as %s", result.status)
        return CloseDecision.ABORT
