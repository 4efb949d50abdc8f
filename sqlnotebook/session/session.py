"""Notebook session: one process, one notebook, one writer.

Every mutation of the open-item registry and the dirty flag runs under a
single asyncio lock. Window-closed notifications from the host are queued as
tasks behind that lock instead of mutating state from inside the host's
callback.
"""

from __future__ import annotations

import asyncio
import logging

from sqlnotebook.config import SqlNotebookConfig
from sqlnotebook.core import StoreError
from sqlnotebook.notebook.item import NotebookItem, NotebookItemType
from sqlnotebook.session.close import CloseConfirmation, CloseDecision
from sqlnotebook.session.dirty import DirtyTracker
from sqlnotebook.session.ports import (
    DocumentFactory,
    NotebookStorePort,
    PromptSurface,
    TitleState,
    WindowHost,
)
from sqlnotebook.session.registry import DocumentWindow, OpenItemRegistry
from sqlnotebook.session.save import SaveCoordinator, SaveResult

logger = logging.getLogger("sqlnotebook.session")


class NotebookSession:
    def __init__(
        self,
        store: NotebookStorePort,
        factory: DocumentFactory,
        host: WindowHost,
        prompts: PromptSurface,
        config: SqlNotebookConfig | None = None,
    ) -> None:
        self._config = config if config is not None else SqlNotebookConfig()
        self._store = store
        self._host = host
        self._prompts = prompts
        self._lock = asyncio.Lock()
        self._pending: set[asyncio.Task[bool]] = set()
        self._closed = False

        self.tracker = DirtyTracker(
            host,
            self._config.session.app_name,
            None if store.is_temporary else store.current_path,
        )
        self.registry = OpenItemRegistry(store, factory, host, closed_callback=self._on_window_closed)
        self.saver = SaveCoordinator(
            self.registry,
            self.tracker,
            store,
            prompts,
            lock=self._lock,
            file_extension=self._config.session.file_extension,
            busy_delay_ms=self._config.session.busy_delay_ms,
        )
        self.closer = CloseConfirmation(self.tracker, self.saver, prompts, lock=self._lock)

    @classmethod
    async def start(
        cls,
        store: NotebookStorePort,
        factory: DocumentFactory,
        host: WindowHost,
        prompts: PromptSurface,
        config: SqlNotebookConfig | None = None,
    ) -> NotebookSession:
        """Create a session and show its initial state.

        A new (untitled) notebook gets a Getting Started note and starts dirty:
        its default content is not persisted anywhere durable yet.
        """
        session = cls(store, factory, host, prompts, config)
        async with session._lock:
            session.tracker.publish()
            if session.untitled:
                getting_started = session._config.getting_started
                name = store.new_item(NotebookItemType.NOTE, getting_started.title, getting_started.text)
                session.registry.open(NotebookItem(NotebookItemType.NOTE, name))
                session.tracker.mark_dirty()
            session._rescan()
        return session

    @property
    def dirty(self) -> bool:
        return self.tracker.dirty

    @property
    def untitled(self) -> bool:
        return self.tracker.untitled

    @property
    def title_state(self) -> TitleState:
        return self.tracker.title_state()

    def item(self, name: str) -> NotebookItem | None:
        """Resolve a listing entry to its item, reusing the identity of an open window."""
        open_item = self.registry.find_by_name(name)
        if open_item is not None:
            return open_item
        for stored in self._store.list_items():
            if stored.name.lower() == name.lower():
                return NotebookItem(stored.type, stored.name)
        return None

    async def open_item(self, item: NotebookItem) -> DocumentWindow | None:
        async with self._lock:
            return self.registry.open(item)

    async def close_item(self, item: NotebookItem) -> None:
        async with self._lock:
            self.registry.close(item)
        await self.drain()

    async def new_item(self, item_type: NotebookItemType) -> NotebookItem | None:
        async with self._lock:
            try:
                name = self._store.new_item(item_type)
            except StoreError as e:
                self._prompts.show_error("Notebook Error", f"There was a problem creating the {item_type}.", e.message)
                return None
            item = NotebookItem(item_type, name)
            self.registry.open(item)
            self.tracker.mark_dirty()
            self._rescan()
            return item

    async def rename_item(self, item: NotebookItem, new_name: str) -> bool:
        async with self._lock:
            try:
                self._store.rename_item(item.name, new_name)
            except StoreError as e:
                self._prompts.show_error("Notebook Error", f"There was a problem renaming the {item.type}.", e.message)
                return False
            self._renamed(item, new_name.strip())
            return True

    async def item_renamed(self, item: NotebookItem, new_name: str) -> None:
        """React to a rename already applied to the notebook elsewhere."""
        async with self._lock:
            self._renamed(item, new_name)

    async def delete_item(self, item: NotebookItem) -> bool:
        await self.close_item(item)
        async with self._lock:
            try:
                self._store.delete_item(item.name)
            except StoreError as e:
                self._prompts.show_error("Notebook Error", f"There was a problem deleting the {item.type}.", e.message)
                return False
            self.tracker.mark_dirty()
            self._rescan()
            return True

    async def notify_changed(self) -> None:
        async with self._lock:
            self.tracker.mark_dirty()

    async def window_closed(self, item: NotebookItem) -> bool:
        async with self._lock:
            return self.registry.window_closed(item)

    async def save(self) -> SaveResult:
        return await self.saver.save()

    async def confirm_close(self) -> CloseDecision:
        return await self.closer.decide()

    async def drain(self) -> None:
        """Wait for queued window-closed notifications to be applied."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    async def shutdown(self) -> None:
        """Dispose the store. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        await self.drain()
        async with self._lock:
            self._store.dispose()
        logger.info("Session closed")

    def _on_window_closed(self, item: NotebookItem) -> asyncio.Task[bool]:
        task = asyncio.ensure_future(self.window_closed(item))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    def _renamed(self, item: NotebookItem, new_name: str) -> None:
        self.registry.renamed(item, new_name)
        self.tracker.mark_dirty()
        self._rescan()

    def _rescan(self) -> None:
        self._host.refresh_listing(self._store.list_items())
