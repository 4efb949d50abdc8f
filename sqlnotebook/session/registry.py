"""Open-item registry: at most one live document window per notebook item."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from sqlnotebook.notebook.item import NotebookItem
from sqlnotebook.session.ports import (
    Document,
    DocumentFactory,
    NotebookStorePort,
    UnsupportedItemType,
    WindowHost,
)

logger = logging.getLogger("sqlnotebook.session")


class DocumentWindow:
    """A shown document: the item it edits, its content, and its title."""

    def __init__(self, item: NotebookItem, document: Document) -> None:
        self.item = item
        self.document = document
        self.title = item.name
        self.on_closed: Callable[[], Any] = lambda: None

    def text(self) -> str:
        return self.document.pull_text()

    def closed(self) -> Any:
        """Called by the window host once the window has gone away."""
        return self.on_closed()


class OpenItemRegistry:
    """Maps item handles to their live windows.

    Not thread-safe; the owning session serializes every call.
    """

    def __init__(
        self,
        store: NotebookStorePort,
        factory: DocumentFactory,
        host: WindowHost,
        *,
        closed_callback: Callable[[NotebookItem], Any] | None = None,
    ) -> None:
        self._store = store
        self._factory = factory
        self._host = host
        self._closed_callback = closed_callback if closed_callback is not None else self.window_closed
        self._windows: dict[str, DocumentWindow] = {}

    def __len__(self) -> int:
        return len(self._windows)

    def __contains__(self, item: NotebookItem) -> bool:
        return item.handle in self._windows

    def get(self, item: NotebookItem) -> DocumentWindow | None:
        return self._windows.get(item.handle)

    def find_by_name(self, name: str) -> NotebookItem | None:
        key = name.lower()
        for window in self._windows.values():
            if window.item.name.lower() == key:
                return window.item
        return None

    def open(self, item: NotebookItem) -> DocumentWindow | None:
        """Show ``item``, or activate its window if it is already open."""
        existing = self._windows.get(item.handle)
        if existing is not None:
            self._host.activate(existing)
            return existing

        if item.item_type is None:
            logger.debug("Ignoring open request for unknown item type %r", item.type)
            return None
        try:
            document = self._factory.create(item)
        except UnsupportedItemType:
            logger.debug("Document factory rejected item %r", item)
            return None

        window = DocumentWindow(item, document)
        window.on_closed = lambda: self._closed_callback(item)
        self._windows[item.handle] = window
        self._host.show(window)
        logger.info("Opened %s %r", item.type, item.name)
        return window

    def close(self, item: NotebookItem) -> bool:
        """Ask the host to close the item's window. The entry goes when the host reports it closed."""
        window = self._windows.get(item.handle)
        if window is None:
            return False
        self._host.request_close(window)
        return True

    def renamed(self, item: NotebookItem, new_name: str) -> bool:
        """Rename in place: the window keeps its identity, only names change."""
        item.name = new_name
        window = self._windows.get(item.handle)
        if window is None:
            return False
        window.title = new_name
        window.document.item_name = new_name
        return True

    def flush_all(self) -> int:
        """Write every open document's current text back to the store."""
        for window in self._windows.values():
            self._store.flush_item(window.item.name, window.text())
        return len(self._windows)

    def window_closed(self, item: NotebookItem) -> bool:
        """Flush the closed window's last text, then forget it."""
        window = self._windows.get(item.handle)
        if window is None:
            return False
        self._store.flush_item(item.name, window.text())
        del self._windows[item.handle]
        logger.info("Closed %s %r", item.type, item.name)
        return True
