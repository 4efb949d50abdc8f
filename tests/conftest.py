"""Shared fakes for the session collaborators."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from pathlib import Path

import pytest

from sqlnotebook.config import SqlNotebookConfig
from sqlnotebook.core import Result, StoreError
from sqlnotebook.notebook.item import NotebookItem, NotebookItemType
from sqlnotebook.notebook.notebook import StoredItem
from sqlnotebook.session.ports import CloseChoice, Document, TitleState, UnsupportedItemType
from sqlnotebook.session.registry import DocumentWindow
from sqlnotebook.session.session import NotebookSession


class FakeStore:
    """In-memory store that records every call the session makes."""

    def __init__(self, *, temporary: bool = True, path: Path = Path("/tmp/untitled.sqlnb")) -> None:
        self.current_path = path
        self.is_temporary = temporary
        self.items: dict[str, StoredItem] = {}
        self.calls: list[tuple[str, ...]] = []
        self.persist_result: Result[None] = Result()
        self.move_result: Result[None] = Result()
        self.persist_delay = 0.0
        self.disposed = False

    def flush_item(self, name: str, text: str) -> None:
        self.calls.append(("flush", name, text))
        if name in self.items:
            self.items[name].text = text

    def persist(self) -> Result[None]:
        self.calls.append(("persist",))
        if self.persist_delay:
            time.sleep(self.persist_delay)
        return self.persist_result

    def move_to(self, path: Path) -> Result[None]:
        self.calls.append(("move", str(path)))
        if self.move_result.ok:
            self.current_path = path
            self.is_temporary = False
        return self.move_result

    def new_item(self, item_type: NotebookItemType, name: str | None = None, text: str = "") -> str:
        if name is None:
            n = 1
            while f"{item_type.value.title()}{n}" in self.items:
                n += 1
            name = f"{item_type.value.title()}{n}"
        if name in self.items:
            raise StoreError("DUPLICATE_NAME", f"An item named '{name}' already exists")
        self.items[name] = StoredItem(type=item_type, name=name, text=text)
        self.calls.append(("new", name))
        return name

    def rename_item(self, old_name: str, new_name: str) -> None:
        if old_name not in self.items:
            raise StoreError("NOT_FOUND", f"Item '{old_name}' not found")
        item = self.items.pop(old_name)
        item.name = new_name
        self.items[new_name] = item
        self.calls.append(("rename", old_name, new_name))

    def delete_item(self, name: str) -> None:
        if name not in self.items:
            raise StoreError("NOT_FOUND", f"Item '{name}' not found")
        del self.items[name]
        self.calls.append(("delete", name))

    def get_text(self, name: str) -> str | None:
        item = self.items.get(name)
        return item.text if item is not None else None

    def list_items(self) -> list[StoredItem]:
        return list(self.items.values())

    def dispose(self) -> None:
        self.disposed = True

    def count(self, call: str) -> int:
        return sum(1 for c in self.calls if c[0] == call)


class Buffer:
    def __init__(self, text: str) -> None:
        self.text = text


class FakeFactory:
    def __init__(self, store: FakeStore) -> None:
        self._store = store
        self.created: list[NotebookItem] = []

    def create(self, item: NotebookItem) -> Document:
        if item.item_type is None:
            raise UnsupportedItemType(item.type)
        self.created.append(item)
        buffer = Buffer(self._store.get_text(item.name) or "")
        return Document(buffer, lambda: buffer.text, item.name)


class FakeHost:
    def __init__(self, *, auto_close: bool = True) -> None:
        self.auto_close = auto_close
        self.shown: list[DocumentWindow] = []
        self.activated: list[DocumentWindow] = []
        self.close_requests: list[DocumentWindow] = []
        self.titles: list[TitleState] = []
        self.listings = 0

    def show(self, window: DocumentWindow) -> None:
        self.shown.append(window)

    def activate(self, window: DocumentWindow) -> None:
        self.activated.append(window)

    def request_close(self, window: DocumentWindow) -> None:
        self.close_requests.append(window)
        if self.auto_close:
            window.closed()

    def set_title(self, state: TitleState) -> None:
        self.titles.append(state)

    def refresh_listing(self, items: list[StoredItem]) -> None:
        self.listings += 1


class FakePrompts:
    def __init__(self) -> None:
        self.close_choice = CloseChoice.CANCEL
        self.save_path: Path | None = None
        self.close_prompts: list[str] = []
        self.path_prompts = 0
        self.errors: list[tuple[str, str, str | None]] = []
        self.busy: list[str] = []
        self.busy_hidden = 0

    async def confirm_close(self, short_name: str) -> CloseChoice:
        self.close_prompts.append(short_name)
        return self.close_choice

    async def ask_save_path(self) -> Path | None:
        self.path_prompts += 1
        return self.save_path

    def show_error(self, title: str, message: str, details: str | None = None) -> None:
        self.errors.append((title, message, details))

    def show_busy(self, title: str, message: str) -> None:
        self.busy.append(message)

    def hide_busy(self) -> None:
        self.busy_hidden += 1


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def factory(store: FakeStore) -> FakeFactory:
    return FakeFactory(store)


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def prompts() -> FakePrompts:
    return FakePrompts()


@pytest.fixture
def start_session(
    store: FakeStore, factory: FakeFactory, host: FakeHost, prompts: FakePrompts
) -> Callable[[], Awaitable[NotebookSession]]:
    async def _start() -> NotebookSession:
        return await NotebookSession.start(store, factory, host, prompts, SqlNotebookConfig())

    return _start
