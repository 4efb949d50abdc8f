"""Collaborators the session layer depends on.

The GUI shell, the document widgets, and the notebook file format live
outside the session. These protocols are the whole contract.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

from pydantic import BaseModel

from sqlnotebook.core import Result
from sqlnotebook.notebook.item import NotebookItem, NotebookItemType
from sqlnotebook.notebook.notebook import StoredItem

if TYPE_CHECKING:
    from sqlnotebook.session.registry import DocumentWindow


class CloseChoice(StrEnum):
    SAVE = "save"
    DISCARD = "discard"
    CANCEL = "cancel"


class TitleState(BaseModel):
    title: str
    save_enabled: bool


class Document:
    """Type-specific document content plus the accessor that pulls its current text."""

    def __init__(self, content: Any, pull_text: Callable[[], str], item_name: str) -> None:
        self.content = content
        self.pull_text = pull_text
        self.item_name = item_name


class UnsupportedItemType(Exception):
    """Raised by a document factory asked to build an item type it does not know."""


class DocumentFactory(Protocol):
    def create(self, item: NotebookItem) -> Document: ...


class NotebookStorePort(Protocol):
    @property
    def current_path(self) -> Path: ...

    @property
    def is_temporary(self) -> bool: ...

    def flush_item(self, name: str, text: str) -> None: ...

    def persist(self) -> Result[None]: ...

    def move_to(self, path: Path) -> Result[None]: ...

    def new_item(self, item_type: NotebookItemType, name: str | None = None, text: str = "") -> str: ...

    def rename_item(self, old_name: str, new_name: str) -> None: ...

    def delete_item(self, name: str) -> None: ...

    def get_text(self, name: str) -> str | None: ...

    def list_items(self) -> list[StoredItem]: ...

    def dispose(self) -> None: ...


class WindowHost(Protocol):
    """Docking surface that shows document windows and the main title."""

    def show(self, window: DocumentWindow) -> None: ...

    def activate(self, window: DocumentWindow) -> None: ...

    def request_close(self, window: DocumentWindow) -> None:
        """Begin closing ``window``. The host reports back through NotebookSession.window_closed."""
        ...

    def set_title(self, state: TitleState) -> None: ...

    def refresh_listing(self, items: list[StoredItem]) -> None: ...


class PromptSurface(Protocol):
    """Modal prompts shown to the user."""

    async def confirm_close(self, short_name: str) -> CloseChoice: ...

    async def ask_save_path(self) -> Path | None:
        """Return the chosen destination, or None if the user cancelled."""
        ...

    def show_error(self, title: str, message: str, details: str | None = None) -> None: ...

    def show_busy(self, title: str, message: str) -> None: ...

    def hide_busy(self) -> None: ...
