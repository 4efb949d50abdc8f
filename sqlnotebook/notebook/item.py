"""Notebook item identity.

An item is compared by reference, not by value. Renaming mutates ``name`` on
the same object, so anything keyed on the item (or its ``handle``) survives
the rename.
"""

from __future__ import annotations

import uuid
from enum import StrEnum


class NotebookItemType(StrEnum):
    CONSOLE = "console"
    SCRIPT = "script"
    NOTE = "note"


def generate_item_handle() -> str:
    """Generate an item handle: 'item_' + 12 hex chars from uuid4."""
    return "item_" + uuid.uuid4().hex[:12]


class NotebookItem:
    """Stable handle for one notebook entry.

    ``type`` is kept as given so that a malformed value reaches the registry,
    which rejects it without opening a window.
    """

    __slots__ = ("handle", "name", "type")

    def __init__(self, type: NotebookItemType | str, name: str) -> None:  # noqa: A002
        self.handle = generate_item_handle()
        self.type = type
        self.name = name

    @property
    def item_type(self) -> NotebookItemType | None:
        """The validated item type, or None for an unknown type."""
        try:
            return NotebookItemType(self.type)
        except ValueError:
            return None

    def __repr__(self) -> str:
        return f"NotebookItem({self.type!s}, {self.name!r}, handle={self.handle})"
