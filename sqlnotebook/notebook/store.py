"""Persistent notebook store backed by a single .sqlnb JSON file.

An untitled notebook is backed by a temporary file until it is moved to a
user-chosen path.
"""

from __future__ import annotations

import json
import logging
import shutil
import uuid
from datetime import UTC, datetime
from pathlib import Path

from sqlnotebook.core import Result, StoreError
from sqlnotebook.notebook.item import NotebookItemType
from sqlnotebook.notebook.notebook import Notebook, StoredItem

logger = logging.getLogger("sqlnotebook.store")

_DEFAULT_NAMES = {
    NotebookItemType.CONSOLE: "Console",
    NotebookItemType.SCRIPT: "Script",
    NotebookItemType.NOTE: "Note",
}


class NotebookStore:
    """Holds notebook items in memory and writes them to disk on persist()."""

    def __init__(self, path: Path, *, temporary: bool = False, notebook: Notebook | None = None) -> None:
        self._path = path
        self._temporary = temporary
        self._notebook = notebook if notebook is not None else Notebook()

    @classmethod
    def create_temporary(cls, directory: Path, extension: str = ".sqlnb") -> NotebookStore:
        """Create a store for an untitled notebook inside ``directory``."""
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"untitled_{uuid.uuid4().hex[:12]}{extension}"
        store = cls(path, temporary=True)
        logger.info("Created temporary notebook %s", path)
        return store

    @classmethod
    def open(cls, path: Path) -> Result[NotebookStore]:
        """Load a notebook file from disk."""
        result: Result[NotebookStore] = Result()
        if not path.exists():
            result.error("NOT_FOUND", f"Notebook {path} not found")
            return result
        try:
            data = json.loads(path.read_text())
            nb = Notebook.model_validate(data)
            result.data = cls(path, notebook=nb)
        except Exception as e:  # noqa: BLE001
            result.error("LOAD_ERROR", f"Failed to load notebook: {e}")
            return result
        stale = _tmp_path(path)
        if stale.exists():
            result.warning(
                "STALE_TEMP",
                f"An interrupted save left {stale.name} next to the notebook",
                hint="The notebook was loaded from the last completed save. Delete the .tmp file once checked.",
            )
        return result

    @property
    def current_path(self) -> Path:
        return self._path

    @property
    def is_temporary(self) -> bool:
        return self._temporary

    def list_items(self) -> list[StoredItem]:
        return sorted(self._notebook.items, key=lambda i: (i.type, i.name.lower()))

    def get_text(self, name: str) -> str | None:
        item = self._notebook.find(name)
        return item.text if item is not None else None

    def new_item(self, item_type: NotebookItemType, name: str | None = None, text: str = "") -> str:
        """Add an item and return its name. Without a name, pick the next free default."""
        if name is None:
            name = self._next_free_name(item_type)
        name = name.strip()
        if not name:
            raise StoreError("INVALID_NAME", "Item name must not be empty")
        if self._notebook.find(name) is not None:
            raise StoreError("DUPLICATE_NAME", f"An item named '{name}' already exists")
        self._notebook.items.append(StoredItem(type=item_type, name=name, text=text))
        self._touch()
        return name

    def rename_item(self, old_name: str, new_name: str) -> None:
        item = self._notebook.find(old_name)
        if item is None:
            raise StoreError("NOT_FOUND", f"Item '{old_name}' not found")
        new_name = new_name.strip()
        if not new_name:
            raise StoreError("INVALID_NAME", "Item name must not be empty")
        existing = self._notebook.find(new_name)
        if existing is not None and existing is not item:
            raise StoreError("DUPLICATE_NAME", f"An item named '{new_name}' already exists")
        item.name = new_name
        self._touch()

    def delete_item(self, name: str) -> None:
        item = self._notebook.find(name)
        if item is None:
            raise StoreError("NOT_FOUND", f"Item '{name}' not found")
        self._notebook.items.remove(item)
        self._touch()

    def flush_item(self, name: str, text: str) -> None:
        """Write a document's in-memory text back into the notebook."""
        item = self._notebook.find(name)
        if item is None:
            logger.warning("Dropping flush for unknown item %r", name)
            return
        if item.text != text:
            item.text = text
            self._touch()

    def persist(self) -> Result[None]:
        """Atomic write: write to .tmp, then rename. The previous file survives a failure."""
        result: Result[None] = Result()
        nb = self._notebook
        path = self._path
        tmp_path = _tmp_path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            data = nb.model_dump(mode="json")
            tmp_path.write_text(json.dumps(data, indent=2) + "\n")
            tmp_path.replace(path)
        except OSError as e:
            if tmp_path.is_file():
                tmp_path.unlink()
            result.error("PERSIST_ERROR", f"Failed to save notebook: {e}")
            return result
        logger.info("Saved notebook %s (%d items) to %s", nb.id, len(nb.items), path)
        return result

    def move_to(self, path: Path) -> Result[None]:
        """Move the backing file to ``path`` and bind the store to it."""
        result: Result[None] = Result()
        if path.resolve() == self._path.resolve():
            self._temporary = False
            return result
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(self._path), str(path))
        except OSError as e:
            result.error("MOVE_ERROR", f"Failed to move notebook to {path}: {e}")
            return result
        logger.info("Moved notebook %s from %s to %s", self._notebook.id, self._path, path)
        self._path = path
        self._temporary = False
        return result

    def dispose(self) -> None:
        """Release the store. A temporary backing file is deleted."""
        if self._temporary:
            self._path.unlink(missing_ok=True)
            logger.info("Discarded temporary notebook %s", self._path)

    def _next_free_name(self, item_type: NotebookItemType) -> str:
        base = _DEFAULT_NAMES[item_type]
        n = 1
        while self._notebook.find(f"{base}{n}") is not None:
            n += 1
        return f"{base}{n}"

    def _touch(self) -> None:
        self._notebook.updated_at = datetime.now(UTC).isoformat()


def _tmp_path(path: Path) -> Path:
    return path.with_name(path.name + ".tmp")
