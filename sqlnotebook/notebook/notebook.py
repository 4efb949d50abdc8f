"""Notebook model for persistent item storage."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from pydantic import BaseModel, Field

from sqlnotebook.notebook.item import NotebookItemType

FORMAT_VERSION = 1


def generate_notebook_id() -> str:
    """Generate a notebook ID: 'nb_' + 12 hex chars from uuid4."""
    return "nb_" + uuid.uuid4().hex[:12]


class StoredItem(BaseModel):
    type: NotebookItemType
    name: str
    text: str = ""


class Notebook(BaseModel):
    id: str = Field(default_factory=generate_notebook_id)
    format_version: int = FORMAT_VERSION
    created_at: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    updated_at: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    items: list[StoredItem] = Field(default_factory=list)

    def find(self, name: str) -> StoredItem | None:
        """Item names are unique case-insensitively, as in the notebook listing."""
        key = name.lower()
        for item in self.items:
            if item.name.lower() == key:
                return item
        return None
