"""Session-wide dirty and untitled flags, and the title they drive."""

from __future__ import annotations

from pathlib import Path

from sqlnotebook.session.ports import TitleState, WindowHost

UNTITLED = "Untitled"


def format_title(app_name: str, path: Path | None, *, dirty: bool) -> str:
    prefix = UNTITLED if path is None else path.stem
    star = "*" if dirty else ""
    return f"{prefix}{star} - {app_name}"


class DirtyTracker:
    def __init__(self, host: WindowHost, app_name: str, path: Path | None) -> None:
        self._host = host
        self._app_name = app_name
        self._path = path
        self._dirty = False

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def untitled(self) -> bool:
        return self._path is None

    @property
    def short_name(self) -> str:
        """Name used in the close prompt: 'Untitled' or the file name."""
        return UNTITLED if self._path is None else self._path.name

    def title_state(self) -> TitleState:
        return TitleState(
            title=format_title(self._app_name, self._path, dirty=self._dirty),
            save_enabled=self._dirty,
        )

    def publish(self) -> None:
        self._host.set_title(self.title_state())

    def mark_dirty(self) -> None:
        if not self._dirty:
            self._dirty = True
            self.publish()

    def mark_clean(self) -> None:
        self._dirty = False
        self.publish()

    def promote(self, path: Path) -> None:
        """Bind an untitled notebook to its saved path."""
        self._path = path
