"""Terminal stand-in for the desktop shell.

Documents are plain text buffers, windows are lines on the console, and the
modal dialogs are rich prompts. Enough to drive a NotebookSession by hand.
"""

from __future__ import annotations

import asyncio
import logging
import shlex
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt
from rich.status import Status
from rich.table import Table

from sqlnotebook.launcher import instance_command, launch_instance
from sqlnotebook.notebook.item import NotebookItem, NotebookItemType
from sqlnotebook.notebook.notebook import StoredItem
from sqlnotebook.session.close import CloseDecision
from sqlnotebook.session.ports import (
    CloseChoice,
    Document,
    NotebookStorePort,
    TitleState,
    UnsupportedItemType,
)
from sqlnotebook.session.registry import DocumentWindow
from sqlnotebook.session.save import SaveStatus
from sqlnotebook.session.session import NotebookSession

logger = logging.getLogger("sqlnotebook.shell")

HELP = """\
Commands:
  list                      show notebook items
  new console|script|note   create and open an item
  open NAME                 open an item
  close NAME                close an item's window
  rename NAME NEW_NAME      rename an item
  delete NAME               delete an item
  show NAME                 print an open item's text
  edit NAME TEXT            replace an open item's text
  save                      save the notebook
  new-notebook              start another instance with a new notebook
  open-notebook PATH        start another instance for PATH
  quit                      close the notebook"""


class TextBuffer:
    def __init__(self, text: str) -> None:
        self.text = text


class TextDocumentFactory:
    """Builds a text buffer for each console, script, or note, seeded from the store."""

    def __init__(self, store: NotebookStorePort) -> None:
        self._store = store

    def create(self, item: NotebookItem) -> Document:
        if item.item_type is None:
            raise UnsupportedItemType(item.type)
        buffer = TextBuffer(self._store.get_text(item.name) or "")
        return Document(buffer, lambda: buffer.text, item.name)


class TerminalHost:
    def __init__(self, console: Console) -> None:
        self._console = console

    def show(self, window: DocumentWindow) -> None:
        self._console.print(f"[green]Opened[/green] {window.item.type} [bold]{window.title}[/bold]")

    def activate(self, window: DocumentWindow) -> None:
        self._console.print(f"[cyan]Activated[/cyan] [bold]{window.title}[/bold]")

    def request_close(self, window: DocumentWindow) -> None:
        self._console.print(f"[dim]Closed {window.title}[/dim]")
        window.closed()

    def set_title(self, state: TitleState) -> None:
        self._console.rule(state.title)

    def refresh_listing(self, items: list[StoredItem]) -> None:
        logger.debug("Listing refreshed: %d items", len(items))


class TerminalPrompts:
    def __init__(self, console: Console) -> None:
        self._console = console
        self._status: Status | None = None

    async def confirm_close(self, short_name: str) -> CloseChoice:
        answer = await asyncio.to_thread(
            Prompt.ask,
            f"Do you want to save changes to {short_name}?",
            console=self._console,
            choices=[c.value for c in CloseChoice],
            default=CloseChoice.SAVE.value,
        )
        return CloseChoice(answer)

    async def ask_save_path(self) -> Path | None:
        answer = await asyncio.to_thread(
            Prompt.ask, "Save Notebook As (empty to cancel)", console=self._console, default=""
        )
        if not answer.strip():
            return None
        path = Path(answer.strip()).expanduser()
        if path.exists():
            overwrite = await asyncio.to_thread(
                Confirm.ask, f"{path} already exists. Replace it?", console=self._console, default=False
            )
            if not overwrite:
                return None
        return path

    def show_error(self, title: str, message: str, details: str | None = None) -> None:
        self._console.print(f"[red]{title}:[/red] {message}")
        if details:
            self._console.print(f"  {details}")

    def show_busy(self, title: str, message: str) -> None:
        self._status = self._console.status(f"[bold]{title}[/bold] {message}")
        self._status.start()

    def hide_busy(self) -> None:
        if self._status is not None:
            self._status.stop()
            self._status = None


def print_items(console: Console, items: list[StoredItem], title: str = "Items") -> None:
    t = Table(title=title)
    t.add_column("Type", style="cyan")
    t.add_column("Name", style="bold")
    t.add_column("Size", justify="right")
    for item in items:
        t.add_row(item.type.value, item.name, str(len(item.text)))
    console.print(t)


class TerminalShell:
    """Reads commands and turns them into session events."""

    def __init__(
        self,
        session: NotebookSession,
        store: NotebookStorePort,
        console: Console,
        *,
        terminal_command: list[str] | None = None,
    ) -> None:
        self._session = session
        self._store = store
        self._console = console
        self._terminal_command = terminal_command or []

    async def run(self) -> None:
        """Read commands until the session closes or input ends.

        End of input and Ctrl-C end the loop without prompting; the caller
        shuts the session down.
        """
        self._console.print(HELP)
        while True:
            try:
                line = await asyncio.to_thread(Prompt.ask, "[bold]sqlnb[/bold]", console=self._console, default="")
                done = await self.handle(line)
            except (EOFError, KeyboardInterrupt):
                self._console.print()
                logger.info("Input ended; closing the session")
                return
            if done:
                return

    async def handle(self, line: str) -> bool:
        """Run one command. Returns True once the session has closed."""
        try:
            args = shlex.split(line)
        except ValueError as e:
            self._console.print(f"[red]{e}[/red]")
            return False
        if not args:
            return False
        command, rest = args[0].lower(), args[1:]

        if command == "quit":
            return await self._quit()
        if command == "list":
            print_items(self._console, self._store.list_items())
        elif command == "new" and len(rest) == 1:
            try:
                item_type = NotebookItemType(rest[0].lower())
            except ValueError:
                self._console.print(f"[red]Unknown item type:[/red] {rest[0]}")
                return False
            await self._session.new_item(item_type)
        elif command == "save":
            result = await self._session.save()
            if result.status == SaveStatus.SAVED:
                self._console.print(f"[green]Saved to {self._store.current_path}[/green]")
            elif result.status == SaveStatus.CANCELLED_BY_SAVE_AS:
                self._console.print("[yellow]Save cancelled[/yellow]")
        elif command == "new-notebook":
            self._launch(None)
        elif command == "open-notebook" and len(rest) == 1:
            path = Path(rest[0]).expanduser()
            if not path.exists():
                self._console.print(f"[red]No such notebook:[/red] {path}")
                return False
            self._launch(path)
        elif command in ("open", "close", "delete", "show") and len(rest) == 1:
            await self._item_command(command, rest[0])
        elif command == "rename" and len(rest) == 2:
            item = self._resolve(rest[0])
            if item is not None:
                await self._session.rename_item(item, rest[1])
        elif command == "edit" and len(rest) >= 2:
            await self._edit(rest[0], " ".join(rest[1:]))
        else:
            self._console.print(HELP)
        return False

    async def _item_command(self, command: str, name: str) -> None:
        item = self._resolve(name)
        if item is None:
            return
        if command == "open":
            await self._session.open_item(item)
        elif command == "close":
            await self._session.close_item(item)
        elif command == "delete":
            await self._session.delete_item(item)
        else:
            window = self._session.registry.get(item)
            if window is None:
                self._console.print(f"[yellow]{name} is not open[/yellow]")
                return
            self._console.print(window.text())

    async def _edit(self, name: str, text: str) -> None:
        item = self._resolve(name)
        window = self._session.registry.get(item) if item is not None else None
        if window is None:
            self._console.print(f"[yellow]{name} is not open[/yellow]")
            return
        window.document.content.text = text
        await self._session.notify_changed()

    def _launch(self, path: Path | None) -> None:
        if launch_instance(path, self._terminal_command) is None:
            command = shlex.join(instance_command(path))
            self._console.print(f"Run [bold]{escape(command)}[/bold] in another terminal to open it.")

    async def _quit(self) -> bool:
        decision = await self._session.confirm_close()
        if decision == CloseDecision.ABORT:
            return False
        await self._session.shutdown()
        return True

    def _resolve(self, name: str) -> NotebookItem | None:
        item = self._session.item(name)
        if item is None:
            self._console.print(f"[red]No item named[/red] {name}")
        return item
