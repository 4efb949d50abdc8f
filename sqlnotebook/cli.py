"""CLI entry points: `sqlnotebook new`, `open`, `session`, and `items`."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console

from sqlnotebook.config import SqlNotebookConfig, ensure_dirs, load_config, temp_dir
from sqlnotebook.core import Result, Severity
from sqlnotebook.notebook.store import NotebookStore
from sqlnotebook.session.session import NotebookSession
from sqlnotebook.shell.terminal import (
    TerminalHost,
    TerminalPrompts,
    TerminalShell,
    TextDocumentFactory,
    print_items,
)

app = typer.Typer(name="sqlnotebook", help="Notebook of SQL consoles, scripts, and notes.")
console = Console()
logger = logging.getLogger("sqlnotebook.cli")


@app.command()
def new() -> None:
    """Start a new untitled notebook."""
    _run(None)


@app.command("open")
def open_notebook(path: Path = typer.Argument(help="Notebook file to open")) -> None:
    """Open a notebook file."""
    _run(path)


@app.command()
def session(path: Path | None = typer.Argument(None, help="Notebook file; omit for a new notebook")) -> None:
    """Run one notebook session in this process. Used by new-notebook and open-notebook."""
    _run(path)


@app.command()
def items(path: Path = typer.Argument(help="Notebook file to list")) -> None:
    """List the items stored in a notebook file."""
    store = _load(path)
    print_items(console, store.list_items(), title=path.name)


def _run(path: Path | None) -> None:
    """Run a session in the foreground. This process is the notebook's instance."""
    config = load_config()
    logging.basicConfig(level=config.log_level, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    ensure_dirs(config)

    if path is None:
        store = NotebookStore.create_temporary(temp_dir(config), config.session.file_extension)
    else:
        store = _load(path)

    try:
        asyncio.run(_run_session(store, config))
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted[/yellow]")
        raise typer.Exit(130) from None


def _load(path: Path) -> NotebookStore:
    result = NotebookStore.open(path)
    _print_diagnostics(result)
    if not result.ok or result.data is None:
        raise typer.Exit(1)
    return result.data


def _print_diagnostics(result: Result[NotebookStore]) -> None:
    for d in result.diagnostics:
        label = "[red]Error:[/red]" if d.severity == Severity.ERROR else "[yellow]Warning:[/yellow]"
        console.print(f"{label} {d.message}")
        if d.hint:
            console.print(f"  Hint: {d.hint}")


async def _run_session(store: NotebookStore, config: SqlNotebookConfig) -> None:
    host = TerminalHost(console)
    prompts = TerminalPrompts(console)
    notebook_session = await NotebookSession.start(store, TextDocumentFactory(store), host, prompts, config)
    logger.info("Session started for %s", store.current_path)
    try:
        await TerminalShell(
            notebook_session, store, console, terminal_command=config.session.terminal_command
        ).run()
    finally:
        await notebook_session.shutdown()


def main() -> None:
    app()
