"""Process-per-notebook entry contract.

New and Open never add a second notebook to the running process. They start
an independent instance, so a crash in one notebook cannot take another down.
An instance is an interactive terminal session, so it only gets launched
inside a terminal window of its own (``SessionConfig.terminal_command``).
"""

from __future__ import annotations

import logging
import subprocess
import sys
from pathlib import Path

logger = logging.getLogger("sqlnotebook.launcher")

_children: list[subprocess.Popen[bytes]] = []


def instance_command(path: Path | None = None) -> list[str]:
    """Build the command line for an independent notebook instance."""
    command = [sys.executable, "-m", "sqlnotebook", "session"]
    if path is not None:
        command.append(str(path))
    return command


def launch_instance(
    path: Path | None = None, terminal_command: list[str] | None = None
) -> subprocess.Popen[bytes] | None:
    """Start an instance for ``path``, or for a new untitled notebook, in a new terminal window.

    Returns None without spawning anything when no terminal command is
    configured; the caller shows ``instance_command(path)`` instead.
    """
    reap_instances()
    if not terminal_command:
        logger.info("No terminal command configured; not launching %s", path or "a new notebook")
        return None
    command = [*terminal_command, *instance_command(path)]
    logger.info("Launching notebook instance: %s", " ".join(command))
    process = subprocess.Popen(  # noqa: S603
        command,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        start_new_session=True,
    )
    _children.append(process)
    return process


def reap_instances() -> int:
    """Collect exited instances. Returns how many are still running."""
    _children[:] = [p for p in _children if p.poll() is None]
    return len(_children)
