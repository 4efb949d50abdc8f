"""Run blocking store work on a worker thread with a delayed busy indication."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import TypeVar

from sqlnotebook.session.ports import PromptSurface

T = TypeVar("T")


async def run_with_progress(
    prompts: PromptSurface,
    title: str,
    message: str,
    func: Callable[[], T],
    *,
    delay_ms: int = 25,
) -> T:
    """Run ``func`` off the event loop and wait for it to finish.

    The busy indication only appears if the work outlives ``delay_ms``, so
    quick saves do not flash a dialog. The work cannot be cancelled once it
    has started.
    """
    task = asyncio.ensure_future(asyncio.to_thread(func))
    done, _ = await asyncio.wait({task}, timeout=delay_ms / 1000)
    if done:
        return task.result()

    prompts.show_busy(title, message)
    try:
        return await asyncio.shield(task)
    finally:
        prompts.hide_busy()
