"""Tests for the close confirmation flow."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from sqlnotebook.core import Result
from sqlnotebook.session.close import CloseDecision
from sqlnotebook.session.ports import CloseChoice
from sqlnotebook.session.save import SAVE_IN_PROGRESS, SaveResult
from sqlnotebook.session.session import NotebookSession

if TYPE_CHECKING:
    from conftest import FakePrompts, FakeStore

StartSession = Callable[[], Awaitable[NotebookSession]]


@pytest.mark.asyncio
async def test_clean_session_closes_without_prompt(
    start_session: StartSession, store: FakeStore, prompts: FakePrompts
) -> None:
    store.is_temporary = False
    session = await start_session()
    assert session.dirty is False

    assert await session.confirm_close() == CloseDecision.PROCEED
    assert prompts.close_prompts == []


@pytest.mark.asyncio
async def test_discard_proceeds_without_persist(
    start_session: StartSession, store: FakeStore, prompts: FakePrompts
) -> None:
    session = await start_session()
    prompts.close_choice = CloseChoice.DISCARD

    assert await session.confirm_close() == CloseDecision.PROCEED
    assert prompts.close_prompts == ["Untitled"]
    assert store.count("persist") == 0
    assert store.count("flush") == 0


@pytest.mark.asyncio
async def test_cancel_aborts_and_stays_dirty(
    start_session: StartSession, store: FakeStore, prompts: FakePrompts
) -> None:
    session = await start_session()
    prompts.close_choice = CloseChoice.CANCEL

    assert await session.confirm_close() == CloseDecision.ABORT
    assert session.dirty is True
    assert store.count("persist") == 0


@pytest.mark.asyncio
async def test_save_success_proceeds(start_session: StartSession, store: FakeStore, prompts: FakePrompts) -> None:
    session = await start_session()
    prompts.close_choice = CloseChoice.SAVE
    prompts.save_path = Path("kept.sqlnb")

    assert await session.confirm_close() == CloseDecision.PROCEED
    assert session.dirty is False
    assert store.current_path == Path("kept.sqlnb")


@pytest.mark.asyncio
async def test_save_cancelled_at_prompt_aborts(
    start_session: StartSession, store: FakeStore, prompts: FakePrompts
) -> None:
    session = await start_session()
    prompts.close_choice = CloseChoice.SAVE
    prompts.save_path = None

    assert await session.confirm_close() == CloseDecision.ABORT
    assert session.dirty is True
    assert session.untitled is True
    assert store.count("persist") == 1


@pytest.mark.asyncio
async def test_save_failure_aborts(start_session: StartSession, store: FakeStore, prompts: FakePrompts) -> None:
    store.is_temporary = False
    store.current_path = Path("sales.sqlnb")
    session = await start_session()
    await session.notify_changed()
    failed: Result[None] = Result()
    failed.error("PERSIST_ERROR", "read-only file system")
    store.persist_result = failed
    prompts.close_choice = CloseChoice.SAVE

    assert await session.confirm_close() == CloseDecision.ABORT
    assert prompts.close_prompts == ["sales.sqlnb"]
    assert session.dirty is True
    assert len(prompts.errors) == 1


@pytest.mark.asyncio
async def test_close_during_save_waits_for_it(
    start_session: StartSession, store: FakeStore, prompts: FakePrompts
) -> None:
    store.is_temporary = False
    store.persist_delay = 0.2
    session = await start_session()
    await session.notify_changed()
    prompts.close_choice = CloseChoice.SAVE

    save_task = asyncio.ensure_future(session.save())
    await asyncio.sleep(0)
    assert session.saver.in_progress is True

    assert await session.confirm_close() == CloseDecision.PROCEED
    assert prompts.close_prompts == []
    assert (await save_task).saved
    assert store.count("persist") == 1


@pytest.mark.asyncio
async def test_save_rejected_at_close_is_reported(
    start_session: StartSession, store: FakeStore, prompts: FakePrompts, monkeypatch: pytest.MonkeyPatch
) -> None:
    store.is_temporary = False
    store.persist_delay = 0.2
    session = await start_session()
    await session.notify_changed()
    other_saves: list[asyncio.Future[SaveResult]] = []

    async def confirm_while_saving_elsewhere(short_name: str) -> CloseChoice:
        other_saves.append(asyncio.ensure_future(session.save()))
        await asyncio.sleep(0)
        return CloseChoice.SAVE

    monkeypatch.setattr(prompts, "confirm_close", confirm_while_saving_elsewhere)

    assert await session.confirm_close() == CloseDecision.ABORT
    assert prompts.errors == [("Save Error", "The notebook is already being saved.", SAVE_IN_PROGRESS)]
    assert (await other_saves[0]).saved
    assert store.count("persist") == 1
