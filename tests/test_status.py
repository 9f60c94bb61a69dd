"""Tests for status variants and the run guard."""

import asyncio
from datetime import datetime, timezone

import pytest

from escalate.errors import AlreadyInProgress
from escalate.guard import RunGuard
from escalate.status import Draft, PostFailed, Posted, status_from_columns, status_to_columns
from src.entities.escalation import EscalationStatus

NOW = datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)


class TestStatusColumns:
    def test_from_columns(self):
        assert status_from_columns("draft", None) == Draft()
        assert status_from_columns("post_failed", None) == PostFailed()
        assert status_from_columns("posted", NOW) == Posted(posted_at=NOW)

    def test_posted_requires_timestamp(self):
        with pytest.raises(ValueError):
            status_from_columns("posted", None)

    def test_other_states_reject_timestamp(self):
        with pytest.raises(ValueError):
            status_from_columns("draft", NOW)

    def test_unknown_label(self):
        with pytest.raises(ValueError):
            status_from_columns("archived", None)

    def test_to_columns(self):
        assert status_to_columns(Posted(posted_at=NOW)) == ("posted", NOW)
        assert status_to_columns(PostFailed()) == ("post_failed", None)
        assert status_to_columns(Draft()) == ("draft", None)

    def test_variant_names(self):
        assert Draft.name is EscalationStatus.DRAFT
        assert Posted(posted_at=NOW).name is EscalationStatus.POSTED
        assert PostFailed().name is EscalationStatus.POST_FAILED


class TestRunGuard:
    @pytest.mark.asyncio
    async def test_second_hold_rejected(self):
        guard = RunGuard()
        async with guard.hold(7):
            assert guard.is_running(7)
            with pytest.raises(AlreadyInProgress):
                async with guard.hold(7):
                    pass
            assert guard.is_running(7)
        assert not guard.is_running(7)

    @pytest.mark.asyncio
    async def test_different_ids_independent(self):
        guard = RunGuard()
        async with guard.hold(1):
            async with guard.hold(2):
                assert guard.is_running(1) and guard.is_running(2)

    @pytest.mark.asyncio
    async def test_released_on_error(self):
        guard = RunGuard()
        with pytest.raises(RuntimeError):
            async with guard.hold(3):
                raise RuntimeError("boom")
        assert not guard.is_running(3)

    @pytest.mark.asyncio
    async def test_concurrent_tasks_only_one_wins(self):
        guard = RunGuard()
        release = asyncio.Event()

        async def run():
            async with guard.hold(9):
                await release.wait()
                return "ran"

        first = asyncio.create_task(run())
        await asyncio.sleep(0)
        second = asyncio.create_task(run())
        await asyncio.sleep(0)
        release.set()

        assert await first == "ran"
        with pytest.raises(AlreadyInProgress):
            await second
