"""Tests for the audit recorder."""

import pytest
from sqlalchemy.exc import IntegrityError

from src.entities.audit_log import AuditAction
from tests.helpers import create_escalation


class TestAppend:
    @pytest.mark.asyncio
    async def test_history_in_insertion_order(self, session_factory, audit):
        eid = await create_escalation(session_factory)
        await audit.append(eid, AuditAction.POST_ATTEMPTED, "SUP-101")
        await audit.append(eid, "post_succeeded", "10042")
        await audit.append(eid, AuditAction.STATUS_CHANGED, "draft -> posted")

        entries = await audit.history(eid)

        assert [e.action for e in entries] == [
            AuditAction.POST_ATTEMPTED,
            AuditAction.POST_SUCCEEDED,
            AuditAction.STATUS_CHANGED,
        ]
        assert entries[0].id < entries[1].id < entries[2].id
        assert entries[1].details == "10042"

    @pytest.mark.asyncio
    async def test_unknown_action_rejected(self, session_factory, audit):
        eid = await create_escalation(session_factory)
        with pytest.raises(ValueError):
            await audit.append(eid, "comment_edited")
        assert await audit.history(eid) == []

    @pytest.mark.asyncio
    async def test_requires_existing_escalation(self, audit):
        with pytest.raises(IntegrityError):
            await audit.append(999, AuditAction.POST_ATTEMPTED)

    @pytest.mark.asyncio
    async def test_history_is_per_escalation(self, session_factory, audit):
        first = await create_escalation(session_factory, ticket_id="SUP-1")
        second = await create_escalation(session_factory, ticket_id="SUP-2")
        await audit.append(first, AuditAction.POST_ATTEMPTED, "SUP-1")
        await audit.append(second, AuditAction.POST_ATTEMPTED, "SUP-2")

        assert [e.details for e in await audit.history(first)] == ["SUP-1"]
        assert await audit.history(404) == []


class TestCompletedSteps:
    @pytest.mark.asyncio
    async def test_empty_log(self, session_factory, audit):
        eid = await create_escalation(session_factory)
        steps = await audit.completed_steps(eid)
        assert not steps.comment_posted
        assert steps.attached_files == frozenset()

    @pytest.mark.asyncio
    async def test_only_confirmed_steps_count(self, session_factory, audit):
        eid = await create_escalation(session_factory)
        await audit.append(eid, AuditAction.POST_ATTEMPTED, "SUP-101")
        await audit.append(eid, AuditAction.POST_SUCCEEDED, "10042")
        await audit.append(eid, AuditAction.ATTACHMENT_ATTEMPTED, "a.png")
        await audit.append(eid, AuditAction.ATTACHMENT_SUCCEEDED, "a.png")
        await audit.append(eid, AuditAction.ATTACHMENT_ATTEMPTED, "b.log")
        await audit.append(eid, AuditAction.ATTACHMENT_FAILED, "b.log: network: reset")

        steps = await audit.completed_steps(eid)

        assert steps.comment_posted
        assert steps.comment_id == "10042"
        assert steps.attached_files == frozenset({"a.png"})

    @pytest.mark.asyncio
    async def test_failed_comment_not_counted(self, session_factory, audit):
        eid = await create_escalation(session_factory)
        await audit.append(eid, AuditAction.POST_ATTEMPTED, "SUP-101")
        await audit.append(eid, AuditAction.POST_FAILED, "auth: Invalid credentials")

        assert not (await audit.completed_steps(eid)).comment_posted
