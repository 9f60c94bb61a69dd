"""Audit recorder — append-only log of every publish action."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.database import async_session
from src.entities.audit_log import AuditAction, AuditLog

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditEntry:
    id: int
    escalation_id: int
    action: AuditAction
    details: str | None
    created_at: datetime


@dataclass(frozen=True)
class CompletedSteps:
    """Sub-steps the remote system has already confirmed, per the audit log."""

    comment_posted: bool = False
    comment_id: str | None = None
    attached_files: frozenset[str] = frozenset()


class AuditRecorder:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None):
        self._session_factory = session_factory or async_session

    async def append(
        self,
        escalation_id: int,
        action: AuditAction | str,
        details: str | None = None,
    ) -> AuditEntry:
        """Insert one row in its own transaction so it survives a later crash."""
        action = AuditAction(action)
        entry = AuditLog(escalation_id=escalation_id, action=action.value, details=details)
        async with self._session_factory() as db:
            db.add(entry)
            await db.commit()
        logger.debug("audit[%d] %s %s", escalation_id, action.value, details or "")
        return AuditEntry(
            id=entry.id,
            escalation_id=escalation_id,
            action=action,
            details=details,
            created_at=entry.created_at,
        )

    async def history(self, escalation_id: int) -> list[AuditEntry]:
        """All entries for an escalation in insertion order."""
        async with self._session_factory() as db:
            result = await db.execute(
                select(AuditLog)
                .where(AuditLog.escalation_id == escalation_id)
                .order_by(AuditLog.id)
            )
            rows = result.scalars().all()
        return [
            AuditEntry(
                id=row.id,
                escalation_id=row.escalation_id,
                action=AuditAction(row.action),
                details=row.details,
                created_at=row.created_at,
            )
            for row in rows
        ]

    async def completed_steps(self, escalation_id: int) -> CompletedSteps:
        comment_posted = False
        comment_id = None
        attached: set[str] = set()
        for entry in await self.history(escalation_id):
            if entry.action is AuditAction.POST_SUCCEEDED:
                comment_posted = True
                comment_id = entry.details or comment_id
            elif entry.action is AuditAction.ATTACHMENT_SUCCEEDED and entry.details:
                attached.add(entry.details)
        return CompletedSteps(
            comment_posted=comment_posted,
            comment_id=comment_id,
            attached_files=frozenset(attached),
        )
