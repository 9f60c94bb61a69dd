"""Escalation store — the narrow read/update surface the pipeline uses.

Status is only ever written here, and only through ``update_status`` with an
optimistic ``updated_at`` check.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from escalate.errors import ConcurrentModification, EscalationNotFound
from escalate.status import Posted, StatusState, status_from_columns, status_to_columns
from src.database import async_session
from src.entities.escalation import Escalation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChecklistEntry:
    text: str
    checked: bool


@dataclass(frozen=True)
class EscalationRecord:
    """Immutable snapshot of an escalation as loaded by the pipeline."""

    id: int
    ticket_id: str
    template_id: int | None
    template_name: str | None
    l2_team: str | None
    problem_summary: str
    checklist: tuple[ChecklistEntry, ...]
    current_status: str
    next_steps: str
    llm_summary: str | None
    llm_confidence: str | None
    markdown_output: str | None
    status: StatusState
    created_at: datetime
    updated_at: datetime

    @property
    def posted_at(self) -> datetime | None:
        return self.status.posted_at if isinstance(self.status, Posted) else None


def _to_record(row: Escalation) -> EscalationRecord:
    template = row.template
    return EscalationRecord(
        id=row.id,
        ticket_id=row.ticket_id,
        template_id=row.template_id,
        template_name=template.name if template else None,
        l2_team=template.l2_team if template else None,
        problem_summary=row.problem_summary or "",
        checklist=tuple(
            ChecklistEntry(text=item.get("text", ""), checked=bool(item.get("checked", False)))
            for item in (row.checklist or [])
        ),
        current_status=row.current_status or "",
        next_steps=row.next_steps or "",
        llm_summary=row.llm_summary,
        llm_confidence=row.llm_confidence,
        markdown_output=row.markdown_output,
        status=status_from_columns(row.status, row.posted_at),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class EscalationStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None):
        self._session_factory = session_factory or async_session

    async def load(self, escalation_id: int) -> EscalationRecord:
        async with self._session_factory() as db:
            row = await db.get(Escalation, escalation_id)
            if row is None:
                raise EscalationNotFound(escalation_id)
            return _to_record(row)

    async def update_status(
        self,
        escalation_id: int,
        state: StatusState,
        expected_updated_at: datetime,
    ) -> datetime:
        """Write the new status if the row is unchanged since it was loaded.

        Returns the new ``updated_at``. Raises ConcurrentModification when the
        row was edited in between, EscalationNotFound when it is gone.
        """
        status, posted_at = status_to_columns(state)
        now = datetime.now(timezone.utc)
        async with self._session_factory() as db:
            result = await db.execute(
                update(Escalation)
                .where(
                    Escalation.id == escalation_id,
                    Escalation.updated_at == expected_updated_at,
                )
                .values(status=status, posted_at=posted_at, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                exists = await db.scalar(select(Escalation.id).where(Escalation.id == escalation_id))
                if exists is None:
                    raise EscalationNotFound(escalation_id)
                logger.warning("Escalation %d changed since load; status %s not written", escalation_id, status)
                raise ConcurrentModification(escalation_id)
            await db.commit()
        logger.info("Escalation %d status -> %s", escalation_id, status)
        return now

    async def update_markdown(self, escalation_id: int, markdown: str) -> None:
        """Cache the rendered comment body.

        A derived artifact, so ``updated_at`` is left alone and a concurrent
        status check is not disturbed.
        """
        async with self._session_factory() as db:
            result = await db.execute(
                update(Escalation)
                .where(Escalation.id == escalation_id)
                .values(markdown_output=markdown, updated_at=Escalation.updated_at)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise EscalationNotFound(escalation_id)
            await db.commit()

    async def delete(self, escalation_id: int) -> None:
        """Delete an escalation; its audit rows go with it (ON DELETE CASCADE)."""
        async with self._session_factory() as db:
            result = await db.execute(delete(Escalation).where(Escalation.id == escalation_id))
            if result.rowcount == 0:
                raise EscalationNotFound(escalation_id)
            await db.commit()
        logger.info("Escalation %d deleted", escalation_id)
