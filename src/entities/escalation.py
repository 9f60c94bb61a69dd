"""Escalation model — a support handoff published as a ticket comment."""

import enum
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, JSON, String, DateTime, Text, Integer, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.database import Base


class EscalationStatus(str, enum.Enum):
    DRAFT = "draft"
    POSTED = "posted"
    POST_FAILED = "post_failed"


class Escalation(Base):
    __tablename__ = "escalations"
    __table_args__ = (
        CheckConstraint(
            "status IN ('draft', 'posted', 'post_failed')",
            name="ck_escalations_status",
        ),
        CheckConstraint(
            "(status = 'posted' AND posted_at IS NOT NULL) "
            "OR (status != 'posted' AND posted_at IS NULL)",
            name="ck_escalations_posted_at",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ticket_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    template_id: Mapped[int] = mapped_column(Integer, ForeignKey("templates.id"), nullable=True)
    problem_summary: Mapped[str] = mapped_column(Text, default="")
    checklist: Mapped[list] = mapped_column(JSON, default=list)  # [{"text": ..., "checked": ...}]
    current_status: Mapped[str] = mapped_column(Text, default="")
    next_steps: Mapped[str] = mapped_column(Text, default="")
    llm_summary: Mapped[str] = mapped_column(Text, nullable=True)
    llm_confidence: Mapped[str] = mapped_column(String(20), nullable=True)  # high, medium, low
    markdown_output: Mapped[str] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default=EscalationStatus.DRAFT.value)
    posted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    template = relationship("Template", lazy="selectin")
    audit_entries = relationship(
        "AuditLog",
        back_populates="escalation",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="AuditLog.id",
    )
