"""AuditLog model — append-only record of every publish action on an escalation."""

import enum
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, String, DateTime, Text, Integer, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.database import Base


class AuditAction(str, enum.Enum):
    POST_ATTEMPTED = "post_attempted"
    POST_SUCCEEDED = "post_succeeded"
    POST_FAILED = "post_failed"
    ATTACHMENT_ATTEMPTED = "attachment_attempted"
    ATTACHMENT_SUCCEEDED = "attachment_succeeded"
    ATTACHMENT_FAILED = "attachment_failed"
    STATUS_CHANGED = "status_changed"


_ACTION_VALUES = ", ".join(f"'{action.value}'" for action in AuditAction)


class AuditLog(Base):
    __tablename__ = "audit_log"
    __table_args__ = (
        CheckConstraint(f"action IN ({_ACTION_VALUES})", name="ck_audit_log_action"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    escalation_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("escalations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    action: Mapped[str] = mapped_column(String(30), nullable=False)
    details: Mapped[str] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    escalation = relationship("Escalation", back_populates="audit_entries")
