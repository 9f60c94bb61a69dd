"""Template model — reusable checklists per escalation category."""

from datetime import datetime, timezone

from sqlalchemy import JSON, String, DateTime, Text, Integer
from sqlalchemy.orm import Mapped, mapped_column

from src.database import Base


class Template(Base):
    __tablename__ = "templates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    checklist_items: Mapped[list] = mapped_column(JSON, default=list)
    l2_team: Mapped[str] = mapped_column(String(200), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
