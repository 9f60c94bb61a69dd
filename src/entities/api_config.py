"""ApiConfig model — non-secret connection settings (singleton row).

The Jira API token is never stored here; it lives in the credential store
keyed by ``jira_email``.
"""

from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, String, DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column

from src.database import Base


class ApiConfig(Base):
    __tablename__ = "api_config"
    __table_args__ = (CheckConstraint("id = 1", name="ck_api_config_singleton"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=1)
    jira_base_url: Mapped[str] = mapped_column(String(500), default="")
    jira_email: Mapped[str] = mapped_column(String(200), default="")
    ollama_endpoint: Mapped[str] = mapped_column(String(500), default="http://localhost:11434")
    ollama_model: Mapped[str] = mapped_column(String(100), default="llama3")
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
