"""initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-16
"""
from alembic import op
import sqlalchemy as sa

revision = "001"
down_revision = None
branch_labels = None
depends_on = None

_ACTIONS = (
    "post_attempted", "post_succeeded", "post_failed",
    "attachment_attempted", "attachment_succeeded", "attachment_failed",
    "status_changed",
)


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    existing_tables = set(inspector.get_table_names())

    if "escalations" in existing_tables:
        return

    op.create_table(
        "templates",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("checklist_items", sa.JSON, nullable=True),
        sa.Column("l2_team", sa.String(200), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True)),
    )

    op.create_table(
        "escalations",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("ticket_id", sa.String(50), nullable=False),
        sa.Column("template_id", sa.Integer, sa.ForeignKey("templates.id"), nullable=True),
        sa.Column("problem_summary", sa.Text, nullable=True),
        sa.Column("checklist", sa.JSON, nullable=True),
        sa.Column("current_status", sa.Text, nullable=True),
        sa.Column("next_steps", sa.Text, nullable=True),
        sa.Column("llm_summary", sa.Text, nullable=True),
        sa.Column("llm_confidence", sa.String(20), nullable=True),
        sa.Column("markdown_output", sa.Text, nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="draft"),
        sa.Column("posted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True)),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
        sa.CheckConstraint(
            "status IN ('draft', 'posted', 'post_failed')",
            name="ck_escalations_status",
        ),
        sa.CheckConstraint(
            "(status = 'posted' AND posted_at IS NOT NULL) "
            "OR (status != 'posted' AND posted_at IS NULL)",
            name="ck_escalations_posted_at",
        ),
    )
    op.create_index("ix_escalations_ticket_id", "escalations", ["ticket_id"])
    op.create_index("ix_escalations_created_at", "escalations", ["created_at"])

    op.create_table(
        "audit_log",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "escalation_id",
            sa.Integer,
            sa.ForeignKey("escalations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("action", sa.String(30), nullable=False),
        sa.Column("details", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True)),
        sa.CheckConstraint(
            "action IN (" + ", ".join(f"'{a}'" for a in _ACTIONS) + ")",
            name="ck_audit_log_action",
        ),
    )
    op.create_index("ix_audit_log_escalation_id", "audit_log", ["escalation_id"])

    op.create_table(
        "api_config",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("jira_base_url", sa.String(500), nullable=True),
        sa.Column("jira_email", sa.String(200), nullable=True),
        sa.Column("ollama_endpoint", sa.String(500), nullable=True),
        sa.Column("ollama_model", sa.String(100), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
        sa.CheckConstraint("id = 1", name="ck_api_config_singleton"),
    )


def downgrade() -> None:
    op.drop_table("api_config")
    op.drop_index("ix_audit_log_escalation_id", table_name="audit_log")
    op.drop_table("audit_log")
    op.drop_index("ix_escalations_created_at", table_name="escalations")
    op.drop_index("ix_escalations_ticket_id", table_name="escalations")
    op.drop_table("escalations")
    op.drop_table("templates")
