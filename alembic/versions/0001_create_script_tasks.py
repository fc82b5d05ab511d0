"""create script_tasks

Revision ID: 0001
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

_status = sa.Enum("pending", "processing", "completed", "failed", name="task_status")


def upgrade() -> None:
    op.create_table(
        "script_tasks",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("reference_input", sa.Text(), nullable=False),
        sa.Column("outcome_goal", sa.Text(), nullable=False),
        sa.Column("status", _status, nullable=False),
        sa.Column("result_output", sa.Text(), nullable=True),
        sa.Column("result_metadata", sa.JSON(none_as_null=True), nullable=True),
        sa.Column("failure_detail", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_script_tasks_status", "script_tasks", ["status"])
    op.create_index("ix_script_tasks_created_at", "script_tasks", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_script_tasks_created_at", table_name="script_tasks")
    op.drop_index("ix_script_tasks_status", table_name="script_tasks")
    op.drop_table("script_tasks")
    _status.drop(op.get_bind(), checkfirst=True)
