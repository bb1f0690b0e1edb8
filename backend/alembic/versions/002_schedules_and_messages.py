"""Companion schedule versions and chat messages.

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # One row per companion; accepts bump the version
    op.create_table(
        "companion_schedules",
        sa.Column("companion_id", sa.String(36), primary_key=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
    )

    # Backfill companions that already hold bookings
    op.execute(
        "INSERT INTO companion_schedules (companion_id, version) "
        "SELECT DISTINCT companion_id, 1 FROM bookings"
    )

    op.create_table(
        "messages",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("chat_id", sa.String(36), sa.ForeignKey("chats.id"), nullable=False),
        sa.Column("sender_id", sa.String(36), nullable=False),
        sa.Column("content", sa.String(2000), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.CheckConstraint("length(content) > 0", name="check_message_not_empty"),
    )
    op.create_index("ix_messages_chat_created_at", "messages", ["chat_id", "created_at"])


def downgrade() -> None:
    op.drop_index("ix_messages_chat_created_at", table_name="messages")
    op.drop_table("messages")
    op.drop_table("companion_schedules")
