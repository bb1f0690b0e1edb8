"""Initial schema: bookings, chats, payment requests, notifications, blocks.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

BOOKING_STATUSES = "'pending', 'accepted', 'rejected', 'active', 'completed', 'cancelled'"
PAYMENT_STATUSES = "'pending', 'requested', 'paid', 'confirmed', 'disputed'"


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Bookings table
    op.create_table(
        "bookings",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("companion_id", sa.String(36), nullable=False),
        sa.Column("booking_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("duration_hours", sa.Integer(), nullable=False),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ends_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("activity", sa.String(50), nullable=False),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("user_notes", sa.String(1000), nullable=True),
        sa.Column("hourly_rate", sa.Numeric(10, 2), nullable=False),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("payment_status", sa.String(20), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("cancelled_by", sa.String(36), nullable=True),
        sa.Column("cancellation_reason", sa.String(500), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
        sa.CheckConstraint("duration_hours > 0", name="check_booking_duration_positive"),
        sa.CheckConstraint("hourly_rate > 0", name="check_booking_rate_positive"),
        sa.CheckConstraint("starts_at < ends_at", name="check_booking_window_ordered"),
        sa.CheckConstraint(f"status IN ({BOOKING_STATUSES})", name="check_booking_status"),
        sa.CheckConstraint(f"payment_status IN ({PAYMENT_STATUSES})", name="check_booking_payment_status"),
        # A booking only completes once its payment is confirmed
        sa.CheckConstraint(
            "status <> 'completed' OR payment_status = 'confirmed'",
            name="check_completed_requires_confirmed_payment",
        ),
    )
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"])
    op.create_index("ix_bookings_companion_id", "bookings", ["companion_id"])
    # The double-booking guard filters by companion and compares window bounds;
    # this composite index serves that lookup.
    op.create_index("ix_bookings_companion_starts_at", "bookings", ["companion_id", "starts_at"])

    # Chat windows, one per accepted booking
    op.create_table(
        "chats",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("booking_id", sa.String(36), sa.ForeignKey("bookings.id"), nullable=False),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("companion_id", sa.String(36), nullable=False),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ends_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("grace_period_ends_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.CheckConstraint("starts_at < ends_at", name="check_chat_starts_before_end"),
        sa.CheckConstraint("ends_at < grace_period_ends_at", name="check_chat_grace_after_end"),
    )
    op.create_index("ix_chats_booking_id", "chats", ["booking_id"], unique=True)
    op.create_index("ix_chats_user_id", "chats", ["user_id"])
    op.create_index("ix_chats_companion_id", "chats", ["companion_id"])

    # Payment requests
    op.create_table(
        "payment_requests",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("booking_id", sa.String(36), sa.ForeignKey("bookings.id"), nullable=False),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("companion_id", sa.String(36), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'requested'")),
        sa.Column("requested_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_payment_requests_booking_id", "payment_requests", ["booking_id"], unique=True)

    # Notifications
    op.create_table(
        "notifications",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.String(1000), nullable=False),
        sa.Column("data", sa.JSON(), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        *_timestamps(),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])

    # Blocks
    op.create_table(
        "blocks",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("blocker_id", sa.String(36), nullable=False),
        sa.Column("blocked_id", sa.String(36), nullable=False),
        sa.Column("reason", sa.String(500), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("blocker_id", "blocked_id", name="uq_block_pair"),
    )
    op.create_index("ix_blocks_blocker_id", "blocks", ["blocker_id"])
    op.create_index("ix_blocks_blocked_id", "blocks", ["blocked_id"])


def downgrade() -> None:
    op.drop_table("blocks")
    op.drop_table("notifications")
    op.drop_table("payment_requests")
    op.drop_table("chats")
    op.drop_table("bookings")
