from __future__ import annotations
"""server/shiftdrop/migrations/versions/0001_initial.py
~~~~~~~~~~~~~~~~~~~~~~~~
Schéma initial : pools, casuals, shifts, shift_claims, shift_notifications, outbox_messages.
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "pools",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False),
    )

    op.create_table(
        "casuals",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("pool_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("phone_number", sa.String(50), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["pool_id"], ["pools.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_casuals_pool_phone", "casuals", ["pool_id", "phone_number"], unique=True)

    op.create_table(
        "shifts",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("pool_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("description", sa.String(255), nullable=True),
        sa.Column("starts_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("ends_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("spots_needed", sa.Integer(), nullable=False),
        sa.Column("spots_remaining", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(16), server_default="OPEN", nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("version", sa.Integer(), server_default="1", nullable=False),
        sa.ForeignKeyConstraint(["pool_id"], ["pools.id"], ondelete="CASCADE"),
        sa.CheckConstraint("spots_needed >= 1", name="ck_shifts_spots_needed"),
        sa.CheckConstraint(
            "spots_remaining >= 0 AND spots_remaining <= spots_needed",
            name="ck_shifts_spots_remaining",
        ),
    )
    op.create_index("ix_shifts_pool_status_starts", "shifts", ["pool_id", "status", "starts_at"])

    op.create_table(
        "shift_claims",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("shift_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("casual_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("status", sa.String(24), server_default="ACTIVE", nullable=False),
        sa.Column("claimed_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("released_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["shift_id"], ["shifts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["casual_id"], ["casuals.id"], ondelete="NO ACTION"),
    )
    op.create_index(
        "ix_shift_claims_shift_casual_status", "shift_claims", ["shift_id", "casual_id", "status"]
    )
    op.create_index(
        "uq_shift_claims_one_active",
        "shift_claims",
        ["shift_id", "casual_id"],
        unique=True,
        postgresql_where=sa.text("status = 'ACTIVE'"),
    )

    op.create_table(
        "shift_notifications",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("shift_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("casual_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("claim_token", sa.String(32), nullable=False, unique=True),
        sa.Column("token_expires_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("token_status", sa.String(16), server_default="PENDING", nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("used_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("outbox_message_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.ForeignKeyConstraint(["shift_id"], ["shifts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["casual_id"], ["casuals.id"], ondelete="NO ACTION"),
    )
    op.create_index(
        "ix_shift_notifications_shift_status", "shift_notifications", ["shift_id", "token_status"]
    )

    op.create_table(
        "outbox_messages",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("message_type", sa.String(100), nullable=False),
        sa.Column("payload", sa.Text(), nullable=False),
        sa.Column("status", sa.String(16), server_default="PENDING", nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("NOW()"), nullable=False),
        sa.Column("processed_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("retry_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("next_retry_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("last_error", sa.String(1000), nullable=True),
        sa.CheckConstraint("retry_count >= 0", name="ck_outbox_messages_retry_count"),
    )
    # index partiel : le worker ne lit que les PENDING
    op.create_index(
        "ix_outbox_messages_pending_ready",
        "outbox_messages",
        ["status", "next_retry_at"],
        postgresql_where=sa.text("status = 'PENDING'"),
    )


def downgrade() -> None:
    op.drop_index("ix_outbox_messages_pending_ready", table_name="outbox_messages")
    op.drop_table("outbox_messages")
    op.drop_index("ix_shift_notifications_shift_status", table_name="shift_notifications")
    op.drop_table("shift_notifications")
    op.drop_index("uq_shift_claims_one_active", table_name="shift_claims")
    op.drop_index("ix_shift_claims_shift_casual_status", table_name="shift_claims")
    op.drop_table("shift_claims")
    op.drop_index("ix_shifts_pool_status_starts", table_name="shifts")
    op.drop_table("shifts")
    op.drop_index("ix_casuals_pool_phone", table_name="casuals")
    op.drop_table("casuals")
    op.drop_table("pools")
