"""Initial schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 10:00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


role_enum = sa.Enum("user", "moderator", "admin", name="role_enum", native_enum=False)
file_type_enum = sa.Enum("image", "video", name="file_type_enum", native_enum=False)
submission_status_enum = sa.Enum(
    "pending",
    "approved",
    "rejected",
    name="submission_status_enum",
    native_enum=False,
)
payout_status_enum = sa.Enum("pending", "completed", "cancelled", name="payout_status_enum", native_enum=False)


def _id_col() -> sa.Column:
    return sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False)


def _created_col() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)


def _updated_col() -> sa.Column:
    return sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False)


def upgrade() -> None:
    op.create_table(
        "users",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("external_id", sa.String(length=128), nullable=False),
        sa.Column("nickname", sa.String(length=255), nullable=False),
        sa.Column("balance", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("role", role_enum, nullable=False, server_default="user"),
        sa.Column("is_banned", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("last_submission_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_users_external_id", "users", ["external_id"], unique=True)
    op.create_index("ix_users_role", "users", ["role"], unique=False)
    op.create_index("ix_users_created_at", "users", ["created_at"], unique=False)

    op.create_table(
        "submissions",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("user_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("file_url", sa.String(length=512), nullable=False),
        sa.Column("file_name", sa.String(length=255), nullable=False),
        sa.Column("file_type", file_type_enum, nullable=False),
        sa.Column("file_size", sa.Integer(), nullable=False),
        sa.Column("blob_id", sa.String(length=64), nullable=False),
        sa.Column("category", sa.String(length=50), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=True),
        sa.Column("status", submission_status_enum, nullable=False, server_default="pending"),
        sa.Column("reject_reason", sa.String(length=200), nullable=True),
        sa.Column("reviewed_by", sa.Uuid(as_uuid=True), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_submissions_user_id_users", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["reviewed_by"],
            ["users.id"],
            name="fk_submissions_reviewed_by_users",
            ondelete="SET NULL",
        ),
        sa.UniqueConstraint("blob_id", name="uq_submissions_blob_id"),
    )
    op.create_index("ix_submissions_user_id", "submissions", ["user_id"], unique=False)
    op.create_index("ix_submissions_category", "submissions", ["category"], unique=False)
    op.create_index("ix_submissions_status", "submissions", ["status"], unique=False)
    op.create_index("ix_submissions_created_at", "submissions", ["created_at"], unique=False)
    op.create_index("ix_submissions_status_created_at", "submissions", ["status", "created_at"], unique=False)

    op.create_table(
        "payouts",
        _id_col(),
        _created_col(),
        sa.Column("user_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("reason", sa.String(length=200), nullable=False),
        sa.Column("status", payout_status_enum, nullable=False, server_default="completed"),
        sa.Column("admin_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("amount > 0", name="ck_payouts_amount_positive"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_payouts_user_id_users", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["admin_id"], ["users.id"], name="fk_payouts_admin_id_users", ondelete="RESTRICT"),
    )
    op.create_index("ix_payouts_user_id", "payouts", ["user_id"], unique=False)
    op.create_index("ix_payouts_admin_id", "payouts", ["admin_id"], unique=False)
    op.create_index("ix_payouts_created_at", "payouts", ["created_at"], unique=False)

    op.create_table(
        "admin_logs",
        _id_col(),
        _created_col(),
        sa.Column("admin_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("action", sa.String(length=64), nullable=False),
        sa.Column("details", sa.Text(), nullable=False),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.String(length=512), nullable=True),
        sa.ForeignKeyConstraint(["admin_id"], ["users.id"], name="fk_admin_logs_admin_id_users", ondelete="CASCADE"),
    )
    op.create_index("ix_admin_logs_admin_id", "admin_logs", ["admin_id"], unique=False)
    op.create_index("ix_admin_logs_action", "admin_logs", ["action"], unique=False)
    op.create_index("ix_admin_logs_created_at", "admin_logs", ["created_at"], unique=False)

    op.create_table(
        "settings",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("key", sa.String(length=100), nullable=False),
        sa.Column("value", sa.Text(), nullable=False),
        sa.UniqueConstraint("key", name="uq_settings_key"),
    )
    op.create_index("ix_settings_created_at", "settings", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_table("settings")
    op.drop_table("admin_logs")
    op.drop_table("payouts")
    op.drop_table("submissions")
    op.drop_table("users")
