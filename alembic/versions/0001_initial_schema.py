"""initial schema: users, devices, daily works, objections

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("user_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(191), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.Enum("ADMIN", "EMPLOYEE", name="userrole"), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("single_device_login_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("device_reset_at", sa.DateTime()),
        sa.Column("device_reset_reason", sa.String(255)),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
        sa.UniqueConstraint("email"),
    )

    # one enforced active device per user: active_user_id is only set on that row
    op.create_table(
        "user_devices",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False),
        sa.Column("device_id", sa.String(64), nullable=False),
        sa.Column("compatible_device_id", sa.String(64)),
        sa.Column("device_guid", sa.String(128)),
        sa.Column("device_name", sa.String(150)),
        sa.Column("browser_name", sa.String(50)),
        sa.Column("browser_version", sa.String(50)),
        sa.Column("platform", sa.String(50)),
        sa.Column("device_type", sa.String(20)),
        sa.Column("user_agent", sa.Text()),
        sa.Column("accept_language", sa.String(100)),
        sa.Column("ip_address", sa.String(45)),
        sa.Column("session_id", sa.String(128)),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("active_user_id", sa.Integer(), nullable=True),
        sa.Column("last_seen_at", sa.DateTime()),
        sa.Column("deactivated_at", sa.DateTime()),
        sa.Column("deactivation_reason", sa.String(255)),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "device_id", name="uq_user_devices_user_device"),
        sa.UniqueConstraint("active_user_id", name="uq_user_devices_active_user"),
    )
    op.create_index("ix_user_devices_compatible_device_id", "user_devices", ["compatible_device_id"])
    op.create_index("ix_user_devices_session_id", "user_devices", ["session_id"])

    op.create_table(
        "daily_works",
        sa.Column("daily_work_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("number", sa.String(100), nullable=False),
        sa.Column("date", sa.Date()),
        sa.Column("type", sa.String(50)),
        sa.Column("description", sa.Text()),
        sa.Column("location", sa.String(255)),
        sa.Column("side", sa.String(20)),
        sa.Column("status", sa.String(30), nullable=False),
        sa.Column("incharge_id", sa.Integer(), sa.ForeignKey("users.user_id", ondelete="SET NULL")),
        sa.Column("created_at", sa.DateTime()),
        sa.UniqueConstraint("number"),
    )
    op.create_index("ix_daily_works_location", "daily_works", ["location"])

    op.create_table(
        "rfi_objections",
        sa.Column("objection_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("category", sa.String(30), nullable=False),
        sa.Column("type", sa.String(50)),
        sa.Column("chainage_from", sa.String(5000)),
        sa.Column("chainage_to", sa.String(50)),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("resolution_notes", sa.Text()),
        sa.Column("resolved_by", sa.Integer(), sa.ForeignKey("users.user_id", ondelete="SET NULL")),
        sa.Column("resolved_at", sa.DateTime()),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.user_id", ondelete="SET NULL")),
        sa.Column("updated_by", sa.Integer(), sa.ForeignKey("users.user_id", ondelete="SET NULL")),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
    )
    op.create_index("ix_rfi_objections_status", "rfi_objections", ["status"])

    op.create_table(
        "objection_chainages",
        sa.Column("chainage_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "objection_id",
            sa.Integer(),
            sa.ForeignKey("rfi_objections.objection_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("chainage", sa.String(50), nullable=False),
        sa.Column("chainage_meters", sa.Integer(), nullable=False),
        sa.Column("side", sa.String(10)),
        sa.Column("entry_type", sa.String(20), nullable=False),
        sa.Column("created_at", sa.DateTime()),
    )
    op.create_index("ix_objection_chainages_objection_id", "objection_chainages", ["objection_id"])
    op.create_index("ix_objection_chainages_chainage_meters", "objection_chainages", ["chainage_meters"])

    op.create_table(
        "objection_daily_works",
        sa.Column(
            "objection_id",
            sa.Integer(),
            sa.ForeignKey("rfi_objections.objection_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "daily_work_id",
            sa.Integer(),
            sa.ForeignKey("daily_works.daily_work_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("attached_by", sa.Integer(), sa.ForeignKey("users.user_id", ondelete="SET NULL")),
        sa.Column("attached_at", sa.DateTime()),
        sa.Column("attachment_notes", sa.String(1000)),
        sa.PrimaryKeyConstraint("objection_id", "daily_work_id", name="pk_objection_daily_works"),
    )

    op.create_table(
        "rfi_objection_status_logs",
        sa.Column("log_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "objection_id",
            sa.Integer(),
            sa.ForeignKey("rfi_objections.objection_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("from_status", sa.String(20)),
        sa.Column("to_status", sa.String(20), nullable=False),
        sa.Column("notes", sa.Text()),
        sa.Column("changed_by", sa.Integer(), sa.ForeignKey("users.user_id", ondelete="SET NULL")),
        sa.Column("changed_at", sa.DateTime()),
    )
    op.create_index("ix_rfi_objection_status_logs_objection_id", "rfi_objection_status_logs", ["objection_id"])


def downgrade() -> None:
    op.drop_index("ix_rfi_objection_status_logs_objection_id", table_name="rfi_objection_status_logs")
    op.drop_table("rfi_objection_status_logs")
    op.drop_table("objection_daily_works")
    op.drop_index("ix_objection_chainages_chainage_meters", table_name="objection_chainages")
    op.drop_index("ix_objection_chainages_objection_id", table_name="objection_chainages")
    op.drop_table("objection_chainages")
    op.drop_index("ix_rfi_objections_status", table_name="rfi_objections")
    op.drop_table("rfi_objections")
    op.drop_index("ix_daily_works_location", table_name="daily_works")
    op.drop_table("daily_works")
    op.drop_index("ix_user_devices_session_id", table_name="user_devices")
    op.drop_index("ix_user_devices_compatible_device_id", table_name="user_devices")
    op.drop_table("user_devices")
    op.drop_table("users")
