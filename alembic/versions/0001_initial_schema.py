"""initial housing schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def _resident_columns():
    return [
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("shift", sa.String(length=50), nullable=True),
        sa.Column("unit_id", sa.Integer(), sa.ForeignKey("units.id"), nullable=True),
        sa.Column("check_in_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("check_out_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        sa.Column("ocr_confidence", sa.Integer(), nullable=True),
        sa.Column("image_url", sa.Text(), nullable=True),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "sectors",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("color", sa.String(length=20), nullable=False, server_default="#3b82f6"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_index("ix_sectors_id", "sectors", ["id"], unique=False)
    op.create_index("ix_sectors_code", "sectors", ["code"], unique=True)

    op.create_table(
        "units",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("sector_id", sa.Integer(), sa.ForeignKey("sectors.id"), nullable=True),
        sa.Column("floor", sa.String(length=20), nullable=True),
        sa.Column("rooms", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("beds", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="vacant"),
        sa.Column("current_occupants", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("owner_name", sa.String(length=255), nullable=True),
        sa.Column("building_name", sa.String(length=255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("current_occupants >= 0 AND current_occupants <= beds", name="ck_units_occupancy"),
    )
    op.create_index("ix_units_id", "units", ["id"], unique=False)
    op.create_index("ix_units_code", "units", ["code"], unique=True)
    op.create_index("ix_units_type", "units", ["type"], unique=False)
    op.create_index("ix_units_sector_id", "units", ["sector_id"], unique=False)
    op.create_index("ix_units_status", "units", ["status"], unique=False)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("open_id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=True),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="user"),
        sa.Column("sector_id", sa.Integer(), sa.ForeignKey("sectors.id"), nullable=True),
        *_timestamps(),
        sa.Column("last_signed_in", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_id", "users", ["id"], unique=False)
    op.create_index("ix_users_open_id", "users", ["open_id"], unique=True)
    op.create_index("ix_users_sector_id", "users", ["sector_id"], unique=False)

    op.create_table(
        "egyptian_residents",
        *_resident_columns(),
        sa.Column("national_id", sa.String(length=20), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "russian_residents",
        *_resident_columns(),
        sa.Column("passport_number", sa.String(length=50), nullable=False),
        sa.Column("nationality", sa.String(length=100), nullable=False, server_default="Russian"),
        sa.Column("gender", sa.String(length=10), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    for table, identity in (("egyptian_residents", "national_id"), ("russian_residents", "passport_number")):
        op.create_index(f"ix_{table}_id", table, ["id"], unique=False)
        op.create_index(f"ix_{table}_name", table, ["name"], unique=False)
        op.create_index(f"ix_{table}_unit_id", table, ["unit_id"], unique=False)
        op.create_index(f"ix_{table}_status", table, ["status"], unique=False)
        op.create_index(f"ix_{table}_{identity}", table, [identity], unique=False)

    op.create_table(
        "occupancy_records",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("resident_type", sa.String(length=20), nullable=False),
        sa.Column("resident_id", sa.Integer(), nullable=False),
        sa.Column("resident_name", sa.String(length=200), nullable=False),
        sa.Column("unit_id", sa.Integer(), nullable=False),
        sa.Column("unit_code", sa.String(length=50), nullable=False),
        sa.Column("action", sa.String(length=20), nullable=False),
        sa.Column("from_unit_id", sa.Integer(), nullable=True),
        sa.Column("from_unit_code", sa.String(length=50), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("action_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_occupancy_records_id", "occupancy_records", ["id"], unique=False)
    op.create_index("ix_occupancy_records_resident_type", "occupancy_records", ["resident_type"], unique=False)
    op.create_index("ix_occupancy_records_resident_id", "occupancy_records", ["resident_id"], unique=False)
    op.create_index("ix_occupancy_records_unit_id", "occupancy_records", ["unit_id"], unique=False)
    op.create_index("ix_occupancy_records_action", "occupancy_records", ["action"], unique=False)
    op.create_index("ix_occupancy_records_action_date", "occupancy_records", ["action_date"], unique=False)

    op.create_table(
        "import_logs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("file_name", sa.String(length=255), nullable=False),
        sa.Column("total_rows", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("success_rows", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("failed_rows", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("errors", sa.JSON(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("imported_by", sa.String(length=200), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_import_logs_id", "import_logs", ["id"], unique=False)
    op.create_index("ix_import_logs_status", "import_logs", ["status"], unique=False)

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", sa.String(length=20), nullable=False, server_default="info"),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("sector_id", sa.Integer(), sa.ForeignKey("sectors.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notifications_id", "notifications", ["id"], unique=False)
    op.create_index("ix_notifications_type", "notifications", ["type"], unique=False)
    op.create_index("ix_notifications_is_read", "notifications", ["is_read"], unique=False)
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"], unique=False)
    op.create_index("ix_notifications_sector_id", "notifications", ["sector_id"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("notifications")
    op.drop_table("import_logs")
    op.drop_table("occupancy_records")
    op.drop_table("russian_residents")
    op.drop_table("egyptian_residents")
    op.drop_table("users")
    op.drop_table("units")
    op.drop_table("sectors")
