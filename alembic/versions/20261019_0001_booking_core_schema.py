"""Booking core schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 10:00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


role_enum = sa.Enum("student", "teacher", "admin", name="role_enum", native_enum=False)
day_kind_enum = sa.Enum("weekday", "date", name="day_kind_enum", native_enum=False)
booking_status_enum = sa.Enum("pending", "approved", "rejected", name="booking_status_enum", native_enum=False)

_SLOT_COLUMNS = ["teacher_id", "day", "start_time", "end_time"]


def _id_col() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False)


def _created_col() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)


def _updated_col() -> sa.Column:
    return sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False)


def upgrade() -> None:
    op.create_table(
        "roles",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("name", role_enum, nullable=False),
        sa.UniqueConstraint("name", name="uq_roles_name"),
    )

    op.create_table(
        "users",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("display_name", sa.String(length=128), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("role_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.ForeignKeyConstraint(["role_id"], ["roles.id"], name="fk_users_role_id_roles", ondelete="RESTRICT"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=False)

    op.create_table(
        "messages",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("sender_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("recipient_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(["sender_id"], ["users.id"], name="fk_messages_sender_id_users", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["recipient_id"],
            ["users.id"],
            name="fk_messages_recipient_id_users",
            ondelete="CASCADE",
        ),
    )
    op.create_index("ix_messages_sender_id_recipient_id", "messages", ["sender_id", "recipient_id"], unique=False)

    op.create_table(
        "availability_entries",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("teacher_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("day_kind", day_kind_enum, nullable=False),
        sa.Column("day", sa.String(length=16), nullable=False),
        sa.ForeignKeyConstraint(
            ["teacher_id"],
            ["users.id"],
            name="fk_availability_entries_teacher_id_users",
            ondelete="CASCADE",
        ),
    )
    op.create_index("ix_availability_entries_teacher_id", "availability_entries", ["teacher_id"], unique=False)

    op.create_table(
        "availability_time_ranges",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("entry_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.ForeignKeyConstraint(
            ["entry_id"],
            ["availability_entries.id"],
            name="fk_availability_time_ranges_entry_id_availability_entries",
            ondelete="CASCADE",
        ),
    )
    op.create_index("ix_availability_time_ranges_entry_id", "availability_time_ranges", ["entry_id"], unique=False)

    op.create_table(
        "bookings",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("student_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("teacher_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("day_kind", day_kind_enum, nullable=False),
        sa.Column("day", sa.String(length=16), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("status", booking_status_enum, nullable=False),
        sa.Column("decided_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["student_id"], ["users.id"], name="fk_bookings_student_id_users", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["teacher_id"], ["users.id"], name="fk_bookings_teacher_id_users", ondelete="CASCADE"),
    )
    op.create_index("ix_bookings_student_id", "bookings", ["student_id"], unique=False)
    op.create_index("ix_bookings_teacher_id", "bookings", ["teacher_id"], unique=False)
    op.create_index("ix_bookings_status", "bookings", ["status"], unique=False)
    op.create_index("ix_bookings_slot_key", "bookings", _SLOT_COLUMNS, unique=False)
    op.create_index(
        "uq_bookings_approved_slot",
        "bookings",
        _SLOT_COLUMNS,
        unique=True,
        postgresql_where=sa.text("status = 'approved'"),
    )
    op.create_index(
        "uq_bookings_active_student_slot",
        "bookings",
        ["student_id", *_SLOT_COLUMNS],
        unique=True,
        postgresql_where=sa.text("status IN ('pending', 'approved')"),
    )


def downgrade() -> None:
    op.drop_index("uq_bookings_active_student_slot", table_name="bookings")
    op.drop_index("uq_bookings_approved_slot", table_name="bookings")
    op.drop_index("ix_bookings_slot_key", table_name="bookings")
    op.drop_index("ix_bookings_status", table_name="bookings")
    op.drop_index("ix_bookings_teacher_id", table_name="bookings")
    op.drop_index("ix_bookings_student_id", table_name="bookings")
    op.drop_table("bookings")

    op.drop_index("ix_availability_time_ranges_entry_id", table_name="availability_time_ranges")
    op.drop_table("availability_time_ranges")

    op.drop_index("ix_availability_entries_teacher_id", table_name="availability_entries")
    op.drop_table("availability_entries")

    op.drop_index("ix_messages_sender_id_recipient_id", table_name="messages")
    op.drop_table("messages")

    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    op.drop_table("roles")
