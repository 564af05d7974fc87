"""Create planning tables

Revision ID: 8b4e6d0f2c13
Revises: 3f1c2a9d7b01
Create Date: 2025-07-01 10:05:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import mysql

# revision identifiers, used by Alembic.
revision: str = "8b4e6d0f2c13"
down_revision: Union[str, None] = "3f1c2a9d7b01"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "semesters",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", mysql.VARCHAR(100), nullable=False),
        sa.Column("start_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date, nullable=False),
        sa.Column(
            "submitted_at",
            sa.DateTime,
            nullable=True,
            comment="Planning submission time",
        ),
        sa.Column(
            "created_at",
            mysql.TIMESTAMP,
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
    )

    op.create_table(
        "schedule_entries",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "semester_id",
            sa.Integer,
            sa.ForeignKey("semesters.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "staff_id",
            sa.Integer,
            sa.ForeignKey("staff_members.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("day_of_week", mysql.SMALLINT, nullable=False),
        sa.Column("start_time", sa.DateTime, nullable=False),
        sa.Column("end_time", sa.DateTime, nullable=False),
        sa.Column("activity", mysql.VARCHAR(255), nullable=False),
    )
    op.create_index(
        "ix_schedule_entries_semester_staff",
        "schedule_entries",
        ["semester_id", "staff_id"],
    )

    op.create_table(
        "entry_children",
        sa.Column(
            "entry_id",
            sa.Integer,
            sa.ForeignKey("schedule_entries.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "child_id",
            sa.Integer,
            sa.ForeignKey("children.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "original_entry_id",
            sa.Integer,
            sa.ForeignKey("schedule_entries.id", ondelete="SET NULL"),
            nullable=True,
        ),
    )
    op.create_index(
        "ix_entry_children_original_entry_id",
        "entry_children",
        ["original_entry_id"],
    )

    op.create_table(
        "planning_uploads",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "semester_id",
            sa.Integer,
            sa.ForeignKey("semesters.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("file_name", mysql.VARCHAR(255), nullable=True),
        sa.Column("file_path", mysql.TEXT, nullable=False),
        sa.Column("file_size", mysql.BIGINT, nullable=True),
        sa.Column("uploaded_by_user_id", mysql.BIGINT, nullable=True),
        sa.Column(
            "uploaded_at",
            mysql.TIMESTAMP,
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
    )


def downgrade() -> None:
    op.drop_table("planning_uploads")
    op.drop_index("ix_entry_children_original_entry_id", table_name="entry_children")
    op.drop_table("entry_children")
    op.drop_index("ix_schedule_entries_semester_staff", table_name="schedule_entries")
    op.drop_table("schedule_entries")
    op.drop_table("semesters")
