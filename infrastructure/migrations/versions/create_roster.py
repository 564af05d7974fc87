"""Create users, roster and events tables

Revision ID: 3f1c2a9d7b01
Revises:
Create Date: 2025-07-01 10:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import mysql

# revision identifiers, used by Alembic.
revision: str = "3f1c2a9d7b01"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("user_id", mysql.BIGINT, primary_key=True, autoincrement=False),
        sa.Column("username", mysql.VARCHAR(64), nullable=True),
        sa.Column("fullname", mysql.VARCHAR(255), nullable=False),
        sa.Column("role", sa.Integer, nullable=False, server_default="0"),
    )

    op.create_table(
        "staff_members",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "user_id",
            mysql.BIGINT,
            sa.ForeignKey("users.user_id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("first_name", mysql.VARCHAR(100), nullable=False),
        sa.Column("last_name", mysql.VARCHAR(100), nullable=False),
    )

    op.create_table(
        "children",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("first_name", mysql.VARCHAR(100), nullable=False),
        sa.Column("last_name", mysql.VARCHAR(100), nullable=False),
        sa.Column(
            "parent_user_id",
            mysql.BIGINT,
            sa.ForeignKey("users.user_id", ondelete="SET NULL"),
            nullable=True,
        ),
    )

    op.create_table(
        "events",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("title", mysql.VARCHAR(255), nullable=False),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("start_time", sa.Time, nullable=False),
        sa.Column("end_time", sa.Time, nullable=False),
    )

    op.create_table(
        "event_registrations",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "event_id",
            sa.Integer,
            sa.ForeignKey("events.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "child_id",
            sa.Integer,
            sa.ForeignKey("children.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "payment_status",
            mysql.VARCHAR(16),
            nullable=False,
            server_default="PENDING",
        ),
    )


def downgrade() -> None:
    op.drop_table("event_registrations")
    op.drop_table("events")
    op.drop_table("children")
    op.drop_table("staff_members")
    op.drop_table("users")
