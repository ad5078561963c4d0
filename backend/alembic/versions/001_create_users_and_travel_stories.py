"""Create users and travel_stories tables

Revision ID: 001
Revises: None
Create Date: 2024-06-01 00:00:00.000000+00:00

What:  Initial schema: accounts and their travel stories.
How:   Portable column types (Uuid, DateTime with time zone, JSON) so the same
       migration runs on PostgreSQL and SQLite.

Rollback: downgrade() drops both tables (destructive: all data lost).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column(
            "email",
            sa.String(320),
            nullable=False,
            comment="Login key, normalised to lower case",
        ),
        sa.Column(
            "password",
            sa.String(255),
            nullable=False,
            comment="bcrypt hash of the user's password",
        ),
        sa.Column("created_on", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "travel_stories",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("story", sa.Text(), nullable=False),
        sa.Column("visited_location", sa.JSON(), nullable=False),
        sa.Column("image_url", sa.String(2048), nullable=False),
        sa.Column("visited_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "is_favourite",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
        sa.Column("created_on", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "user_id",
            sa.Uuid(),
            nullable=False,
            comment="Owning user; lookup only, no cascade",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_travel_stories_user_id", "travel_stories", ["user_id"])
    op.create_index("idx_travel_stories_visited_date", "travel_stories", ["visited_date"])


def downgrade() -> None:
    op.drop_index("idx_travel_stories_visited_date", table_name="travel_stories")
    op.drop_index("idx_travel_stories_user_id", table_name="travel_stories")
    op.drop_table("travel_stories")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
