"""Initial schema — users, friendships, pins.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("username", sa.String(32), nullable=False, unique=True),
        sa.Column("email", sa.String(254), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(128), nullable=False),
        sa.Column("display_name", sa.String(64), nullable=True),
        sa.Column("bio", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "friendships",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("user_id", sa.Uuid, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("friend_id", sa.Uuid, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", sa.String(10), nullable=False, server_default="pending"),
        sa.Column("pair_low", sa.Uuid, nullable=False),
        sa.Column("pair_high", sa.Uuid, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "friend_id", name="uq_friendships_direction"),
        sa.CheckConstraint("user_id <> friend_id", name="ck_friendships_not_self"),
    )
    op.create_index(
        "uq_friendships_pending_pair", "friendships", ["pair_low", "pair_high"],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
        sqlite_where=sa.text("status = 'pending'"),
    )
    op.create_index(
        "ix_friendships_friend_status", "friendships", ["friend_id", "status"],
    )

    op.create_table(
        "pins",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("user_id", sa.Uuid, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("emotion", sa.String(16), nullable=False),
        sa.Column("message", sa.Text, nullable=True),
        sa.Column("longitude", sa.Float, nullable=False),
        sa.Column("latitude", sa.Float, nullable=False),
        sa.Column("visibility", sa.String(10), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "visibility IN ('public', 'friends', 'private')",
            name="ck_pins_visibility",
        ),
    )
    op.create_index("ix_pins_lat_lon", "pins", ["latitude", "longitude"])
    op.create_index("ix_pins_user_created", "pins", ["user_id", "created_at"])


def downgrade() -> None:
    op.drop_index("ix_pins_user_created", table_name="pins")
    op.drop_index("ix_pins_lat_lon", table_name="pins")
    op.drop_table("pins")
    op.drop_index("ix_friendships_friend_status", table_name="friendships")
    op.drop_index("uq_friendships_pending_pair", table_name="friendships")
    op.drop_table("friendships")
    op.drop_table("users")
