"""create users, messages, party_rooms and party_members tables

Revision ID: 5c1f0e2a9b3d
Revises:
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "5c1f0e2a9b3d"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create session, chat and watch party tables."""
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("avatar", sa.String(500), nullable=True),
        sa.Column(
            "last_seen",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=True,
        ),
        sa.Column("token", sa.String(128), nullable=True),
        sa.Column("token_expiry", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_username"), "users", ["username"], unique=True)
    op.create_index(op.f("ix_users_token"), "users", ["token"], unique=True)

    op.create_table(
        "messages",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("avatar", sa.String(500), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_messages_timestamp"), "messages", ["timestamp"])

    op.create_table(
        "party_rooms",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("room_name", sa.String(255), nullable=False),
        sa.Column("room_token", sa.String(64), nullable=False),
        sa.Column("host_token", sa.String(128), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_party_rooms_room_token"), "party_rooms", ["room_token"], unique=True
    )

    op.create_table(
        "party_members",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("room_token", sa.String(64), nullable=False),
        sa.Column("user_token", sa.String(128), nullable=False),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column(
            "joined_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["room_token"], ["party_rooms.room_token"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "room_token", "user_token", name="uq_party_members_room_user"
        ),
    )
    op.create_index(
        op.f("ix_party_members_room_token"), "party_members", ["room_token"]
    )


def downgrade() -> None:
    """Drop session, chat and watch party tables."""
    op.drop_index(op.f("ix_party_members_room_token"), table_name="party_members")
    op.drop_table("party_members")
    op.drop_index(op.f("ix_party_rooms_room_token"), table_name="party_rooms")
    op.drop_table("party_rooms")
    op.drop_index(op.f("ix_messages_timestamp"), table_name="messages")
    op.drop_table("messages")
    op.drop_index(op.f("ix_users_token"), table_name="users")
    op.drop_index(op.f("ix_users_username"), table_name="users")
    op.drop_table("users")
