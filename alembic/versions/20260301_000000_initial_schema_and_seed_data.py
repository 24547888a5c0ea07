"""Initial schema and seed data for G-Club

Revision ID: 20260301_000000
Revises: None
Create Date: 2026-03-01 00:00:00.000000

This is the initial migration that creates all tables and seeds the reference
data the server expects to exist:
- Users, profiles, roles and permissions
- Game catalogue and favorites
- Game posts, participants and waiting lists
- Channels, boards, board posts, notices and comments
- Notifications, receipts and notification settings
- Default roles with their permission grants and a starter game catalogue

Revision format: YYYYMMDD_HHMMSS_description

"""

import json
from datetime import datetime, timezone
from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op
from gclub.core.database.seed import DEFAULT_GAMES, DEFAULT_ROLES, PERMISSION_DESCRIPTIONS, ROLE_PERMISSIONS

# revision identifiers, used by Alembic.
revision: str = "20260301_000000"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all tables and seed initial data."""

    # Create roles / permissions tables
    roles = op.create_table(
        "roles",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(32), nullable=False),
        sa.Column("description", sa.String(255), nullable=True),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_roles_name", "roles", ["name"], unique=True)

    permissions = op.create_table(
        "permissions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(64), nullable=False),
        sa.Column("description", sa.String(255), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_permissions_name", "permissions", ["name"], unique=True)

    role_permissions = op.create_table(
        "role_permissions",
        sa.Column("role_id", sa.Integer(), sa.ForeignKey("roles.id"), nullable=False),
        sa.Column("permission_id", sa.Integer(), sa.ForeignKey("permissions.id"), nullable=False),
        sa.PrimaryKeyConstraint("role_id", "permission_id"),
    )

    # Create users table
    op.create_table(
        "users",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("last_seen_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"])

    # Create user_profiles table
    op.create_table(
        "user_profiles",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(64), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("birth_date", sa.Date(), nullable=True),
        sa.Column("image", sa.String(512), nullable=True),
        sa.Column("role_id", sa.Integer(), sa.ForeignKey("roles.id"), nullable=True),
        sa.Column("terms_agreed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("terms_agreed_at", sa.DateTime(), nullable=True),
        sa.Column("privacy_agreed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("privacy_agreed_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", name="uq_user_profiles_user_id"),
    )
    op.create_index("ix_user_profiles_user_id", "user_profiles", ["user_id"])
    op.create_index("ix_user_profiles_role_id", "user_profiles", ["role_id"])

    # Create games tables
    games = op.create_table(
        "games",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("icon_url", sa.String(512), nullable=True),
        sa.Column("aliases", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_games_name", "games", ["name"], unique=True)

    op.create_table(
        "user_favorite_games",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(64), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("game_id", sa.Integer(), sa.ForeignKey("games.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "game_id", name="uq_user_favorite_games"),
    )
    op.create_index("ix_user_favorite_games_user_id", "user_favorite_games", ["user_id"])
    op.create_index("ix_user_favorite_games_game_id", "user_favorite_games", ["game_id"])

    # Create game-mate tables
    op.create_table(
        "game_posts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("game_id", sa.Integer(), sa.ForeignKey("games.id"), nullable=True),
        sa.Column("custom_game_name", sa.String(100), nullable=True),
        sa.Column("max_participants", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.DateTime(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="OPEN"),
        sa.Column("author_id", sa.String(64), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("view_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("meeting_start_notified_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    for column in ("game_id", "start_time", "status", "author_id", "created_at"):
        op.create_index(f"ix_game_posts_{column}", "game_posts", [column])

    op.create_table(
        "game_participants",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("game_post_id", sa.Integer(), sa.ForeignKey("game_posts.id"), nullable=False),
        sa.Column("user_id", sa.String(64), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("participant_type", sa.String(10), nullable=False, server_default="MEMBER"),
        sa.Column("guest_name", sa.String(50), nullable=True),
        sa.Column("is_leader", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("status", sa.String(20), nullable=False, server_default="ACTIVE"),
        sa.Column("joined_at", sa.DateTime(), nullable=False),
        sa.Column("left_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("game_post_id", "user_id", name="uq_game_participants_post_user"),
    )
    op.create_index("ix_game_participants_game_post_id", "game_participants", ["game_post_id"])
    op.create_index("ix_game_participants_user_id", "game_participants", ["user_id"])

    op.create_table(
        "waiting_participants",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("game_post_id", sa.Integer(), sa.ForeignKey("game_posts.id"), nullable=False),
        sa.Column("user_id", sa.String(64), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="WAITING"),
        sa.Column("available_time", sa.DateTime(), nullable=True),
        sa.Column("requested_at", sa.DateTime(), nullable=False),
        sa.Column("invited_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("game_post_id", "user_id", name="uq_waiting_participants_post_user"),
    )
    for column in ("game_post_id", "user_id", "status", "requested_at"):
        op.create_index(f"ix_waiting_participants_{column}", "waiting_participants", [column])

    # Create channel / board / post tables
    op.create_table(
        "channels",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("slug", sa.String(100), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_channels_slug", "channels", ["slug"], unique=True)

    op.create_table(
        "boards",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("channel_id", sa.Integer(), sa.ForeignKey("channels.id"), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("channel_id", name="uq_boards_channel_id"),
    )
    op.create_index("ix_boards_channel_id", "boards", ["channel_id"])

    op.create_table(
        "posts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("published", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("board_id", sa.Integer(), sa.ForeignKey("boards.id"), nullable=False),
        sa.Column("author_id", sa.String(64), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("view_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    for column in ("published", "board_id", "author_id", "created_at"):
        op.create_index(f"ix_posts_{column}", "posts", [column])

    # Create notices table
    op.create_table(
        "notices",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("content", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("summary", sa.String(500), nullable=True),
        sa.Column("author_id", sa.String(64), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("last_modified_by_id", sa.String(64), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("is_published", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_pinned", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("allow_comments", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("published_at", sa.DateTime(), nullable=True),
        sa.Column("view_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    for column in ("author_id", "is_published", "is_deleted", "created_at"):
        op.create_index(f"ix_notices_{column}", "notices", [column])

    # Create comments table
    op.create_table(
        "comments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("content", sa.String(500), nullable=False),
        sa.Column("author_id", sa.String(64), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("post_id", sa.Integer(), sa.ForeignKey("posts.id"), nullable=True),
        sa.Column("game_post_id", sa.Integer(), sa.ForeignKey("game_posts.id"), nullable=True),
        sa.Column("notice_id", sa.String(36), sa.ForeignKey("notices.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    for column in ("author_id", "post_id", "game_post_id", "notice_id", "created_at"):
        op.create_index(f"ix_comments_{column}", "comments", [column])

    # Create notification tables
    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("type", sa.String(40), nullable=False),
        sa.Column("event", sa.String(40), nullable=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("body", sa.String(1000), nullable=False),
        sa.Column("icon", sa.String(512), nullable=True),
        sa.Column("action_url", sa.String(512), nullable=True),
        sa.Column("priority", sa.String(10), nullable=False, server_default="NORMAL"),
        sa.Column("sender_id", sa.String(64), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("recipient_id", sa.String(64), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("is_group_send", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("group_type", sa.String(40), nullable=True),
        sa.Column("group_filter", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("game_post_id", sa.Integer(), sa.ForeignKey("game_posts.id"), nullable=True),
        sa.Column("data", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("scheduled_at", sa.DateTime(), nullable=True),
        sa.Column("status", sa.String(10), nullable=False, server_default="PENDING"),
        sa.Column("sent_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    for column in ("type", "game_post_id", "status", "created_at"):
        op.create_index(f"ix_notifications_{column}", "notifications", [column])

    op.create_table(
        "notification_receipts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("notification_id", sa.Integer(), sa.ForeignKey("notifications.id"), nullable=False),
        sa.Column("user_id", sa.String(64), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("read_at", sa.DateTime(), nullable=True),
        sa.Column("is_clicked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("clicked_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("notification_id", "user_id", name="uq_notification_receipts"),
    )
    for column in ("notification_id", "user_id", "is_read", "created_at"):
        op.create_index(f"ix_notification_receipts_{column}", "notification_receipts", [column])

    toggle_columns = []
    for prefix in ("participating", "my_post"):
        toggle_columns += [
            sa.Column(f"{prefix}_member_join", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column(f"{prefix}_member_leave", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column(f"{prefix}_time_change", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column(f"{prefix}_full_meeting", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column(f"{prefix}_game_cancelled", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column(f"{prefix}_before_meeting_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column(f"{prefix}_before_meeting_minutes", sa.Integer(), nullable=False, server_default="10"),
            sa.Column(f"{prefix}_before_meeting_only_full", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column(f"{prefix}_meeting_start_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column(f"{prefix}_meeting_start_only_full", sa.Boolean(), nullable=False, server_default=sa.true()),
        ]

    op.create_table(
        "notification_settings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(64), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("dnd_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("dnd_start_time", sa.String(5), nullable=False, server_default="22:00"),
        sa.Column("dnd_end_time", sa.String(5), nullable=False, server_default="08:00"),
        sa.Column("dnd_days", sa.Text(), nullable=False),
        sa.Column("new_game_post_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("new_game_post_mode", sa.String(10), nullable=False, server_default="favorites"),
        sa.Column("custom_game_ids", sa.Text(), nullable=False, server_default="[]"),
        *toggle_columns,
        sa.Column("waiting_list_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("notice_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", name="uq_notification_settings_user_id"),
    )
    op.create_index("ix_notification_settings_user_id", "notification_settings", ["user_id"])

    # Seed roles, permissions and grants
    now = datetime.now(timezone.utc).replace(tzinfo=None)

    op.bulk_insert(roles, DEFAULT_ROLES)

    permission_ids = {}
    permission_rows = []
    for index, (permission_type, description) in enumerate(PERMISSION_DESCRIPTIONS.items(), start=1):
        permission_ids[permission_type] = index
        permission_rows.append({"id": index, "name": permission_type.value, "description": description})
    op.bulk_insert(permissions, permission_rows)

    if op.get_bind().dialect.name == "postgresql":
        for table in ("roles", "permissions"):
            op.execute(f"SELECT setval(pg_get_serial_sequence('{table}', 'id'), (SELECT MAX(id) FROM {table}))")

    role_ids = {role["name"]: role["id"] for role in DEFAULT_ROLES}
    op.bulk_insert(
        role_permissions,
        [
            {"role_id": role_ids[role_name.value], "permission_id": permission_ids[permission_type]}
            for role_name, granted in ROLE_PERMISSIONS.items()
            for permission_type in granted
        ],
    )

    # Seed the starter game catalogue
    op.bulk_insert(
        games,
        [
            {
                "name": game["name"],
                "description": game["description"],
                "aliases": json.dumps(game["aliases"], ensure_ascii=False),
                "created_at": now,
                "updated_at": now,
            }
            for game in DEFAULT_GAMES
        ],
    )


def downgrade() -> None:
    """Drop all tables created in upgrade."""
    op.drop_table("notification_settings")
    op.drop_table("notification_receipts")
    op.drop_table("notifications")
    op.drop_table("comments")
    op.drop_table("notices")
    op.drop_table("posts")
    op.drop_table("boards")
    op.drop_table("channels")
    op.drop_table("waiting_participants")
    op.drop_table("game_participants")
    op.drop_table("game_posts")
    op.drop_table("user_favorite_games")
    op.drop_table("games")
    op.drop_table("user_profiles")
    op.drop_table("users")
    op.drop_table("role_permissions")
    op.drop_table("permissions")
    op.drop_table("roles")
