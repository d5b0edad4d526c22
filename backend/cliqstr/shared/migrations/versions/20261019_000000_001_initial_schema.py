# pylint: skip-file
# ruff: noqa
"""Initial schema - create all tables

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00

Tables created:
- users, accounts, profiles, child_settings: Identity and permissions
- parent_approvals, parent_links, parent_consents, parent_audit_logs: Parental control
- plans, plan_memberships: Plan ownership and shared slots
- cliqs, memberships, cliq_notices, invites: Cliqs and how people join them
- red_alerts, posts: Content and moderation
- events, event_rsvps: Cliq calendar
- user_activity_logs: Activity history shown in Parents HQ

Enumerated values (roles, statuses, privacy) are stored as short strings;
the application enums are the source of allowed values.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


UUID = sa.Uuid()
JSON = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _pk() -> sa.Column:
    return sa.Column("id", UUID, primary_key=True)


def _fk(name: str, target: str, ondelete: str, nullable: bool = False, index: bool = False) -> sa.Column:
    return sa.Column(name, UUID, sa.ForeignKey(target, ondelete=ondelete), nullable=nullable, index=index)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
    ]


def _deleted_at() -> sa.Column:
    return sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True)


def _flag(name: str, default: bool) -> sa.Column:
    return sa.Column(name, sa.Boolean(), nullable=False, server_default=sa.true() if default else sa.false())


def upgrade() -> None:
    """Upgrade database schema."""
    # ═══════════════════════════════════════════════════════════════════════════
    # IDENTITY
    # ═══════════════════════════════════════════════════════════════════════════

    op.create_table(
        "users",
        _pk(),
        sa.Column("email", sa.String(255), nullable=False, unique=True, index=True),
        sa.Column("password_hash", sa.Text(), nullable=False),
        _flag("is_verified", False),
        _flag("is_parent", False),
        sa.Column("reset_token", sa.String(128), nullable=True),
        sa.Column("reset_token_expires_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        _deleted_at(),
    )

    op.create_table(
        "accounts",
        _pk(),
        sa.Column(
            "user_id",
            UUID,
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
            index=True,
        ),
        sa.Column("role", sa.String(16), nullable=False, server_default="Adult"),
        _flag("is_approved", False),
        sa.Column("first_name", sa.String(100), nullable=True),
        sa.Column("last_name", sa.String(100), nullable=True),
        sa.Column("birthdate", sa.Date(), nullable=True),
        sa.Column("plan", sa.String(32), nullable=True),
        sa.Column("billing_cycle", sa.String(16), nullable=True),
        sa.Column("setup_stage", sa.String(32), nullable=True),
        _flag("suspended", False),
        *_timestamps(),
    )

    op.create_table(
        "profiles",
        _pk(),
        sa.Column(
            "user_id",
            UUID,
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
            index=True,
        ),
        sa.Column("username", sa.String(64), nullable=False, unique=True, index=True),
        sa.Column("display_name", sa.String(100), nullable=True),
        sa.Column("about", sa.Text(), nullable=True),
        _flag("show_year", False),
        _flag("show_month_day", True),
        sa.Column("ai_moderation_level", sa.String(16), nullable=False, server_default="strict"),
        *_timestamps(),
    )

    op.create_table(
        "child_settings",
        _pk(),
        sa.Column(
            "profile_id",
            UUID,
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
            index=True,
        ),
        _flag("can_send_invites", False),
        _flag("can_invite_children", False),
        _flag("can_invite_adults", False),
        _flag("invite_requires_approval", True),
        _flag("can_create_public_cliqs", False),
        _flag("can_create_private_cliqs", True),
        _flag("can_create_semi_private_cliqs", False),
        _flag("can_join_public_cliqs", False),
        _flag("can_create_events", True),
        _flag("events_require_approval", True),
        _flag("can_share_youtube", False),
        _flag("is_silently_monitored", True),
        _flag("receive_ai_alerts", True),
        sa.Column("ai_moderation_level", sa.String(16), nullable=False, server_default="strict"),
        sa.Column("visibility_level", sa.String(16), nullable=False, server_default="private"),
        *_timestamps(),
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # CLIQS & INVITES
    # ═══════════════════════════════════════════════════════════════════════════

    op.create_table(
        "cliqs",
        _pk(),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        _fk("owner_id", "users.id", "CASCADE", index=True),
        sa.Column("privacy", sa.String(16), nullable=False, server_default="private"),
        sa.Column("min_age", sa.Integer(), nullable=True),
        sa.Column("max_age", sa.Integer(), nullable=True),
        *_timestamps(),
        _deleted_at(),
    )

    op.create_table(
        "memberships",
        _pk(),
        _fk("user_id", "users.id", "CASCADE", index=True),
        _fk("cliq_id", "cliqs.id", "CASCADE", index=True),
        sa.Column("role", sa.String(16), nullable=False, server_default="Member"),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "cliq_id", name="uq_memberships_user_cliq"),
    )

    op.create_table(
        "cliq_notices",
        _pk(),
        _fk("cliq_id", "cliqs.id", "CASCADE", index=True),
        sa.Column("type", sa.String(16), nullable=False, server_default="admin"),
        sa.Column("content", sa.Text(), nullable=False),
        _fk("created_by_id", "users.id", "SET NULL", nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "invites",
        _pk(),
        sa.Column("token", sa.String(128), nullable=False, unique=True),
        sa.Column("join_code", sa.String(32), nullable=False, unique=True, index=True),
        _fk("inviter_id", "users.id", "CASCADE", index=True),
        _fk("cliq_id", "cliqs.id", "CASCADE", index=True),
        sa.Column("invitee_email", sa.String(255), nullable=False),
        sa.Column("target_email_normalized", sa.String(255), nullable=False, index=True),
        _fk("target_user_id", "users.id", "SET NULL", nullable=True),
        sa.Column("target_state", sa.String(32), nullable=False, server_default="new"),
        _flag("parent_account_exists", False),
        sa.Column("invite_type", sa.String(16), nullable=False, server_default="adult"),
        sa.Column("friend_first_name", sa.String(100), nullable=True),
        sa.Column("friend_last_name", sa.String(100), nullable=True),
        sa.Column("child_birthdate", sa.Date(), nullable=True),
        sa.Column("invite_note", sa.Text(), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending", index=True),
        _flag("used", False),
        _fk("invited_user_id", "users.id", "SET NULL", nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("declined_reason", sa.Text(), nullable=True),
        *_timestamps(),
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # PARENTAL CONTROL
    # ═══════════════════════════════════════════════════════════════════════════

    op.create_table(
        "parent_approvals",
        _pk(),
        sa.Column("approval_token", sa.String(128), nullable=False, unique=True, index=True),
        sa.Column("child_first_name", sa.String(100), nullable=False),
        sa.Column("child_last_name", sa.String(100), nullable=False),
        sa.Column("child_birthdate", sa.Date(), nullable=False),
        sa.Column("child_email", sa.String(255), nullable=True),
        sa.Column("parent_email", sa.String(255), nullable=False, index=True),
        sa.Column("parent_state", sa.String(32), nullable=False, server_default="new"),
        _fk("existing_parent_id", "users.id", "SET NULL", nullable=True),
        sa.Column("parent_mobile", sa.String(32), nullable=True),
        sa.Column("second_parent_email", sa.String(255), nullable=True),
        sa.Column("context", sa.String(32), nullable=False, server_default="direct_signup"),
        _fk("invite_id", "invites.id", "SET NULL", nullable=True),
        _fk("cliq_id", "cliqs.id", "SET NULL", nullable=True),
        sa.Column("inviter_name", sa.String(200), nullable=True),
        sa.Column("cliq_name", sa.String(200), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending", index=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("declined_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        _fk("child_id", "users.id", "SET NULL", nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "parent_links",
        _pk(),
        _fk("parent_id", "users.id", "CASCADE", nullable=True, index=True),
        sa.Column("email", sa.String(255), nullable=False, index=True),
        _fk("child_id", "users.id", "CASCADE", index=True),
        sa.Column("type", sa.String(16), nullable=False, server_default="parent"),
        sa.Column("role", sa.String(16), nullable=False, server_default="primary"),
        sa.Column("permissions", JSON, nullable=False),
        sa.Column("mobile_number", sa.String(32), nullable=True),
        sa.Column("second_parent_email", sa.String(255), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("email", "child_id", name="uq_parent_links_email_child"),
    )

    op.create_table(
        "parent_consents",
        _pk(),
        _fk("parent_id", "users.id", "CASCADE", index=True),
        _fk("child_id", "users.id", "CASCADE", index=True),
        _flag("red_alert_accepted", False),
        _flag("silent_monitoring_enabled", True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column("consented_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "parent_audit_logs",
        _pk(),
        _fk("parent_id", "users.id", "CASCADE", index=True),
        _fk("child_id", "users.id", "CASCADE", index=True),
        sa.Column("action", sa.String(32), nullable=False),
        sa.Column("old_value", JSON, nullable=True),
        sa.Column("new_value", JSON, nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        *_timestamps(),
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # PLANS
    # ═══════════════════════════════════════════════════════════════════════════

    op.create_table(
        "plans",
        _pk(),
        sa.Column("plan_key", sa.String(32), nullable=False),
        sa.Column(
            "owner_id",
            UUID,
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
            index=True,
        ),
        sa.Column("max_members", sa.Integer(), nullable=False),
        sa.Column("current_members", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("billing_cycle", sa.String(16), nullable=True),
        _flag("is_group_plan", False),
        sa.Column("status", sa.String(16), nullable=False, server_default="active"),
        *_timestamps(),
    )

    op.create_table(
        "plan_memberships",
        _pk(),
        _fk("plan_id", "plans.id", "CASCADE", index=True),
        _fk("user_id", "users.id", "CASCADE", index=True),
        sa.Column("role", sa.String(16), nullable=False, server_default="member"),
        sa.Column("status", sa.String(16), nullable=False, server_default="active"),
        *_timestamps(),
        sa.UniqueConstraint("plan_id", "user_id", name="uq_plan_memberships_plan_user"),
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # CONTENT & MODERATION
    # ═══════════════════════════════════════════════════════════════════════════

    op.create_table(
        "red_alerts",
        _pk(),
        _fk("cliq_id", "cliqs.id", "CASCADE", index=True),
        sa.Column("post_id", UUID, nullable=True),
        _fk("triggered_by_id", "users.id", "SET NULL", nullable=True),
        sa.Column("trigger_type", sa.String(16), nullable=False, server_default="adult"),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending", index=True),
        sa.Column("suspended_content_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("moderator_notes", sa.Text(), nullable=True),
        _fk("reviewed_by_id", "users.id", "SET NULL", nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "posts",
        _pk(),
        _fk("cliq_id", "cliqs.id", "CASCADE", index=True),
        _fk("author_id", "users.id", "CASCADE", index=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("moderation_status", sa.String(16), nullable=False, server_default="approved"),
        sa.Column("suspended_at", sa.DateTime(timezone=True), nullable=True),
        _fk("suspended_by_id", "users.id", "SET NULL", nullable=True),
        sa.Column("suspension_reason", sa.Text(), nullable=True),
        _fk("red_alert_id", "red_alerts.id", "SET NULL", nullable=True, index=True),
        *_timestamps(),
        _deleted_at(),
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # EVENTS
    # ═══════════════════════════════════════════════════════════════════════════

    op.create_table(
        "events",
        _pk(),
        _fk("cliq_id", "cliqs.id", "CASCADE", index=True),
        _fk("created_by_id", "users.id", "CASCADE", index=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("location", sa.String(300), nullable=True),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ends_at", sa.DateTime(timezone=True), nullable=False),
        _flag("requires_parent_approval", False),
        _fk("approved_by_id", "users.id", "SET NULL", nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        _deleted_at(),
    )

    op.create_table(
        "event_rsvps",
        _pk(),
        _fk("event_id", "events.id", "CASCADE", index=True),
        _fk("user_id", "users.id", "CASCADE"),
        sa.Column("status", sa.String(16), nullable=False, server_default="going"),
        *_timestamps(),
        sa.UniqueConstraint("event_id", "user_id", name="uq_event_rsvps_event_user"),
    )

    op.create_table(
        "user_activity_logs",
        _pk(),
        _fk("user_id", "users.id", "CASCADE", index=True),
        sa.Column("event", sa.String(64), nullable=False),
        sa.Column("detail", JSON, nullable=True),
        *_timestamps(),
    )


def downgrade() -> None:
    """Downgrade database schema."""
    for table in (
        "user_activity_logs",
        "event_rsvps",
        "events",
        "posts",
        "red_alerts",
        "plan_memberships",
        "plans",
        "parent_audit_logs",
        "parent_consents",
        "parent_links",
        "parent_approvals",
        "invites",
        "cliq_notices",
        "memberships",
        "cliqs",
        "child_settings",
        "profiles",
        "accounts",
        "users",
    ):
        op.drop_table(table)
