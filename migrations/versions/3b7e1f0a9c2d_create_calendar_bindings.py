"""create credentials and calendar_bindings tables

Revision ID: 3b7e1f0a9c2d
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3b7e1f0a9c2d"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "credentials",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("friendly_name", sa.String(length=255), nullable=False),
        sa.Column("account_email", sa.String(length=255), nullable=True),
        sa.Column("access_token", sa.Text(), nullable=True),
        sa.Column("refresh_token", sa.Text(), nullable=True),
        sa.Column("token_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_invalid", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_credentials_id"), "credentials", ["id"], unique=False)

    op.create_table(
        "calendar_bindings",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("source_credential_id", sa.String(length=36), nullable=False),
        sa.Column("source_calendar_external_id", sa.String(length=512), nullable=False),
        sa.Column("target_credential_id", sa.String(length=36), nullable=False),
        sa.Column("target_calendar_external_id", sa.String(length=512), nullable=False),
        sa.Column("is_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("title_handling", sa.String(length=20), nullable=False, server_default="Clone"),
        sa.Column("custom_title", sa.String(length=255), nullable=True),
        sa.Column("copy_description", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("copy_participants", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("copy_location", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("copy_conference_link", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("target_category", sa.String(length=255), nullable=True),
        sa.Column("target_status", sa.String(length=30), nullable=True),
        sa.Column("copy_attachments", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("reminder_handling", sa.String(length=20), nullable=False, server_default="Copy"),
        sa.Column("custom_reminder_minutes", sa.Integer(), nullable=False, server_default="15"),
        sa.Column("mark_as_private", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("custom_tag", sa.String(length=255), nullable=True),
        sa.Column("custom_tag_in_title", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("sync_days_forward", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("excluded_colors", sa.Text(), nullable=True),
        sa.Column("excluded_rsvp_responses", sa.Text(), nullable=True),
        sa.Column("excluded_statuses", sa.Text(), nullable=True),
        sa.Column("last_sync_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_sync_event_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_sync_error", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "source_credential_id",
            "source_calendar_external_id",
            "target_credential_id",
            "target_calendar_external_id",
            name="uq_calendar_bindings_source_target",
        ),
    )
    op.create_index(op.f("ix_calendar_bindings_id"), "calendar_bindings", ["id"], unique=False)
    op.create_index(
        op.f("ix_calendar_bindings_source_credential_id"),
        "calendar_bindings",
        ["source_credential_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_calendar_bindings_target_credential_id"),
        "calendar_bindings",
        ["target_credential_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_calendar_bindings_is_enabled"), "calendar_bindings", ["is_enabled"], unique=False
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_calendar_bindings_is_enabled"), table_name="calendar_bindings")
    op.drop_index(op.f("ix_calendar_bindings_target_credential_id"), table_name="calendar_bindings")
    op.drop_index(op.f("ix_calendar_bindings_source_credential_id"), table_name="calendar_bindings")
    op.drop_index(op.f("ix_calendar_bindings_id"), table_name="calendar_bindings")
    op.drop_table("calendar_bindings")
    op.drop_index(op.f("ix_credentials_id"), table_name="credentials")
    op.drop_table("credentials")
