"""SQLAlchemy database models."""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


class CredentialModel(Base):
    """Microsoft account credential used to reach a calendar."""

    __tablename__ = "credentials"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        index=True,
    )
    friendly_name: Mapped[str] = mapped_column(String(255), nullable=False)
    account_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # OAuth tokens
    access_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    refresh_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    token_expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    is_invalid: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<CredentialModel(id={self.id}, friendly_name={self.friendly_name})>"


class CalendarBindingModel(Base):
    """Persisted calendar binding with its flattened configuration."""

    __tablename__ = "calendar_bindings"
    __table_args__ = (
        UniqueConstraint(
            "source_credential_id",
            "source_calendar_external_id",
            "target_credential_id",
            "target_calendar_external_id",
            name="uq_calendar_bindings_source_target",
        ),
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Endpoints
    source_credential_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    source_calendar_external_id: Mapped[str] = mapped_column(String(512), nullable=False)
    target_credential_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    target_calendar_external_id: Mapped[str] = mapped_column(String(512), nullable=False)
    is_enabled: Mapped[bool] = mapped_column(Boolean, default=True, index=True, nullable=False)

    # Configuration
    title_handling: Mapped[str] = mapped_column(String(20), default="Clone", nullable=False)
    custom_title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    copy_description: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    copy_participants: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    copy_location: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    copy_conference_link: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    target_category: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    target_status: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    copy_attachments: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    reminder_handling: Mapped[str] = mapped_column(String(20), default="Copy", nullable=False)
    custom_reminder_minutes: Mapped[int] = mapped_column(Integer, default=15, nullable=False)
    mark_as_private: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    custom_tag: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    custom_tag_in_title: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    sync_days_forward: Mapped[int] = mapped_column(Integer, default=30, nullable=False)

    # Exclusion rules (comma-joined enum names)
    excluded_colors: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    excluded_rsvp_responses: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    excluded_statuses: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Last sync
    last_sync_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    last_sync_event_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_sync_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<CalendarBindingModel(id={self.id}, name={self.name}, enabled={self.is_enabled})>"
