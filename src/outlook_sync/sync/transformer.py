"""Mapping of a source event to the copy written into the target calendar.

Everything here is pure: the same source event and binding always yield the
same draft, which is what lets the reconciler compare fingerprints instead of
rewriting unchanged copies on every run.
"""

import hashlib
import json
from typing import Optional

from outlook_sync.models.binding import CalendarBinding
from outlook_sync.models.configuration import CalendarBindingConfiguration
from outlook_sync.models.enums import ReminderHandling, TitleHandling
from outlook_sync.models.event import CalendarEvent

DEFAULT_HIDDEN_TITLE = "Busy"


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _append_paragraph(body: Optional[str], paragraph: str) -> str:
    if _is_blank(body):
        return paragraph
    return f"{body}\n\n{paragraph}"


def compute_title(
    source: CalendarEvent,
    configuration: CalendarBindingConfiguration,
    hidden_title_placeholder: str = DEFAULT_HIDDEN_TITLE,
) -> str:
    """Subject of the copy before tagging."""
    if configuration.title_handling == TitleHandling.RENAME:
        if _is_blank(configuration.custom_title):
            return source.subject
        return configuration.custom_title.strip()
    if configuration.title_handling == TitleHandling.HIDE:
        if _is_blank(configuration.custom_title):
            return hidden_title_placeholder
        return configuration.custom_title.strip()
    return source.subject


def compute_reminder(
    source: CalendarEvent, configuration: CalendarBindingConfiguration
) -> Optional[int]:
    if configuration.reminder_handling == ReminderHandling.NONE:
        return None
    if configuration.reminder_handling == ReminderHandling.CUSTOM:
        return configuration.custom_reminder_minutes
    return source.reminder_minutes


def transform_event(
    source: CalendarEvent,
    binding: CalendarBinding,
    existing_external_id: str = "",
    hidden_title_placeholder: str = DEFAULT_HIDDEN_TITLE,
) -> CalendarEvent:
    """
    Build the desired target copy of a source event.

    The draft never carries real attendees; participants are only rendered
    into the body as text. Attachments are handled by the reconciler.

    Args:
        source: Eligible source event
        binding: Binding the copy is made for
        existing_external_id: External id of the current copy, when updating
        hidden_title_placeholder: Title used for hidden events without a custom title

    Returns:
        Target event draft carrying the identity marker of the source event
    """
    configuration = binding.configuration

    title = compute_title(source, configuration, hidden_title_placeholder)
    body = source.body if configuration.copy_description else None

    if configuration.copy_participants and source.attendees:
        body = _append_paragraph(body, "Participants: " + "; ".join(source.attendees))

    tag = None if _is_blank(configuration.custom_tag) else configuration.custom_tag.strip()
    if tag:
        if configuration.custom_tag_in_title and configuration.title_handling != TitleHandling.HIDE:
            title = f"{title} {tag}" if title else tag
        else:
            body = _append_paragraph(body, tag)

    categories = source.categories
    if not _is_blank(configuration.target_category):
        categories = configuration.target_category.strip()

    return CalendarEvent(
        external_id=existing_external_id,
        calendar_id=binding.target_calendar_external_id,
        subject=title,
        body=body,
        start=source.start,
        end=source.end,
        location=source.location if configuration.copy_location else None,
        attendees=(),
        conference_link=source.conference_link if configuration.copy_conference_link else None,
        categories=categories,
        is_all_day=source.is_all_day,
        is_recurring=source.is_recurring,
        color=source.color,
        status=configuration.target_status or source.status,
        rsvp_status=source.rsvp_status,
        is_private=True if configuration.mark_as_private else source.is_private,
        has_attachments=False,
        reminder_minutes=compute_reminder(source, configuration),
        original_event_id=source.external_id,
        source_calendar_binding_id=binding.id,
    )


def content_fingerprint(event: CalendarEvent) -> str:
    """SHA-256 over the fields a transformation controls.

    Attachments, colour, RSVP and organizer are left out: they are either
    copied separately or not written by the transformation at all.
    """
    payload = {
        "subject": event.subject or "",
        "body": event.body or "",
        "start": event.start.isoformat(),
        "end": event.end.isoformat(),
        "is_all_day": event.is_all_day,
        "is_recurring": event.is_recurring,
        "location": event.location or "",
        "conference_link": event.conference_link or "",
        "categories": event.categories or "",
        "status": event.status.value,
        "is_private": event.is_private,
        "reminder_minutes": event.reminder_minutes,
    }
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


def needs_update(existing: CalendarEvent, desired: CalendarEvent) -> bool:
    return content_fingerprint(existing) != content_fingerprint(desired)
