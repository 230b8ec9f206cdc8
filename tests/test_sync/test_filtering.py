"""Tests for source event eligibility."""

from conftest import make_event
from outlook_sync.models.configuration import CalendarBindingConfiguration
from outlook_sync.models.enums import EventColor, EventStatus, RsvpResponse
from outlook_sync.models.exclusion import (
    ColorExclusionRule,
    RsvpExclusionRule,
    StatusExclusionRule,
)
from outlook_sync.sync.filtering import is_excluded, partition_events, should_sync_event


def test_plain_event_is_eligible():
    """Test that an ordinary event passes the default configuration."""
    assert should_sync_event(make_event(), CalendarBindingConfiguration.default()) is True


def test_copies_are_never_synced():
    """Test that a copy made by any binding is ineligible."""
    copy = make_event(original_event_id="src-1", source_calendar_binding_id="other-binding")

    assert should_sync_event(copy, CalendarBindingConfiguration.default()) is False


def test_any_rule_excludes():
    """Test that a single matching rule is enough."""
    configuration = CalendarBindingConfiguration(
        color_exclusion=ColorExclusionRule.exclude(EventColor.RED),
        rsvp_exclusion=RsvpExclusionRule.exclude(RsvpResponse.NO),
        status_exclusion=StatusExclusionRule.exclude(EventStatus.FREE),
    )

    assert is_excluded(make_event(color=EventColor.RED), configuration) is True
    assert is_excluded(make_event(rsvp_status=RsvpResponse.NO), configuration) is True
    assert is_excluded(make_event(status=EventStatus.FREE), configuration) is True
    assert is_excluded(make_event(color=EventColor.BLUE, status=EventStatus.BUSY), configuration) is False


def test_partition_keeps_order():
    """Test that partitioning preserves the input order on both sides."""
    configuration = CalendarBindingConfiguration(
        color_exclusion=ColorExclusionRule.exclude(EventColor.RED),
    )
    red = make_event("Red", external_id="e1", color=EventColor.RED)
    blue = make_event("Blue", external_id="e2", color=EventColor.BLUE)
    copy = make_event("Copy", external_id="e3", original_event_id="x", source_calendar_binding_id="b")
    plain = make_event("Plain", external_id="e4")

    eligible, ineligible = partition_events([red, blue, copy, plain], configuration)

    assert [event.subject for event in eligible] == ["Blue", "Plain"]
    assert [event.subject for event in ineligible] == ["Red", "Copy"]
