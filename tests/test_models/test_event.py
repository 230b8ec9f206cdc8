"""Tests for calendar event value objects."""

import pytest
from datetime import datetime, timedelta, timezone
from pydantic import ValidationError

from conftest import make_event
from outlook_sync.models.event import CalendarEvent, SyncWindow


class TestCalendarEvent:
    """Test suite for CalendarEvent."""

    def test_naive_datetimes_are_utc(self):
        """Test that naive start/end are treated as UTC."""
        event = CalendarEvent(start=datetime(2026, 3, 2, 9, 0), end=datetime(2026, 3, 2, 10, 0))

        assert event.start.tzinfo == timezone.utc

    def test_aware_datetimes_converted_to_utc(self):
        """Test that offsets are normalized."""
        plus_two = timezone(timedelta(hours=2))
        event = CalendarEvent(
            start=datetime(2026, 3, 2, 11, 0, tzinfo=plus_two),
            end=datetime(2026, 3, 2, 12, 0, tzinfo=plus_two),
        )

        assert event.start == datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
        assert event.start.utcoffset() == timedelta(0)

    def test_is_copy(self):
        """Test copy detection from the identity marker."""
        assert make_event().is_copy is False
        assert make_event(original_event_id="  ").is_copy is False
        assert make_event(original_event_id="src-1", source_calendar_binding_id="b1").is_copy is True


class TestSyncWindow:
    """Test suite for SyncWindow."""

    def test_forward_starts_at_midnight(self):
        """Test the window starts at midnight UTC of the current day."""
        now = datetime(2026, 3, 2, 15, 30, tzinfo=timezone.utc)

        window = SyncWindow.forward(30, now=now)

        assert window.start == datetime(2026, 3, 2, tzinfo=timezone.utc)
        assert window.end == datetime(2026, 4, 1, tzinfo=timezone.utc)

    def test_forward_with_lookback(self):
        """Test lookback days move the start back."""
        now = datetime(2026, 3, 2, 15, 30, tzinfo=timezone.utc)

        window = SyncWindow.forward(7, lookback_days=2, now=now)

        assert window.start == datetime(2026, 2, 28, tzinfo=timezone.utc)
        assert window.end == datetime(2026, 3, 9, tzinfo=timezone.utc)

    def test_end_must_follow_start(self):
        """Test that an empty window is rejected."""
        moment = datetime(2026, 3, 2, tzinfo=timezone.utc)

        with pytest.raises(ValidationError):
            SyncWindow(start=moment, end=moment)

    def test_overlaps(self):
        """Test overlap on both edges."""
        window = SyncWindow(
            start=datetime(2026, 3, 2, tzinfo=timezone.utc),
            end=datetime(2026, 3, 3, tzinfo=timezone.utc),
        )

        assert window.overlaps(make_event()) is True
        assert window.overlaps(make_event(start=datetime(2026, 3, 1, 23, 30, tzinfo=timezone.utc), duration_minutes=60)) is True
        assert window.overlaps(make_event(start=datetime(2026, 3, 3, tzinfo=timezone.utc))) is False
        assert window.overlaps(make_event(start=datetime(2026, 3, 1, 23, 0, tzinfo=timezone.utc), duration_minutes=60)) is False
