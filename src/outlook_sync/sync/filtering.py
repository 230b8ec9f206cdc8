"""Eligibility of source events for a binding."""

import logging
from typing import Iterable, List, Tuple

from outlook_sync.models.configuration import CalendarBindingConfiguration
from outlook_sync.models.event import CalendarEvent

logger = logging.getLogger(__name__)


def is_excluded(event: CalendarEvent, configuration: CalendarBindingConfiguration) -> bool:
    """Whether any exclusion rule of the configuration matches the event."""
    return (
        configuration.color_exclusion.is_excluded(event)
        or configuration.rsvp_exclusion.is_excluded(event)
        or configuration.status_exclusion.is_excluded(event)
    )


def should_sync_event(event: CalendarEvent, configuration: CalendarBindingConfiguration) -> bool:
    """Copies made by any binding are never synced again."""
    if event.is_copy:
        return False
    return not is_excluded(event, configuration)


def partition_events(
    events: Iterable[CalendarEvent],
    configuration: CalendarBindingConfiguration,
) -> Tuple[List[CalendarEvent], List[CalendarEvent]]:
    """
    Split source events into eligible and ineligible lists.

    Args:
        events: Events read from the source calendar
        configuration: Binding configuration holding the exclusion rules

    Returns:
        Tuple of (eligible, ineligible), each in input order
    """
    eligible: List[CalendarEvent] = []
    ineligible: List[CalendarEvent] = []
    for event in events:
        if should_sync_event(event, configuration):
            eligible.append(event)
        else:
            logger.debug(
                f"Skipping source event {event.external_id} "
                f"({'copy' if event.is_copy else 'excluded'})"
            )
            ineligible.append(event)
    return eligible, ineligible
