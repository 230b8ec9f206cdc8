"""Lookup from source event external ids to their copies in the target calendar."""

import logging
from typing import Dict, Iterable, List, Optional, Set

from outlook_sync.models.event import CalendarEvent

logger = logging.getLogger(__name__)


class IdentityMapper:
    """Index of one binding's copies keyed by ``original_event_id``.

    Built fresh for every binding run from what the target calendar currently
    holds. Copies tagged with another binding's id are ignored. When several
    copies claim the same source event, the first one wins and the rest are
    reported through ``duplicates``.
    """

    def __init__(self, binding_id: str):
        self.binding_id = binding_id
        self._copies: Dict[str, CalendarEvent] = {}
        self._duplicates: List[CalendarEvent] = []

    @classmethod
    def build(cls, binding_id: str, target_events: Iterable[CalendarEvent]) -> "IdentityMapper":
        mapper = cls(binding_id)
        for event in target_events:
            mapper._add(event)
        return mapper

    def _add(self, event: CalendarEvent) -> None:
        if not event.is_copy or event.source_calendar_binding_id != self.binding_id:
            return
        if event.original_event_id in self._copies:
            logger.warning(
                f"Duplicate copy {event.external_id} of source event "
                f"{event.original_event_id} for binding {self.binding_id}"
            )
            self._duplicates.append(event)
            return
        self._copies[event.original_event_id] = event

    def find_copy(self, source_external_id: str) -> Optional[CalendarEvent]:
        return self._copies.get(source_external_id)

    @property
    def copies(self) -> List[CalendarEvent]:
        return list(self._copies.values())

    @property
    def duplicates(self) -> List[CalendarEvent]:
        return list(self._duplicates)

    def orphans(self, eligible_source_ids: Set[str]) -> List[CalendarEvent]:
        """Copies whose source event is no longer among the eligible ones."""
        return [
            copy
            for original_id, copy in self._copies.items()
            if original_id not in eligible_source_ids
        ]

    def __len__(self) -> int:
        return len(self._copies)
