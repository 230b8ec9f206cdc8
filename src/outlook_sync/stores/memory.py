"""In-memory calendar backend.

Used for local development (``CALENDAR_BACKEND=memory``) and as the base of
the fake stores in the test suite.
"""

import logging
import uuid
from typing import Dict, List, Optional, Tuple

from outlook_sync.models.event import CalendarEvent, EventAttachment, SyncWindow
from outlook_sync.stores.base import CalendarEventStore, CalendarEventStoreFactory
from outlook_sync.utils.errors import CalendarStoreError

logger = logging.getLogger(__name__)

CalendarKey = Tuple[str, str]


class InMemoryCalendarEventStore(CalendarEventStore):
    """Store keeping events of one calendar in a dict keyed by external id."""

    def __init__(
        self,
        credential_id: str,
        calendar_external_id: str,
        events: Optional[Dict[str, CalendarEvent]] = None,
        attachments: Optional[Dict[str, List[EventAttachment]]] = None,
    ):
        super().__init__(credential_id, calendar_external_id)
        self.events: Dict[str, CalendarEvent] = events if events is not None else {}
        self.attachments: Dict[str, List[EventAttachment]] = (
            attachments if attachments is not None else {}
        )

    def seed(self, *events: CalendarEvent) -> List[CalendarEvent]:
        """Insert events directly, assigning external ids where missing."""
        stored = []
        for event in events:
            if not event.external_id:
                event = event.model_copy(update={"external_id": self._new_external_id()})
            event = event.model_copy(update={"calendar_id": self.calendar_external_id})
            self.events[event.external_id] = event
            stored.append(event)
        return stored

    def remove(self, external_id: str) -> None:
        self.events.pop(external_id, None)
        self.attachments.pop(external_id, None)

    @staticmethod
    def _new_external_id() -> str:
        return f"mem-{uuid.uuid4()}"

    async def get_all(self, window: SyncWindow) -> List[CalendarEvent]:
        return sorted(
            (event for event in self.events.values() if window.overlaps(event)),
            key=lambda event: (event.start, event.external_id),
        )

    async def get_copied_events(
        self, binding_id: str, window: Optional[SyncWindow] = None
    ) -> List[CalendarEvent]:
        return [
            event
            for event in self.events.values()
            if event.is_copy
            and event.source_calendar_binding_id == binding_id
            and (window is None or window.overlaps(event))
        ]

    async def add(self, event: CalendarEvent) -> CalendarEvent:
        stored = event.model_copy(
            update={
                "external_id": self._new_external_id(),
                "calendar_id": self.calendar_external_id,
            }
        )
        self.events[stored.external_id] = stored
        logger.debug(f"Created event {stored.external_id} in {self.calendar_external_id}")
        return stored

    async def update(self, event: CalendarEvent) -> CalendarEvent:
        current = self.events.get(event.external_id)
        if current is None:
            raise CalendarStoreError(f"Event {event.external_id} not found", status_code=404)
        stored = event.model_copy(
            update={
                "calendar_id": self.calendar_external_id,
                "has_attachments": current.has_attachments,
            }
        )
        self.events[stored.external_id] = stored
        return stored

    async def delete(self, external_id: str) -> bool:
        if external_id not in self.events:
            return False
        self.remove(external_id)
        return True

    async def get_attachments(self, external_id: str) -> List[EventAttachment]:
        return list(self.attachments.get(external_id, []))

    async def add_attachment(self, external_id: str, attachment: EventAttachment) -> None:
        current = self.events.get(external_id)
        if current is None:
            raise CalendarStoreError(f"Event {external_id} not found", status_code=404)
        self.attachments.setdefault(external_id, []).append(attachment)
        self.events[external_id] = current.model_copy(update={"has_attachments": True})


class InMemoryCalendarEventStoreFactory(CalendarEventStoreFactory):
    """Hands out one shared store per (credential, calendar) pair."""

    def __init__(self):
        self.stores: Dict[CalendarKey, InMemoryCalendarEventStore] = {}

    def store_for(self, credential_id: str, calendar_external_id: str) -> InMemoryCalendarEventStore:
        key = (credential_id, calendar_external_id)
        if key not in self.stores:
            self.stores[key] = InMemoryCalendarEventStore(credential_id, calendar_external_id)
        return self.stores[key]

    async def get_store(self, credential_id: str, calendar_external_id: str) -> CalendarEventStore:
        return self.store_for(credential_id, calendar_external_id)


_default_factory: Optional[InMemoryCalendarEventStoreFactory] = None


def get_memory_store_factory() -> InMemoryCalendarEventStoreFactory:
    """Process-wide in-memory backend shared across binding runs."""
    global _default_factory
    if _default_factory is None:
        _default_factory = InMemoryCalendarEventStoreFactory()
    return _default_factory
