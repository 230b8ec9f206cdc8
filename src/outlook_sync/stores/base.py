"""Calendar event store contracts."""

from abc import ABC, abstractmethod
from typing import List, Optional

from outlook_sync.models.event import CalendarEvent, EventAttachment, SyncWindow


class CalendarEventStore(ABC):
    """Read/write access to one calendar of one credential.

    Implementations raise ``AuthenticationError`` when the credential is
    rejected and ``TransientProviderError`` once their own retries for
    network or throttling failures are exhausted.
    """

    def __init__(self, credential_id: str, calendar_external_id: str):
        self.credential_id = credential_id
        self.calendar_external_id = calendar_external_id

    @abstractmethod
    async def get_all(self, window: SyncWindow) -> List[CalendarEvent]:
        """Events overlapping the window, copies included."""

    @abstractmethod
    async def get_copied_events(
        self, binding_id: str, window: Optional[SyncWindow] = None
    ) -> List[CalendarEvent]:
        """Copies tagged with the binding id, limited to the window when given."""

    @abstractmethod
    async def add(self, event: CalendarEvent) -> CalendarEvent:
        """Create the event and return it with its provider external id."""

    @abstractmethod
    async def update(self, event: CalendarEvent) -> CalendarEvent:
        """Overwrite the event identified by ``event.external_id``."""

    @abstractmethod
    async def delete(self, external_id: str) -> bool:
        """Delete an event. Returns False when it did not exist."""

    @abstractmethod
    async def get_attachments(self, external_id: str) -> List[EventAttachment]:
        ...

    @abstractmethod
    async def add_attachment(self, external_id: str, attachment: EventAttachment) -> None:
        ...

    async def find_copy(
        self, original_external_id: str, binding_id: str
    ) -> Optional[CalendarEvent]:
        """Copy of a source event made by the binding, if any."""
        for event in await self.get_copied_events(binding_id):
            if event.original_event_id == original_external_id:
                return event
        return None


class CalendarEventStoreFactory(ABC):
    """Creates stores bound to a (credential, calendar) pair."""

    @abstractmethod
    async def get_store(self, credential_id: str, calendar_external_id: str) -> CalendarEventStore:
        ...

    async def aclose(self) -> None:
        """Release connections held by stores created so far."""
        return None
