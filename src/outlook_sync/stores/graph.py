"""Microsoft Graph calendar backend.

Copies are recognised through named extended properties written on the copy
itself, so the mapping survives without any local bookkeeping:

    OriginalEventId          external id of the source event
    SourceCalendarBindingId  binding that produced the copy
    ConferenceLink           copied join URL (Graph does not let clients set one)
    SourceIsRecurring        whether the source occurrence belongs to a series
"""

import base64
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import httpx
from msal import ConfidentialClientApplication
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from outlook_sync.config import Settings, get_settings
from outlook_sync.database.repositories import CredentialRepository
from outlook_sync.models.enums import EventColor, EventStatus, RsvpResponse
from outlook_sync.models.event import CalendarEvent, EventAttachment, SyncWindow
from outlook_sync.stores.base import CalendarEventStore, CalendarEventStoreFactory
from outlook_sync.utils.errors import (
    AuthenticationError,
    CalendarStoreError,
    ConfigurationError,
    TransientProviderError,
)

logger = logging.getLogger(__name__)

PROPERTY_SET_ID = "{8d2f7c43-5b1e-4f0a-9c6d-3e7a1b2c4d5f}"
ORIGINAL_EVENT_ID_PROPERTY = f"String {PROPERTY_SET_ID} Name OriginalEventId"
SOURCE_BINDING_ID_PROPERTY = f"String {PROPERTY_SET_ID} Name SourceCalendarBindingId"
CONFERENCE_LINK_PROPERTY = f"String {PROPERTY_SET_ID} Name ConferenceLink"
SOURCE_IS_RECURRING_PROPERTY = f"String {PROPERTY_SET_ID} Name SourceIsRecurring"
MARKER_PROPERTIES = (
    ORIGINAL_EVENT_ID_PROPERTY,
    SOURCE_BINDING_ID_PROPERTY,
    CONFERENCE_LINK_PROPERTY,
    SOURCE_IS_RECURRING_PROPERTY,
)

PAGE_SIZE = 100
TOKEN_REFRESH_MARGIN = timedelta(minutes=5)

_SHOW_AS_TO_STATUS = {
    "free": EventStatus.FREE,
    "tentative": EventStatus.TENTATIVE,
    "busy": EventStatus.BUSY,
    "oof": EventStatus.OUT_OF_OFFICE,
    "workingElsewhere": EventStatus.WORKING_ELSEWHERE,
}
_STATUS_TO_SHOW_AS = {status: show_as for show_as, status in _SHOW_AS_TO_STATUS.items()}

_RESPONSE_TO_RSVP = {
    "organizer": RsvpResponse.YES,
    "accepted": RsvpResponse.YES,
    "tentativelyAccepted": RsvpResponse.MAYBE,
    "declined": RsvpResponse.NO,
}

# Graph preset0..preset24 in order
_PRESET_COLORS = [color for color in EventColor if color != EventColor.NONE]


def parse_graph_datetime(value: Dict[str, Any]) -> datetime:
    """Parse a Graph dateTimeTimeZone returned in UTC.

    Graph returns seven fractional digits ("2024-05-01T09:00:00.0000000"),
    one more than ``datetime.fromisoformat`` accepts on older interpreters.
    """
    raw = value["dateTime"]
    if "." in raw:
        head, fraction = raw.split(".", 1)
        raw = f"{head}.{fraction[:6]}"
    parsed = datetime.fromisoformat(raw)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_graph_datetime(value: datetime) -> Dict[str, str]:
    return {
        "dateTime": value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S"),
        "timeZone": "UTC",
    }


def color_from_preset(preset: Optional[str]) -> EventColor:
    if not preset or not preset.startswith("preset"):
        return EventColor.NONE
    try:
        return _PRESET_COLORS[int(preset[len("preset"):])]
    except (ValueError, IndexError):
        return EventColor.NONE


class GraphCalendarEventStore(CalendarEventStore):
    """Store for one calendar reached through Microsoft Graph."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        access_token: str,
        credential_id: str,
        calendar_external_id: str,
        settings: Optional[Settings] = None,
    ):
        super().__init__(credential_id, calendar_external_id)
        self.client = client
        self.access_token = access_token
        self.settings = settings or get_settings()
        self._category_colors: Optional[Dict[str, EventColor]] = None

    # HTTP

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Prefer": 'outlook.timezone="UTC", outlook.body-content-type="text"',
        }

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = await self.client.request(method, url, headers=self._headers(), **kwargs)
        except httpx.TimeoutException as e:
            raise TransientProviderError(f"Graph request timed out: {method} {url}") from e
        except httpx.TransportError as e:
            raise TransientProviderError(f"Graph request failed: {e}") from e

        if response.status_code in (401, 403):
            raise AuthenticationError(
                f"Graph rejected credential {self.credential_id}: {response.status_code}",
                status_code=response.status_code,
            )
        if response.status_code == 429 or response.status_code >= 500:
            raise TransientProviderError(
                f"Graph returned {response.status_code} for {method} {url}",
                status_code=response.status_code,
            )
        if response.status_code >= 400:
            raise CalendarStoreError(
                f"Graph returned {response.status_code} for {method} {url}: {response.text}",
                status_code=response.status_code,
            )
        return response

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Send a request, retrying throttling and server errors with backoff."""
        async for attempt in AsyncRetrying(
            reraise=True,
            stop=stop_after_attempt(self.settings.max_retries + 1),
            wait=wait_exponential(
                multiplier=self.settings.retry_backoff_seconds,
                max=self.settings.retry_max_backoff_seconds,
            ),
            retry=retry_if_exception_type(TransientProviderError),
        ):
            with attempt:
                return await self._send(method, url, **kwargs)
        raise TransientProviderError(f"Graph retries exhausted for {method} {url}")

    async def _get_paged(self, url: str, params: Optional[Dict[str, Any]] = None) -> List[dict]:
        items: List[dict] = []
        next_url: Optional[str] = url
        while next_url:
            response = await self._request("GET", next_url, params=params)
            data = response.json()
            items.extend(data.get("value", []))
            next_url = data.get("@odata.nextLink")
            # nextLink already carries the query
            params = None
        return items

    # Mapping

    def _calendar_url(self) -> str:
        return f"/me/calendars/{self.calendar_external_id}"

    @staticmethod
    def _expand_markers() -> str:
        condition = " or ".join(f"id eq '{prop}'" for prop in MARKER_PROPERTIES)
        return f"singleValueExtendedProperties($filter={condition})"

    async def _get_category_colors(self) -> Dict[str, EventColor]:
        if self._category_colors is None:
            response = await self._request("GET", "/me/outlook/masterCategories")
            self._category_colors = {
                category.get("displayName", ""): color_from_preset(category.get("color"))
                for category in response.json().get("value", [])
            }
        return self._category_colors

    async def _to_event(self, item: dict) -> CalendarEvent:
        properties = {
            prop.get("id"): prop.get("value")
            for prop in item.get("singleValueExtendedProperties") or []
        }
        # Graph echoes property ids with its own casing
        properties = {key.lower(): value for key, value in properties.items() if key}

        categories = item.get("categories") or []
        color = EventColor.NONE
        if categories:
            colors = await self._get_category_colors()
            color = colors.get(categories[0], EventColor.NONE)

        conference_link = properties.get(CONFERENCE_LINK_PROPERTY.lower())
        if not conference_link:
            conference_link = (item.get("onlineMeeting") or {}).get("joinUrl")

        is_recurring = item.get("type") in ("occurrence", "exception", "seriesMaster")
        source_recurring = properties.get(SOURCE_IS_RECURRING_PROPERTY.lower())
        if source_recurring is not None:
            is_recurring = source_recurring == "true"

        attendees = []
        for attendee in item.get("attendees") or []:
            address = attendee.get("emailAddress") or {}
            name, email = address.get("name"), address.get("address")
            if name and email and name != email:
                attendees.append(f"{name} <{email}>")
            elif name or email:
                attendees.append(name or email)

        body = (item.get("body") or {}).get("content") or None
        location = (item.get("location") or {}).get("displayName") or None
        organizer = ((item.get("organizer") or {}).get("emailAddress") or {}).get("address")
        response = (item.get("responseStatus") or {}).get("response")

        return CalendarEvent(
            external_id=item["id"],
            calendar_id=self.calendar_external_id,
            subject=item.get("subject") or "",
            body=body,
            start=parse_graph_datetime(item["start"]),
            end=parse_graph_datetime(item["end"]),
            location=location,
            organizer=organizer,
            attendees=tuple(attendees),
            conference_link=conference_link or None,
            categories=", ".join(categories) if categories else None,
            is_all_day=bool(item.get("isAllDay")),
            is_recurring=is_recurring,
            color=color,
            status=_SHOW_AS_TO_STATUS.get(item.get("showAs"), EventStatus.BUSY),
            rsvp_status=_RESPONSE_TO_RSVP.get(response, RsvpResponse.NONE),
            is_private=item.get("sensitivity") in ("private", "confidential"),
            has_attachments=bool(item.get("hasAttachments")),
            reminder_minutes=item.get("reminderMinutesBeforeStart") if item.get("isReminderOn") else None,
            original_event_id=properties.get(ORIGINAL_EVENT_ID_PROPERTY.lower()) or None,
            source_calendar_binding_id=properties.get(SOURCE_BINDING_ID_PROPERTY.lower()) or None,
        )

    @staticmethod
    def _to_payload(event: CalendarEvent) -> dict:
        categories = []
        if event.categories:
            categories = [name.strip() for name in event.categories.split(",") if name.strip()]

        extended = [
            {"id": ORIGINAL_EVENT_ID_PROPERTY, "value": event.original_event_id or ""},
            {"id": SOURCE_BINDING_ID_PROPERTY, "value": event.source_calendar_binding_id or ""},
            {"id": CONFERENCE_LINK_PROPERTY, "value": event.conference_link or ""},
            {"id": SOURCE_IS_RECURRING_PROPERTY, "value": "true" if event.is_recurring else "false"},
        ]
        return {
            "subject": event.subject,
            "body": {"contentType": "text", "content": event.body or ""},
            "start": format_graph_datetime(event.start),
            "end": format_graph_datetime(event.end),
            "isAllDay": event.is_all_day,
            "location": {"displayName": event.location or ""},
            "attendees": [],
            "categories": categories,
            "showAs": _STATUS_TO_SHOW_AS.get(event.status, "busy"),
            "sensitivity": "private" if event.is_private else "normal",
            "isReminderOn": event.reminder_minutes is not None,
            "reminderMinutesBeforeStart": event.reminder_minutes or 0,
            "singleValueExtendedProperties": extended,
        }

    # CalendarEventStore

    async def get_all(self, window: SyncWindow) -> List[CalendarEvent]:
        items = await self._get_paged(
            f"{self._calendar_url()}/calendarView",
            params={
                "startDateTime": window.start.isoformat(),
                "endDateTime": window.end.isoformat(),
                "$top": PAGE_SIZE,
                "$expand": self._expand_markers(),
            },
        )
        events = [await self._to_event(item) for item in items if not item.get("isCancelled")]
        logger.debug(f"Fetched {len(events)} events from calendar {self.calendar_external_id}")
        return events

    async def get_copied_events(
        self, binding_id: str, window: Optional[SyncWindow] = None
    ) -> List[CalendarEvent]:
        if window is not None:
            events = await self.get_all(window)
            return [
                event
                for event in events
                if event.is_copy and event.source_calendar_binding_id == binding_id
            ]

        items = await self._get_paged(
            f"{self._calendar_url()}/events",
            params={
                "$filter": (
                    "singleValueExtendedProperties/Any(ep: "
                    f"ep/id eq '{SOURCE_BINDING_ID_PROPERTY}' and ep/value eq '{binding_id}')"
                ),
                "$top": PAGE_SIZE,
                "$expand": self._expand_markers(),
            },
        )
        return [await self._to_event(item) for item in items]

    async def add(self, event: CalendarEvent) -> CalendarEvent:
        response = await self._request(
            "POST", f"{self._calendar_url()}/events", json=self._to_payload(event)
        )
        created = response.json()
        return event.model_copy(
            update={"external_id": created["id"], "calendar_id": self.calendar_external_id}
        )

    async def update(self, event: CalendarEvent) -> CalendarEvent:
        await self._request("PATCH", f"/me/events/{event.external_id}", json=self._to_payload(event))
        return event

    async def delete(self, external_id: str) -> bool:
        try:
            await self._request("DELETE", f"/me/events/{external_id}")
        except CalendarStoreError as e:
            if e.status_code == 404:
                return False
            raise
        return True

    async def get_attachments(self, external_id: str) -> List[EventAttachment]:
        items = await self._get_paged(f"/me/events/{external_id}/attachments")
        attachments = []
        for item in items:
            if item.get("@odata.type") != "#microsoft.graph.fileAttachment":
                logger.debug(f"Skipping non-file attachment '{item.get('name')}' on {external_id}")
                continue
            attachments.append(
                EventAttachment(
                    name=item.get("name") or "attachment",
                    content_type=item.get("contentType") or "application/octet-stream",
                    content_bytes=base64.b64decode(item.get("contentBytes") or ""),
                )
            )
        return attachments

    async def add_attachment(self, external_id: str, attachment: EventAttachment) -> None:
        await self._request(
            "POST",
            f"/me/events/{external_id}/attachments",
            json={
                "@odata.type": "#microsoft.graph.fileAttachment",
                "name": attachment.name,
                "contentType": attachment.content_type,
                "contentBytes": base64.b64encode(attachment.content_bytes).decode("ascii"),
            },
        )


class GraphCalendarEventStoreFactory(CalendarEventStoreFactory):
    """Creates Graph stores for credentials stored in the database.

    Access tokens expiring within five minutes are refreshed through MSAL and
    written back through the credential repository; they are committed with
    the binding's sync outcome.
    """

    def __init__(
        self,
        credential_repository: CredentialRepository,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
        msal_app: Optional[ConfidentialClientApplication] = None,
    ):
        self.credential_repository = credential_repository
        self.settings = settings or get_settings()
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            base_url=self.settings.graph_api_url,
            timeout=self.settings.http_timeout_seconds,
        )
        self._msal_app = msal_app
        self._tokens: Dict[str, str] = {}

    def _get_msal_app(self) -> ConfidentialClientApplication:
        if self._msal_app is None:
            if not self.settings.azure_ad_client_id or not self.settings.azure_ad_tenant_id:
                raise ConfigurationError("Azure AD client and tenant must be configured for Graph")
            self._msal_app = ConfidentialClientApplication(
                client_id=self.settings.azure_ad_client_id,
                client_credential=self.settings.azure_ad_client_secret,
                authority=self.settings.azure_ad_authority,
            )
        return self._msal_app

    async def get_access_token(self, credential_id: str) -> str:
        """
        Get a valid access token for a credential, refreshing if necessary.

        Raises:
            AuthenticationError: If the credential is unknown, invalid or cannot be refreshed
        """
        if credential_id in self._tokens:
            return self._tokens[credential_id]

        credential = await self.credential_repository.get_by_id(credential_id)
        if credential is None:
            raise AuthenticationError(f"Credential {credential_id} not found")
        if credential.is_invalid:
            raise AuthenticationError(f"Credential {credential_id} is marked invalid")

        expires_at = credential.token_expires_at
        if expires_at is not None and expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        expiring = expires_at is None or expires_at <= datetime.now(timezone.utc) + TOKEN_REFRESH_MARGIN

        if credential.access_token and not expiring:
            token = credential.access_token
        else:
            token = await self._refresh(credential_id, credential.refresh_token)
        self._tokens[credential_id] = token
        return token

    async def _refresh(self, credential_id: str, refresh_token: Optional[str]) -> str:
        if not refresh_token:
            await self.credential_repository.mark_invalid(credential_id)
            raise AuthenticationError(f"No refresh token available for credential {credential_id}")

        logger.info(f"Token for credential {credential_id} is expiring, refreshing...")
        token_result = self._get_msal_app().acquire_token_by_refresh_token(
            refresh_token=refresh_token,
            scopes=self.settings.graph_scopes,
        )
        if "error" in token_result:
            await self.credential_repository.mark_invalid(credential_id)
            error_desc = token_result.get("error_description", "Unknown error")
            raise AuthenticationError(f"Token refresh failed for credential {credential_id}: {error_desc}")

        await self.credential_repository.update_tokens(
            credential_id,
            access_token=token_result["access_token"],
            refresh_token=token_result.get("refresh_token"),
            expires_at=datetime.now(timezone.utc)
            + timedelta(seconds=token_result.get("expires_in", 3600)),
        )
        return token_result["access_token"]

    async def get_store(self, credential_id: str, calendar_external_id: str) -> CalendarEventStore:
        token = await self.get_access_token(credential_id)
        return GraphCalendarEventStore(
            self.client, token, credential_id, calendar_external_id, self.settings
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()
