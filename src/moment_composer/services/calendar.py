"""Calendar facade backed by the shared token vault."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Protocol
from zoneinfo import ZoneInfo

import httpx
from pydantic import ValidationError

from moment_composer.domain.auth import OAuthTokenSet
from moment_composer.domain.calendar import CalendarEvent, CreateEventData
from moment_composer.errors import ExternalServiceError
from moment_composer.services.token_vault import TokenVault

DEFAULT_EVENT_DESCRIPTION = "Created by Moment Composer"

_logger = logging.getLogger(__name__)


class CalendarClient(Protocol):
    """Interface for calendar API calls."""

    async def list_events(
        self, access_token: str, time_min: str, time_max: str, max_results: int
    ) -> dict[str, object]:
        """List events in a time range."""

    async def insert_event(
        self, access_token: str, event: dict[str, object]
    ) -> dict[str, object]:
        """Create an event and return the provider payload."""


@dataclass
class CalendarService:
    """Calendar access plus the OAuth entry points for the Google account."""

    client: CalendarClient
    vault: TokenVault
    time_zone: str = "UTC"
    max_results: int = 50

    @property
    def is_configured(self) -> bool:
        """Return true when OAuth client credentials are available."""
        return self.vault.is_configured

    def is_authorized(self, user_id: str) -> bool:
        """Return true when the user has calendar credentials."""
        return self.vault.is_authorized(user_id)

    def generate_authorization_url(self, user_id: str) -> str | None:
        """Return the consent URL for the user."""
        return self.vault.generate_authorization_url(user_id)

    async def complete_authorization(self, code: str, user_id: str) -> bool:
        """Finish the OAuth flow for the user."""
        return await self.vault.complete_authorization(code, user_id)

    async def revoke(self, user_id: str) -> None:
        """Disconnect the user's Google account."""
        await self.vault.revoke(user_id)

    async def get_events(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[CalendarEvent]:
        """Return events between two instants, ordered by start time."""

        async def fetch(tokens: OAuthTokenSet) -> list[CalendarEvent]:
            payload = await self.client.list_events(
                tokens.access_token,
                time_min=start.isoformat(),
                time_max=end.isoformat(),
                max_results=self.max_results,
            )
            events: list[CalendarEvent] = []
            for item in payload.get("items") or []:
                event = parse_event(item)
                if event is not None:
                    events.append(event)
            return events

        try:
            result = await self.vault.with_credentials(user_id, fetch)
        except (ExternalServiceError, httpx.HTTPError):
            _logger.exception("Failed to fetch calendar events for user %s", user_id)
            return []
        return result or []

    async def get_todays_events(self, user_id: str) -> list[CalendarEvent]:
        """Return events for the current day in the service time zone."""
        now = datetime.now(tz=ZoneInfo(self.time_zone))
        start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        return await self.get_events(user_id, start, start + timedelta(days=1))

    async def get_upcoming_events(
        self, user_id: str, days: int = 7
    ) -> list[CalendarEvent]:
        """Return events from now until ``days`` days ahead."""
        now = datetime.now(tz=ZoneInfo(self.time_zone))
        return await self.get_events(user_id, now, now + timedelta(days=days))

    async def create_event(
        self, user_id: str, data: CreateEventData
    ) -> CalendarEvent | None:
        """Create an event; equal start and end times get a one-hour slot."""
        try:
            body = self._event_body(data)
        except ValueError:
            _logger.warning("Invalid event times for user %s: %s", user_id, data)
            return None

        async def insert(tokens: OAuthTokenSet) -> CalendarEvent | None:
            payload = await self.client.insert_event(tokens.access_token, body)
            return parse_event(payload)

        try:
            created = await self.vault.with_credentials(user_id, insert)
        except (ExternalServiceError, httpx.HTTPError):
            _logger.exception("Failed to create calendar event for user %s", user_id)
            return None
        if created is not None:
            _logger.info("Created calendar event %s for user %s", created.id, user_id)
        return created

    def _event_body(self, data: CreateEventData) -> dict[str, object]:
        start = datetime.fromisoformat(data.start_time)
        end = datetime.fromisoformat(data.end_time)
        if start == end:
            end = start + timedelta(hours=1)
        time_zone = data.time_zone or self.time_zone
        return {
            "summary": data.title,
            "description": data.description or DEFAULT_EVENT_DESCRIPTION,
            "location": data.location or "",
            "start": {"dateTime": start.isoformat(), "timeZone": time_zone},
            "end": {"dateTime": end.isoformat(), "timeZone": time_zone},
            "attendees": [{"email": email} for email in data.attendees],
            "reminders": {"useDefault": True},
        }


def parse_event(item: object) -> CalendarEvent | None:
    """Normalize a Google Calendar event payload."""
    if not isinstance(item, dict):
        return None
    start = item.get("start") or {}
    end = item.get("end") or {}
    try:
        return CalendarEvent.model_validate(
            {
                "id": item.get("id"),
                "summary": item.get("summary") or "No Title",
                "description": item.get("description"),
                "location": item.get("location"),
                "start": {
                    "date_time": start.get("dateTime") or start.get("date"),
                    "time_zone": start.get("timeZone"),
                },
                "end": {
                    "date_time": end.get("dateTime") or end.get("date"),
                    "time_zone": end.get("timeZone"),
                },
                "html_link": item.get("htmlLink"),
                "created": item.get("created"),
                "updated": item.get("updated"),
                "status": item.get("status"),
                "attendees": [
                    {
                        "email": attendee.get("email", ""),
                        "response_status": attendee.get("responseStatus"),
                        "display_name": attendee.get("displayName"),
                    }
                    for attendee in item.get("attendees") or []
                    if isinstance(attendee, dict)
                ],
            }
        )
    except ValidationError:
        _logger.warning("Skipping malformed calendar event %s", item.get("id"))
        return None
