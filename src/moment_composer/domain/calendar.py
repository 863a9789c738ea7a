"""Models for calendar events."""

from pydantic import BaseModel, Field


class EventTime(BaseModel):
    """Start or end of a calendar event."""

    date_time: str
    time_zone: str | None = None


class EventAttendee(BaseModel):
    """Attendee of a calendar event."""

    email: str
    response_status: str | None = None
    display_name: str | None = None


class CalendarEvent(BaseModel):
    """Calendar event normalized from the provider payload."""

    id: str
    summary: str = "No Title"
    description: str | None = None
    location: str | None = None
    start: EventTime
    end: EventTime
    html_link: str | None = None
    created: str | None = None
    updated: str | None = None
    status: str | None = None
    attendees: list[EventAttendee] = Field(default_factory=list)


class CreateEventData(BaseModel):
    """Input for creating a calendar event."""

    title: str = "New Event"
    description: str | None = None
    location: str | None = None
    start_time: str
    end_time: str
    attendees: list[str] = Field(default_factory=list)
    time_zone: str | None = None
