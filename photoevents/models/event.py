from datetime import datetime, timedelta

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# Bookings carry only a start time; the calendar entry blocks two hours.
DEFAULT_EVENT_DURATION = timedelta(hours=2)


class PhotoEvent(BaseModel):
    """A booked photography event, as sent by the mobile app for export."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str
    scheduled_time: datetime
    category: str | None = None
    location: str | None = None
    contact_name: str | None = None
    phone: str | None = None
    notes: str | None = None

    @property
    def end_time(self) -> datetime:
        return self.scheduled_time + DEFAULT_EVENT_DURATION

    def description(self) -> str:
        return (
            f"Event Type: {self.category or 'Not specified'}\n"
            f"Contact: {self.contact_name or ''}\n"
            f"Phone: {self.phone or ''}\n"
            f"\n"
            f"Notes: {self.notes or 'None'}"
        )


class CreatedCalendarEvent(BaseModel):
    """A Google Calendar event created from a PhotoEvent."""

    event_id: str
    event_url: str | None = None
