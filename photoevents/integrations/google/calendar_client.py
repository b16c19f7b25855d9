"""Google Calendar API client for exporting booked events."""

import os
import logging
from dataclasses import dataclass, field
from typing import Any, Dict

import httpx

from photoevents.errors import ProviderUnauthorized, TransientProviderError
from photoevents.models.event import PhotoEvent, CreatedCalendarEvent

logger = logging.getLogger(__name__)

BASE_URL = "https://www.googleapis.com/calendar/v3"


def _calendar_id() -> str:
    # Allow selecting a dedicated bookings calendar; default to primary.
    return os.getenv("GOOGLE_CALENDAR_ID") or "primary"


def _calendar_time_zone() -> str:
    return os.getenv("CALENDAR_TIME_ZONE") or "America/New_York"


@dataclass
class GoogleCalendarClient:
    """Client for the Google Calendar API bound to a single access token.

    The client never refreshes tokens itself. A 401 surfaces as
    ProviderUnauthorized so the caller can refresh and retry.
    """

    access_token: str
    calendar_id: str = field(default_factory=_calendar_id)
    time_zone: str = field(default_factory=_calendar_time_zone)
    base_url: str = BASE_URL

    def _get_headers(self) -> Dict[str, str]:
        """Get headers for API requests."""
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
        }

    def build_event_body(self, event: PhotoEvent) -> Dict[str, Any]:
        """Translate a booked event into a Calendar API event resource."""
        return {
            "summary": event.name,
            "location": event.location or "",
            "description": event.description(),
            "start": {
                "dateTime": event.scheduled_time.isoformat(),
                "timeZone": self.time_zone,
            },
            "end": {
                "dateTime": event.end_time.isoformat(),
                "timeZone": self.time_zone,
            },
        }

    async def create_event(self, event: PhotoEvent) -> CreatedCalendarEvent:
        """Create a calendar event for a booking.

        Raises:
            ProviderUnauthorized: If Google rejects the access token (401)
            TransientProviderError: For network failures and other error responses
        """
        url = f"{self.base_url}/calendars/{self.calendar_id}/events"
        try:
            async with httpx.AsyncClient(timeout=10) as client:
                response = await client.post(
                    url, json=self.build_event_body(event), headers=self._get_headers()
                )
        except httpx.HTTPError as e:
            logger.error(
                f"Failed to reach Google Calendar: calendar_id={self.calendar_id}, "
                f"exception_type={type(e).__name__}, error={e}"
            )
            raise TransientProviderError(f"Failed to reach Google Calendar: {e}") from e

        if response.status_code == 401:
            logger.warning(
                f"Received 401 Unauthorized creating event in calendar_id={self.calendar_id}"
            )
            raise ProviderUnauthorized("Google Calendar rejected the access token")

        if not 200 <= response.status_code < 300:
            error_text = response.text
            logger.error(
                f"Failed to create calendar event: calendar_id={self.calendar_id}, "
                f"status_code={response.status_code}, response_text={error_text[:500]}"
            )
            raise TransientProviderError(
                f"Failed to create calendar event (status {response.status_code})",
                status_code=response.status_code,
            )

        data = response.json()
        created = CreatedCalendarEvent(
            event_id=data["id"], event_url=data.get("htmlLink")
        )
        logger.info(
            f"Successfully created calendar event: event_id={created.event_id}, "
            f"calendar_id={self.calendar_id}"
        )
        return created
