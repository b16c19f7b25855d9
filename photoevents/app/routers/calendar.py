import logging

from fastapi import APIRouter, Depends

from photoevents.integrations.google.calendar_client import GoogleCalendarClient
from photoevents.models.event import CreatedCalendarEvent
from photoevents.tokens.lifecycle import TokenLifecycleManager
from ..dependencies import token_manager
from ..env_loader import get_default_user_id
from ..models import CreateEventRequest, CreateEventResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/calendar", tags=["calendar"])


@router.post("/create-event", response_model=CreateEventResponse)
async def create_calendar_event(
    request: CreateEventRequest,
    manager: TokenLifecycleManager = Depends(token_manager),
) -> CreateEventResponse:
    """Export a booking to the user's Google Calendar.

    Token errors are turned into JSON responses by the app's exception
    handlers: 401 with `needsReauth` when the user must sign in again.
    """
    user_id = request.user_id or get_default_user_id()

    async def insert_event(access_token: str) -> CreatedCalendarEvent:
        return await GoogleCalendarClient(access_token).create_event(request.event)

    created = await manager.with_authorized_client(user_id, insert_event)
    logger.info(f"Exported event for user_id={user_id}: event_id={created.event_id}")
    return CreateEventResponse(
        success=True, event_id=created.event_id, event_url=created.event_url
    )
