from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from photoevents.models.event import PhotoEvent
from .env_loader import EnvironmentName


class CamelModel(BaseModel):
    """Base for request/response bodies exchanged with the mobile app."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AuthUrlResponse(CamelModel):
    auth_url: str


class SignOutRequest(CamelModel):
    user_id: str | None = None


class SignOutResponse(CamelModel):
    success: bool


class CreateEventRequest(CamelModel):
    """Request model to export a booking to Google Calendar."""

    event: PhotoEvent
    user_id: str | None = None


class CreateEventResponse(CamelModel):
    success: bool
    event_id: str
    event_url: str | None = None


class HealthResponse(BaseModel):
    status: str
    message: str
    environment: EnvironmentName
