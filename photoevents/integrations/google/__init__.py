from . import auth, state
from .calendar_client import GoogleCalendarClient

__all__ = ["auth", "state", "GoogleCalendarClient"]
