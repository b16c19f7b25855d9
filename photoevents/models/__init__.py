from .event import PhotoEvent, CreatedCalendarEvent

__all__ = ["PhotoEvent", "CreatedCalendarEvent"]
