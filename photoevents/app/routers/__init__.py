from .oauth import router as oauth_router
from .calendar import router as calendar_router

__all__ = [
    "oauth_router",
    "calendar_router",
]
