# This file loads env variables and must thus be imported before anything else.
from . import env_loader  # noqa: F401
from .env_loader import get_current_environment

import os
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from photoevents.errors import (
    NeedsReauth,
    NotAuthenticated,
    PersistenceError,
    TransientProviderError,
)
from .models import HealthResponse
from .routers import oauth_router, calendar_router

"""FastAPI application for the PhotoEvents calendar relay.

Brokers Google OAuth for the mobile app, stores tokens per user and exports
bookings to Google Calendar. This module configures CORS, logging and the
mapping of token errors onto HTTP responses.
"""

logger = logging.getLogger(__name__)

app = FastAPI()
app.include_router(oauth_router)
app.include_router(calendar_router)
# The mobile app calls from no fixed origin.
app.add_middleware(
    CORSMiddleware,  # type: ignore[arg-type]
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# Configure basic logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s - %(filename)s:%(lineno)d",
    datefmt="%Y-%m-%d %H:%M:%S",
)
# Configure the logging for the relay itself if the user specifies it.
if "LOG_LEVEL" in os.environ:
    match os.environ["LOG_LEVEL"].upper():
        case "DEBUG":
            log_level = logging.DEBUG
        case "INFO":
            log_level = logging.INFO
        case "WARNING":
            log_level = logging.WARNING
        case "ERROR":
            log_level = logging.ERROR
        case "CRITICAL":
            log_level = logging.CRITICAL
        case _:
            raise ValueError(f"Invalid log level: {os.environ['LOG_LEVEL']}")
    logging.getLogger("photoevents").setLevel(log_level)


@app.exception_handler(NotAuthenticated)
async def not_authenticated_handler(
    request: Request, exc: NotAuthenticated
) -> JSONResponse:
    return JSONResponse(
        status_code=401, content={"error": "Not authenticated", "needsReauth": True}
    )


@app.exception_handler(NeedsReauth)
async def needs_reauth_handler(request: Request, exc: NeedsReauth) -> JSONResponse:
    return JSONResponse(
        status_code=401,
        content={
            "error": "Token expired, please re-authenticate",
            "needsReauth": True,
        },
    )


@app.exception_handler(TransientProviderError)
async def provider_error_handler(
    request: Request, exc: TransientProviderError
) -> JSONResponse:
    logger.error(f"Google request failed on {request.url.path}: {exc}")
    return JSONResponse(status_code=502, content={"error": str(exc)})


@app.exception_handler(PersistenceError)
async def persistence_error_handler(
    request: Request, exc: PersistenceError
) -> JSONResponse:
    logger.error(f"Credential store failure on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": str(exc)})


@app.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Liveness check."""
    return HealthResponse(
        status="ok",
        message="PhotoEvents Backend Server",
        environment=get_current_environment(),
    )
