"""Google OAuth authentication functions."""

import os
import logging
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel

from photoevents.errors import RefreshTokenRevoked, TransientProviderError
from photoevents.utils.clock import now_ms

GOOGLE_CLIENT_ID = os.environ["GOOGLE_CLIENT_ID"]
GOOGLE_CLIENT_SECRET = os.environ["GOOGLE_CLIENT_SECRET"]
GOOGLE_REDIRECT_URI = os.getenv(
    "GOOGLE_REDIRECT_URI", "http://localhost:3000/oauth2callback"
)

AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
CALENDAR_EVENTS_SCOPE = "https://www.googleapis.com/auth/calendar.events"

# Used when Google reports no lifetime at all; its access tokens last an hour.
DEFAULT_TOKEN_LIFETIME_SECONDS = 3600

logger = logging.getLogger(__name__)


class GoogleToken(BaseModel):
    """An OAuth token response from the Google token endpoint."""

    access_token: str
    refresh_token: str | None = None
    expires_in: int | None = None
    # Absolute expiry in ms since the epoch; some clients report this instead.
    expiry_date: int | None = None
    token_type: str = "Bearer"
    scope: str | None = None

    def expires_at_ms(self, now: int | None = None) -> int:
        """Absolute expiry of the access token in ms since the epoch."""
        if self.expiry_date is not None:
            return self.expiry_date
        if now is None:
            now = now_ms()
        lifetime = self.expires_in
        if lifetime is None:
            lifetime = DEFAULT_TOKEN_LIFETIME_SECONDS
        return now + lifetime * 1000


def build_oauth_authorize_url(redirect_uri: str, state: str | None = None) -> str:
    """Build the Google OAuth authorization URL.

    Args:
        redirect_uri: The redirect URI to use after authorization
        state: Optional state parameter, echoed back to the callback

    Returns:
        The authorization URL

    Raises:
        ValueError: If GOOGLE_CLIENT_ID is not configured
    """
    if not GOOGLE_CLIENT_ID:
        raise ValueError("GOOGLE_CLIENT_ID environment variable is not set")

    params = {
        "client_id": GOOGLE_CLIENT_ID,
        "redirect_uri": redirect_uri,
        "scope": CALENDAR_EVENTS_SCOPE,
        "response_type": "code",
        "access_type": "offline",  # Required to get refresh token
        "prompt": "consent",  # Force consent screen so returning users get one too
    }
    if state is not None:
        params["state"] = state

    url = f"{AUTHORIZE_URL}?{urlencode(params)}"
    logger.info(f"Building Google OAuth authorize URL for redirect_uri={redirect_uri}")
    return url


async def exchange_code_for_token(
    code: str, redirect_uri: str | None = None
) -> GoogleToken:
    """Exchange a Google authorization code for an access token.

    Args:
        code: The authorization code received on the OAuth callback
        redirect_uri: The redirect URI sent on the consent URL. Defaults to
            GOOGLE_REDIRECT_URI

    Returns:
        GoogleToken: A new token; refresh_token may be None

    Raises:
        TransientProviderError: If Google cannot be reached or rejects the code
    """
    try:
        async with httpx.AsyncClient(timeout=10) as client:
            response = await client.post(
                TOKEN_URL,
                data={
                    "client_id": GOOGLE_CLIENT_ID,
                    "client_secret": GOOGLE_CLIENT_SECRET,
                    "code": code,
                    "grant_type": "authorization_code",
                    "redirect_uri": redirect_uri or GOOGLE_REDIRECT_URI,
                },
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
    except httpx.HTTPError as e:
        logger.error(
            f"Failed to reach Google token endpoint: "
            f"exception_type={type(e).__name__}, error={e}"
        )
        raise TransientProviderError(f"Failed to reach Google: {e}") from e

    if response.status_code != 200:
        error_text = response.text
        logger.error(
            f"Failed to exchange Google code: {response.status_code} - {error_text[:500]}"
        )
        raise TransientProviderError(
            f"Failed to exchange Google code (status {response.status_code}): {error_text}",
            status_code=response.status_code,
        )

    return GoogleToken.model_validate(response.json())


async def refresh_access_token(refresh_token: str) -> GoogleToken:
    """Mint a new access token from a refresh token.

    Args:
        refresh_token: The stored refresh token

    Returns:
        GoogleToken: The new token. refresh_token is set only if Google rotated it.

    Raises:
        RefreshTokenRevoked: If Google answers invalid_grant
        TransientProviderError: For network failures and any other error response
    """
    try:
        async with httpx.AsyncClient(timeout=10) as client:
            response = await client.post(
                TOKEN_URL,
                data={
                    "client_id": GOOGLE_CLIENT_ID,
                    "client_secret": GOOGLE_CLIENT_SECRET,
                    "refresh_token": refresh_token,
                    "grant_type": "refresh_token",
                },
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
    except httpx.HTTPError as e:
        logger.error(
            f"Failed to reach Google token endpoint for refresh: "
            f"exception_type={type(e).__name__}, error={e}"
        )
        raise TransientProviderError(f"Failed to reach Google: {e}") from e

    if response.status_code == 200:
        return GoogleToken.model_validate(response.json())

    error_text = response.text
    error_data = {}
    try:
        error_data = response.json()
    except ValueError:
        logger.warning(
            f"Failed to parse token refresh error response as JSON: "
            f"raw_response={error_text[:500]}"
        )

    if isinstance(error_data, dict) and error_data.get("error") == "invalid_grant":
        logger.error(
            f"Refresh token has been expired or revoked. "
            f"status_code={response.status_code}, "
            f"error_description={error_data.get('error_description', 'N/A')}"
        )
        raise RefreshTokenRevoked("Refresh token expired or revoked")

    logger.error(
        f"Failed to refresh token: status_code={response.status_code}, "
        f"error_data={error_data}, response_text={error_text[:500]}"
    )
    raise TransientProviderError(
        f"Failed to refresh Google token (status {response.status_code})",
        status_code=response.status_code,
    )
