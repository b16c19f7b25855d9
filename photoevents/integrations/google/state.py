"""Signed OAuth `state` values carrying the user id through the consent screen."""

import os
import logging
from datetime import datetime, timedelta, timezone

import jwt

from photoevents.errors import InvalidOAuthState

OAUTH_STATE_SECRET = os.environ["OAUTH_STATE_SECRET"]
STATE_LIFETIME = timedelta(minutes=10)
STATE_ALGORITHM = "HS256"

logger = logging.getLogger(__name__)


def encode_state(user_id: str) -> str:
    """Sign a short-lived state token for `user_id`."""
    now = datetime.now(timezone.utc)
    return jwt.encode(
        {"sub": user_id, "iat": now, "exp": now + STATE_LIFETIME},
        OAUTH_STATE_SECRET,
        algorithm=STATE_ALGORITHM,
    )


def decode_state(state: str | None) -> str:
    """Verify a state token and return the user id it carries.

    Raises:
        InvalidOAuthState: If the state is missing, tampered with or expired
    """
    if not state:
        raise InvalidOAuthState("Missing OAuth state")
    try:
        claims = jwt.decode(
            state,
            OAUTH_STATE_SECRET,
            algorithms=[STATE_ALGORITHM],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError as e:
        logger.warning("OAuth state expired")
        raise InvalidOAuthState("OAuth state expired, please start again") from e
    except jwt.InvalidTokenError as e:
        logger.warning(f"Invalid OAuth state: {e}")
        raise InvalidOAuthState("Invalid OAuth state") from e
    return claims["sub"]
