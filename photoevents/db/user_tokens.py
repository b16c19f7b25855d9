"""Database operations for per-user Google OAuth tokens."""

import logging
from dataclasses import dataclass, replace
from datetime import datetime

import psycopg
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from photoevents.errors import PersistenceError
from photoevents.utils.clock import now_ms
from .connection import get_db_cursor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CredentialRecord:
    """Google OAuth tokens stored for one user.

    Instances are immutable snapshots of a `user_tokens` row. A refresh
    produces a new record rather than mutating this one.
    """

    user_id: str
    access_token: str
    expires_at: int  # milliseconds since the epoch
    refresh_token: str | None = None
    updated_at: datetime | None = None

    def has_refresh_token(self) -> bool:
        return bool(self.refresh_token)

    def is_expired(self, now: int | None = None) -> bool:
        """Check whether the access token has expired.

        The token counts as expired from the `expires_at` instant onwards.
        """
        if now is None:
            now = now_ms()
        return self.expires_at <= now

    def with_refreshed_token(
        self, access_token: str, expires_at: int, refresh_token: str | None = None
    ) -> "CredentialRecord":
        """Return a copy holding a newly minted access token.

        The refresh token is only replaced if the provider issued a new one.
        """
        return replace(
            self,
            access_token=access_token,
            expires_at=expires_at,
            refresh_token=refresh_token or self.refresh_token,
            updated_at=None,
        )

    def auth_status(self) -> "AuthStatus":
        return AuthStatus(
            authenticated=True,
            has_refresh_token=self.has_refresh_token(),
            token_expired=now_ms() > self.expires_at,
        )


class AuthStatus(BaseModel):
    """Authorization status of a user, as reported to the mobile client."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    authenticated: bool
    has_refresh_token: bool = False
    token_expired: bool = False


def get_user_token(user_id: str) -> CredentialRecord | None:
    """Get the stored credential record for a user.

    Returns:
        CredentialRecord if found, None otherwise

    Raises:
        PersistenceError: If the database cannot be queried
    """
    try:
        with get_db_cursor() as cursor:
            cursor.execute(
                """
                SELECT user_id, access_token, refresh_token, expires_at, updated_at
                FROM user_tokens
                WHERE user_id = %s
                """,
                (user_id,),
            )
            row = cursor.fetchone()
    except psycopg.Error as e:
        logger.exception(f"Failed to read tokens for user_id={user_id}")
        raise PersistenceError(f"Failed to read stored tokens: {e}") from e

    if row is None:
        return None

    return CredentialRecord(
        user_id=row[0],
        access_token=row[1],
        refresh_token=row[2],
        expires_at=row[3],
        updated_at=row[4],
    )


def upsert_user_token(record: CredentialRecord) -> None:
    """Insert or replace the credential record for a user.

    The whole row is overwritten, including a null refresh token. Callers that
    want to keep an existing refresh token must carry it in `record`.

    Raises:
        PersistenceError: If the write fails
    """
    try:
        with get_db_cursor() as cursor:
            cursor.execute(
                """
                INSERT INTO user_tokens
                    (user_id, access_token, refresh_token, expires_at, updated_at)
                VALUES (%s, %s, %s, %s, CURRENT_TIMESTAMP)
                ON CONFLICT (user_id)
                DO UPDATE SET
                    access_token = EXCLUDED.access_token,
                    refresh_token = EXCLUDED.refresh_token,
                    expires_at = EXCLUDED.expires_at,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (
                    record.user_id,
                    record.access_token,
                    record.refresh_token,
                    record.expires_at,
                ),
            )
    except psycopg.Error as e:
        logger.exception(f"Failed to store tokens for user_id={record.user_id}")
        raise PersistenceError(f"Failed to store tokens: {e}") from e

    logger.info(f"Upserted Google tokens for user_id={record.user_id}")


def delete_user_token(user_id: str) -> bool:
    """Delete the credential record for a user.

    Deleting a record that does not exist is not an error.

    Returns:
        True if a record was deleted, False if there was none

    Raises:
        PersistenceError: If the delete fails
    """
    try:
        with get_db_cursor() as cursor:
            cursor.execute(
                "DELETE FROM user_tokens WHERE user_id = %s",
                (user_id,),
            )
            deleted = cursor.rowcount > 0
    except psycopg.Error as e:
        logger.exception(f"Failed to delete tokens for user_id={user_id}")
        raise PersistenceError(f"Failed to delete stored tokens: {e}") from e

    logger.info(f"Deleted Google tokens for user_id={user_id}: deleted={deleted}")
    return deleted
