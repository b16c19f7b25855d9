"""Google OAuth token lifecycle: authorization, status, sign-out and guarded calls.

Every call that needs a Google access token goes through
`TokenLifecycleManager.with_authorized_client`. It refreshes an expired token
before the call, refreshes and retries once on a 401, and deletes the stored
record once Google has made clear the refresh token is no good anymore.
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Protocol, TypeVar

from photoevents.db import user_tokens
from photoevents.db.user_tokens import AuthStatus, CredentialRecord
from photoevents.errors import (
    NeedsReauth,
    NotAuthenticated,
    ProviderUnauthorized,
    RefreshTokenRevoked,
)
from photoevents.integrations.google import auth as google_auth
from photoevents.integrations.google.auth import GoogleToken
from photoevents.integrations.google.state import decode_state, encode_state

logger = logging.getLogger(__name__)

T = TypeVar("T")

# An operation receives a bearer token and performs one resource API call.
Operation = Callable[[str], Awaitable[T]]
Refresher = Callable[[str], Awaitable[GoogleToken]]


class CredentialStore(Protocol):
    """Durable per-user token storage, keyed by user id."""

    def get_user_token(self, user_id: str) -> CredentialRecord | None: ...

    def upsert_user_token(self, record: CredentialRecord) -> None: ...

    def delete_user_token(self, user_id: str) -> bool: ...


class OAuthProvider(Protocol):
    """The OAuth endpoints of the identity provider."""

    def build_oauth_authorize_url(
        self, redirect_uri: str, state: str | None = None
    ) -> str: ...

    async def exchange_code_for_token(
        self, code: str, redirect_uri: str | None = None
    ) -> GoogleToken: ...

    async def refresh_access_token(self, refresh_token: str) -> GoogleToken: ...


@dataclass(frozen=True)
class AuthorizedResult(Generic[T]):
    """Outcome of a guarded call.

    `refreshed` holds the credential record minted during the call, if any;
    it is the caller's job to persist it.
    """

    result: T
    refreshed: CredentialRecord | None = None


async def _refresh(record: CredentialRecord, refresh: Refresher) -> CredentialRecord:
    try:
        token = await refresh(record.refresh_token)
    except RefreshTokenRevoked as e:
        raise NeedsReauth(record.user_id, "refresh token revoked") from e
    logger.info(f"Refreshed Google access token for user_id={record.user_id}")
    return record.with_refreshed_token(
        access_token=token.access_token,
        expires_at=token.expires_at_ms(),
        refresh_token=token.refresh_token,
    )


async def call_authorized(
    record: CredentialRecord, operation: Operation[T], refresh: Refresher
) -> AuthorizedResult[T]:
    """Run `operation` with a valid access token derived from `record`.

    `record` is never mutated and nothing is persisted here. If a refresh
    succeeded but the call then fails, the refreshed record is attached to the
    propagating exception as `refreshed_record` so the caller can still store
    it; Google may have rotated the refresh token.

    Raises:
        NeedsReauth: If the token cannot be refreshed, or the operation is
            still unauthorized after one refresh
        TransientProviderError: Propagated from the refresh or the operation
    """
    current = record
    refreshed = None

    if current.is_expired() and current.has_refresh_token():
        logger.info(
            f"Access token expired for user_id={record.user_id}, refreshing proactively"
        )
        current = refreshed = await _refresh(current, refresh)

    try:
        try:
            result = await operation(current.access_token)
        except ProviderUnauthorized as e:
            if not current.has_refresh_token():
                logger.warning(
                    f"Unauthorized with no refresh token for user_id={record.user_id}"
                )
                raise NeedsReauth(
                    record.user_id, "no refresh token available", purge_record=False
                ) from e

            logger.warning(
                f"Operation unauthorized for user_id={record.user_id}, "
                f"refreshing token and retrying once"
            )
            current = refreshed = await _refresh(current, refresh)
            try:
                result = await operation(current.access_token)
            except ProviderUnauthorized as retry_error:
                raise NeedsReauth(
                    record.user_id, "still unauthorized after token refresh"
                ) from retry_error
    except Exception as e:
        if refreshed is not None and not isinstance(e, NeedsReauth):
            e.refreshed_record = refreshed  # type: ignore[attr-defined]
        raise

    return AuthorizedResult(result=result, refreshed=refreshed)


class TokenLifecycleManager:
    """Owns the stored Google credentials of each user.

    Args:
        store: Credential store. Defaults to the `user_tokens` table.
        provider: OAuth provider. Defaults to Google.
        redirect_uri: Callback URL registered with the provider. Defaults to
            GOOGLE_REDIRECT_URI. The same value is sent on the consent URL and
            on the code exchange, as Google requires.
    """

    def __init__(
        self,
        store: CredentialStore = user_tokens,  # type: ignore[assignment]
        provider: OAuthProvider = google_auth,  # type: ignore[assignment]
        redirect_uri: str | None = None,
    ):
        self.store = store
        self.provider = provider
        self.redirect_uri = redirect_uri

    def _redirect_uri(self) -> str:
        return self.redirect_uri or google_auth.GOOGLE_REDIRECT_URI

    def begin_authorization(self, user_id: str) -> str:
        """Build the consent URL for `user_id`. Does not touch the store."""
        return self.provider.build_oauth_authorize_url(
            redirect_uri=self._redirect_uri(), state=encode_state(user_id)
        )

    async def complete_authorization(self, code: str, state: str | None) -> str:
        """Exchange an authorization code and store the resulting tokens.

        Returns:
            The user id carried by `state`

        Raises:
            InvalidOAuthState: If `state` does not verify
            TransientProviderError: If the code exchange fails
            PersistenceError: If the tokens cannot be stored
        """
        user_id = decode_state(state)
        token = await self.provider.exchange_code_for_token(
            code, redirect_uri=self._redirect_uri()
        )

        if not token.refresh_token:
            logger.warning(
                f"Google did not return a refresh token for user_id={user_id}; "
                f"the user will have to sign in again when the access token expires"
            )

        self.store.upsert_user_token(
            CredentialRecord(
                user_id=user_id,
                access_token=token.access_token,
                refresh_token=token.refresh_token,
                expires_at=token.expires_at_ms(),
            )
        )
        logger.info(f"Stored Google tokens for user_id={user_id}")
        return user_id

    def get_status(self, user_id: str) -> AuthStatus:
        """Report whether `user_id` is authorized. Never refreshes."""
        record = self.store.get_user_token(user_id)
        if record is None:
            return AuthStatus(authenticated=False)
        return record.auth_status()

    def sign_out(self, user_id: str) -> None:
        """Forget the stored tokens of `user_id`. Idempotent."""
        self.store.delete_user_token(user_id)
        logger.info(f"Signed out user_id={user_id}")

    async def with_authorized_client(self, user_id: str, operation: Operation[T]) -> T:
        """Run `operation` with a valid access token for `user_id`.

        Refreshed tokens are persisted before returning, also when the call
        itself fails. A revoked refresh token or a persistent 401 deletes the
        stored record.

        Raises:
            NotAuthenticated: If no tokens are stored for `user_id`
            NeedsReauth: If the user has to go through consent again
            TransientProviderError: If Google fails in any other way
            PersistenceError: If the store cannot be read or written
        """
        record = self.store.get_user_token(user_id)
        if record is None:
            raise NotAuthenticated(user_id)

        try:
            outcome = await call_authorized(
                record, operation, self.provider.refresh_access_token
            )
        except NeedsReauth as e:
            if e.purge_record:
                logger.warning(
                    f"Deleting unusable Google tokens for user_id={user_id}: {e.reason}"
                )
                self.store.delete_user_token(user_id)
            raise
        except Exception as e:
            refreshed = getattr(e, "refreshed_record", None)
            if refreshed is not None:
                logger.info(
                    f"Storing refreshed Google tokens for user_id={user_id} "
                    f"after a failed call"
                )
                self.store.upsert_user_token(refreshed)
            raise

        if outcome.refreshed is not None:
            self.store.upsert_user_token(outcome.refreshed)
        return outcome.result
