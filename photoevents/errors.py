"""Exceptions raised by the token lifecycle and its collaborators.

The HTTP layer maps each of these onto a status code and a JSON error body,
so the mobile client can tell "sign in again" apart from "try again later".
"""


class PhotoEventsError(Exception):
    """Base class for errors raised by the PhotoEvents relay."""


class NotAuthenticated(PhotoEventsError):
    """No credential record exists for the user."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User {user_id!r} has not authorized Google Calendar")


class NeedsReauth(PhotoEventsError):
    """A credential record existed but can no longer be used.

    `purge_record` says whether the stale record should be deleted. It is False
    only when the record has no refresh token, which is a permanent limitation
    of that record rather than a revocation.
    """

    def __init__(self, user_id: str, reason: str, purge_record: bool = True):
        self.user_id = user_id
        self.reason = reason
        self.purge_record = purge_record
        super().__init__(f"Re-authorization required for user {user_id!r}: {reason}")


class TransientProviderError(PhotoEventsError):
    """Google returned an unexpected response or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class PersistenceError(PhotoEventsError):
    """The credential store could not be read or written."""


class ProviderUnauthorized(PhotoEventsError):
    """A resource API call was rejected with HTTP 401."""


class RefreshTokenRevoked(PhotoEventsError):
    """The token endpoint rejected a refresh token with `invalid_grant`."""


class InvalidOAuthState(PhotoEventsError):
    """The `state` parameter of an OAuth callback is missing, forged or expired."""
