"""In-memory stand-ins for the credential store and the Google provider."""

from photoevents.db.user_tokens import CredentialRecord
from photoevents.integrations.google.auth import GoogleToken
from photoevents.utils.clock import now_ms

HOUR_MS = 3600 * 1000


def make_record(
    user_id: str = "mobile-user",
    access_token: str = "access-0",
    refresh_token: str | None = "refresh-0",
    expires_in_ms: int = HOUR_MS,
) -> CredentialRecord:
    """Create a credential record expiring `expires_in_ms` from now."""
    return CredentialRecord(
        user_id=user_id,
        access_token=access_token,
        refresh_token=refresh_token,
        expires_at=now_ms() + expires_in_ms,
    )


class FakeTokenStore:
    """Dict-backed credential store with the user_tokens function names."""

    def __init__(self, *records: CredentialRecord):
        self.records = {record.user_id: record for record in records}
        self.upserts: list[CredentialRecord] = []
        self.deletes: list[str] = []

    def get_user_token(self, user_id: str) -> CredentialRecord | None:
        return self.records.get(user_id)

    def upsert_user_token(self, record: CredentialRecord) -> None:
        self.upserts.append(record)
        self.records[record.user_id] = record

    def delete_user_token(self, user_id: str) -> bool:
        self.deletes.append(user_id)
        return self.records.pop(user_id, None) is not None


class FakeGoogleProvider:
    """Scripted Google OAuth endpoints.

    `refresh_results` is consumed in order; an exception instance is raised
    instead of returned. Once exhausted, each refresh mints `refreshed-<n>`.
    """

    def __init__(
        self,
        exchange_token: GoogleToken | None = None,
        refresh_results: list | None = None,
    ):
        self.exchange_token = exchange_token or GoogleToken(
            access_token="access-1", refresh_token="refresh-1", expires_in=3600
        )
        self.refresh_results = list(refresh_results or [])
        self.exchanged_codes: list[str] = []
        self.exchange_redirect_uris: list[str | None] = []
        self.refresh_calls: list[str] = []
        self.authorize_calls: list[dict] = []

    def build_oauth_authorize_url(self, redirect_uri: str, state: str | None = None) -> str:
        self.authorize_calls.append({"redirect_uri": redirect_uri, "state": state})
        return f"https://accounts.example.com/auth?state={state}"

    async def exchange_code_for_token(
        self, code: str, redirect_uri: str | None = None
    ) -> GoogleToken:
        self.exchanged_codes.append(code)
        self.exchange_redirect_uris.append(redirect_uri)
        return self.exchange_token

    async def refresh_access_token(self, refresh_token: str) -> GoogleToken:
        self.refresh_calls.append(refresh_token)
        if self.refresh_results:
            result = self.refresh_results.pop(0)
        else:
            result = GoogleToken(
                access_token=f"refreshed-{len(self.refresh_calls)}", expires_in=3600
            )
        if isinstance(result, Exception):
            raise result
        return result


class RecordingOperation:
    """An authorized operation that replays scripted outcomes.

    Each outcome is returned, or raised if it is an exception. The access
    token of every invocation is recorded.
    """

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.tokens: list[str] = []

    async def __call__(self, access_token: str):
        self.tokens.append(access_token)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome
