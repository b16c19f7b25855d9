import os

import pytest

# Required settings must exist before any photoevents module is imported.
os.environ.setdefault("ENV", "dev")
os.environ.setdefault("DATABASE_URL", "postgresql://localhost/photoevents_test")
os.environ.setdefault("GOOGLE_CLIENT_ID", "test_client_id")
os.environ.setdefault("GOOGLE_CLIENT_SECRET", "test_client_secret")
os.environ.setdefault("OAUTH_STATE_SECRET", "test_state_secret_0123456789abcdef")

from photoevents.app import env_loader  # noqa: F401, E402

from ._fakes import FakeGoogleProvider, FakeTokenStore  # noqa: E402


class AccidentalDatabaseAccessError(Exception):
    """Raised when a unit test accidentally tries to access the database."""

    pass


def _raise_db_access_error(*args, **kwargs):
    """Raise an error when DB access is attempted in unit tests."""
    raise AccidentalDatabaseAccessError(
        "Unit test attempted to connect to the database! "
        "Either mock the database call with @patch('photoevents.db.user_tokens.get_db_cursor') "
        "or similar, or mark this test as @pytest.mark.e2e if it requires real DB access."
    )


@pytest.fixture(autouse=True)
def prevent_db_access_in_unit_tests(request, monkeypatch):
    """Prevent accidental database access in unit tests.

    For tests marked e2e or integration this does nothing. For all other tests
    psycopg.connect is patched to raise a clear error.
    """
    markers = [marker.name for marker in request.node.iter_markers()]
    if "e2e" in markers or "integration" in markers:
        yield
        return

    monkeypatch.setattr("psycopg.connect", _raise_db_access_error)
    yield


@pytest.fixture
def token_store() -> FakeTokenStore:
    return FakeTokenStore()


@pytest.fixture
def google_provider() -> FakeGoogleProvider:
    return FakeGoogleProvider()
