from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from photoevents.app.app import app
from photoevents.app.dependencies import token_manager
from photoevents.tokens.lifecycle import TokenLifecycleManager

from .._fakes import FakeGoogleProvider, FakeTokenStore


@pytest.fixture
def client(
    token_store: FakeTokenStore, google_provider: FakeGoogleProvider
) -> Iterator[TestClient]:
    """Test client whose token manager uses in-memory fakes."""

    def fake_manager() -> TokenLifecycleManager:
        return TokenLifecycleManager(
            store=token_store,
            provider=google_provider,
            redirect_uri="https://relay.example.com/oauth2callback",
        )

    app.dependency_overrides[token_manager] = fake_manager
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
