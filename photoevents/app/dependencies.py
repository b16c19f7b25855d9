from fastapi import Query

from photoevents.tokens.lifecycle import TokenLifecycleManager
from .env_loader import get_default_user_id


def token_manager() -> TokenLifecycleManager:
    """Token lifecycle manager backed by the user_tokens table and Google."""
    return TokenLifecycleManager()


def query_user_id(
    user_id: str | None = Query(None, alias="userId"),
) -> str:
    """Resolve the `userId` query parameter, falling back to the default user."""
    return user_id or get_default_user_id()
