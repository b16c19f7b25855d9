import logging
from html import escape

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from photoevents.db.user_tokens import AuthStatus
from photoevents.errors import (
    InvalidOAuthState,
    PersistenceError,
    TransientProviderError,
)
from photoevents.tokens.lifecycle import TokenLifecycleManager
from ..dependencies import token_manager, query_user_id
from ..env_loader import get_default_user_id
from ..models import AuthUrlResponse, SignOutRequest, SignOutResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["oauth"])

SUCCESS_PAGE = """
<html>
  <body>
    <h1>Authentication Successful!</h1>
    <p>You can close this window and return to the app.</p>
    <script>
      setTimeout(() => { window.close(); }, 2000);
    </script>
  </body>
</html>
"""

FAILURE_PAGE = """
<html>
  <body>
    <h1>Authentication Failed</h1>
    <p>Error: {message}</p>
  </body>
</html>
"""


def _failure_page(message: str, status_code: int) -> HTMLResponse:
    return HTMLResponse(
        FAILURE_PAGE.format(message=escape(message)), status_code=status_code
    )


@router.get("/auth/google", response_model=AuthUrlResponse)
def google_oauth_authorize(
    user_id: str = Depends(query_user_id),
    manager: TokenLifecycleManager = Depends(token_manager),
) -> AuthUrlResponse:
    """Return the Google consent URL for the mobile app to open in a browser."""
    return AuthUrlResponse(auth_url=manager.begin_authorization(user_id))


@router.get("/oauth2callback", response_class=HTMLResponse)
async def google_oauth_callback(
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    manager: TokenLifecycleManager = Depends(token_manager),
) -> HTMLResponse:
    """Google OAuth callback endpoint. Renders a page for the user's browser."""
    if error:
        logger.error(f"Google OAuth error: {error}")
        return _failure_page(f"Google OAuth authorization failed: {error}", 400)

    if code is None:
        return _failure_page("No code provided", 400)

    try:
        user_id = await manager.complete_authorization(code, state)
    except InvalidOAuthState as e:
        return _failure_page(str(e), 400)
    except (TransientProviderError, PersistenceError) as e:
        logger.error(
            f"Error completing Google authorization: "
            f"exception_type={type(e).__name__}, error={e}"
        )
        return _failure_page(str(e), 500)

    logger.info(f"Google authorization completed for user_id={user_id}")
    return HTMLResponse(SUCCESS_PAGE)


@router.get("/auth/status", response_model=AuthStatus)
def google_auth_status(
    user_id: str = Depends(query_user_id),
    manager: TokenLifecycleManager = Depends(token_manager),
) -> AuthStatus:
    """Get the current Google authorization status of a user.

    This is a pure read; it never refreshes the access token.
    """
    return manager.get_status(user_id)


@router.post("/auth/signout", response_model=SignOutResponse)
def google_sign_out(
    request: SignOutRequest | None = None,
    manager: TokenLifecycleManager = Depends(token_manager),
) -> SignOutResponse:
    """Delete the stored Google tokens of a user."""
    user_id = (request.user_id if request else None) or get_default_user_id()
    manager.sign_out(user_id)
    return SignOutResponse(success=True)
