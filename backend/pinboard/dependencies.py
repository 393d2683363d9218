"""FastAPI dependencies: service lookup and bearer-token authentication."""
import hmac
import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .errors import AccountSuspended, Forbidden, Unauthenticated
from .services.auth_gateway import AuthenticatedUser
from .services.container import Pinboard

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_pinboard(request: Request) -> Pinboard:
    return request.app.state.pinboard


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    pinboard: Pinboard = Depends(get_pinboard),
) -> AuthenticatedUser:
    """Resolve the bearer token to a user or fail with 401."""
    if credentials is None or not credentials.credentials.strip():
        raise Unauthenticated("Authentication required.")

    user = await pinboard.auth_gateway.resolve_user(credentials.credentials.strip())
    if user is None:
        raise Unauthenticated("Invalid login token.")
    return user


async def get_writing_user(user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
    """Authenticated user who is allowed to write (not muted or banned)."""
    if user.is_suspended:
        logger.info(f"Write rejected for suspended account {user.email} ({user.status})")
        raise AccountSuspended()
    return user


async def require_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    pinboard: Pinboard = Depends(get_pinboard),
) -> None:
    """Admin endpoints accept only the configured admin token."""
    expected = pinboard.settings.admin_api_token
    if not expected:
        raise Forbidden("Admin API is disabled.")
    if credentials is None:
        raise Unauthenticated("Authentication required.")
    if not hmac.compare_digest(credentials.credentials.strip(), expected):
        raise Forbidden("Invalid admin token.")
