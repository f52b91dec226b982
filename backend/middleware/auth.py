"""
Bearer token gate for protected routes.

The token is read from the ``Authorization: Bearer <token>`` header and
validated on every request; there is no server-side session state. On
success the user is stored in ``request.state.user`` for downstream handlers.
"""
from typing import Any, Dict, Optional

from fastapi import Depends, Request

from backend.services.auth_service import AuthService
from backend.services.errors import MissingToken
from backend.utils.logger import get_logger

logger = get_logger(__name__)

BEARER_PREFIX = "bearer "


def get_auth_service(request: Request) -> AuthService:
    """Return the AuthService instance attached to the application."""
    return request.app.state.auth_service


def extract_bearer_token(request: Request) -> Optional[str]:
    """
    Extract the bearer token from the Authorization header.

    Returns None when the header is missing, uses another scheme, or is blank.
    """
    header = request.headers.get("Authorization", "")
    if not header.lower().startswith(BEARER_PREFIX):
        return None
    token = header[len(BEARER_PREFIX):].strip()
    return token or None


async def authenticate_token(
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
) -> Dict[str, Any]:
    """
    FastAPI dependency guarding protected routes.

    Raises:
        MissingToken: no bearer token on the request
        InvalidToken: bad signature, malformed token, or the user is gone
        TokenExpired: the token is past its expiry
    """
    token = extract_bearer_token(request)
    if token is None:
        logger.debug(f"Rejected request without token: {request.method} {request.url.path}")
        raise MissingToken()

    user = auth_service.authenticate(token)
    request.state.user = user
    return user
