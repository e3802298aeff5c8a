"""
Authentication dependencies for route protection.
"""
import logging
import re
from typing import Annotated, Optional

from fastapi import Depends, Header

from studyws.core.errors import AuthError
from studyws.core.tokens import TokenType, verify_token
from studyws.dependencies.services import get_user_store
from studyws.schemas.user import AuthContext
from studyws.services.user_store import UserStore

logger = logging.getLogger(__name__)

_BEARER_RE = re.compile(r"^\s*Bearer\s+(\S+)\s*$", re.IGNORECASE)

UNAUTHENTICATED = "Invalid or missing authentication token"


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Pull the token out of an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        return None
    match = _BEARER_RE.match(authorization)
    return match.group(1) if match else None


async def get_current_user(
    users: Annotated[UserStore, Depends(get_user_store)],
    authorization: Annotated[Optional[str], Header()] = None,
) -> AuthContext:
    """
    Dependency to get the current authenticated user from the bearer token.

    Only access tokens are accepted; a refresh token never authorizes an API
    call. The returned context lives for this request only.

    Raises:
        AuthError: Missing, malformed, invalid or expired token, wrong token
            type, or the user no longer exists
    """
    token = extract_bearer_token(authorization)
    if token is None:
        raise AuthError(UNAUTHENTICATED)

    claims = verify_token(token)
    if claims is None:
        raise AuthError(UNAUTHENTICATED)

    if claims.type is not TokenType.ACCESS:
        logger.warning(f"Rejected {claims.type.value} token used as access token (user {claims.subject})")
        raise AuthError(UNAUTHENTICATED)

    user = await users.get_by_id(claims.subject)
    if user is None:
        logger.warning(f"Rejected access token for missing user {claims.subject}")
        raise AuthError(UNAUTHENTICATED)

    return AuthContext(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        registration_date=user.registration_date,
        last_access=user.last_access,
    )


# Type alias for cleaner route signatures
CurrentUser = Annotated[AuthContext, Depends(get_current_user)]
