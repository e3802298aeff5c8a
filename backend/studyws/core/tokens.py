"""
Bearer token codec: issue and verify signed access/refresh tokens.

Tokens are compact JWS strings, ``header.payload.signature``, each segment
base64url without padding. The signing algorithm is pinned to HS256 and is
never taken from the token header.
"""
import logging
import secrets
from enum import Enum
from typing import Optional

from jose import JWTError, jwt
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from studyws.config import get_settings
from studyws.core.clock import unix_now

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


class TokenType(str, Enum):
    """Purpose a token was issued for."""
    ACCESS = "access"
    REFRESH = "refresh"


class TokenClaims(BaseModel):
    """Verified claim set of a bearer token."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    subject: int = Field(..., alias="sub", description="User ID")
    email: str = Field(..., description="User email at issue time")
    type: TokenType = Field(..., description="access or refresh")
    issued_at: int = Field(..., alias="iat", description="Issued at (unix seconds)")
    expires_at: int = Field(..., alias="exp", description="Expiry (unix seconds)")
    token_id: Optional[str] = Field(
        None,
        alias="jti",
        description="Random entropy carried by refresh tokens",
    )


def _issue(
    user_id: int,
    email: str,
    token_type: TokenType,
    ttl_seconds: int,
    secret: Optional[str] = None,
) -> str:
    issued_at = unix_now()
    payload = {
        # jose insists on a string subject
        "sub": str(user_id),
        "email": email,
        "type": token_type.value,
        "iat": issued_at,
        "exp": issued_at + ttl_seconds,
    }
    if token_type is TokenType.REFRESH:
        payload["jti"] = secrets.token_hex(16)

    return jwt.encode(
        payload,
        secret or get_settings().jwt_secret_key,
        algorithm=ALGORITHM,
    )


def issue_access_token(
    user_id: int,
    email: str,
    ttl_seconds: Optional[int] = None,
    secret: Optional[str] = None,
) -> str:
    """
    Create a short-lived access token.

    Args:
        user_id: Numeric user identifier
        email: User email, embedded for convenience
        ttl_seconds: Lifetime override (defaults to the configured access TTL)
        secret: Signing key override (defaults to the configured secret)

    Returns:
        Encoded token string
    """
    if ttl_seconds is None:
        ttl_seconds = get_settings().jwt_access_token_ttl_seconds
    return _issue(user_id, email, TokenType.ACCESS, ttl_seconds, secret)


def issue_refresh_token(
    user_id: int,
    email: str,
    ttl_seconds: Optional[int] = None,
    secret: Optional[str] = None,
) -> str:
    """
    Create a long-lived refresh token.

    Carries a random 128-bit ``jti`` so two tokens minted in the same second
    never collide. Server-side lookups use the hash of the whole token, not
    the ``jti``.
    """
    if ttl_seconds is None:
        ttl_seconds = get_settings().jwt_refresh_token_ttl_seconds
    return _issue(user_id, email, TokenType.REFRESH, ttl_seconds, secret)


def verify_token(token: str, secret: Optional[str] = None) -> Optional[TokenClaims]:
    """
    Verify a token's signature and expiry and return its claims.

    Every failure mode (wrong segment count, bad base64 or JSON, signature
    mismatch, disallowed algorithm, expiry, missing claims) returns None.
    The reason is logged for operators only.

    Args:
        token: Encoded token string
        secret: Verification key override (defaults to the configured secret)

    Returns:
        TokenClaims on success, None otherwise
    """
    if not isinstance(token, str) or token.count(".") != 2:
        logger.debug("Token rejected: malformed segment structure")
        return None

    try:
        payload = jwt.decode(
            token,
            secret or get_settings().jwt_secret_key,
            algorithms=[ALGORITHM],
            options={"verify_exp": False, "verify_aud": False},
        )
    except JWTError as e:
        logger.debug(f"Token rejected: {e}")
        return None

    exp = payload.get("exp")
    if not isinstance(exp, int) or exp <= unix_now():
        logger.debug("Token rejected: expired or missing exp")
        return None

    try:
        return TokenClaims.model_validate(payload)
    except PydanticValidationError as e:
        logger.debug(f"Token rejected: bad claims ({e.error_count()} errors)")
        return None
