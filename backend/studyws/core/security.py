"""
Security utilities for password hashing and refresh-token fingerprints.
"""
import hashlib
import logging
from functools import lru_cache
from typing import Optional

from passlib.context import CryptContext
from passlib.exc import PasswordValueError

from studyws.config import get_settings
from studyws.core.errors import ValidationError

logger = logging.getLogger(__name__)


@lru_cache
def get_pwd_context() -> CryptContext:
    """Password hashing context using bcrypt with the configured cost."""
    settings = get_settings()
    return CryptContext(
        schemes=["bcrypt"],
        deprecated="auto",
        bcrypt__rounds=settings.bcrypt_rounds,
    )


def hash_password(plain_password: str) -> str:
    """
    Hash a plain password using bcrypt.

    Args:
        plain_password: The plain text password to hash

    Returns:
        Hashed password string

    Raises:
        ValidationError: The password cannot be hashed by bcrypt
    """
    try:
        return get_pwd_context().hash(plain_password)
    except PasswordValueError as e:
        raise ValidationError(f"Invalid password: {e}")


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """
    Verify a plain password against a hashed password.

    Comparison is delegated to bcrypt. A missing hash still burns one
    bcrypt round-trip so unknown accounts are not faster to reject, and a
    malformed hash is reported as a plain mismatch.

    Args:
        plain_password: The plain text password to verify
        hashed_password: The stored hash, or None when there is no account

    Returns:
        True if password matches, False otherwise
    """
    context = get_pwd_context()
    if hashed_password is None:
        context.dummy_verify()
        return False

    try:
        return context.verify(plain_password, hashed_password)
    except (ValueError, TypeError) as e:
        logger.warning(f"Unusable password hash rejected: {type(e).__name__}")
        return False


def hash_refresh_token(token: str) -> str:
    """SHA-256 hex digest of a raw refresh token, the only form we persist."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
