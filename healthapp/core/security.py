"""
Core security utilities for password hashing and single-use token generation.
"""
from datetime import datetime, timedelta, timezone
import secrets
import logging

from passlib.context import CryptContext

# Set up logging
logger = logging.getLogger(__name__)

# bcrypt only uses the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def _truncate_password(password: str) -> str:
    """Trim a password to bcrypt's 72-byte limit without splitting a UTF-8 sequence."""
    encoded = password.encode("utf-8")
    if len(encoded) > BCRYPT_MAX_BYTES:
        return encoded[:BCRYPT_MAX_BYTES].decode("utf-8", errors="ignore")
    return password


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        str: Hashed password with the salt embedded
    """
    return pwd_context.hash(_truncate_password(password))


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against a hash.

    Args:
        plain_password: Plain text password
        hashed_password: Hashed password to compare against

    Returns:
        bool: True if password matches hash, False on mismatch or malformed hash
    """
    try:
        return pwd_context.verify(_truncate_password(plain_password), hashed_password)
    except (ValueError, TypeError) as e:
        logger.warning(f"Password verification failed on malformed hash: {str(e)}")
        return False


_dummy_hash = None


def verify_dummy_password(plain_password: str) -> bool:
    """
    Spend the same bcrypt work as verify_password when there is no stored hash.

    Used on failed lookups so an unknown email takes as long to reject as a
    wrong password. Always returns False.
    """
    global _dummy_hash
    if _dummy_hash is None:
        _dummy_hash = hash_password(generate_secure_token())
    pwd_context.verify(_truncate_password(plain_password), _dummy_hash)
    return False


def generate_secure_token() -> str:
    """
    Generate an unguessable URL-safe token for email verification or password reset.

    Returns:
        str: 256-bit random token
    """
    return secrets.token_urlsafe(32)


def get_token_expiry_time(hours: int = 24) -> datetime:
    """
    Get token expiration time.

    Args:
        hours: Hours until expiration

    Returns:
        datetime: Expiration time (UTC)
    """
    return datetime.now(timezone.utc) + timedelta(hours=hours)


def is_token_expired(expiry_time: datetime) -> bool:
    """
    Check if a token has expired.

    A token is no longer usable at the exact expiry instant. Naive datetimes
    (as returned by SQLite) are treated as UTC.

    Args:
        expiry_time: Token expiration time

    Returns:
        bool: True if token has expired
    """
    if expiry_time.tzinfo is None:
        expiry_time = expiry_time.replace(tzinfo=timezone.utc)
    return datetime.now(timezone.utc) >= expiry_time
