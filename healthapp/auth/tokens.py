"""
Single-use tokens for email verification and password reset.

A token is stored on the user row next to its absolute expiry. Issuing a new
token of the same purpose overwrites the previous one; consuming a token
clears it with a compare-and-set update so it can never be used twice.
"""
import enum
import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..config import settings
from ..core.security import generate_secure_token, get_token_expiry_time, is_token_expired
from .exceptions import InvalidTokenException, TokenExpiredException
from .models import User

# Set up logging
logger = logging.getLogger(__name__)


class TokenPurpose(str, enum.Enum):
    """What a single-use token authorizes."""
    VERIFY_EMAIL = "verify_email"
    RESET_PASSWORD = "reset_password"


# purpose -> (token column, expiry column, label used in messages)
_TOKEN_FIELDS = {
    TokenPurpose.VERIFY_EMAIL: ("verification_token", "verification_token_expires_at", "verification"),
    TokenPurpose.RESET_PASSWORD: ("reset_token", "reset_token_expires_at", "reset"),
}


def issue_token(user: User, purpose: TokenPurpose, ttl_hours: Optional[int] = None) -> str:
    """
    Generate a token for the given purpose and store it on the user.

    The caller is responsible for committing the user.

    Args:
        user: User receiving the token
        purpose: Verification or password reset
        ttl_hours: Lifetime in hours (default: single_use_token_expire_hours)

    Returns:
        str: The plaintext token to deliver by email
    """
    token_field, expiry_field, _ = _TOKEN_FIELDS[purpose]
    token = generate_secure_token()
    setattr(user, token_field, token)
    setattr(user, expiry_field, get_token_expiry_time(ttl_hours or settings.single_use_token_expire_hours))
    return token


def consume_token(db: Session, token: str, purpose: TokenPurpose) -> User:
    """
    Redeem a single-use token.

    The token is cleared inside the current transaction; the caller commits
    it together with the state change the token authorizes.

    Args:
        db: Database session
        token: Token received from the client
        purpose: Expected purpose of the token

    Returns:
        User: The user the token belonged to, with the token cleared

    Raises:
        InvalidTokenException: If no user holds the token, or it was consumed concurrently
        TokenExpiredException: If the token has expired (the stored token is left in place)
    """
    token_field, expiry_field, label = _TOKEN_FIELDS[purpose]
    token_column = getattr(User, token_field)
    expiry_column = getattr(User, expiry_field)

    if not token:
        raise InvalidTokenException(f"Invalid {label} token")

    user = db.query(User).filter(token_column == token).first()
    if not user:
        logger.warning(f"Rejected unknown {label} token")
        raise InvalidTokenException(f"Invalid {label} token")

    expires_at = getattr(user, expiry_field)
    if expires_at is None or is_token_expired(expires_at):
        logger.warning(f"Rejected expired {label} token for user {user.id}")
        raise TokenExpiredException(f"{label.capitalize()} token has expired")

    # Compare-and-set: only one concurrent consumer can clear the token
    cleared = (
        db.query(User)
        .filter(User.id == user.id, token_column == token)
        .update({token_column: None, expiry_column: None}, synchronize_session=False)
    )
    if cleared != 1:
        db.rollback()
        logger.warning(f"{label.capitalize()} token for user {user.id} was consumed concurrently")
        raise InvalidTokenException(f"Invalid {label} token")

    db.refresh(user)
    return user
