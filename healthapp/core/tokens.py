"""
Signed session token creation and verification.

Session tokens are compact HS256 JWS strings carrying the user's email as
subject plus the user id and role as custom claims. The signing key is
handed to SessionTokenProvider once at startup; rotating it invalidates every
outstanding token.
"""
import base64
import binascii
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from pydantic import BaseModel

from ..auth.exceptions import InvalidTokenException

# Set up logging
logger = logging.getLogger(__name__)


class SessionClaims(BaseModel):
    """Verified claim set of a session token."""

    sub: str  # Email
    user_id: str
    role: str
    iat: datetime
    exp: datetime


def _is_canonical_segment(segment: str) -> bool:
    """Check that a token segment is unpadded base64url that re-encodes to itself."""
    try:
        raw = base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))
    except (binascii.Error, ValueError):
        return False
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii") == segment


def _has_compact_structure(token: str) -> bool:
    """Three non-empty dot-separated base64url segments."""
    if not isinstance(token, str):
        return False
    segments = token.split(".")
    if len(segments) != 3:
        return False
    return all(segment and _is_canonical_segment(segment) for segment in segments)


class SessionTokenProvider:
    """
    Issues and validates signed session tokens.

    One instance is built at application startup from settings and shared
    read-only by every request.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_minutes: int = 1440):
        if not secret_key:
            raise ValueError("A signing key is required for session tokens")
        self._secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    def issue(self, user, expires_delta: Optional[timedelta] = None) -> str:
        """
        Create a session token for an authenticated user.

        Args:
            user: User whose identity and role are encoded
            expires_delta: Optional custom lifetime (default: expire_minutes)

        Returns:
            str: Encoded token
        """
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(minutes=self.expire_minutes))
        role = user.role.value if hasattr(user.role, "value") else str(user.role)

        payload = {
            "sub": user.email,
            "userId": str(user.id),
            "role": role,
            "iat": int(now.timestamp()),
            "exp": int(expire.timestamp()),
        }
        return jwt.encode(payload, self._secret_key, algorithm=self.algorithm)

    def _decode(self, token: str, verify_exp: bool = True) -> Dict[str, Any]:
        if not _has_compact_structure(token):
            raise JWTError("Malformed token")
        return jwt.decode(
            token,
            self._secret_key,
            algorithms=[self.algorithm],
            options={"verify_exp": verify_exp},
        )

    def validate(self, token: str) -> bool:
        """
        Validate token structure, signature and expiration.

        Args:
            token: Session token string

        Returns:
            bool: True if valid, False if malformed, tampered or expired
        """
        try:
            self._decode(token)
            return True
        except JWTError as e:
            logger.info(f"Invalid session token: {str(e)}")
        return False

    def get_email_from_token(self, token: str) -> str:
        """
        Extract the subject (email) from a token whose signature is intact.

        Expiry is not checked here; callers gate access with validate() first.

        Raises:
            InvalidTokenException: If the token is malformed or its signature is wrong
        """
        try:
            payload = self._decode(token, verify_exp=False)
        except JWTError:
            raise InvalidTokenException("Invalid session token")
        subject = payload.get("sub")
        if not subject:
            raise InvalidTokenException("Session token has no subject")
        return subject

    def get_claims(self, token: str) -> SessionClaims:
        """
        Decode and fully verify a token into its claim set.

        Raises:
            InvalidTokenException: If the token is invalid, expired or missing claims
        """
        try:
            payload = self._decode(token)
            return SessionClaims(
                sub=payload["sub"],
                user_id=payload["userId"],
                role=payload["role"],
                iat=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
                exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            )
        except (JWTError, KeyError, TypeError) as e:
            logger.info(f"Rejected session token claims: {str(e)}")
            raise InvalidTokenException("Invalid session token")
