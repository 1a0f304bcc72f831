"""
FastAPI dependencies for authentication and authorization.

The session token provider and email notifier are built once at startup and
stored on ``app.state``; these dependencies hand them to the route handlers.
"""
import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from ..core.tokens import SessionTokenProvider
from ..database import get_db
from . import repository
from .exceptions import InvalidTokenException, NotAuthenticatedException, RoleDeniedException
from .models import User, UserRole
from .utils import EmailNotifier

# Set up logging
logger = logging.getLogger(__name__)

# Bearer scheme; missing credentials are reported by get_current_user
bearer_scheme = HTTPBearer(auto_error=False)


def get_token_provider(request: Request) -> SessionTokenProvider:
    """Session token provider created at startup."""
    return request.app.state.token_provider


def get_notifier(request: Request) -> EmailNotifier:
    """Email notifier created at startup."""
    return request.app.state.notifier


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    token_provider: SessionTokenProvider = Depends(get_token_provider),
    db: Session = Depends(get_db),
) -> User:
    """
    Get the authenticated user from the bearer token.

    Args:
        credentials: Authorization header contents
        token_provider: Session token provider
        db: Database session

    Returns:
        User: Current authenticated user

    Raises:
        NotAuthenticatedException: If the token is missing, invalid, expired or its user is gone
    """
    if credentials is None:
        raise NotAuthenticatedException()

    token = credentials.credentials
    if not token_provider.validate(token):
        raise NotAuthenticatedException("Invalid or expired token")

    email = token_provider.get_email_from_token(token)
    user = repository.find_by_email(db, email)
    if not user:
        logger.warning("Valid session token for a user that no longer exists")
        raise NotAuthenticatedException("User not found")

    return user


def require_roles(*allowed_roles: UserRole):
    """
    Dependency factory to require specific roles.

    Args:
        allowed_roles: Roles that are allowed access

    Returns:
        Function that checks the role claim of the bearer token
    """
    def role_checker(
        current_user: User = Depends(get_current_user),
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
        token_provider: SessionTokenProvider = Depends(get_token_provider),
    ) -> User:
        # Authorize on the role the token was issued with
        try:
            token_role = token_provider.get_claims(credentials.credentials).role
        except InvalidTokenException:
            raise NotAuthenticatedException("Invalid or expired token")

        if token_role not in [role.value for role in allowed_roles]:
            raise RoleDeniedException(
                required_roles=[role.value for role in allowed_roles],
                user_role=token_role,
            )
        return current_user
    return role_checker


# Convenience dependencies for specific roles
require_patient = require_roles(UserRole.PATIENT)
require_doctor = require_roles(UserRole.DOCTOR)
require_admin = require_roles(UserRole.ADMIN)
