"""
Authentication service layer for the identity lifecycle.

Registration, email verification, login and password recovery. Every
operation runs in the request's database session and either commits its
whole unit of work or rolls it back; notifications are queued on FastAPI
background tasks and never affect the outcome.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import BackgroundTasks
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.security import hash_password, verify_dummy_password, verify_password
from ..core.tokens import SessionTokenProvider
from ..doctors.service import create_doctor_profile, license_number_exists
from ..patients.service import create_patient_profile, get_first_name
from . import repository
from .exceptions import (
    EmailAlreadyExistsException,
    EmailNotVerifiedException,
    InvalidCredentialsException,
    RegistrationValidationException,
    ResourceNotFoundException,
)
from .models import User, UserRole
from .schemas import PASSWORD_PATTERN, DoctorProfile, LoginResponse, parse_registration_profile
from .tokens import TokenPurpose, consume_token, issue_token
from .utils import EmailNotifier

# Set up logging
logger = logging.getLogger(__name__)

REGISTRATION_MESSAGE = "Registration successful! Please check your email to verify your account."
VERIFICATION_MESSAGE = "Email verified successfully! You can now login."
RESET_LINK_MESSAGE = "Password reset link sent to your email"
RESET_MESSAGE = "Password reset successful! You can now login."
LOGOUT_MESSAGE = "Logout successful"
WEAK_PASSWORD_MESSAGE = "Password must be at least 8 characters with 1 uppercase letter and 1 number"
DUPLICATE_LICENSE_MESSAGE = "License number already registered"


async def _dispatch(background_tasks: Optional[BackgroundTasks], func, *args) -> None:
    """Queue a notification, or send it inline when no task queue is given."""
    if background_tasks is not None:
        background_tasks.add_task(func, *args)
    else:
        await func(*args)


def _check_password_strength(password: str) -> None:
    if not password or not PASSWORD_PATTERN.match(password):
        raise RegistrationValidationException(WEAK_PASSWORD_MESSAGE)


async def register_user(
    db: Session,
    email: str,
    password: str,
    role: UserRole,
    profile_fields: Dict[str, Any],
    notifier: EmailNotifier,
    background_tasks: Optional[BackgroundTasks] = None,
) -> Dict[str, Any]:
    """
    Register a new patient or doctor.

    Args:
        db: Database session
        email: Login email, stored exactly as given
        password: Plain text password
        role: PATIENT or DOCTOR
        profile_fields: Role profile fields (see PatientProfile / DoctorProfile)
        notifier: Email notifier for the verification link
        background_tasks: FastAPI BackgroundTasks for email sending

    Returns:
        Dict with the registration acknowledgement

    Raises:
        EmailAlreadyExistsException: If email already exists
        RegistrationValidationException: If the role or a profile field is invalid
    """
    logger.info(f"Registration attempt for email: {email} as {role.value}")

    if repository.exists_by_email(db, email):
        logger.warning(f"Registration failed: Email {email} already registered")
        raise EmailAlreadyExistsException()

    profile = parse_registration_profile(role, profile_fields)
    _check_password_strength(password)

    if isinstance(profile, DoctorProfile) and license_number_exists(db, profile.license_number):
        logger.warning(f"Registration failed: license number already registered for {email}")
        raise RegistrationValidationException(DUPLICATE_LICENSE_MESSAGE)

    user = User(
        email=email,
        password_hash=hash_password(password),
        role=role,
        is_verified=False,
    )
    verification_token = issue_token(user, TokenPurpose.VERIFY_EMAIL)

    try:
        db.add(user)
        db.flush()
        if isinstance(profile, DoctorProfile):
            create_doctor_profile(db, user, profile)
        else:
            create_patient_profile(db, user, profile)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        # A concurrent registration won the race on a unique column
        if repository.exists_by_email(db, email):
            logger.warning(f"Registration failed: Email {email} registered concurrently")
            raise EmailAlreadyExistsException()
        logger.warning(f"Registration failed on unique constraint for {email}: {str(e.orig)}")
        raise RegistrationValidationException(DUPLICATE_LICENSE_MESSAGE)
    except Exception:
        db.rollback()
        logger.exception(f"Registration failed for {email}, transaction rolled back")
        raise

    db.refresh(user)
    logger.info(f"{user.role.value.capitalize()} account created: {user.id}")

    await _dispatch(background_tasks, notifier.notify_verification, user.email, verification_token, user.role)

    return {"success": True, "message": REGISTRATION_MESSAGE}


async def verify_email(
    db: Session,
    token: str,
    notifier: EmailNotifier,
    background_tasks: Optional[BackgroundTasks] = None,
) -> Dict[str, Any]:
    """
    Verify a user's email address with the token from the verification link.

    Raises:
        InvalidTokenException: If the token is unknown or already used
        TokenExpiredException: If the token has expired
    """
    user = consume_token(db, token, TokenPurpose.VERIFY_EMAIL)
    user.is_verified = True
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(user)
    logger.info(f"Email verified for user {user.id}")

    first_name = get_first_name(db, user)
    await _dispatch(background_tasks, notifier.notify_welcome, user.email, first_name)

    return {"success": True, "message": VERIFICATION_MESSAGE}


def authenticate_user(db: Session, email: str, password: str) -> User:
    """
    Check credentials without issuing a session.

    Unknown email and wrong password raise the same exception so callers
    cannot tell which one failed.

    Raises:
        InvalidCredentialsException: If the email is unknown or the password is wrong
        EmailNotVerifiedException: If the credentials are right but the email is unverified
    """
    user = repository.find_by_email(db, email)
    if not user:
        verify_dummy_password(password)
    if not user or not verify_password(password, user.password_hash):
        logger.warning(f"Failed login attempt for email: {email}")
        raise InvalidCredentialsException()

    if not user.is_verified:
        logger.warning(f"Login blocked for unverified user {user.id}")
        raise EmailNotVerifiedException()

    return user


async def login_user(
    db: Session,
    email: str,
    password: str,
    token_provider: SessionTokenProvider,
) -> LoginResponse:
    """
    Authenticate a user and issue a session token.

    Returns:
        LoginResponse: Bearer token plus the user's id, email and role
    """
    user = authenticate_user(db, email, password)
    token = token_provider.issue(user)
    logger.info(f"User {user.id} logged in as {user.role.value}")

    return LoginResponse(
        token=token,
        user_id=user.id,
        email=user.email,
        role=user.role,
    )


async def forgot_password(
    db: Session,
    email: str,
    notifier: EmailNotifier,
    background_tasks: Optional[BackgroundTasks] = None,
) -> Dict[str, Any]:
    """
    Issue a password reset token and email the reset link.

    Issuing a new token replaces any earlier reset token.

    Raises:
        ResourceNotFoundException: If no user has this email
    """
    user = repository.find_by_email(db, email)
    if not user:
        logger.warning(f"Password reset requested for unknown email: {email}")
        raise ResourceNotFoundException(f"User not found with email: {email}")

    reset_token = issue_token(user, TokenPurpose.RESET_PASSWORD)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(f"Password reset token issued for user {user.id}")

    await _dispatch(background_tasks, notifier.notify_password_reset, user.email, reset_token, user.role)

    return {"success": True, "message": RESET_LINK_MESSAGE}


async def reset_password(db: Session, token: str, new_password: str) -> Dict[str, Any]:
    """
    Set a new password using the token from the reset link.

    The user is not logged in; they sign in again with the new password.

    Raises:
        RegistrationValidationException: If the new password is too weak
        InvalidTokenException: If the token is unknown or already used
        TokenExpiredException: If the token has expired
    """
    _check_password_strength(new_password)

    user = consume_token(db, token, TokenPurpose.RESET_PASSWORD)
    user.password_hash = hash_password(new_password)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(f"Password reset completed for user {user.id}")

    return {"success": True, "message": RESET_MESSAGE}


async def logout() -> Dict[str, Any]:
    """
    Acknowledge a logout.

    Sessions are stateless; the client discards its token.
    """
    return {"success": True, "message": LOGOUT_MESSAGE}
