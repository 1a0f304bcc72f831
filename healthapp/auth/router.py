"""
Authentication routes for the healthcare identity service.

Service exceptions propagate to the handlers registered in
``healthapp.exceptions``, which render the shared error envelope.
"""
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session

from ..core.tokens import SessionTokenProvider
from ..database import get_db
from . import service
from .dependencies import get_current_user, get_notifier, get_token_provider
from .models import User
from .schemas import ApiResponse, LoginRequest, LoginResponse, RegisterRequest, UserResponse
from .utils import EmailNotifier

# Set up logging
logger = logging.getLogger(__name__)

# Create API router
router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post("/register", response_model=ApiResponse, status_code=status.HTTP_201_CREATED, summary="Patient or Doctor Registration")
async def register_route(
    register_data: RegisterRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier: EmailNotifier = Depends(get_notifier),
):
    """
    Self-registration endpoint for patients and doctors.

    Patients must supply ``dob``; doctors must supply ``licenseNumber`` and
    ``specialization``. The account stays unverified until the emailed link
    is followed.

    Returns:
        ApiResponse with registration success message
    """
    return await service.register_user(
        db=db,
        email=register_data.email,
        password=register_data.password,
        role=register_data.role,
        profile_fields=register_data.profile_fields(),
        notifier=notifier,
        background_tasks=background_tasks,
    )


@router.post("/verify-email", response_model=ApiResponse, summary="Verify Email Address")
async def verify_email_route(
    background_tasks: BackgroundTasks,
    token: str = Query(..., description="Token from the verification link"),
    db: Session = Depends(get_db),
    notifier: EmailNotifier = Depends(get_notifier),
):
    """
    Email verification endpoint.

    Returns:
        ApiResponse with verification success message
    """
    return await service.verify_email(db=db, token=token, notifier=notifier, background_tasks=background_tasks)


@router.post("/login", response_model=LoginResponse, summary="User Login")
async def login_route(
    login_data: LoginRequest,
    db: Session = Depends(get_db),
    token_provider: SessionTokenProvider = Depends(get_token_provider),
):
    """
    User login endpoint.

    Returns:
        LoginResponse with bearer token and user information
    """
    return await service.login_user(
        db=db,
        email=login_data.email,
        password=login_data.password,
        token_provider=token_provider,
    )


@router.post("/forgot-password", response_model=ApiResponse, summary="Request Password Reset")
async def forgot_password_route(
    background_tasks: BackgroundTasks,
    email: str = Query(..., description="Email of the account to recover"),
    db: Session = Depends(get_db),
    notifier: EmailNotifier = Depends(get_notifier),
):
    """
    Send a password reset link to the account's email.
    """
    return await service.forgot_password(db=db, email=email, notifier=notifier, background_tasks=background_tasks)


@router.post("/reset-password", response_model=ApiResponse, summary="Reset Password with Token")
async def reset_password_route(
    token: str = Query(..., description="Token from the reset link"),
    new_password: str = Query(..., alias="newPassword"),
    db: Session = Depends(get_db),
):
    """
    Set a new password using a reset token. The user must log in again afterwards.
    """
    return await service.reset_password(db=db, token=token, new_password=new_password)


@router.post("/logout", response_model=ApiResponse, summary="User Logout")
async def logout_route():
    """
    Logout endpoint. Tokens are stateless, so the client simply discards its token.
    """
    return await service.logout()


@router.get("/me", response_model=UserResponse, summary="Get Current User")
async def me_route(current_user: User = Depends(get_current_user)):
    """
    Return the user identified by the bearer token.
    """
    return current_user


@router.get("/health", summary="Auth Service Health")
async def auth_health_route():
    return {"status": "UP", "message": "Auth service is running"}
