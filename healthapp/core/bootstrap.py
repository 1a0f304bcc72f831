"""
Bootstrap utilities for first admin creation.

Administrators cannot self-register; the first one is created at startup
from BOOTSTRAP_ADMIN_EMAIL / BOOTSTRAP_ADMIN_PASSWORD.
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..auth import repository
from ..auth.models import User, UserRole
from ..config import Settings, settings as default_settings
from .security import hash_password

logger = logging.getLogger(__name__)


def admin_exists(db: Session) -> bool:
    """Check if any admin user exists in the database."""
    return db.query(User.id).filter(User.role == UserRole.ADMIN).first() is not None


def create_bootstrap_admin(db: Session, settings: Settings) -> Optional[User]:
    """
    Create the first admin user from settings.

    Args:
        db: Database session
        settings: Application settings holding the bootstrap credentials

    Returns:
        User: The new admin, or None if the credentials are missing or the email is taken
    """
    if not settings.bootstrap_admin_email or not settings.bootstrap_admin_password:
        logger.warning("Bootstrap admin credentials not provided in environment variables")
        return None

    if repository.exists_by_email(db, settings.bootstrap_admin_email):
        logger.warning(f"Bootstrap failed: Email {settings.bootstrap_admin_email} already exists")
        return None

    admin = User(
        email=settings.bootstrap_admin_email,
        password_hash=hash_password(settings.bootstrap_admin_password),
        role=UserRole.ADMIN,
        is_verified=True,  # Bootstrap admin is pre-verified
    )
    try:
        repository.save(db, admin)
    except Exception:
        db.rollback()
        raise

    logger.info(f"Bootstrap admin created: {admin.email} (ID: {admin.id})")
    return admin


def bootstrap_admin_if_needed(db: Session, settings: Settings = default_settings) -> Optional[User]:
    """
    Create the bootstrap admin unless an admin already exists.
    Called once during application startup.

    Args:
        db: Database session
        settings: Application settings

    Returns:
        User: The created admin, or None when nothing was created
    """
    if admin_exists(db):
        logger.info("Admin user found. Bootstrap not needed.")
        return None

    logger.info("No admin users found. Attempting bootstrap admin creation...")
    admin = create_bootstrap_admin(db, settings)
    if admin is None:
        logger.info("To create the first admin, set BOOTSTRAP_ADMIN_EMAIL and BOOTSTRAP_ADMIN_PASSWORD in your .env file.")
    return admin
