"""
Credential store queries for the User identity table.
"""
from typing import Optional

from sqlalchemy.orm import Session

from .models import User


def find_by_email(db: Session, email: str) -> Optional[User]:
    """Get a user by email, matched exactly as stored."""
    return db.query(User).filter(User.email == email).first()


def exists_by_email(db: Session, email: str) -> bool:
    """Check whether an account is already registered under this email."""
    return db.query(User.id).filter(User.email == email).first() is not None


def find_by_id(db: Session, user_id: str) -> Optional[User]:
    """Get a user by ID."""
    return db.query(User).filter(User.id == user_id).first()


def find_by_verification_token(db: Session, token: str) -> Optional[User]:
    """Get the user holding this pending verification token."""
    return db.query(User).filter(User.verification_token == token).first()


def find_by_reset_token(db: Session, token: str) -> Optional[User]:
    """Get the user holding this pending password reset token."""
    return db.query(User).filter(User.reset_token == token).first()


def save(db: Session, user: User) -> User:
    """
    Insert or update a user and commit.

    Args:
        db: Database session
        user: User to persist

    Returns:
        User: The refreshed user
    """
    db.add(user)
    db.commit()
    db.refresh(user)
    return user
