"""
User Model - Authentication identity for patients, doctors and administrators.

Stores login credentials, email verification state and the single-use
verification / password reset tokens issued to the account.
"""
import enum
import uuid

from sqlalchemy import Column, String, Boolean, DateTime, Enum, func
from sqlalchemy.orm import relationship

from ..database import Base


class UserRole(str, enum.Enum):
    """Roles that determine which profile exists and which endpoints are reachable."""
    PATIENT = "PATIENT"
    DOCTOR = "DOCTOR"
    ADMIN = "ADMIN"


def generate_uuid() -> str:
    """Generate a new opaque identifier."""
    return str(uuid.uuid4())


class User(Base):
    """
    User Model - One authenticatable account

    Fields:
    - id: Opaque UUID assigned at creation
    - email: Unique login email, stored exactly as registered
    - password_hash: bcrypt digest of the current password
    - role: PATIENT, DOCTOR or ADMIN, never changes
    - is_verified: Set once the verification token is consumed
    - verification_token / verification_token_expires_at: Pending email verification
    - reset_token / reset_token_expires_at: Pending password reset
    - created_at: When the account was created
    """
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(Enum(UserRole), nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)

    verification_token = Column(String(500), unique=True, index=True, nullable=True)
    verification_token_expires_at = Column(DateTime(timezone=True), nullable=True)
    reset_token = Column(String(500), unique=True, index=True, nullable=True)
    reset_token_expires_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Only one of these is populated, depending on role
    patient_profile = relationship("Patient", back_populates="user", uselist=False)
    doctor_profile = relationship("Doctor", back_populates="user", uselist=False)

    def __repr__(self):
        """String representation of the User model"""
        return f"<User(id={self.id}, email='{self.email}', role={self.role})>"
