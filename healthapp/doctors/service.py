"""
Doctor Service - Persistence of doctor profiles created at registration.
"""
import logging

from sqlalchemy.orm import Session

from ..auth.models import User
from ..auth.schemas import DoctorProfile
from .models import Doctor

# Set up logging
logger = logging.getLogger(__name__)


def license_number_exists(db: Session, license_number: str) -> bool:
    """Check whether another doctor already holds this license number."""
    return db.query(Doctor.id).filter(Doctor.license_number == license_number).first() is not None


def create_doctor_profile(db: Session, user: User, profile: DoctorProfile) -> Doctor:
    """
    Create the doctor profile for a newly registered DOCTOR user.

    The profile is flushed, not committed, so it is written in the same
    transaction as the identity. New doctors start unapproved.

    Args:
        db: Database session
        user: The doctor's identity (already added to the session)
        profile: Validated doctor registration profile

    Returns:
        Doctor: The pending doctor profile
    """
    doctor = Doctor(
        user_id=user.id,
        first_name=profile.first_name,
        last_name=profile.last_name,
        phone=profile.phone,
        gender=profile.gender,
        profile_photo_base64=profile.profile_photo_base64,
        license_number=profile.license_number,
        specialization=profile.specialization,
        experience=profile.experience,
        education=profile.education,
        bio=profile.bio,
        languages=profile.languages,
        clinic_address=profile.clinic_address,
        approved=False,
    )
    db.add(doctor)
    db.flush()
    logger.info(f"Doctor profile created for user {user.id}, pending approval")
    return doctor
