"""
Patient Service - Persistence of patient profiles and their medical history.
"""
import logging

from sqlalchemy.orm import Session

from ..auth.models import User, UserRole
from ..auth.schemas import PatientProfile
from ..doctors.models import Doctor
from .models import MedicalHistory, Patient

# Set up logging
logger = logging.getLogger(__name__)

DEFAULT_FIRST_NAME = "User"


def create_patient_profile(db: Session, user: User, profile: PatientProfile) -> Patient:
    """
    Create the patient profile for a newly registered PATIENT user.

    A medical history row is added only when the questionnaire has content.
    Everything is flushed, not committed, so the caller can roll back the
    whole registration.

    Args:
        db: Database session
        user: The patient's identity (already added to the session)
        profile: Validated patient registration profile

    Returns:
        Patient: The new patient profile
    """
    patient = Patient(
        user_id=user.id,
        first_name=profile.first_name,
        last_name=profile.last_name,
        dob=profile.dob,
        phone=profile.phone,
        gender=profile.gender,
        address=profile.address,
        profile_photo_base64=profile.profile_photo_base64,
        insurance_info=profile.insurance_info,
    )
    db.add(patient)
    db.flush()

    if profile.medical_questionnaire:
        db.add(MedicalHistory(patient_id=patient.id, questionnaire=profile.medical_questionnaire))
        db.flush()
        logger.info(f"Medical history recorded for patient {patient.id}")

    logger.info(f"Patient profile created for user {user.id}")
    return patient


def get_first_name(db: Session, user: User) -> str:
    """
    First name from the user's role profile, or "User" when there is none.
    """
    first_name = None
    if user.role == UserRole.PATIENT:
        first_name = db.query(Patient.first_name).filter(Patient.user_id == user.id).scalar()
    elif user.role == UserRole.DOCTOR:
        first_name = db.query(Doctor.first_name).filter(Doctor.user_id == user.id).scalar()
    return first_name or DEFAULT_FIRST_NAME
