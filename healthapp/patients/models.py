"""
Patient Model - Stores patient-specific information.

Each patient profile is linked one-to-one with a PATIENT user and may own a
medical history questionnaire captured at registration.
"""
from sqlalchemy import Column, String, Text, Date, DateTime, ForeignKey, JSON, func
from sqlalchemy.orm import relationship

from ..database import Base
from ..auth.models import generate_uuid


class Patient(Base):
    """
    Patient Model - Stores patient-specific information

    Fields:
    - id: Primary key for patient profile
    - user_id: Foreign key to User model
    - first_name / last_name: Patient's name
    - dob: Patient's date of birth
    - phone: Contact number
    - gender: Patient's gender
    - address: Patient's address
    - profile_photo_base64: Base64-encoded profile image
    - insurance_info: Insurance provider and policy details
    """
    __tablename__ = "patients"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    dob = Column(Date, nullable=False)
    phone = Column(String(50), nullable=True)
    gender = Column(String(20), nullable=True)
    address = Column(Text, nullable=True)
    profile_photo_base64 = Column(Text, nullable=True)
    insurance_info = Column(Text, nullable=True)

    # Relationships
    user = relationship("User", back_populates="patient_profile", uselist=False)
    medical_history = relationship(
        "MedicalHistory", back_populates="patient", uselist=False, cascade="all, delete-orphan"
    )

    def __repr__(self):
        """String representation of the Patient model"""
        return f"<Patient(id={self.id}, user_id={self.user_id})>"

    @property
    def email(self) -> str:
        """Get patient's email from associated user"""
        return self.user.email if self.user else None


class MedicalHistory(Base):
    """
    Medical History Model - Free-form health questionnaire

    Fields:
    - id: Primary key
    - patient_id: Foreign key to Patient model
    - questionnaire: Any JSON question/answer structure supplied by the patient
    - created_at: When the history was created
    - updated_at: When the history was last updated
    """
    __tablename__ = "medical_history"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    patient_id = Column(String(36), ForeignKey("patients.id", ondelete="CASCADE"), unique=True, nullable=False)
    questionnaire = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    patient = relationship("Patient", back_populates="medical_history")

    def __repr__(self):
        return f"<MedicalHistory(id={self.id}, patient_id={self.patient_id})>"
