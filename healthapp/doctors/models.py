"""
Doctor Model - Stores doctor-specific information and professional credentials.

Doctors register themselves but stay unapproved until an administrator
reviews their license.
"""
from sqlalchemy import Column, Integer, String, Text, Boolean, ForeignKey, JSON
from sqlalchemy.orm import relationship

from ..database import Base
from ..auth.models import generate_uuid


class Doctor(Base):
    """
    Doctor Model - Stores doctor-specific information

    Fields:
    - id: Primary key for doctor profile
    - user_id: Foreign key to User model
    - first_name / last_name: Doctor's name
    - phone / gender: Contact details
    - profile_photo_base64: Base64-encoded profile image
    - license_number: Medical license number, unique across doctors
    - specialization: Doctor's medical specialization
    - experience: Years of professional experience
    - education: Degrees and certifications
    - bio: Professional biography (max 500 characters)
    - languages: Languages spoken (JSON list)
    - clinic_address: Physical address of the practice
    - approved: Admin approval status
    """
    __tablename__ = "doctors"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone = Column(String(50), nullable=True)
    gender = Column(String(20), nullable=True)
    profile_photo_base64 = Column(Text, nullable=True)
    license_number = Column(String(100), unique=True, nullable=False)
    specialization = Column(String(255), nullable=False)
    experience = Column(Integer, nullable=True)
    education = Column(Text, nullable=True)
    bio = Column(String(500), nullable=True)
    languages = Column(JSON, nullable=True)
    clinic_address = Column(Text, nullable=True)
    approved = Column(Boolean, default=False, nullable=False)

    # Relationships
    user = relationship("User", back_populates="doctor_profile", uselist=False)

    def __repr__(self):
        """String representation of the Doctor model"""
        return f"<Doctor(id={self.id}, user_id={self.user_id}, specialization='{self.specialization}')>"

    @property
    def email(self) -> str:
        """Get doctor's email from associated user"""
        return self.user.email if self.user else None
