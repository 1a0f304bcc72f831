"""
Authentication Schemas - Pydantic models for request validation and responses.

JSON bodies use camelCase field names (``firstName``, ``licenseNumber``);
Python code uses snake_case.
"""
import re
from datetime import date, datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from email_validator import EmailNotValidError, validate_email
from pydantic import AfterValidator, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from .exceptions import RegistrationValidationException
from .models import UserRole

# At least 8 characters with 1 uppercase letter and 1 digit
PASSWORD_PATTERN = re.compile(r"^(?=.*[A-Z])(?=.*\d).{8,}$")


def check_email_format(value: str) -> str:
    """Reject malformed addresses but keep the email exactly as submitted."""
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as e:
        raise ValueError(f"value is not a valid email address: {str(e)}")
    return value


# Validated like EmailStr, stored and matched without normalisation
EmailAddress = Annotated[str, AfterValidator(check_email_format)]


class CamelModel(BaseModel):
    """Base schema accepting and emitting camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApiResponse(BaseModel):
    """
    Generic response envelope

    Fields:
    - success: True for successful operations
    - message: Human-readable result
    - data: Optional payload
    """
    success: bool
    message: str
    data: Optional[Any] = None


# ============================================================================
# REGISTRATION PROFILES
# ============================================================================

class PatientProfile(CamelModel):
    """
    Patient registration profile - date of birth is mandatory

    Fields mirror the patients table; medical_questionnaire becomes the
    patient's medical history when present.
    """
    role: Literal["PATIENT"] = "PATIENT"
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    dob: date
    phone: Optional[str] = None
    gender: Optional[str] = None
    address: Optional[str] = None
    profile_photo_base64: Optional[str] = None
    insurance_info: Optional[str] = None
    medical_questionnaire: Optional[Dict[str, Any]] = None


class DoctorProfile(CamelModel):
    """
    Doctor registration profile - license number and specialization are mandatory
    """
    role: Literal["DOCTOR"] = "DOCTOR"
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    license_number: str = Field(..., min_length=1)
    specialization: str = Field(..., min_length=1)
    phone: Optional[str] = None
    gender: Optional[str] = None
    profile_photo_base64: Optional[str] = None
    experience: Optional[int] = Field(None, ge=0)
    education: Optional[str] = None
    bio: Optional[str] = Field(None, max_length=500)
    languages: Optional[List[str]] = None
    clinic_address: Optional[str] = None


RegistrationProfile = Annotated[Union[PatientProfile, DoctorProfile], Field(discriminator="role")]

_profile_adapter = TypeAdapter(RegistrationProfile)

_MISSING_FIELD_MESSAGES = {
    "dob": "Date of birth is required for patients",
    "license_number": "License number is required for doctors",
    "licenseNumber": "License number is required for doctors",
    "specialization": "Specialization is required for doctors",
}


def _describe_validation_error(exc: ValidationError) -> str:
    """Turn the first pydantic error into a single readable sentence."""
    error = exc.errors()[0]
    field = str(error["loc"][-1]) if error["loc"] else ""
    if error["type"] == "missing" and field in _MISSING_FIELD_MESSAGES:
        return _MISSING_FIELD_MESSAGES[field]
    return f"{field}: {error['msg']}" if field else error["msg"]


def parse_registration_profile(role: UserRole, fields: Dict[str, Any]) -> Union[PatientProfile, DoctorProfile]:
    """
    Build the role-specific profile variant, validating its required fields.

    Args:
        role: Role requested at registration
        fields: Profile fields (snake_case or camelCase keys)

    Returns:
        PatientProfile or DoctorProfile

    Raises:
        RegistrationValidationException: If the role cannot self-register or a field is missing/invalid
    """
    if role == UserRole.ADMIN:
        raise RegistrationValidationException("Administrator accounts cannot be self-registered")

    data = {key: value for key, value in fields.items() if value is not None}
    data["role"] = role.value
    try:
        return _profile_adapter.validate_python(data)
    except ValidationError as e:
        raise RegistrationValidationException(_describe_validation_error(e))


# ============================================================================
# REQUESTS
# ============================================================================

class RegisterRequest(CamelModel):
    """
    Registration request for patients and doctors.

    Common fields are validated here; role-specific requirements are checked
    when the request is turned into a RegistrationProfile.
    """
    email: EmailAddress
    password: str
    role: UserRole

    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    gender: str = Field(..., min_length=1)

    # Patient-specific fields
    dob: Optional[date] = None
    address: Optional[str] = None
    profile_photo_base64: Optional[str] = None
    insurance_info: Optional[str] = None
    medical_questionnaire: Optional[Dict[str, Any]] = None

    # Doctor-specific fields
    license_number: Optional[str] = None
    specialization: Optional[str] = None
    experience: Optional[int] = None
    education: Optional[str] = None
    bio: Optional[str] = Field(None, max_length=500)
    languages: Optional[List[str]] = None
    clinic_address: Optional[str] = None

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if not PASSWORD_PATTERN.match(v):
            raise ValueError("Password must be at least 8 characters with 1 uppercase letter and 1 number")
        return v

    def profile_fields(self) -> Dict[str, Any]:
        """Everything except the credentials and role."""
        return self.model_dump(exclude={"email", "password", "role"}, exclude_none=True)


class LoginRequest(BaseModel):
    """
    Login request

    Fields:
    - email: User's email address
    - password: User's plain text password
    """
    email: EmailAddress
    password: str = Field(..., min_length=1)


# ============================================================================
# RESPONSES
# ============================================================================

class LoginResponse(CamelModel):
    """
    Login response - the token goes in ``Authorization: Bearer <token>``
    """
    token: str
    type: str = "Bearer"
    user_id: str
    email: str
    role: UserRole
    message: str = "Login successful"


class UserResponse(CamelModel):
    """Public view of the authenticated user."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    email: str
    role: UserRole
    is_verified: bool
    created_at: Optional[datetime] = None
