"""
Tests for the identity lifecycle service functions.
"""
from datetime import datetime, timedelta, timezone

import pytest
from fastapi import BackgroundTasks

from conftest import doctor_fields, patient_fields
from healthapp.auth import repository, service
from healthapp.auth.exceptions import (
    EmailAlreadyExistsException,
    EmailNotVerifiedException,
    InvalidCredentialsException,
    InvalidTokenException,
    RegistrationValidationException,
    ResourceNotFoundException,
    TokenExpiredException,
)
from healthapp.auth.models import User, UserRole
from healthapp.doctors.models import Doctor
from healthapp.patients.models import MedicalHistory, Patient


@pytest.mark.asyncio
async def test_alice_end_to_end(db, notifier, token_provider):
    """Register, verify, log in, recover the password and log in again."""
    result = await service.register_user(
        db, "alice@x.com", "Secr3tPass", UserRole.PATIENT, patient_fields(), notifier
    )
    assert result["success"] is True

    alice = repository.find_by_email(db, "alice@x.com")
    assert alice.is_verified is False
    issued_token = notifier.last_verification_token("alice@x.com")

    # A deliberately expired token is refused
    original_expiry = alice.verification_token_expires_at
    alice.verification_token_expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
    db.commit()
    with pytest.raises(TokenExpiredException):
        await service.verify_email(db, issued_token, notifier)

    alice.verification_token_expires_at = original_expiry
    db.commit()
    await service.verify_email(db, issued_token, notifier)
    assert repository.find_by_email(db, "alice@x.com").is_verified is True
    assert notifier.welcomes == [{"email": "alice@x.com", "first_name": "Alice"}]

    login = await service.login_user(db, "alice@x.com", "Secr3tPass", token_provider)
    assert login.role == UserRole.PATIENT
    assert login.type == "Bearer"
    assert token_provider.get_claims(login.token).role == "PATIENT"

    await service.forgot_password(db, "alice@x.com", notifier)
    old_token = notifier.last_reset_token("alice@x.com")
    await service.forgot_password(db, "alice@x.com", notifier)
    current_token = notifier.last_reset_token("alice@x.com")
    assert repository.find_by_reset_token(db, current_token) is not None

    with pytest.raises(InvalidTokenException):
        await service.reset_password(db, old_token, "NewPass1")

    await service.reset_password(db, current_token, "NewPass1")

    with pytest.raises(InvalidCredentialsException):
        await service.login_user(db, "alice@x.com", "Secr3tPass", token_provider)
    login = await service.login_user(db, "alice@x.com", "NewPass1", token_provider)
    assert token_provider.get_email_from_token(login.token) == "alice@x.com"


@pytest.mark.asyncio
async def test_duplicate_registration_is_rejected(db, notifier):
    await service.register_user(db, "bob@example.com", "Secr3tPass", UserRole.PATIENT, patient_fields(), notifier)

    with pytest.raises(EmailAlreadyExistsException):
        await service.register_user(
            db, "bob@example.com", "Other1Pass", UserRole.DOCTOR, doctor_fields(), notifier
        )

    assert db.query(User).filter(User.email == "bob@example.com").count() == 1
    assert db.query(Doctor).count() == 0


@pytest.mark.asyncio
async def test_email_match_is_case_sensitive(db, notifier):
    await service.register_user(db, "Carol@example.com", "Secr3tPass", UserRole.PATIENT, patient_fields(), notifier)
    await service.register_user(db, "carol@example.com", "Secr3tPass", UserRole.PATIENT, patient_fields(), notifier)

    assert db.query(User).count() == 2


@pytest.mark.asyncio
async def test_doctor_without_license_persists_nothing(db, notifier):
    fields = doctor_fields()
    del fields["license_number"]

    with pytest.raises(RegistrationValidationException) as exc_info:
        await service.register_user(db, "doc@example.com", "Secr3tPass", UserRole.DOCTOR, fields, notifier)

    assert exc_info.value.detail == "License number is required for doctors"
    assert db.query(User).count() == 0
    assert db.query(Doctor).count() == 0
    assert notifier.verifications == []


@pytest.mark.asyncio
async def test_patient_without_dob_is_rejected(db, notifier):
    fields = patient_fields()
    del fields["dob"]

    with pytest.raises(RegistrationValidationException) as exc_info:
        await service.register_user(db, "pat@example.com", "Secr3tPass", UserRole.PATIENT, fields, notifier)

    assert exc_info.value.detail == "Date of birth is required for patients"
    assert db.query(User).count() == 0


@pytest.mark.asyncio
async def test_admin_cannot_self_register(db, notifier):
    with pytest.raises(RegistrationValidationException):
        await service.register_user(db, "root@example.com", "Secr3tPass", UserRole.ADMIN, {}, notifier)
    assert db.query(User).count() == 0


@pytest.mark.asyncio
async def test_weak_password_is_rejected(db, notifier):
    with pytest.raises(RegistrationValidationException):
        await service.register_user(db, "weak@example.com", "password", UserRole.PATIENT, patient_fields(), notifier)
    assert db.query(User).count() == 0


@pytest.mark.asyncio
async def test_duplicate_license_number_is_rejected(db, notifier):
    await service.register_user(db, "doc1@example.com", "Secr3tPass", UserRole.DOCTOR, doctor_fields(), notifier)

    with pytest.raises(RegistrationValidationException):
        await service.register_user(db, "doc2@example.com", "Secr3tPass", UserRole.DOCTOR, doctor_fields(), notifier)

    assert db.query(User).count() == 1


@pytest.mark.asyncio
async def test_doctor_registration_creates_unapproved_profile(db, notifier):
    await service.register_user(
        db,
        "doc@example.com",
        "Secr3tPass",
        UserRole.DOCTOR,
        doctor_fields(languages=["English", "Spanish"], bio="Board certified", experience=12),
        notifier,
    )

    doctor = db.query(Doctor).one()
    assert doctor.approved is False
    assert doctor.license_number == "MD-12345"
    assert doctor.languages == ["English", "Spanish"]
    assert doctor.email == "doc@example.com"
    assert notifier.verifications[0]["role"] == UserRole.DOCTOR


@pytest.mark.asyncio
async def test_patient_questionnaire_becomes_medical_history(db, notifier):
    questionnaire = {"allergies": ["penicillin"], "smoker": False}
    await service.register_user(
        db, "pat@example.com", "Secr3tPass", UserRole.PATIENT,
        patient_fields(medical_questionnaire=questionnaire), notifier,
    )

    patient = db.query(Patient).one()
    assert patient.medical_history.questionnaire == questionnaire


@pytest.mark.asyncio
async def test_empty_questionnaire_creates_no_medical_history(db, notifier):
    await service.register_user(
        db, "pat@example.com", "Secr3tPass", UserRole.PATIENT,
        patient_fields(medical_questionnaire={}), notifier,
    )

    assert db.query(Patient).count() == 1
    assert db.query(MedicalHistory).count() == 0


@pytest.mark.asyncio
async def test_registration_queues_notification_on_background_tasks(db, notifier):
    tasks = BackgroundTasks()
    await service.register_user(
        db, "queued@example.com", "Secr3tPass", UserRole.PATIENT, patient_fields(), notifier, tasks
    )

    assert notifier.verifications == []
    await tasks()
    assert notifier.verifications[0]["email"] == "queued@example.com"


@pytest.mark.asyncio
async def test_unverified_login_is_refused(db, notifier, token_provider):
    await service.register_user(db, "new@example.com", "Secr3tPass", UserRole.PATIENT, patient_fields(), notifier)

    with pytest.raises(EmailNotVerifiedException):
        await service.login_user(db, "new@example.com", "Secr3tPass", token_provider)


@pytest.mark.asyncio
async def test_unverified_login_with_wrong_password_reports_bad_credentials(db, notifier, token_provider):
    await service.register_user(db, "new@example.com", "Secr3tPass", UserRole.PATIENT, patient_fields(), notifier)

    with pytest.raises(InvalidCredentialsException):
        await service.login_user(db, "new@example.com", "Wrong1Pass", token_provider)


@pytest.mark.asyncio
async def test_unknown_email_and_wrong_password_are_indistinguishable(db, create_user, token_provider):
    create_user(email="known@example.com")

    with pytest.raises(InvalidCredentialsException) as unknown:
        await service.login_user(db, "nobody@example.com", "Secr3tPass", token_provider)
    with pytest.raises(InvalidCredentialsException) as wrong:
        await service.login_user(db, "known@example.com", "Wrong1Pass", token_provider)

    assert unknown.value.kind == wrong.value.kind
    assert unknown.value.detail == wrong.value.detail
    assert unknown.value.status_code == wrong.value.status_code


@pytest.mark.asyncio
async def test_unknown_email_still_runs_a_password_check(db, create_user, token_provider, monkeypatch):
    create_user(email="known@example.com")
    checked = []
    monkeypatch.setattr(service, "verify_dummy_password", lambda password: checked.append(password) or False)

    with pytest.raises(InvalidCredentialsException):
        await service.login_user(db, "nobody@example.com", "Secr3tPass", token_provider)
    assert checked == ["Secr3tPass"]

    await service.login_user(db, "known@example.com", "Secr3tPass", token_provider)
    assert checked == ["Secr3tPass"]


@pytest.mark.asyncio
async def test_verification_token_cannot_be_replayed(db, notifier):
    await service.register_user(db, "once@example.com", "Secr3tPass", UserRole.PATIENT, patient_fields(), notifier)
    token = notifier.last_verification_token("once@example.com")

    await service.verify_email(db, token, notifier)
    with pytest.raises(InvalidTokenException):
        await service.verify_email(db, token, notifier)

    user = repository.find_by_email(db, "once@example.com")
    assert user.is_verified is True
    assert user.verification_token is None


@pytest.mark.asyncio
async def test_forgot_password_for_unknown_email(db, notifier):
    with pytest.raises(ResourceNotFoundException):
        await service.forgot_password(db, "ghost@example.com", notifier)
    assert notifier.password_resets == []


@pytest.mark.asyncio
async def test_reset_token_cannot_be_replayed(db, create_user, notifier):
    create_user(email="reset@example.com")
    await service.forgot_password(db, "reset@example.com", notifier)
    token = notifier.last_reset_token("reset@example.com")

    await service.reset_password(db, token, "NewPass1")
    with pytest.raises(InvalidTokenException):
        await service.reset_password(db, token, "Another1Pass")


@pytest.mark.asyncio
async def test_expired_reset_token_is_refused(db, create_user, notifier, token_provider):
    user = create_user(email="late@example.com")
    await service.forgot_password(db, "late@example.com", notifier)
    token = notifier.last_reset_token("late@example.com")

    user.reset_token_expires_at = datetime.now(timezone.utc) - timedelta(seconds=1)
    db.commit()

    with pytest.raises(TokenExpiredException):
        await service.reset_password(db, token, "NewPass1")
    # The old password still works
    await service.login_user(db, "late@example.com", "Secr3tPass", token_provider)


@pytest.mark.asyncio
async def test_logout_acknowledges():
    result = await service.logout()
    assert result == {"success": True, "message": "Logout successful"}
