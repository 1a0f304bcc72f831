"""
Tests for verification and password reset token issuance and consumption.
"""
from datetime import datetime, timedelta, timezone

import pytest

from healthapp.auth import repository
from healthapp.auth.exceptions import InvalidTokenException, TokenExpiredException
from healthapp.auth.models import User
from healthapp.auth.tokens import TokenPurpose, consume_token, issue_token


def test_issue_token_stores_token_and_expiry(db, create_user):
    user = create_user(is_verified=False)
    token = issue_token(user, TokenPurpose.VERIFY_EMAIL)
    db.commit()

    stored = repository.find_by_verification_token(db, token)
    assert stored.id == user.id
    assert stored.verification_token_expires_at is not None
    assert stored.reset_token is None


def test_consume_token_clears_it(db, create_user):
    user = create_user(is_verified=False)
    token = issue_token(user, TokenPurpose.VERIFY_EMAIL)
    db.commit()

    consumed = consume_token(db, token, TokenPurpose.VERIFY_EMAIL)
    db.commit()

    assert consumed.id == user.id
    assert consumed.verification_token is None
    assert consumed.verification_token_expires_at is None


def test_consumed_token_cannot_be_reused(db, create_user):
    user = create_user()
    token = issue_token(user, TokenPurpose.RESET_PASSWORD)
    db.commit()

    consume_token(db, token, TokenPurpose.RESET_PASSWORD)
    db.commit()

    with pytest.raises(InvalidTokenException):
        consume_token(db, token, TokenPurpose.RESET_PASSWORD)


def test_expired_token_is_rejected_and_left_in_place(db, create_user):
    user = create_user(is_verified=False)
    token = issue_token(user, TokenPurpose.VERIFY_EMAIL)
    user.verification_token_expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
    db.commit()

    with pytest.raises(TokenExpiredException):
        consume_token(db, token, TokenPurpose.VERIFY_EMAIL)

    assert repository.find_by_verification_token(db, token) is not None


def test_new_token_supersedes_previous_one(db, create_user):
    user = create_user()
    old_token = issue_token(user, TokenPurpose.RESET_PASSWORD)
    db.commit()
    new_token = issue_token(user, TokenPurpose.RESET_PASSWORD)
    db.commit()

    assert old_token != new_token
    with pytest.raises(InvalidTokenException):
        consume_token(db, old_token, TokenPurpose.RESET_PASSWORD)
    assert consume_token(db, new_token, TokenPurpose.RESET_PASSWORD).id == user.id


def test_token_is_bound_to_its_purpose(db, create_user):
    user = create_user(is_verified=False)
    token = issue_token(user, TokenPurpose.VERIFY_EMAIL)
    db.commit()

    with pytest.raises(InvalidTokenException):
        consume_token(db, token, TokenPurpose.RESET_PASSWORD)


@pytest.mark.parametrize("token", ["", "unknown-token-value"])
def test_unknown_token_is_invalid(db, token):
    with pytest.raises(InvalidTokenException):
        consume_token(db, token, TokenPurpose.VERIFY_EMAIL)


def test_purposes_do_not_overwrite_each_other(db, create_user):
    user = create_user()
    verification = issue_token(user, TokenPurpose.VERIFY_EMAIL)
    reset = issue_token(user, TokenPurpose.RESET_PASSWORD)
    db.commit()

    assert repository.find_by_verification_token(db, verification).id == user.id
    assert repository.find_by_reset_token(db, reset).id == user.id


def test_concurrent_consumer_loses_the_race(db, create_user, monkeypatch):
    user = create_user()
    token = issue_token(user, TokenPurpose.RESET_PASSWORD)
    db.commit()
    user_id = user.id

    def consumed_elsewhere(expires_at):
        # another request clears the token between lookup and update
        db.query(User).filter(User.id == user_id).update(
            {User.reset_token: None, User.reset_token_expires_at: None}, synchronize_session=False
        )
        db.commit()
        return False

    monkeypatch.setattr("healthapp.auth.tokens.is_token_expired", consumed_elsewhere)

    with pytest.raises(InvalidTokenException):
        consume_token(db, token, TokenPurpose.RESET_PASSWORD)
    assert repository.find_by_reset_token(db, token) is None
