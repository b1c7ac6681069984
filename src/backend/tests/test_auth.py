"""Tests for password hashing, JWT handling, the auth dependencies and account flows."""

import asyncio
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from fastapi import HTTPException
from jose import jwt

from curriculopro.core.auth import (
    create_access_token,
    decode_access_token,
    get_current_user,
    get_optional_user,
    hash_password,
    verify_password,
)
from curriculopro.core.config import settings
from curriculopro.core.errors import AuthError, BadRequestError, ForbiddenError
from curriculopro.models.orm import UserProfile
from curriculopro.services import auth_service, email_service, user_service


class FakeCreds:
    def __init__(self, token):
        self.credentials = token


class TestPasswords:
    def test_hash_roundtrip(self):
        hashed = hash_password("segredo123")
        assert hashed != "segredo123"
        assert verify_password("segredo123", hashed)
        assert not verify_password("outra", hashed)

    def test_missing_hash_never_verifies(self):
        assert not verify_password("segredo123", None)
        assert not verify_password("segredo123", "")

    def test_malformed_hash_is_rejected(self):
        assert not verify_password("segredo123", "not-a-bcrypt-hash")


class TestTokens:
    def test_token_carries_user(self):
        uid = uuid4()
        data = decode_access_token(create_access_token(uid, "maria@example.com"))
        assert data.user_id == uid
        assert data.email == "maria@example.com"

    def test_invalid_token_raises_401(self):
        with pytest.raises(HTTPException) as exc_info:
            decode_access_token("invalid.jwt.token")
        assert exc_info.value.status_code == 401

    def test_expired_token_raises_401(self):
        token = jwt.encode(
            {"userId": str(uuid4()), "exp": datetime.now(timezone.utc) - timedelta(minutes=1)},
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(HTTPException) as exc_info:
            decode_access_token(token)
        assert exc_info.value.status_code == 401

    def test_missing_user_id_raises_401(self):
        token = jwt.encode({"email": "x@y.com"}, settings.jwt_secret, algorithm=settings.jwt_algorithm)
        with pytest.raises(HTTPException) as exc_info:
            decode_access_token(token)
        assert exc_info.value.status_code == 401

    def test_wrong_secret_raises_401(self):
        token = jwt.encode({"userId": str(uuid4())}, "other-secret", algorithm=settings.jwt_algorithm)
        with pytest.raises(HTTPException):
            decode_access_token(token)


class TestDependencies:
    def test_current_user_requires_credentials(self):
        with pytest.raises(HTTPException) as exc_info:
            get_current_user(None)
        assert exc_info.value.status_code == 401

    def test_current_user_from_token(self):
        uid = uuid4()
        user = get_current_user(FakeCreds(create_access_token(uid, "a@b.com")))
        assert user.user_id == uid

    def test_optional_user_tolerates_bad_tokens(self):
        assert get_optional_user(None) is None
        assert get_optional_user(FakeCreds("garbage")) is None


class TestValidation:
    @pytest.mark.parametrize("email", ["", "maria", "maria@", "maria@example", "ma ria@example.com"])
    def test_invalid_emails(self, email):
        with pytest.raises(BadRequestError):
            auth_service.validate_email(email)

    def test_valid_email(self):
        auth_service.validate_email("maria.souza@example.com.br")

    def test_short_password_rejected(self):
        with pytest.raises(BadRequestError) as exc_info:
            auth_service.validate_password("12345")
        assert exc_info.value.status_code == 400


class FakeResult:
    def __init__(self, profile):
        self.profile = profile

    def scalars(self):
        return self

    def first(self):
        return self.profile

    def scalar_one_or_none(self):
        return self.profile


class FakeDb:
    """Returns one profile from every query and counts statements and commits."""

    def __init__(self, profile=None):
        self.profile = profile
        self.queries = 0
        self.commits = 0

    async def execute(self, statement):
        self.queries += 1
        return FakeResult(self.profile)

    async def commit(self):
        self.commits += 1

    async def refresh(self, obj):
        pass


def _profile(**overrides) -> UserProfile:
    values = dict(
        id=uuid4(),
        email="maria@example.com",
        name="Maria Souza",
        email_verified=True,
        password_hash=hash_password("segredo123"),
        verification_code=None,
        verification_code_expires_at=None,
    )
    values.update(overrides)
    return UserProfile(**values)


def _quiet_email(monkeypatch):
    sent = []

    async def send_quietly(msg):
        sent.append(msg["Subject"])
        return True

    monkeypatch.setattr(email_service, "send_quietly", send_quietly)
    return sent


class TestCodes:
    def test_wrong_code_is_invalid(self):
        profile = _profile(verification_code="482913", verification_code_expires_at=datetime.utcnow() + timedelta(minutes=5))
        with pytest.raises(BadRequestError, match="inválido"):
            user_service.check_code(profile, "111111")

    def test_missing_code_is_invalid(self):
        with pytest.raises(BadRequestError, match="inválido"):
            user_service.check_code(_profile(), "482913")

    def test_expired_code(self):
        profile = _profile(verification_code="482913", verification_code_expires_at=datetime.utcnow() - timedelta(seconds=1))
        with pytest.raises(BadRequestError, match="expirado"):
            user_service.check_code(profile, "482913")

    def test_valid_code_passes(self):
        profile = _profile(verification_code="482913", verification_code_expires_at=datetime.utcnow() + timedelta(minutes=5))
        user_service.check_code(profile, "482913")


class TestPasswordReset:
    def test_login_code_cannot_reset_password(self, monkeypatch):
        _quiet_email(monkeypatch)
        original_hash = hash_password("segredo123")
        profile = _profile(
            password_hash=original_hash,
            verification_code="482913",
            verification_code_expires_at=datetime.utcnow() + timedelta(minutes=10),
        )
        db = FakeDb(profile)

        with pytest.raises(BadRequestError):
            asyncio.run(auth_service.reset_password(db, "482913", "outra-senha"))
        assert db.queries == 0
        assert profile.password_hash == original_hash

    def test_reset_token_changes_password(self, monkeypatch):
        sent = _quiet_email(monkeypatch)
        token = str(uuid4())
        profile = _profile(verification_code=token, verification_code_expires_at=datetime.utcnow() + timedelta(hours=1))

        asyncio.run(auth_service.reset_password(FakeDb(profile), token, "nova-senha"))
        assert verify_password("nova-senha", profile.password_hash)
        assert profile.verification_code is None
        assert len(sent) == 1

    def test_expired_reset_token(self, monkeypatch):
        _quiet_email(monkeypatch)
        token = str(uuid4())
        profile = _profile(verification_code=token, verification_code_expires_at=datetime.utcnow() - timedelta(minutes=1))
        with pytest.raises(BadRequestError, match="expirado"):
            asyncio.run(auth_service.reset_password(FakeDb(profile), token, "nova-senha"))

    def test_email_link_rejects_numeric_code(self):
        with pytest.raises(BadRequestError):
            asyncio.run(user_service.verify_email_token(FakeDb(_profile()), "maria@example.com", "482913"))


class TestLogin:
    def test_unverified_email_gets_new_code(self, monkeypatch):
        sent = _quiet_email(monkeypatch)
        profile = _profile(email_verified=False)
        db = FakeDb(profile)

        with pytest.raises(ForbiddenError) as exc_info:
            asyncio.run(auth_service.login(db, "maria@example.com", "segredo123"))
        payload = exc_info.value.to_payload()
        assert exc_info.value.status_code == 403
        assert payload["requiresVerification"] is True
        assert payload["email"] == "maria@example.com"
        assert len(profile.verification_code) == 6
        assert len(sent) == 1

    def test_wrong_password_and_unknown_user_look_the_same(self):
        with pytest.raises(AuthError) as wrong:
            asyncio.run(auth_service.login(FakeDb(_profile()), "maria@example.com", "errada"))
        with pytest.raises(AuthError) as unknown:
            asyncio.run(auth_service.login(FakeDb(None), "ninguem@example.com", "segredo123"))
        assert wrong.value.message == unknown.value.message
