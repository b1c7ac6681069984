"""Account flows: registration, login, email verification, password recovery."""

import logging
import re

from sqlalchemy.ext.asyncio import AsyncSession

from curriculopro.core.auth import create_access_token, hash_password, verify_password
from curriculopro.core.errors import (
    AuthError,
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
)
from curriculopro.models.orm import UserProfile
from curriculopro.models.schemas import AuthResponse, RegisterResponse
from curriculopro.services import email_service, user_service

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6
INVALID_CREDENTIALS = "Email ou senha incorretos"


def validate_email(email: str) -> None:
    if not email or not EMAIL_RE.match(email):
        raise BadRequestError("Email inválido")


def validate_password(password: str) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise BadRequestError(f"Senha deve ter no mínimo {MIN_PASSWORD_LENGTH} caracteres")


async def issue_session(db: AsyncSession, profile: UserProfile, message: str) -> AuthResponse:
    return AuthResponse(
        message=message,
        token=create_access_token(profile.id, profile.email),
        user=await user_service.to_user_payload(db, profile),
    )


async def register(db: AsyncSession, email: str, password: str, name: str | None) -> RegisterResponse:
    validate_email(email)
    validate_password(password)

    existing = await user_service.get_profile_by_email(db, email)
    if existing is not None:
        if existing.email_verified:
            raise ConflictError(
                "Este email já está cadastrado e verificado. Faça login para continuar.",
                action="login",
            )
        token = await user_service.set_verification_token(db, existing)
        await email_service.send_quietly(
            email_service.verification_link_email(existing.email, token, existing.name)
        )
        raise ConflictError(
            "Este email já está cadastrado mas não foi verificado. "
            "Enviamos um novo link de verificação para seu email.",
            action="verify",
            requiresVerification=True,
        )

    code = email_service.generate_verification_code()
    profile = await user_service.create_profile(
        db,
        email,
        name,
        hash_password(password),
        email_verified=False,
        verification_code=code,
    )
    await email_service.send_quietly(email_service.verification_code_email(profile.email, code, name))
    return RegisterResponse(
        message="Conta criada! Verifique seu email para o código de verificação.",
        user_id=profile.id,
        email=profile.email,
    )


async def login(db: AsyncSession, email: str, password: str, client_ip: str | None = None) -> AuthResponse:
    profile = await user_service.get_profile_by_email(db, email)
    if profile is None or not verify_password(password, profile.password_hash):
        raise AuthError(INVALID_CREDENTIALS)

    if not profile.email_verified:
        code = email_service.generate_verification_code()
        await user_service.set_verification_code(db, profile, code)
        sent = await email_service.send_quietly(
            email_service.verification_code_email(profile.email, code, profile.name)
        )
        raise ForbiddenError(
            "Email não verificado. Enviamos um novo código de verificação.",
            requiresVerification=True,
            codeSent=sent,
            email=profile.email,
        )

    await email_service.send_quietly(
        email_service.login_notification_email(profile.email, profile.name, client_ip)
    )
    return await issue_session(db, profile, "Login realizado com sucesso")


async def verify_email(db: AsyncSession, email: str, code: str) -> AuthResponse:
    profile = await user_service.verify_email_code(db, email, code)
    await email_service.send_quietly(email_service.welcome_email(profile.email, profile.name))
    return await issue_session(db, profile, "Email verificado com sucesso")


async def resend_verification(db: AsyncSession, email: str) -> None:
    profile = await user_service.get_profile_by_email(db, email)
    if profile is None:
        raise NotFoundError("Usuário não encontrado")
    if profile.email_verified:
        raise BadRequestError("Email já verificado")
    code = email_service.generate_verification_code()
    await user_service.set_verification_code(db, profile, code)
    await email_service.send(email_service.verification_code_email(profile.email, code, profile.name))


async def verify_email_link(db: AsyncSession, email: str, token: str) -> str:
    """Confirm an emailed link and return a fresh JWT for the frontend redirect."""
    profile = await user_service.verify_email_token(db, email, token)
    await email_service.send_quietly(email_service.welcome_email(profile.email, profile.name))
    return create_access_token(profile.id, profile.email)


async def forgot_password(db: AsyncSession, email: str) -> None:
    """Send a reset link if the account exists. Silent otherwise."""
    profile = await user_service.get_profile_by_email(db, email)
    if profile is None:
        logger.info("Password reset requested for unknown email")
        return
    token = await user_service.set_verification_token(db, profile, hours=1)
    await email_service.send_quietly(email_service.password_reset_email(profile.email, token, profile.name))


async def reset_password(db: AsyncSession, token: str, new_password: str) -> None:
    validate_password(new_password)
    profile = await user_service.get_profile_by_reset_token(db, token)
    await user_service.update_profile(
        db,
        profile,
        password_hash=hash_password(new_password),
        verification_code=None,
        verification_code_expires_at=None,
    )
    await email_service.send_quietly(email_service.password_changed_email(profile.email, profile.name))


async def request_login_code(db: AsyncSession, email: str) -> None:
    profile = await user_service.get_profile_by_email(db, email)
    if profile is None:
        raise NotFoundError("Usuário não encontrado")
    if not profile.email_verified:
        raise ForbiddenError("Email não verificado", requiresVerification=True)
    code = email_service.generate_verification_code()
    await user_service.set_verification_code(db, profile, code)
    await email_service.send(email_service.login_code_email(profile.email, code, profile.name))


async def verify_login_code(db: AsyncSession, email: str, code: str) -> AuthResponse:
    profile = await user_service.verify_login_code(db, email, code)
    return await issue_session(db, profile, "Login realizado com sucesso")


async def change_password(
    db: AsyncSession,
    profile: UserProfile,
    current_password: str,
    new_password: str,
) -> None:
    if not verify_password(current_password, profile.password_hash):
        raise BadRequestError("Senha atual incorreta")
    validate_password(new_password)
    await user_service.update_profile(db, profile, password_hash=hash_password(new_password))
    await email_service.send_quietly(email_service.password_changed_email(profile.email, profile.name))
