"""User profiles and one-time verification codes/tokens."""

import logging
import uuid
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from curriculopro.core.errors import BadRequestError, NotFoundError
from curriculopro.models.orm import UserProfile
from curriculopro.models.schemas import UserPayload, UserType
from curriculopro.services import credit_service

logger = logging.getLogger(__name__)

CODE_TTL_MINUTES = 15
TOKEN_TTL_HOURS = 1


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def get_profile(db: AsyncSession, user_id: UUID) -> UserProfile | None:
    return await db.get(UserProfile, user_id)


async def get_profile_by_email(db: AsyncSession, email: str) -> UserProfile | None:
    result = await db.execute(
        select(UserProfile).where(func.lower(UserProfile.email) == normalize_email(email))
    )
    return result.scalar_one_or_none()


async def create_profile(
    db: AsyncSession,
    email: str,
    name: str | None,
    password_hash: str | None,
    *,
    email_verified: bool = False,
    verification_code: str | None = None,
    user_type: UserType = UserType.cliente,
) -> UserProfile:
    profile = UserProfile(
        email=normalize_email(email),
        name=name or email.split("@")[0],
        password_hash=password_hash,
        email_verified=email_verified,
        user_type=user_type.value,
    )
    if verification_code:
        profile.verification_code = verification_code
        profile.verification_code_expires_at = datetime.utcnow() + timedelta(minutes=CODE_TTL_MINUTES)
    db.add(profile)
    await db.commit()
    await db.refresh(profile)
    logger.info("Created profile %s", profile.id)
    return profile


async def update_profile(db: AsyncSession, profile: UserProfile, **changes) -> UserProfile:
    for key, value in changes.items():
        setattr(profile, key, value)
    await db.commit()
    await db.refresh(profile)
    return profile


async def set_verification_code(
    db: AsyncSession,
    profile: UserProfile,
    code: str,
    minutes: int = CODE_TTL_MINUTES,
) -> UserProfile:
    return await update_profile(
        db,
        profile,
        verification_code=code,
        verification_code_expires_at=datetime.utcnow() + timedelta(minutes=minutes),
    )


async def set_verification_token(
    db: AsyncSession,
    profile: UserProfile,
    hours: int = TOKEN_TTL_HOURS,
) -> str:
    """Store a random single-use token (email link or password reset) and return it."""
    token = str(uuid.uuid4())
    await update_profile(
        db,
        profile,
        verification_code=token,
        verification_code_expires_at=datetime.utcnow() + timedelta(hours=hours),
    )
    return token


def require_link_token(token: str) -> str:
    """Link and reset tokens are UUIDs; anything else (such as a 6-digit code) is rejected."""
    try:
        return str(UUID(token))
    except (TypeError, ValueError) as exc:
        raise BadRequestError("Token inválido") from exc


def check_code(profile: UserProfile, code: str, label: str = "Código de verificação") -> None:
    """Raise BadRequestError when the code does not match or has expired."""
    if not profile.verification_code or profile.verification_code != code:
        raise BadRequestError(f"{label} inválido")
    expires = profile.verification_code_expires_at
    if expires is not None and datetime.utcnow() > expires:
        raise BadRequestError(f"{label} expirado")


async def verify_email_code(db: AsyncSession, email: str, code: str) -> UserProfile:
    profile = await get_profile_by_email(db, email)
    if profile is None:
        raise NotFoundError("Usuário não encontrado")
    check_code(profile, code)
    return await update_profile(
        db,
        profile,
        email_verified=True,
        verification_code=None,
        verification_code_expires_at=None,
    )


async def verify_login_code(db: AsyncSession, email: str, code: str) -> UserProfile:
    """Validate and clear a login code without touching email_verified."""
    profile = await get_profile_by_email(db, email)
    if profile is None:
        raise NotFoundError("Usuário não encontrado")
    check_code(profile, code, label="Código de login")
    return await update_profile(db, profile, verification_code=None, verification_code_expires_at=None)


async def verify_email_token(db: AsyncSession, email: str, token: str) -> UserProfile:
    token = require_link_token(token)
    profile = await get_profile_by_email(db, email)
    if profile is None:
        raise BadRequestError("Token inválido")
    check_code(profile, token, label="Token")
    return await update_profile(
        db,
        profile,
        email_verified=True,
        verification_code=None,
        verification_code_expires_at=None,
    )


async def get_profile_by_reset_token(db: AsyncSession, token: str) -> UserProfile:
    token = require_link_token(token)
    result = await db.execute(select(UserProfile).where(UserProfile.verification_code == token))
    profile = result.scalars().first()
    if profile is None:
        raise BadRequestError("Token inválido")
    check_code(profile, token, label="Token")
    return profile


async def list_profiles(db: AsyncSession, limit: int = 100, offset: int = 0) -> list[UserProfile]:
    result = await db.execute(
        select(UserProfile).order_by(UserProfile.created_at.desc()).limit(limit).offset(offset)
    )
    return list(result.scalars().all())


async def to_user_payload(db: AsyncSession, profile: UserProfile) -> UserPayload:
    """Public view of a profile with its live credit balance."""
    return UserPayload(
        id=profile.id,
        email=profile.email,
        name=profile.name,
        credits=await credit_service.get_available_credits(db, profile.id),
        plan=profile.plan,
        user_type=profile.user_type,
        email_verified=profile.email_verified,
    )
