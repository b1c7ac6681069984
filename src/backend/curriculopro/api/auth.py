"""Account endpoints, mounted under /api/auth."""

import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from curriculopro.core.auth import TokenData, get_current_user
from curriculopro.core.config import settings
from curriculopro.core.database import get_db
from curriculopro.core.errors import AppError
from curriculopro.models.schemas import (
    AuthResponse,
    ChangePasswordRequest,
    EmailCodeRequest,
    EmailRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
    UserPayload,
)
from curriculopro.services import auth_service, credit_service, user_service

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Registration and login ---

@router.post("/register", response_model=RegisterResponse, tags=["Auth"])
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Create an account and email a verification link."""
    return await auth_service.register(db, body.email, body.password, body.name)


@router.post("/login", response_model=AuthResponse, tags=["Auth"])
async def login(body: LoginRequest, request: Request, db: AsyncSession = Depends(get_db)):
    """Email and password login."""
    client_ip = request.client.host if request.client else None
    return await auth_service.login(db, body.email, body.password, client_ip)


@router.get("/verify", response_model=UserPayload, tags=["Auth"])
async def verify_token(
    user: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Validate the bearer token and return the current user."""
    profile = await credit_service.get_profile_or_404(db, user.user_id)
    return await user_service.to_user_payload(db, profile)


@router.post("/request-login-code", response_model=MessageResponse, tags=["Auth"])
async def request_login_code(body: EmailRequest, db: AsyncSession = Depends(get_db)):
    await auth_service.request_login_code(db, body.email)
    return MessageResponse(message="Código de login enviado para seu email")


@router.post("/verify-login-code", response_model=AuthResponse, tags=["Auth"])
async def verify_login_code(body: EmailCodeRequest, db: AsyncSession = Depends(get_db)):
    return await auth_service.verify_login_code(db, body.email, body.code)


# --- Email verification ---

@router.post("/verify-email", response_model=AuthResponse, tags=["Auth"])
async def verify_email(body: EmailCodeRequest, db: AsyncSession = Depends(get_db)):
    """Confirm the 6-digit code sent by email and log the user in."""
    return await auth_service.verify_email(db, body.email, body.code)


@router.post("/resend-verification", response_model=MessageResponse, tags=["Auth"])
async def resend_verification(body: EmailRequest, db: AsyncSession = Depends(get_db)):
    await auth_service.resend_verification(db, body.email)
    return MessageResponse(message="Código de verificação reenviado")


@router.get("/verify-email-link", tags=["Auth"])
async def verify_email_link(
    email: str = Query(...),
    token: str = Query(...),
    db: AsyncSession = Depends(get_db),
):
    """Confirm an emailed link and redirect to the frontend with a session token."""
    try:
        jwt = await auth_service.verify_email_link(db, email, token)
    except AppError as exc:
        logger.info("Email link verification failed for %s: %s", email, exc.message)
        query = urlencode({"error": exc.message})
        return RedirectResponse(f"{settings.frontend_url}/verify-email-error?{query}", status_code=302)
    query = urlencode({"token": jwt})
    return RedirectResponse(f"{settings.frontend_url}/verify-email-success?{query}", status_code=302)


# --- Passwords ---

@router.post("/forgot-password", response_model=MessageResponse, tags=["Auth"])
async def forgot_password(body: EmailRequest, db: AsyncSession = Depends(get_db)):
    """Always answers the same way, whether or not the account exists."""
    await auth_service.forgot_password(db, body.email)
    return MessageResponse(
        message="Se o email estiver cadastrado, você receberá um link para redefinir sua senha"
    )


@router.post("/reset-password", response_model=MessageResponse, tags=["Auth"])
async def reset_password(body: ResetPasswordRequest, db: AsyncSession = Depends(get_db)):
    await auth_service.reset_password(db, body.token, body.new_password)
    return MessageResponse(message="Senha redefinida com sucesso")


@router.post("/change-password", response_model=MessageResponse, tags=["Auth"])
async def change_password(
    body: ChangePasswordRequest,
    user: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    profile = await credit_service.get_profile_or_404(db, user.user_id)
    await auth_service.change_password(db, profile, body.current_password, body.new_password)
    return MessageResponse(message="Senha alterada com sucesso")
