"""Plans, Stripe Checkout and credit balance endpoints."""

import logging
from urllib.parse import urlsplit

from fastapi import APIRouter, Depends, Header, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from curriculopro.core.auth import TokenData, get_current_user
from curriculopro.core.config import settings
from curriculopro.core.database import get_db
from curriculopro.core.errors import BadRequestError
from curriculopro.models.schemas import (
    CheckoutRequest,
    CheckoutResponse,
    CreditsResponse,
    PaymentUser,
    PaymentVerification,
    PlanList,
)
from curriculopro.services import credit_service, payment_service, pricing_service

logger = logging.getLogger(__name__)

router = APIRouter()


def frontend_base_url(origin: str | None, referer: str | None) -> str:
    """Redirect base for Checkout: Origin header, then the Referer's origin, then settings."""
    if origin:
        return origin
    if referer:
        parts = urlsplit(referer)
        if parts.scheme and parts.netloc:
            return f"{parts.scheme}://{parts.netloc}"
    return settings.frontend_url


@router.get("/plans", response_model=PlanList, tags=["Payments"])
async def list_plans():
    """Available plans with their estimated profit margin."""
    return PlanList(plans=pricing_service.list_plans_with_margin())


@router.post("/payment/create-session", response_model=CheckoutResponse, tags=["Payments"])
async def create_payment_session(
    body: CheckoutRequest,
    origin: str | None = Header(default=None),
    referer: str | None = Header(default=None),
    user: TokenData = Depends(get_current_user),
):
    """Create a Stripe Checkout session for a plan."""
    return await payment_service.create_checkout_session(
        body.plan_id,
        user.user_id,
        body.email or user.email,
        frontend_base_url(origin, referer),
    )


@router.get("/payment/verify", response_model=PaymentVerification, tags=["Payments"])
async def verify_payment(
    session_id: str = Query(alias="sessionId", min_length=1),
    db: AsyncSession = Depends(get_db),
):
    """Check a Checkout session and credit the purchase once it is paid."""
    session = await payment_service.retrieve_session(session_id)
    if session.get("payment_status") != "paid":
        return PaymentVerification(paid=False, payment_status=session.get("payment_status"))

    purchase = await payment_service.fulfill_checkout_session(db, session)
    if purchase is None:
        raise BadRequestError("Sessão de pagamento sem dados de plano ou usuário válidos")

    profile = await credit_service.get_profile_or_404(db, purchase.user_id)
    return PaymentVerification(
        paid=True,
        user=PaymentUser(
            id=profile.id,
            credits=await credit_service.get_available_credits(db, profile.id),
            plan=profile.plan,
        ),
    )


@router.post("/payment/webhook", tags=["Payments"])
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(default=None),
    db: AsyncSession = Depends(get_db),
):
    """Stripe webhook. Fulfils checkout.session.completed events."""
    payload = await request.body()
    event = payment_service.construct_event(payload, stripe_signature)

    if event["type"] == "checkout.session.completed":
        session = event["data"]["object"]
        if session.get("payment_status") == "paid":
            await payment_service.fulfill_checkout_session(db, session)
        else:
            logger.info("Checkout session %s completed unpaid (%s)", session.get("id"), session.get("payment_status"))
    else:
        logger.debug("Ignoring Stripe event %s", event["type"])

    return {"received": True}


@router.get("/credits", response_model=CreditsResponse, tags=["Payments"])
async def get_credits(
    user: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Current credit balance and plan."""
    profile = await credit_service.get_profile_or_404(db, user.user_id)
    return CreditsResponse(
        credits=await credit_service.get_available_credits(db, profile.id),
        plan=profile.plan,
        last_analysis=profile.last_analysis,
    )
