"""Stripe Checkout: session creation, verification and idempotent fulfilment."""

import asyncio
import logging
import re
from typing import Any
from uuid import UUID

import stripe
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from curriculopro.core.config import settings
from curriculopro.core.errors import BadRequestError, NotFoundError, PaymentError
from curriculopro.models.orm import Purchase, UserProfile
from curriculopro.models.schemas import CheckoutResponse
from curriculopro.services import credit_service, pricing_service

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
STATEMENT_DESCRIPTOR_MAX = 22


def _client_ready() -> None:
    if not settings.stripe_secret_key:
        raise PaymentError("Pagamentos não configurados", status_code=503)
    stripe.api_key = settings.stripe_secret_key


def build_session_params(
    plan_id: str,
    user_id: UUID,
    email: str | None,
    base_url: str,
) -> dict[str, Any]:
    """Checkout parameters for a plan. Raises BadRequestError for unknown plans."""
    plan = pricing_service.get_plan(plan_id)
    if plan is None:
        raise BadRequestError("Plano não encontrado")

    base = base_url.rstrip("/")
    params: dict[str, Any] = {
        "payment_method_types": ["card"],
        "mode": "payment",
        "line_items": [
            {
                "price_data": {
                    "currency": "brl",
                    "product_data": {"name": plan.name, "description": plan.description},
                    "unit_amount": round(plan.price_brl * 100),
                },
                "quantity": 1,
            }
        ],
        "success_url": f"{base}?session_id={{CHECKOUT_SESSION_ID}}&userId={user_id}",
        "cancel_url": f"{base}/payment/cancel",
        "payment_intent_data": {
            "statement_descriptor": settings.stripe_statement_descriptor[:STATEMENT_DESCRIPTOR_MAX],
        },
        "metadata": {
            "userId": str(user_id),
            "planId": plan.id,
            "planName": plan.name,
            "analyses": str(plan.analyses),
        },
    }
    if email and EMAIL_RE.match(email.strip()):
        params["customer_email"] = email.strip()
    return params


async def create_checkout_session(
    plan_id: str,
    user_id: UUID,
    email: str | None,
    base_url: str | None = None,
) -> CheckoutResponse:
    params = build_session_params(plan_id, user_id, email, base_url or settings.frontend_url)
    _client_ready()
    try:
        session = await asyncio.to_thread(stripe.checkout.Session.create, **params)
    except stripe.StripeError as exc:
        logger.exception("Stripe session creation failed for plan %s", plan_id)
        raise PaymentError(f"Erro ao criar sessão de pagamento: {exc.user_message or exc}") from exc
    logger.info("Checkout session %s created for user %s (%s)", session["id"], user_id, plan_id)
    return CheckoutResponse(session_id=session["id"], checkout_url=session["url"])


async def retrieve_session(session_id: str):
    _client_ready()
    try:
        return await asyncio.to_thread(stripe.checkout.Session.retrieve, session_id)
    except stripe.InvalidRequestError as exc:
        raise NotFoundError("Sessão de pagamento não encontrada") from exc
    except stripe.StripeError as exc:
        logger.exception("Could not retrieve Stripe session %s", session_id)
        raise PaymentError(f"Erro ao verificar sessão: {exc}") from exc


async def fulfill_checkout_session(db: AsyncSession, session) -> Purchase | None:
    """Create the purchase for a paid session exactly once.

    Returns the purchase (existing or new), or None when the session metadata
    does not identify a known user and plan.
    """
    session_id = session.get("id")
    existing = await credit_service.find_purchase_by_payment_id(db, session_id)
    if existing is not None:
        logger.info("Checkout session %s already fulfilled", session_id)
        return existing

    metadata = session.get("metadata") or {}
    plan = pricing_service.get_plan(metadata.get("planId") or "")
    try:
        user_id = UUID(metadata.get("userId") or "")
    except ValueError:
        user_id = None
    if plan is None or user_id is None:
        logger.error("Checkout session %s has unusable metadata: %s", session_id, dict(metadata))
        return None

    profile = await db.get(UserProfile, user_id)
    if profile is None:
        logger.error("Checkout session %s references unknown user %s", session_id, user_id)
        return None

    amount_total = session.get("amount_total")
    price = amount_total / 100 if amount_total is not None else plan.price_brl
    analyses = int(metadata.get("analyses") or plan.analyses)
    try:
        purchase = await credit_service.create_purchase(
            db,
            user_id,
            plan.id,
            metadata.get("planName") or plan.name,
            analyses,
            price,
            payment_method="stripe",
            payment_id=session_id,
        )
    except IntegrityError:
        # concurrent webhook and verify call for the same session
        await db.rollback()
        return await credit_service.find_purchase_by_payment_id(db, session_id)

    profile.plan = plan.id
    await db.commit()
    return purchase


def construct_event(payload: bytes, signature: str | None):
    """Verify a webhook payload. Raises BadRequestError on a bad signature."""
    if not settings.stripe_webhook_secret:
        raise PaymentError("Webhook do Stripe não configurado", status_code=503)
    try:
        return stripe.Webhook.construct_event(
            payload=payload,
            sig_header=signature or "",
            secret=settings.stripe_webhook_secret,
        )
    except (ValueError, stripe.SignatureVerificationError) as exc:
        logger.warning("Rejected Stripe webhook: %s", exc)
        raise BadRequestError(f"Webhook Error: {exc}") from exc
