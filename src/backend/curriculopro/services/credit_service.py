"""Credit ledger and purchases.

A purchase inserts one unused Credit row per purchased analysis. Consuming
credits marks the oldest unused rows as used inside the caller's transaction.
"""

import logging
import time
from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from curriculopro.core.errors import InsufficientCreditsError, NotFoundError
from curriculopro.models.orm import Credit, Purchase, UserProfile
from curriculopro.models.schemas import (
    CreditEntry,
    CreditsInfo,
    PurchaseResponse,
    PurchaseWithCredits,
    SalesStats,
)

logger = logging.getLogger(__name__)

COMPLETED_STATUSES = {"concluida", "completed"}
PENDING_STATUSES = {"pendente", "pending"}
CANCELLED_STATUSES = {"cancelada", "cancelled"}


async def get_available_credits(db: AsyncSession, user_id: UUID) -> int:
    result = await db.execute(
        select(func.count(Credit.id)).where(Credit.user_id == user_id, Credit.used.is_(False))
    )
    return result.scalar_one()


async def create_purchase(
    db: AsyncSession,
    user_id: UUID,
    plan_id: str,
    plan_name: str,
    credits_amount: int,
    price: float,
    *,
    currency: str = "BRL",
    payment_method: str = "mock",
    payment_id: str | None = None,
    parent_purchase_id: UUID | None = None,
    service_type: str = "analysis_plan",
) -> Purchase:
    """Insert a purchase and its credit rows atomically and commit."""
    purchase = Purchase(
        user_id=user_id,
        plan_id=plan_id,
        plan_name=plan_name,
        credits_amount=credits_amount,
        price=price,
        currency=currency,
        status="concluida",
        payment_method=payment_method,
        payment_id=payment_id or f"mock_{int(time.time() * 1000)}",
        parent_purchase_id=parent_purchase_id,
        service_type=service_type,
    )
    db.add(purchase)
    await db.flush()

    db.add_all(
        Credit(purchase_id=purchase.id, user_id=user_id, used=False)
        for _ in range(credits_amount)
    )
    await db.commit()
    await db.refresh(purchase)
    logger.info("Purchase %s created: %d credits for user %s", purchase.id, credits_amount, user_id)
    return purchase


async def find_purchase_by_payment_id(db: AsyncSession, payment_id: str) -> Purchase | None:
    result = await db.execute(select(Purchase).where(Purchase.payment_id == payment_id))
    return result.scalar_one_or_none()


async def consume_credits(
    db: AsyncSession,
    user_id: UUID,
    action_type: str,
    amount: int = 1,
    resume_file_name: str | None = None,
    job_site_id: UUID | None = None,
) -> int:
    """Mark `amount` of the user's oldest unused credits as used.

    Raises InsufficientCreditsError without changing anything when fewer are available.
    Returns the number of credits left.
    """
    result = await db.execute(
        select(Credit)
        .where(Credit.user_id == user_id, Credit.used.is_(False))
        .order_by(Credit.created_at)
        .limit(amount)
        .with_for_update(skip_locked=True)
    )
    credits = list(result.scalars().all())
    if len(credits) < amount:
        available = await get_available_credits(db, user_id)
        await db.rollback()
        raise InsufficientCreditsError(credits_available=available, required=amount)

    now = datetime.utcnow()
    for credit in credits:
        credit.used = True
        credit.used_at = now
        credit.action_type = action_type
        credit.resume_file_name = resume_file_name
        credit.job_site_id = job_site_id

    profile = await db.get(UserProfile, user_id)
    if profile is not None:
        profile.last_analysis = now
    await db.commit()

    remaining = await get_available_credits(db, user_id)
    logger.info("User %s used %d credit(s) for %s, %d left", user_id, amount, action_type, remaining)
    return remaining


def credits_info(credits: list[Credit]) -> CreditsInfo:
    used = sum(1 for c in credits if c.used)
    return CreditsInfo(
        total=len(credits),
        used=used,
        available=len(credits) - used,
        credits=[CreditEntry.model_validate(c) for c in credits],
    )


async def get_user_purchases(db: AsyncSession, user_id: UUID, limit: int = 50) -> list[PurchaseWithCredits]:
    result = await db.execute(
        select(Purchase)
        .where(Purchase.user_id == user_id)
        .order_by(Purchase.created_at.desc())
        .limit(limit)
    )
    return [
        PurchaseWithCredits(
            **PurchaseResponse.model_validate(p).model_dump(),
            credits_info=credits_info(p.credits),
        )
        for p in result.scalars().all()
    ]


async def get_credit_usage(db: AsyncSession, user_id: UUID, limit: int = 50) -> list[CreditEntry]:
    result = await db.execute(
        select(Credit)
        .where(Credit.user_id == user_id, Credit.used.is_(True))
        .order_by(Credit.used_at.desc())
        .limit(limit)
    )
    return [CreditEntry.model_validate(c) for c in result.scalars().all()]


async def get_all_purchases(db: AsyncSession, limit: int = 100, offset: int = 0) -> list[PurchaseResponse]:
    result = await db.execute(
        select(Purchase).order_by(Purchase.created_at.desc()).limit(limit).offset(offset)
    )
    return [PurchaseResponse.model_validate(p) for p in result.scalars().all()]


def summarize_sales(purchases: list[Purchase]) -> SalesStats:
    return SalesStats(
        total_purchases=len(purchases),
        total_revenue=round(sum(float(p.price or 0) for p in purchases), 2),
        total_credits_sold=sum(p.credits_amount or 0 for p in purchases),
        completed_purchases=sum(1 for p in purchases if p.status in COMPLETED_STATUSES),
        pending_purchases=sum(1 for p in purchases if p.status in PENDING_STATUSES),
        cancelled_purchases=sum(1 for p in purchases if p.status in CANCELLED_STATUSES),
    )


async def get_sales_stats(
    db: AsyncSession,
    start: datetime | None = None,
    end: datetime | None = None,
) -> SalesStats:
    query = select(Purchase)
    if start is not None:
        query = query.where(Purchase.created_at >= start)
    if end is not None:
        query = query.where(Purchase.created_at <= end)
    result = await db.execute(query)
    return summarize_sales(list(result.scalars().all()))


async def get_profile_or_404(db: AsyncSession, user_id: UUID) -> UserProfile:
    profile = await db.get(UserProfile, user_id)
    if profile is None:
        raise NotFoundError("Usuário não encontrado")
    return profile
