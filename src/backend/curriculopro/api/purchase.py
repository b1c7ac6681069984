"""Purchase history and credit ledger endpoints, mounted under /api/purchase."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from curriculopro.core.auth import TokenData, get_current_user
from curriculopro.core.config import settings
from curriculopro.core.database import get_db
from curriculopro.models.schemas import (
    CreditEntry,
    CreditUseRequest,
    MockPurchaseRequest,
    PurchaseResponse,
    PurchaseWithCredits,
)
from curriculopro.services import credit_service, job_site_service, pricing_service

logger = logging.getLogger(__name__)

router = APIRouter()

ENGLISH_PLAN_ID = "english"


@router.post("/mock", tags=["Purchases"])
async def mock_purchase(
    body: MockPurchaseRequest,
    user: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Credit a plan without payment. Only available when mock purchases are enabled."""
    if not settings.enable_mock_purchases:
        raise HTTPException(status_code=404, detail="Not Found")

    profile = await credit_service.get_profile_or_404(db, user.user_id)
    purchase = await credit_service.create_purchase(
        db, profile.id, body.plan_id, body.plan_name, body.credits_amount, body.price
    )

    if body.include_english and body.plan_id != ENGLISH_PLAN_ID:
        english_price = body.english_price
        if english_price is None:
            english_price = pricing_service.ENGLISH_RESUME_PRICE
        await credit_service.create_purchase(
            db,
            profile.id,
            ENGLISH_PLAN_ID,
            "Currículo em Inglês",
            0,
            english_price,
            parent_purchase_id=purchase.id,
            service_type="english_resume",
        )

    return {
        "purchase": PurchaseResponse.model_validate(purchase).model_dump(by_alias=True, mode="json"),
        "creditsAvailable": await credit_service.get_available_credits(db, profile.id),
        "message": "Compra registrada com sucesso",
    }


@router.get("/history", response_model=list[PurchaseWithCredits], tags=["Purchases"])
async def purchase_history(
    limit: int = Query(default=50, ge=1, le=200),
    user: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Purchases of the current user with a credit breakdown for each."""
    return await credit_service.get_user_purchases(db, user.user_id, limit)


@router.get("/credits/history", response_model=list[CreditEntry], tags=["Purchases"])
async def credit_history(
    limit: int = Query(default=50, ge=1, le=200),
    user: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Credits spent by the current user, most recent first."""
    return await credit_service.get_credit_usage(db, user.user_id, limit)


@router.post("/credits/use", tags=["Purchases"])
async def use_credits(
    body: CreditUseRequest,
    user: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Spend credits on an action, optionally tied to the job site it targeted."""
    if body.job_site_id is not None:
        await job_site_service.validate_job_site(db, body.job_site_id)
    remaining = await credit_service.consume_credits(
        db,
        user.user_id,
        body.action_type,
        body.credits_used,
        resume_file_name=body.resume_file_name,
        job_site_id=body.job_site_id,
    )
    return {"creditsUsed": body.credits_used, "creditsRemaining": remaining}
