"""Admin dashboard endpoints, mounted under /api/admin. Every route requires an admin account."""

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from curriculopro.core.auth import require_admin
from curriculopro.core.database import get_db
from curriculopro.models.schemas import (
    AdminStats,
    JobSiteRanking,
    PurchaseResponse,
    SalesStats,
    UsageBucket,
    UsagePeriod,
    UserPayload,
)
from curriculopro.services import admin_service, credit_service, usage_service, user_service

router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/stats", response_model=AdminStats, tags=["Admin"])
async def dashboard_stats(db: AsyncSession = Depends(get_db)):
    """Totals for users, credits, analyses and revenue."""
    return await admin_service.get_dashboard_stats(db)


@router.get("/usage/daily", response_model=list[UsageBucket], tags=["Admin"])
async def daily_usage(
    days: int = Query(default=30, ge=1, le=365),
    db: AsyncSession = Depends(get_db),
):
    return await admin_service.get_daily_usage(db, days)


@router.get("/usage/monthly", response_model=list[UsageBucket], tags=["Admin"])
async def monthly_usage(
    months: int = Query(default=12, ge=1, le=60),
    db: AsyncSession = Depends(get_db),
):
    return await admin_service.get_monthly_usage(db, months)


@router.get("/sales", response_model=list[PurchaseResponse], tags=["Admin"])
async def list_sales(
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    """All purchases, newest first."""
    return await credit_service.get_all_purchases(db, limit, offset)


@router.get("/sales/statistics", response_model=SalesStats, tags=["Admin"])
async def sales_statistics(
    start_date: datetime | None = Query(default=None, alias="startDate"),
    end_date: datetime | None = Query(default=None, alias="endDate"),
    db: AsyncSession = Depends(get_db),
):
    return await credit_service.get_sales_stats(db, start_date, end_date)


@router.get("/ai-usage", tags=["Admin"])
async def ai_usage(
    period: UsagePeriod = Query(default=UsagePeriod.day),
    db: AsyncSession = Depends(get_db),
):
    """Gemini requests against the daily free-tier limit."""
    return await usage_service.get_ai_usage_stats(db, period)


@router.get("/job-sites/ranking", response_model=list[JobSiteRanking], tags=["Admin"])
async def job_site_ranking(
    limit: int = Query(default=10, ge=1, le=100),
    start_date: datetime | None = Query(default=None, alias="startDate"),
    end_date: datetime | None = Query(default=None, alias="endDate"),
    db: AsyncSession = Depends(get_db),
):
    return await admin_service.get_job_site_ranking(db, limit, start_date, end_date)


@router.get("/users", response_model=list[UserPayload], tags=["Admin"])
async def list_users(
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    """Registered users with their available credits."""
    profiles = await user_service.list_profiles(db, limit, offset)
    return [await user_service.to_user_payload(db, p) for p in profiles]
