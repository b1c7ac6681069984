"""Admin dashboard aggregates computed from profiles, the credit ledger and purchases."""

from collections.abc import Callable, Iterable
from datetime import date, datetime, timedelta
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from curriculopro.models.orm import Credit, JobSite, Purchase, UserProfile
from curriculopro.models.schemas import AdminStats, JobSiteRanking, UsageBucket

ANALYSIS_ACTION = "analysis"


async def get_dashboard_stats(db: AsyncSession) -> AdminStats:
    total_users = await db.scalar(select(func.count(UserProfile.id)))
    active_users = await db.scalar(
        select(func.count(UserProfile.id)).where(UserProfile.last_analysis.is_not(None))
    )
    unused_credits = await db.scalar(select(func.count(Credit.id)).where(Credit.used.is_(False)))
    analyses = await db.scalar(
        select(func.count(Credit.id)).where(Credit.used.is_(True), Credit.action_type == ANALYSIS_ACTION)
    )
    revenue = await db.scalar(select(func.coalesce(func.sum(Purchase.price), 0)))
    return AdminStats(
        total_users=total_users or 0,
        total_credits=unused_credits or 0,
        analyses_performed=analyses or 0,
        active_users=active_users or 0,
        revenue=round(float(revenue or 0), 2),
    )


def day_keys(days: int, today: date) -> list[str]:
    start = today - timedelta(days=days)
    return [(start + timedelta(days=i)).isoformat() for i in range(days + 1)]


def month_keys(months: int, today: date) -> list[str]:
    keys = []
    year, month = today.year, today.month
    for _ in range(months + 1):
        keys.append(f"{year:04d}-{month:02d}")
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return keys[::-1]


def build_buckets(
    keys: list[str],
    key_of: Callable[[datetime], str],
    registrations: Iterable[datetime],
    analyses: Iterable[datetime],
    sales: Iterable[tuple[datetime, float]],
) -> list[UsageBucket]:
    """Count events into the given period keys. Events outside the keys are ignored."""
    buckets = {key: UsageBucket(period=key) for key in keys}
    for ts in registrations:
        if (bucket := buckets.get(key_of(ts))) is not None:
            bucket.registrations += 1
    for ts in analyses:
        if (bucket := buckets.get(key_of(ts))) is not None:
            bucket.analyses += 1
    for ts, price in sales:
        if (bucket := buckets.get(key_of(ts))) is not None:
            bucket.revenue = round(bucket.revenue + float(price or 0), 2)
    return list(buckets.values())


async def _events_since(db: AsyncSession, since: datetime):
    registrations = await db.scalars(select(UserProfile.created_at).where(UserProfile.created_at >= since))
    analyses = await db.scalars(
        select(Credit.used_at).where(
            Credit.used.is_(True),
            Credit.action_type == ANALYSIS_ACTION,
            Credit.used_at >= since,
        )
    )
    sales = await db.execute(select(Purchase.created_at, Purchase.price).where(Purchase.created_at >= since))
    return list(registrations), list(analyses), [tuple(row) for row in sales.all()]


async def get_daily_usage(db: AsyncSession, days: int = 30, today: date | None = None) -> list[UsageBucket]:
    keys = day_keys(days, today or datetime.utcnow().date())
    since = datetime.fromisoformat(keys[0])
    events = await _events_since(db, since)
    return build_buckets(keys, lambda ts: ts.date().isoformat(), *events)


async def get_monthly_usage(db: AsyncSession, months: int = 12, today: date | None = None) -> list[UsageBucket]:
    keys = month_keys(months, today or datetime.utcnow().date())
    since = datetime.strptime(keys[0], "%Y-%m")
    events = await _events_since(db, since)
    return build_buckets(keys, lambda ts: ts.strftime("%Y-%m"), *events)


def rank_job_sites(uses: Iterable[tuple[UUID, str, datetime]], limit: int = 10) -> list[JobSiteRanking]:
    """Aggregate (site id, site name, used_at) analysis rows, most used site first."""
    ranking: dict[UUID, JobSiteRanking] = {}
    for site_id, name, used_at in uses:
        entry = ranking.get(site_id)
        if entry is None:
            ranking[site_id] = JobSiteRanking(
                site_id=site_id, site_name=name, analyses=1, first_used=used_at, last_used=used_at
            )
            continue
        entry.analyses += 1
        entry.first_used = min(entry.first_used, used_at)
        entry.last_used = max(entry.last_used, used_at)
    return sorted(ranking.values(), key=lambda r: r.analyses, reverse=True)[:limit]


async def get_job_site_ranking(
    db: AsyncSession,
    limit: int = 10,
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[JobSiteRanking]:
    """Analyses per job site with first and last use."""
    query = (
        select(JobSite.id, JobSite.name, Credit.used_at)
        .select_from(Credit)
        .join(JobSite, Credit.job_site_id == JobSite.id)
        .where(
            Credit.used.is_(True),
            Credit.action_type == ANALYSIS_ACTION,
            Credit.used_at.is_not(None),
        )
    )
    if start is not None:
        query = query.where(Credit.used_at >= start)
    if end is not None:
        query = query.where(Credit.used_at <= end)

    result = await db.execute(query)
    return rank_job_sites((tuple(row) for row in result.all()), limit)
