"""AI usage log: per-call cost estimates and Gemini quota statistics."""

import logging
from collections import Counter
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from curriculopro.core.config import settings
from curriculopro.core.database import async_session
from curriculopro.models.orm import AIUsageLog
from curriculopro.models.schemas import UsagePeriod

logger = logging.getLogger(__name__)

# USD per 1K tokens
USAGE_PRICING = {
    "gemini": {"input": 0.00025, "output": 0.0005},
    "groq": {"input": 0.0002, "output": 0.0002},
    "openai": {
        "gpt-4": {"input": 0.03, "output": 0.06},
        "gpt-4-turbo": {"input": 0.01, "output": 0.03},
        "gpt-3.5-turbo": {"input": 0.0015, "output": 0.002},
    },
}

NEAR_LIMIT_PERCENT = 80


def calculate_cost(provider: str, tokens_input: int, tokens_output: int) -> float:
    if provider in ("gemini", "groq"):
        pricing = USAGE_PRICING[provider]
    elif provider.startswith("openai-"):
        model = provider.removeprefix("openai-")
        pricing = USAGE_PRICING["openai"].get(model, USAGE_PRICING["openai"]["gpt-3.5-turbo"])
    else:
        return 0.0
    return tokens_input / 1000 * pricing["input"] + tokens_output / 1000 * pricing["output"]


async def record_usage(
    *,
    provider: str,
    service_type: str,
    tokens_input: int = 0,
    tokens_output: int = 0,
    response_time_ms: int | None = None,
    success: bool = True,
    error_message: str | None = None,
    user_id=None,
    resume_id=None,
) -> None:
    """Persist one AI call in its own session. Failures are logged, never raised."""
    entry = AIUsageLog(
        provider=provider,
        service_type=service_type,
        tokens_input=tokens_input,
        tokens_output=tokens_output,
        cost_estimate=calculate_cost(provider, tokens_input, tokens_output),
        response_time_ms=response_time_ms,
        success=success,
        error_message=error_message,
        user_id=user_id,
        resume_id=resume_id,
    )
    try:
        async with async_session() as session:
            session.add(entry)
            await session.commit()
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("Could not record AI usage for %s: %s", service_type, exc)


def period_start(period: UsagePeriod, now: datetime) -> datetime:
    if period == UsagePeriod.hour:
        return now - timedelta(hours=1)
    if period == UsagePeriod.week:
        return now - timedelta(days=7)
    if period == UsagePeriod.month:
        return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def summarize_usage(
    service_types: list[str],
    hourly_timestamps: list[datetime],
    daily_limit: int,
) -> dict:
    used = len(service_types)
    percentage = used / daily_limit * 100 if daily_limit else 0.0
    hourly = Counter(ts.strftime("%Y-%m-%d %H:00") for ts in hourly_timestamps)
    return {
        "today": {
            "used": used,
            "limit": daily_limit,
            "remaining": daily_limit - used,
            "percentage": round(percentage, 2),
            "isNearLimit": percentage > NEAR_LIMIT_PERCENT,
        },
        "byService": dict(Counter(service_types)),
        "hourly": dict(sorted(hourly.items())),
    }


async def get_ai_usage_stats(db: AsyncSession, period: UsagePeriod = UsagePeriod.day) -> dict:
    now = datetime.utcnow()
    base = select(AIUsageLog).where(AIUsageLog.provider == "gemini", AIUsageLog.success.is_(True))

    result = await db.execute(
        base.with_only_columns(AIUsageLog.service_type).where(
            AIUsageLog.created_at >= period_start(period, now)
        )
    )
    service_types = list(result.scalars().all())

    result = await db.execute(
        base.with_only_columns(AIUsageLog.created_at).where(
            AIUsageLog.created_at >= now - timedelta(hours=24)
        )
    )
    timestamps = list(result.scalars().all())

    return summarize_usage(service_types, timestamps, settings.gemini_daily_limit)
