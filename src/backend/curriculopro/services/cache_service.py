"""Redis caching for résumé analyses.

Avoids paying the provider twice for the same résumé text. The key hashes
the text and the prompt version, so a prompt change invalidates old entries.
"""

import hashlib

import redis.asyncio as redis

from curriculopro.core.config import settings
from curriculopro.models.schemas import ResumeAnalysis
from curriculopro.prompts.resume_analysis import PROMPT_VERSION

_redis_client: redis.Redis | None = None


def get_redis() -> redis.Redis:
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(settings.redis_url, decode_responses=True)
    return _redis_client


def hash_text(text: str) -> str:
    return hashlib.sha256(text.encode()).hexdigest()[:16]


def _cache_key(text_hash: str, model: str, prompt_version: str = PROMPT_VERSION) -> str:
    return f"analysis:{prompt_version}:{model}:{text_hash}"


async def get_cached_analysis(text: str, model: str) -> ResumeAnalysis | None:
    """Return cached analysis if available."""
    r = get_redis()
    data = await r.get(_cache_key(hash_text(text), model))
    if data is None:
        return None
    return ResumeAnalysis.model_validate_json(data)


async def set_cached_analysis(text: str, model: str, analysis: ResumeAnalysis) -> None:
    r = get_redis()
    await r.set(
        _cache_key(hash_text(text), model),
        analysis.model_dump_json(by_alias=True),
        ex=settings.analysis_cache_ttl,
    )
