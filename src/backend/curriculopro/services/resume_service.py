"""Improved résumé and cover letter generation."""

import logging

from curriculopro.models.orm import JobSite
from curriculopro.prompts.cover_letter import build_cover_letter_prompt, build_site_context
from curriculopro.prompts.resume_analysis import build_improvement_prompt
from curriculopro.services import llm_service

logger = logging.getLogger(__name__)


async def generate_improved_resume(original_text: str, analysis: dict, user_id=None) -> str:
    """Rewrite a résumé applying the analysis recommendations. Returns plain text."""
    system_prompt, user_prompt = build_improvement_prompt(original_text, analysis)
    raw = await llm_service.complete(
        user_prompt,
        system=system_prompt,
        service_type="resume_improvement",
        provider="openai",
        temperature=0.7,
        max_tokens=3000,
        user_id=user_id,
    )
    return llm_service.strip_code_fences(raw)


async def generate_cover_letter(
    resume_text: str,
    analysis: dict,
    site: JobSite | None = None,
    user_id=None,
) -> str:
    """Write a cover letter, tailored to the job site's keywords when one is given."""
    site_context = ""
    keywords: list[str] = []
    if site is not None:
        keywords = list(site.default_keywords or [])
        site_context = build_site_context(site.name, site.description, site.characteristics, keywords)
        logger.info("Tailoring cover letter for %s (%d keywords)", site.name, len(keywords))

    system_prompt, user_prompt = build_cover_letter_prompt(resume_text, analysis, site_context, keywords)
    raw = await llm_service.complete(
        user_prompt,
        system=system_prompt,
        service_type="cover_letter",
        provider="openai",
        temperature=0.8,
        max_tokens=1500,
        user_id=user_id,
    )
    return llm_service.strip_code_fences(raw)
