"""Search keyword generation, query combinations and job/résumé compatibility scoring."""

import logging

from curriculopro.core.errors import AIServiceError
from curriculopro.models.orm import JobSite
from curriculopro.models.schemas import JobPosting
from curriculopro.prompts.job_search import build_keywords_prompt
from curriculopro.services import llm_service

logger = logging.getLogger(__name__)

FALLBACK_TECH_TERMS = ["desenvolvedor", "programador", "analista", "engenheiro", "tecnologia", "software"]
MAX_FALLBACK_KEYWORDS = 15
TOP_KEYWORDS = 8

KEYWORD_POINTS = 10
SKILL_POINTS = 15
AREA_POINTS = 20


def _unique(items) -> list:
    return list(dict.fromkeys(items))


def fallback_keywords(analysis: dict) -> list[str]:
    keywords: list[str] = []
    skills = analysis.get("habilidades")
    if isinstance(skills, list):
        keywords += [str(s) for s in skills]
    if analysis.get("areaAtuacao"):
        keywords.append(str(analysis["areaAtuacao"]))
    keywords += FALLBACK_TECH_TERMS
    return _unique(keywords)[:MAX_FALLBACK_KEYWORDS]


async def generate_search_keywords(
    resume_text: str,
    analysis: dict,
    site: JobSite,
    user_id=None,
) -> list[str]:
    """Ask the LLM for 15-20 search keywords. Falls back to résumé skills on any failure."""
    system_prompt, user_prompt = build_keywords_prompt(
        resume_text,
        analysis,
        site.name,
        site.characteristics,
        site.default_keywords,
    )
    try:
        raw = await llm_service.complete(
            user_prompt,
            system=system_prompt,
            service_type="job_search_keywords",
            temperature=0.7,
            max_tokens=800,
            user_id=user_id,
        )
    except AIServiceError as exc:
        logger.warning("Keyword generation failed for %s, using fallback: %s", site.name, exc)
        return fallback_keywords(analysis)

    keywords = [k.strip() for k in llm_service.extract_json_array(raw) or [] if isinstance(k, str) and k.strip()]
    if not keywords:
        logger.warning("Keyword reply for %s did not parse, using fallback", site.name)
        return fallback_keywords(analysis)
    logger.info("Generated %d search keywords for %s", len(keywords), site.name)
    return keywords


def generate_search_combinations(keywords: list[str], max_combinations: int = 8) -> list[list[str]]:
    """Singles of the top keywords, then near pairs, then consecutive triples while there is room."""
    top = keywords[:TOP_KEYWORDS]
    n = len(top)
    combinations = [[k] for k in top]

    for i in range(min(5, n - 1)):
        for j in range(i + 1, min(i + 3, n)):
            combinations.append([top[i], top[j]])

    if len(combinations) < max_combinations and n >= 3:
        for i in range(min(3, n - 2)):
            combinations.append(top[i:i + 3])

    return combinations[:max_combinations]


def calculate_compatibility_score(
    job: JobPosting,
    analysis: dict,
    keywords: list[str],
) -> tuple[int, list[str]]:
    """Score 0-100 by keyword, skill and area hits in the posting text. Returns (score, matched keywords)."""
    job_text = " ".join(
        [job.title, job.company, job.description, ",".join(job.requirements)]
    ).lower()

    score = 0
    matched: list[str] = []
    for keyword in keywords:
        if keyword.lower() in job_text:
            score += KEYWORD_POINTS
            matched.append(keyword)

    skills = analysis.get("habilidades")
    if isinstance(skills, list):
        score += SKILL_POINTS * sum(1 for s in skills if str(s).lower() in job_text)

    area = analysis.get("areaAtuacao")
    if area and str(area).lower() in job_text:
        score += AREA_POINTS

    return min(100, score), _unique(matched)
