"""Job search on public job boards.

Best-effort HTML scraping for Catho and Indeed, search URL generation for
LinkedIn and everything else. Boards change their markup often, so every
scraper degrades to returning the search URL instead of failing the request.
"""

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable
from functools import partial
from urllib.parse import quote_plus
from uuid import UUID

import httpx
from bs4 import BeautifulSoup
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from curriculopro.models.orm import FoundJob, JobSite
from curriculopro.models.schemas import JobPosting, SiteSearchResult
from curriculopro.services import job_matching_service, job_site_service

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)
REQUEST_TIMEOUT = 10.0
MAX_CARDS = 10
MAX_SEARCH_TERMS = 10
MAX_RESULTS = 50
SAVE_BATCH_SIZE = 50
SEARCH_DELAY_SECONDS = 1.0

TECH_PATTERNS = [
    r"JavaScript|TypeScript|Python|Java|C#|C\+\+|PHP|Ruby|Go|Rust|Swift|Kotlin",
    r"React|Angular|Vue|Node\.js|Express|Django|Flask|Spring|Laravel|Rails",
    r"SQL|MySQL|PostgreSQL|MongoDB|Redis|Oracle|SQL Server",
    r"AWS|Azure|GCP|Docker|Kubernetes|Jenkins|Git|GitHub|GitLab",
    r"HTML|CSS|SASS|LESS|Bootstrap|Tailwind",
    r"\.NET|ASP\.NET|Entity Framework|Hibernate|JPA",
    r"Agile|Scrum|Kanban|DevOps|CI/CD|TDD|BDD",
]
_TECH_RES = [re.compile(rf"(?<!\w)({p})(?!\w)", re.IGNORECASE) for p in TECH_PATTERNS]

STOP_WORDS = {
    "de", "da", "do", "em", "para", "com", "por", "a", "o", "e", "é", "são",
    "foi", "ser", "ter", "mais", "muito", "bem", "pode", "deve",
}

REQUIREMENT_MARKERS = ("requisito", "exigência", "necessário")

Searcher = Callable[..., Awaitable[SiteSearchResult]]


# --- Search terms ---

def extract_tech_keywords(text: str) -> list[str]:
    found = []
    for pattern in _TECH_RES:
        found += [m.lower() for m in pattern.findall(text)]
    return list(dict.fromkeys(found))


def extract_keywords(text: str, limit: int = 5) -> list[str]:
    words = re.sub(r"[^\w\s]", " ", text.lower()).split()
    return [w for w in words if len(w) > 3 and w not in STOP_WORDS][:limit]


def extract_search_terms(analysis: dict) -> list[str]:
    """Up to 10 unique terms from skills, experience technologies and short strengths."""
    terms: list[str] = []
    skills = analysis.get("habilidades")
    if isinstance(skills, list):
        terms += [str(s) for s in skills]
    if analysis.get("experiencia"):
        terms += extract_tech_keywords(str(analysis["experiencia"]))
    strengths = analysis.get("pontosFortes")
    if isinstance(strengths, list):
        for strength in strengths:
            if len(str(strength)) < 50:
                terms += extract_keywords(str(strength))
    return list(dict.fromkeys(terms))[:MAX_SEARCH_TERMS]


# --- HTML parsing ---

def _text(card, selector: str) -> str:
    node = card.select_one(selector)
    return node.get_text(strip=True) if node else ""


def _absolute(link: str | None, origin: str, fallback: str) -> str:
    if not link:
        return fallback
    return link if link.startswith("http") else f"{origin}{link}"


def parse_catho_cards(html: str, search_url: str) -> list[JobPosting]:
    soup = BeautifulSoup(html, "html.parser")
    jobs = []
    for card in soup.select('.job-card, .vaga-item, [data-testid*="job"]')[:MAX_CARDS]:
        title = _text(card, "h2, h3, .job-title, .vaga-titulo")
        if not title:
            continue
        anchor = card.select_one("a")
        jobs.append(
            JobPosting(
                title=title,
                company=_text(card, '.company, .empresa, [data-testid*="company"]') or "Não informado",
                location=_text(card, '.location, .localizacao, [data-testid*="location"]') or "Não informado",
                url=_absolute(anchor.get("href") if anchor else None, "https://www.catho.com.br", search_url),
                site="Catho",
            )
        )
    return jobs


def parse_indeed_cards(html: str, search_url: str) -> list[JobPosting]:
    soup = BeautifulSoup(html, "html.parser")
    jobs = []
    for card in soup.select(".job_seen_beacon, .jobsearch-SerpJobCard")[:MAX_CARDS]:
        anchor = card.select_one("h2 a, .jobTitle a")
        title = anchor.get_text(strip=True) if anchor else ""
        if not title:
            continue
        jobs.append(
            JobPosting(
                title=title,
                company=_text(card, ".companyName, .company") or "Não informado",
                location=_text(card, ".companyLocation, .location") or "Não informado",
                url=_absolute(anchor.get("href"), "https://br.indeed.com", search_url),
                site="Indeed",
            )
        )
    return jobs


def parse_job_details(html: str, site_name: str) -> dict:
    soup = BeautifulSoup(html, "html.parser")
    site = site_name.lower()
    if "catho" in site:
        description = _text(soup, '.job-description, .descricao-vaga, [data-testid*="description"]')
        salary = _text(soup, '.salary, .salario, [data-testid*="salary"]')
    elif "indeed" in site:
        description = _text(soup, "#jobDescriptionText, .jobsearch-jobDescriptionText")
        salary = _text(soup, '.salaryText, [data-testid*="salary"]')
    else:
        description = _text(soup, '.description, .job-description, [class*="description"]')
        salary = ""

    requirements = []
    for item in soup.select("ul li, ol li"):
        text = item.get_text(strip=True)
        if any(marker in text.lower() for marker in REQUIREMENT_MARKERS):
            requirements.append(text)

    return {
        "description": description,
        "requirements": requirements,
        "salary": salary,
        "contract_type": "",
        "experience_level": "",
    }


# --- Per-site searchers ---

def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        headers={"User-Agent": USER_AGENT},
        timeout=REQUEST_TIMEOUT,
        follow_redirects=True,
    )


async def _fetch(url: str, client: httpx.AsyncClient | None) -> str:
    if client is not None:
        response = await client.get(url)
        response.raise_for_status()
        return response.text
    async with _client() as own:
        response = await own.get(url)
        response.raise_for_status()
        return response.text


async def search_linkedin(terms: list[str], location: str = "Brasil", client=None) -> SiteSearchResult:
    url = (
        "https://www.linkedin.com/jobs/search/"
        f"?keywords={quote_plus(' OR '.join(terms))}&location={quote_plus(location)}"
    )
    return SiteSearchResult(
        site="LinkedIn",
        url=url,
        message="Busca no LinkedIn requer autenticação ou API. Retornando URL de busca.",
        search_terms=terms,
    )


async def search_catho(
    terms: list[str],
    location: str = "Brasil",
    client: httpx.AsyncClient | None = None,
) -> SiteSearchResult:
    url = f"https://www.catho.com.br/vagas/?q={quote_plus(' '.join(terms))}&localizacao={quote_plus(location)}"
    try:
        jobs = parse_catho_cards(await _fetch(url, client), url)
    except httpx.HTTPError as exc:
        logger.warning("Catho scraping failed: %s", exc)
        return SiteSearchResult(
            site="Catho",
            url=url,
            message="Não foi possível fazer scraping automático. Use o link fornecido para buscar manualmente.",
            search_terms=terms,
        )
    message = f"{len(jobs)} vagas encontradas" if jobs else "Nenhuma vaga encontrada na busca automatizada"
    return SiteSearchResult(site="Catho", url=url, jobs=jobs, message=message, search_terms=terms)


async def search_indeed(
    terms: list[str],
    location: str = "Brasil",
    client: httpx.AsyncClient | None = None,
) -> SiteSearchResult:
    url = f"https://br.indeed.com/jobs?q={quote_plus(' '.join(terms))}&l={quote_plus(location)}"
    try:
        jobs = parse_indeed_cards(await _fetch(url, client), url)
    except httpx.HTTPError as exc:
        logger.warning("Indeed scraping failed: %s", exc)
        return SiteSearchResult(
            site="Indeed",
            url=url,
            message="Use o link fornecido para buscar manualmente.",
            search_terms=terms,
        )
    message = f"{len(jobs)} vagas encontradas" if jobs else "Nenhuma vaga encontrada"
    return SiteSearchResult(site="Indeed", url=url, jobs=jobs, message=message, search_terms=terms)


async def search_generic(
    site_name: str,
    terms: list[str],
    location: str = "Brasil",
    client=None,
) -> SiteSearchResult:
    query = f"{' '.join(terms)} vagas {site_name} {location}"
    return SiteSearchResult(
        site=site_name,
        url=f"https://www.google.com/search?q={quote_plus(query)}",
        message=f"Busca genérica para {site_name}. Use o link fornecido.",
        search_terms=terms,
    )


def searcher_for(site_name: str) -> Searcher:
    name = site_name.lower()
    if "catho" in name:
        return search_catho
    if "indeed" in name:
        return search_indeed
    if "linkedin" in name:
        return search_linkedin
    return partial(search_generic, site_name)


async def extract_job_details(url: str, site_name: str, client: httpx.AsyncClient | None = None) -> dict:
    """Description, salary and requirement bullets of a posting. Empty details on failure."""
    try:
        return parse_job_details(await _fetch(url, client), site_name)
    except httpx.HTTPError as exc:
        logger.debug("Could not fetch job details from %s: %s", url, exc)
        return parse_job_details("", site_name)


# --- Search orchestration ---

async def save_found_jobs(
    db: AsyncSession,
    user_id: UUID,
    resume_id: UUID,
    site_id: UUID,
    jobs: list[JobPosting],
) -> int:
    """Insert jobs in batches. A failed batch is rolled back and skipped. Returns rows saved."""
    saved = 0
    for start in range(0, len(jobs), SAVE_BATCH_SIZE):
        batch = jobs[start:start + SAVE_BATCH_SIZE]
        db.add_all(
            FoundJob(
                resume_id=resume_id,
                user_id=user_id,
                job_site_id=site_id,
                title=job.title or "Sem título",
                company=job.company or "Não informado",
                location=job.location or "Não informado",
                url=job.url,
                description=job.description,
                requirements=job.requirements,
                compatibility_score=job.compatibility_score,
                matched_keywords=job.matched_keywords,
                details={
                    "salary": job.salary,
                    "contractType": job.contract_type,
                    "experienceLevel": job.experience_level,
                    "site": job.site,
                },
                status="ativa",
            )
            for job in batch
        )
        try:
            await db.commit()
            saved += len(batch)
        except SQLAlchemyError:
            logger.exception("Could not save batch of %d found jobs", len(batch))
            await db.rollback()
    return saved


async def search_jobs_advanced(
    db: AsyncSession,
    site: JobSite,
    resume_text: str,
    analysis: dict,
    location: str = "Brasil",
    user_id: UUID | None = None,
    resume_id: UUID | None = None,
    client: httpx.AsyncClient | None = None,
    delay: float = SEARCH_DELAY_SECONDS,
) -> SiteSearchResult:
    """Run several keyword combinations against one site, score and rank the unique postings."""
    keywords = await job_matching_service.generate_search_keywords(resume_text, analysis, site, user_id)
    combinations = job_matching_service.generate_search_combinations(keywords, 8)
    search = searcher_for(site.name)

    jobs: list[JobPosting] = []
    for combination in combinations:
        result = await search(combination, location, client=client)
        for job in result.jobs:
            if any(j.url == job.url or (j.title == job.title and j.company == job.company) for j in jobs):
                continue
            details = await extract_job_details(job.url, site.name, client)
            job = job.model_copy(update=details)
            score, matched = job_matching_service.calculate_compatibility_score(job, analysis, keywords)
            jobs.append(job.model_copy(update={"compatibility_score": score, "matched_keywords": matched}))
        if delay:
            await asyncio.sleep(delay)

    jobs.sort(key=lambda j: j.compatibility_score, reverse=True)
    logger.info("%s: %d unique jobs after %d searches", site.name, len(jobs), len(combinations))

    if user_id and resume_id and jobs:
        saved = await save_found_jobs(db, user_id, resume_id, site.id, jobs)
        logger.info("Saved %d/%d found jobs for user %s", saved, len(jobs), user_id)

    return SiteSearchResult(
        site=site.name,
        url=site.base_url or "",
        jobs=jobs[:MAX_RESULTS],
        total_found=len(jobs),
        search_keywords=keywords,
        search_combinations=len(combinations),
        message=f"{len(jobs)} vagas encontradas após {len(combinations)} buscas",
    )


async def search_jobs_by_site(
    db: AsyncSession,
    site_id: UUID,
    analysis: dict,
    location: str = "Brasil",
    resume_text: str | None = None,
    user_id: UUID | None = None,
    resume_id: UUID | None = None,
    client: httpx.AsyncClient | None = None,
) -> SiteSearchResult:
    site = await job_site_service.validate_job_site(db, site_id)

    if resume_text:
        return await search_jobs_advanced(
            db, site, resume_text, analysis, location, user_id, resume_id, client=client
        )

    terms = extract_search_terms(analysis)
    return await searcher_for(site.name)(terms, location, client=client)


async def get_saved_jobs(
    db: AsyncSession,
    user_id: UUID,
    site_id: UUID | None = None,
    limit: int = 50,
) -> list[FoundJob]:
    query = (
        select(FoundJob)
        .where(FoundJob.user_id == user_id, FoundJob.status == "ativa")
        .order_by(FoundJob.compatibility_score.desc(), FoundJob.created_at.desc())
        .limit(limit)
    )
    if site_id is not None:
        query = query.where(FoundJob.job_site_id == site_id)
    result = await db.execute(query)
    return list(result.scalars().all())
