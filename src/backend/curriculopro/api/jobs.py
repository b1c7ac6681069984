"""Job sites and job search endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from curriculopro.core.auth import TokenData, get_current_user, get_optional_user
from curriculopro.core.database import get_db
from curriculopro.models.schemas import (
    JobSearchRequest,
    JobSiteList,
    JobSiteResponse,
    SavedJobResponse,
    SiteSearchResult,
)
from curriculopro.services import job_search_service, job_site_service

router = APIRouter()


@router.get("/job-sites", response_model=JobSiteList, tags=["Jobs"])
async def list_job_sites(db: AsyncSession = Depends(get_db)):
    """Active job sites, sorted by name."""
    sites = await job_site_service.get_active_job_sites(db)
    return JobSiteList(sites=[JobSiteResponse.model_validate(s) for s in sites])


@router.post("/search-jobs", response_model=SiteSearchResult, tags=["Jobs"])
async def search_jobs(
    body: JobSearchRequest,
    user: TokenData | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Search a job site using the résumé analysis. With the résumé text, runs the multi-query search."""
    if not body.analysis:
        raise HTTPException(status_code=400, detail="É necessário fornecer analysis e siteId")
    if not body.analysis.get("habilidades") and not body.analysis.get("experiencia"):
        raise HTTPException(
            status_code=400,
            detail="A análise deve conter habilidades ou experiencia para buscar vagas",
        )
    return await job_search_service.search_jobs_by_site(
        db,
        body.site_id,
        body.analysis,
        body.location,
        resume_text=body.resume_text,
        user_id=user.user_id if user else None,
        resume_id=body.resume_id,
    )


@router.get("/jobs/saved", response_model=list[SavedJobResponse], tags=["Jobs"])
async def saved_jobs(
    site_id: UUID | None = Query(default=None, alias="siteId"),
    limit: int = Query(default=50, ge=1, le=200),
    user: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Saved active jobs of the current user, best matches first."""
    jobs = await job_search_service.get_saved_jobs(db, user.user_id, site_id, limit)
    return [SavedJobResponse.model_validate(j) for j in jobs]
