"""Job-board configuration records used to tailor prompts and searches."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from curriculopro.core.errors import BadRequestError, NotFoundError
from curriculopro.models.orm import JobSite


async def get_active_job_sites(db: AsyncSession) -> list[JobSite]:
    result = await db.execute(select(JobSite).where(JobSite.active.is_(True)).order_by(JobSite.name))
    return list(result.scalars().all())


async def get_job_site(db: AsyncSession, site_id: UUID) -> JobSite | None:
    return await db.get(JobSite, site_id)


async def validate_job_site(db: AsyncSession, site_id: UUID) -> JobSite:
    """Return the site, or raise 404 when unknown and 400 when inactive."""
    site = await get_job_site(db, site_id)
    if site is None:
        raise NotFoundError("Site de vagas não encontrado")
    if not site.active:
        raise BadRequestError("Site de vagas não está ativo")
    return site
