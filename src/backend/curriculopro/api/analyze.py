"""Résumé analysis, improved résumé and cover letter endpoints."""

import logging
import time
from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from curriculopro.core.auth import TokenData, get_current_user, get_optional_user
from curriculopro.core.config import settings
from curriculopro.core.database import get_db
from curriculopro.core.errors import InsufficientCreditsError
from curriculopro.models.schemas import (
    AnalysisMetadata,
    AnalysisResponse,
    CoverLetterRequest,
    ImprovedResumeRequest,
)
from curriculopro.services import (
    analysis_service,
    credit_service,
    document_service,
    file_service,
    job_site_service,
    resume_service,
    user_service,
)

logger = logging.getLogger(__name__)

router = APIRouter()

COVER_LETTER_STEM = "carta-apresentacao"


def _pdf_response(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def _require_fields(analysis: dict, *fields: str) -> None:
    missing = [f for f in fields if not analysis.get(f)]
    if missing:
        raise HTTPException(status_code=400, detail=f"A análise deve conter {' e '.join(fields)}")


@router.post("/upload", response_model=AnalysisResponse, tags=["Analysis"])
async def upload_resume(
    file: UploadFile | None = File(default=None, description="PDF, DOC, DOCX or TXT résumé"),
    site_id: UUID | None = Form(default=None, alias="siteId", description="Job site the analysis targets"),
    user: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Analyze an uploaded résumé. Costs one credit, recorded against the job site when given."""
    started = time.perf_counter()
    profile = await credit_service.get_profile_or_404(db, user.user_id)
    if site_id is not None:
        await job_site_service.validate_job_site(db, site_id)
    available = await credit_service.get_available_credits(db, profile.id)
    if available < 1:
        raise InsufficientCreditsError(credits_available=available)

    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="Nenhum arquivo enviado")
    data = await file.read()
    if len(data) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=400,
            detail=f"O arquivo excede o tamanho máximo de {settings.max_upload_bytes // (1024 * 1024)}MB",
        )

    text = file_service.extract_text(file.filename, file.content_type, data)
    if not text.strip():
        raise HTTPException(
            status_code=400,
            detail="Não foi possível extrair texto do arquivo. O arquivo pode estar vazio ou corrompido.",
        )

    analysis = await analysis_service.analyze_resume(text, user_id=profile.id)

    if settings.use_mock_ai:
        remaining = available
    else:
        remaining = await credit_service.consume_credits(
            db, profile.id, "analysis", 1, resume_file_name=file.filename, job_site_id=site_id
        )

    return AnalysisResponse(
        original_text=text,
        analysis=analysis,
        metadata=AnalysisMetadata(
            file_name=file.filename,
            file_size=len(data),
            text_length=len(text),
            processing_time=f"{time.perf_counter() - started:.2f}s",
        ),
        credits_remaining=remaining,
    )


@router.post("/generate-improved", tags=["Documents"])
async def generate_improved(
    body: ImprovedResumeRequest,
    user: TokenData | None = Depends(get_optional_user),
):
    """Rewrite the résumé with the analysis recommendations and return it as a PDF."""
    _require_fields(body.analysis, "pontosFortes", "recomendacoes")
    text = await resume_service.generate_improved_resume(
        body.original_text, body.analysis, user_id=user.user_id if user else None
    )
    return _pdf_response(document_service.render_resume_pdf(text), "curriculo-melhorado.pdf")


@router.post("/generate-cover-letter", tags=["Documents"])
async def generate_cover_letter(
    body: CoverLetterRequest,
    user: TokenData | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Write a cover letter, optionally tailored to a job site, and return it as a PDF."""
    _require_fields(body.analysis, "pontosFortes", "experiencia")

    site = None
    if body.site_id is not None:
        site = await job_site_service.get_job_site(db, body.site_id)
        if site is None:
            logger.warning("Cover letter requested for unknown job site %s", body.site_id)

    text = await resume_service.generate_cover_letter(
        body.resume_text, body.analysis, site, user_id=user.user_id if user else None
    )

    stem = COVER_LETTER_STEM
    if user is not None:
        profile = await user_service.get_profile(db, user.user_id)
        name_stem = document_service.safe_file_stem(profile.name if profile else None)
        if name_stem:
            stem = f"{name_stem}-{COVER_LETTER_STEM}"

    pdf = document_service.render_cover_letter_pdf(text, date.today())
    return _pdf_response(pdf, f"{stem}.pdf")
