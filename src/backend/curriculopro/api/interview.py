"""Mock interview endpoints, mounted under /api/analyze/interview."""

import logging
from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from curriculopro.core.auth import TokenData, get_current_user, get_optional_user
from curriculopro.core.database import get_db
from curriculopro.core.errors import NotFoundError
from curriculopro.models.orm import InterviewSimulation
from curriculopro.models.schemas import (
    AnswerEvaluation,
    InterviewEvaluateRequest,
    InterviewFinishRequest,
    InterviewFinishResponse,
    InterviewSimulationResponse,
    InterviewStartRequest,
    InterviewStartResponse,
)
from curriculopro.services import interview_service, job_site_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _ensure_owner(simulation: InterviewSimulation, user: TokenData) -> None:
    if simulation.user_id != user.user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Você não tem permissão para acessar esta entrevista",
        )


async def _owned_simulation(
    db: AsyncSession, simulation_id: UUID, user: TokenData | None
) -> InterviewSimulation | None:
    """The stored simulation, checked against the caller. None when it was never stored."""
    try:
        simulation = await interview_service.get_simulation(db, simulation_id)
    except NotFoundError:
        return None
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token de autenticação não fornecido",
        )
    _ensure_owner(simulation, user)
    return simulation


@router.post("/start", response_model=InterviewStartResponse, tags=["Interview"])
async def start_interview(
    body: InterviewStartRequest,
    user: TokenData | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Generate interview questions. The simulation is stored only for a known user, résumé and site."""
    site = None
    if body.site_id is not None:
        site = await job_site_service.validate_job_site(db, body.site_id)

    user_id = user.user_id if user else None
    questions = await interview_service.generate_interview_questions(
        body.resume_text, body.analysis, site, user_id=user_id
    )

    simulation_id = None
    if user_id and body.resume_id and site is not None:
        try:
            simulation = await interview_service.create_simulation(
                db,
                user_id,
                body.resume_id,
                site.id,
                questions,
                focus_area=body.analysis.get("areaAtuacao"),
            )
            simulation_id = simulation.id
        except SQLAlchemyError:
            logger.exception("Could not store interview simulation for user %s", user_id)
            await db.rollback()

    return InterviewStartResponse(
        simulation_id=simulation_id,
        questions=questions,
        message=f"{len(questions)} perguntas geradas",
    )


@router.post("/evaluate", response_model=AnswerEvaluation, tags=["Interview"])
async def evaluate(
    body: InterviewEvaluateRequest,
    user: TokenData | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Grade one answer. When a stored simulation id is given, the exchange is stored too.

    Only the owner of a stored simulation may add to it.
    """
    simulation = None
    if body.simulation_id is not None:
        simulation = await _owned_simulation(db, body.simulation_id, user)
        if simulation is None:
            logger.warning("Simulation %s not found, answer will not be stored", body.simulation_id)

    evaluation = await interview_service.evaluate_answer(
        body.question,
        body.answer,
        body.resume_text,
        body.analysis,
        user_id=user.user_id if user else None,
    )

    if simulation is not None:
        try:
            order = await interview_service.next_question_order(db, simulation.id)
            await interview_service.save_exchange(
                db, simulation.id, body.question, body.answer, evaluation, order
            )
        except SQLAlchemyError:
            logger.exception("Could not store answer for simulation %s", simulation.id)
            await db.rollback()

    return evaluation


@router.post("/finish", response_model=InterviewFinishResponse, tags=["Interview"])
async def finish(
    body: InterviewFinishRequest,
    user: TokenData | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Close a simulation and compute its average score.

    A stored simulation can only be closed by its owner. When it is not stored,
    or saving fails, the average is still computed from the submitted answers.
    """
    simulation = await _owned_simulation(db, body.simulation_id, user)
    score = None
    if simulation is None:
        logger.warning("Simulation %s not found, scoring locally", body.simulation_id)
    else:
        try:
            score = await interview_service.finish_simulation(db, simulation.id, body.all_answers)
        except SQLAlchemyError:
            logger.exception("Simulation %s not updated, scoring locally", simulation.id)
            await db.rollback()
    if score is None:
        score = interview_service.average_score(body.all_answers)

    return InterviewFinishResponse(
        simulation_id=body.simulation_id,
        score=score,
        message="Simulação finalizada com sucesso",
    )


@router.get("/user/list", response_model=list[InterviewSimulationResponse], tags=["Interview"])
async def list_interviews(
    limit: int = Query(default=50, ge=1, le=200),
    user: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Simulations of the current user, newest first."""
    simulations = await interview_service.list_user_simulations(db, user.user_id, limit)
    return [InterviewSimulationResponse.model_validate(s) for s in simulations]


@router.get("/{simulation_id}", response_model=InterviewSimulationResponse, tags=["Interview"])
async def get_interview(
    simulation_id: UUID,
    user: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """A simulation with its ordered messages."""
    simulation = await interview_service.get_simulation(db, simulation_id)
    _ensure_owner(simulation, user)
    return InterviewSimulationResponse.model_validate(simulation)


@router.get("/{simulation_id}/download", tags=["Interview"])
async def download_interview(
    simulation_id: UUID,
    user: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Plain-text transcript of a simulation."""
    simulation = await interview_service.get_simulation(db, simulation_id)
    _ensure_owner(simulation, user)
    filename = f"entrevista_{simulation.id}_{date.today().isoformat()}.txt"
    return Response(
        content=interview_service.render_transcript(simulation),
        media_type="text/plain; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
