"""Mock interview: question generation, answer grading and simulation persistence."""

import logging
import re
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from curriculopro.core.errors import AIServiceError, NotFoundError
from curriculopro.models.orm import InterviewMessage, InterviewSimulation, JobSite
from curriculopro.models.schemas import AnswerEvaluation, InterviewAnswer
from curriculopro.prompts.interview import build_evaluation_prompt, build_questions_prompt
from curriculopro.services import llm_service

logger = logging.getLogger(__name__)

MAX_QUESTIONS = 10
MAX_TECHNOLOGIES = 10
NEUTRAL_SCORE = 70

KNOWN_TECHNOLOGIES = [
    "javascript", "typescript", "python", "java", "c#", "php", "ruby", "go", "rust",
    "react", "angular", "vue", "node.js", "express", "django", "flask", "spring",
    "sql", "mysql", "postgresql", "mongodb", "redis",
    "aws", "azure", "gcp", "docker", "kubernetes", "git",
]
_TECH_RES = {
    tech: re.compile(rf"(?<!\w){re.escape(tech)}(?!\w)") for tech in KNOWN_TECHNOLOGIES
}

BASE_QUESTIONS = [
    "Conte-me sobre você e sua experiência profissional.",
    "Qual foi o projeto mais desafiador que você já trabalhou?",
    "Como você lida com prazos apertados e pressão no trabalho?",
    "Descreva uma situação onde você teve que trabalhar em equipe para resolver um problema.",
    "O que você sabe sobre nossa empresa?",
    "Por que você quer trabalhar conosco?",
    "Quais são suas principais conquistas profissionais?",
    "Como você se mantém atualizado com as novas tecnologias?",
]


def extract_technologies(resume_text: str, analysis: dict) -> list[str]:
    """Skills from the analysis plus known technology names found in the résumé."""
    found: list[str] = []
    skills = analysis.get("habilidades")
    if isinstance(skills, list):
        found += [str(s) for s in skills]
    text = resume_text.lower()
    found += [tech for tech, pattern in _TECH_RES.items() if pattern.search(text)]
    return list(dict.fromkeys(found))[:MAX_TECHNOLOGIES]


def default_questions(technologies: list[str]) -> list[str]:
    questions = []
    if technologies:
        main = technologies[0]
        questions = [
            f"Explique como você usa {main} em seus projetos.",
            f"Quais são os principais desafios ao trabalhar com {main}?",
            f"Conte-me sobre um projeto onde você usou {main}.",
        ]
    return (questions + BASE_QUESTIONS)[:MAX_QUESTIONS]


def neutral_evaluation() -> AnswerEvaluation:
    return AnswerEvaluation(
        score=NEUTRAL_SCORE,
        feedback="Resposta recebida. Continue com a próxima pergunta.",
        strengths=["Resposta fornecida"],
        improvements=["Tente ser mais específico e detalhado"],
    )


def parse_questions(raw: str) -> list[str]:
    parsed = llm_service.extract_json_array(raw) or []
    return [q.strip() for q in parsed if isinstance(q, str) and q.strip()]


def parse_evaluation(raw: str) -> AnswerEvaluation | None:
    parsed = llm_service.extract_json_object(raw)
    if parsed is None:
        return None
    if isinstance(parsed.get("score"), (int, float)):
        parsed["score"] = max(0, min(100, round(parsed["score"])))
    try:
        return AnswerEvaluation.model_validate(parsed)
    except ValidationError:
        logger.warning("Evaluation reply failed validation: %s", raw[:300])
        return None


async def generate_interview_questions(
    resume_text: str,
    analysis: dict,
    site: JobSite | None = None,
    user_id=None,
) -> list[str]:
    """8-10 questions from the LLM, or the default set when it fails or answers garbage."""
    technologies = extract_technologies(resume_text, analysis)
    system_prompt, user_prompt = build_questions_prompt(
        resume_text,
        analysis,
        technologies,
        site.name if site else None,
        site.description if site else None,
    )
    try:
        raw = await llm_service.complete(
            user_prompt,
            system=system_prompt,
            service_type="interview_questions",
            temperature=0.7,
            max_tokens=1500,
            user_id=user_id,
        )
    except AIServiceError as exc:
        logger.warning("Question generation failed, using defaults: %s", exc)
        return default_questions(technologies)

    questions = parse_questions(raw)
    if not questions:
        logger.warning("Question reply did not parse, using defaults")
        return default_questions(technologies)
    return questions


async def evaluate_answer(
    question: str,
    answer: str,
    resume_text: str,
    analysis: dict,
    user_id=None,
) -> AnswerEvaluation:
    system_prompt, user_prompt = build_evaluation_prompt(question, answer, resume_text, analysis)
    try:
        raw = await llm_service.complete(
            user_prompt,
            system=system_prompt,
            service_type="interview_evaluation",
            temperature=0.7,
            max_tokens=500,
            json_mode=True,
            user_id=user_id,
        )
    except AIServiceError as exc:
        logger.warning("Answer evaluation failed, using neutral score: %s", exc)
        return neutral_evaluation()
    return parse_evaluation(raw) or neutral_evaluation()


# --- Persistence ---

async def create_simulation(
    db: AsyncSession,
    user_id: UUID,
    resume_id: UUID,
    site_id: UUID,
    questions: list[str],
    focus_area: str | None = None,
) -> InterviewSimulation:
    simulation = InterviewSimulation(
        resume_id=resume_id,
        user_id=user_id,
        job_site_id=site_id,
        title="Simulação de Entrevista",
        focus_area=focus_area or "Geral",
        questions=questions,
        answers=[],
    )
    db.add(simulation)
    await db.commit()
    await db.refresh(simulation)
    logger.info("Interview simulation %s created with %d questions", simulation.id, len(questions))
    return simulation


async def next_question_order(db: AsyncSession, simulation_id: UUID) -> int:
    result = await db.execute(
        select(func.count(InterviewMessage.id)).where(
            InterviewMessage.simulation_id == simulation_id,
            InterviewMessage.kind == "pergunta",
        )
    )
    return result.scalar_one() + 1


async def save_exchange(
    db: AsyncSession,
    simulation_id: UUID,
    question: str,
    answer: str,
    evaluation: AnswerEvaluation | None,
    order: int,
) -> None:
    """Store question n, its answer and feedback at positions 3n-2, 3n-1 and 3n."""
    index = order - 1
    messages = [
        InterviewMessage(
            simulation_id=simulation_id,
            kind="pergunta",
            content=question,
            order=order * 3 - 2,
            extra={"questionIndex": index},
        ),
        InterviewMessage(
            simulation_id=simulation_id,
            kind="resposta",
            content=answer,
            order=order * 3 - 1,
            extra={"questionIndex": index},
        ),
    ]
    if evaluation is not None:
        messages.append(
            InterviewMessage(
                simulation_id=simulation_id,
                kind="feedback",
                content=evaluation.model_dump_json(),
                feedback=evaluation.feedback,
                order=order * 3,
                extra={
                    "questionIndex": index,
                    "score": evaluation.score,
                    "strengths": evaluation.strengths,
                    "improvements": evaluation.improvements,
                },
            )
        )
    db.add_all(messages)
    await db.commit()


def answer_scores(answers: list[InterviewAnswer]) -> list[int]:
    # unevaluated or unscored answers count as neutral
    return [
        a.evaluation.score if a.evaluation and a.evaluation.score is not None else NEUTRAL_SCORE
        for a in answers
    ]


def average_score(answers: list[InterviewAnswer]) -> int:
    scores = answer_scores(answers)
    return round(sum(scores) / len(scores))


def summarize_scores(scores: list[int]) -> dict:
    return {
        "goodAnswers": sum(1 for s in scores if s >= 70),
        "averageAnswers": sum(1 for s in scores if 50 <= s < 70),
        "poorAnswers": sum(1 for s in scores if s < 50),
        "minScore": min(scores),
        "maxScore": max(scores),
    }


async def finish_simulation(
    db: AsyncSession,
    simulation_id: UUID,
    answers: list[InterviewAnswer],
) -> int:
    """Store all answers and the overall feedback. Returns the average score."""
    simulation = await db.get(InterviewSimulation, simulation_id)
    if simulation is None:
        raise NotFoundError("Simulação não encontrada")

    dumped = [a.model_dump(by_alias=True) for a in answers]
    score = average_score(answers)
    simulation.answers = dumped
    simulation.overall_score = score
    simulation.overall_feedback = {
        "score": score,
        "totalPerguntas": len(answers),
        "respostas": dumped,
        "statistics": summarize_scores(answer_scores(answers)),
    }
    await db.commit()
    logger.info("Interview simulation %s finished with score %d", simulation_id, score)
    return score


async def get_simulation(db: AsyncSession, simulation_id: UUID) -> InterviewSimulation:
    simulation = await db.get(InterviewSimulation, simulation_id)
    if simulation is None:
        raise NotFoundError("Simulação não encontrada")
    return simulation


async def list_user_simulations(db: AsyncSession, user_id: UUID, limit: int = 50) -> list[InterviewSimulation]:
    result = await db.execute(
        select(InterviewSimulation)
        .where(InterviewSimulation.user_id == user_id)
        .order_by(InterviewSimulation.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


# --- Transcript ---

RULE = "=" * 40


def render_transcript(simulation: InterviewSimulation) -> str:
    """Plain-text report of a simulation with every question, answer and evaluation."""
    lines = [
        RULE,
        "SIMULAÇÃO DE ENTREVISTA - RELATÓRIO COMPLETO",
        RULE,
        "",
        f"ID da Simulação: {simulation.id}",
        f"Data: {simulation.created_at:%d/%m/%Y %H:%M:%S}",
        f"Área de Foco: {simulation.focus_area or 'Geral'}",
        f"Total de Perguntas: {len(simulation.questions or [])}",
        f"Score Médio: {simulation.overall_score or 0}/100",
        "",
    ]

    stats = (simulation.overall_feedback or {}).get("statistics")
    if stats:
        lines += [
            "Estatísticas:",
            f"- Respostas Boas (≥70): {stats.get('goodAnswers', 0)}",
            f"- Respostas Médias (50-69): {stats.get('averageAnswers', 0)}",
            f"- Precisam Melhorar (<50): {stats.get('poorAnswers', 0)}",
            f"- Score Mínimo: {stats.get('minScore', 0)}",
            f"- Score Máximo: {stats.get('maxScore', 0)}",
            "",
        ]

    lines += [RULE, "PERGUNTAS E RESPOSTAS", RULE, ""]

    by_kind: dict[tuple[str, int], InterviewMessage] = {}
    questions = []
    for message in simulation.messages:
        index = (message.extra or {}).get("questionIndex")
        if message.kind == "pergunta":
            questions.append((message, index if index is not None else len(questions)))
        elif index is not None:
            by_kind.setdefault((message.kind, index), message)

    for number, (question, index) in enumerate(questions, start=1):
        lines += [f"PERGUNTA {number}:", question.content, ""]
        answer = by_kind.get(("resposta", index))
        if answer is not None:
            lines += ["RESPOSTA:", answer.content, ""]
        feedback = by_kind.get(("feedback", index))
        if feedback is not None:
            lines += _evaluation_lines(feedback)
        lines += [RULE, ""]

    return "\n".join(lines) + "\n"


def _evaluation_lines(message: InterviewMessage) -> list[str]:
    extra = message.extra or {}
    try:
        evaluation = AnswerEvaluation.model_validate_json(message.content)
    except ValidationError:
        return ["AVALIAÇÃO:", f"Feedback: {message.feedback or ''}", ""]

    lines = [
        "AVALIAÇÃO:",
        f"Score: {evaluation.score or extra.get('score', 0)}/100",
        f"Feedback: {evaluation.feedback or message.feedback or ''}",
    ]
    if evaluation.strengths:
        lines.append("Pontos Fortes:")
        lines += [f"- {s}" for s in evaluation.strengths]
    if evaluation.improvements:
        lines.append("Pontos a Melhorar:")
        lines += [f"- {s}" for s in evaluation.improvements]
    lines.append("")
    return lines
