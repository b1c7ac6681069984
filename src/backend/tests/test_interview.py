"""Tests for the mock interview: defaults, reply parsing, scoring and the transcript."""

import asyncio
from datetime import datetime
from uuid import uuid4

from curriculopro.core.errors import AIServiceError
from curriculopro.models.orm import InterviewMessage, InterviewSimulation
from curriculopro.models.schemas import AnswerEvaluation, InterviewAnswer, SubmittedEvaluation
from curriculopro.services import interview_service

ANALYSIS = {"habilidades": ["FastAPI"], "experiencia": "3 anos"}


def _answer(score: int | None) -> InterviewAnswer:
    evaluation = SubmittedEvaluation(score=score, feedback="ok") if score is not None else None
    return InterviewAnswer(question="P?", answer="R.", evaluation=evaluation)


class TestQuestions:
    def test_technologies_from_skills_and_text(self):
        techs = interview_service.extract_technologies("Trabalhei com Python, Docker e Go.", ANALYSIS)
        assert techs == ["FastAPI", "python", "go", "docker"]

    def test_technology_match_is_whole_word(self):
        assert interview_service.extract_technologies("Gosto de javanês e google", {}) == []

    def test_default_questions_lead_with_main_technology(self):
        questions = interview_service.default_questions(["Python"])
        assert questions[0] == "Explique como você usa Python em seus projetos."
        assert len(questions) == interview_service.MAX_QUESTIONS

    def test_default_questions_without_technologies(self):
        assert interview_service.default_questions([]) == interview_service.BASE_QUESTIONS

    def test_parse_questions_drops_non_strings(self):
        assert interview_service.parse_questions('["A?", 2, " ", "B?"]') == ["A?", "B?"]

    def test_generation_failure_uses_defaults(self, monkeypatch):
        async def failing(*args, **kwargs):
            raise AIServiceError("boom")

        monkeypatch.setattr(interview_service.llm_service, "complete", failing)
        questions = asyncio.run(interview_service.generate_interview_questions("Python", ANALYSIS))
        assert questions == interview_service.default_questions(["FastAPI", "python"])


class TestEvaluation:
    def test_parse_clamps_score(self):
        evaluation = interview_service.parse_evaluation('{"score": 140, "feedback": "Ótimo"}')
        assert evaluation.score == 100
        assert evaluation.strengths == []

    def test_parse_rejects_missing_feedback(self):
        assert interview_service.parse_evaluation('{"score": 80}') is None

    def test_garbage_reply_is_neutral(self, monkeypatch):
        async def reply(*args, **kwargs):
            return "não sei avaliar"

        monkeypatch.setattr(interview_service.llm_service, "complete", reply)
        evaluation = asyncio.run(interview_service.evaluate_answer("P?", "R.", "cv", ANALYSIS))
        assert evaluation == interview_service.neutral_evaluation()
        assert evaluation.score == interview_service.NEUTRAL_SCORE


class TestScores:
    def test_missing_evaluation_counts_as_neutral(self):
        assert interview_service.answer_scores([_answer(90), _answer(None)]) == [90, 70]

    def test_evaluation_without_score_counts_as_neutral(self):
        unscored = InterviewAnswer(question="P?", answer="R.", evaluation=SubmittedEvaluation(feedback="sem nota"))
        assert interview_service.answer_scores([unscored]) == [interview_service.NEUTRAL_SCORE]
        assert interview_service.average_score([unscored, _answer(90)]) == 80

    def test_zero_score_is_kept(self):
        assert interview_service.answer_scores([_answer(0)]) == [0]

    def test_average_is_rounded(self):
        assert interview_service.average_score([_answer(80), _answer(55), _answer(40)]) == 58

    def test_summary_buckets(self):
        stats = interview_service.summarize_scores([90, 70, 69, 50, 10])
        assert stats == {
            "goodAnswers": 2,
            "averageAnswers": 2,
            "poorAnswers": 1,
            "minScore": 10,
            "maxScore": 90,
        }


class TestTranscript:
    def _simulation(self) -> InterviewSimulation:
        evaluation = AnswerEvaluation(score=85, feedback="Boa resposta", strengths=["Clareza"], improvements=[])
        return InterviewSimulation(
            id=uuid4(),
            user_id=uuid4(),
            resume_id=uuid4(),
            title="Simulação de Entrevista",
            focus_area="Backend",
            questions=["Fale sobre você", "Por que Python?"],
            answers=[],
            overall_score=85,
            overall_feedback={"statistics": interview_service.summarize_scores([85])},
            created_at=datetime(2026, 3, 14, 9, 30),
            messages=[
                InterviewMessage(kind="pergunta", content="Fale sobre você", order=1, extra={"questionIndex": 0}),
                InterviewMessage(kind="resposta", content="Sou desenvolvedora", order=2, extra={"questionIndex": 0}),
                InterviewMessage(
                    kind="feedback",
                    content=evaluation.model_dump_json(),
                    feedback=evaluation.feedback,
                    order=3,
                    extra={"questionIndex": 0, "score": 85},
                ),
                InterviewMessage(kind="pergunta", content="Por que Python?", order=4, extra={"questionIndex": 1}),
            ],
        )

    def test_header_and_statistics(self):
        text = interview_service.render_transcript(self._simulation())
        assert "SIMULAÇÃO DE ENTREVISTA - RELATÓRIO COMPLETO" in text
        assert "Data: 14/03/2026 09:30:00" in text
        assert "Área de Foco: Backend" in text
        assert "Score Médio: 85/100" in text
        assert "- Respostas Boas (≥70): 1" in text

    def test_questions_in_order_with_answers(self):
        text = interview_service.render_transcript(self._simulation())
        assert text.index("PERGUNTA 1:") < text.index("Sou desenvolvedora") < text.index("PERGUNTA 2:")
        assert "Score: 85/100" in text
        assert "Feedback: Boa resposta" in text
        assert "- Clareza" in text
        assert "Pontos a Melhorar:" not in text

    def test_unanswered_question_has_no_answer_block(self):
        text = interview_service.render_transcript(self._simulation())
        tail = text[text.index("PERGUNTA 2:"):]
        assert "RESPOSTA:" not in tail
