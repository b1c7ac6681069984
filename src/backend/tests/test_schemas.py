"""Tests for Pydantic schema validation -- the parsing layer between LLM output and the API."""

from uuid import uuid4

import pytest
from pydantic import ValidationError

from curriculopro.models.schemas import (
    AnswerEvaluation,
    CheckoutResponse,
    InterviewFinishRequest,
    JobPosting,
    MockPurchaseRequest,
    ResumeAnalysis,
)

VALID_ANALYSIS = {
    "pontosFortes": ["Experiência sólida"],
    "pontosMelhorar": ["Adicionar certificações"],
    "experiencia": "5 anos em backend",
    "formacao": "Bacharel em Computação",
    "habilidades": ["Python", "SQL"],
    "recomendacoes": ["Quantificar resultados"],
    "score": 78,
    "areaAtuacao": "Tecnologia",
}


class TestResumeAnalysis:
    """Validate that LLM output parsing works correctly."""

    def test_valid_analysis_parses(self):
        analysis = ResumeAnalysis.model_validate(VALID_ANALYSIS)
        assert analysis.score == 78
        assert analysis.skills == ["Python", "SQL"]
        assert analysis.area == "Tecnologia"

    def test_dumps_portuguese_field_names(self):
        dumped = ResumeAnalysis.model_validate(VALID_ANALYSIS).model_dump(by_alias=True)
        assert set(VALID_ANALYSIS) <= set(dumped)

    def test_score_out_of_range_rejected(self):
        with pytest.raises(ValidationError):
            ResumeAnalysis.model_validate({**VALID_ANALYSIS, "score": 150})

    def test_negative_score_rejected(self):
        with pytest.raises(ValidationError):
            ResumeAnalysis.model_validate({**VALID_ANALYSIS, "score": -5})

    def test_missing_field_rejected(self):
        raw = dict(VALID_ANALYSIS)
        del raw["habilidades"]
        with pytest.raises(ValidationError):
            ResumeAnalysis.model_validate(raw)

    def test_area_is_optional(self):
        raw = dict(VALID_ANALYSIS)
        del raw["areaAtuacao"]
        assert ResumeAnalysis.model_validate(raw).area is None


class TestCamelCaseModels:
    def test_accepts_camel_and_snake_input(self):
        a = MockPurchaseRequest.model_validate(
            {"planId": "pack3", "planName": "Pacote 3", "creditsAmount": 3, "price": 24.9}
        )
        b = MockPurchaseRequest.model_validate(
            {"plan_id": "pack3", "plan_name": "Pacote 3", "credits_amount": 3, "price": 24.9}
        )
        assert a == b
        assert a.include_english is False
        assert a.english_price is None

    def test_checkout_response_uses_camel_case(self):
        dumped = CheckoutResponse(session_id="cs_1", checkout_url="https://x").model_dump(by_alias=True)
        assert dumped == {"sessionId": "cs_1", "checkoutUrl": "https://x"}

    def test_job_posting_defaults(self):
        job = JobPosting()
        assert job.title == "Sem título"
        assert job.company == "Não informado"
        assert job.requirements == []
        assert job.compatibility_score == 0


class TestInterviewSchemas:
    def test_evaluation_score_bounds(self):
        with pytest.raises(ValidationError):
            AnswerEvaluation(score=101, feedback="x")

    def test_finish_requires_answers(self):
        with pytest.raises(ValidationError):
            InterviewFinishRequest.model_validate({"simulationId": str(uuid4()), "allAnswers": []})

    def test_finish_accepts_answers_without_evaluation(self):
        body = InterviewFinishRequest.model_validate(
            {"simulationId": str(uuid4()), "allAnswers": [{"question": "P?", "answer": "R."}]}
        )
        assert body.all_answers[0].evaluation is None
