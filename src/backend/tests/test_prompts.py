"""Tests for prompt construction -- ensures prompts are well-formed and versioned."""

from curriculopro.prompts import cover_letter, interview, job_search, resume_analysis
from curriculopro.prompts.resume_analysis import (
    ANALYSIS_SYSTEM_PROMPT,
    STRICT_JSON_SUFFIX,
    build_analysis_prompt,
    build_improvement_prompt,
)

ANALYSIS = {
    "pontosFortes": ["Python avançado", "Liderança"],
    "pontosMelhorar": ["Sem inglês"],
    "experiencia": "5 anos como backend",
    "habilidades": ["Python", "FastAPI", "PostgreSQL"],
    "recomendacoes": ["Quantificar resultados", "Adicionar LinkedIn"],
    "areaAtuacao": "Tecnologia",
}


def test_prompt_versions_format():
    for module in (resume_analysis, cover_letter, interview, job_search):
        assert module.PROMPT_VERSION.startswith("v")
        assert "." in module.PROMPT_VERSION


def test_system_prompt_has_bias_guardrails():
    assert "características protegidas" in ANALYSIS_SYSTEM_PROMPT


def test_build_analysis_prompt_substitutes_text():
    system, user = build_analysis_prompt("Maria Souza, desenvolvedora Python")
    assert system == ANALYSIS_SYSTEM_PROMPT
    assert "Maria Souza, desenvolvedora Python" in user
    assert STRICT_JSON_SUFFIX not in user


def test_build_analysis_prompt_preserves_json_template():
    """The output format instructions must survive .format() without breaking."""
    _, user = build_analysis_prompt("x")
    assert '"pontosFortes"' in user
    assert '"areaAtuacao"' in user
    assert "{{" not in user


def test_strict_json_suffix_appended():
    _, user = build_analysis_prompt("x", strict_json=True)
    assert user.endswith(STRICT_JSON_SUFFIX)


def test_improvement_prompt_joins_analysis_lists():
    _, user = build_improvement_prompt("Currículo original", ANALYSIS)
    assert "Currículo original" in user
    assert "Python avançado, Liderança" in user
    assert "Quantificar resultados; Adicionar LinkedIn" in user


class TestCoverLetterPrompt:
    def test_without_site(self):
        system, user = cover_letter.build_cover_letter_prompt("Texto do currículo", ANALYSIS)
        assert system == cover_letter.SYSTEM_PROMPT
        assert "Texto do currículo" in user
        assert "CRÍTICAS" not in user

    def test_site_keywords_reach_both_prompts(self):
        context = cover_letter.build_site_context("Catho", "Vagas CLT", {"tom": "formal"}, ["CLT", "proatividade"])
        system, user = cover_letter.build_cover_letter_prompt(
            "Texto", ANALYSIS, site_context=context, site_keywords=["CLT", "proatividade"]
        )
        assert "CLT, proatividade" in system
        assert "Catho" in user
        assert "CLT, proatividade" in user

    def test_site_context_omits_empty_parts(self):
        context = cover_letter.build_site_context("Indeed", None, None, [])
        assert "Indeed" in context
        assert "Descrição do site" not in context
        assert "PALAVRAS-CHAVE" not in context


class TestInterviewPrompts:
    def test_questions_prompt_lists_technologies_and_site(self):
        _, user = interview.build_questions_prompt(
            "curriculo", ANALYSIS, ["Python", "Docker"], site_name="LinkedIn", site_description="Rede"
        )
        assert "Tecnologias Identificadas: Python, Docker" in user
        assert "CONTEXTO DO SITE DE VAGAS: LinkedIn" in user
        assert "Área de Atuação: Tecnologia" in user

    def test_questions_prompt_defaults(self):
        _, user = interview.build_questions_prompt("curriculo", {}, [])
        assert "Habilidades: Não especificado" in user
        assert "Tecnologias Identificadas" not in user
        assert "CONTEXTO DO SITE" not in user

    def test_resume_excerpts_are_truncated(self):
        text = "a" * 5000
        _, questions = interview.build_questions_prompt(text, ANALYSIS, [])
        _, evaluation = interview.build_evaluation_prompt("P?", "R.", text, ANALYSIS)
        assert "a" * interview.QUESTIONS_RESUME_CHARS in questions
        assert "a" * (interview.QUESTIONS_RESUME_CHARS + 1) not in questions
        assert "a" * (interview.EVALUATION_RESUME_CHARS + 1) not in evaluation

    def test_evaluation_prompt_keeps_json_braces(self):
        _, user = interview.build_evaluation_prompt("Fale de você", "Sou dev", "cv", ANALYSIS)
        assert '"score": 85' in user
        assert "Fale de você" in user


def test_keywords_prompt_mentions_site():
    _, user = job_search.build_keywords_prompt("cv", ANALYSIS, "Catho", {"foco": "CLT"}, ["CLT"])
    assert "busca de vagas no site Catho" in user
    assert '"foco": "CLT"' in user
    assert "PALAVRAS-CHAVE PADRÃO DO SITE:\nCLT" in user


def test_keywords_prompt_without_defaults():
    _, user = job_search.build_keywords_prompt("cv", {}, "Indeed", None, None)
    assert "Nenhuma" in user
    assert "{}" in user
