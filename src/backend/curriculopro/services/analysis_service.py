"""Résumé analysis: LLM-backed scoring with a deterministic offline mode."""

import logging
import re

import redis.asyncio as redis
from langchain_text_splitters import RecursiveCharacterTextSplitter
from pydantic import ValidationError

from curriculopro.core.config import settings
from curriculopro.core.errors import AIServiceError
from curriculopro.models.schemas import ResumeAnalysis
from curriculopro.prompts.resume_analysis import build_analysis_prompt
from curriculopro.services import cache_service, llm_service

logger = logging.getLogger(__name__)

TRUNCATION_MARKER = "... [texto truncado]"


def validate_and_truncate(text: str, max_chars: int | None = None) -> str:
    """Reject empty text and cut long text at a paragraph or sentence boundary."""
    if not text or not text.strip():
        raise ValueError("Texto do currículo está vazio")
    limit = max_chars or settings.max_resume_chars
    if len(text) <= limit:
        return text

    splitter = RecursiveCharacterTextSplitter(
        chunk_size=limit,
        chunk_overlap=0,
        separators=["\n\n", "\n", ". ", " ", ""],
    )
    head = splitter.split_text(text)[0]
    logger.warning("Résumé truncated from %d to %d characters", len(text), len(head))
    return head + TRUNCATION_MARKER


# --- Offline analysis ---

_EMAIL_RE = re.compile(r"[\w.-]+@[\w.-]+\.\w+")
_PHONE_RE = re.compile(r"\d{10,}|\(\d{2}\)\s?\d{4,5}-?\d{4}")
_EXPERIENCE_RE = re.compile(
    r"experiência|experience|trabalho|work|empresa|company|profissional|professional", re.I
)
_EDUCATION_RE = re.compile(
    r"formação|education|graduação|graduation|curso|course|universidade|university|faculdade|college",
    re.I,
)
_SKILLS_RE = re.compile(r"habilidade|skill|competência|competency|conhecimento|knowledge", re.I)

SKILL_PATTERNS = [
    (re.compile(r"javascript|js|node|react|angular|vue", re.I), "JavaScript"),
    (re.compile(r"python|django|flask", re.I), "Python"),
    (re.compile(r"java|spring", re.I), "Java"),
    (re.compile(r"sql|database|banco de dados", re.I), "Banco de Dados"),
    (re.compile(r"git|github|versionamento", re.I), "Controle de Versão"),
    (re.compile(r"html|css|web", re.I), "Desenvolvimento Web"),
    (re.compile(r"gerenciamento|management|gestão", re.I), "Gestão"),
    (re.compile(r"comunicação|communication", re.I), "Comunicação"),
    (re.compile(r"trabalho em equipe|team work|colaboração", re.I), "Trabalho em Equipe"),
]
DEFAULT_SKILLS = ["Comunicação", "Trabalho em Equipe", "Organização", "Proatividade"]

MOCK_RECOMMENDATIONS = [
    "Revise e atualize suas informações de contato (email e telefone)",
    "Destaque suas principais conquistas e resultados quantificáveis",
    "Organize as informações de forma clara e cronológica",
    "Inclua palavras-chave relevantes para sua área de atuação",
    "Mantenha o currículo atualizado e adaptado para cada oportunidade",
]


def mock_analysis(text: str) -> ResumeAnalysis:
    """Heuristic analysis used when USE_MOCK_AI is on. Deterministic for a given text."""
    has_email = "@" in text or bool(_EMAIL_RE.search(text))
    has_phone = bool(_PHONE_RE.search(text))
    has_experience = bool(_EXPERIENCE_RE.search(text))
    has_education = bool(_EDUCATION_RE.search(text))
    has_skills = bool(_SKILLS_RE.search(text))
    length = len(text)

    score = 50
    score += 10 if has_email else 0
    score += 10 if has_phone else 0
    score += 15 if has_experience else 0
    score += 15 if has_education else 0
    score += 10 if has_skills else 0
    score += 5 if length > 500 else 0
    score += 5 if length > 1000 else 0
    score = min(100, max(0, score))

    strengths = [
        label
        for present, label in [
            (has_email, "Email de contato presente"),
            (has_phone, "Telefone de contato presente"),
            (has_experience, "Experiência profissional mencionada"),
            (has_education, "Formação acadêmica mencionada"),
            (has_skills, "Habilidades e competências destacadas"),
            (length > 500, "Currículo com conteúdo detalhado"),
        ]
        if present
    ] or ["Estrutura básica do currículo presente"]

    improvements = [
        label
        for missing, label in [
            (not has_email, "Adicione um email de contato profissional"),
            (not has_phone, "Adicione um telefone de contato"),
            (not has_experience, "Destaque sua experiência profissional com períodos e responsabilidades"),
            (not has_education, "Mencione sua formação acadêmica com instituições e períodos"),
            (not has_skills, "Liste suas principais habilidades técnicas e comportamentais"),
            (length < 500, "Adicione mais detalhes e informações relevantes"),
        ]
        if missing
    ] or ["Revise a formatação e organização do currículo"]

    skills = [label for pattern, label in SKILL_PATTERNS if pattern.search(text)] or list(DEFAULT_SKILLS)

    if has_experience:
        experience = (
            "Experiência profissional identificada no currículo. Recomenda-se detalhar períodos, "
            "empresas, cargos e principais responsabilidades e conquistas em cada posição."
        )
    else:
        experience = (
            "Experiência profissional não encontrada ou não detalhada. É importante destacar seu "
            "histórico profissional com datas, empresas, cargos e responsabilidades."
        )
    if has_education:
        education = (
            "Formação acadêmica identificada. Recomenda-se incluir instituições, cursos, períodos de "
            "conclusão e qualquer certificação ou curso complementar relevante."
        )
    else:
        education = (
            "Formação acadêmica não encontrada ou não detalhada. É importante destacar sua educação "
            "formal, cursos técnicos, graduações e especializações."
        )

    return ResumeAnalysis(
        strengths=strengths[:5],
        improvements=improvements[:5],
        experience=experience,
        education=education,
        skills=skills[:10],
        recommendations=list(MOCK_RECOMMENDATIONS),
        score=score,
    )


def parse_analysis(raw_text: str) -> ResumeAnalysis:
    """Parse and validate the model's JSON reply. Raises AIServiceError on malformed output."""
    parsed = llm_service.extract_json_object(raw_text)
    if parsed is None:
        logger.error("LLM returned invalid JSON: %s", raw_text[:500])
        raise AIServiceError("Resposta da IA não está em formato JSON válido")
    try:
        return ResumeAnalysis.model_validate(parsed)
    except ValidationError as exc:
        logger.error("LLM analysis failed validation: %s", exc)
        raise AIServiceError(f"Resposta da IA com estrutura inválida: {exc.error_count()} erro(s)") from exc


async def analyze_resume(text: str, user_id=None) -> ResumeAnalysis:
    """Analyze résumé text. Checks the cache before calling the provider."""
    if settings.use_mock_ai:
        logger.info("Using offline analysis (mock mode)")
        return mock_analysis(text)

    resume_text = validate_and_truncate(text)
    provider = llm_service.resolve_provider("openai")
    model = settings.openai_model if provider == "openai" else settings.gemini_model

    try:
        cached = await cache_service.get_cached_analysis(resume_text, model)
    except redis.RedisError:
        logger.warning("Analysis cache unavailable")
        cached = None
    if cached is not None:
        logger.info("Cache hit for résumé analysis")
        return cached

    strict = provider == "openai" and not llm_service.supports_json_mode(model)
    system_prompt, user_prompt = build_analysis_prompt(resume_text, strict_json=strict)
    raw = await llm_service.complete(
        user_prompt,
        system=system_prompt,
        service_type="resume_analysis",
        provider=provider,
        temperature=0.7,
        max_tokens=2000,
        json_mode=True,
        user_id=user_id,
    )
    analysis = parse_analysis(raw)

    try:
        await cache_service.set_cached_analysis(resume_text, model, analysis)
    except redis.RedisError:
        logger.warning("Could not cache résumé analysis")
    return analysis
