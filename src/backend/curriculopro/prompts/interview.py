"""Prompt templates for mock interview question generation and answer grading."""

PROMPT_VERSION = "v1.0"

QUESTIONS_SYSTEM_PROMPT = (
    "Você é um recrutador técnico experiente. Retorne apenas um array JSON de perguntas."
)

QUESTIONS_PROMPT_TEMPLATE = """\
Você é um recrutador técnico experiente. Com base no currículo e análise fornecidos, \
gere uma lista de 8-10 perguntas de entrevista técnica e comportamental relevantes.

CURRÍCULO:
{resume_excerpt}

ANÁLISE DO CURRÍCULO:
- Habilidades: {skills}
- Experiência: {experience}
- Pontos Fortes: {strengths}
- Área de Atuação: {area}{technologies}{site_info}

INSTRUÇÕES:
1. Gere perguntas técnicas específicas sobre as tecnologias mencionadas no currículo
2. Inclua perguntas comportamentais (ex: "Conte-me sobre um projeto desafiador")
3. Adapte as perguntas ao nível de experiência indicado
4. Faça perguntas práticas e relevantes para a área
5. Retorne APENAS um array JSON de strings, sem explicações

FORMATO DE RESPOSTA (JSON array):
["Pergunta 1", "Pergunta 2", "Pergunta 3"]"""

EVALUATION_SYSTEM_PROMPT = "Você é um recrutador técnico. Retorne apenas JSON."

EVALUATION_PROMPT_TEMPLATE = """\
Você é um recrutador técnico avaliando uma resposta de entrevista.

PERGUNTA:
{question}

RESPOSTA DO CANDIDATO:
{answer}

CONTEXTO DO CURRÍCULO:
{resume_excerpt}

ANÁLISE DO CURRÍCULO:
- Habilidades: {skills}
- Experiência: {experience}

INSTRUÇÕES:
1. Avalie a qualidade da resposta (0-100)
2. Forneça feedback construtivo
3. Identifique pontos fortes e fracos
4. Retorne APENAS um objeto JSON no formato:
{{
  "score": 85,
  "feedback": "Feedback detalhado aqui",
  "strengths": ["Ponto forte 1", "Ponto forte 2"],
  "improvements": ["Ponto a melhorar 1", "Ponto a melhorar 2"]
}}"""

QUESTIONS_RESUME_CHARS = 2000
EVALUATION_RESUME_CHARS = 1000


def _list_or_default(value, limit: int | None = None) -> str:
    if isinstance(value, list) and value:
        return ", ".join(str(v) for v in value[:limit])
    return "Não especificado"


def build_questions_prompt(
    resume_text: str,
    analysis: dict,
    technologies: list[str],
    site_name: str | None = None,
    site_description: str | None = None,
) -> tuple[str, str]:
    site_info = ""
    if site_name:
        site_info = f"\n\nCONTEXTO DO SITE DE VAGAS: {site_name}\n{site_description or ''}"
    user_prompt = QUESTIONS_PROMPT_TEMPLATE.format(
        resume_excerpt=resume_text[:QUESTIONS_RESUME_CHARS],
        skills=_list_or_default(analysis.get("habilidades")),
        experience=analysis.get("experiencia") or "Não especificado",
        strengths=_list_or_default(analysis.get("pontosFortes"), limit=5),
        area=analysis.get("areaAtuacao") or "Não especificado",
        technologies=f"\n- Tecnologias Identificadas: {', '.join(technologies)}" if technologies else "",
        site_info=site_info,
    )
    return QUESTIONS_SYSTEM_PROMPT, user_prompt


def build_evaluation_prompt(
    question: str,
    answer: str,
    resume_text: str,
    analysis: dict,
) -> tuple[str, str]:
    user_prompt = EVALUATION_PROMPT_TEMPLATE.format(
        question=question,
        answer=answer,
        resume_excerpt=resume_text[:EVALUATION_RESUME_CHARS],
        skills=_list_or_default(analysis.get("habilidades")),
        experience=analysis.get("experiencia") or "Não especificado",
    )
    return EVALUATION_SYSTEM_PROMPT, user_prompt
