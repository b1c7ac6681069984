"""Prompt templates for ATS-oriented cover letters."""

import json

PROMPT_VERSION = "v1.1"

SYSTEM_PROMPT = """\
Você é um especialista em redação de cartas de apresentação profissionais otimizadas para \
análise por sistemas ATS (Applicant Tracking Systems) e IAs de validação de currículo.
Sua função é criar cartas de apresentação personalizadas, persuasivas e profissionais que \
destaquem as qualificações do candidato de forma estratégica.

IMPORTANTE:
- A carta deve ser profissional, concisa e impactante
- Destaque os pontos fortes identificados na análise
- A carta deve ter entre 3-4 parágrafos
- Seja específico e evite clichês genéricos
- Mencione conquistas e resultados quando possível
- Otimize a carta para passar por sistemas ATS e análise de IA de recrutadores"""

SITE_CONTEXT_TEMPLATE = """\
=== CONTEXTO CRÍTICO - SITE DE VAGAS SELECIONADO ===
Esta carta será usada no site: {name}
{description}{characteristics}{keywords}
=====================================================

IMPORTANTE: Toda a geração DEVE ser adaptada especificamente para o site {name}.
As palavras-chave acima são CRÍTICAS e devem ser incorporadas naturalmente no texto.
"""

USER_PROMPT_TEMPLATE = """\
Com base no currículo e na análise fornecidos, crie uma carta de apresentação profissional e personalizada.
{site_context}
CURRÍCULO DO CANDIDATO:
{resume_text}

ANÁLISE DO CURRÍCULO:
- Pontos Fortes: {strengths}
- Experiência: {experience}
- Formação: {education}
- Habilidades: {skills}
- Score: {score}/100

Crie uma carta de apresentação que:
1. Apresenta o candidato de forma profissional
2. Destaca os principais pontos fortes e experiências relevantes
3. Demonstra interesse e adequação para oportunidades
4. Usa linguagem persuasiva mas profissional
5. É específica e evita generalidades{keyword_rule}

Formato da carta:
- Saudação profissional (Ex: "Prezados Senhores," ou "Caro(a) Recrutador(a),")
- Parágrafo introdutório: Apresentação e objetivo
- Parágrafo(s) do meio: Destaque de qualificações e experiências relevantes
- Parágrafo final: Encerramento profissional e disponibilidade para contato

Separe os parágrafos com uma linha em branco.
Retorne APENAS o texto da carta de apresentação, sem explicações adicionais."""


def _join(value, default: str = "Não especificado") -> str:
    if isinstance(value, list):
        return ", ".join(str(v) for v in value) or default
    return str(value) if value else default


def build_site_context(
    name: str,
    description: str | None,
    characteristics: dict | None,
    keywords: list[str],
) -> str:
    return SITE_CONTEXT_TEMPLATE.format(
        name=name,
        description=f"Descrição do site: {description}\n" if description else "",
        characteristics=(
            f"Características específicas do site: {json.dumps(characteristics, ensure_ascii=False, indent=2)}\n"
            if characteristics else ""
        ),
        keywords=(
            f"PALAVRAS-CHAVE PRIORITÁRIAS PARA ESTE SITE (ESSENCIAIS PARA ATS): {', '.join(keywords)}\n"
            if keywords else ""
        ),
    )


def build_cover_letter_prompt(
    resume_text: str,
    analysis: dict,
    site_context: str = "",
    site_keywords: list[str] | None = None,
) -> tuple[str, str]:
    """Build system + user prompts for a cover letter.

    Returns (system_prompt, user_prompt).
    """
    system_prompt = SYSTEM_PROMPT
    keyword_rule = ""
    if site_keywords:
        joined = ", ".join(site_keywords)
        system_prompt += (
            f"\n- Use naturalmente e estrategicamente as seguintes palavras-chave CRÍTICAS para o site: {joined}"
        )
        keyword_rule = f"\n6. Incorpora NATURALMENTE as palavras-chave CRÍTICAS: {joined}"

    user_prompt = USER_PROMPT_TEMPLATE.format(
        site_context=f"\n{site_context}\n" if site_context else "\n",
        resume_text=resume_text,
        strengths=_join(analysis.get("pontosFortes")),
        experience=_join(analysis.get("experiencia")),
        education=_join(analysis.get("formacao")),
        skills=_join(analysis.get("habilidades")),
        score=analysis.get("score") or "N/A",
        keyword_rule=keyword_rule,
    )
    return system_prompt, user_prompt
