"""Prompt template for job-search keyword generation."""

import json

PROMPT_VERSION = "v1.0"

SYSTEM_PROMPT = "Você é um assistente especializado em recrutamento e busca de vagas."

KEYWORDS_PROMPT_TEMPLATE = """\
Você é um especialista em recrutamento e busca de vagas. Analise o currículo e a análise \
fornecida para gerar palavras-chave otimizadas para busca de vagas no site {site_name}.

CURRÍCULO:
{resume_excerpt}

ANÁLISE DO CURRÍCULO:
- Habilidades: {skills}
- Experiência: {experience}
- Pontos Fortes: {strengths}
- Área de Atuação: {area}

CARACTERÍSTICAS DO SITE {site_name}:
{characteristics}

PALAVRAS-CHAVE PADRÃO DO SITE:
{default_keywords}

INSTRUÇÕES:
1. Gere 15-20 palavras-chave relevantes para busca de vagas
2. Inclua tecnologias, habilidades técnicas, soft skills e termos do mercado
3. Priorize palavras-chave que combinem com o perfil do candidato
4. Considere sinônimos e variações de termos técnicos
5. Inclua termos específicos do site {site_name}
6. Retorne APENAS um array JSON de strings, sem explicações adicionais

FORMATO DE RESPOSTA (JSON array):
["palavra-chave 1", "palavra-chave 2", "palavra-chave 3"]"""


def build_keywords_prompt(
    resume_text: str,
    analysis: dict,
    site_name: str,
    characteristics: dict | None,
    default_keywords: list[str] | None,
) -> tuple[str, str]:
    skills = analysis.get("habilidades")
    strengths = analysis.get("pontosFortes")
    user_prompt = KEYWORDS_PROMPT_TEMPLATE.format(
        site_name=site_name,
        resume_excerpt=resume_text[:2000],
        skills=", ".join(skills) if isinstance(skills, list) and skills else "Não especificado",
        experience=analysis.get("experiencia") or "Não especificado",
        strengths=", ".join(strengths[:5]) if isinstance(strengths, list) and strengths else "Não especificado",
        area=analysis.get("areaAtuacao") or "Não especificado",
        characteristics=json.dumps(characteristics or {}, ensure_ascii=False, indent=2),
        default_keywords=", ".join(default_keywords) if default_keywords else "Nenhuma",
    )
    return SYSTEM_PROMPT, user_prompt
