"""Prompt templates for résumé analysis and improvement.

Versioned so we can track which prompt produced which analyses.
"""

PROMPT_VERSION = "v1.2"

ANALYSIS_SYSTEM_PROMPT = """\
Você é um especialista em Recursos Humanos e análise de currículos com mais de 10 anos de experiência.
Sua função é analisar currículos de forma objetiva, construtiva e detalhada, identificando:
- Pontos fortes e áreas de destaque
- Pontos que precisam de melhoria
- Experiência profissional relevante
- Formação acadêmica
- Habilidades técnicas e comportamentais
- Recomendações práticas para melhorar o currículo

Seja sempre construtivo e específico em suas análises. \
Nunca considere características protegidas (idade, gênero, raça, religião etc.) na avaliação."""

ANALYSIS_USER_PROMPT_TEMPLATE = """\
Analise o seguinte currículo e forneça uma análise completa e detalhada em formato JSON.

INSTRUÇÕES:
1. Analise cuidadosamente todo o conteúdo do currículo
2. Identifique pelo menos 3-5 pontos fortes relevantes
3. Identifique 3-5 pontos que podem ser melhorados (seja construtivo)
4. Faça um resumo objetivo da experiência profissional
5. Faça um resumo da formação acadêmica
6. Liste todas as habilidades técnicas e comportamentais identificadas
7. Forneça 3-5 recomendações práticas e específicas para melhorar o currículo
8. Atribua um score de 0 a 100 baseado em: clareza, organização, relevância das informações, completude e impacto
9. Indique a área de atuação principal do candidato

FORMATO DE RESPOSTA (JSON obrigatório):
{{
  "pontosFortes": ["ponto 1", "ponto 2"],
  "pontosMelhorar": ["ponto 1", "ponto 2"],
  "experiencia": "resumo detalhado da experiência profissional",
  "formacao": "resumo da formação acadêmica",
  "habilidades": ["habilidade 1", "habilidade 2"],
  "recomendacoes": ["recomendação 1", "recomendação 2"],
  "score": 85,
  "areaAtuacao": "área principal"
}}

CURRÍCULO PARA ANÁLISE:
{resume_text}

IMPORTANTE: Responda APENAS com o JSON válido, sem texto adicional antes ou depois."""

STRICT_JSON_SUFFIX = (
    "\n\nCRÍTICO: Sua resposta DEVE ser APENAS um objeto JSON válido, sem markdown, "
    "sem código, sem explicações. Apenas o JSON puro."
)

IMPROVEMENT_SYSTEM_PROMPT = """\
Você é um especialista em redação de currículos profissionais.
Sua função é reescrever e melhorar currículos aplicando as recomendações fornecidas, \
mantendo todas as informações verdadeiras e relevantes do currículo original.

IMPORTANTE:
- Mantenha TODAS as informações verdadeiras do currículo original
- Aplique as melhorias sugeridas na análise
- Melhore a formatação e organização
- Use linguagem profissional e clara
- Mantenha a estrutura padrão de currículo (Dados Pessoais, Objetivo, Experiência, Formação, Habilidades)
- Não invente informações que não estavam no original"""

IMPROVEMENT_USER_PROMPT_TEMPLATE = """\
Com base no currículo original e na análise fornecida, gere uma versão melhorada do currículo.

CURRÍCULO ORIGINAL:
{original_text}

ANÁLISE E RECOMENDAÇÕES:
- Pontos Fortes: {strengths}
- Pontos a Melhorar: {improvements}
- Recomendações: {recommendations}

Gere um currículo melhorado que:
1. Mantém todas as informações verdadeiras do original
2. Aplica as recomendações da análise
3. Melhora a organização e clareza
4. Destaca os pontos fortes identificados
5. Corrige ou melhora os pontos fracos mencionados

Use títulos de seção em LETRAS MAIÚSCULAS em linhas próprias.
Retorne APENAS o texto do currículo melhorado, sem explicações adicionais."""


def build_analysis_prompt(resume_text: str, strict_json: bool = False) -> tuple[str, str]:
    """Build system + user prompts for an analysis call.

    strict_json appends a JSON-only warning for models without a native JSON mode.
    """
    user_prompt = ANALYSIS_USER_PROMPT_TEMPLATE.format(resume_text=resume_text)
    if strict_json:
        user_prompt += STRICT_JSON_SUFFIX
    return ANALYSIS_SYSTEM_PROMPT, user_prompt


def build_improvement_prompt(original_text: str, analysis: dict) -> tuple[str, str]:
    user_prompt = IMPROVEMENT_USER_PROMPT_TEMPLATE.format(
        original_text=original_text,
        strengths=", ".join(analysis.get("pontosFortes") or []),
        improvements=", ".join(analysis.get("pontosMelhorar") or []),
        recommendations="; ".join(analysis.get("recomendacoes") or []),
    )
    return IMPROVEMENT_SYSTEM_PROMPT, user_prompt
