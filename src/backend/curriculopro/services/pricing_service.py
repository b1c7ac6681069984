"""Plan catalogue and OpenAI cost estimates."""

import math

from curriculopro.core.config import settings
from curriculopro.models.schemas import PlanWithMargin, PricingPlan, ProfitMargin

# USD per token
OPENAI_PRICING = {
    "gpt-4": {"input": 0.03 / 1000, "output": 0.06 / 1000},
    "gpt-4-turbo": {"input": 0.01 / 1000, "output": 0.03 / 1000},
    "gpt-4o": {"input": 0.005 / 1000, "output": 0.015 / 1000},
    "gpt-3.5-turbo": {"input": 0.0005 / 1000, "output": 0.0015 / 1000},
}

ESTIMATED_COST_PER_ANALYSIS_BRL = 0.50
ENGLISH_RESUME_PRICE = 5.90

PRICING_PLANS: dict[str, PricingPlan] = {
    "single": PricingPlan(
        id="single",
        name="Análise Única",
        description="1 análise completa + 1 currículo melhorado em PDF",
        analyses=1,
        price=9.90,
        price_brl=9.90,
        price_usd=1.98,
        features=[
            "1 análise completa com IA",
            "Score detalhado",
            "Recomendações personalizadas",
            "1 currículo melhorado em PDF",
        ],
    ),
    "pack3": PricingPlan(
        id="pack3",
        name="Pacote 3 Análises",
        description="3 análises completas + 3 currículos melhorados",
        analyses=3,
        price=24.90,
        price_brl=24.90,
        price_usd=4.98,
        savings="Economize R$ 4,80",
        features=[
            "3 análises completas com IA",
            "Score detalhado para cada",
            "Recomendações personalizadas",
            "3 currículos melhorados em PDF",
            "Melhor custo-benefício",
        ],
    ),
}


def get_plan(plan_id: str) -> PricingPlan | None:
    return PRICING_PLANS.get(plan_id)


def estimate_tokens(text: str | None) -> int:
    """Rough token count: one token per four characters."""
    if not text:
        return 0
    return math.ceil(len(text) / 4)


def _cost(input_tokens: int, output_tokens: int, model: str) -> dict:
    pricing = OPENAI_PRICING.get(model, OPENAI_PRICING["gpt-4"])
    cost_usd = input_tokens * pricing["input"] + output_tokens * pricing["output"]
    return {
        "inputTokens": input_tokens,
        "outputTokens": output_tokens,
        "totalTokens": input_tokens + output_tokens,
        "costUSD": round(cost_usd, 4),
        "costBRL": round(cost_usd * settings.usd_to_brl, 2),
    }


def calculate_analysis_cost(resume_text: str, analysis_text: str, model: str = "gpt-4") -> dict:
    # system prompt ~200 tokens, user instructions ~300
    input_tokens = 200 + 300 + estimate_tokens(resume_text)
    return _cost(input_tokens, estimate_tokens(analysis_text), model)


def calculate_generation_cost(original_text: str, improved_text: str, model: str = "gpt-4") -> dict:
    input_tokens = 150 + 200 + estimate_tokens(original_text)
    return _cost(input_tokens, estimate_tokens(improved_text), model)


def calculate_total_cost(
    resume_text: str,
    analysis_text: str,
    improved_text: str,
    model: str = "gpt-4",
) -> dict:
    analysis = calculate_analysis_cost(resume_text, analysis_text, model)
    generation = calculate_generation_cost(resume_text, improved_text, model)
    return {
        "analysis": analysis,
        "generation": generation,
        "totalUSD": round(analysis["costUSD"] + generation["costUSD"], 4),
        "totalBRL": round(analysis["costBRL"] + generation["costBRL"], 2),
    }


def calculate_profit_margin(plan_id: str) -> ProfitMargin:
    plan = PRICING_PLANS.get(plan_id)
    if plan is None:
        raise ValueError(f"Unknown plan: {plan_id}")
    total_cost = ESTIMATED_COST_PER_ANALYSIS_BRL * plan.analyses
    profit = plan.price_brl - total_cost
    return ProfitMargin(
        total_cost=round(total_cost, 2),
        profit=round(profit, 2),
        margin=round(profit / plan.price_brl * 100, 1),
    )


def list_plans_with_margin() -> list[PlanWithMargin]:
    return [
        PlanWithMargin(**plan.model_dump(), profit_margin=calculate_profit_margin(plan_id))
        for plan_id, plan in PRICING_PLANS.items()
    ]
