"""Pydantic schemas for API request/response validation.

The frontend speaks camelCase, so most models generate camelCase aliases and
accept either spelling on input. The résumé analysis keeps the Portuguese
field names the LLM is prompted to produce.
"""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Enums ---

class UserType(str, Enum):
    cliente = "cliente"
    admin = "admin"


class PurchaseStatus(str, Enum):
    concluida = "concluida"
    pendente = "pendente"
    cancelada = "cancelada"


class MessageKind(str, Enum):
    pergunta = "pergunta"
    resposta = "resposta"
    feedback = "feedback"


class UsagePeriod(str, Enum):
    hour = "hour"
    day = "day"
    week = "week"
    month = "month"


# --- Analysis schemas ---

class ResumeAnalysis(BaseModel):
    """Structured output expected from the LLM."""
    model_config = ConfigDict(populate_by_name=True)

    strengths: list[str] = Field(alias="pontosFortes")
    improvements: list[str] = Field(alias="pontosMelhorar")
    experience: str = Field(alias="experiencia")
    education: str = Field(alias="formacao")
    skills: list[str] = Field(alias="habilidades")
    recommendations: list[str] = Field(alias="recomendacoes")
    score: int = Field(ge=0, le=100)
    area: str | None = Field(default=None, alias="areaAtuacao")


class AnalysisMetadata(CamelModel):
    file_name: str
    file_size: int
    text_length: int
    processing_time: str = Field(examples=["3.42s"])


class AnalysisResponse(CamelModel):
    original_text: str
    analysis: ResumeAnalysis
    metadata: AnalysisMetadata
    credits_remaining: int


class ImprovedResumeRequest(CamelModel):
    original_text: str = Field(min_length=1)
    analysis: dict[str, Any]


class CoverLetterRequest(CamelModel):
    resume_text: str = Field(min_length=1)
    analysis: dict[str, Any]
    site_id: UUID | None = None


# --- Auth schemas ---

class RegisterRequest(CamelModel):
    email: str = Field(examples=["maria@example.com"])
    password: str
    name: str | None = Field(default=None, examples=["Maria Souza"])


class LoginRequest(CamelModel):
    email: str
    password: str


class EmailRequest(CamelModel):
    email: str


class EmailCodeRequest(CamelModel):
    email: str
    code: str = Field(min_length=6, max_length=6, examples=["482913"])


class ResetPasswordRequest(CamelModel):
    token: str
    new_password: str


class ChangePasswordRequest(CamelModel):
    current_password: str
    new_password: str


class UserPayload(CamelModel):
    id: UUID
    email: str
    name: str | None
    credits: int
    plan: str | None = None
    user_type: UserType = Field(alias="user_type")
    email_verified: bool = True


class AuthResponse(CamelModel):
    message: str
    token: str
    user: UserPayload


class RegisterResponse(CamelModel):
    message: str
    requires_verification: bool = True
    user_id: UUID
    email: str


class MessageResponse(CamelModel):
    message: str


# --- Pricing and payment schemas ---

class PricingPlan(CamelModel):
    id: str
    name: str
    description: str
    analyses: int
    price: float
    price_brl: float
    price_usd: float
    currency: str = "BRL"
    savings: str | None = None
    features: list[str]


class ProfitMargin(CamelModel):
    total_cost: float
    profit: float
    margin: float


class PlanWithMargin(PricingPlan):
    profit_margin: ProfitMargin


class CheckoutRequest(CamelModel):
    plan_id: str = Field(examples=["pack3"])
    email: str | None = None


class CheckoutResponse(CamelModel):
    session_id: str
    checkout_url: str


class PlanList(CamelModel):
    plans: list[PlanWithMargin]


class PaymentUser(CamelModel):
    id: UUID
    credits: int
    plan: str | None


class PaymentVerification(CamelModel):
    paid: bool
    user: PaymentUser | None = None
    payment_status: str | None = None


class CreditsResponse(CamelModel):
    credits: int
    plan: str | None
    last_analysis: datetime | None


# --- Purchase schemas ---

class MockPurchaseRequest(CamelModel):
    plan_id: str
    plan_name: str
    credits_amount: int = Field(ge=0)
    price: float = Field(ge=0)
    include_english: bool = False
    english_price: float | None = Field(default=None, ge=0)


class CreditUseRequest(CamelModel):
    action_type: str = Field(examples=["analysis"])
    credits_used: int = Field(default=1, ge=1)
    resume_file_name: str | None = None
    job_site_id: UUID | None = None


class CreditEntry(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    purchase_id: UUID
    used: bool
    used_at: datetime | None
    action_type: str | None
    resume_file_name: str | None
    created_at: datetime


class CreditsInfo(CamelModel):
    total: int
    used: int
    available: int
    credits: list[CreditEntry]


class PurchaseResponse(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    plan_id: str
    plan_name: str
    credits_amount: int
    price: float
    currency: str
    status: str
    payment_method: str | None
    payment_id: str | None
    parent_purchase_id: UUID | None
    service_type: str
    created_at: datetime


class PurchaseWithCredits(PurchaseResponse):
    credits_info: CreditsInfo


# --- Job search schemas ---

class JobSiteResponse(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None
    base_url: str | None
    characteristics: dict[str, Any]
    default_keywords: list[str]


class JobSiteList(CamelModel):
    sites: list[JobSiteResponse]


class JobPosting(CamelModel):
    title: str = "Sem título"
    company: str = "Não informado"
    location: str = "Não informado"
    url: str = ""
    description: str = ""
    salary: str = ""
    contract_type: str = ""
    experience_level: str = ""
    requirements: list[str] = Field(default_factory=list)
    site: str = ""
    compatibility_score: int = 0
    matched_keywords: list[str] = Field(default_factory=list)


class SiteSearchResult(CamelModel):
    site: str
    url: str
    jobs: list[JobPosting] = Field(default_factory=list)
    message: str | None = None
    search_terms: list[str] = Field(default_factory=list)
    total_found: int | None = None
    search_keywords: list[str] | None = None
    search_combinations: int | None = None


class JobSearchRequest(CamelModel):
    analysis: dict[str, Any]
    site_id: UUID
    location: str = "Brasil"
    resume_text: str | None = None
    resume_id: UUID | None = None


class SavedJobResponse(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    job_site_id: UUID
    title: str
    company: str
    location: str
    url: str
    description: str
    requirements: list[str]
    compatibility_score: int
    matched_keywords: list[str]
    status: str
    created_at: datetime


# --- Interview schemas ---

class AnswerEvaluation(CamelModel):
    score: int = Field(ge=0, le=100)
    feedback: str
    strengths: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)


class InterviewStartRequest(CamelModel):
    resume_text: str = Field(min_length=1)
    analysis: dict[str, Any]
    site_id: UUID | None = None
    resume_id: UUID | None = None


class InterviewStartResponse(CamelModel):
    simulation_id: UUID | None
    questions: list[str]
    message: str


class InterviewEvaluateRequest(CamelModel):
    question: str = Field(min_length=1)
    answer: str = Field(min_length=1)
    resume_text: str = Field(min_length=1)
    analysis: dict[str, Any]
    simulation_id: UUID | None = None


class SubmittedEvaluation(CamelModel):
    """An evaluation echoed back by the client. A missing score counts as neutral."""
    score: int | None = Field(default=None, ge=0, le=100)
    feedback: str | None = None
    strengths: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)


class InterviewAnswer(CamelModel):
    question: str
    answer: str
    evaluation: SubmittedEvaluation | None = None


class InterviewFinishRequest(CamelModel):
    simulation_id: UUID
    all_answers: list[InterviewAnswer] = Field(min_length=1)


class InterviewFinishResponse(CamelModel):
    simulation_id: UUID
    score: int
    message: str


class InterviewMessageResponse(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    kind: MessageKind
    content: str
    feedback: str | None
    order: int
    extra: dict[str, Any]
    created_at: datetime


class InterviewSimulationResponse(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    resume_id: UUID
    user_id: UUID
    job_site_id: UUID | None
    title: str
    focus_area: str | None
    questions: list[str]
    answers: list[dict[str, Any]]
    overall_score: int | None
    overall_feedback: dict[str, Any] | None
    created_at: datetime
    messages: list[InterviewMessageResponse] = Field(default_factory=list)


# --- Admin schemas ---

class AdminStats(CamelModel):
    total_users: int
    total_credits: int
    analyses_performed: int
    active_users: int
    revenue: float


class UsageBucket(CamelModel):
    period: str = Field(examples=["2026-03-14"])
    registrations: int = 0
    analyses: int = 0
    revenue: float = 0.0


class SalesStats(CamelModel):
    total_purchases: int
    total_revenue: float
    total_credits_sold: int
    completed_purchases: int
    pending_purchases: int
    cancelled_purchases: int


class JobSiteRanking(CamelModel):
    site_id: UUID
    site_name: str
    analyses: int
    first_used: datetime | None
    last_used: datetime | None
