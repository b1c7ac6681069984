"""FastAPI application entry point."""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from curriculopro.api import admin, analyze, auth, interview, jobs, payments, purchase
from curriculopro.core.config import settings
from curriculopro.core.errors import AppError

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="CurriculoPro IA",
    description="""
Résumé analysis SaaS for Brazilian job seekers. Upload a résumé, get an AI
review, then generate an improved version, a cover letter, matching jobs and a
mock interview.

## How It Works
1. **Create an account** and verify the email
2. **Buy credits** through Stripe Checkout
3. **Upload a résumé** (PDF, DOC, DOCX or TXT) -- one credit per analysis
4. **Use the analysis** to generate documents, search jobs and practice interviews

## Features
- **AI Analysis**: Gemini or GPT scores the résumé with strengths and recommendations
- **Documents**: Improved résumé and cover letter rendered as PDF
- **Job Search**: Keyword generation plus scraping of LinkedIn, Catho and Indeed
- **Interview Simulation**: Tailored questions, per-answer feedback and a transcript
- **Result Caching**: Redis caches analyses for 24 hours
- **Admin Dashboard**: Sales, usage and AI quota statistics

## Authentication
Bearer JWT issued by `/api/auth/login` or the verification endpoints.
""",
    version="1.0.0",
    openapi_tags=[
        {"name": "Auth", "description": "Registration, login and password recovery"},
        {"name": "Analysis", "description": "Upload and analyze résumés"},
        {"name": "Documents", "description": "Generate improved résumés and cover letters"},
        {"name": "Jobs", "description": "Job sites, job search and saved jobs"},
        {"name": "Interview", "description": "Mock interview simulations"},
        {"name": "Payments", "description": "Plans, Stripe Checkout and credit balance"},
        {"name": "Purchases", "description": "Purchase history and credit ledger"},
        {"name": "Admin", "description": "Dashboard statistics for administrators"},
    ],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


app.include_router(analyze.router, prefix="/api/analyze")
app.include_router(jobs.router, prefix="/api/analyze")
app.include_router(payments.router, prefix="/api/analyze")
app.include_router(interview.router, prefix="/api/analyze/interview")
app.include_router(auth.router, prefix="/api/auth")
app.include_router(purchase.router, prefix="/api/purchase")
app.include_router(admin.router, prefix="/api/admin")


@app.get("/api/health", tags=["System"])
async def health():
    """Health check with the configured AI providers."""
    return {
        "status": "ok",
        "openaiConfigured": settings.openai_configured,
        "geminiConfigured": settings.gemini_configured,
        "provider": settings.ai_provider,
        "model": settings.gemini_model if settings.ai_provider == "gemini" else settings.openai_model,
    }
