"""LLM integration: OpenAI via LangChain and Gemini via google-genai, with usage tracking."""

import json
import logging
import re
import time
from datetime import date

import openai
import redis.asyncio as redis
from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from curriculopro.core.config import settings
from curriculopro.core.errors import AIServiceError
from curriculopro.services import usage_service
from curriculopro.services.pricing_service import estimate_tokens

logger = logging.getLogger(__name__)

JSON_MODE_PREFIXES = ("gpt-4-turbo", "gpt-4o")
JSON_MODE_SNAPSHOTS = ("-1106", "-0125")

_redis_client: redis.Redis | None = None
_gemini_client: genai.Client | None = None


def get_redis_client() -> redis.Redis:
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(settings.redis_url, decode_responses=True)
    return _redis_client


def get_gemini_client() -> genai.Client:
    global _gemini_client
    if _gemini_client is None:
        _gemini_client = genai.Client(api_key=settings.gemini_api_key)
    return _gemini_client


def get_llm(temperature: float, max_tokens: int) -> ChatOpenAI:
    """Create a ChatOpenAI instance (stateless, no need to cache)."""
    return ChatOpenAI(
        model=settings.openai_model,
        api_key=settings.openai_api_key,
        temperature=temperature,
        max_tokens=max_tokens,
    )


def supports_json_mode(model: str) -> bool:
    """Whether the OpenAI model accepts response_format=json_object."""
    return model.startswith(JSON_MODE_PREFIXES) or any(s in model for s in JSON_MODE_SNAPSHOTS)


def resolve_provider(requested: str | None = None) -> str:
    """Pick a configured provider, preferring the requested one, then the default."""
    preferred = requested or settings.ai_provider
    configured = {
        "openai": settings.openai_configured,
        "gemini": settings.gemini_configured,
    }
    if configured.get(preferred):
        return preferred
    for name, ok in configured.items():
        if ok:
            logger.warning("Provider %s not configured, using %s", preferred, name)
            return name
    raise AIServiceError("Nenhum provedor de IA configurado", status_code=503)


def _gemini_day_key(day: date | None = None) -> str:
    return f"ai:gemini:requests:{(day or date.today()).isoformat()}"


async def increment_gemini_counter() -> None:
    r = get_redis_client()
    key = _gemini_day_key()
    pipe = r.pipeline()
    pipe.incr(key)
    pipe.expire(key, 60 * 60 * 48)
    await pipe.execute()


async def get_gemini_requests_today() -> int:
    r = get_redis_client()
    current = await r.get(_gemini_day_key())
    return int(current) if current else 0


def is_quota_error(exc: Exception) -> bool:
    code = getattr(exc, "code", None) or getattr(exc, "status_code", None)
    if code == 429:
        return True
    message = str(exc).lower()
    return "quota" in message or "resource_exhausted" in message or "rate limit" in message


def _openai_error(exc: openai.APIError) -> AIServiceError:
    status = getattr(exc, "status_code", None)
    if status == 401:
        return AIServiceError("Chave de API inválida. Verifique a chave da OpenAI.", status_code=500)
    if status == 400:
        if "response_format" in str(exc):
            return AIServiceError(
                f"O modelo {settings.openai_model} não suporta response_format json_object. "
                "Use um modelo mais recente como gpt-4-turbo ou gpt-4o.",
                status_code=500,
            )
        return AIServiceError(f"Parâmetro inválido: {exc}", status_code=500)
    if status == 429:
        return AIServiceError(
            "Limite de requisições excedido. Tente novamente em alguns instantes.", status_code=429
        )
    if status is not None and status >= 500:
        return AIServiceError("Erro interno da OpenAI. Tente novamente mais tarde.")
    return AIServiceError(f"Erro na comunicação com a OpenAI: {exc}")


async def _call_openai(
    prompt: str,
    system: str | None,
    temperature: float,
    max_tokens: int,
    json_mode: bool,
) -> tuple[str, int, int]:
    llm = get_llm(temperature, max_tokens)
    if json_mode:
        llm = llm.bind(response_format={"type": "json_object"})
    messages = []
    if system:
        messages.append(SystemMessage(content=system))
    messages.append(HumanMessage(content=prompt))

    response = await llm.ainvoke(messages)
    text = response.content or ""
    usage = response.usage_metadata or {}
    return (
        text,
        usage.get("input_tokens") or estimate_tokens((system or "") + prompt),
        usage.get("output_tokens") or estimate_tokens(text),
    )


async def _call_gemini(
    prompt: str,
    system: str | None,
    temperature: float,
    max_tokens: int,
    json_mode: bool,
) -> tuple[str, int, int]:
    client = get_gemini_client()
    config = genai_types.GenerateContentConfig(
        system_instruction=system,
        temperature=temperature,
        max_output_tokens=max_tokens,
        response_mime_type="application/json" if json_mode else None,
    )
    response = await client.aio.models.generate_content(
        model=settings.gemini_model,
        contents=prompt,
        config=config,
    )
    text = response.text or ""
    usage = response.usage_metadata
    tokens_in = (usage.prompt_token_count if usage else None) or estimate_tokens((system or "") + prompt)
    tokens_out = (usage.candidates_token_count if usage else None) or estimate_tokens(text)
    return text, tokens_in, tokens_out


async def complete(
    prompt: str,
    *,
    service_type: str,
    system: str | None = None,
    provider: str | None = None,
    temperature: float = 0.7,
    max_tokens: int = 1000,
    json_mode: bool = False,
    user_id=None,
    resume_id=None,
    allow_fallback: bool = True,
) -> str:
    """Run a single completion and return the raw text.

    Gemini quota errors fall back to OpenAI once when OpenAI is configured.
    Every attempt is recorded in the AI usage log.
    Raises AIServiceError on provider failure.
    """
    name = resolve_provider(provider)
    model = settings.gemini_model if name == "gemini" else settings.openai_model
    usage_key = "gemini" if name == "gemini" else f"openai-{settings.openai_model}"
    started = time.perf_counter()

    try:
        if name == "gemini":
            text, tokens_in, tokens_out = await _call_gemini(prompt, system, temperature, max_tokens, json_mode)
        else:
            use_json = json_mode and supports_json_mode(model)
            if json_mode and not use_json:
                logger.info("Model %s has no JSON mode, relying on prompt instructions", model)
            text, tokens_in, tokens_out = await _call_openai(prompt, system, temperature, max_tokens, use_json)
    except (genai_errors.APIError, openai.APIError) as exc:
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        logger.error("%s call failed for %s after %dms: %s", name, service_type, elapsed_ms, exc)
        await usage_service.record_usage(
            provider=usage_key,
            service_type=service_type,
            tokens_input=estimate_tokens((system or "") + prompt),
            tokens_output=0,
            response_time_ms=elapsed_ms,
            success=False,
            error_message=str(exc)[:1000],
            user_id=user_id,
            resume_id=resume_id,
        )
        if name == "gemini" and allow_fallback and is_quota_error(exc) and settings.openai_configured:
            logger.warning("Gemini quota exceeded, falling back to OpenAI for %s", service_type)
            return await complete(
                prompt,
                service_type=service_type,
                system=system,
                provider="openai",
                temperature=temperature,
                max_tokens=max_tokens,
                json_mode=json_mode,
                user_id=user_id,
                resume_id=resume_id,
                allow_fallback=False,
            )
        if isinstance(exc, openai.APIError):
            raise _openai_error(exc) from exc
        if is_quota_error(exc):
            raise AIServiceError("Cota do Gemini excedida. Tente novamente mais tarde.", status_code=429) from exc
        raise AIServiceError(f"Erro na comunicação com o Gemini: {exc}") from exc

    elapsed_ms = int((time.perf_counter() - started) * 1000)
    logger.info("%s (%s) answered %s in %dms", name, model, service_type, elapsed_ms)
    await usage_service.record_usage(
        provider=usage_key,
        service_type=service_type,
        tokens_input=tokens_in,
        tokens_output=tokens_out,
        response_time_ms=elapsed_ms,
        success=True,
        user_id=user_id,
        resume_id=resume_id,
    )
    if name == "gemini":
        try:
            await increment_gemini_counter()
        except redis.RedisError:
            logger.warning("Could not bump Gemini daily counter")
    if not text.strip():
        raise AIServiceError("Resposta vazia do provedor de IA")
    return text


# --- Response parsing helpers ---

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*|\s*```$")


def strip_code_fences(text: str) -> str:
    """Remove a wrapping markdown code fence, if any."""
    return _FENCE_RE.sub("", text.strip()).strip()


def _loads(text: str):
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return None


def extract_json_object(text: str) -> dict | None:
    cleaned = strip_code_fences(text)
    parsed = _loads(cleaned)
    if isinstance(parsed, dict):
        return parsed
    match = re.search(r"\{.*\}", cleaned, re.DOTALL)
    if match:
        parsed = _loads(match.group(0))
        if isinstance(parsed, dict):
            return parsed
    return None


def extract_json_array(text: str) -> list | None:
    cleaned = strip_code_fences(text)
    parsed = _loads(cleaned)
    if isinstance(parsed, list):
        return parsed
    match = re.search(r"\[.*\]", cleaned, re.DOTALL)
    if match:
        parsed = _loads(match.group(0))
        if isinstance(parsed, list):
            return parsed
    return None
