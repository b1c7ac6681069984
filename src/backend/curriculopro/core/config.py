from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "postgresql+asyncpg://localhost:5432/curriculopro"
    db_pool_size: int = 10
    db_echo: bool = False
    redis_url: str = "redis://localhost:6379/0"

    # AI providers
    ai_provider: Literal["gemini", "openai"] = "gemini"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o"
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"
    use_mock_ai: bool = False

    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expire_days: int = 30

    frontend_url: str = "http://localhost:4200"
    api_url: str = "http://localhost:8000"
    cors_origins: list[str] = ["*"]
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Stripe
    stripe_secret_key: str = ""
    stripe_webhook_secret: str = ""
    stripe_statement_descriptor: str = "CurriculosPro IA"

    # SMTP
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    smtp_use_ssl: bool = False
    email_from: str = ""
    email_from_name: str = "CurriculoPro IA"
    email_copy_to: str = ""

    # Limits and cost controls
    max_upload_bytes: int = 10 * 1024 * 1024
    max_resume_chars: int = 15000
    analysis_cache_ttl: int = 86400  # 24 hours
    gemini_daily_limit: int = 1500
    usd_to_brl: float = 5.0

    enable_mock_purchases: bool = False

    model_config = {"env_prefix": "CURRICULO_", "env_file": ".env", "extra": "ignore"}

    @property
    def openai_configured(self) -> bool:
        return bool(self.openai_api_key)

    @property
    def gemini_configured(self) -> bool:
        return bool(self.gemini_api_key)

    @property
    def smtp_configured(self) -> bool:
        return bool(self.smtp_host and self.smtp_user and self.smtp_password)


settings = Settings()
