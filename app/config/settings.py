from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Required for admin operations (user roles, creator lookup)

    # OpenRouter
    openrouter_api_key: Optional[str] = None
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    default_model: str = "openai/gpt-4o-mini"
    llm_timeout_sec: float = 120.0

    # OpenAI (image generation goes straight to OpenAI, not through OpenRouter)
    openai_api_key: Optional[str] = None
    image_model: str = "dall-e-3"
    image_size: str = "1024x1024"

    # Image storage: S3 when fully configured, otherwise the Supabase bucket
    image_bucket: str = "automation-images"
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_region: str = "us-east-1"
    s3_bucket_name: Optional[str] = None

    # Pending automations (anonymous requests waiting for sign-in)
    pending_automation_ttl_hours: int = 24
    enable_pending_cleanup: bool = False
    pending_cleanup_interval_sec: int = 3600

    # App
    app_name: str = "automateai-backend"
    app_title: str = "AutomateAI"
    site_url: str = "http://localhost:3000"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def s3_configured(self) -> bool:
        return all([self.aws_access_key_id, self.aws_secret_access_key, self.s3_bucket_name])

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
