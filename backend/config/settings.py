from pydantic_settings import BaseSettings
from pydantic import field_validator
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables can come from:
    - docker-compose.yml environment section
    - .env file (for secrets like API keys)
    - System environment

    Variable names match the Supabase project conventions:
    - SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY, SUPABASE_JWT_SECRET
    - POSTGRES_HOST, POSTGRES_PORT, etc. (direct database connection)
    - OPENAI_API_KEY, TAVILY_API_KEY (enrichment providers)
    """

    # Environment
    environment: str = "development"
    log_level: str = "INFO"

    # Supabase project (storage REST API + JWT verification)
    supabase_url: str = "http://localhost:54321"
    supabase_service_role_key: str = ""
    supabase_jwt_secret: str = "dev-jwt-secret-change-in-production"
    jwt_algorithm: str = "HS256"
    jwt_audience: str = "authenticated"

    # Storage bucket holding memorial images
    storage_bucket: str = "memorial_images"

    # PostgreSQL (Supabase database, direct connection)
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "postgres"
    postgres_password: str = "postgres"
    postgres_db: str = "postgres"
    database_url: Optional[str] = None  # full DSN, overrides the fields above

    # OpenAI (from .env)
    openai_api_key: str = ""
    openai_model: str = "gpt-4o"

    # Tavily web search (from .env)
    tavily_api_key: str = ""
    tavily_url: str = "https://api.tavily.com/search"

    # Signed URL validity per call site
    signed_url_ttl_list_seconds: int = 3600
    signed_url_ttl_detail_seconds: int = 3600

    # Outbound HTTP (image fetch, storage, search)
    http_timeout_seconds: float = 30.0

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"  # Ignore extra env vars

    @field_validator('supabase_url', mode='before')
    @classmethod
    def strip_trailing_slash(cls, v):
        """Storage URLs are built by concatenation"""
        return v.rstrip('/') if isinstance(v, str) else v

    @field_validator('signed_url_ttl_list_seconds', 'signed_url_ttl_detail_seconds')
    @classmethod
    def positive_ttl(cls, v):
        if v < 1:
            raise ValueError("signed URL TTL must be >= 1 second")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
