"""Configuration management for Mercury Genie"""
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Supabase Configuration
    supabase_url: str = Field(default="", alias="NEXT_PUBLIC_SUPABASE_URL")
    supabase_anon_key: str = Field(default="", alias="NEXT_PUBLIC_SUPABASE_ANON_KEY")
    rpc_function: str = Field(default="execute_query", alias="RPC_FUNCTION")
    rpc_timeout_seconds: int = Field(default=30, alias="RPC_TIMEOUT_SECONDS")

    # LLM Configuration (OpenRouter speaks the OpenAI protocol)
    openrouter_api_key: str = Field(default="", alias="OPENROUTER_API_KEY")
    openrouter_base_url: str = Field(
        default="https://openrouter.ai/api/v1", alias="OPENROUTER_BASE_URL"
    )
    llm_model: str = Field(default="openai/gpt-4o-mini", alias="LLM_MODEL")
    llm_timeout_seconds: int = Field(default=30, alias="LLM_TIMEOUT_SECONDS")
    query_max_tokens: int = Field(default=500, alias="QUERY_MAX_TOKENS")
    chart_max_tokens: int = Field(default=350, alias="CHART_MAX_TOKENS")
    explain_max_tokens: int = Field(default=1000, alias="EXPLAIN_MAX_TOKENS")

    # Query Guard
    default_row_limit: int = Field(default=100, alias="DEFAULT_ROW_LIMIT")

    # Caches (a TTL of 0 disables expiry)
    query_cache_size: int = Field(default=256, alias="QUERY_CACHE_SIZE")
    query_cache_ttl_seconds: float = Field(default=0, alias="QUERY_CACHE_TTL_SECONDS")
    chart_cache_size: int = Field(default=256, alias="CHART_CACHE_SIZE")
    chart_cache_ttl_seconds: float = Field(default=3600, alias="CHART_CACHE_TTL_SECONDS")

    # Application Configuration
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    @property
    def rpc_url(self) -> str:
        return f"{self.supabase_url.rstrip('/')}/rest/v1/rpc/{self.rpc_function}"


# Load settings from environment
settings = Settings()
