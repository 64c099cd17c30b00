from typing import Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

class AppConfig(BaseSettings):
    """Application configuration using Pydantic BaseSettings.

    Loads configuration from environment variables and .env file (if present).
    Fields are type-checked and validated. Defaults are provided where appropriate.
    """
    # Application
    app_env: str = "local"
    log_level: str = "DEBUG"

    # Data source selection
    data_source: Literal["csv", "postgres", "supabase"] = "csv"

    # CSV
    data_file: str = "sample_data/sales.csv"

    # Postgres
    database_url: Optional[str] = None
    db_table: str = "sales_transactions"
    db_pool_size: int = 20
    db_max_overflow: int = 10
    db_pool_timeout_s: int = 10
    slow_query_ms: int = 100

    # Supabase (PostgREST)
    supabase_url: Optional[str] = None
    supabase_anon_key: Optional[str] = None
    supabase_table: str = "sales_transactions"
    supabase_page_size: int = 1000
    supabase_timeout_s: float = 30.0

    # Query behaviour
    search_match: Literal["all", "any"] = "all"
    default_page_limit: int = 10
    max_page_limit: Optional[int] = None

    # HTTP
    cors_origins: str = "http://localhost:5173,http://localhost:5174,http://localhost:3000"
    api_host: str = "0.0.0.0"
    api_port: int = 5001

    # Seed data settings
    default_seed_rows: int = 500
    default_seed_days: int = 90
    default_seed_value: int = 42

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

_config: Optional[AppConfig] = None

def get_config() -> AppConfig:
    """Return the AppConfig instance (singleton pattern)."""
    global _config
    if _config is None:
        _config = AppConfig()
    return _config

def set_config_for_test(**kwargs):
    """For testing only: override the AppConfig instance with new values."""
    global _config
    _config = AppConfig(**kwargs)
