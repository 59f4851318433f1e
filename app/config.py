"""
Configuration management for the Product Research Tracker
"""
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """Application settings"""

    # Application
    app_name: str = "Product Research Tracker"
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"
    log_dir: str = "logs"
    log_to_file: bool = True

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Remote store / auth backend: "supabase" or "memory"
    store_backend: str = "supabase"

    # Supabase
    supabase_url: Optional[str] = None
    supabase_anon_key: Optional[str] = None
    products_table: str = "products"

    # Per-user collections live under <tenant_namespace>/<user_id>/products
    tenant_namespace: str = "dropship-tracker-app"

    # Local fallback cache (migrated into the remote store on first sync)
    database_url: str = "sqlite:///./product_tracker.db"
    local_cache_key: str = "dropship_tracker_v1"

    # Metrics
    roas_good_threshold: float = 1.5  # Break-even ROAS at or below = favorable

    # Authentication
    min_password_length: int = 6

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
