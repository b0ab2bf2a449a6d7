"""Configuration management for pantry-rescue."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=("../.env", ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    environment: str = "development"
    log_level: str = "info"
    cors_allow_origins: str = "http://localhost:5173,http://localhost:3000"

    # Verbosity of the recommendation engine (matcher, flow network, scorer)
    engine_log_level: str = "info"

    # Supabase
    supabase_url: str
    supabase_service_role_key: str
    ingredients_table: str = "ingredients"
    recipes_table: str = "recipes"

    # Recommendation engine
    recipe_candidate_limit: int = 1000
    max_augmenting_paths: int = 100
    default_recommendation_count: int = 5
    max_recommendation_count: int = 50

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def cors_origins(self) -> list[str]:
        """CORS origins as a list ("*" when the setting is blank)."""
        origins = [o.strip() for o in self.cors_allow_origins.split(",") if o.strip()]
        return origins or ["*"]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
