"""Application configuration managed via environment variables."""
from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "DadTrack API"
    app_version: str = "1.3.0"
    app_phase: str = "Phase 3 - Behavioral Learning"
    environment: str = "production"
    log_level: str = "INFO"
    database_url: str = "postgresql+psycopg2://dadtrack@localhost:5432/dadtrack"

    llm_api_key: str | None = Field(default=None, validation_alias=AliasChoices("LLM_API_KEY", "GROQ_API_KEY"))
    llm_base_url: str | None = "https://api.groq.com/openai/v1"
    llm_model: str = "llama-3.3-70b-versatile"
    llm_temperature: float = 0.3
    llm_max_tokens: int = 2048
    llm_timeout_seconds: float = 60.0

    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "dadtrack"

    default_deadline_days: int = 30
    profile_recompute_interval: int = 5
    profile_personalization_threshold: int = 10
    profile_half_life_days: float = 21.0
    profile_min_group_samples: int = 3

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() == "production"


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()
