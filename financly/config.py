"""
config.py — Financly application settings.

Usage:
    from financly.config import settings
    print(settings.assessment_year)

Never use FastAPI Depends() for settings — import directly as a module-level singleton.
"""
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Silently ignore any extra env vars
    )

    # --- Tax law ---
    # Key into financly.agents.evaluator_agent.regime_table.REGIME_TABLES
    assessment_year: str = "2025-26"

    # Flat approximation used to estimate recommendation savings.
    # Not the user's actual marginal bracket.
    assumed_marginal_rate: float = Field(default=0.30, ge=0, le=1)

    # --- CORS ---
    # Comma-separated list of allowed frontend origins
    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    # --- Application ---
    debug: bool = True
    app_version: str = "0.1.0"

    @property
    def cors_origins_list(self) -> List[str]:
        """Split comma-separated CORS origins into a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


# Module-level singleton — import this throughout the codebase
settings = Settings()
