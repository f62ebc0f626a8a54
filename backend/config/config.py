"""
Application configuration with environment-based settings.
All configuration is explicit, validated, and logged at startup.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

BACKEND_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    The model credential and model identifier have no usable defaults:
    without them every analysis request fails with a gateway error.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True,
    )

    # Application
    app_name: str = Field(default="Agente de Saúde IA", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=3001, description="Server port")
    static_dir: Path = Field(
        default=BACKEND_DIR / "static",
        description="Directory holding index.html and its assets"
    )

    # CORS
    cors_origins: list[str] = Field(default=["*"], description="Allowed CORS origins")

    # LLM Provider (OpenAI)
    openai_api_key: str = Field(default="", description="OpenAI API key")
    openai_model: str = Field(default="", description="Chat completion model")
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="OpenAI-compatible API base URL"
    )
    llm_timeout_seconds: float = Field(default=60.0, gt=0, description="Outbound call timeout")
    llm_temperature: float = Field(default=0.2, ge=0, le=2, description="Model temperature")

    # Prompt parameters
    locality_name: str = Field(default="Contagem", description="Locality the cases belong to")
    locality_population: int = Field(default=621863, gt=0, description="Locality population")
    case_extrapolation_multiplier: int = Field(
        default=10,
        ge=1,
        description="Cases each reported case stands for in its neighborhood"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["json", "console"] = Field(
        default="console",
        description="Log output format"
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def llm_configured(self) -> bool:
        """Both the credential and the model identifier are set."""
        return bool(self.openai_api_key and self.openai_model)

    def get_safe_config_dict(self) -> dict:
        """Return configuration dict with secrets redacted for logging."""
        config = self.model_dump(mode="json")
        if config.get("openai_api_key"):
            config["openai_api_key"] = "***REDACTED***"
        return config


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once and cached for the application lifetime.
    Use dependency injection in FastAPI routes for testability.
    """
    return Settings()
