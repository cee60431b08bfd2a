"""Configuration management for salesmapper."""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


def _parse_cors_origins() -> list[str]:
    """Parse CORS origins from environment variable."""
    cors_env = os.getenv("CORS_ALLOW_ORIGINS")
    if cors_env:
        return cors_env.split(",")
    return ["*"]


class Settings(BaseModel):
    """Application settings."""

    # Database path for the synonym dictionary and mapping history
    database_path: Path = Path(os.getenv("DATABASE_PATH", "data/salesmapper.db"))
    seed_global_synonyms: bool = os.getenv("SEED_GLOBAL_SYNONYMS", "true").lower() == "true"

    # LLM Provider settings ('anthropic', 'openrouter' or 'none')
    llm_provider: str = os.getenv("LLM_PROVIDER", "anthropic")

    # Anthropic API key (required when LLM_PROVIDER=anthropic)
    anthropic_api_key: Optional[str] = os.getenv("ANTHROPIC_API_KEY")

    # OpenRouter API configuration (required when LLM_PROVIDER=openrouter)
    openrouter_api_key: Optional[str] = os.getenv("OPENROUTER_API_KEY")
    openrouter_model: str = os.getenv("OPENROUTER_MODEL", "openai/gpt-4o-mini")

    # Oracle model configuration
    model_name: str = os.getenv("MODEL_NAME", "claude-3-5-haiku-latest")
    oracle_max_tokens: int = int(os.getenv("ORACLE_MAX_TOKENS", "1024"))
    llm_timeout_seconds: float = float(os.getenv("LLM_TIMEOUT_SECONDS", "60"))

    # Detection tuning
    header_scan_rows: int = int(os.getenv("HEADER_SCAN_ROWS", "15"))
    header_oracle_min_confidence: float = float(os.getenv("HEADER_ORACLE_MIN_CONFIDENCE", "70"))
    ai_sample_rows: int = int(os.getenv("AI_SAMPLE_ROWS", "5"))
    learned_min_confidence: float = float(os.getenv("LEARNED_MIN_CONFIDENCE", "0.7"))
    learned_limit: int = int(os.getenv("LEARNED_LIMIT", "5"))

    # Server settings
    host: str = os.getenv("HOST", "127.0.0.1")
    port: int = int(os.getenv("PORT", "8000"))
    debug: bool = os.getenv("DEBUG", "false").lower() == "true"
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # CORS settings (comma-separated list of allowed origins, or * for all)
    cors_allow_origins: list[str] = _parse_cors_origins()

    @property
    def oracle_model(self) -> str:
        """Model name for the configured provider."""
        if self.llm_provider == "openrouter":
            return self.openrouter_model
        return self.model_name


settings = Settings()
