from pathlib import Path
from typing import List
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # Project Settings
    PROJECT_NAME: str = "Script Engine"
    API_V1_STR: str = "/api/v1"

    # API Keys
    openai_api_key: str = ""

    # Text Completion Settings
    openai_model: str = "gpt-4o-mini"
    completion_timeout: float = 30.0  # seconds per call
    completion_max_tokens: int = 1000
    max_retries: int = 3
    retry_backoff_multiplier: float = 1.0
    retry_backoff_min: float = 1.0
    retry_backoff_max: float = 10.0

    # Context Store
    context_store_file: str = ""  # JSON seed for the in-memory store

    # Context Cache
    context_cache_ttl_minutes: int = 15

    # Script Budget Settings
    words_per_second: float = 2.2
    word_count_tolerance: float = 0.2  # +/-20%
    negative_keyword_instruction_limit: int = 500

    # Variations / Batch
    default_variation_count: int = 3
    max_variation_count: int = 5
    batch_concurrency: int = 3

    # Server Configuration
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    cors_origins: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Logging
    log_level: str = "INFO"
    log_file: str = "logs/app.log"
    api_usage_log: str = "logs/api_usage.log"
    generation_log: str = "logs/generation.log"
    error_log: str = "logs/errors.log"

    class Config:
        env_file = Path(__file__).parent.parent / ".env"  # backend/.env
        case_sensitive = False
        extra = "ignore"

    @property
    def has_openai_key(self) -> bool:
        """Check if the completion credential is configured."""
        return bool(self.openai_api_key)

    @property
    def context_cache_ttl_seconds(self) -> float:
        return self.context_cache_ttl_minutes * 60.0

    def validate_openai_config(self) -> tuple[bool, str]:
        """Validate text completion configuration and return status."""
        if not self.openai_api_key:
            return False, "No OpenAI API key configured. Please set OPENAI_API_KEY in your .env file."

        if self.max_retries < 1:
            return True, f"OpenAI configured with model {self.openai_model}, but retries are disabled."

        return True, f"OpenAI configured with model {self.openai_model} ({self.max_retries} retries, {self.completion_timeout:.0f}s timeout)."

# Global settings instance
settings = Settings()
