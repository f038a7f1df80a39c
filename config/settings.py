"""Configuration settings loaded from .env file."""

from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings, loaded from .env file.

    Provider secrets are read here once and then handed to the core as an
    explicit ``AICredentials`` value; nothing below is mutated at runtime.
    """

    # Routing
    use_local_ai: bool = False
    allow_local_cli: bool = True

    # Primary cloud provider (Amazon Bedrock)
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    aws_session_token: Optional[str] = None
    aws_region: str = "us-east-1"
    bedrock_model_id: str = "anthropic.claude-3-5-haiku-20241022-v1:0"
    bedrock_image_model_id: str = "amazon.titan-image-generator-v2:0"

    # Secondary cloud provider (Gemini)
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"
    gemini_image_model: str = "imagen-3.0-generate-002"

    # Research (Perplexity)
    perplexity_api_key: str = ""
    perplexity_model: str = "sonar"
    perplexity_api_url: str = "https://api.perplexity.ai/chat/completions"
    research_max_tokens: int = 1000

    # Local CLI providers
    claude_command: str = "claude"
    claude_code_model: Optional[str] = None
    codex_command: str = "codex"
    claude_timeout_seconds: float = 90.0
    codex_timeout_seconds: float = 60.0
    probe_timeout_seconds: float = 5.0

    # Generation
    max_tokens: int = 4000
    temperature: float = 0.7

    # Retry (cloud text generation only)
    max_retries: int = 3
    retry_base_delay: float = 1.0

    # Pacing between sections
    section_delay_seconds: float = 1.0
    research_section_delay_seconds: float = 2.0
    heat_section_delay_seconds: float = 1.5

    # Storage
    sqlite_db_path: Path = Path("./data/books.db")

    # Logging
    log_dir: Path = Path("./data/logs")
    log_max_bytes: int = 10 * 1024 * 1024
    log_backup_count: int = 5

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @field_validator("max_retries")
    @classmethod
    def validate_max_retries(cls, v: int) -> int:
        if v < 0:
            raise ValueError("max_retries must be >= 0")
        return v

    @field_validator("retry_base_delay")
    @classmethod
    def validate_retry_base_delay(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("retry_base_delay must be > 0")
        return v

    @field_validator(
        "section_delay_seconds",
        "research_section_delay_seconds",
        "heat_section_delay_seconds",
    )
    @classmethod
    def validate_delays(cls, v: float) -> float:
        if v < 0:
            raise ValueError("Pacing delay must be non-negative")
        return v

    @field_validator("claude_timeout_seconds", "codex_timeout_seconds", "probe_timeout_seconds")
    @classmethod
    def validate_timeouts(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Timeout must be positive")
        return v

    @field_validator("temperature")
    @classmethod
    def validate_temperature(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("temperature must be between 0 and 1")
        return v

    @field_validator("sqlite_db_path", "log_dir")
    @classmethod
    def ensure_parent_dirs(cls, v: Path) -> Path:
        v.parent.mkdir(parents=True, exist_ok=True)
        return v


_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
