"""
Application configuration using Pydantic Settings
"""

import json
from typing import Dict, List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache

from app.errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Twilio
    twilio_account_sid: str = ""
    twilio_auth_token: str = ""
    twilio_phone_number: str = ""

    # Webhooks (status callbacks are sent to {webhook_base_url}/webhook/call-status)
    webhook_base_url: str = "http://localhost:8000"

    # LLM Providers
    openai_api_key: str = ""
    openai_default_model: str = "gpt-4o-mini"

    anthropic_api_key: str = ""
    anthropic_default_model: str = "claude-3-5-haiku-latest"

    gemini_api_key: str = ""
    gemini_default_model: str = "gemini-1.5-flash"

    ollama_base_url: str = "http://localhost:11434"
    ollama_default_model: str = "llama3"

    # Default LLM Configuration
    default_llm_provider: str = "openai"
    default_llm_model: str = ""  # empty: the provider's default model
    fallback_llm_provider: str = ""
    fallback_llm_model: str = ""

    # Transcription
    transcription_model: str = "whisper-1"
    audio_sample_rate: int = 8000
    audio_channels: int = 1
    audio_bytes_per_sample: int = 2
    audio_chunk_seconds: float = 2.0
    audio_scratch_dir: str = ""

    # Timeouts
    tool_timeout_seconds: float = 30.0
    provider_timeout_seconds: float = 20.0

    # Bearer tokens
    token_ttl_seconds: Optional[int] = None
    auth_tokens_json: str = ""

    # API Server
    service_name: str = "call-mcp-server"
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False
    cors_origins: str = "*"

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def status_callback_url(self) -> str:
        return f"{self.webhook_base_url.rstrip('/')}/webhook/call-status"

    def default_model_for(self, provider: str) -> str:
        return getattr(self, f"{provider}_default_model", "")

    @property
    def llm_configured(self) -> bool:
        """Whether the default generative-text provider has what it needs"""
        keys = {
            "openai": self.openai_api_key,
            "anthropic": self.anthropic_api_key,
            "gemini": self.gemini_api_key,
            "ollama": self.ollama_base_url,
        }
        return bool(keys.get(self.default_llm_provider))

    def provisioned_tokens(self) -> Dict[str, dict]:
        """Parse AUTH_TOKENS_JSON into {token: {"id": ..., "phone_number": ...}}"""
        if not self.auth_tokens_json:
            return {}
        try:
            tokens = json.loads(self.auth_tokens_json)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"AUTH_TOKENS_JSON is not valid JSON: {e}")
        if not isinstance(tokens, dict):
            raise ConfigurationError("AUTH_TOKENS_JSON must be a JSON object keyed by token")
        return tokens

    def validate_startup(self) -> List[str]:
        """Validate configuration at startup. Returns warnings, raises on errors."""
        missing = [
            env_name
            for env_name, value in (
                ("TWILIO_ACCOUNT_SID", self.twilio_account_sid),
                ("TWILIO_AUTH_TOKEN", self.twilio_auth_token),
                ("TWILIO_PHONE_NUMBER", self.twilio_phone_number),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(
                f"Twilio configuration missing: {', '.join(missing)}. "
                "Set them in the environment or .env to place calls."
            )

        # AUTH_TOKENS_JSON must parse at startup
        self.provisioned_tokens()

        warnings: List[str] = []
        if not self.llm_configured:
            warnings.append(
                f"No credentials for LLM provider '{self.default_llm_provider}'. "
                "Summaries use the keyword-based fallback."
            )
        if not self.openai_api_key:
            warnings.append("OPENAI_API_KEY not set. Transcription is simulated.")
        if self.webhook_base_url.startswith("http://localhost"):
            warnings.append(
                "WEBHOOK_BASE_URL points at localhost; Twilio cannot deliver status callbacks."
            )
        return warnings


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
