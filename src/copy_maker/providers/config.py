"""Provider and engine configuration loading and validation."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..constants import (
    AI_TIMEOUT_SECONDS,
    MAX_REVISION_ATTEMPTS_DEFAULT,
    RETRY_DELAY_SECONDS,
    SHORT_CONTENT_THRESHOLD,
    SHORT_CONTENT_TOLERANCE_PERCENTAGE,
    WORD_COUNT_TOLERANCE_PERCENTAGE,
)

# Load .env file
load_dotenv()

PROVIDERS_FILE_ENV = "COPY_MAKER_PROVIDERS_FILE"


class ProviderSettings(BaseModel):
    """Global provider settings."""

    timeout_seconds: int = AI_TIMEOUT_SECONDS
    fallback_on_error: bool = True


class TextProviderConfig(BaseModel):
    """Configuration for a text provider."""

    priority: int
    enabled: bool = True
    model: str
    base_url: str | None = None
    base_url_env: str | None = None
    api_key: str | None = None
    api_key_env: str | None = None
    timeout: int | None = None
    cost_per_1k_tokens: float | None = None

    def get_api_key(self) -> str | None:
        """Get API key from config or environment."""
        if self.api_key:
            return self.api_key
        if self.api_key_env:
            return os.getenv(self.api_key_env)
        return None

    def get_base_url(self) -> str | None:
        """Get base URL from config or environment."""
        if self.base_url:
            return self.base_url
        if self.base_url_env:
            return os.getenv(self.base_url_env)
        return None

    @property
    def model_id(self) -> str:
        """Model ID without the provider prefix ("openai/gpt-4o" -> "gpt-4o")."""
        if "/" in self.model:
            return self.model.split("/", 1)[1]
        return self.model


class ProviderConfig(BaseModel):
    """Full provider configuration."""

    provider_settings: ProviderSettings = Field(default_factory=ProviderSettings)
    text_providers: dict[str, TextProviderConfig] = Field(default_factory=dict)

    def get_enabled_text_providers(self) -> list[tuple[str, TextProviderConfig]]:
        """Get enabled text providers sorted by priority."""
        enabled = [
            (name, config)
            for name, config in self.text_providers.items()
            if config.enabled
        ]
        return sorted(enabled, key=lambda x: x[1].priority)

    def timeout_for(self, provider_config: TextProviderConfig) -> int:
        """Per-provider timeout, falling back to the global one."""
        return provider_config.timeout or self.provider_settings.timeout_seconds


def default_provider_config_path() -> Path:
    """Path of the providers file, honoring COPY_MAKER_PROVIDERS_FILE."""
    override = os.getenv(PROVIDERS_FILE_ENV)
    if override:
        return Path(override)
    return Path.cwd() / "config" / "providers.yaml"


def load_provider_config(config_path: Path | None = None) -> ProviderConfig:
    """Load provider configuration from YAML file."""
    if config_path is None:
        config_path = default_provider_config_path()

    if not config_path.exists():
        # Return default config if file doesn't exist
        return ProviderConfig()

    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    return ProviderConfig(**data)


class EngineSettings(BaseSettings):
    """Engine-wide defaults, overridable with COPY_MAKER_* variables."""

    max_revision_attempts: int = MAX_REVISION_ATTEMPTS_DEFAULT
    short_content_threshold: int = SHORT_CONTENT_THRESHOLD
    short_content_tolerance_percentage: float = SHORT_CONTENT_TOLERANCE_PERCENTAGE
    word_count_tolerance_percentage: float = WORD_COUNT_TOLERANCE_PERCENTAGE
    retry_delay_seconds: float = RETRY_DELAY_SECONDS
    snapshot_dir: Path = Path("data") / "snapshots"
    log_dir: Path = Path("logs")

    model_config = SettingsConfigDict(
        env_prefix="COPY_MAKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


_engine_settings: EngineSettings | None = None


def get_engine_settings() -> EngineSettings:
    """Get the process-wide engine settings."""
    global _engine_settings
    if _engine_settings is None:
        _engine_settings = EngineSettings()
    return _engine_settings


# Estimated USD per 1k tokens when a provider sets no cost_per_1k_tokens
COST_PER_1K_TOKENS: dict[str, float] = {
    "openai": 0.01,
    "anthropic": 0.015,
    "groq": 0.0001,
    "gemini": 0.0001,
    "deepseek": 0.001,
    "lmstudio": 0.0,
    "ollama": 0.0,
}


def estimate_cost(provider: str | None, tokens: int, cost_per_1k: float | None = None) -> float:
    """Estimate the USD cost of a call from its token count."""
    rate = cost_per_1k if cost_per_1k is not None else COST_PER_1K_TOKENS.get(provider or "", 0.001)
    return (tokens / 1000) * rate
