"""Configuration schema for tab-grouper."""

from __future__ import annotations

import os

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings


class ProviderConfig(BaseModel):
    """Upstream settings for one categorization provider."""

    api_key: str = ""
    model: str = ""
    temperature: float = 0.5
    max_tokens: int = 8192


def _anthropic_defaults() -> ProviderConfig:
    return ProviderConfig(model="claude-3-5-sonnet-20240620")


def _groq_defaults() -> ProviderConfig:
    return ProviderConfig(model="llama-3.1-8b-instant")


class ProvidersConfig(BaseModel):
    """Per-provider upstream configuration."""

    anthropic: ProviderConfig = Field(default_factory=_anthropic_defaults)
    groq: ProviderConfig = Field(default_factory=_groq_defaults)


class RelayConfig(BaseModel):
    """Local relay server configuration."""

    host: str = "127.0.0.1"
    port: int = 3002
    request_timeout_s: float = 300.0


class ClientConfig(BaseModel):
    """Sidebar-side categorization client configuration."""

    relay_url: str = "http://localhost:3002"
    default_provider: str = "anthropic"
    # None keeps the request open until the relay answers.
    timeout_s: float | None = None


class Config(BaseSettings):
    """Root configuration for tab-grouper."""

    relay: RelayConfig = Field(default_factory=RelayConfig)
    client: ClientConfig = Field(default_factory=ClientConfig)
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)

    def get_provider_config(self, name: str) -> ProviderConfig | None:
        """Get provider-specific configuration by key."""
        key = (name or "").strip().lower()
        value = getattr(self.providers, key, None)
        return value if isinstance(value, ProviderConfig) else None

    def resolve_api_key(self, name: str, env_var: str) -> str | None:
        """Resolve an upstream API key from config, then from the environment."""
        cfg = self.get_provider_config(name)
        if cfg is not None and cfg.api_key.strip():
            return cfg.api_key.strip()
        value = os.environ.get(env_var, "").strip()
        return value or None

    model_config = ConfigDict(
        env_prefix="TAB_GROUPER_",
        env_nested_delimiter="__",
        extra="ignore",
    )
