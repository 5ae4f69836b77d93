"""Registry of supported categorization providers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from tab_grouper.categorize.errors import ConfigError


def _anthropic_text(body: Any) -> str:
    return body["content"][0]["text"]


def _groq_text(body: Any) -> str:
    return body["choices"][0]["message"]["content"]


def _anthropic_headers(api_key: str) -> dict[str, str]:
    return {
        "anthropic-version": "2023-06-01",
        "x-api-key": api_key,
        "content-type": "application/json",
    }


def _groq_headers(api_key: str) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }


@dataclass(frozen=True)
class ProviderDef:
    """Upstream LLM provider metadata."""

    key: str
    name: str
    url: str
    env_key: str
    sends_max_tokens: bool
    headers: Callable[[str], dict[str, str]]
    text_of: Callable[[Any], str]

    def extract_text(self, body: Any) -> str:
        """Pull the model's free text out of a provider-native response body."""
        try:
            text = self.text_of(body)
        except (KeyError, IndexError, TypeError) as exc:
            raise ValueError(f"Unexpected {self.name} response shape") from exc
        if not isinstance(text, str):
            raise ValueError(f"{self.name} response text is not a string")
        return text


PROVIDER_DEFS: dict[str, ProviderDef] = {
    "anthropic": ProviderDef(
        key="anthropic",
        name="Anthropic",
        url="https://api.anthropic.com/v1/messages",
        env_key="ANTHROPIC_API_KEY",
        sends_max_tokens=True,
        headers=_anthropic_headers,
        text_of=_anthropic_text,
    ),
    "groq": ProviderDef(
        key="groq",
        name="Groq",
        url="https://api.groq.com/openai/v1/chat/completions",
        env_key="GROQ_API_KEY",
        sends_max_tokens=False,
        headers=_groq_headers,
        text_of=_groq_text,
    ),
}


def get_provider_def(provider: str) -> ProviderDef:
    """Get a provider definition by its wire key (``selectedAPI``)."""
    key = provider if isinstance(provider, str) else ""
    if key not in PROVIDER_DEFS:
        choices = ", ".join(sorted(PROVIDER_DEFS))
        raise ConfigError(f"Unknown provider '{provider}'. Expected one of: {choices}")
    return PROVIDER_DEFS[key]
