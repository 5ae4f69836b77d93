"""Forward categorization prompts to the upstream LLM APIs."""

from __future__ import annotations

import json
import urllib.error
import urllib.request
from typing import Any

from loguru import logger

from tab_grouper.categorize.registry import ProviderDef
from tab_grouper.config.schema import ProviderConfig


class UpstreamError(Exception):
    """The upstream provider call failed."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


def build_upstream_payload(
    provider_def: ProviderDef,
    provider_cfg: ProviderConfig,
    messages: list[dict[str, Any]],
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "model": provider_cfg.model,
        "messages": messages,
        "temperature": provider_cfg.temperature,
    }
    if provider_def.sends_max_tokens:
        payload["max_tokens"] = provider_cfg.max_tokens
    return payload


def forward(
    provider_def: ProviderDef,
    provider_cfg: ProviderConfig,
    api_key: str,
    messages: list[dict[str, Any]],
    timeout_s: float = 300.0,
) -> Any:
    """POST ``messages`` to the provider and return its decoded JSON body."""
    payload = build_upstream_payload(provider_def, provider_cfg, messages)
    req = urllib.request.Request(
        url=provider_def.url,
        data=json.dumps(payload, ensure_ascii=False).encode("utf-8"),
        headers=provider_def.headers(api_key),
        method="POST",
    )
    logger.info(f"Sending request to {provider_def.name} API ({provider_cfg.model})")

    try:
        with urllib.request.urlopen(req, timeout=timeout_s) as resp:
            raw = resp.read().decode("utf-8", errors="replace")
            status = resp.status
    except urllib.error.HTTPError as exc:
        body = exc.read().decode("utf-8", errors="replace") if exc.fp else ""
        logger.error(f"{provider_def.name} API request failed with status {exc.code}: {body[:500]}")
        raise UpstreamError(
            f"API request failed with status {exc.code}: {body[:500] or exc.reason}",
            status=exc.code,
        ) from exc
    except urllib.error.URLError as exc:
        raise UpstreamError(f"{provider_def.name} API connection error: {exc.reason}") from exc

    logger.info(f"Received response from {provider_def.name} API (status {status})")
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise UpstreamError(f"{provider_def.name} API returned invalid JSON: {raw[:200]}") from exc
