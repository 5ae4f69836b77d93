"""Client for the local categorization relay."""

from __future__ import annotations

import asyncio
import json
import urllib.error
import urllib.request
from typing import Any

from loguru import logger

from tab_grouper.categorize.errors import TransportError
from tab_grouper.categorize.extract import extract_json_block
from tab_grouper.categorize.prompt import build_prompt
from tab_grouper.categorize.registry import ProviderDef, get_provider_def
from tab_grouper.tabs.models import TabSnapshot


def build_request_body(provider: str, prompt: str) -> dict[str, Any]:
    return {
        "selectedAPI": provider,
        "messages": [{"role": "user", "content": prompt}],
    }


def _error_detail(raw: str) -> str:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return raw[:500]
    if isinstance(parsed, dict) and isinstance(parsed.get("error"), str):
        return parsed["error"]
    return raw[:500]


class CategorizerClient:
    """Send a snapshot to the relay and return the decoded grouping payload."""

    def __init__(
        self,
        relay_url: str = "http://localhost:3002",
        timeout_s: float | None = None,
        endpoint: str = "/categorize",
    ) -> None:
        self.relay_url = (relay_url or "http://localhost:3002").rstrip("/")
        self.timeout_s = timeout_s
        self.endpoint = endpoint if endpoint.startswith("/") else f"/{endpoint}"

    @property
    def url(self) -> str:
        return f"{self.relay_url}{self.endpoint}"

    async def categorize(self, snapshot: TabSnapshot, provider: str) -> Any:
        """
        Ask the categorizer for a grouping of ``snapshot``.

        Returns the decoded JSON found in the model's fenced block; the caller
        is responsible for validating it. One attempt, no retries.
        """
        provider_def = get_provider_def(provider)
        body = build_request_body(provider_def.key, build_prompt(snapshot))
        logger.info(f"Categorizing {len(snapshot)} tabs via {provider_def.name}")
        data = await asyncio.to_thread(self._post, body)
        text = self._response_text(provider_def, data)
        logger.debug("Categorizer returned {} chars", len(text))
        return extract_json_block(text)

    def _response_text(self, provider_def: ProviderDef, data: Any) -> str:
        try:
            return provider_def.extract_text(data)
        except ValueError as exc:
            raise TransportError(f"Relay returned an unusable {provider_def.name} body: {exc}") from exc

    def _post(self, body: dict[str, Any]) -> Any:
        req = urllib.request.Request(
            url=self.url,
            data=json.dumps(body, ensure_ascii=False).encode("utf-8"),
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        kwargs: dict[str, Any] = {}
        if self.timeout_s is not None:
            kwargs["timeout"] = self.timeout_s

        try:
            with urllib.request.urlopen(req, **kwargs) as resp:
                raw = resp.read().decode("utf-8", errors="replace")
        except urllib.error.HTTPError as exc:
            body_text = exc.read().decode("utf-8", errors="replace") if exc.fp else ""
            detail = _error_detail(body_text) if body_text else exc.reason
            raise TransportError(
                f"Server request failed with status {exc.code}: {detail}",
                status=exc.code,
            ) from exc
        except urllib.error.URLError as exc:
            raise TransportError(f"Relay connection error: {exc.reason}") from exc
        except OSError as exc:
            raise TransportError(f"Relay connection error: {exc}") from exc

        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise TransportError(f"Relay returned invalid JSON: {raw[:200]}") from exc
