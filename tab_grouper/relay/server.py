"""Local relay server: ``POST /categorize`` forwards a prompt to the selected provider."""

from __future__ import annotations

import json
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Callable

from loguru import logger

from tab_grouper.categorize.errors import ConfigError
from tab_grouper.categorize.registry import get_provider_def
from tab_grouper.config.schema import Config
from tab_grouper.relay.upstream import UpstreamError, forward

ForwardFn = Callable[..., Any]


class _BadRequest(Exception):
    pass


class RelayHandler(BaseHTTPRequestHandler):
    server: "RelayServer"

    def do_GET(self) -> None:
        if self.path == "/":
            self._text_response(200, "Tab grouper relay is running.")
            return
        self._json_response(404, {"error": "not found"})

    def do_OPTIONS(self) -> None:
        self.send_response(204)
        self._cors_headers()
        self.send_header("Access-Control-Allow-Methods", "GET, POST, OPTIONS")
        self.send_header("Access-Control-Allow-Headers", "Content-Type")
        self.send_header("Content-Length", "0")
        self.end_headers()

    def do_POST(self) -> None:
        if self.path != "/categorize":
            self._json_response(404, {"error": "not found"})
            return

        logger.info("Received /categorize request")
        try:
            provider, messages = self._read_request()
            status, body = self.server.categorize(provider, messages)
        except _BadRequest as exc:
            self._json_response(400, {"error": str(exc)})
            return
        self._json_response(status, body)

    def _read_request(self) -> tuple[str, list[Any]]:
        length = int(self.headers.get("Content-Length", 0) or 0)
        raw = self.rfile.read(length) if length else b""
        try:
            body = json.loads(raw.decode("utf-8")) if raw else None
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise _BadRequest("Request body must be JSON") from exc
        if not isinstance(body, dict):
            raise _BadRequest("Request body must be a JSON object")

        provider = body.get("selectedAPI")
        try:
            get_provider_def(provider)
        except ConfigError as exc:
            raise _BadRequest(f"Invalid API selected: {exc}") from exc

        messages = body.get("messages")
        if not isinstance(messages, list) or not messages:
            raise _BadRequest("messages must be a non-empty list")
        return provider, messages

    def _cors_headers(self) -> None:
        self.send_header("Access-Control-Allow-Origin", "*")

    def _json_response(self, code: int, data: Any) -> None:
        body = json.dumps(data).encode("utf-8")
        self.send_response(code)
        self._cors_headers()
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _text_response(self, code: int, text: str) -> None:
        body = text.encode("utf-8")
        self.send_response(code)
        self._cors_headers()
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("[relay] {}", format % args)


class RelayServer(ThreadingHTTPServer):
    """HTTP relay between the sidebar and the upstream LLM providers."""

    daemon_threads = True

    def __init__(self, config: Config | None = None, forward_fn: ForwardFn = forward) -> None:
        self.config = config or Config()
        self.forward_fn = forward_fn
        super().__init__((self.config.relay.host, self.config.relay.port), RelayHandler)

    @property
    def url(self) -> str:
        host, port = self.server_address[:2]
        return f"http://{host}:{port}"

    def categorize(self, provider: str, messages: list[Any]) -> tuple[int, Any]:
        """Forward one request; returns ``(status, body)`` for the handler."""
        provider_def = get_provider_def(provider)
        provider_cfg = self.config.get_provider_config(provider_def.key)
        api_key = self.config.resolve_api_key(provider_def.key, provider_def.env_key)
        logger.info(f"{provider_def.env_key} available: {bool(api_key)}")
        if provider_cfg is None or not api_key:
            return 500, {"error": f"{provider_def.env_key} is not configured"}

        try:
            data = self.forward_fn(
                provider_def,
                provider_cfg,
                api_key,
                messages,
                timeout_s=self.config.relay.request_timeout_s,
            )
        except UpstreamError as exc:
            logger.error(f"Error in /categorize route: {exc}")
            return 500, {"error": str(exc)}
        return 200, data


def serve(config: Config | None = None) -> None:
    """Run the relay until interrupted."""
    server = RelayServer(config)
    logger.info(f"Server running at {server.url}")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Relay stopped")
    finally:
        server.server_close()
