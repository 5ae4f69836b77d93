import json
import threading
import urllib.error
import urllib.request
from io import BytesIO

import pytest

from tab_grouper.categorize.registry import PROVIDER_DEFS
from tab_grouper.config.schema import Config, ProviderConfig
from tab_grouper.relay import upstream
from tab_grouper.relay.server import RelayServer
from tab_grouper.relay.upstream import UpstreamError, build_upstream_payload


@pytest.fixture
def config(monkeypatch) -> Config:
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    monkeypatch.delenv("GROQ_API_KEY", raising=False)
    cfg = Config()
    cfg.relay.port = 0
    cfg.providers.anthropic.api_key = "sk-test"
    return cfg


@pytest.fixture
def run_server():
    servers = []

    def start(config, forward_fn):
        server = RelayServer(config, forward_fn=forward_fn)
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()
        servers.append((server, thread))
        return server

    yield start

    for server, thread in servers:
        server.shutdown()
        server.server_close()
        thread.join(timeout=5)


def _post(url: str, body) -> tuple[int, dict]:
    data = body if isinstance(body, bytes) else json.dumps(body).encode("utf-8")
    req = urllib.request.Request(url, data=data, headers={"Content-Type": "application/json"}, method="POST")
    try:
        with urllib.request.urlopen(req, timeout=10) as resp:
            return resp.status, json.loads(resp.read())
    except urllib.error.HTTPError as exc:
        return exc.code, json.loads(exc.read())


MESSAGES = [{"role": "user", "content": "group these"}]


def test_forwards_to_selected_provider(config, run_server):
    calls = []

    def fake_forward(provider_def, provider_cfg, api_key, messages, timeout_s):
        calls.append((provider_def.key, provider_cfg.model, api_key, messages, timeout_s))
        return {"content": [{"text": "```json\n{}\n```"}]}

    server = run_server(config, fake_forward)

    status, body = _post(f"{server.url}/categorize", {"selectedAPI": "anthropic", "messages": MESSAGES})

    assert status == 200
    assert body == {"content": [{"text": "```json\n{}\n```"}]}
    assert calls == [("anthropic", "claude-3-5-sonnet-20240620", "sk-test", MESSAGES, 300.0)]


def test_unknown_selector_is_bad_request(config, run_server):
    server = run_server(config, lambda *_args, **_kwargs: pytest.fail("must not forward"))

    status, body = _post(f"{server.url}/categorize", {"selectedAPI": "openai", "messages": MESSAGES})

    assert status == 400
    assert "Invalid API selected" in body["error"]


@pytest.mark.parametrize("payload", [b"not json", b"[1, 2]", {"selectedAPI": "groq", "messages": []}])
def test_malformed_requests_are_rejected(config, run_server, payload):
    server = run_server(config, lambda *_args, **_kwargs: pytest.fail("must not forward"))

    status, body = _post(f"{server.url}/categorize", payload)

    assert status == 400
    assert body["error"]


def test_missing_api_key_is_server_error(config, run_server):
    server = run_server(config, lambda *_args, **_kwargs: pytest.fail("must not forward"))

    status, body = _post(f"{server.url}/categorize", {"selectedAPI": "groq", "messages": MESSAGES})

    assert status == 500
    assert body == {"error": "GROQ_API_KEY is not configured"}


def test_api_key_from_environment(config, run_server, monkeypatch):
    monkeypatch.setenv("GROQ_API_KEY", "gsk-env")
    seen = []

    def fake_forward(provider_def, provider_cfg, api_key, messages, timeout_s):
        seen.append(api_key)
        return {"choices": []}

    server = run_server(config, fake_forward)

    status, _ = _post(f"{server.url}/categorize", {"selectedAPI": "groq", "messages": MESSAGES})

    assert status == 200
    assert seen == ["gsk-env"]


def test_upstream_failure_maps_to_500_json(config, run_server):
    def failing_forward(*_args, **_kwargs):
        raise UpstreamError("API request failed with status 529: overloaded", status=529)

    server = run_server(config, failing_forward)

    status, body = _post(f"{server.url}/categorize", {"selectedAPI": "anthropic", "messages": MESSAGES})

    assert status == 500
    assert body == {"error": "API request failed with status 529: overloaded"}


def test_health_check_and_cors(config, run_server):
    server = run_server(config, lambda *_args, **_kwargs: {})

    with urllib.request.urlopen(f"{server.url}/", timeout=10) as resp:
        assert resp.status == 200
        assert resp.headers["Access-Control-Allow-Origin"] == "*"

    req = urllib.request.Request(f"{server.url}/categorize", method="OPTIONS")
    with urllib.request.urlopen(req, timeout=10) as resp:
        assert resp.status == 204
        assert "POST" in resp.headers["Access-Control-Allow-Methods"]


def test_upstream_payload_per_provider():
    cfg = ProviderConfig(model="m", temperature=0.5, max_tokens=8192)

    anthropic = build_upstream_payload(PROVIDER_DEFS["anthropic"], cfg, MESSAGES)
    groq = build_upstream_payload(PROVIDER_DEFS["groq"], cfg, MESSAGES)

    assert anthropic == {"model": "m", "messages": MESSAGES, "temperature": 0.5, "max_tokens": 8192}
    assert groq == {"model": "m", "messages": MESSAGES, "temperature": 0.5}


def test_forward_sends_provider_headers(monkeypatch):
    captured = {}

    class DummyResp:
        status = 200

        def __enter__(self):
            return self

        def __exit__(self, *_args):
            return False

        def read(self):
            return b'{"ok": true}'

    def fake_urlopen(req, timeout):
        captured["url"] = req.full_url
        captured["headers"] = {key.lower(): value for key, value in req.header_items()}
        captured["timeout"] = timeout
        return DummyResp()

    monkeypatch.setattr(upstream.urllib.request, "urlopen", fake_urlopen)

    out = upstream.forward(PROVIDER_DEFS["anthropic"], ProviderConfig(model="m"), "sk", MESSAGES, timeout_s=12)

    assert out == {"ok": True}
    assert captured["url"] == "https://api.anthropic.com/v1/messages"
    assert captured["headers"]["x-api-key"] == "sk"
    assert captured["headers"]["anthropic-version"] == "2023-06-01"
    assert captured["timeout"] == 12


def test_forward_wraps_http_errors(monkeypatch):
    def fake_urlopen(req, timeout):
        raise urllib.error.HTTPError(req.full_url, 401, "Unauthorized", hdrs=None, fp=BytesIO(b'{"error": "bad key"}'))

    monkeypatch.setattr(upstream.urllib.request, "urlopen", fake_urlopen)

    with pytest.raises(UpstreamError) as exc:
        upstream.forward(PROVIDER_DEFS["groq"], ProviderConfig(model="m"), "gsk", MESSAGES)

    assert exc.value.status == 401
    assert "status 401" in str(exc.value)
    assert "bad key" in str(exc.value)
