import json

import httpx
import pytest
from fastapi.testclient import TestClient

from plugin_copy_proxy.api.app import CORS_HEADERS, app, get_llm_client, get_settings
from plugin_copy_proxy.config import Settings
from plugin_copy_proxy.providers.llm.anthropic import AnthropicClient

client = TestClient(app)


@pytest.fixture
def remote(request):
    """Install settings and a fake Messages API; yields the captured calls."""
    options = getattr(request, "param", {})
    settings = Settings(
        ANTHROPIC_API_KEY=options.get("api_key", "server-key"),
        BATCH_DELAY_SECONDS=0,
        BATCH_SIZE=2,
        CROSS_SPECIALTY_BATCH_SIZE=1,
        BATCH_SPECIALTIES="general,cardiac",
    )
    calls: list[httpx.Request] = []
    state: dict = {"response": lambda: httpx.Response(200, json={"content": [{"type": "text", "text": "hi"}]})}

    def handler(req: httpx.Request) -> httpx.Response:
        calls.append(req)
        return state["response"]()

    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_llm_client] = lambda: AnthropicClient(
        settings, transport=httpx.MockTransport(handler)
    )
    yield calls, state
    app.dependency_overrides.clear()


def test_healthz() -> None:
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_preflight_returns_cors_headers_without_body(remote) -> None:
    resp = client.options("/api/generate")
    assert resp.status_code == 200
    assert resp.content == b""
    assert resp.headers["access-control-allow-origin"] == "*"
    assert "POST" in resp.headers["access-control-allow-methods"]
    assert "x-api-key" in resp.headers["access-control-allow-headers"]
    assert all(resp.headers[name] == value for name, value in CORS_HEADERS.items())


def test_non_post_method_is_rejected(remote) -> None:
    resp = client.get("/api/claude")
    assert resp.status_code == 405
    assert resp.json() == {"error": "Method not allowed", "message": "Only POST requests are supported"}
    assert resp.headers["access-control-allow-origin"] == "*"


def test_missing_prompt_is_rejected(remote) -> None:
    calls, _ = remote
    resp = client.post("/api/generate", json={"context": "cardiac"})
    assert resp.status_code == 400
    data = resp.json()
    assert data["error"] == "Invalid request"
    assert "prompt" in data["message"]
    assert calls == []


def test_non_array_messages_are_rejected(remote) -> None:
    resp = client.post("/api/claude", json={"messages": "hello"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid request"


@pytest.mark.parametrize("remote", [{"api_key": ""}], indirect=True)
def test_missing_server_key_is_configuration_error(remote) -> None:
    calls, _ = remote
    resp = client.post("/api/generate", json={"prompt": "Write a headline"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Configuration error", "message": "API key not configured on server"}
    assert calls == []


@pytest.mark.parametrize("remote", [{"api_key": ""}], indirect=True)
@pytest.mark.parametrize("path", ["/api/claude", "/api/generate"])
def test_missing_server_key_is_reported_before_body_validation(remote, path: str) -> None:
    calls, _ = remote
    resp = client.post(path, json={})
    assert resp.status_code == 500
    assert resp.json()["error"] == "Configuration error"
    assert resp.headers["access-control-allow-origin"] == "*"
    assert calls == []


def test_generate_end_to_end_structured(remote) -> None:
    calls, state = remote
    state["response"] = lambda: httpx.Response(
        200,
        json={"content": [{"text": '{"headlines":["A"],"descriptions":["B"],"ctas":["C"]}'}]},
    )

    resp = client.post("/api/generate", json={"prompt": "Write a headline", "context": "cardiac"})

    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["content"] == {"headlines": ["A"], "descriptions": ["B"], "ctas": ["C"]}
    assert data["rawResponse"] == '{"headlines":["A"],"descriptions":["B"],"ctas":["C"]}'
    assert "usage" not in data
    assert calls[0].headers["x-api-key"] == "server-key"


def test_generate_plain_format_returns_text(remote) -> None:
    _, state = remote
    state["response"] = lambda: httpx.Response(
        200,
        json={"content": [{"text": "Plain words."}], "model": "claude-x", "usage": {"output_tokens": 3}},
    )

    resp = client.post("/api/generate", json={"prompt": "Write", "format": "plain"})

    assert resp.status_code == 200
    assert resp.json() == {
        "success": True,
        "content": "Plain words.",
        "rawResponse": "Plain words.",
        "usage": {"output_tokens": 3},
        "model": "claude-x",
    }


def test_upstream_failure_mirrors_status_with_details(remote) -> None:
    _, state = remote
    state["response"] = lambda: httpx.Response(401, json={"type": "error", "error": {"message": "invalid x-api-key"}})

    resp = client.post("/api/generate", json={"prompt": "Write a headline"})

    assert resp.status_code == 401
    data = resp.json()
    assert data["error"] == "Claude API error"
    assert data["message"] == "Authentication failed - check API key configuration"
    assert data["status"] == 401
    assert data["details"] == {"type": "error", "error": {"message": "invalid x-api-key"}}


def test_claude_proxy_relays_remote_body(remote) -> None:
    calls, state = remote
    remote_body = {"id": "msg_1", "content": [{"type": "text", "text": "hello"}], "usage": {"input_tokens": 1}}
    state["response"] = lambda: httpx.Response(200, json=remote_body)

    resp = client.post(
        "/api/claude",
        json={"messages": [{"role": "user", "content": "hi"}], "max_tokens": 50},
    )

    assert resp.status_code == 200
    assert resp.json() == remote_body
    sent = json.loads(calls[0].content)
    assert sent == {
        "model": "claude-3-haiku-20240307",
        "max_tokens": 50,
        "messages": [{"role": "user", "content": "hi"}],
        "temperature": 0.8,
    }


def test_claude_proxy_accepts_prompt_shape(remote) -> None:
    calls, _ = remote
    resp = client.post("/api/claude", json={"prompt": "hi there", "system": "Be kind"})
    assert resp.status_code == 200
    sent = json.loads(calls[0].content)
    assert sent["messages"] == [{"role": "user", "content": "hi there"}]
    assert sent["system"] == "Be kind"


def test_claude_proxy_reports_non_json_success(remote) -> None:
    _, state = remote
    state["response"] = lambda: httpx.Response(200, text="<html>gateway</html>")

    resp = client.post("/api/claude", json={"prompt": "hi"})

    assert resp.status_code == 200
    assert resp.json() == {"error": "Invalid JSON response from Claude API", "rawResponse": "<html>gateway</html>"}


def test_caller_key_proxy_forwards_header_key(remote) -> None:
    calls, _ = remote
    resp = client.post(
        "/api/proxy",
        json={"messages": [{"role": "user", "content": "hi"}]},
        headers={"Authorization": "Bearer caller-key"},
    )
    assert resp.status_code == 200
    assert calls[0].headers["x-api-key"] == "caller-key"


def test_caller_key_proxy_requires_key(remote) -> None:
    calls, _ = remote
    resp = client.post("/api/proxy", json={"messages": [{"role": "user", "content": "hi"}]})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Missing API key"
    assert calls == []


def test_generate_content_builds_library(remote) -> None:
    calls, state = remote
    state["response"] = lambda: httpx.Response(500, json={"error": "down"})

    resp = client.post("/api/generate-content")

    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["metadata"]["specialties"] == ["general", "cardiac"]
    assert data["metadata"]["totalVariations"] == 5
    library = data["contentLibrary"]
    assert library["content"]["cardiac"][0]["headline"] == "Heart Care"
    assert len(calls) == 3


def test_debug_reports_key_presence_only(remote) -> None:
    resp = client.get("/api/debug")
    assert resp.status_code == 200
    data = resp.json()
    assert data["hasApiKey"] is True
    assert data["keyLength"] == len("server-key")
    assert "server" not in json.dumps(data)
