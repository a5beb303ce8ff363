from chat_gateway.core.config import DEFAULT_MAX_TOKENS, DEFAULT_MODEL, DEFAULT_SYSTEM_PROMPT


def test_chat_streams_backend_response_verbatim(client, backend, sse_body):
    r = client.post("/api/chat", json={"messages": [{"role": "user", "content": "hi"}]})
    assert r.status_code == 200, r.text
    assert r.content == sse_body
    assert r.headers["content-type"].startswith("text/event-stream")
    assert r.headers["x-upstream"] == "workers-ai"
    assert len(backend.calls) == 1


def test_chat_invocation_uses_configured_constants(client, backend):
    client.post("/api/chat", json={"messages": [{"role": "user", "content": "hi"}]})
    call = backend.calls[0]
    assert call["model"] == DEFAULT_MODEL
    assert call["inputs"]["max_tokens"] == DEFAULT_MAX_TOKENS
    assert call["inputs"]["messages"] == [
        {"role": "system", "content": DEFAULT_SYSTEM_PROMPT},
        {"role": "user", "content": "hi"},
    ]
    assert call["options"] == {"return_raw_response": True}


def test_caller_cannot_override_max_tokens_or_model(client, backend):
    client.post("/api/chat", json={
        "messages": [{"role": "user", "content": "hi"}],
        "max_tokens": 99999,
        "model": "something-else",
    })
    call = backend.calls[0]
    assert call["model"] == DEFAULT_MODEL
    assert call["inputs"]["max_tokens"] == DEFAULT_MAX_TOKENS


def test_caller_system_message_not_duplicated(client, backend):
    msgs = [
        {"role": "system", "content": "pirate mode"},
        {"role": "user", "content": "hi"},
    ]
    client.post("/api/chat", json={"messages": msgs})
    assert backend.calls[0]["inputs"]["messages"] == msgs


def test_gateway_options_forwarded_when_configured(make_client, backend):
    c = make_client(gateway={"id": "gw-1", "skip_cache": True, "cache_ttl": 60})
    c.post("/api/chat", json={"messages": [{"role": "user", "content": "hi"}]})
    assert backend.calls[0]["options"] == {
        "return_raw_response": True,
        "gateway": {"id": "gw-1", "skip_cache": True, "cache_ttl": 60},
    }


def test_backend_status_and_headers_pass_through(make_client, make_backend, sse_body):
    upstream = make_backend(status_code=429, headers={"retry-after": "7"})
    c = make_client(ai=upstream)
    r = c.post("/api/chat", json={"messages": [{"role": "user", "content": "hi"}]})
    assert r.status_code == 429
    assert r.headers["retry-after"] == "7"
    assert r.content == sse_body


def test_same_request_twice_calls_backend_twice(client, backend):
    payload = {"messages": [{"role": "user", "content": "hi"}]}
    client.post("/api/chat", json=payload)
    client.post("/api/chat", json=payload)
    assert len(backend.calls) == 2


def test_empty_messages_with_default_prompt_dispatches(client, backend):
    r = client.post("/api/chat", json={"messages": []})
    assert r.status_code == 200
    assert backend.calls[0]["inputs"]["messages"] == [
        {"role": "system", "content": DEFAULT_SYSTEM_PROMPT},
    ]


def test_empty_messages_without_default_is_error(make_client, backend):
    c = make_client(system_prompt="")
    r = c.post("/api/chat", json={"messages": []})
    assert r.status_code == 500
    assert r.json() == {"error": "Failed to process request"}
    assert backend.calls == []


def test_malformed_json_is_error_without_backend_call(client, backend):
    r = client.post(
        "/api/chat",
        content=b"{not json",
        headers={"content-type": "application/json"},
    )
    assert r.status_code == 500
    assert r.headers["content-type"] == "application/json"
    assert r.json()["error"] == "Failed to process request"
    assert backend.calls == []


def test_non_array_messages_is_error(client, backend):
    r = client.post("/api/chat", json={"messages": "hello"})
    assert r.status_code == 500
    assert r.json()["error"] == "Failed to process request"
    assert backend.calls == []


def test_backend_exception_becomes_json_error(make_client, make_backend):
    failing = make_backend(error=RuntimeError("upstream exploded"))
    c = make_client(ai=failing)
    r = c.post("/api/chat", json={"messages": [{"role": "user", "content": "hi"}]})
    assert r.status_code == 500
    body = r.json()
    assert body == {"error": "Failed to process request"}
    assert "access-control-allow-origin" not in r.headers
    assert len(failing.calls) == 1


def test_error_details_and_cors_when_enabled(make_client, make_backend):
    failing = make_backend(error=RuntimeError("upstream exploded"))
    c = make_client(ai=failing, expose_error_details=True, cors_on_error=True)
    r = c.post("/api/chat", json={"messages": [{"role": "user", "content": "hi"}]})
    assert r.status_code == 500
    assert r.json() == {"error": "Failed to process request", "details": "upstream exploded"}
    assert r.headers["access-control-allow-origin"] == "*"


def test_missing_backend_returns_plain_text_500(make_client):
    c = make_client(ai=None)
    r = c.post("/api/chat", json={"messages": [{"role": "user", "content": "hi"}]})
    assert r.status_code == 500
    assert r.headers["content-type"].startswith("text/plain")
    assert "inference backend" in r.text


def test_backend_without_run_method_returns_plain_text_500(make_client):
    class NoRun:
        run = "not callable"

    c = make_client(ai=NoRun())
    r = c.post("/api/chat", json={"messages": [{"role": "user", "content": "hi"}]})
    assert r.status_code == 500
    assert r.headers["content-type"].startswith("text/plain")
