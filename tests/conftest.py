# tests/conftest.py
from __future__ import annotations

import copy
from typing import Any, Callable, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response, StreamingResponse

# With src/ layout and `pip install -e .`, the package imports directly:
from chat_gateway.app import create_app
from chat_gateway.core.config import GatewayConfig

SSE_CHUNKS = [
    b'data: {"response":"Hel"}\n\n',
    b'data: {"response":"lo"}\n\n',
    b"data: [DONE]\n\n",
]


class RecordingBackend:
    """Stands in for the inference binding; records every run() call."""

    def __init__(
        self,
        *,
        status_code: int = 200,
        headers: Optional[Dict[str, str]] = None,
        error: Optional[Exception] = None,
    ) -> None:
        self.calls: List[Dict[str, Any]] = []
        self.status_code = status_code
        self.headers = headers if headers is not None else {"x-upstream": "workers-ai"}
        self.error = error

    async def run(self, model: str, inputs: Dict[str, Any], options: Optional[Dict[str, Any]] = None) -> Response:
        self.calls.append({
            "model": model,
            "inputs": copy.deepcopy(inputs),
            "options": copy.deepcopy(options),
        })
        if self.error is not None:
            raise self.error

        async def body():
            for chunk in SSE_CHUNKS:
                yield chunk

        return StreamingResponse(
            body(),
            status_code=self.status_code,
            media_type="text/event-stream",
            headers=self.headers,
        )


class RecordingAssets:
    def __init__(self) -> None:
        self.requests: List[str] = []

    async def fetch(self, request: Request) -> Response:
        self.requests.append(f"{request.method} {request.url.path}")
        return PlainTextResponse(
            f"asset {request.url.path}",
            headers={"x-asset-store": "yes"},
        )


@pytest.fixture
def sse_body() -> bytes:
    return b"".join(SSE_CHUNKS)


@pytest.fixture
def make_backend() -> Callable[..., RecordingBackend]:
    return RecordingBackend


@pytest.fixture
def backend(make_backend) -> RecordingBackend:
    return make_backend()


@pytest.fixture
def assets() -> RecordingAssets:
    return RecordingAssets()


@pytest.fixture
def make_client(backend: RecordingBackend, assets: RecordingAssets) -> Callable[..., TestClient]:
    """
    Factory: make_client(cfg=None, ai=<recording backend>, **config_overrides).
    Pass ai=None to simulate a missing inference binding.
    """
    def _make(cfg: Optional[GatewayConfig] = None, ai: Any = backend, **overrides: Any) -> TestClient:
        cfg = cfg or GatewayConfig(**overrides)
        return TestClient(create_app(cfg, ai=ai, assets=assets))

    return _make


@pytest.fixture
def client(make_client) -> TestClient:
    return make_client()
