# src/chat_gateway/adapters/assets.py
from __future__ import annotations

from typing import Optional, Protocol

import httpx
from starlette.exceptions import HTTPException
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response
from starlette.staticfiles import StaticFiles

from chat_gateway.adapters.http import forwardable, stream_passthrough
from chat_gateway.core.config import AssetsConfig


class AssetStore(Protocol):
    async def fetch(self, request: Request) -> Response: ...


class NoAssets:
    """Used when no asset source is configured."""

    async def fetch(self, request: Request) -> Response:
        return PlainTextResponse("Not found", status_code=404)


class LocalAssets:
    """Serve a built front end from disk; `/` resolves to index.html."""

    def __init__(self, directory: str) -> None:
        self._static = StaticFiles(directory=directory, html=True)

    async def fetch(self, request: Request) -> Response:
        path = self._static.get_path(request.scope)
        try:
            return await self._static.get_response(path, request.scope)
        except HTTPException as e:
            if e.status_code == 405:
                return PlainTextResponse("Method not allowed", status_code=405)
            return PlainTextResponse("Not found", status_code=e.status_code)


class RemoteAssets:
    """Proxy asset requests to an external host, response passed back verbatim."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def fetch(self, request: Request) -> Response:
        target = request.url.path
        if request.url.query:
            target = f"{target}?{request.url.query}"
        headers = [
            (k, v) for k, v in forwardable(request.headers.items()) if k.lower() != "host"
        ]
        req = self._client.build_request(
            request.method, target, headers=headers, content=await request.body()
        )
        upstream = await self._client.send(req, stream=True)
        return stream_passthrough(upstream)

    async def aclose(self) -> None:
        await self._client.aclose()


def assets_from_config(cfg: AssetsConfig) -> AssetStore:
    if cfg.upstream_url:
        return RemoteAssets(cfg.upstream_url)
    if cfg.directory:
        return LocalAssets(cfg.directory)
    return NoAssets()
