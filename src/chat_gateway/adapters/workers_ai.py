# src/chat_gateway/adapters/workers_ai.py
from __future__ import annotations

from typing import Any, Dict, Optional, Union

import httpx
from starlette.responses import Response

from chat_gateway.adapters.http import stream_passthrough
from chat_gateway.core.config import WorkersAIConfig
from chat_gateway.core.logging import get_logger

log = get_logger("workers_ai")


class WorkersAIBackend:
    """
    Inference backend over the hosted Workers AI REST API.

    run(model, inputs, options) mirrors the platform binding:
      - inputs:  {"messages": [...], "max_tokens": n}
      - options: {"return_raw_response": bool, "gateway": {"id", "skip_cache", "cache_ttl"}}

    With return_raw_response the upstream server-sent-event stream is handed
    back as a Starlette response; otherwise the decoded `result` is returned.
    """

    def __init__(
        self,
        account_id: str,
        api_token: str,
        *,
        api_base: str = "https://api.cloudflare.com/client/v4",
        gateway_base: str = "https://gateway.ai.cloudflare.com/v1",
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.account_id = account_id
        self.api_base = api_base.rstrip("/")
        self.gateway_base = gateway_base.rstrip("/")
        self._api_token = api_token
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @classmethod
    def from_config(cls, cfg: WorkersAIConfig) -> Optional["WorkersAIBackend"]:
        """None when credentials are missing: the binding is simply absent."""
        if not cfg.configured:
            return None
        return cls(
            cfg.account_id,
            cfg.api_token,
            api_base=cfg.api_base,
            gateway_base=cfg.gateway_base,
            timeout=cfg.timeout,
        )

    def _url(self, model: str, gateway: Dict[str, Any]) -> str:
        if gateway.get("id"):
            return f"{self.gateway_base}/{self.account_id}/{gateway['id']}/workers-ai/{model}"
        return f"{self.api_base}/accounts/{self.account_id}/ai/run/{model}"

    def _headers(self, gateway: Dict[str, Any]) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self._api_token}",
            "Content-Type": "application/json",
        }
        if gateway.get("id"):
            if gateway.get("skip_cache"):
                headers["cf-aig-skip-cache"] = "true"
            if gateway.get("cache_ttl") is not None:
                headers["cf-aig-cache-ttl"] = str(gateway["cache_ttl"])
        return headers

    async def run(
        self,
        model: str,
        inputs: Dict[str, Any],
        options: Optional[Dict[str, Any]] = None,
    ) -> Union[Response, Any]:
        options = options or {}
        gateway = options.get("gateway") or {}
        raw = bool(options.get("return_raw_response"))

        url = self._url(model, gateway)
        body = {**inputs, "stream": raw}
        log.info(
            "run model=%s raw=%s gateway=%s messages=%d",
            model, raw, gateway.get("id") or "-", len(inputs.get("messages") or []),
        )

        if raw:
            req = self._client.build_request("POST", url, json=body, headers=self._headers(gateway))
            upstream = await self._client.send(req, stream=True)
            log.debug("upstream status=%s content-type=%s",
                      upstream.status_code, upstream.headers.get("content-type"))
            return stream_passthrough(upstream)

        r = await self._client.post(url, json=body, headers=self._headers(gateway))
        r.raise_for_status()
        data = r.json()
        return data.get("result", data) if isinstance(data, dict) else data

    async def aclose(self) -> None:
        await self._client.aclose()
