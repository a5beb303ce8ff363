# src/chat_gateway/handler.py
from __future__ import annotations

from typing import Any, Dict, List

from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response

from chat_gateway.core.config import GatewayConfig
from chat_gateway.core.logging import get_logger
from chat_gateway.core.normalize import (
    ChatValidationError,
    normalize_messages,
    parse_chat_request,
)
from chat_gateway.models import InferenceInvocation

log = get_logger("http")

ERROR_MESSAGE = "Failed to process request"
BACKEND_UNAVAILABLE = "Error: inference backend is not configured or does not have a run method"


def backend_available(ai: Any) -> bool:
    return ai is not None and callable(getattr(ai, "run", None))


def build_invocation(cfg: GatewayConfig, messages: List[Dict[str, Any]]) -> InferenceInvocation:
    return InferenceInvocation(
        model=cfg.model,
        messages=messages,
        max_tokens=cfg.max_tokens,
        return_raw_response=True,
        gateway=cfg.gateway if cfg.gateway.id else None,
    )


def error_response(cfg: GatewayConfig, exc: Exception) -> JSONResponse:
    body = {"error": ERROR_MESSAGE}
    if cfg.expose_error_details:
        body["details"] = str(exc)
    headers = {"Access-Control-Allow-Origin": "*"} if cfg.cors_on_error else None
    return JSONResponse(body, status_code=500, headers=headers)


async def handle_chat_request(request: Request, cfg: GatewayConfig, ai: Any) -> Response:
    """
    POST /api/chat: Parse -> Validate -> Normalize -> Dispatch -> Stream-or-Error.

    On success the backend's response object is returned as-is so the
    token stream reaches the caller unbuffered. Every failure ends here as a
    500; nothing is retried.
    """
    try:
        # 1) Parse JSON body
        try:
            payload = await request.json()
        except ValueError as e:
            raise ChatValidationError(f"invalid JSON body: {e}") from e

        # 2) + 3) Extract and shape-check messages
        req = parse_chat_request(payload)

        # 4) Default system prompt, then the empty check
        messages = normalize_messages(req, cfg.system_prompt)

        # 5) Outbound call description
        inv = build_invocation(cfg, messages)

        # 6) Binding guard
        if not backend_available(ai):
            log.error("chat: inference backend missing or has no run()")
            return PlainTextResponse(BACKEND_UNAVAILABLE, status_code=500)

        # 7) Dispatch; response passes through untouched
        log.info("chat: dispatch model=%s messages=%d max_tokens=%d",
                 inv.model, len(inv.messages), inv.max_tokens)
        return await ai.run(inv.model, inv.inputs(), inv.options())
    except Exception as e:
        log.exception("Error processing chat request: %s", e)
        return error_response(cfg, e)
