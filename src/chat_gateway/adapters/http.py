# src/chat_gateway/adapters/http.py
from __future__ import annotations

from typing import Iterable, List, Tuple

import httpx
from starlette.background import BackgroundTask
from starlette.responses import StreamingResponse

# Connection-scoped headers; never forwarded in either direction.
HOP_BY_HOP = frozenset({
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailers",
    "transfer-encoding",
    "upgrade",
})


def forwardable(headers: Iterable[Tuple[str, str]]) -> List[Tuple[str, str]]:
    return [(k, v) for k, v in headers if k.lower() not in HOP_BY_HOP]


def stream_passthrough(upstream: httpx.Response) -> StreamingResponse:
    """
    Wrap an httpx response opened with `stream=True` so its status, headers
    and raw body bytes reach the client untouched.

    The upstream is closed once the body is sent, or when the client goes
    away mid-stream.
    """
    response = StreamingResponse(
        upstream.aiter_raw(),
        status_code=upstream.status_code,
        background=BackgroundTask(upstream.aclose),
    )
    # replace Starlette's defaults so duplicates (set-cookie) and
    # content-encoding survive as sent
    response.raw_headers = [
        (k.encode("latin-1"), v.encode("latin-1"))
        for k, v in forwardable(upstream.headers.multi_items())
    ]
    return response
