# src/chat_gateway/app.py
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, Response
from starlette.routing import Route

from chat_gateway.adapters.assets import AssetStore, assets_from_config
from chat_gateway.adapters.workers_ai import WorkersAIBackend
from chat_gateway.core.config import ROOT_DIR, GatewayConfig, get_config
from chat_gateway.core.logging import get_logger, setup_logging
from chat_gateway.handler import handle_chat_request

# Load .env from project root before any config is read
load_dotenv(ROOT_DIR / ".env")
setup_logging()

log = get_logger("http")

API_PREFIX = "/api/"
CHAT_PATH = "/api/chat"

# "not passed" marker: ai=None explicitly means the binding is absent
_FROM_CONFIG: Any = object()


async def _close(binding: Any) -> None:
    aclose = getattr(binding, "aclose", None)
    if callable(aclose):
        await aclose()


async def dispatch(request: Request) -> Response:
    """
    Classify purely on the path; the method only matters for /api/chat.

      /  or  not under /api/   -> asset store, any method
      /api/chat                -> POST: chat handler, else 405
      other /api/*             -> 404
    """
    state = request.app.state
    path = request.url.path

    if path == "/" or not path.startswith(API_PREFIX):
        return await state.assets.fetch(request)

    if path == CHAT_PATH:
        if request.method != "POST":
            return PlainTextResponse("Method not allowed", status_code=405)
        return await handle_chat_request(request, state.config, state.ai)

    return PlainTextResponse("Not found", status_code=404)


def create_app(
    cfg: Optional[GatewayConfig] = None,
    *,
    ai: Any = _FROM_CONFIG,
    assets: Optional[AssetStore] = None,
) -> FastAPI:
    """
    Build the gateway app.

    Bindings (the inference backend `ai` and the asset store `assets`) come
    from configuration unless injected. They live on app.state and are
    closed on shutdown.

    Serve with:  uvicorn chat_gateway.app:create_app --factory
    """
    cfg = cfg or get_config()
    if ai is _FROM_CONFIG:
        ai = WorkersAIBackend.from_config(cfg.workers_ai)
    if assets is None:
        assets = assets_from_config(cfg.assets)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info("startup model=%s backend=%s assets=%s",
                 cfg.model, type(ai).__name__ if ai is not None else "none",
                 type(assets).__name__)
        yield
        await _close(ai)
        await _close(assets)

    # every non-/api path belongs to the asset store, so no docs routes
    app = FastAPI(
        title="Chat Gateway",
        version="0.1.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    app.state.config = cfg
    app.state.ai = ai
    app.state.assets = assets

    # methods=None: one catch-all route that accepts every HTTP method
    app.router.routes.append(
        Route("/{path:path}", dispatch, methods=None, include_in_schema=False)
    )
    return app
