# src/chat_gateway/core/logging.py
from __future__ import annotations
import logging
import os
from typing import Optional

NAMESPACE = "chat_gateway"
LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)-8s %(name)s %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

# httpx logs one INFO line per upstream request; that duplicates our
# own dispatch log for every chat call
_CHATTY_LIBS = ("httpx", "httpcore")


def log_level(var: str = "LOG_LEVEL", default: str = "INFO") -> int:
    """Level named by env `var`; unknown or empty names fall back to `default`."""
    name = (os.getenv(var) or "").strip().upper()
    level = logging.getLevelName(name) if name else None
    if not isinstance(level, int):
        level = logging.getLevelName(default)
    return level


def setup_logging() -> logging.Logger:
    """
    Configure logging once. Idempotent.

    - LOG_LEVEL          root verbosity (default INFO)
    - GATEWAY_LOG_LEVEL  chat_gateway.* only (defaults to LOG_LEVEL)

    A root handler is only installed when nobody else (uvicorn, pytest)
    did. httpx/httpcore stay at WARNING unless the gateway runs at DEBUG.
    """
    root = logging.getLogger()
    root_level = log_level()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        root.addHandler(handler)
    root.setLevel(root_level)

    gateway_level = log_level("GATEWAY_LOG_LEVEL", logging.getLevelName(root_level))
    ns = logging.getLogger(NAMESPACE)
    ns.setLevel(gateway_level)

    lib_level = logging.DEBUG if gateway_level <= logging.DEBUG else logging.WARNING
    for name in _CHATTY_LIBS:
        logging.getLogger(name).setLevel(lib_level)
    return ns


def get_logger(component: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(f"{NAMESPACE}.{component}" if component else NAMESPACE)
