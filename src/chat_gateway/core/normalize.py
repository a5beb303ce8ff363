# src/chat_gateway/core/normalize.py

from __future__ import annotations
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from chat_gateway.models import ChatRequest


class ChatValidationError(ValueError):
    """Inbound chat payload is unusable (wrong shape, or nothing to send)."""


def parse_chat_request(payload: Any) -> ChatRequest:
    """
    Validate a decoded JSON body into a ChatRequest.

    - body must be a JSON object
    - missing `messages` -> []
    - `messages` must be a list of {role, content} objects
    """
    if not isinstance(payload, dict):
        raise ChatValidationError("request body must be a JSON object")
    if "messages" in payload and not isinstance(payload["messages"], list):
        raise ChatValidationError("'messages' must be an array")
    try:
        return ChatRequest.model_validate(payload)
    except ValidationError as e:
        raise ChatValidationError(f"invalid messages: {e.error_count()} error(s)") from e


def ensure_system_prompt(
    messages: List[Dict[str, Any]],
    system_prompt: Optional[str],
) -> List[Dict[str, Any]]:
    """
    Return `messages` with a default system message at index 0 when none of
    them has role "system". Caller messages keep their order; nothing is
    removed. An empty/None `system_prompt` means no default is configured.
    """
    if any(m.get("role") == "system" for m in messages):
        return list(messages)
    if not system_prompt:
        return list(messages)
    return [{"role": "system", "content": system_prompt}, *messages]


def normalize_messages(req: ChatRequest, system_prompt: Optional[str]) -> List[Dict[str, Any]]:
    msgs = ensure_system_prompt([m.model_dump() for m in req.messages], system_prompt)
    if not msgs:
        raise ChatValidationError("no messages provided")
    return msgs
