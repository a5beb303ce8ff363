# src/chat_gateway/models.py
from __future__ import annotations
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field

Role = Literal["system", "user", "assistant"]

class ChatMessage(BaseModel):
    role: Role
    content: str

class ChatRequest(BaseModel):
    messages: List[ChatMessage] = Field(default_factory=list)

class GatewayOptions(BaseModel):
    """Inference-gateway routing/caching knobs (all optional)."""
    id: Optional[str] = None
    skip_cache: bool = False
    cache_ttl: Optional[int] = Field(default=None, ge=0)

class InferenceInvocation(BaseModel):
    """
    One outbound call to the inference backend.

    Built per request from configuration plus the normalized messages;
    never persisted.
    """
    model: str
    messages: List[Dict[str, Any]]
    max_tokens: int
    return_raw_response: bool = True
    gateway: Optional[GatewayOptions] = None

    def inputs(self) -> Dict[str, Any]:
        return {"messages": self.messages, "max_tokens": self.max_tokens}

    def options(self) -> Dict[str, Any]:
        opts: Dict[str, Any] = {"return_raw_response": self.return_raw_response}
        if self.gateway is not None and self.gateway.id:
            opts["gateway"] = self.gateway.model_dump(exclude_none=True)
        return opts
