# src/chat_gateway/core/config.py
from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import BaseModel, Field

from chat_gateway.models import GatewayOptions


# This file lives at: src/chat_gateway/core/config.py
# gateway.yml sits at the project root (3 levels up from core/)
ROOT_DIR = Path(__file__).resolve().parents[3]
DEFAULT_CFG_PATH = ROOT_DIR / "gateway.yml"

DEFAULT_MODEL = "@cf/openai/gpt-oss-120b"
DEFAULT_SYSTEM_PROMPT = (
    "You are an expert in many things. Whatever users ask questions, you are an "
    "expert in whatever subject matter that is. Always provide concise and "
    "accurate responses."
)
DEFAULT_MAX_TOKENS = 2048


class AssetsConfig(BaseModel):
    directory: Optional[str] = None
    upstream_url: Optional[str] = None


class WorkersAIConfig(BaseModel):
    account_id: Optional[str] = None
    api_token: Optional[str] = None
    api_base: str = "https://api.cloudflare.com/client/v4"
    gateway_base: str = "https://gateway.ai.cloudflare.com/v1"
    timeout: float = Field(default=60.0, gt=0)

    @property
    def configured(self) -> bool:
        return bool(self.account_id and self.api_token)


class GatewayConfig(BaseModel):
    """
    Process-wide, read-only settings.

    `model`, `system_prompt` and `max_tokens` are the only values that
    differ between deployments; callers can never override them per request.
    An empty `system_prompt` disables default-prompt injection.
    """
    model: str = DEFAULT_MODEL
    system_prompt: Optional[str] = DEFAULT_SYSTEM_PROMPT
    max_tokens: int = Field(default=DEFAULT_MAX_TOKENS, gt=0)
    gateway: GatewayOptions = Field(default_factory=GatewayOptions)
    cors_on_error: bool = False
    expose_error_details: bool = False
    assets: AssetsConfig = Field(default_factory=AssetsConfig)
    workers_ai: WorkersAIConfig = Field(default_factory=WorkersAIConfig)


# --- env var -> (section, key) overrides ------------------------------------

_ENV_OVERRIDES = {
    "GATEWAY_MODEL": (None, "model"),
    "GATEWAY_SYSTEM_PROMPT": (None, "system_prompt"),
    "GATEWAY_MAX_TOKENS": (None, "max_tokens"),
    "AI_GATEWAY_ID": ("gateway", "id"),
    "CF_ACCOUNT_ID": ("workers_ai", "account_id"),
    "CF_API_TOKEN": ("workers_ai", "api_token"),
    "ASSETS_DIR": ("assets", "directory"),
    "ASSETS_UPSTREAM_URL": ("assets", "upstream_url"),
}


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    return data


def _apply_env(data: Dict[str, Any], env: Mapping[str, str]) -> Dict[str, Any]:
    merged = dict(data)
    for var, (section, key) in _ENV_OVERRIDES.items():
        if var not in env:
            continue
        if section is None:
            merged[key] = env[var]
        else:
            sub = dict(merged.get(section) or {})
            sub[key] = env[var]
            merged[section] = sub
    return merged


def load_config(
    path: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> GatewayConfig:
    """
    Build a GatewayConfig from YAML + environment.

    - `path` defaults to $GATEWAY_CONFIG, then <project root>/gateway.yml
    - a missing file is fine (built-in defaults apply)
    - env vars in _ENV_OVERRIDES win over the file
    """
    env = os.environ if env is None else env
    if path is None:
        path = Path(env["GATEWAY_CONFIG"]) if env.get("GATEWAY_CONFIG") else DEFAULT_CFG_PATH
    data = _apply_env(_read_yaml(Path(path)), env)
    return GatewayConfig.model_validate(data)


@lru_cache(maxsize=1)
def get_config() -> GatewayConfig:
    return load_config()
