"""Shared utility helpers for Flask routes."""
from __future__ import annotations

from typing import Any, Dict, Optional

from flask import current_app, request

from core.ai import AssistantClient
from core.errors import ValidationError
from core.planner import PlanGenerator
from core.sandbox import JavaScriptSandbox


def mask_token(token: Optional[str]) -> str:
    if not token:
        return ""
    value = token.strip()
    if len(value) <= 12:
        return value[:2] + "****" + value[-2:]
    return value[:8] + "****" + value[-4:]


def json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def pick(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first key present in ``data`` (accepts camelCase and snake_case spellings)."""
    for key in keys:
        if key in data:
            return data[key]
    return default


def require_str(data: Dict[str, Any], key: str, *, allow_empty: bool = False) -> str:
    value = data.get(key)
    if not isinstance(value, str) or (not allow_empty and not value.strip()):
        raise ValidationError(f"'{key}' is required and must be a string")
    return value


def optional_str(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"'{key}' must be a string")
    return value


def optional_int(value: Any, name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"'{name}' must be an integer")


def optional_bool(value: Any, name: str) -> bool:
    """Accept only a JSON boolean; a missing value is ``False``."""
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ValidationError(f"'{name}' must be a boolean")
    return value


def get_assistant() -> AssistantClient:
    return current_app.extensions["codeide.assistant"]


def get_planner() -> PlanGenerator:
    return current_app.extensions["codeide.planner"]


def get_sandbox() -> JavaScriptSandbox:
    return current_app.extensions["codeide.sandbox"]


__all__ = [
    "mask_token",
    "json_body",
    "pick",
    "require_str",
    "optional_str",
    "optional_int",
    "optional_bool",
    "get_assistant",
    "get_planner",
    "get_sandbox",
]
