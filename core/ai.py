"""OpenAI-backed code assistance.

One :class:`AssistantClient` is owned by the Flask app. The SDK connection is
built lazily from the current credential and rebuilt after :meth:`reset`.
Provider failures are surfaced to the caller; only missing JSON fields are
filled with defaults.
"""
from __future__ import annotations

import json
import logging
import math
import threading
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

from openai import OpenAI, OpenAIError, APIStatusError

from config import Settings, get_settings

from .errors import ConfigurationError, ProviderResponseError, ProviderTransportError

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 0.5

ASSISTANCE_SYSTEM_PROMPT = """You are an expert programming assistant. Help users with:
- Code optimization and improvements
- Bug fixes and debugging
- Feature implementations
- Best practices and code review
- Code explanations

Respond with JSON in this format: { "suggestion": "improved code or suggestion", "explanation": "detailed explanation", "confidence": number_between_0_and_1 }"""

DEBUG_SYSTEM_PROMPT = """You are a debugging expert. Analyze code for bugs, errors, and potential issues.
Respond with JSON in this format: { "suggestion": "fixed code", "explanation": "what was wrong and how to fix it", "confidence": number_between_0_and_1 }"""

EXPLAIN_SYSTEM_PROMPT = (
    "You are a code explanation expert. Provide clear, detailed explanations of code functionality, "
    "breaking down complex parts into understandable concepts."
)

ASSISTANCE_DEFAULTS = (
    "I need more information to provide a helpful suggestion.",
    "Please provide more details about what you'd like help with.",
)
DEBUG_DEFAULTS = (
    "No specific issues found in the code.",
    "The code appears to be syntactically correct.",
)
EXPLAIN_FALLBACK = "Unable to explain the code."


@dataclass
class AssistanceRequest:
    code: str
    language: str
    prompt: str
    context: Optional[str] = None


@dataclass
class AssistanceResponse:
    suggestion: str
    explanation: str
    confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def clamp_confidence(raw: Any, default: float = DEFAULT_CONFIDENCE) -> float:
    """Coerce a provider confidence into [0, 1]; unusable values become ``default``."""
    if isinstance(raw, bool) or raw is None:
        return default
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return default
    if math.isnan(value):
        return default
    return max(0.0, min(1.0, value))


def _fenced(code: str, language: str) -> str:
    return f"```{language}\n{code}\n```"


def build_assistance_prompt(request: AssistanceRequest) -> str:
    parts = [
        f"Language: {request.language}",
        "Current Code:",
        _fenced(request.code, request.language),
        "",
        f"Request: {request.prompt}",
        "",
    ]
    if request.context:
        parts.append(f"Additional Context: {request.context}")
        parts.append("")
    parts.append("Please provide a helpful response with code suggestions and explanations.")
    return "\n".join(parts)


def build_debug_prompt(code: str, language: str, error: Optional[str] = None) -> str:
    problem = f" that's producing this error: {error}" if error else ""
    return (
        f"Debug this {language} code{problem}:\n\n"
        f"{_fenced(code, language)}\n\n"
        "Find potential issues and provide fixes."
    )


class AssistantClient:
    """Chat-completion wrapper for the four assistance use-cases."""

    def __init__(self, settings: Optional[Settings] = None, api_key: Optional[str] = None):
        self.settings = settings or get_settings()
        self._api_key = api_key if api_key is not None else self.settings.openai_api_key
        self._client: Optional[OpenAI] = None
        self._lock = threading.Lock()

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    @property
    def api_key(self) -> Optional[str]:
        return self._api_key

    def reset(self, api_key: Optional[str] = None) -> None:
        """Swap the credential and drop the cached connection.

        Calls already in flight keep the connection they acquired.
        """
        with self._lock:
            self._api_key = (api_key or "").strip() or None
            self._client = None
        logger.info("assistance credential reset (configured=%s)", bool(self._api_key))

    def _connection(self) -> OpenAI:
        with self._lock:
            if not self._api_key:
                raise ConfigurationError("OpenAI API key is not configured. Please add your API key in Settings.")
            if self._client is None:
                self._client = OpenAI(
                    api_key=self._api_key,
                    base_url=self.settings.openai_base_url,
                    timeout=self.settings.ai_timeout,
                    max_retries=0,
                )
            return self._client

    def _chat(
        self,
        action: str,
        messages: List[Dict[str, str]],
        *,
        temperature: float,
        max_tokens: int,
        json_mode: bool = False,
    ) -> str:
        client = self._connection()
        kwargs: Dict[str, Any] = {
            "model": self.settings.openai_model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        try:
            resp = client.chat.completions.create(**kwargs)
        except APIStatusError as exc:
            logger.error("OpenAI %s failed with status %s: %s", action, exc.status_code, exc)
            raise ProviderTransportError(f"Failed to {action}: {exc}", status_code=exc.status_code) from exc
        except OpenAIError as exc:
            logger.error("OpenAI %s failed: %s", action, exc)
            raise ProviderTransportError(f"Failed to {action}: {exc}") from exc
        if not resp.choices:
            return ""
        return resp.choices[0].message.content or ""

    def _structured(self, action: str, messages: List[Dict[str, str]], temperature: float, defaults) -> AssistanceResponse:
        content = self._chat(action, messages, temperature=temperature, max_tokens=1000, json_mode=True)
        try:
            data = json.loads(content or "{}")
        except json.JSONDecodeError as exc:
            logger.warning("OpenAI %s returned non-JSON content", action)
            raise ProviderResponseError(f"Failed to {action}: provider returned invalid JSON") from exc
        if not isinstance(data, dict):
            data = {}
        suggestion, explanation = defaults
        return AssistanceResponse(
            suggestion=str(data.get("suggestion") or suggestion),
            explanation=str(data.get("explanation") or explanation),
            confidence=clamp_confidence(data.get("confidence")),
        )

    def get_assistance(self, request: AssistanceRequest) -> AssistanceResponse:
        messages = [
            {"role": "system", "content": ASSISTANCE_SYSTEM_PROMPT},
            {"role": "user", "content": build_assistance_prompt(request)},
        ]
        return self._structured("get code assistance", messages, 0.3, ASSISTANCE_DEFAULTS)

    def generate_code(self, prompt: str, language: str = "javascript") -> str:
        messages = [
            {
                "role": "system",
                "content": (
                    f"You are a code generation expert. Generate clean, well-commented, production-ready code "
                    f"in {language}. Only return the code, no explanations."
                ),
            },
            {"role": "user", "content": prompt},
        ]
        return self._chat("generate code", messages, temperature=0.2, max_tokens=2000)

    def explain_code(self, code: str, language: str) -> str:
        messages = [
            {"role": "system", "content": EXPLAIN_SYSTEM_PROMPT},
            {"role": "user", "content": f"Please explain this {language} code:\n\n{_fenced(code, language)}"},
        ]
        return self._chat("explain code", messages, temperature=0.3, max_tokens=1000) or EXPLAIN_FALLBACK

    def debug_code(self, code: str, language: str, error: Optional[str] = None) -> AssistanceResponse:
        messages = [
            {"role": "system", "content": DEBUG_SYSTEM_PROMPT},
            {"role": "user", "content": build_debug_prompt(code, language, error)},
        ]
        return self._structured("debug code", messages, 0.2, DEBUG_DEFAULTS)


__all__ = [
    "AssistanceRequest",
    "AssistanceResponse",
    "AssistantClient",
    "clamp_confidence",
    "build_assistance_prompt",
    "build_debug_prompt",
]
