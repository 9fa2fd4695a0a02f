"""Application plan generation via Perplexity with local template fallback."""
from __future__ import annotations

import copy
import json
import logging
import re
import threading
from dataclasses import dataclass, field, asdict
from typing import Any, Callable, Dict, List, Optional, Tuple

from openai import OpenAI, OpenAIError

from config import Settings, get_settings

from .errors import ConfigurationError
from .plan_templates import BLOG_PLATFORM_PLAN, GENERIC_PLAN, SURF_SHOP_PLAN, TASK_MANAGER_PLAN

logger = logging.getLogger(__name__)

PLAN_SYSTEM_PROMPT = """You are an expert full-stack application architect. Based on the user's request, generate a comprehensive application plan as a single JSON object with exactly this structure:

{
  "name": "Application Name",
  "description": "Brief description of the application and its purpose",
  "type": "Application Type (e.g., E-commerce, Social Platform, Productivity, SaaS, etc.)",
  "features": ["Feature 1", "Feature 2", "Feature 3", ...],
  "technologies": ["React", "TypeScript", "Tailwind CSS", "Express.js", "PostgreSQL"],
  "preview": {
    "title": "Preview Title",
    "description": "Marketing description",
    "sections": ["Section 1", "Section 2", "Section 3", ...]
  }
}

Include 8-12 key features that would make this a production-ready, fully functional application. Respond with only valid JSON: no markdown, no commentary."""

PLAN_TEMPERATURE = 0.2
PLAN_TOP_P = 0.9
PLAN_MAX_TOKENS = 2000

_CODE_BLOCK_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")


@dataclass
class PlanPreview:
    title: str
    description: str
    sections: List[str] = field(default_factory=list)


@dataclass
class AppPlan:
    name: str
    description: str
    type: str
    features: List[str]
    technologies: List[str]
    preview: PlanPreview

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Any) -> "AppPlan":
        """Build a plan from parsed JSON; raises ``ValueError`` if a required field is missing."""
        if not isinstance(data, dict):
            raise ValueError("plan must be a JSON object")

        def text(key: str) -> str:
            value = data.get(key)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"plan field '{key}' is missing")
            return value.strip()

        def preview_text(key: str, default: str) -> str:
            value = preview.get(key)
            if value is None or value == "":
                return default
            if not isinstance(value, str):
                raise ValueError(f"plan preview field '{key}' must be a string")
            return value.strip() or default

        def items(key: str, source: Dict[str, Any] = data, required: bool = True) -> List[str]:
            value = source.get(key)
            if not isinstance(value, list):
                if required:
                    raise ValueError(f"plan field '{key}' is missing")
                return []
            if any(not isinstance(v, str) for v in value):
                raise ValueError(f"plan field '{key}' must be a list of strings")
            cleaned = [v.strip() for v in value if v.strip()]
            if required and not cleaned:
                raise ValueError(f"plan field '{key}' is empty")
            return cleaned

        name = text("name")
        description = text("description")
        kind = text("type")
        features = items("features")
        technologies = items("technologies")
        preview = data.get("preview")
        if not isinstance(preview, dict) or not preview:
            raise ValueError("plan field 'preview' is missing")
        return cls(
            name=name,
            description=description,
            type=kind,
            features=features,
            technologies=technologies,
            preview=PlanPreview(
                title=preview_text("title", name),
                description=preview_text("description", description),
                sections=items("sections", preview, required=False),
            ),
        )


def keyword_match(*keywords: str) -> Callable[[str], bool]:
    lowered = tuple(k.lower() for k in keywords)

    def predicate(prompt: str) -> bool:
        text = (prompt or "").lower()
        return any(k in text for k in lowered)

    return predicate


# Order matters: the first matching bucket wins.
FALLBACK_BUCKETS: List[Tuple[Callable[[str], bool], Dict[str, Any]]] = [
    (keyword_match("surf", "surfboard"), SURF_SHOP_PLAN),
    (keyword_match("todo", "task"), TASK_MANAGER_PLAN),
    (keyword_match("blog", "content"), BLOG_PLATFORM_PLAN),
]


def fallback_plan(prompt: str) -> AppPlan:
    template = GENERIC_PLAN
    for matches, candidate in FALLBACK_BUCKETS:
        if matches(prompt):
            template = candidate
            break
    return AppPlan.from_dict(copy.deepcopy(template))


def extract_json_text(content: str) -> str:
    """Strip markdown fences or surrounding prose from a model reply."""
    text = (content or "").strip()
    match = _CODE_BLOCK_RE.search(text)
    if match:
        return match.group(1).strip()
    first = text.find("{")
    last = text.rfind("}")
    if first != -1 and last > first:
        return text[first:last + 1]
    return text


class PlanGenerator:
    """Turns a free-text idea into an :class:`AppPlan`; always returns a usable plan."""

    def __init__(self, settings: Optional[Settings] = None, api_key: Optional[str] = None):
        self.settings = settings or get_settings()
        self._api_key = api_key if api_key is not None else self.settings.perplexity_api_key
        self._client: Optional[OpenAI] = None
        self._lock = threading.Lock()

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    @property
    def api_key(self) -> Optional[str]:
        return self._api_key

    def reset(self, api_key: Optional[str] = None) -> None:
        with self._lock:
            self._api_key = (api_key or "").strip() or None
            self._client = None

    def _connection(self) -> OpenAI:
        with self._lock:
            if not self._api_key:
                raise ConfigurationError("PERPLEXITY_API_KEY is not configured")
            if self._client is None:
                self._client = OpenAI(
                    api_key=self._api_key,
                    base_url=self.settings.perplexity_base_url,
                    timeout=self.settings.ai_timeout,
                    max_retries=0,
                )
            return self._client

    def _request_plan(self, client: OpenAI, user_prompt: str) -> str:
        resp = client.chat.completions.create(
            model=self.settings.perplexity_model,
            messages=[
                {"role": "system", "content": PLAN_SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": f"Create a comprehensive application plan for: {user_prompt}. Respond with only valid JSON.",
                },
            ],
            temperature=PLAN_TEMPERATURE,
            top_p=PLAN_TOP_P,
            max_tokens=PLAN_MAX_TOKENS,
            stream=False,
        )
        if not resp.choices:
            return ""
        return resp.choices[0].message.content or ""

    def generate(self, user_prompt: str) -> Tuple[AppPlan, Dict[str, Any]]:
        """Return ``(plan, meta)`` where ``meta["source"]`` is ``perplexity`` or ``fallback``."""
        client = self._connection()
        try:
            content = self._request_plan(client, user_prompt)
        except OpenAIError as exc:
            logger.warning("Perplexity plan request failed, using fallback: %s", exc)
            return fallback_plan(user_prompt), {"source": "fallback", "error": str(exc)}

        if not content.strip():
            logger.warning("Perplexity returned no content, using fallback")
            return fallback_plan(user_prompt), {"source": "fallback", "error": "empty response"}

        try:
            plan = AppPlan.from_dict(json.loads(extract_json_text(content)))
        except (ValueError, RecursionError) as exc:
            logger.warning("Perplexity returned an unusable plan, using fallback: %s", exc)
            logger.debug("Raw plan content: %s", content)
            return fallback_plan(user_prompt), {"source": "fallback", "error": str(exc)}

        logger.info("generated plan %r from Perplexity", plan.name)
        return plan, {"source": "perplexity"}

    def generate_plan(self, user_prompt: str) -> AppPlan:
        plan, _meta = self.generate(user_prompt)
        return plan


__all__ = [
    "AppPlan",
    "PlanPreview",
    "PlanGenerator",
    "FALLBACK_BUCKETS",
    "fallback_plan",
    "extract_json_text",
    "keyword_match",
]
