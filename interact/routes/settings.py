"""Provider credential settings and health endpoints."""
from __future__ import annotations

from flask import jsonify

from interact.utils import get_assistant, get_planner, json_body, mask_token, pick

from . import api_bp


@api_bp.get("/settings")
def api_get_settings():
    assistant = get_assistant()
    planner = get_planner()
    return jsonify(
        {
            "openai": {"configured": assistant.configured, "key_mask": mask_token(assistant.api_key)},
            "perplexity": {"configured": planner.configured, "key_mask": mask_token(planner.api_key)},
        }
    )


@api_bp.post("/settings")
def api_update_settings():
    data = json_body()
    api_key = pick(data, "openaiApiKey", "openai_api_key")
    if not isinstance(api_key, str) or not api_key.strip():
        return jsonify({"ok": False, "error": "Please enter your OpenAI API key"}), 400
    api_key = api_key.strip()
    if not api_key.startswith("sk-"):
        return jsonify({"ok": False, "error": "OpenAI API keys should start with 'sk-'"}), 400
    get_assistant().reset(api_key)
    return jsonify({"ok": True, "key_mask": mask_token(api_key)})


@api_bp.get("/health")
def api_health():
    return jsonify(
        {
            "status": "OK",
            "openaiConfigured": get_assistant().configured,
            "perplexityConfigured": get_planner().configured,
        }
    )
