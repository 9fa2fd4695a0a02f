"""AI integration endpoints."""
from __future__ import annotations

import asyncio
import logging

from flask import jsonify

from core.ai import AssistanceRequest
from data import get_ai_conversation, get_project
from interact.services import assist_and_record
from interact.utils import get_assistant, get_planner, json_body, optional_int, optional_str, pick, require_str

from . import api_bp

logger = logging.getLogger(__name__)


@api_bp.post("/ai/assist")
async def api_ai_assist():
    data = json_body()
    assist_request = AssistanceRequest(
        code=require_str(data, "code", allow_empty=True),
        language=require_str(data, "language"),
        prompt=require_str(data, "prompt"),
        context=optional_str(data, "context"),
    )
    project_id = optional_int(pick(data, "projectId", "project_id"), "projectId")
    if project_id is not None and not await get_project(project_id):
        return jsonify({"error": "Project not found"}), 404
    response = await assist_and_record(get_assistant(), assist_request, project_id)
    return jsonify(response.to_dict())


@api_bp.post("/ai/generate-code")
def api_ai_generate_code():
    data = json_body()
    prompt = require_str(data, "prompt")
    language = optional_str(data, "language") or "javascript"
    return jsonify({"code": get_assistant().generate_code(prompt, language)})


@api_bp.post("/ai/explain-code")
def api_ai_explain_code():
    data = json_body()
    code = require_str(data, "code", allow_empty=True)
    language = require_str(data, "language")
    return jsonify({"explanation": get_assistant().explain_code(code, language)})


@api_bp.post("/ai/debug-code")
def api_ai_debug_code():
    data = json_body()
    code = require_str(data, "code", allow_empty=True)
    language = require_str(data, "language")
    error = optional_str(data, "error")
    return jsonify(get_assistant().debug_code(code, language, error).to_dict())


@api_bp.post("/ai/generate-plan")
async def api_ai_generate_plan():
    data = json_body()
    prompt = require_str(data, "prompt")
    plan, meta = await asyncio.to_thread(get_planner().generate, prompt)
    logger.info("plan %r served from %s", plan.name, meta["source"])
    return jsonify(plan.to_dict())


@api_bp.get("/projects/<int:project_id>/ai-conversation")
async def api_get_conversation(project_id: int):
    conversation = await get_ai_conversation(project_id)
    return jsonify(conversation or {"messages": []})
