"""Code execution endpoints."""
from __future__ import annotations

from flask import jsonify, request

from data import get_project, list_code_executions
from interact.services import run_and_record
from interact.utils import get_sandbox, json_body, optional_str, require_str

from . import api_bp


@api_bp.post("/code/run")
def api_run_code():
    data = request.get_json(silent=True) or {}
    code = data.get("code") if isinstance(data, dict) else None
    if not isinstance(code, str):
        return jsonify({"success": False, "message": "Missing code in body."}), 400
    output = get_sandbox().execute(code)
    return jsonify({"success": True, "output": output})


@api_bp.get("/projects/<int:project_id>/executions")
async def api_list_executions(project_id: int):
    if not await get_project(project_id):
        return jsonify({"error": "Project not found"}), 404
    limit = request.args.get("limit", default=50, type=int)
    return jsonify(await list_code_executions(project_id, limit=max(1, min(limit, 500))))


@api_bp.post("/projects/<int:project_id>/executions")
async def api_create_execution(project_id: int):
    if not await get_project(project_id):
        return jsonify({"error": "Project not found"}), 404
    data = json_body()
    code = require_str(data, "code", allow_empty=True)
    language = (optional_str(data, "language") or "javascript").strip().lower()
    record, result = await run_and_record(project_id, code, language)
    return jsonify({"execution": record, "result": result.to_dict()})
