"""Project CRUD endpoints."""
from __future__ import annotations

from flask import jsonify

from data import create_project, delete_project, get_project, list_projects, update_project
from interact.utils import json_body, optional_str, require_str

from . import api_bp


@api_bp.get("/projects")
async def api_list_projects():
    return jsonify(await list_projects())


@api_bp.post("/projects")
async def api_create_project():
    data = json_body()
    project = await create_project(require_str(data, "name"), optional_str(data, "description"))
    return jsonify(project), 201


@api_bp.get("/projects/<int:project_id>")
async def api_get_project(project_id: int):
    project = await get_project(project_id)
    if not project:
        return jsonify({"error": "Project not found"}), 404
    return jsonify(project)


@api_bp.put("/projects/<int:project_id>")
async def api_update_project(project_id: int):
    data = json_body()
    project = await update_project(
        project_id,
        name=optional_str(data, "name"),
        description=optional_str(data, "description"),
    )
    if not project:
        return jsonify({"error": "Project not found"}), 404
    return jsonify(project)


@api_bp.delete("/projects/<int:project_id>")
async def api_delete_project(project_id: int):
    ok, err = await delete_project(project_id)
    status = 200 if ok else 404
    return jsonify({"success": ok, "error": err}), status
