"""File explorer endpoints."""
from __future__ import annotations

from flask import jsonify

from data import build_file_tree, create_file, delete_file, get_file, get_project, list_files, update_file
from interact.utils import json_body, optional_bool, optional_int, optional_str, pick, require_str

from . import api_bp


@api_bp.get("/projects/<int:project_id>/files")
async def api_list_files(project_id: int):
    if not await get_project(project_id):
        return jsonify({"error": "Project not found"}), 404
    return jsonify(await list_files(project_id))


@api_bp.get("/projects/<int:project_id>/files/tree")
async def api_file_tree(project_id: int):
    if not await get_project(project_id):
        return jsonify({"error": "Project not found"}), 404
    return jsonify(build_file_tree(await list_files(project_id)))


@api_bp.post("/projects/<int:project_id>/files")
async def api_create_file(project_id: int):
    if not await get_project(project_id):
        return jsonify({"error": "Project not found"}), 404
    data = json_body()
    file = await create_file(
        project_id,
        require_str(data, "name"),
        path=optional_str(data, "path"),
        content=optional_str(data, "content"),
        language=optional_str(data, "language"),
        is_directory=optional_bool(pick(data, "isDirectory", "is_directory"), "isDirectory"),
        parent_id=optional_int(pick(data, "parentId", "parent_id"), "parentId"),
    )
    return jsonify(file), 201


@api_bp.get("/files/<int:file_id>")
async def api_get_file(file_id: int):
    file = await get_file(file_id)
    if not file:
        return jsonify({"error": "File not found"}), 404
    return jsonify(file)


@api_bp.put("/files/<int:file_id>")
async def api_update_file(file_id: int):
    data = json_body()
    changes = {}
    for key in ("name", "path", "content", "language"):
        if key in data:
            changes[key] = optional_str(data, key)
    if "parentId" in data or "parent_id" in data:
        changes["parent_id"] = optional_int(pick(data, "parentId", "parent_id"), "parentId")
    file = await update_file(file_id, **changes)
    if not file:
        return jsonify({"error": "File not found"}), 404
    return jsonify(file)


@api_bp.delete("/files/<int:file_id>")
async def api_delete_file(file_id: int):
    ok, err = await delete_file(file_id)
    status = 200 if ok else 404
    return jsonify({"success": ok, "error": err}), status
