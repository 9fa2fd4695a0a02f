"""Nested file-explorer view of a project's flat file list."""
from __future__ import annotations

from typing import Dict, List


def build_file_tree(files: List[Dict]) -> List[Dict]:
    """Group rows by ``parent_id`` into nested items; directories first, then by name.

    Rows whose parent is missing from ``files`` are treated as roots.
    """
    nodes: Dict[int, Dict] = {}
    for row in files:
        item = {
            "id": row["id"],
            "name": row["name"],
            "path": row["path"],
            "isDirectory": bool(row.get("is_directory")),
            "parentId": row.get("parent_id"),
        }
        if item["isDirectory"]:
            item["children"] = []
        nodes[row["id"]] = item

    roots: List[Dict] = []
    for item in nodes.values():
        parent = nodes.get(item["parentId"]) if item["parentId"] is not None else None
        if parent is not None and parent["isDirectory"]:
            parent["children"].append(item)
        else:
            roots.append(item)

    def sort(items: List[Dict]) -> List[Dict]:
        items.sort(key=lambda i: (not i["isDirectory"], i["name"].lower()))
        for i in items:
            if i.get("children"):
                sort(i["children"])
        return items

    return sort(roots)


__all__ = ["build_file_tree"]
