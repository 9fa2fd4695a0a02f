"""SQLite access helpers for the CodeIDE backend (Async)."""
from __future__ import annotations

import json
import time
from contextlib import asynccontextmanager
from pathlib import PurePosixPath
from typing import Any, Dict, List, Optional, Tuple

import aiosqlite

from config import get_settings
from core.errors import ValidationError

from .seed import DEFAULT_FILES, DEFAULT_PROJECT

__all__ = [
    "init_db",
    "get_conn",
    "create_project",
    "get_project",
    "list_projects",
    "update_project",
    "delete_project",
    "create_file",
    "get_file",
    "get_file_by_path",
    "list_files",
    "update_file",
    "delete_file",
    "guess_language",
    "get_ai_conversation",
    "create_ai_conversation",
    "update_ai_conversation",
    "append_ai_messages",
    "create_code_execution",
    "get_code_execution",
    "update_code_execution",
    "list_code_executions",
]

EXECUTION_STATUSES = {"running", "completed", "error"}
MESSAGE_ROLES = {"user", "assistant"}

_EXTENSION_LANGUAGES = {
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".jsx": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".py": "python",
    ".html": "html",
    ".htm": "html",
    ".css": "css",
    ".json": "json",
    ".md": "markdown",
    ".sql": "sql",
    ".sh": "shell",
    ".yml": "yaml",
    ".yaml": "yaml",
    ".txt": "plaintext",
}

_FILE_FIELDS = {"name", "path", "content", "language", "parent_id"}


def guess_language(name: str) -> str:
    return _EXTENSION_LANGUAGES.get(PurePosixPath(name or "").suffix.lower(), "javascript")


def _now_ms() -> int:
    return int(time.time() * 1000)


@asynccontextmanager
async def get_conn():
    settings = get_settings()
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)
    async with aiosqlite.connect(settings.db_path_str) as db:
        db.row_factory = aiosqlite.Row
        await db.execute("PRAGMA foreign_keys = ON;")
        yield db
        await db.commit()


async def init_db(seed: bool = True) -> bool:
    async with get_conn() as con:
        await con.executescript(
            """
            CREATE TABLE IF NOT EXISTS projects(
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                description TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );

            CREATE TABLE IF NOT EXISTS files(
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                project_id INTEGER NOT NULL,
                name TEXT NOT NULL,
                path TEXT NOT NULL,
                content TEXT NOT NULL DEFAULT '',
                language TEXT,
                is_directory INTEGER NOT NULL DEFAULT 0,
                parent_id INTEGER,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                UNIQUE(project_id, path),
                FOREIGN KEY(project_id) REFERENCES projects(id) ON DELETE CASCADE,
                FOREIGN KEY(parent_id) REFERENCES files(id) ON DELETE CASCADE
            );

            CREATE TABLE IF NOT EXISTS ai_conversations(
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                project_id INTEGER NOT NULL UNIQUE,
                messages TEXT NOT NULL DEFAULT '[]',
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY(project_id) REFERENCES projects(id) ON DELETE CASCADE
            );

            CREATE TABLE IF NOT EXISTS code_executions(
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                project_id INTEGER NOT NULL,
                code TEXT NOT NULL,
                language TEXT NOT NULL,
                output TEXT,
                error TEXT,
                status TEXT NOT NULL CHECK (status IN ('running', 'completed', 'error')),
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY(project_id) REFERENCES projects(id) ON DELETE CASCADE
            );

            CREATE INDEX IF NOT EXISTS idx_files_project ON files(project_id);
            CREATE INDEX IF NOT EXISTS idx_code_executions_project ON code_executions(project_id);
            """
        )
    if seed:
        await _seed_default_project()
    return True


async def _seed_default_project() -> None:
    async with get_conn() as con:
        async with con.execute("SELECT COUNT(*) AS n FROM projects") as cursor:
            row = await cursor.fetchone()
            if row["n"]:
                return
    project = await create_project(DEFAULT_PROJECT["name"], DEFAULT_PROJECT["description"])
    for entry in DEFAULT_FILES:
        await create_file(project["id"], entry["name"], content=entry["content"], language=entry["language"])


# ----- projects -----

async def create_project(name: str, description: Optional[str] = None) -> Dict:
    name = (name or "").strip()
    if not name:
        raise ValidationError("project name is required")
    async with get_conn() as con:
        cursor = await con.execute(
            "INSERT INTO projects(name, description) VALUES (?,?)",
            (name, description or None),
        )
        project_id = cursor.lastrowid
    return await get_project(project_id)


async def get_project(project_id: int) -> Optional[Dict]:
    async with get_conn() as con:
        async with con.execute("SELECT * FROM projects WHERE id=?", (project_id,)) as cursor:
            row = await cursor.fetchone()
            return dict(row) if row else None


async def list_projects() -> List[Dict]:
    async with get_conn() as con:
        async with con.execute("SELECT * FROM projects ORDER BY id") as cursor:
            rows = await cursor.fetchall()
            return [dict(row) for row in rows]


async def update_project(
    project_id: int,
    *,
    name: Optional[str] = None,
    description: Optional[str] = None,
) -> Optional[Dict]:
    current = await get_project(project_id)
    if not current:
        return None
    if name is not None:
        name = name.strip()
        if not name:
            raise ValidationError("project name is required")
        current["name"] = name
    if description is not None:
        current["description"] = description or None
    async with get_conn() as con:
        await con.execute(
            "UPDATE projects SET name=?, description=?, updated_at=CURRENT_TIMESTAMP WHERE id=?",
            (current["name"], current["description"], project_id),
        )
    return await get_project(project_id)


async def delete_project(project_id: int) -> Tuple[bool, Optional[str]]:
    async with get_conn() as con:
        cursor = await con.execute("DELETE FROM projects WHERE id=?", (project_id,))
        if cursor.rowcount == 0:
            return False, "Project not found"
    return True, None


# ----- files -----

def _file_row(row) -> Dict:
    item = dict(row)
    item["is_directory"] = bool(item.get("is_directory"))
    return item


def _validate_name(name: str) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError("file name is required")
    if "/" in name or name in (".", ".."):
        raise ValidationError(f"invalid file name: {name}")
    return name


def _normalize_path(path: str) -> str:
    parts = [p for p in (path or "").strip().split("/") if p]
    if not parts or any(p in (".", "..") for p in parts):
        raise ValidationError(f"invalid file path: {path}")
    return "/" + "/".join(parts)


def _child_path(parent: Optional[Dict], name: str) -> str:
    if parent is None:
        return "/" + name
    return parent["path"].rstrip("/") + "/" + name


async def _fetch_file(con: aiosqlite.Connection, file_id: int) -> Optional[Dict]:
    async with con.execute("SELECT * FROM files WHERE id=?", (file_id,)) as cursor:
        row = await cursor.fetchone()
        return _file_row(row) if row else None


async def _resolve_parent(
    con: aiosqlite.Connection,
    project_id: int,
    parent_id: Any,
    moving_id: Optional[int] = None,
) -> Optional[Dict]:
    """Load and check a parent directory; rejects moves that would create a cycle."""
    if parent_id is None:
        return None
    try:
        pid = int(parent_id)
    except (TypeError, ValueError):
        raise ValidationError(f"invalid parent id: {parent_id}")
    parent = await _fetch_file(con, pid)
    if not parent or parent["project_id"] != project_id:
        raise ValidationError("parent directory not found")
    if not parent["is_directory"]:
        raise ValidationError("parent must be a directory")
    if moving_id is not None:
        seen = set()
        cursor_row = parent
        while cursor_row is not None:
            if cursor_row["id"] == moving_id:
                raise ValidationError("cannot move a directory into itself")
            if cursor_row["id"] in seen:
                raise ValidationError("file tree contains a cycle")
            seen.add(cursor_row["id"])
            next_id = cursor_row.get("parent_id")
            cursor_row = await _fetch_file(con, next_id) if next_id is not None else None
    return parent


async def create_file(
    project_id: int,
    name: str,
    *,
    path: Optional[str] = None,
    content: Optional[str] = None,
    language: Optional[str] = None,
    is_directory: bool = False,
    parent_id: Optional[int] = None,
) -> Dict:
    name = _validate_name(name)
    is_directory = bool(is_directory)
    async with get_conn() as con:
        async with con.execute("SELECT id FROM projects WHERE id=?", (project_id,)) as cursor:
            if not await cursor.fetchone():
                raise ValidationError("project not found")
        parent = await _resolve_parent(con, project_id, parent_id)
        file_path = _normalize_path(path) if path else _child_path(parent, name)
        if is_directory:
            content, language = "", None
        else:
            content = content or ""
            language = (language or "").strip() or guess_language(name)
        try:
            cursor = await con.execute(
                """
                INSERT INTO files(project_id, name, path, content, language, is_directory, parent_id)
                VALUES (?,?,?,?,?,?,?)
                """,
                (project_id, name, file_path, content, language, int(is_directory), parent["id"] if parent else None),
            )
        except aiosqlite.IntegrityError:
            raise ValidationError(f"a file already exists at {file_path}")
        file_id = cursor.lastrowid
    return await get_file(file_id)


async def get_file(file_id: int) -> Optional[Dict]:
    async with get_conn() as con:
        return await _fetch_file(con, file_id)


async def get_file_by_path(project_id: int, path: str) -> Optional[Dict]:
    async with get_conn() as con:
        async with con.execute(
            "SELECT * FROM files WHERE project_id=? AND path=?",
            (project_id, _normalize_path(path)),
        ) as cursor:
            row = await cursor.fetchone()
            return _file_row(row) if row else None


async def list_files(project_id: int) -> List[Dict]:
    async with get_conn() as con:
        async with con.execute(
            "SELECT * FROM files WHERE project_id=? ORDER BY is_directory DESC, path",
            (project_id,),
        ) as cursor:
            rows = await cursor.fetchall()
            return [_file_row(row) for row in rows]


async def update_file(file_id: int, **changes: Any) -> Optional[Dict]:
    unknown = set(changes) - _FILE_FIELDS
    if unknown:
        raise ValidationError(f"unsupported file fields: {', '.join(sorted(unknown))}")
    async with get_conn() as con:
        current = await _fetch_file(con, file_id)
        if not current:
            return None
        project_id = current["project_id"]
        updated = dict(current)

        if "name" in changes and changes["name"] is not None:
            updated["name"] = _validate_name(changes["name"])
        moved = "parent_id" in changes and changes["parent_id"] != current["parent_id"]
        if moved:
            parent = await _resolve_parent(con, project_id, changes["parent_id"], moving_id=file_id)
            updated["parent_id"] = parent["id"] if parent else None
        else:
            parent = await _fetch_file(con, current["parent_id"]) if current["parent_id"] is not None else None

        if changes.get("path"):
            updated["path"] = _normalize_path(changes["path"])
        elif moved or updated["name"] != current["name"]:
            updated["path"] = _child_path(parent, updated["name"])

        if current["is_directory"]:
            updated["content"], updated["language"] = "", None
        else:
            if changes.get("content") is not None:
                updated["content"] = str(changes["content"])
            if changes.get("language"):
                updated["language"] = str(changes["language"]).strip()

        try:
            await con.execute(
                """
                UPDATE files SET name=?, path=?, content=?, language=?, parent_id=?, updated_at=CURRENT_TIMESTAMP
                WHERE id=?
                """,
                (
                    updated["name"],
                    updated["path"],
                    updated["content"],
                    updated["language"],
                    updated["parent_id"],
                    file_id,
                ),
            )
            if current["is_directory"] and updated["path"] != current["path"]:
                old_prefix = current["path"].rstrip("/") + "/"
                new_prefix = updated["path"].rstrip("/") + "/"
                await con.execute(
                    """
                    UPDATE files SET path = ? || substr(path, ?), updated_at=CURRENT_TIMESTAMP
                    WHERE project_id=? AND substr(path, 1, ?) = ?
                    """,
                    (new_prefix, len(old_prefix) + 1, project_id, len(old_prefix), old_prefix),
                )
        except aiosqlite.IntegrityError:
            raise ValidationError(f"a file already exists at {updated['path']}")
    return await get_file(file_id)


async def delete_file(file_id: int) -> Tuple[bool, Optional[str]]:
    async with get_conn() as con:
        cursor = await con.execute("DELETE FROM files WHERE id=?", (file_id,))
        if cursor.rowcount == 0:
            return False, "File not found"
    return True, None


# ----- AI conversations -----

def _conversation_row(row) -> Dict:
    item = dict(row)
    try:
        item["messages"] = json.loads(item.get("messages") or "[]")
    except json.JSONDecodeError:
        item["messages"] = []
    return item


def _clean_messages(messages: List[Dict]) -> List[Dict]:
    cleaned = []
    for msg in messages or []:
        if not isinstance(msg, dict):
            raise ValidationError("conversation messages must be objects")
        role = str(msg.get("role") or "").strip().lower()
        if role not in MESSAGE_ROLES:
            raise ValidationError(f"invalid message role: {msg.get('role')}")
        cleaned.append(
            {
                "role": role,
                "content": str(msg.get("content") or ""),
                "timestamp": int(msg.get("timestamp") or _now_ms()),
            }
        )
    return cleaned


async def get_ai_conversation(project_id: int) -> Optional[Dict]:
    async with get_conn() as con:
        async with con.execute("SELECT * FROM ai_conversations WHERE project_id=?", (project_id,)) as cursor:
            row = await cursor.fetchone()
            return _conversation_row(row) if row else None


async def create_ai_conversation(project_id: int, messages: Optional[List[Dict]] = None) -> Dict:
    payload = json.dumps(_clean_messages(messages or []), ensure_ascii=False)
    async with get_conn() as con:
        try:
            await con.execute(
                "INSERT INTO ai_conversations(project_id, messages) VALUES (?,?)",
                (project_id, payload),
            )
        except aiosqlite.IntegrityError:
            raise ValidationError("conversation already exists or project not found")
    return await get_ai_conversation(project_id)


async def update_ai_conversation(conversation_id: int, messages: List[Dict]) -> Optional[Dict]:
    payload = json.dumps(_clean_messages(messages), ensure_ascii=False)
    async with get_conn() as con:
        cursor = await con.execute(
            "UPDATE ai_conversations SET messages=?, updated_at=CURRENT_TIMESTAMP WHERE id=?",
            (payload, conversation_id),
        )
        if cursor.rowcount == 0:
            return None
        async with con.execute("SELECT * FROM ai_conversations WHERE id=?", (conversation_id,)) as cur:
            row = await cur.fetchone()
            return _conversation_row(row) if row else None


async def append_ai_messages(project_id: int, messages: List[Dict]) -> Dict:
    """Append messages to the project's conversation, creating it on first use."""
    conversation = await get_ai_conversation(project_id)
    if conversation is None:
        return await create_ai_conversation(project_id, messages)
    return await update_ai_conversation(conversation["id"], conversation["messages"] + list(messages))


# ----- code executions -----

def _check_status(status: str) -> str:
    if status not in EXECUTION_STATUSES:
        raise ValidationError(f"invalid execution status: {status}")
    return status


async def create_code_execution(
    project_id: int,
    code: str,
    language: str,
    *,
    output: Optional[str] = None,
    error: Optional[str] = None,
    status: str = "running",
) -> Dict:
    async with get_conn() as con:
        try:
            cursor = await con.execute(
                """
                INSERT INTO code_executions(project_id, code, language, output, error, status)
                VALUES (?,?,?,?,?,?)
                """,
                (project_id, code, language, output, error, _check_status(status)),
            )
        except aiosqlite.IntegrityError:
            raise ValidationError("project not found")
        execution_id = cursor.lastrowid
    return await get_code_execution(execution_id)


async def get_code_execution(execution_id: int) -> Optional[Dict]:
    async with get_conn() as con:
        async with con.execute("SELECT * FROM code_executions WHERE id=?", (execution_id,)) as cursor:
            row = await cursor.fetchone()
            return dict(row) if row else None


async def update_code_execution(
    execution_id: int,
    *,
    output: Optional[str] = None,
    error: Optional[str] = None,
    status: Optional[str] = None,
) -> Optional[Dict]:
    current = await get_code_execution(execution_id)
    if not current:
        return None
    if output is not None:
        current["output"] = output
    if error is not None:
        current["error"] = error
    if status is not None:
        current["status"] = _check_status(status)
    async with get_conn() as con:
        await con.execute(
            "UPDATE code_executions SET output=?, error=?, status=? WHERE id=?",
            (current["output"], current["error"], current["status"], execution_id),
        )
    return await get_code_execution(execution_id)


async def list_code_executions(project_id: int, limit: int = 50) -> List[Dict]:
    async with get_conn() as con:
        async with con.execute(
            "SELECT * FROM code_executions WHERE project_id=? ORDER BY id DESC LIMIT ?",
            (project_id, int(limit)),
        ) as cursor:
            rows = await cursor.fetchall()
            return [dict(row) for row in rows]
