"""WebSocket (Socket.IO) handlers for real-time execution and assistant chat."""
from __future__ import annotations

import asyncio
import logging
import threading
from collections import defaultdict
from typing import Any, Dict, List, Optional, Tuple

from flask import current_app, request
from flask_socketio import SocketIO, emit

from core.ai import AssistanceRequest
from core.errors import CodeIDEError
from core.sandbox import ExecutionResult, run_program
from interact.services import assist_and_record, run_and_record

logger = logging.getLogger(__name__)

socketio = SocketIO(async_mode="threading", cors_allowed_origins="*")

# sid -> [(run id, cancel token)] for executions still in flight
_running: Dict[str, List[Tuple[Any, threading.Event]]] = defaultdict(list)
_lock = threading.Lock()
_ANY = object()


def init_socketio(app) -> None:
    """Attach Socket.IO to the Flask app."""
    socketio.init_app(app)


def _payload_id(payload: Any) -> Any:
    return payload.get("id") if isinstance(payload, dict) else None


def _emit_error(payload: Any, message: str) -> None:
    emit("error", {"id": _payload_id(payload), "message": message})


def track_run(sid: str, run_id: Any) -> threading.Event:
    cancel = threading.Event()
    with _lock:
        _running[sid].append((run_id, cancel))
    return cancel


def untrack_run(sid: str, cancel: threading.Event) -> None:
    with _lock:
        runs = [entry for entry in _running.get(sid, []) if entry[1] is not cancel]
        if runs:
            _running[sid] = runs
        else:
            _running.pop(sid, None)


def cancel_runs(sid: str, run_id: Any = _ANY) -> int:
    """Set the cancel token of in-flight runs for ``sid`` (all of them, or those matching ``run_id``)."""
    with _lock:
        targets = [cancel for rid, cancel in _running.get(sid, []) if run_id is _ANY or rid == run_id]
    for cancel in targets:
        cancel.set()
    return len(targets)


@socketio.on("connect")
def handle_connect():
    logger.info("socket client connected: %s", request.sid)
    emit("connected", {"ok": True})


@socketio.on("disconnect")
def handle_disconnect(reason=None):
    cancelled = cancel_runs(request.sid)
    logger.info("socket client disconnected: %s (cancelled %s runs)", request.sid, cancelled)


@socketio.on("cancel_execution")
def handle_cancel_execution(payload: Optional[Dict[str, Any]] = None):
    run_id = _payload_id(payload)
    cancelled = cancel_runs(request.sid, run_id)
    emit("execution_cancelled", {"id": run_id, "cancelled": cancelled > 0})


@socketio.on("execute_code")
def handle_execute_code(payload: Dict[str, Any]):
    if not isinstance(payload, dict) or not isinstance(payload.get("code"), str):
        _emit_error(payload, "Missing code in payload.")
        return
    code = payload["code"]
    language = str(payload.get("language") or "javascript").strip().lower()
    project_id = payload.get("projectId")
    sid = request.sid
    cancel = track_run(sid, payload.get("id"))
    try:
        if project_id is None:
            result: ExecutionResult = run_program(code, language, cancel)
            execution = None
        else:
            execution, result = asyncio.run(run_and_record(int(project_id), code, language, cancel))
    except (CodeIDEError, TypeError, ValueError) as exc:
        logger.warning("socket execute_code failed: %s", exc)
        _emit_error(payload, str(exc))
        return
    finally:
        untrack_run(sid, cancel)
    emit("execution_result", {"id": payload.get("id"), "execution": execution, "result": result.to_dict()})


@socketio.on("ai_message")
def handle_ai_message(payload: Dict[str, Any]):
    if not isinstance(payload, dict) or not isinstance(payload.get("prompt"), str) or not payload["prompt"].strip():
        _emit_error(payload, "Missing prompt in payload.")
        return
    assist_request = AssistanceRequest(
        code=str(payload.get("code") or ""),
        language=str(payload.get("language") or "javascript"),
        prompt=payload["prompt"],
        context=payload.get("context") if isinstance(payload.get("context"), str) else None,
    )
    assistant = current_app.extensions["codeide.assistant"]
    project_id = payload.get("projectId")
    try:
        response = asyncio.run(
            assist_and_record(assistant, assist_request, int(project_id) if project_id is not None else None)
        )
    except (CodeIDEError, TypeError, ValueError) as exc:
        logger.warning("socket ai_message failed: %s", exc)
        _emit_error(payload, str(exc))
        return
    emit("ai_response", {"id": payload.get("id"), "response": response.to_dict()})


__all__ = ["socketio", "init_socketio", "track_run", "untrack_run", "cancel_runs"]
