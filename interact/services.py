"""Request-scoped workflows shared by the HTTP routes and the socket events."""
from __future__ import annotations

import asyncio
import logging
import threading
import time
from typing import Dict, Optional, Tuple

from core.ai import AssistanceRequest, AssistanceResponse, AssistantClient
from core.sandbox import ExecutionResult, run_program
from data.database import append_ai_messages, create_code_execution, update_code_execution

logger = logging.getLogger(__name__)


async def run_and_record(
    project_id: int,
    code: str,
    language: str,
    cancel: Optional[threading.Event] = None,
) -> Tuple[Dict, ExecutionResult]:
    """Run a program and keep its outcome as a code execution row (running -> completed/error).

    Setting ``cancel`` kills the child process; the row is then stored as ``error``.
    """
    record = await create_code_execution(project_id, code, language, status="running")
    result = await asyncio.to_thread(run_program, code, language, cancel)
    record = await update_code_execution(
        record["id"],
        output=result.output,
        error=result.error,
        status=result.record_status,
    )
    logger.info(
        "execution %s for project %s finished: %s in %sms",
        record["id"], project_id, result.status, result.execution_time,
    )
    return record, result


async def assist_and_record(
    assistant: AssistantClient,
    request: AssistanceRequest,
    project_id: Optional[int] = None,
) -> AssistanceResponse:
    """Ask the assistant and, for a project, append the exchange to its conversation."""
    response = await asyncio.to_thread(assistant.get_assistance, request)
    if project_id is not None:
        now = int(time.time() * 1000)
        await append_ai_messages(
            project_id,
            [
                {"role": "user", "content": request.prompt, "timestamp": now},
                {
                    "role": "assistant",
                    "content": f"{response.suggestion}\n\n{response.explanation}",
                    "timestamp": int(time.time() * 1000),
                },
            ],
        )
    return response


__all__ = ["run_and_record", "assist_and_record"]
