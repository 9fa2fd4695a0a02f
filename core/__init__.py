"""Expose core execution and AI helpers."""
from .ai import AssistanceRequest, AssistanceResponse, AssistantClient
from .errors import (
    CodeIDEError,
    ConfigurationError,
    ProviderError,
    ProviderResponseError,
    ProviderTransportError,
    SandboxRuntimeError,
    ValidationError,
)
from .planner import AppPlan, PlanGenerator, fallback_plan
from .sandbox import ExecutionResult, JavaScriptSandbox, SandboxResult, execute, run_program

__all__ = [
    "AssistanceRequest",
    "AssistanceResponse",
    "AssistantClient",
    "AppPlan",
    "PlanGenerator",
    "fallback_plan",
    "ExecutionResult",
    "JavaScriptSandbox",
    "SandboxResult",
    "execute",
    "run_program",
    "CodeIDEError",
    "ConfigurationError",
    "ProviderError",
    "ProviderResponseError",
    "ProviderTransportError",
    "SandboxRuntimeError",
    "ValidationError",
]
