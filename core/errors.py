"""
Exception hierarchy shared by the sandbox, the AI clients and the routes.
"""
from __future__ import annotations

from typing import Optional


class CodeIDEError(Exception):
    """Base exception for backend errors."""


class ConfigurationError(CodeIDEError):
    """Raised when a provider credential or other setting is missing."""


class SandboxRuntimeError(CodeIDEError):
    """Raised inside the sandbox when executed source fails or times out."""


class ProviderError(CodeIDEError):
    """Base exception for AI provider failures."""


class ProviderTransportError(ProviderError):
    """Raised when the request to a provider fails (network, auth, HTTP status)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ProviderResponseError(ProviderError):
    """Raised when a provider answers with content that cannot be parsed."""


class ValidationError(CodeIDEError, ValueError):
    """Raised for malformed caller input."""


__all__ = [
    "CodeIDEError",
    "ConfigurationError",
    "SandboxRuntimeError",
    "ProviderError",
    "ProviderTransportError",
    "ProviderResponseError",
    "ValidationError",
]
