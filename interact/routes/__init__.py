"""API blueprint and route registrations."""
from __future__ import annotations

from flask import Blueprint

api_bp = Blueprint("api", __name__, url_prefix="/api")

# Import modules to register routes on the blueprint
from . import ai  # noqa: E402,F401
from . import code  # noqa: E402,F401
from . import files  # noqa: E402,F401
from . import projects  # noqa: E402,F401
from . import settings  # noqa: E402,F401

__all__ = ["api_bp"]
