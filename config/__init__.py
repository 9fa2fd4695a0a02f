"""Config package exports."""
from .log import configure_logging
from .settings import Settings, get_settings, BASE_DIR

__all__ = ["Settings", "get_settings", "BASE_DIR", "configure_logging"]
