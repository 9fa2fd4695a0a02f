"""Public data-layer exports."""
from . import database as _database
from .tree import build_file_tree

__all__ = list(_database.__all__) + ["build_file_tree"]

globals().update({name: getattr(_database, name) for name in _database.__all__})
