# src/jstrack/shared/__init__.py
"""
Shared utilities for jstrack.
"""
from .git_operations import (
    GitRepository,
    run_sync,
    _is_probably_sha
)

__all__ = [
    'GitRepository',
    'run_sync',
    '_is_probably_sha'
]
