# src/jstrack/integrations/__init__.py
"""
Integration modules for jstrack.
"""

from jstrack.integrations.git import DataRepoSync, get_current_project_name

__all__ = [
    'DataRepoSync',
    'get_current_project_name'
]
