# src/jstrack/__init__.py
"""
jstrack - track which learning topics you applied, in which project and commit.
"""

__version__ = "0.1.0"

from jstrack.core.storage import DocumentStore
from jstrack.core.registry import ApplicationRegistry
from jstrack.core.normalizer import normalize

__all__ = [
    'DocumentStore',
    'ApplicationRegistry',
    'normalize'
]
