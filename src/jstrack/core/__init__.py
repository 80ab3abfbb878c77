# src/jstrack/core/__init__.py
"""
Core modules for jstrack.
"""

from jstrack.core.models import Application, Article, Section, UsageRecord, ApplyResult, Failure
from jstrack.core.normalizer import normalize
from jstrack.core.storage import DocumentStore
from jstrack.core.progress import calculate_article_progress, update_article_progress
from jstrack.core.registry import ApplicationRegistry
from jstrack.core.search import search, relevance
from jstrack.core.planner import plan_for

__all__ = [
    'Application',
    'Article',
    'Section',
    'UsageRecord',
    'ApplyResult',
    'Failure',
    'normalize',
    'DocumentStore',
    'calculate_article_progress',
    'update_article_progress',
    'ApplicationRegistry',
    'search',
    'relevance',
    'plan_for'
]
