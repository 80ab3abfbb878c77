# src/jstrack/core/progress.py
"""
Progress engine.

An article's progress is the share of its sections that have at least one
application. Articles without sections keep whatever progress was stored.
"""
import logging
import math
from typing import List, Optional

from jstrack.core.models import Article, Document, ProgressUpdate

logger = logging.getLogger(__name__)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_article_progress(article: Article) -> int:
    """Completion percentage (0..100) of an article."""
    if not article.sections:
        return article.progress or 0

    applied = sum(1 for section in article.sections if section.applications)
    return _round_half_up(100 * applied / len(article.sections))


def recompute_progress(document: Document, article_id: str) -> ProgressUpdate:
    """Recompute and store one article's progress in memory (no save)."""
    article = document.get(article_id)
    if article is None:
        logger.warning(f"Cannot update progress: article {article_id!r} not found")
        return ProgressUpdate(success=False, article_id=article_id)

    before = article.progress
    article.progress = calculate_article_progress(article)
    if article.progress != before:
        logger.debug(f"Progress of {article_id}: {before}% -> {article.progress}%")

    return ProgressUpdate(success=True, article_id=article_id, before=before, after=article.progress)


def recalculate_all(document: Document) -> List[ProgressUpdate]:
    """Recompute every article; returns only the ones that changed."""
    updates = [recompute_progress(document, article_id) for article_id in list(document)]
    return [update for update in updates if update.changed]


def update_article_progress(store, article_id: str) -> Optional[ProgressUpdate]:
    """
    Recompute one article's progress and persist the document.

    Returns the before/after values, a failed update when the article does
    not exist, or None when the document could not be loaded or saved.
    """
    return store.update(lambda document: recompute_progress(document, article_id))
