# src/jstrack/core/normalizer.py
"""
Schema normalizer for the knowledge base file.

Two shapes have been written over time:

- grouped: {"<category>": {"title": ..., "articles": [{...}, ...]}, ...}
- flat:    {"<article id>": {...article...}, ...}

normalize() turns either into the canonical Document (article id -> Article)
with every optional field materialized, so nothing downstream checks for
missing keys again.
"""
import copy
import logging
from typing import Any, Dict, List

from jstrack.core.models import Article, Document, DEFAULT_LEVEL

logger = logging.getLogger(__name__)


def is_grouped(raw: Dict[str, Any]) -> bool:
    """The first top-level value decides the shape of the whole document."""
    if not raw:
        return False
    first = next(iter(raw.values()))
    return isinstance(first, dict) and isinstance(first.get('articles'), list)


def _legacy_applications(value: Any) -> List[Dict[str, Any]]:
    """Article-level applications were once stored as {project: [commit, ...]}."""
    if isinstance(value, list):
        return [app for app in value if isinstance(app, dict)]
    if isinstance(value, dict):
        expanded = []
        for project, commits in value.items():
            if isinstance(commits, str):
                commits = [commits]
            elif not isinstance(commits, list):
                logger.warning(f"Skipping legacy applications of {project!r}: expected a list of commits")
                continue
            for commit in commits:
                expanded.append({'project': str(project), 'commit': str(commit), 'date': None})
        return expanded
    return []


def _stringify(entry: Dict[str, Any], keys) -> None:
    """Text fields must be strings; numbers and the like are converted."""
    for key in keys:
        value = entry.get(key)
        if value is not None and not isinstance(value, str):
            entry[key] = str(value)


def _materialize(data: Dict[str, Any]) -> Dict[str, Any]:
    article = copy.deepcopy(data)
    _stringify(article, ('title', 'url', 'level', 'description', 'category'))

    if not article.get('level'):
        article['level'] = DEFAULT_LEVEL

    try:
        article['progress'] = int(article.get('progress') or 0)
    except (TypeError, ValueError):
        logger.warning(f"Article {article.get('id')}: bad progress {article.get('progress')!r}, using 0")
        article['progress'] = 0

    sections = article.get('sections')
    if not isinstance(sections, list):
        sections = []
    for section in sections:
        if isinstance(section, dict):
            _stringify(section, ('id', 'title', 'url'))
            section['applications'] = _legacy_applications(section.get('applications'))
    article['sections'] = [s for s in sections if isinstance(s, dict)]

    article['applications'] = _legacy_applications(article.get('applications'))
    return article


def _add(document: Document, data: Dict[str, Any]) -> None:
    article_id = data['id']
    if article_id in document:
        logger.warning(f"Duplicate article id {article_id!r}, keeping the first occurrence")
        return
    document[article_id] = Article.from_dict(_materialize(data))


def normalize(raw: Any) -> Document:
    """
    Produce the canonical document from any previously written shape.

    Args:
        raw: Parsed JSON of the knowledge base file

    Returns:
        Mapping of article id to Article, in document order
    """
    document: Document = {}

    if not isinstance(raw, dict):
        logger.warning(f"Knowledge base root is {type(raw).__name__}, expected an object")
        return document

    if is_grouped(raw):
        logger.debug("Normalizing grouped knowledge base")
        for group_key, group in raw.items():
            if not isinstance(group, dict) or not isinstance(group.get('articles'), list):
                logger.warning(f"Skipping group {group_key!r}: no articles list")
                continue
            for entry in group['articles']:
                if not isinstance(entry, dict) or not entry.get('id'):
                    logger.warning(f"Skipping article without id in group {group_key!r}")
                    continue
                entry = dict(entry)
                entry['id'] = str(entry['id'])
                if 'category' not in entry and group.get('title'):
                    entry['category'] = group['title']
                _add(document, entry)
        return document

    for key, entry in raw.items():
        if not isinstance(entry, dict):
            logger.warning(f"Skipping {key!r}: expected an article object")
            continue
        entry = dict(entry)
        entry['id'] = str(entry.get('id') or key)
        _add(document, entry)

    return document
