# src/jstrack/core/search.py
"""
Search & ranking over articles and their sections.

Matching is case-insensitive substring search. Articles that have been
applied anywhere always rank above ones that have not; relevance only orders
within those two groups.
"""
from dataclasses import dataclass
from typing import Iterable, List

from jstrack.core.models import Article, Section


@dataclass
class SearchResult:
    article: Article
    relevance: int
    applications_count: int

    @property
    def is_applied(self) -> bool:
        return self.applications_count > 0


@dataclass
class SectionMatch:
    article: Article
    section: Section
    relevance: int


def _contains(field_value: str, query: str) -> bool:
    return query in (field_value or "").lower()


def matches(article: Article, query: str) -> bool:
    """Title, id, url or description of the article, or title/id/url of any section."""
    q = query.lower()
    if any(_contains(value, q) for value in (article.title, article.id, article.url, article.description)):
        return True
    return any(
        _contains(value, q)
        for section in article.sections
        for value in (section.title, section.id, section.url)
    )


def relevance(article: Article, query: str) -> int:
    """Additive score: title 3, other article fields 2, section title 2, other section fields 1."""
    q = query.lower()
    score = 0

    if _contains(article.title, q):
        score += 3
    for value in (article.id, article.url, article.description, article.level):
        if _contains(value, q):
            score += 2

    for section in article.sections:
        if _contains(section.title, q):
            score += 2
        for value in (section.id, section.url):
            if _contains(value, q):
                score += 1

    return score


def rank(articles: Iterable[Article], query: str, limit: int = 5) -> List[SearchResult]:
    """Matching articles, applied first, then by relevance, capped at `limit`."""
    results = [
        SearchResult(article, relevance(article, query), article.applications_count)
        for article in articles
        if matches(article, query)
    ]
    # sorted() is stable, ties keep document order
    results = sorted(results, key=lambda r: (not r.is_applied, -r.relevance))
    return results[:max(limit, 0)]


def search(articles: Iterable[Article], query: str, limit: int = 5) -> List[Article]:
    return [result.article for result in rank(articles, query, limit)]


def search_sections(articles: Iterable[Article], query: str, limit: int = 8) -> List[SectionMatch]:
    """Sections only, for picking what to apply: section title 3, section id 2, article title 1."""
    q = query.lower()
    found = []
    for article in articles:
        for section in article.sections:
            score = 0
            if _contains(section.title, q):
                score += 3
            if _contains(section.id, q):
                score += 2
            if _contains(article.title, q):
                score += 1
            if score > 0:
                found.append(SectionMatch(article, section, score))

    found.sort(key=lambda m: -m.relevance)
    return found[:limit]
