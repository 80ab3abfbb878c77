# src/jstrack/core/registry.py
"""
Application registry - which sections were applied where.

All operations work on an in-memory Document and never save; the caller
persists once (through DocumentStore.update or save) after a batch.
Expected failures come back as result values, never exceptions.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Iterator, List, Optional, Set, Tuple

from jstrack.api.client import commit_url
from jstrack.core.models import (
    Application, ApplyResult, Article, Document, Failure, Section, UsageRecord,
    parse_date, utc_now_iso
)
from jstrack.core.progress import recompute_progress

logger = logging.getLogger(__name__)

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class ProjectArticle:
    """An article together with its applications in one project."""
    article: Article
    applications: List[UsageRecord] = field(default_factory=list)

    @property
    def application_count(self) -> int:
        return len(self.applications)


@dataclass
class Statistics:
    total: int = 0
    completed: int = 0
    in_progress: int = 0
    not_started: int = 0
    total_applications: int = 0

    @property
    def overall_progress(self) -> int:
        if not self.total:
            return 0
        return int(self.completed * 100 / self.total + 0.5)


def _usage(article: Article, app: Application, section: Optional[Section] = None) -> UsageRecord:
    return UsageRecord(
        article_id=article.id,
        article_title=article.title,
        project=app.project,
        commit=app.commit,
        section_id=section.id if section else None,
        section_title=section.title if section else None,
        section_url=section.url if section else None,
        date=app.date,
        commit_url=app.commit_url
    )


def sort_by_date(usages: Iterable[UsageRecord]) -> List[UsageRecord]:
    """Newest first; undated records go last in their original order."""
    return sorted(usages, key=lambda u: parse_date(u.date) or _OLDEST, reverse=True)


class ApplicationRegistry:
    """Queries and mutations over the applications in a document."""

    def __init__(self, document: Document, github_user: Optional[str] = None):
        self.document = document
        self.github_user = github_user

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def find_article(self, article_id: str) -> Optional[Article]:
        return self.document.get(article_id)

    def find_section(self, article_id: str, section_id: Optional[str]) -> Optional[Section]:
        article = self.find_article(article_id)
        if article is None or not section_id:
            return None
        return article.find_section(section_id)

    def iter_usages(self, include_legacy: bool = True) -> Iterator[UsageRecord]:
        """Every application in document order, section-level then legacy."""
        for article in self.document.values():
            for section in article.sections:
                for app in section.applications:
                    yield _usage(article, app, section)
            if include_legacy:
                for app in article.applications:
                    yield _usage(article, app)

    def is_already_linked(self, article_id: str, project: str, commit: str,
                          section_id: Optional[str] = None) -> bool:
        """
        Whether (project, commit) is already linked to the article.

        With a section id only that section is checked; without one, every
        section and the article's own legacy applications are.
        """
        article = self.find_article(article_id)
        if article is None:
            return False

        if section_id:
            section = article.find_section(section_id)
            return bool(section) and any(app.matches(project, commit) for app in section.applications)

        if any(app.matches(project, commit) for app in article.applications):
            return True
        return any(
            app.matches(project, commit)
            for section in article.sections
            for app in section.applications
        )

    def find_usages_of_commit(self, commit: str, project: Optional[str] = None) -> List[UsageRecord]:
        """Where `commit` is linked, optionally limited to one project."""
        return [
            usage for usage in self.iter_usages()
            if usage.commit == commit and (not project or usage.project == project)
        ]

    def list_all_applications(self) -> List[UsageRecord]:
        """All section applications, most recent first."""
        return sort_by_date(self.iter_usages(include_legacy=False))

    def find_by_criteria(self, commit: str, article: Optional[str] = None,
                         section: Optional[str] = None) -> List[UsageRecord]:
        """Section applications of `commit`, narrowed by article and section id."""
        found = []
        for candidate in self.document.values():
            if article and candidate.id != article:
                continue
            for sec in candidate.sections:
                if section and sec.id != section:
                    continue
                for app in sec.applications:
                    if app.commit == commit:
                        found.append(_usage(candidate, app, sec))
        return found

    def articles_by_project(self, project: str) -> List[ProjectArticle]:
        """Articles with at least one application in `project`."""
        grouped: List[ProjectArticle] = []
        by_id = {}
        for usage in self.iter_usages():
            if usage.project != project:
                continue
            entry = by_id.get(usage.article_id)
            if entry is None:
                entry = ProjectArticle(article=self.document[usage.article_id])
                by_id[usage.article_id] = entry
                grouped.append(entry)
            entry.applications.append(usage)
        return grouped

    def statistics(self) -> Statistics:
        stats = Statistics(total=len(self.document))
        for article in self.document.values():
            if article.progress >= 100:
                stats.completed += 1
            elif article.progress > 0:
                stats.in_progress += 1
            else:
                stats.not_started += 1
            stats.total_applications += article.applications_count
        return stats

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def apply(self, article_id: str, project: str, commit: str,
              section_id: Optional[str]) -> ApplyResult:
        """Link (project, commit) to a section and refresh the article's progress."""
        article = self.find_article(article_id)
        if article is None:
            logger.info(f"Apply: article {article_id!r} not found")
            return ApplyResult(success=False, error=Failure.ARTICLE_NOT_FOUND)

        section = article.find_section(section_id) if section_id else None
        if section is None:
            logger.info(f"Apply: section {section_id!r} not found in {article_id!r}")
            return ApplyResult(success=False, article=article, error=Failure.SECTION_NOT_FOUND)

        if any(app.matches(project, commit) for app in section.applications):
            logger.info(f"Apply: {project}@{commit} already linked to {article_id}/{section_id}")
            return ApplyResult(success=False, article=article, section=section,
                               error=Failure.DUPLICATE_APPLICATION)

        application = Application(
            project=project,
            commit=commit,
            date=utc_now_iso(),
            commit_url=commit_url(project, commit, self.github_user)
        )
        section.applications.append(application)
        update = recompute_progress(self.document, article_id)

        logger.info(f"Applied {article_id}/{section_id} in {project}@{commit}")
        return ApplyResult(success=True, article=article, section=section,
                           application=application, progress=update.after)

    def unapply(self, article_id: str, section_id: Optional[str], commit: str) -> int:
        """
        Remove every application of `commit` from one section.
        Returns the number of entries removed (0 when nothing matched).

        Matching is by commit alone, so entries for several projects sharing
        the commit go together. Progress is not recomputed here.
        """
        section = self.find_section(article_id, section_id)
        if section is None:
            return 0

        before = len(section.applications)
        section.applications = [app for app in section.applications if app.commit != commit]
        removed = before - len(section.applications)
        if removed:
            logger.info(f"Removed {removed} application(s) of {commit} from {article_id}/{section_id}")
        return removed

    def unapply_many(self, usages: Iterable[UsageRecord]) -> Tuple[int, Set[str]]:
        """
        Remove a batch of usages, then refresh progress of touched articles.

        Returns:
            (number of removed applications, ids of affected articles)
        """
        removed = 0
        affected: Set[str] = set()
        for usage in usages:
            count = self.unapply(usage.article_id, usage.section_id, usage.commit)
            if count:
                removed += count
                affected.add(usage.article_id)

        for article_id in affected:
            recompute_progress(self.document, article_id)

        return removed, affected
