# src/jstrack/core/models.py
"""
Data models for the knowledge base.

Articles own their sections, sections own their applications. Everything is
serialized with to_dict()/from_dict(); keys the models do not know about are
carried in `extra` so a load/save cycle keeps the curated catalogue intact.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Any


DEFAULT_LEVEL = "concept"


class Failure(str, Enum):
    """Why a registry operation did not go through."""
    ARTICLE_NOT_FOUND = "article_not_found"
    SECTION_NOT_FOUND = "section_not_found"
    DUPLICATE_APPLICATION = "duplicate_application"


def utc_now_iso() -> str:
    """Current time in the format the data file uses (ISO 8601, UTC, 'Z')."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def parse_date(value: Optional[str]) -> Optional[datetime]:
    """Parse a stored application date; None for missing or malformed values."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# ============================================================================
# DOCUMENT MODELS
# ============================================================================

@dataclass
class Application:
    """One claim: a section was implemented in `project` at `commit`."""
    project: str
    commit: str
    date: Optional[str] = None
    commit_url: Optional[str] = None

    def matches(self, project: str, commit: str) -> bool:
        return self.project == project and self.commit == commit

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'project': self.project,
            'commit': self.commit,
            'date': self.date,
        }
        if self.commit_url:
            data['commitUrl'] = self.commit_url
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Application':
        return cls(
            project=str(data.get('project', '')),
            commit=str(data.get('commit', '')),
            date=data.get('date'),
            commit_url=data.get('commitUrl') or data.get('commit_url')
        )


@dataclass
class Section:
    """A subtopic of an article that can be applied on its own."""
    id: str
    title: str = ""
    url: str = ""
    applications: List[Application] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)

    _KNOWN = ('id', 'title', 'url', 'applications')

    @property
    def is_applied(self) -> bool:
        return bool(self.applications)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'title': self.title,
            'url': self.url,
        }
        data.update(self.extra)
        data['applications'] = [app.to_dict() for app in self.applications]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Section':
        return cls(
            id=str(data.get('id', '')),
            title=str(data.get('title') or ""),
            url=str(data.get('url') or ""),
            applications=[
                Application.from_dict(app) for app in data.get('applications') or []
                if isinstance(app, dict)
            ],
            extra={k: v for k, v in data.items() if k not in cls._KNOWN}
        )


@dataclass
class Article:
    """A catalogue entry; the unit progress is reported for."""
    id: str
    title: str = ""
    url: str = ""
    level: str = DEFAULT_LEVEL
    progress: int = 0
    sections: List[Section] = field(default_factory=list)
    applications: List[Application] = field(default_factory=list)  # legacy, article-level
    extra: Dict[str, Any] = field(default_factory=dict)

    _KNOWN = ('id', 'title', 'url', 'level', 'progress', 'sections', 'applications')

    @property
    def description(self) -> str:
        return str(self.extra.get('description') or "")

    @property
    def category(self) -> Optional[str]:
        return self.extra.get('category')

    @property
    def applications_count(self) -> int:
        """Direct applications plus the applications of every section."""
        return len(self.applications) + sum(len(s.applications) for s in self.sections)

    def find_section(self, section_id: str) -> Optional[Section]:
        for section in self.sections:
            if section.id == section_id:
                return section
        return None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'title': self.title,
            'url': self.url,
            'level': self.level,
            'progress': self.progress,
        }
        data.update(self.extra)
        data['sections'] = [section.to_dict() for section in self.sections]
        data['applications'] = [app.to_dict() for app in self.applications]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Article':
        """Create from an already-normalized dictionary."""
        return cls(
            id=str(data['id']),
            title=str(data.get('title') or ""),
            url=str(data.get('url') or ""),
            level=str(data.get('level') or DEFAULT_LEVEL),
            progress=int(data.get('progress') or 0),
            sections=[Section.from_dict(s) for s in data.get('sections') or [] if isinstance(s, dict)],
            applications=[
                Application.from_dict(app) for app in data.get('applications') or []
                if isinstance(app, dict)
            ],
            extra={k: v for k, v in data.items() if k not in cls._KNOWN}
        )


# Canonical in-memory document: article id -> Article, in file order.
Document = Dict[str, Article]


def document_to_dict(document: Document) -> Dict[str, Any]:
    return {article_id: article.to_dict() for article_id, article in document.items()}


# ============================================================================
# RESULT MODELS
# ============================================================================

@dataclass
class UsageRecord:
    """Where an application lives, flattened for listing and removal."""
    article_id: str
    article_title: str
    project: str
    commit: str
    section_id: Optional[str] = None
    section_title: Optional[str] = None
    section_url: Optional[str] = None
    date: Optional[str] = None
    commit_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'articleId': self.article_id,
            'articleTitle': self.article_title,
            'sectionId': self.section_id,
            'sectionTitle': self.section_title,
            'sectionUrl': self.section_url,
            'project': self.project,
            'commit': self.commit,
            'date': self.date,
            'commitUrl': self.commit_url,
        }


@dataclass
class ApplyResult:
    """Outcome of linking a commit to a section."""
    success: bool
    article: Optional[Article] = None
    section: Optional[Section] = None
    application: Optional[Application] = None
    error: Optional[Failure] = None
    progress: Optional[int] = None

    @property
    def is_not_found(self) -> bool:
        return self.error in (Failure.ARTICLE_NOT_FOUND, Failure.SECTION_NOT_FOUND)


@dataclass
class ProgressUpdate:
    """Before/after progress of one article."""
    success: bool
    article_id: str
    before: int = 0
    after: int = 0

    @property
    def progress(self) -> int:
        return self.after

    @property
    def changed(self) -> bool:
        return self.before != self.after
