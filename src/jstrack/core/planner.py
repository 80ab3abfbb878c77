# src/jstrack/core/planner.py
"""
Suggestion planner: feature description -> what to learn next.

A static table maps known feature phrases to ordered steps. Each step lists
topic keywords that are matched against not-yet-finished articles. Unknown
features fall back to a flat keyword -> topic lookup.
"""
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple

from jstrack.core.models import Article, Document

logger = logging.getLogger(__name__)

MAX_PER_STEP = 2
MAX_FALLBACK = 3

# phrase -> [(step description, topic keywords)]
FEATURE_PLANS: "OrderedDict[str, List[Tuple[str, List[str]]]]" = OrderedDict([
    ("form validation", [
        ("Listen to form and input events", ["events", "form"]),
        ("Validate values with regular expressions", ["regexp", "string"]),
        ("Show errors by updating the DOM", ["dom", "modifying"]),
    ]),
    ("валидация формы", [
        ("Обработать события формы и полей", ["events", "form"]),
        ("Проверить значения регулярными выражениями", ["regexp", "string"]),
        ("Показать ошибки через DOM", ["dom", "modifying"]),
    ]),
    ("todo", [
        ("Keep the list in an array of objects", ["array", "object"]),
        ("Render items into the DOM", ["dom", "modifying"]),
        ("Handle clicks with event delegation", ["events", "delegation"]),
        ("Persist items in localStorage", ["localstorage", "json"]),
    ]),
    ("modal", [
        ("Create and insert the modal element", ["dom", "modifying"]),
        ("Open and close on click and Escape", ["events", "keyboard"]),
        ("Animate appearance", ["animation", "css"]),
    ]),
    ("slider", [
        ("Position slides with styles and classes", ["styles", "classes"]),
        ("Switch slides on click and swipe", ["events", "pointer"]),
        ("Autoplay with timers", ["timers", "settimeout"]),
    ]),
    ("infinite scroll", [
        ("Track scrolling and element geometry", ["scroll", "size"]),
        ("Load data from the server", ["fetch", "promise"]),
        ("Append new items to the page", ["dom", "modifying"]),
    ]),
    ("drag and drop", [
        ("Handle mouse and pointer events", ["mouse", "pointer"]),
        ("Compute coordinates", ["coordinates", "size"]),
        ("Drop targets and event bubbling", ["bubbling", "events"]),
    ]),
    ("dark theme", [
        ("Toggle classes and CSS variables", ["classes", "styles"]),
        ("Remember the choice", ["localstorage"]),
    ]),
    ("api", [
        ("Request data with fetch", ["fetch", "network"]),
        ("Work with promises and async/await", ["promise", "async"]),
        ("Parse and send JSON", ["json"]),
        ("Handle errors", ["try-catch", "error"]),
    ]),
    ("timer", [
        ("Schedule work with timers", ["timers", "settimeout"]),
        ("Keep timer state in a closure", ["closure"]),
        ("Format dates and times", ["date"]),
    ]),
    ("keyboard shortcut", [
        ("Listen to keydown and keyup", ["keyboard", "keydown"]),
        ("Attach handlers at the document level", ["events", "delegation"]),
    ]),
    ("autocomplete", [
        ("React to input events", ["events", "input"]),
        ("Debounce requests", ["debounce", "timers", "closure"]),
        ("Fetch suggestions", ["fetch", "promise"]),
    ]),
])

# flat fallback: keyword found in the description -> topics
KEYWORD_TOPICS: Dict[str, List[str]] = {
    "форма": ["events", "forms"],
    "валидация": ["events", "forms", "regexp"],
    "анимация": ["dom", "events", "timers"],
    "состояние": ["closure", "object", "variables"],
    "данные": ["object", "array", "json"],
    "события": ["events", "dom"],
    "form": ["events", "forms"],
    "validat": ["events", "forms", "regexp"],
    "animat": ["dom", "events", "timers"],
    "state": ["closure", "object", "variables"],
    "data": ["object", "array", "json"],
    "event": ["events", "dom"],
    "click": ["events", "mouse"],
    "request": ["fetch", "promise"],
    "storage": ["localstorage", "json"],
}


@dataclass
class PlanStep:
    description: str
    keywords: List[str]
    articles: List[Article] = field(default_factory=list)


@dataclass
class Plan:
    feature: str
    has_detailed_plan: bool
    steps: List[PlanStep] = field(default_factory=list)
    articles: List[Article] = field(default_factory=list)


def unused_articles(document: Document) -> List[Article]:
    """Articles that are not fully applied yet."""
    return [article for article in document.values() if article.progress < 100]


def suggest_by_category(document: Document) -> Dict[str, List[Article]]:
    grouped: Dict[str, List[Article]] = OrderedDict()
    for article in unused_articles(document):
        grouped.setdefault(article.category or "uncategorized", []).append(article)
    return grouped


def _matches_keyword(article: Article, keyword: str) -> bool:
    haystacks = [article.id, article.title] + [section.title for section in article.sections]
    return any(keyword in (text or "").lower() for text in haystacks)


def _matching(articles: Iterable[Article], keywords: List[str], limit: int) -> List[Article]:
    found = []
    for article in articles:
        if any(_matches_keyword(article, keyword) for keyword in keywords):
            found.append(article)
            if len(found) >= limit:
                break
    return found


def plan_for(feature: str, unused: List[Article]) -> Plan:
    """
    Build a learning plan for a feature idea.

    Args:
        feature: Free-text feature description
        unused: Candidate articles (normally unused_articles(document))

    Returns:
        A Plan; has_detailed_plan tells whether a known feature matched
    """
    text = feature.lower()

    for phrase, steps in FEATURE_PLANS.items():
        if phrase in text:
            logger.debug(f"Feature {feature!r} matched plan {phrase!r}")
            plan = Plan(feature=feature, has_detailed_plan=True)
            for description, keywords in steps:
                step = PlanStep(description, list(keywords), _matching(unused, keywords, MAX_PER_STEP))
                plan.steps.append(step)
                for article in step.articles:
                    if article not in plan.articles:
                        plan.articles.append(article)
            return plan

    topics: List[str] = []
    for keyword, keyword_topics in KEYWORD_TOPICS.items():
        if keyword in text:
            topics.extend(t for t in keyword_topics if t not in topics)

    logger.debug(f"No plan for {feature!r}, fallback topics: {topics}")
    articles = _matching(unused, topics, MAX_FALLBACK) if topics else []
    return Plan(feature=feature, has_detailed_plan=False, articles=articles)
