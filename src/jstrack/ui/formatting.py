# src/jstrack/ui/formatting.py
"""Small rendering helpers shared by the commands."""
from typing import Optional

from rich.markup import escape

from jstrack.core.models import parse_date


def progress_bar(percent: int, length: int = 20) -> str:
    percent = max(0, min(100, percent))
    filled = int(length * percent / 100)
    return "█" * filled + "░" * (length - filled)


def progress_icon(percent: int) -> str:
    if percent >= 100:
        return "🟢"
    if percent > 0:
        return "🟡"
    return "⚪"


def applied_icon(applied: bool) -> str:
    return "🟢" if applied else "⚪"


def format_url(url: Optional[str]) -> str:
    if not url:
        return "[dim]-[/dim]"
    return f"[blue underline]{escape(url)}[/blue underline]"


def format_date(value: Optional[str]) -> str:
    parsed = parse_date(value)
    return parsed.strftime("%Y-%m-%d") if parsed else "unknown"
