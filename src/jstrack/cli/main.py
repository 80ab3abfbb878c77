#!/usr/bin/env python3
# src/jstrack/cli/main.py
"""
Main CLI entry point for jstrack.
"""
import asyncio
import logging
import sys
from typing import Optional, Tuple

import click
from rich.box import ROUNDED
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from jstrack import __version__
from jstrack.api.client import GitHubClient
from jstrack.config import load_settings
from jstrack.core.models import Document, Failure
from jstrack.core.planner import plan_for, unused_articles
from jstrack.core.progress import calculate_article_progress, recalculate_all, update_article_progress
from jstrack.core.registry import ApplicationRegistry
from jstrack.core.search import rank, search_sections
from jstrack.core.storage import DocumentStore
from jstrack.integrations.git import get_current_project_name
from jstrack.shared.git_operations import _is_probably_sha
from jstrack.ui.formatting import (
    applied_icon, format_date, format_url, progress_bar, progress_icon
)
from jstrack.ui.prompts import ask_for_confirmation, ask_question

console = Console()


def _open(settings) -> Tuple[DocumentStore, Document]:
    """Store plus loaded document; an unreadable knowledge base reads as empty."""
    store = DocumentStore.from_settings(settings)
    document = store.load()
    if document is None:
        console.print("[red]❌ Could not load the knowledge base[/red]")
        console.print(f"   Looked in: {settings.data_dir}")
        document = {}
    return store, document


@click.group()
@click.version_option(version=__version__)
@click.option('--config', '-c', 'config_path', default=None, help="Path to config file")
@click.option('--verbose', '-v', is_flag=True, help="Show debug logging")
@click.option('--no-sync', is_flag=True, help="Do not pull/push the knowledge repository")
@click.pass_context
def cli(ctx, config_path, verbose, no_sync):
    """jstrack - track which JavaScript topics you have applied, and where."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s"
    )
    settings = load_settings(config_path)
    if no_sync:
        settings.sync = False
    ctx.obj = settings


# ============================================================================
# BROWSING
# ============================================================================

@cli.command()
@click.argument('query')
@click.option('--number', '-n', default=5, show_default=True, help="Number of results")
@click.pass_obj
def search(settings, query, number):
    """Search articles and their sections."""
    console.print(f"[blue]🔍 \"{escape(query)}\"[/blue]\n")
    _, document = _open(settings)

    results = rank(document.values(), query, number)
    if not results:
        console.print("[dim]No results[/dim]")
        return

    q = query.lower()
    for index, result in enumerate(results, 1):
        article = result.article
        console.print(f"[green]{index}. {applied_icon(result.is_applied)} {escape(article.title)}[/green]")
        console.print(f"[dim]   {article.id} | apps:{result.applications_count}[/dim]")

        relevant = [s.title for s in article.sections if q in s.title.lower()][:2]
        if relevant:
            console.print(f"[cyan]   {escape(' • '.join(relevant))}[/cyan]")
        console.print("")


@cli.command(name="list")
@click.option('--unused', '-u', is_flag=True, help="Show only articles not finished yet")
@click.option('--level', '-l', default=None, help="Filter by level")
@click.option('--number', '-n', default=5, show_default=True, help="Number of articles to show")
@click.pass_obj
def list_articles(settings, unused, level, number):
    """List articles with filters."""
    _, document = _open(settings)

    articles = [a for a in document.values() if a.level != "syntax"]
    if unused:
        articles = [a for a in articles if a.progress < 100]
        console.print("[yellow]🟡 Unused articles:[/yellow]\n")
    elif level:
        articles = [a for a in articles if a.level == level]
        console.print(f"[cyan]{escape(level.upper())} articles:[/cyan]\n")

    shown = articles[:number]
    for article in shown:
        console.print(f"  {progress_icon(article.progress)} {escape(article.title)}")
        console.print(f"    ID: {article.id} | Progress: {article.progress}%")
        console.print(f"    📚 {format_url(article.url)}")
        if article.sections:
            console.print(f"    Sections: {len(article.sections)}")
        console.print("")

    console.print(f"[magenta]📊 Showing {len(shown)} of {len(articles)} articles[/magenta]")


@cli.command()
@click.argument('article_id')
@click.pass_obj
def view(settings, article_id):
    """Show an article with its sections and applications."""
    _, document = _open(settings)

    article = document.get(article_id)
    if article is None:
        console.print(f"[red]❌ Article \"{escape(article_id)}\" not found[/red]")
        return

    progress = calculate_article_progress(article)
    console.print(f"\n[bold green]📚 {escape(article.title)}[/bold green]")
    console.print(f"[dim]ID: {article.id} | Level: {article.level}[/dim]")
    console.print(f"📚 {format_url(article.url)}")
    console.print(f"📊 Progress: {progress_bar(progress)} {progress}%")

    if article.sections:
        console.print("\n[cyan]📑 Sections:[/cyan]")
        for section in article.sections:
            console.print(f"  {applied_icon(section.is_applied)} {escape(section.title)}")
            console.print(f"    ID: {section.id}")
            console.print(f"    📖 {format_url(section.url)}")
            if section.is_applied:
                console.print(f"    Applications: {len(section.applications)}")
                for number, app in enumerate(section.applications, 1):
                    console.print(f"      {number}. {escape(app.project)} - {app.commit}")

    console.print("\n[magenta]🚀 Commands:[/magenta]")
    console.print(f"[dim]  jstrack apply {article.id} --section <id> --commit <hash>[/dim]")


@cli.command()
@click.argument('project_name')
@click.pass_obj
def project(settings, project_name):
    """Show articles applied in a project."""
    console.print(f"\n[bold blue]📁 Articles in project \"{escape(project_name)}\":[/bold blue]\n")
    _, document = _open(settings)

    entries = ApplicationRegistry(document, settings.github_user).articles_by_project(project_name)
    if not entries:
        console.print(f"[yellow]  No applied articles in \"{escape(project_name)}\"[/yellow]")
        console.print(f"[dim]  Use \"jstrack apply --project {escape(project_name)}\" to add some[/dim]")
        return

    for entry in entries:
        article = entry.article
        console.print(f"[green]• {escape(article.title)}[/green]")
        console.print(f"  ID: [yellow]{article.id}[/yellow]")
        console.print(f"  📚 {format_url(article.url)}")
        console.print(f"  Level: {article.level}")
        for number, usage in enumerate(entry.applications, 1):
            section_info = f" (section: {escape(usage.section_title)})" if usage.section_title else ""
            console.print(f"  {number}. Commit: [dim]{usage.commit}[/dim]{section_info}")
        console.print(f"  Total applications: [magenta]{entry.application_count}[/magenta]\n")

    console.print(f"[magenta]📊 Total: {len(entries)} articles[/magenta]")


@cli.command()
@click.pass_obj
def stats(settings):
    """Show learning statistics."""
    _, document = _open(settings)
    summary = ApplicationRegistry(document).statistics()

    table = Table(title="📊 Learning statistics", box=ROUNDED, show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white", justify="right")
    table.add_row("🟢 Completed", f"{summary.completed}/{summary.total}")
    table.add_row("🟡 In progress", f"{summary.in_progress}/{summary.total}")
    table.add_row("⚪ Not started", f"{summary.not_started}/{summary.total}")
    table.add_row("📈 Applications", str(summary.total_applications))
    table.add_row("🎯 Overall", f"{summary.overall_progress}%")
    console.print(table)
    console.print(f"[dim]   {progress_bar(summary.overall_progress)}[/dim]")

    if summary.completed:
        console.print("\n[green]🎉 Great progress, keep going! 🚀[/green]")
    elif summary.in_progress:
        console.print("\n[yellow]💪 You are on the right track![/yellow]")
    else:
        console.print("\n[blue]🚀 Pick your first article: jstrack list[/blue]")


@cli.command()
@click.argument('feature')
@click.pass_obj
def suggest(settings, feature):
    """Suggest what to learn for implementing a feature."""
    console.print(f"\n[bold blue]🎯 Suggestions for: \"{escape(feature)}\"[/bold blue]\n")
    _, document = _open(settings)

    plan = plan_for(feature, unused_articles(document))
    if not plan.articles:
        console.print("[yellow]🤔 No matching articles found[/yellow]")
        return

    if plan.has_detailed_plan:
        console.print("[cyan]🗺️  Step-by-step plan:[/cyan]\n")
        for number, step in enumerate(plan.steps, 1):
            console.print(f"[bold]{number}. {escape(step.description)}[/bold]")
            if not step.articles:
                console.print("[dim]   (nothing left to learn here)[/dim]")
            for article in step.articles:
                console.print(f"[green]   • {escape(article.title)}[/green] [dim]({article.id})[/dim]")
                console.print(f"     📚 {format_url(article.url)}")
            console.print("")
    else:
        console.print("[cyan]📚 Recommended articles:[/cyan]\n")
        for number, article in enumerate(plan.articles, 1):
            console.print(f"[green]{number}. {escape(article.title)}[/green]")
            console.print(f"[dim]   ID: {article.id} | Level: {article.level}[/dim]")
            console.print(f"   📚 {format_url(article.url)}")
            for section in article.sections[:3]:
                console.print(f"[dim]      • {escape(section.title)}[/dim]")
            console.print("")

    console.print("[magenta]🚀 Next:[/magenta]")
    console.print("[dim]   jstrack apply <id> --section <section> --commit <hash>[/dim]")


# ============================================================================
# APPLY
# ============================================================================

@cli.command()
@click.argument('article_id', required=False)
@click.option('--project', '-p', default=None, help="Project where applied")
@click.option('--commit', '-c', default=None, help="Commit hash")
@click.option('--section', '-s', default=None, help="Section ID (required in direct mode)")
@click.option('--yes', is_flag=True, help="Skip confirmation prompt")
@click.option('--offline', is_flag=True, help="Skip GitHub validation")
@click.pass_obj
def apply(settings, article_id, project, commit, section, yes, offline):
    """Link a section to the commit that implemented it."""
    try:
        asyncio.run(_apply_async(settings, article_id, project, commit, section, yes, offline))
    except Exception as e:
        console.print(f"[red]❌ Error: {escape(str(e))}[/red]")
        sys.exit(1)


async def _choose_section(registry: ApplicationRegistry) -> Optional[Tuple[str, str]]:
    """Interactive section picker; None when the user gives up."""
    query = await ask_question("Which section did you implement? (e.g. 'keydown', 'form validation'): ")
    if not query:
        console.print("[red]❌ Query cannot be empty[/red]")
        return None

    console.print(f"[blue]🔍 Searching sections for \"{escape(query)}\"...[/blue]")
    found = search_sections(registry.document.values(), query)
    if not found:
        console.print("[yellow]🤔 No matching sections[/yellow]")
        console.print("[dim]Try other keywords, or browse with: jstrack list / jstrack search <query>[/dim]")
        return None

    console.print("\n[cyan]📚 Matching sections:[/cyan]")
    for number, match in enumerate(found, 1):
        applied = match.section.is_applied
        applied_text = f" [dim](applied {len(match.section.applications)}x)[/dim]" if applied else ""
        console.print(f"[blue]{number}. {applied_icon(applied)} {escape(match.section.title)}[/blue]{applied_text}")
        console.print(f"[dim]   Article: {escape(match.article.title)}[/dim]")
        console.print(f"[dim]   ID: {match.article.id} --section {match.section.id}[/dim]")
        console.print(f"   📖 {format_url(match.section.url)}\n")

    choice = await ask_question(f"Choose a section (1-{len(found)}) or enter an article id: ")

    if choice.isdigit() and 1 <= int(choice) <= len(found):
        match = found[int(choice) - 1]
        article_id, section = match.article.id, match.section
    elif "--section" in choice:
        article_part, _, section_part = choice.partition("--section")
        article_id = article_part.strip()
        section = registry.find_section(article_id, section_part.strip())
        if section is None:
            return article_id, section_part.strip()
    else:
        article = registry.find_article(choice)
        if article is None or not article.sections:
            console.print("[red]❌ Specify the section with --section[/red]")
            console.print("[dim]Example: keyboard-events --section keydown-and-keyup[/dim]")
            return None

        console.print(f"[cyan]   Article: {escape(article.title)}[/cyan]")
        for number, candidate in enumerate(article.sections, 1):
            console.print(f"[blue]   {number}. {applied_icon(candidate.is_applied)} {escape(candidate.title)}[/blue]")
            console.print(f"[dim]      ID: {candidate.id}[/dim]")

        picked = await ask_question(f"\nChoose a section (1-{len(article.sections)}): ")
        if not (picked.isdigit() and 1 <= int(picked) <= len(article.sections)):
            console.print("[red]❌ Pick a section from the list[/red]")
            return None
        article_id, section = article.id, article.sections[int(picked) - 1]

    if section.is_applied:
        console.print("[yellow]⚠️  This section already has applications![/yellow]")
        if not await ask_for_confirmation("Add another one anyway? (y/N) "):
            console.print("[dim]❌ Cancelled[/dim]")
            return None

    return article_id, section.id


async def _validate_on_github(settings, project: str, commit: str) -> bool:
    """False only when GitHub positively says the project or commit is missing."""
    async with GitHubClient(settings) as github:
        console.print("[blue]🔍 Checking project on GitHub...[/blue]")
        project_check = await github.validate_project_exists(project)
        if project_check.skip_check:
            console.print("[yellow]⚠️  Could not check the project on GitHub, skipping[/yellow]")
            return True
        if not project_check.exists:
            console.print(f"[bold red]❌ Project \"{escape(project)}\" not found on GitHub![/bold red]")
            return False
        console.print("[green]✅ Project found on GitHub[/green]")

        console.print("[blue]🔍 Checking commit on GitHub...[/blue]")
        commit_check = await github.validate_commit_exists(project, commit)
        if commit_check.skip_check:
            console.print("[yellow]⚠️  Could not check the commit on GitHub, skipping[/yellow]")
            return True
        if not commit_check.exists:
            console.print(f"[bold red]❌ Commit \"{escape(commit)}\" not found in \"{escape(project)}\"![/bold red]")
            return False

        first_line = (commit_check.message or "").splitlines()[0] if commit_check.message else ""
        console.print(f"[green]✅ Commit found[/green] [dim]{escape(first_line)} ({commit_check.author})[/dim]")
        return True


async def _apply_async(settings, article_id, project, commit, section_id, yes, offline):
    store, document = _open(settings)
    registry = ApplicationRegistry(document, settings.github_user)

    if not article_id:
        console.print("[bold blue]\n🎯 Apply a section\n[/bold blue]")
        chosen = await _choose_section(registry)
        if chosen is None:
            return
        article_id, section_id = chosen

        if not commit:
            commit = await ask_question("Commit hash (required): ")
            if not commit:
                console.print("[red]❌ A commit hash is required![/red]")
                return

        if not project:
            default_project = get_current_project_name()
            project = await ask_question(f"Project name (default: {escape(default_project)}): ") or default_project
    else:
        if not section_id:
            console.print("[red]❌ In direct mode the section is required: --section <id>[/red]")
            console.print("[dim]Example: jstrack apply keyboard-events --section keydown --commit abc123[/dim]")
            return
        if not commit:
            console.print("[red]❌ A commit hash is required: --commit <hash>[/red]")
            return

    project = project or get_current_project_name()

    console.print("[blue]🔍 Checking for duplicates...[/blue]")
    if registry.is_already_linked(article_id, project, commit, section_id):
        console.print("[red]❌ This application already exists![/red]")
        console.print("[dim]A commit can be linked to a section only once per project[/dim]")
        console.print("[yellow]📌 Existing applications of this commit:[/yellow]")
        for usage in registry.find_usages_of_commit(commit, project):
            section_info = f" (section: {escape(usage.section_title)})" if usage.section_title else ""
            console.print(f"[dim]   • {escape(usage.article_title)}{section_info}[/dim]")
        return

    article = registry.find_article(article_id)
    if article is None:
        console.print(f"[red]❌ Article \"{escape(article_id)}\" not found[/red]")
        console.print("[dim]Use \"jstrack list\" to see all articles[/dim]")
        return
    section = article.find_section(section_id)
    if section is None:
        console.print(f"[red]❌ Section \"{escape(section_id)}\" not found in \"{article.id}\"[/red]")
        return

    if not _is_probably_sha(commit):
        console.print(f"[yellow]⚠️  \"{escape(commit)}\" does not look like a commit hash[/yellow]")

    if not offline and not await _validate_on_github(settings, project, commit):
        return

    if not yes:
        console.print(Panel(
            f"Article: {escape(article.title)}\n"
            f"Section: {escape(section.title)}\n"
            f"Project: {escape(project)}\n"
            f"Commit:  {escape(commit)}",
            title="📝 Confirm",
            border_style="yellow"
        ))
        if not await ask_for_confirmation("Add this link? (y/N) "):
            console.print("[dim]❌ Cancelled[/dim]")
            return

    result = registry.apply(article_id, project, commit, section_id)
    if not result.success:
        if result.error == Failure.DUPLICATE_APPLICATION:
            console.print("[red]❌ This application already exists![/red]")
        else:
            console.print("[red]❌ Article or section not found[/red]")
        return

    if not store.save(document, {'type': 'apply', 'section': section.title, 'project': project}):
        console.print("[red]❌ Could not save the knowledge base[/red]")
        return

    console.print("\n[bold green]✅ Applied![/bold green]")
    console.print(f"[dim]   Section: {escape(section.title)}[/dim]")
    console.print(f"   📖 {format_url(section.url)}")
    console.print(f"[dim]   Article: {escape(article.title)}[/dim]")
    console.print(f"[dim]   Project: {escape(project)}[/dim]")
    console.print(f"[dim]   Commit: {escape(commit)}[/dim]")
    if result.application.commit_url:
        console.print(f"   🔗 {format_url(result.application.commit_url)}")
    console.print(f"[dim]   Article progress: {result.progress}%[/dim]")


# ============================================================================
# UNAPPLY
# ============================================================================

@cli.command()
@click.option('--commit', '-c', default=None, help="Commit hash to remove")
@click.option('--article', '-a', default=None, help="Article ID")
@click.option('--section', '-s', default=None, help="Section ID")
@click.option('--yes', is_flag=True, help="Skip confirmation prompt")
@click.pass_obj
def unapply(settings, commit, article, section, yes):
    """Remove applications of a commit."""
    try:
        asyncio.run(_unapply_async(settings, commit, article, section, yes))
    except Exception as e:
        console.print(f"[red]❌ Error: {escape(str(e))}[/red]")
        sys.exit(1)


def _print_usage(number: int, usage) -> None:
    console.print(f"[blue]{number}. {escape(usage.section_title or '-')}[/blue]")
    console.print(f"[dim]   Article: {escape(usage.article_title)}[/dim]")
    console.print(f"[dim]   ID: {usage.article_id} --section {usage.section_id}[/dim]")
    console.print(f"[dim]   Commit: {escape(usage.commit)} | Project: {escape(usage.project)}[/dim]")
    console.print(f"[dim]   Date: {format_date(usage.date)}[/dim]\n")


async def _unapply_async(settings, commit, article_id, section_id, yes):
    console.print("[bold blue]\n🗑️  Remove applications\n[/bold blue]")
    store, document = _open(settings)
    registry = ApplicationRegistry(document, settings.github_user)

    if not commit and not article_id:
        candidates = registry.list_all_applications()
        if not candidates:
            console.print("[yellow]🤷 No applications to remove[/yellow]")
            return

        console.print(f"[cyan]📚 Applications found: {len(candidates)}[/cyan]\n")
        for number, usage in enumerate(candidates, 1):
            _print_usage(number, usage)

        choice = await ask_question(f"Choose an application to remove (1-{len(candidates)}) or \"all\": ")
        if choice.lower() == "all":
            console.print("[red]⚠️  This removes ALL applications![/red]")
            selected = candidates
            context_section = "all applications"
        elif choice.isdigit() and 1 <= int(choice) <= len(candidates):
            selected = [candidates[int(choice) - 1]]
            context_section = selected[0].section_title
        else:
            console.print("[red]❌ Invalid choice[/red]")
            return
    else:
        if not commit:
            console.print("[red]❌ Direct removal needs a commit: --commit <hash>[/red]")
            return

        selected = registry.find_by_criteria(commit, article=article_id, section=section_id)
        if not selected:
            console.print("[yellow]🤷 No applications found[/yellow]")
            console.print(f"[dim]   Commit: {escape(commit)}[/dim]")
            if article_id:
                console.print(f"[dim]   Article: {escape(article_id)}[/dim]")
            if section_id:
                console.print(f"[dim]   Section: {escape(section_id)}[/dim]")
            return

        console.print(f"[cyan]📚 Applications found: {len(selected)}[/cyan]\n")
        for number, usage in enumerate(selected, 1):
            _print_usage(number, usage)
        context_section = selected[0].section_title if len(selected) == 1 else "multiple sections"

    if not yes and not await ask_for_confirmation(f"Remove {len(selected)} application(s)? (y/N) "):
        console.print("[dim]❌ Cancelled[/dim]")
        return

    removed, affected = registry.unapply_many(selected)
    if not removed:
        console.print("[red]❌ Nothing was removed[/red]")
        return

    if not store.save(document, {'type': 'unapply', 'section': context_section}):
        console.print("[red]❌ Could not save the knowledge base[/red]")
        return

    console.print(f"[green]✅ Removed applications: {removed}[/green]")
    for affected_id in sorted(affected):
        console.print(f"[dim]   {affected_id}: {document[affected_id].progress}%[/dim]")


# ============================================================================
# MAINTENANCE
# ============================================================================

@cli.command()
@click.argument('article_id', required=False)
@click.pass_obj
def recalc(settings, article_id):
    """Recompute stored progress from section applications."""
    store = DocumentStore.from_settings(settings)

    if article_id:
        update = update_article_progress(store, article_id)
        if update is None:
            console.print("[red]❌ Could not update the knowledge base[/red]")
        elif not update.success:
            console.print(f"[red]❌ Article \"{escape(article_id)}\" not found[/red]")
        else:
            console.print(f"[green]✅ {article_id}: {update.before}% → {update.after}%[/green]")
        return

    changes = store.update(recalculate_all, context={'type': 'recalc'})
    if changes is None:
        console.print("[red]❌ Could not update the knowledge base[/red]")
        return
    if not changes:
        console.print("[dim]All progress values are up to date[/dim]")
        return
    for update in changes:
        console.print(f"[green]✅ {update.article_id}: {update.before}% → {update.after}%[/green]")


@cli.command()
@click.option('--show-token', is_flag=True, help="Show the full GitHub token (be careful!)")
@click.pass_obj
def config(settings, show_token):
    """Show current configuration."""
    table = Table(title="Current Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="yellow")

    for key, value in settings.to_dict().items():
        if key == 'github.token':
            if not value:
                value = "[red]NOT SET[/red]"
            elif not show_token:
                value = "•" * max(len(value) - 4, 0) + value[-4:]
        table.add_row(key, str(value))

    console.print(table)


@cli.command()
def workflow():
    """Show the usage workflow."""
    console.print("[bold blue]\n🚀 Workflow\n[/bold blue]")
    console.print("[green]🎯 Main commands:[/green]")
    console.print("  jstrack apply                    - interactive apply")
    console.print("  jstrack search <query>           - search articles")
    console.print("  jstrack list --unused            - articles not finished yet")
    console.print("  jstrack view <id>                - article details")
    console.print("  jstrack unapply                  - remove applications")
    console.print("  jstrack stats                    - statistics\n")
    console.print("[cyan]💡 Examples:[/cyan]")
    console.print("[dim]  $ jstrack apply[/dim]")
    console.print("[dim]  $ jstrack search 'keyboard events'[/dim]")
    console.print("[dim]  $ jstrack apply keyboard-events --section keydown --commit abc123[/dim]")
    console.print("[dim]  $ jstrack suggest 'form validation'[/dim]")


if __name__ == "__main__":
    cli()
