"""Rich rendering of engine views for the command-line browser."""

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Console
from rich.markup import escape as escape_markup
from rich.table import Table

from project_browser.engine import ProjectVisibilityEngine
from project_browser.models import (
    ALL_CATEGORIES,
    SORT_LABELS,
    Badge,
    BadgedProject,
    Project,
    RankedProject,
)
from project_browser.query import paginate

NO_VALUE = "—"


def escape_rich_text(text: str) -> str:
    """Escape text for safe Rich markup rendering."""
    return escape_markup(text) if text else ""


def format_rating(rating: float | None) -> str:
    if rating is None:
        return NO_VALUE
    return f"{rating:g}"


def format_badge(badge: Badge | None) -> str:
    if badge is None:
        return ""
    return f"[bold]{escape_rich_text(badge.label)}[/]"


def _project_cells(project: Project) -> list[str]:
    return [
        escape_rich_text(project.title),
        escape_rich_text(project.category or NO_VALUE),
        project.date_added.isoformat() if project.date_added else NO_VALUE,
        format_rating(project.rating),
    ]


def describe_filters(engine: ProjectVisibilityEngine) -> str:
    """One-line summary of the active query, e.g. 'search "ml" · tools, games · Title A-Z'."""
    state = engine.state
    parts: list[str] = []
    if state.search_query:
        parts.append(f'search "{state.search_query}"')
    if state.categories != {ALL_CATEGORIES}:
        parts.append(", ".join(sorted(state.categories)))
    if state.collection_id:
        parts.append(f"collection {state.collection_id}")
    parts.append(SORT_LABELS.get(state.sort_mode, state.sort_mode))
    return " · ".join(parts)


def build_page_table(engine: ProjectVisibilityEngine, *, show_badges: bool = False) -> Table:
    """Build a table for the current page of visible projects."""
    state = engine.state
    table = Table(title=escape_rich_text(describe_filters(engine)), expand=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Title")
    table.add_column("Category")
    table.add_column("Added")
    table.add_column("Rating", justify="right")
    if show_badges:
        table.add_column("Badge")

    offset = (state.page - 1) * engine.items_per_page
    if show_badges:
        rows: Sequence[BadgedProject] = paginate(
            engine.get_projects_with_badges(), state.page, engine.items_per_page
        )
        for i, row in enumerate(rows, start=offset + 1):
            table.add_row(str(i), *_project_cells(row.project), format_badge(row.badge))
    else:
        for i, project in enumerate(engine.get_paginated_projects(), start=offset + 1):
            table.add_row(str(i), *_project_cells(project))
    return table


def build_ranked_table(title: str, ranked: Sequence[RankedProject]) -> Table:
    """Build a table for a discovery list (trending, hidden gems)."""
    table = Table(title=escape_rich_text(title), expand=False)
    table.add_column("Title")
    table.add_column("Category")
    table.add_column("Score", justify="right")
    for entry in ranked:
        table.add_row(
            escape_rich_text(entry.project.title),
            escape_rich_text(entry.project.category or NO_VALUE),
            f"{entry.score:.2f}",
        )
    return table


def build_footer(engine: ProjectVisibilityEngine) -> str:
    """Status line: page position, visible count, and the shareable query."""
    state = engine.state
    total_pages = engine.get_total_pages()
    visible = engine.get_visible_count()
    footer = f"Page {state.page} of {total_pages} · {visible} of {len(engine.projects)} projects"
    query = engine.to_url_query()
    if query:
        footer += f" · ?{query}"
    return escape_rich_text(footer)


def render_view(
    console: Console,
    engine: ProjectVisibilityEngine,
    *,
    show_badges: bool = False,
    trending_limit: int = 0,
    hidden_gems_limit: int = 0,
) -> None:
    """Print the current page plus any requested discovery lists."""
    if engine.is_empty():
        console.print("[yellow]No projects match the current filters.[/]")
    else:
        console.print(build_page_table(engine, show_badges=show_badges))
        total_pages = engine.get_total_pages()
        page = engine.state.page
        if page < 1 or page > total_pages:
            console.print(f"[yellow]Page {page} is outside 1-{total_pages}.[/]")
    console.print(build_footer(engine), style="dim")

    if trending_limit > 0:
        trending = engine.get_trending_projects(trending_limit)
        if trending:
            console.print(build_ranked_table("Trending", trending))
        else:
            console.print("[dim]No trending data available.[/]")
    if hidden_gems_limit > 0:
        gems = engine.get_hidden_gems(hidden_gems_limit)
        if gems:
            console.print(build_ranked_table("Hidden gems", gems))
        else:
            console.print("[dim]No hidden gems available.[/]")


__all__ = [
    "build_footer",
    "build_page_table",
    "build_ranked_table",
    "describe_filters",
    "escape_rich_text",
    "format_badge",
    "format_rating",
    "render_view",
]
