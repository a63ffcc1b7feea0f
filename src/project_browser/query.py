"""Project matching, sorting, and pagination utilities."""

from __future__ import annotations

import locale
import math
from collections.abc import Callable, Iterable, Mapping, Sequence
from datetime import date, datetime
from typing import TypeVar

from project_browser.models import (
    ALL_CATEGORIES,
    SORT_NEWEST,
    SORT_RATING_HIGH,
    SORT_RATING_LOW,
    SORT_TITLE_ASC,
    SORT_TITLE_DESC,
    SORT_TRENDING,
    Project,
    ProjectCollection,
    QueryState,
)

T = TypeVar("T")

# ============================================================================
# Identifier Resolution
# ============================================================================


def project_id(project: Project) -> str:
    """Resolve the identifier that joins a project with ranking data.

    The first non-empty value of ``folder``, ``name``, ``title`` wins. Ranking
    sources key their scores by this value, so changing the priority order
    silently detaches every project from its popularity data.
    """
    return project.folder or project.name or project.title


# ============================================================================
# Category Set Helpers
# ============================================================================


def toggle_category_set(categories: set[str], token: str) -> set[str]:
    """Return a new category set with ``token`` toggled.

    ``"all"`` resets the selection. Any other token drops ``"all"`` and flips
    its own membership; an emptied selection falls back to ``{"all"}``. Blank
    tokens name no category and leave the selection unchanged.
    """
    if not token.strip():
        return set(categories)
    cat = token.lower()
    if cat == ALL_CATEGORIES:
        return {ALL_CATEGORIES}
    result = set(categories)
    result.discard(ALL_CATEGORIES)
    if cat in result:
        result.remove(cat)
    else:
        result.add(cat)
    return result or {ALL_CATEGORIES}


def normalize_categories(tokens: Iterable[str]) -> set[str]:
    """Build a valid category selection from arbitrary tokens."""
    cleaned = {token.lower() for token in tokens if token.strip()}
    if not cleaned or ALL_CATEGORIES in cleaned:
        return {ALL_CATEGORIES}
    return cleaned


# ============================================================================
# Filter Predicates
# ============================================================================


def matches_search(project: Project, search_query: str) -> bool:
    """Check if the lowercased title contains the (lowercase) query."""
    return search_query in project.title.lower()


def matches_categories(project: Project, categories: set[str]) -> bool:
    """Check if a project passes the category facet."""
    if ALL_CATEGORIES in categories:
        return True
    if not project.category:
        return False
    return project.category.lower() in categories


def matches_collection(
    project: Project,
    collection_id: str | None,
    collections: Mapping[str, ProjectCollection] | None,
) -> bool:
    """Check if a project belongs to the scoped collection.

    Without a collection registry the scope is not applied. An id missing from
    the registry matches nothing, like an unknown category token.
    """
    if collection_id is None or collections is None:
        return True
    collection = collections.get(collection_id)
    if collection is None:
        return False
    return project_id(project) in collection.project_ids


def filter_projects(
    projects: Iterable[Project],
    state: QueryState,
    collections: Mapping[str, ProjectCollection] | None = None,
) -> list[Project]:
    """Return projects matching the search, category, and collection criteria, in order."""
    return [
        project
        for project in projects
        if matches_search(project, state.search_query)
        and matches_categories(project, state.categories)
        and matches_collection(project, state.collection_id, collections)
    ]


# ============================================================================
# Sorting
# ============================================================================


def _collation_key(text: str) -> str:
    """Locale-aware comparison key for titles."""
    folded = text.casefold()
    try:
        return locale.strxfrm(folded)
    except (ValueError, UnicodeError):
        # strxfrm rejects embedded NULs and unencodable code points
        return folded


def title_sort_key(project: Project) -> tuple[str, str]:
    """Sort key for alphabetical modes; the raw title breaks collation ties."""
    return (_collation_key(project.title), project.title)


def _date_key(project: Project) -> date:
    added = project.date_added
    if added is None:
        return date.min
    # datetime is a date subclass but does not compare with one
    return added.date() if isinstance(added, datetime) else added


def _rating_key(project: Project) -> float:
    return project.rating or 0.0


def sort_projects(
    projects: Sequence[Project],
    sort_mode: str,
    score_of: Callable[[str], float] | None = None,
) -> list[Project]:
    """Sort projects by the given mode, returning a new list.

    Every mode is key-based and Python's sort is stable, so projects that
    compare equal keep their filtered order.

    Args:
        projects: Filtered projects to sort.
        sort_mode: One of ``SORT_OPTIONS``; unknown modes keep the input order.
        score_of: Popularity lookup by project identifier, required for
            "trending". When None, "trending" keeps the input order.
    """
    if sort_mode == SORT_TITLE_ASC:
        return sorted(projects, key=title_sort_key)
    elif sort_mode == SORT_TITLE_DESC:
        return sorted(projects, key=title_sort_key, reverse=True)
    elif sort_mode == SORT_NEWEST:
        return sorted(projects, key=_date_key, reverse=True)
    elif sort_mode == SORT_RATING_HIGH:
        return sorted(projects, key=_rating_key, reverse=True)
    elif sort_mode == SORT_RATING_LOW:
        return sorted(projects, key=_rating_key)
    elif sort_mode == SORT_TRENDING:
        if score_of is None:
            return list(projects)
        # One lookup per project, not per comparison
        scores = [score_of(project_id(project)) for project in projects]
        order = sorted(range(len(projects)), key=lambda i: scores[i], reverse=True)
        return [projects[i] for i in order]
    return list(projects)


# ============================================================================
# Pagination
# ============================================================================


def paginate(items: Sequence[T], page: int, items_per_page: int) -> list[T]:
    """Return the 1-based page slice; pages outside the range are empty."""
    if page < 1:
        return []
    start = (page - 1) * items_per_page
    return list(items[start : start + items_per_page])


def count_pages(total: int, items_per_page: int) -> int:
    """Number of pages needed to show ``total`` projects (may be 0)."""
    return math.ceil(total / items_per_page)


__all__ = [
    "count_pages",
    "filter_projects",
    "matches_categories",
    "matches_collection",
    "matches_search",
    "normalize_categories",
    "paginate",
    "project_id",
    "sort_projects",
    "title_sort_key",
    "toggle_category_set",
]
