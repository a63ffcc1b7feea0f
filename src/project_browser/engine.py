"""Visibility engine: owns query state and derives the visible project view.

The engine holds a read-only project collection plus one mutable
``QueryState``. Every read recomputes filter -> sort -> paginate from scratch;
nothing is cached, so there is no view to invalidate when state changes.

Popularity data comes from an optional ``RankingSource``. The engine only
forwards project identifiers to it and consumes the numbers it returns.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence

from project_browser.models import (
    ALL_CATEGORIES,
    DEFAULT_HIDDEN_GEMS_LIMIT,
    DEFAULT_ITEMS_PER_PAGE,
    DEFAULT_TRENDING_LIMIT,
    SORT_DEFAULT,
    SORT_OPTIONS,
    BadgedProject,
    InvalidSortModeError,
    Project,
    ProjectCollection,
    QueryState,
    RankedProject,
)
from project_browser.query import (
    count_pages,
    filter_projects,
    normalize_categories,
    paginate,
    project_id,
    sort_projects,
    toggle_category_set,
)
from project_browser.ranking import RankingSource
from project_browser.url_state import build_url, decode_query_state, encode_query_state

logger = logging.getLogger(__name__)


class ProjectVisibilityEngine:
    """Single source of truth for which projects are visible, and in what order."""

    def __init__(
        self,
        projects: Iterable[Project] = (),
        *,
        items_per_page: int = DEFAULT_ITEMS_PER_PAGE,
        collections: Iterable[ProjectCollection] | None = None,
        ranking_source: RankingSource | None = None,
    ) -> None:
        if items_per_page < 1:
            raise ValueError(f"items_per_page must be positive, got {items_per_page}")
        self._projects: tuple[Project, ...] = tuple(projects)
        self._items_per_page = items_per_page
        self._collections: dict[str, ProjectCollection] | None = (
            {collection.id: collection for collection in collections}
            if collections is not None
            else None
        )
        self._state = QueryState(items_per_page=items_per_page)
        self._ranking: RankingSource | None = None
        if ranking_source is not None:
            self.attach_ranking_source(ranking_source)

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------

    @property
    def projects(self) -> tuple[Project, ...]:
        return self._projects

    @property
    def state(self) -> QueryState:
        """Snapshot of the current query state; mutate through the setters."""
        return self._state.copy()

    @property
    def items_per_page(self) -> int:
        return self._items_per_page

    @property
    def collections(self) -> list[ProjectCollection]:
        return list(self._collections.values()) if self._collections is not None else []

    def get_categories(self) -> list[str]:
        """Distinct lowercase categories present in the collection, sorted."""
        return sorted({p.category.lower() for p in self._projects if p.category})

    # ------------------------------------------------------------------
    # Ranking source
    # ------------------------------------------------------------------

    @property
    def has_ranking_source(self) -> bool:
        return self._ranking is not None

    def attach_ranking_source(self, source: RankingSource) -> None:
        """Attach the popularity collaborator used by trending, badges, and discovery."""
        if not isinstance(source, RankingSource):
            raise TypeError(
                f"{type(source).__name__} does not implement the RankingSource interface"
            )
        self._ranking = source
        logger.debug("Attached ranking source %s", type(source).__name__)

    def detach_ranking_source(self) -> None:
        self._ranking = None
        logger.debug("Detached ranking source")

    # ------------------------------------------------------------------
    # State mutators
    # ------------------------------------------------------------------

    def set_search_query(self, query: str) -> None:
        self._state.search_query = query.lower()
        self._state.page = 1

    def toggle_category(self, category: str) -> None:
        """Toggle one category token; ``"all"`` clears the category filter."""
        self._state.categories = toggle_category_set(self._state.categories, category)
        self._state.page = 1

    def set_collection(self, collection_id: str | None) -> None:
        """Scope to a collection, or clear the scope with None (or an empty id)."""
        self._state.collection_id = collection_id or None
        self._state.page = 1

    def set_page(self, page: int) -> None:
        """Store the page verbatim; out-of-range pages simply render empty."""
        self._state.page = page

    def set_sort_mode(self, mode: str) -> None:
        """Switch sort mode.

        Raises:
            InvalidSortModeError: ``mode`` is not one of ``SORT_OPTIONS``.
                The state is left unchanged.
        """
        if mode not in SORT_OPTIONS:
            raise InvalidSortModeError(mode)
        logger.debug("Sort mode %s -> %s", self._state.sort_mode, mode)
        self._state.sort_mode = mode
        self._state.page = 1

    def reset(self) -> None:
        self._state = QueryState(items_per_page=self._items_per_page)

    def restore_state(self, state: QueryState) -> None:
        """Replace the whole query state, keeping its page as given.

        The incoming state is normalized so the category and search invariants
        hold; an unknown sort mode falls back to the default.
        """
        self._state = QueryState(
            search_query=state.search_query.lower(),
            categories=normalize_categories(state.categories),
            collection_id=state.collection_id or None,
            page=state.page,
            items_per_page=self._items_per_page,
            sort_mode=state.sort_mode if state.sort_mode in SORT_OPTIONS else SORT_DEFAULT,
        )

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    def _score_of(self, pid: str) -> float:
        """Ranking score coerced to a finite float so sort keys stay comparable."""
        if self._ranking is None:
            return 0.0
        raw = self._ranking.score_of(pid)
        try:
            score = float(raw)
        except (TypeError, ValueError):
            return 0.0
        return score if math.isfinite(score) else 0.0

    def get_visible_projects(self) -> list[Project]:
        """Filter then sort the full collection under the current state."""
        filtered = filter_projects(self._projects, self._state, self._collections)
        score_of = self._score_of if self._ranking is not None else None
        return sort_projects(filtered, self._state.sort_mode, score_of)

    def get_visible_count(self) -> int:
        return len(self.get_visible_projects())

    def get_paginated_projects(self) -> list[Project]:
        return paginate(self.get_visible_projects(), self._state.page, self._items_per_page)

    def get_total_pages(self) -> int:
        return count_pages(self.get_visible_count(), self._items_per_page)

    def is_empty(self) -> bool:
        return self.get_visible_count() == 0

    # ------------------------------------------------------------------
    # Ranking-backed views
    # ------------------------------------------------------------------

    def get_projects_with_badges(self) -> list[BadgedProject]:
        """Decorate every visible project (before pagination) with its badge."""
        visible = self.get_visible_projects()
        if self._ranking is None:
            return [BadgedProject(project=project) for project in visible]
        ranking = self._ranking
        return [
            BadgedProject(project=project, badge=ranking.badge_of(project_id(project)))
            for project in visible
        ]

    def _resolve_ranked(self, ranked: Sequence[tuple[str, float]]) -> list[RankedProject]:
        """Map (identifier, score) pairs back to projects, dropping unknown ids."""
        by_id: dict[str, Project] = {}
        for project in self._projects:
            by_id.setdefault(project_id(project), project)
        result: list[RankedProject] = []
        for pid, score in ranked:
            project = by_id.get(pid)
            if project is None:
                logger.debug("Ranking returned unknown project id %r, skipping", pid)
                continue
            result.append(RankedProject(project=project, score=score))
        return result

    def get_trending_projects(self, limit: int = DEFAULT_TRENDING_LIMIT) -> list[RankedProject]:
        """Globally trending projects; ignores the current filter and page."""
        if self._ranking is None:
            return []
        return self._resolve_ranked(self._ranking.top_trending(limit))

    def get_hidden_gems(self, limit: int = DEFAULT_HIDDEN_GEMS_LIMIT) -> list[RankedProject]:
        """Globally under-discovered projects; ignores the current filter and page."""
        if self._ranking is None:
            return []
        return self._resolve_ranked(self._ranking.top_hidden_gems(limit))

    # ------------------------------------------------------------------
    # URL state
    # ------------------------------------------------------------------

    def to_url_query(self) -> str:
        return encode_query_state(self._state)

    def build_url(self, path: str) -> str:
        return build_url(path, self._state)

    def apply_url_query(self, query: str) -> None:
        """Restore state from a query string; bad parameters take their defaults."""
        self.restore_state(decode_query_state(query, self._items_per_page))

    def is_filtered(self) -> bool:
        """True when search, category, or collection narrows the collection."""
        return bool(
            self._state.search_query
            or self._state.categories != {ALL_CATEGORIES}
            or self._state.collection_id
        )


__all__ = ["ProjectVisibilityEngine"]
