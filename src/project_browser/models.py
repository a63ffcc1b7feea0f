"""Data models and constants for the project browser."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any

# Application identity — single source of truth for platformdirs config paths
CONFIG_APP_NAME = "project-browser"

# Category sentinel meaning "no category filter"
ALL_CATEGORIES = "all"

# Sort modes, keyed by their wire (URL) value
SORT_DEFAULT = "default"
SORT_TITLE_ASC = "az"
SORT_TITLE_DESC = "za"
SORT_NEWEST = "newest"
SORT_TRENDING = "trending"
SORT_RATING_HIGH = "rating-high"
SORT_RATING_LOW = "rating-low"

SORT_OPTIONS = (
    SORT_DEFAULT,
    SORT_TITLE_ASC,
    SORT_TITLE_DESC,
    SORT_NEWEST,
    SORT_TRENDING,
    SORT_RATING_HIGH,
    SORT_RATING_LOW,
)
SORT_LABELS: dict[str, str] = {
    SORT_DEFAULT: "Default order",
    SORT_TITLE_ASC: "Title A-Z",
    SORT_TITLE_DESC: "Title Z-A",
    SORT_NEWEST: "Newest first",
    SORT_TRENDING: "Trending",
    SORT_RATING_HIGH: "Highest rated",
    SORT_RATING_LOW: "Lowest rated",
}

# Pagination limits
DEFAULT_ITEMS_PER_PAGE = 10
MAX_ITEMS_PER_PAGE = 100

# Discovery list sizes
DEFAULT_TRENDING_LIMIT = 10
DEFAULT_HIDDEN_GEMS_LIMIT = 5


class InvalidSortModeError(ValueError):
    """Raised when a sort mode outside SORT_OPTIONS is requested."""

    def __init__(self, mode: object) -> None:
        super().__init__(f"Unknown sort mode {mode!r}; expected one of: {', '.join(SORT_OPTIONS)}")
        self.mode = mode


@dataclass(slots=True)
class Project:
    """A single browsable project entry."""

    title: str
    category: str | None = None
    date_added: date | None = None
    rating: float | None = None
    folder: str | None = None
    name: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class ProjectCollection:
    """A named sub-collection of projects, referenced by project identifier."""

    id: str
    name: str = ""
    description: str = ""
    project_ids: list[str] = field(default_factory=list)


@dataclass(slots=True)
class Badge:
    """Display badge supplied by a ranking source (e.g. "hot", "rising")."""

    kind: str
    label: str


@dataclass(slots=True)
class BadgedProject:
    """A visible project decorated with its ranking badge, if any."""

    project: Project
    badge: Badge | None = None


@dataclass(slots=True)
class RankedProject:
    """A project resolved from a ranking source's top-N list."""

    project: Project
    score: float


@dataclass(slots=True)
class QueryState:
    """Mutable filter, sort, and pagination configuration of an engine.

    Invariants maintained by the engine's mutators:
    - ``search_query`` is always lowercase.
    - ``categories`` is never empty, and ``"all"`` never coexists with another token.
    """

    search_query: str = ""
    categories: set[str] = field(default_factory=lambda: {ALL_CATEGORIES})
    collection_id: str | None = None
    page: int = 1
    items_per_page: int = DEFAULT_ITEMS_PER_PAGE
    sort_mode: str = SORT_DEFAULT

    def copy(self) -> QueryState:
        """Return an independent copy (the category set is not shared)."""
        return QueryState(
            search_query=self.search_query,
            categories=set(self.categories),
            collection_id=self.collection_id,
            page=self.page,
            items_per_page=self.items_per_page,
            sort_mode=self.sort_mode,
        )


@dataclass(slots=True)
class SessionState:
    """State to restore on next run: the last URL-encoded query."""

    query: str = ""


@dataclass(slots=True)
class UserConfig:
    """User configuration including the saved session."""

    items_per_page: int = DEFAULT_ITEMS_PER_PAGE
    catalog_path: str = ""  # Empty = ./projects.json
    ranking_path: str = ""  # Empty = no ranking source
    trending_limit: int = DEFAULT_TRENDING_LIMIT
    hidden_gems_limit: int = DEFAULT_HIDDEN_GEMS_LIMIT
    session: SessionState = field(default_factory=SessionState)
    version: int = 1

    def __post_init__(self) -> None:
        """Clamp items_per_page to the supported range."""
        if self.items_per_page < 1 or self.items_per_page > MAX_ITEMS_PER_PAGE:
            self.items_per_page = DEFAULT_ITEMS_PER_PAGE


__all__ = [
    "ALL_CATEGORIES",
    "CONFIG_APP_NAME",
    "DEFAULT_HIDDEN_GEMS_LIMIT",
    "DEFAULT_ITEMS_PER_PAGE",
    "DEFAULT_TRENDING_LIMIT",
    "MAX_ITEMS_PER_PAGE",
    "SORT_DEFAULT",
    "SORT_LABELS",
    "SORT_NEWEST",
    "SORT_OPTIONS",
    "SORT_RATING_HIGH",
    "SORT_RATING_LOW",
    "SORT_TITLE_ASC",
    "SORT_TITLE_DESC",
    "SORT_TRENDING",
    "Badge",
    "BadgedProject",
    "InvalidSortModeError",
    "Project",
    "ProjectCollection",
    "QueryState",
    "RankedProject",
    "SessionState",
    "UserConfig",
]
