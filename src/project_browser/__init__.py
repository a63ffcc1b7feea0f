"""Project browser: search, facet, sort, and page through a project catalog."""

from project_browser.engine import ProjectVisibilityEngine
from project_browser.models import (
    ALL_CATEGORIES,
    SORT_OPTIONS,
    Badge,
    BadgedProject,
    InvalidSortModeError,
    Project,
    ProjectCollection,
    QueryState,
    RankedProject,
    UserConfig,
)
from project_browser.parsing import Catalog, CatalogError, load_catalog
from project_browser.query import project_id
from project_browser.ranking import RankingSource, ScoreTableRankingSource, load_ranking_file
from project_browser.url_state import build_url, decode_query_state, encode_query_state

__all__ = [
    "ALL_CATEGORIES",
    "SORT_OPTIONS",
    "Badge",
    "BadgedProject",
    "Catalog",
    "CatalogError",
    "InvalidSortModeError",
    "Project",
    "ProjectCollection",
    "ProjectVisibilityEngine",
    "QueryState",
    "RankedProject",
    "RankingSource",
    "ScoreTableRankingSource",
    "UserConfig",
    "build_url",
    "decode_query_state",
    "encode_query_state",
    "load_catalog",
    "load_ranking_file",
    "project_id",
]
