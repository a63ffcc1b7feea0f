"""Query-string encoding of the engine's query state.

Wire format (each parameter omitted when at its default)::

    category=<token>   repeated once per selected category (default: all)
    search=<text>      lowercase search text (default: empty)
    sort=<mode>        one of SORT_OPTIONS (default: "default")
    page=<n>           1-based page (default: 1)
    collection=<id>    collection scope (default: absent)

Decoding never fails: missing or unparseable parameters take their default.
"""

from __future__ import annotations

from urllib.parse import parse_qs, urlencode

from project_browser.models import (
    ALL_CATEGORIES,
    DEFAULT_ITEMS_PER_PAGE,
    SORT_DEFAULT,
    SORT_OPTIONS,
    QueryState,
)
from project_browser.query import normalize_categories

PARAM_CATEGORY = "category"
PARAM_SEARCH = "search"
PARAM_SORT = "sort"
PARAM_PAGE = "page"
PARAM_COLLECTION = "collection"


def encode_query_state(state: QueryState) -> str:
    """Encode a query state as a query string (without the leading ``?``)."""
    params: list[tuple[str, str]] = []
    if state.categories != {ALL_CATEGORIES}:
        params.extend((PARAM_CATEGORY, cat) for cat in sorted(state.categories))
    if state.search_query:
        params.append((PARAM_SEARCH, state.search_query))
    if state.sort_mode != SORT_DEFAULT:
        params.append((PARAM_SORT, state.sort_mode))
    if state.page != 1:
        params.append((PARAM_PAGE, str(state.page)))
    if state.collection_id:
        params.append((PARAM_COLLECTION, state.collection_id))
    return urlencode(params)


def _first(params: dict[str, list[str]], key: str) -> str:
    values = params.get(key)
    return values[0] if values else ""


def _parse_page(raw: str) -> int:
    try:
        page = int(raw.strip())
    except ValueError:
        return 1
    return page if page >= 1 else 1


def decode_query_state(query: str, items_per_page: int = DEFAULT_ITEMS_PER_PAGE) -> QueryState:
    """Decode a query string into a valid query state.

    Args:
        query: Query string, with or without a leading ``?``.
        items_per_page: Page size for the returned state; not part of the wire format.
    """
    params = parse_qs(query.removeprefix("?"))
    sort_mode = _first(params, PARAM_SORT)
    return QueryState(
        search_query=_first(params, PARAM_SEARCH).lower(),
        categories=normalize_categories(params.get(PARAM_CATEGORY, [])),
        collection_id=_first(params, PARAM_COLLECTION) or None,
        page=_parse_page(_first(params, PARAM_PAGE)),
        items_per_page=items_per_page,
        sort_mode=sort_mode if sort_mode in SORT_OPTIONS else SORT_DEFAULT,
    )


def build_url(path: str, state: QueryState) -> str:
    """Return ``path`` with the encoded state appended, or bare ``path`` at defaults."""
    query = encode_query_state(state)
    return f"{path}?{query}" if query else path


__all__ = [
    "PARAM_CATEGORY",
    "PARAM_COLLECTION",
    "PARAM_PAGE",
    "PARAM_SEARCH",
    "PARAM_SORT",
    "build_url",
    "decode_query_state",
    "encode_query_state",
]
