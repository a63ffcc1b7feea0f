"""Project catalog loading: JSON records, dates, and ratings."""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any

from project_browser.models import Project, ProjectCollection

logger = logging.getLogger(__name__)

# Record keys the engine reads; anything else is carried in Project.extra
_PROJECT_KEYS = frozenset({"title", "category", "dateAdded", "rating", "folder", "name"})


class CatalogError(ValueError):
    """Raised when a catalog file cannot be parsed at all."""


@dataclass(slots=True)
class Catalog:
    """Projects and collections loaded from one catalog file."""

    projects: list[Project] = field(default_factory=list)
    collections: list[ProjectCollection] = field(default_factory=list)


def parse_date_added(value: Any) -> date | None:
    """Parse an ISO date or datetime string.

    Args:
        value: Raw ``dateAdded`` value, e.g. "2024-01-15" or "2024-01-15T09:30:00Z".

    Returns:
        The calendar date, or None for missing or malformed values.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    cleaned = value.strip()
    if not cleaned:
        return None

    try:
        return date.fromisoformat(cleaned)
    except ValueError:
        pass

    try:
        return datetime.fromisoformat(cleaned).date()
    except ValueError:
        return None


def parse_rating(value: Any) -> float | None:
    """Parse a rating as a finite float; numeric strings are accepted."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            rating = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        try:
            rating = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return rating if math.isfinite(rating) else None


def _optional_str(record: dict[str, Any], key: str) -> str | None:
    value = record.get(key)
    if isinstance(value, str) and value:
        return value
    return None


def parse_project(record: Any) -> Project | None:
    """Parse one project record. Returns None if it has no usable title."""
    if not isinstance(record, dict):
        return None
    title = record.get("title")
    if not isinstance(title, str) or not title.strip():
        return None
    return Project(
        title=title,
        category=_optional_str(record, "category"),
        date_added=parse_date_added(record.get("dateAdded")),
        rating=parse_rating(record.get("rating")),
        folder=_optional_str(record, "folder"),
        name=_optional_str(record, "name"),
        extra={k: v for k, v in record.items() if k not in _PROJECT_KEYS},
    )


def parse_collection(record: Any) -> ProjectCollection | None:
    """Parse one collection record. Returns None without a string id."""
    if not isinstance(record, dict):
        return None
    collection_id = record.get("id")
    if not isinstance(collection_id, str) or not collection_id:
        return None
    raw_ids = record.get("projects", [])
    project_ids = (
        [pid for pid in raw_ids if isinstance(pid, str)] if isinstance(raw_ids, list) else []
    )
    name = record.get("name")
    description = record.get("description")
    return ProjectCollection(
        id=collection_id,
        name=name if isinstance(name, str) else collection_id,
        description=description if isinstance(description, str) else "",
        project_ids=project_ids,
    )


def parse_catalog_data(data: Any) -> Catalog:
    """Build a catalog from decoded JSON: a list of projects or an object with sections."""
    if isinstance(data, list):
        raw_projects: Any = data
        raw_collections: Any = []
    elif isinstance(data, dict):
        raw_projects = data.get("projects", [])
        raw_collections = data.get("collections", [])
    else:
        raise CatalogError("Catalog must be a JSON list or object")
    if not isinstance(raw_projects, list):
        raise CatalogError("Catalog 'projects' must be a list")
    if not isinstance(raw_collections, list):
        logger.warning("Catalog 'collections' is not a list, ignoring it")
        raw_collections = []

    catalog = Catalog()
    for index, record in enumerate(raw_projects):
        project = parse_project(record)
        if project is None:
            logger.warning("Skipping project record %d without a title", index)
            continue
        catalog.projects.append(project)
    for index, record in enumerate(raw_collections):
        collection = parse_collection(record)
        if collection is None:
            logger.warning("Skipping collection record %d without an id", index)
            continue
        catalog.collections.append(collection)
    return catalog


def load_catalog(path: Path) -> Catalog:
    """Load a catalog from a JSON file.

    Raises:
        CatalogError: The file is not UTF-8 JSON or has the wrong shape.
        OSError: The file cannot be read.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise CatalogError(f"{path} is not valid JSON: {e}") from e
    except UnicodeDecodeError as e:
        raise CatalogError(f"{path} is not UTF-8 text: {e.reason}") from e
    catalog = parse_catalog_data(data)
    logger.debug(
        "Loaded catalog %s: %d projects, %d collections",
        path,
        len(catalog.projects),
        len(catalog.collections),
    )
    return catalog


__all__ = [
    "Catalog",
    "CatalogError",
    "load_catalog",
    "parse_catalog_data",
    "parse_collection",
    "parse_date_added",
    "parse_project",
    "parse_rating",
]
