"""Ranking source interface and a table-backed adapter.

The engine consumes popularity data through the narrow ``RankingSource``
protocol; computing the scores is the source's business. The bundled
``ScoreTableRankingSource`` serves precomputed tables, typically loaded from a
JSON export of an analytics job.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from project_browser.models import Badge

logger = logging.getLogger(__name__)


class RankingFileError(ValueError):
    """Raised when a ranking file cannot be parsed at all."""


@runtime_checkable
class RankingSource(Protocol):
    """Interface for popularity data keyed by project identifier."""

    def score_of(self, project_id: str) -> float:
        """Return the popularity score for one project."""
        ...

    def badge_of(self, project_id: str) -> Badge | None:
        """Return the display badge for one project, if any."""
        ...

    def top_trending(self, limit: int) -> Sequence[tuple[str, float]]:
        """Return up to ``limit`` (project_id, score) pairs, most popular first."""
        ...

    def top_hidden_gems(self, limit: int) -> Sequence[tuple[str, float]]:
        """Return up to ``limit`` (project_id, score) pairs for under-visited projects."""
        ...


def _top_n(table: Mapping[str, float], limit: int) -> list[tuple[str, float]]:
    """Highest scores first; identifiers break ties so the order is stable."""
    if limit <= 0:
        return []
    ranked = sorted(table.items(), key=lambda item: (-item[1], item[0]))
    return ranked[:limit]


@dataclass(slots=True)
class ScoreTableRankingSource:
    """Ranking source backed by precomputed score and badge tables."""

    scores: dict[str, float] = field(default_factory=dict)
    badges: dict[str, Badge] = field(default_factory=dict)
    hidden_gems: dict[str, float] = field(default_factory=dict)

    def score_of(self, project_id: str) -> float:
        return self.scores.get(project_id, 0.0)

    def badge_of(self, project_id: str) -> Badge | None:
        return self.badges.get(project_id)

    def top_trending(self, limit: int) -> list[tuple[str, float]]:
        return _top_n(self.scores, limit)

    def top_hidden_gems(self, limit: int) -> list[tuple[str, float]]:
        return _top_n(self.hidden_gems, limit)


# ============================================================================
# Ranking File Parsing
# ============================================================================


def _parse_score(value: Any) -> float | None:
    """Accept finite ints/floats; reject bools and everything else."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        score = float(value)
    except OverflowError:
        return None
    if not math.isfinite(score):
        return None
    return score


def _parse_score_table(data: dict[str, Any], key: str) -> dict[str, float]:
    """Parse a {project_id: score} section, skipping malformed entries."""
    raw = data.get(key, {})
    if not isinstance(raw, dict):
        logger.warning("Ranking section %r is not an object, ignoring it", key)
        return {}
    result: dict[str, float] = {}
    for pid, value in raw.items():
        score = _parse_score(value)
        if not pid or score is None:
            logger.warning("Skipping invalid %s entry %r: %r", key, pid, value)
            continue
        result[pid] = score
    return result


def _parse_badges(data: dict[str, Any]) -> dict[str, Badge]:
    """Parse the badges section; entries need a non-empty string label."""
    raw = data.get("badges", {})
    if not isinstance(raw, dict):
        logger.warning("Ranking section 'badges' is not an object, ignoring it")
        return {}
    result: dict[str, Badge] = {}
    for pid, entry in raw.items():
        if not isinstance(entry, dict):
            continue
        label = entry.get("label")
        if not isinstance(label, str) or not label:
            logger.warning("Skipping badge for %r without a label", pid)
            continue
        kind = entry.get("kind")
        result[pid] = Badge(kind=kind if isinstance(kind, str) else "", label=label)
    return result


def parse_ranking_data(data: Any) -> ScoreTableRankingSource:
    """Build a ranking source from decoded JSON data."""
    if not isinstance(data, dict):
        raise RankingFileError("Ranking data must be a JSON object")
    return ScoreTableRankingSource(
        scores=_parse_score_table(data, "scores"),
        badges=_parse_badges(data),
        hidden_gems=_parse_score_table(data, "hidden_gems"),
    )


def load_ranking_file(path: Path) -> ScoreTableRankingSource:
    """Load a ranking source from a JSON file.

    Raises:
        RankingFileError: The file is not UTF-8 JSON or not a JSON object.
        OSError: The file cannot be read.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise RankingFileError(f"{path} is not valid JSON: {e}") from e
    except UnicodeDecodeError as e:
        raise RankingFileError(f"{path} is not UTF-8 text: {e.reason}") from e
    source = parse_ranking_data(data)
    logger.debug(
        "Loaded ranking file %s: %d scores, %d badges, %d hidden gems",
        path,
        len(source.scores),
        len(source.badges),
        len(source.hidden_gems),
    )
    return source


__all__ = [
    "RankingFileError",
    "RankingSource",
    "ScoreTableRankingSource",
    "load_ranking_file",
    "parse_ranking_data",
]
