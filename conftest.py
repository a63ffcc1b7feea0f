"""Shared test fixtures for project browser tests."""

from __future__ import annotations

import logging
from datetime import date

import pytest

from project_browser import (
    Badge,
    Project,
    ProjectCollection,
    ProjectVisibilityEngine,
    ScoreTableRankingSource,
)

# ── Global state isolation ───────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def _isolate_config_and_logging(tmp_path, monkeypatch):
    """Point the config file at a temp dir and undo logging.disable() after each test.

    cli.main() persists the session query and, without --debug, disables all
    logging process-wide. Neither may leak into other tests.
    """
    config_file = tmp_path / "config" / "config.json"
    monkeypatch.setattr("project_browser.config.get_config_path", lambda: config_file)
    yield
    logging.disable(logging.NOTSET)


# ── Factories ────────────────────────────────────────────────────────────────


@pytest.fixture
def make_project():
    """Factory fixture for creating Project instances with sensible defaults."""

    def _make(
        title: str = "Test Project",
        category: str | None = "tools",
        date_added: date | None = None,
        rating: float | None = None,
        folder: str | None = None,
        name: str | None = None,
    ) -> Project:
        return Project(
            title=title,
            category=category,
            date_added=date_added,
            rating=rating,
            folder=folder,
            name=name,
        )

    return _make


@pytest.fixture
def sample_projects(make_project) -> list[Project]:
    """Five projects covering every sortable field, including missing values."""
    return [
        make_project("Weather App", "apps", date(2024, 3, 1), 4.5, folder="weather-app"),
        make_project("calculator", "tools", date(2024, 1, 10), 3.0, folder="calculator"),
        make_project("Snake Game", "games", None, 4.8, folder="snake-game"),
        make_project("Todo List", "Apps", date(2024, 6, 15), None, name="todo"),
        make_project("Markdown Preview", None, date(2023, 12, 24), 2.5),
    ]


@pytest.fixture
def ranking_source() -> ScoreTableRankingSource:
    """Ranking data keyed by the identifiers of sample_projects."""
    return ScoreTableRankingSource(
        scores={
            "weather-app": 12.0,
            "calculator": 3.5,
            "snake-game": 40.0,
            "todo": 7.25,
            "ghost-project": 99.0,
        },
        badges={
            "snake-game": Badge(kind="hot", label="Hot"),
            "todo": Badge(kind="rising", label="Rising"),
        },
        hidden_gems={"calculator": 0.9, "Markdown Preview": 0.8, "missing": 0.7},
    )


@pytest.fixture
def sample_collections() -> list[ProjectCollection]:
    return [
        ProjectCollection(id="starter", name="Starter kit", project_ids=["calculator", "todo"]),
        ProjectCollection(id="empty", name="Empty"),
    ]


@pytest.fixture
def make_engine(sample_projects):
    """Factory fixture for engines over sample_projects."""

    def _make(**kwargs) -> ProjectVisibilityEngine:
        projects = kwargs.pop("projects", sample_projects)
        return ProjectVisibilityEngine(projects, **kwargs)

    return _make
