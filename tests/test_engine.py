"""Tests for ProjectVisibilityEngine state, derivations, and ranking integration."""

from __future__ import annotations

import logging
from dataclasses import replace

import pytest

from project_browser import (
    Badge,
    InvalidSortModeError,
    ProjectVisibilityEngine,
    QueryState,
    ScoreTableRankingSource,
)
from project_browser.models import SORT_OPTIONS


def _titles(projects) -> list[str]:
    return [p.title for p in projects]


class TestInitialState:
    def test_defaults(self, make_engine) -> None:
        state = make_engine().state
        assert state.search_query == ""
        assert state.categories == {"all"}
        assert state.collection_id is None
        assert state.page == 1
        assert state.items_per_page == 10
        assert state.sort_mode == "default"

    @pytest.mark.parametrize("size", [0, -3])
    def test_non_positive_page_size_rejected(self, size) -> None:
        with pytest.raises(ValueError, match="items_per_page"):
            ProjectVisibilityEngine([], items_per_page=size)

    def test_state_snapshot_is_detached(self, make_engine) -> None:
        engine = make_engine()
        snapshot = engine.state
        snapshot.categories.add("tools")
        snapshot.page = 9
        assert engine.state.categories == {"all"}
        assert engine.state.page == 1

    def test_projects_are_read_only_copy(self, sample_projects) -> None:
        engine = ProjectVisibilityEngine(sample_projects)
        sample_projects.clear()
        assert len(engine.projects) == 5

    def test_get_categories(self, make_engine) -> None:
        assert make_engine().get_categories() == ["apps", "games", "tools"]


class TestMutators:
    def test_search_is_lowercased(self, make_engine) -> None:
        engine = make_engine()
        engine.set_search_query("WeAtHeR")
        assert engine.state.search_query == "weather"

    def test_toggle_example_returns_to_all(self, make_engine) -> None:
        engine = make_engine()
        engine.toggle_category("Tools")
        assert engine.state.categories == {"tools"}
        engine.toggle_category("tools")
        assert engine.state.categories == {"all"}

    def test_toggle_all_clears_selection(self, make_engine) -> None:
        engine = make_engine()
        engine.toggle_category("tools")
        engine.toggle_category("games")
        engine.toggle_category("all")
        assert engine.state.categories == {"all"}

    def test_toggle_accepts_unknown_tokens(self, make_engine) -> None:
        engine = make_engine()
        engine.toggle_category("does-not-exist")
        assert engine.state.categories == {"does-not-exist"}
        assert engine.get_visible_projects() == []
        assert engine.is_empty()

    def test_blank_toggle_is_noop_but_resets_page(self, make_engine) -> None:
        engine = make_engine()
        engine.toggle_category("tools")
        engine.set_page(3)
        engine.toggle_category("")
        state = engine.state
        assert state.categories == {"tools"}
        assert state.page == 1

    @pytest.mark.parametrize(
        "mutate",
        [
            lambda e: e.set_search_query(""),
            lambda e: e.toggle_category("all"),
            lambda e: e.set_collection(None),
            lambda e: e.set_sort_mode("default"),
        ],
        ids=["search", "category", "collection", "sort"],
    )
    def test_criteria_mutators_reset_page_even_when_unchanged(self, make_engine, mutate) -> None:
        engine = make_engine()
        engine.set_page(4)
        mutate(engine)
        assert engine.state.page == 1

    def test_set_page_is_not_clamped(self, make_engine) -> None:
        engine = make_engine()
        engine.set_page(500)
        assert engine.state.page == 500
        engine.set_page(0)
        assert engine.state.page == 0

    def test_set_collection_stores_and_clears(self, make_engine) -> None:
        engine = make_engine()
        engine.set_collection("starter")
        assert engine.state.collection_id == "starter"
        engine.set_collection("")
        assert engine.state.collection_id is None

    @pytest.mark.parametrize("mode", SORT_OPTIONS)
    def test_every_sort_option_accepted(self, make_engine, mode) -> None:
        engine = make_engine()
        engine.set_sort_mode(mode)
        assert engine.state.sort_mode == mode

    def test_unknown_sort_mode_rejected_and_state_kept(self, make_engine) -> None:
        engine = make_engine()
        engine.set_sort_mode("az")
        engine.set_page(3)
        with pytest.raises(InvalidSortModeError) as exc_info:
            engine.set_sort_mode("alphabetical")
        assert exc_info.value.mode == "alphabetical"
        assert isinstance(exc_info.value, ValueError)
        assert engine.state.sort_mode == "az"
        assert engine.state.page == 3

    def test_reset_restores_initial_state(self, make_engine) -> None:
        engine = make_engine(items_per_page=3)
        engine.set_search_query("x")
        engine.toggle_category("tools")
        engine.set_collection("starter")
        engine.set_sort_mode("za")
        engine.set_page(2)
        engine.reset()
        assert engine.state == QueryState(items_per_page=3)

    def test_restore_state_normalizes_and_keeps_page(self, make_engine) -> None:
        engine = make_engine(items_per_page=2)
        engine.restore_state(
            QueryState(
                search_query="SNAKE",
                categories={"Games", "all"},
                collection_id="",
                page=7,
                items_per_page=50,
                sort_mode="nope",
            )
        )
        state = engine.state
        assert state.search_query == "snake"
        assert state.categories == {"all"}
        assert state.collection_id is None
        assert state.page == 7
        assert state.items_per_page == 2
        assert state.sort_mode == "default"


class TestVisibleProjects:
    def test_search_then_rating_sort(self, make_project) -> None:
        alpha = make_project(title="Alpha", category="tools", rating=4)
        beta = make_project(title="Beta", category="games", rating=2)
        engine = ProjectVisibilityEngine([alpha, beta])
        engine.set_search_query("a")
        assert engine.get_visible_projects() == [alpha, beta]
        engine.set_sort_mode("rating-high")
        assert engine.get_visible_projects() == [alpha, beta]

    def test_category_filter_is_case_insensitive(self, make_engine) -> None:
        engine = make_engine()
        engine.toggle_category("APPS")
        assert _titles(engine.get_visible_projects()) == ["Weather App", "Todo List"]

    def test_multiple_categories(self, make_engine) -> None:
        engine = make_engine()
        engine.toggle_category("tools")
        engine.toggle_category("games")
        assert _titles(engine.get_visible_projects()) == ["calculator", "Snake Game"]

    def test_filter_then_sort(self, make_engine) -> None:
        engine = make_engine()
        engine.set_search_query("a")
        engine.set_sort_mode("az")
        assert _titles(engine.get_visible_projects()) == [
            "calculator",
            "Markdown Preview",
            "Snake Game",
            "Weather App",
        ]

    def test_collection_scope_with_registry(self, make_engine, sample_collections) -> None:
        engine = make_engine(collections=sample_collections)
        engine.set_collection("starter")
        assert _titles(engine.get_visible_projects()) == ["calculator", "Todo List"]
        engine.set_collection("empty")
        assert engine.is_empty()
        engine.set_collection("unknown")
        assert engine.is_empty()

    def test_collection_without_registry_does_not_filter(self, make_engine) -> None:
        engine = make_engine()
        engine.set_collection("starter")
        assert len(engine.get_visible_projects()) == 5

    def test_collection_combines_with_search(self, make_engine, sample_collections) -> None:
        engine = make_engine(collections=sample_collections)
        engine.set_collection("starter")
        engine.set_search_query("todo")
        assert _titles(engine.get_visible_projects()) == ["Todo List"]

    def test_source_collection_order_untouched(self, make_engine, sample_projects) -> None:
        engine = make_engine()
        before = list(engine.projects)
        engine.set_sort_mode("za")
        engine.get_visible_projects()
        assert list(engine.projects) == before

    def test_recomputes_after_every_change(self, make_engine) -> None:
        engine = make_engine()
        assert engine.get_visible_count() == 5
        engine.set_search_query("snake")
        assert engine.get_visible_count() == 1
        engine.set_search_query("")
        assert engine.get_visible_count() == 5

    def test_is_filtered(self, make_engine) -> None:
        engine = make_engine()
        assert not engine.is_filtered()
        engine.set_sort_mode("az")
        assert not engine.is_filtered()
        engine.toggle_category("tools")
        assert engine.is_filtered()


class TestPagination:
    def test_pages_cover_visible_projects(self, make_engine) -> None:
        engine = make_engine(items_per_page=2)
        engine.set_sort_mode("az")
        assert engine.get_total_pages() == 3
        collected = []
        for page in range(1, engine.get_total_pages() + 1):
            engine.set_page(page)
            collected.extend(engine.get_paginated_projects())
        assert collected == engine.get_visible_projects()

    def test_out_of_range_page_is_empty(self, make_engine) -> None:
        engine = make_engine(items_per_page=2)
        engine.set_page(4)
        assert engine.get_paginated_projects() == []
        engine.set_page(0)
        assert engine.get_paginated_projects() == []
        engine.set_page(-2)
        assert engine.get_paginated_projects() == []

    def test_zero_pages_when_nothing_matches(self, make_engine) -> None:
        engine = make_engine()
        engine.set_search_query("zzz")
        assert engine.get_total_pages() == 0
        assert engine.get_paginated_projects() == []
        assert engine.is_empty()

    def test_empty_collection(self) -> None:
        engine = ProjectVisibilityEngine()
        assert engine.is_empty()
        assert engine.get_total_pages() == 0


class TestWithoutRankingSource:
    def test_has_no_source(self, make_engine) -> None:
        assert not make_engine().has_ranking_source

    def test_trending_sort_is_noop(self, make_engine, sample_projects) -> None:
        engine = make_engine()
        engine.set_sort_mode("trending")
        assert engine.get_visible_projects() == sample_projects

    def test_discovery_lists_empty(self, make_engine) -> None:
        engine = make_engine()
        assert engine.get_trending_projects() == []
        assert engine.get_hidden_gems() == []

    def test_every_badge_is_none(self, make_engine, sample_projects) -> None:
        badged = make_engine().get_projects_with_badges()
        assert [b.project for b in badged] == sample_projects
        assert all(b.badge is None for b in badged)


class TestWithRankingSource:
    def test_attach_via_constructor(self, make_engine, ranking_source) -> None:
        assert make_engine(ranking_source=ranking_source).has_ranking_source

    def test_attach_and_detach(self, make_engine, ranking_source) -> None:
        engine = make_engine()
        engine.attach_ranking_source(ranking_source)
        assert engine.has_ranking_source
        engine.detach_ranking_source()
        assert not engine.has_ranking_source
        assert engine.get_trending_projects() == []

    def test_attach_rejects_non_conforming_object(self, make_engine) -> None:
        class Incomplete:
            def score_of(self, project_id: str) -> float:
                return 1.0

        engine = make_engine()
        with pytest.raises(TypeError, match="RankingSource"):
            engine.attach_ranking_source(Incomplete())  # type: ignore[arg-type]
        assert not engine.has_ranking_source

    def test_trending_sort(self, make_engine, ranking_source) -> None:
        engine = make_engine(ranking_source=ranking_source)
        engine.set_sort_mode("trending")
        assert _titles(engine.get_visible_projects()) == [
            "Snake Game",
            "Weather App",
            "Todo List",
            "calculator",
            "Markdown Preview",
        ]

    def test_trending_sort_coerces_bad_scores(self, make_project) -> None:
        odd_scores = {"a": float("nan"), "b": 2.0, "c": None}

        class OddScores(ScoreTableRankingSource):
            def score_of(self, project_id: str) -> float:
                return odd_scores.get(project_id, 0.0)  # type: ignore[return-value]

        projects = [make_project(title=t) for t in ("a", "b", "c")]
        engine = ProjectVisibilityEngine(projects, ranking_source=OddScores())
        engine.set_sort_mode("trending")
        assert _titles(engine.get_visible_projects()) == ["b", "a", "c"]

    def test_badges_follow_visible_order(self, make_engine, ranking_source) -> None:
        engine = make_engine(ranking_source=ranking_source, items_per_page=1)
        engine.set_sort_mode("rating-high")
        badged = engine.get_projects_with_badges()
        assert len(badged) == 5
        assert [b.project.title for b in badged][:2] == ["Snake Game", "Weather App"]
        assert badged[0].badge == Badge(kind="hot", label="Hot")
        assert badged[1].badge is None

    def test_badges_respect_filter(self, make_engine, ranking_source) -> None:
        engine = make_engine(ranking_source=ranking_source)
        engine.toggle_category("apps")
        badged = engine.get_projects_with_badges()
        assert [(b.project.title, b.badge) for b in badged] == [
            ("Weather App", None),
            ("Todo List", Badge(kind="rising", label="Rising")),
        ]

    def test_trending_projects_resolve_and_drop_unknown(self, make_engine, ranking_source) -> None:
        engine = make_engine(ranking_source=ranking_source)
        ranked = engine.get_trending_projects(10)
        assert [(r.project.title, r.score) for r in ranked] == [
            ("Snake Game", 40.0),
            ("Weather App", 12.0),
            ("Todo List", 7.25),
            ("calculator", 3.5),
        ]

    def test_trending_limit_applies_before_resolution(self, make_engine, ranking_source) -> None:
        engine = make_engine(ranking_source=ranking_source)
        # The top entry is unknown to the catalog, so only one project survives
        assert [r.project.title for r in engine.get_trending_projects(2)] == ["Snake Game"]

    def test_hidden_gems(self, make_engine, ranking_source) -> None:
        engine = make_engine(ranking_source=ranking_source)
        gems = engine.get_hidden_gems()
        assert [(g.project.title, g.score) for g in gems] == [
            ("calculator", 0.9),
            ("Markdown Preview", 0.8),
        ]

    def test_discovery_ignores_query_state(self, make_engine, ranking_source) -> None:
        engine = make_engine(ranking_source=ranking_source, items_per_page=1)
        baseline = engine.get_trending_projects()
        engine.set_search_query("nothing matches this")
        engine.toggle_category("games")
        engine.set_page(9)
        assert engine.get_trending_projects() == baseline
        assert len(engine.get_hidden_gems()) == 2

    def test_first_project_wins_for_duplicate_identifiers(self, make_project) -> None:
        first = make_project(title="One", folder="dup")
        second = make_project(title="Two", folder="dup")
        source = ScoreTableRankingSource(scores={"dup": 1.0})
        engine = ProjectVisibilityEngine([first, second], ranking_source=source)
        assert [r.project for r in engine.get_trending_projects()] == [first]

    def test_unknown_identifier_logged(self, make_engine, ranking_source, caplog) -> None:
        engine = make_engine(ranking_source=ranking_source)
        with caplog.at_level(logging.DEBUG, logger="project_browser.engine"):
            engine.get_trending_projects()
        assert "ghost-project" in caplog.text


class TestUrlHelpers:
    def test_default_state_encodes_empty(self, make_engine) -> None:
        engine = make_engine()
        assert engine.to_url_query() == ""
        assert engine.build_url("/projects") == "/projects"

    def test_round_trip_through_engine(self, make_engine) -> None:
        engine = make_engine(items_per_page=2)
        engine.toggle_category("apps")
        engine.toggle_category("games")
        engine.set_search_query("a")
        engine.set_sort_mode("newest")
        engine.set_page(2)
        query = engine.to_url_query()

        other = make_engine(items_per_page=2)
        other.apply_url_query(query)
        assert other.state == engine.state
        assert other.get_paginated_projects() == engine.get_paginated_projects()

    def test_blank_category_toggle_survives_round_trip(self, make_engine) -> None:
        engine = make_engine()
        engine.toggle_category("")
        engine.toggle_category(" ")
        other = make_engine()
        other.apply_url_query(engine.to_url_query())
        assert other.state == engine.state == QueryState()

    def test_apply_url_query_keeps_page(self, make_engine) -> None:
        engine = make_engine()
        engine.apply_url_query("?page=3&sort=za")
        assert engine.state.page == 3
        assert engine.state.sort_mode == "za"

    def test_build_url_with_state(self, make_engine) -> None:
        engine = make_engine()
        engine.toggle_category("tools")
        assert engine.build_url("/projects") == "/projects?category=tools"


def test_project_records_never_mutated(make_engine, ranking_source) -> None:
    engine = make_engine(ranking_source=ranking_source)
    snapshot = [replace(p) for p in engine.projects]
    for mode in SORT_OPTIONS:
        engine.set_sort_mode(mode)
        engine.get_projects_with_badges()
        engine.get_trending_projects()
    assert list(engine.projects) == snapshot
