"""Command-line entry point for browsing a project catalog."""

from __future__ import annotations

import argparse
import logging
import logging.handlers
import os
import sys
from collections.abc import Callable
from pathlib import Path

from platformdirs import user_config_dir
from rich.console import Console

from project_browser.config import load_config, save_config
from project_browser.display import render_view
from project_browser.engine import ProjectVisibilityEngine
from project_browser.models import (
    CONFIG_APP_NAME,
    MAX_ITEMS_PER_PAGE,
    SORT_OPTIONS,
    UserConfig,
)
from project_browser.parsing import Catalog, CatalogError, load_catalog
from project_browser.ranking import RankingFileError, ScoreTableRankingSource, load_ranking_file

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_FILENAME = "projects.json"


def build_actionable_error(action: str, *, why: str, next_step: str) -> str:
    """Build a 3-line error: what failed, why, and what to try next."""
    return "\n".join(
        [
            f"Could not {action}.",
            f"Why: {why.rstrip('.')}.",
            f"Next step: {next_step.rstrip('.')}.",
        ]
    )


def _page_size(value: str) -> int:
    """argparse type for --per-page."""
    try:
        size = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid page size: {value!r}") from None
    if size < 1 or size > MAX_ITEMS_PER_PAGE:
        raise argparse.ArgumentTypeError(f"page size must be 1-{MAX_ITEMS_PER_PAGE}")
    return size


def _resolve_catalog_path(args: argparse.Namespace, config: UserConfig, base_dir: Path) -> Path:
    if args.input is not None:
        return args.input
    if config.catalog_path:
        return Path(config.catalog_path).expanduser()
    return base_dir / DEFAULT_CATALOG_FILENAME


def _load_catalog_or_report(path: Path) -> Catalog | None:
    """Load the catalog, printing an actionable error on failure."""
    try:
        return load_catalog(path)
    except FileNotFoundError:
        why = f"{path} does not exist"
    except IsADirectoryError:
        why = f"{path} is a directory, not a file"
    except OSError as e:
        why = f"{path} could not be read ({e.strerror or e})"
    except CatalogError as e:
        why = str(e)
    print(
        build_actionable_error(
            "load the project catalog",
            why=why,
            next_step=f"pass --input with a JSON catalog or create ./{DEFAULT_CATALOG_FILENAME}",
        ),
        file=sys.stderr,
    )
    return None


def _load_ranking_or_report(path: Path) -> ScoreTableRankingSource | None:
    """Load the ranking file, printing an actionable error on failure."""
    try:
        return load_ranking_file(path)
    except OSError as e:
        why = f"{path} could not be read ({e.strerror or e})"
    except RankingFileError as e:
        why = str(e)
    print(
        build_actionable_error(
            "load ranking data",
            why=why,
            next_step="fix the file or run without --ranking",
        ),
        file=sys.stderr,
    )
    return None


def _apply_query_args(engine: ProjectVisibilityEngine, args: argparse.Namespace) -> None:
    """Apply explicit CLI filters on top of the restored state.

    The page goes last because every other setter resets it to 1.
    """
    if args.search is not None:
        engine.set_search_query(args.search)
    for category in args.category or []:
        engine.toggle_category(category)
    if args.collection is not None:
        engine.set_collection(args.collection)
    if args.sort is not None:
        engine.set_sort_mode(args.sort)
    if args.page is not None:
        engine.set_page(args.page)


def _print_categories(console: Console, engine: ProjectVisibilityEngine) -> None:
    categories = engine.get_categories()
    if not categories:
        console.print("No categories in this catalog.")
        return
    console.print("Available categories:")
    for category in categories:
        console.print(f"  {category}", markup=False)


def _print_collections(console: Console, engine: ProjectVisibilityEngine) -> None:
    collections = engine.collections
    if not collections:
        console.print("No collections in this catalog.")
        return
    console.print("Available collections:")
    for collection in collections:
        console.print(
            f"  {collection.id}  {collection.name} ({len(collection.project_ids)} projects)",
            markup=False,
        )


def _configure_logging(debug: bool) -> None:
    """Configure logging. When debug=True, logs to file at DEBUG level."""
    if not debug:
        logging.disable(logging.CRITICAL)
        return

    log_dir = Path(user_config_dir(CONFIG_APP_NAME))
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "debug.log"

    handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    logging.root.addHandler(handler)
    logging.root.setLevel(logging.DEBUG)


def _configure_color_mode(color_mode: str) -> None:
    """Configure environment hints for terminal color behavior."""
    if color_mode == "never":
        os.environ["NO_COLOR"] = "1"
        os.environ.pop("FORCE_COLOR", None)
        return
    if color_mode == "always":
        os.environ["FORCE_COLOR"] = "1"
        os.environ.pop("NO_COLOR", None)
        return
    os.environ.pop("FORCE_COLOR", None)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="project-browser",
        description="Search, filter, sort, and page through a project catalog",
    )
    parser.add_argument(
        "-i",
        "--input",
        type=Path,
        default=None,
        help=f"JSON project catalog (default: config value or ./{DEFAULT_CATALOG_FILENAME})",
    )
    parser.add_argument(
        "--ranking",
        type=Path,
        default=None,
        help="JSON ranking data enabling trending sort, badges, and discovery lists",
    )
    parser.add_argument(
        "--state",
        type=str,
        default=None,
        help="Start from a URL query string, e.g. 'category=tools&sort=az&page=2'",
    )
    parser.add_argument("-s", "--search", type=str, default=None, help="Title search text")
    parser.add_argument(
        "-c",
        "--category",
        action="append",
        default=None,
        help="Toggle a category filter (repeatable; 'all' clears the filter)",
    )
    parser.add_argument("--collection", type=str, default=None, help="Scope to a collection id")
    parser.add_argument("--sort", choices=SORT_OPTIONS, default=None, help="Sort mode")
    parser.add_argument("-p", "--page", type=int, default=None, help="1-based page number")
    parser.add_argument(
        "--per-page",
        type=_page_size,
        default=None,
        help=f"Projects per page (1-{MAX_ITEMS_PER_PAGE}; default: config value)",
    )
    parser.add_argument("--badges", action="store_true", help="Show ranking badges")
    parser.add_argument(
        "--trending",
        type=int,
        nargs="?",
        const=-1,
        default=0,
        metavar="N",
        help="Also list the top N trending projects (default N: config value)",
    )
    parser.add_argument(
        "--hidden-gems",
        type=int,
        nargs="?",
        const=-1,
        default=0,
        metavar="N",
        help="Also list N hidden gems (default N: config value)",
    )
    parser.add_argument(
        "--list-categories", action="store_true", help="List catalog categories and exit"
    )
    parser.add_argument(
        "--list-collections", action="store_true", help="List catalog collections and exit"
    )
    parser.add_argument(
        "--no-restore",
        action="store_true",
        help="Ignore the query saved from the previous run",
    )
    parser.add_argument(
        "--no-save",
        action="store_true",
        help="Do not save the resulting query for the next run",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging to file (~/.config/project-browser/debug.log)",
    )
    parser.add_argument(
        "--color",
        choices=["auto", "always", "never"],
        default="auto",
        help="Color output mode (default: auto)",
    )
    return parser


def main(
    argv: list[str] | None = None,
    *,
    load_config_fn: Callable[[], UserConfig] = load_config,
    save_config_fn: Callable[[UserConfig], bool] = save_config,
    configure_logging_fn: Callable[[bool], None] = _configure_logging,
    configure_color_mode_fn: Callable[[str], None] = _configure_color_mode,
    console: Console | None = None,
) -> int:
    """Main entry point. Returns exit code."""
    args = build_parser().parse_args(argv)

    configure_color_mode_fn(args.color)
    configure_logging_fn(args.debug)
    logger.debug("project-browser starting, cwd=%s", Path.cwd())

    config = load_config_fn()
    if console is None:
        console = Console()

    catalog = _load_catalog_or_report(_resolve_catalog_path(args, config, Path.cwd()))
    if catalog is None:
        return 1

    ranking: ScoreTableRankingSource | None = None
    ranking_path = args.ranking or (
        Path(config.ranking_path).expanduser() if config.ranking_path else None
    )
    if ranking_path is not None:
        ranking = _load_ranking_or_report(ranking_path)
        if ranking is None:
            return 1

    engine = ProjectVisibilityEngine(
        catalog.projects,
        items_per_page=args.per_page or config.items_per_page,
        collections=catalog.collections,
        ranking_source=ranking,
    )

    if args.list_categories:
        _print_categories(console, engine)
        return 0
    if args.list_collections:
        _print_collections(console, engine)
        return 0

    if args.state is not None:
        engine.apply_url_query(args.state)
    elif not args.no_restore and config.session.query:
        logger.debug("Restoring session query %r", config.session.query)
        engine.apply_url_query(config.session.query)
    _apply_query_args(engine, args)

    trending_limit = config.trending_limit if args.trending < 0 else args.trending
    hidden_gems_limit = config.hidden_gems_limit if args.hidden_gems < 0 else args.hidden_gems
    render_view(
        console,
        engine,
        show_badges=args.badges,
        trending_limit=trending_limit,
        hidden_gems_limit=hidden_gems_limit,
    )

    if not args.no_save:
        config.session.query = engine.to_url_query()
        if not save_config_fn(config):
            logger.warning("Session query was not saved")
    return 0


__all__ = [
    "build_actionable_error",
    "build_parser",
    "main",
]
