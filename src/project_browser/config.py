"""Load and save the user configuration file."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir

from project_browser.models import (
    CONFIG_APP_NAME,
    DEFAULT_HIDDEN_GEMS_LIMIT,
    DEFAULT_ITEMS_PER_PAGE,
    DEFAULT_TRENDING_LIMIT,
    MAX_ITEMS_PER_PAGE,
    SessionState,
    UserConfig,
)

logger = logging.getLogger(__name__)

# ============================================================================
# Configuration Persistence
# ============================================================================
#
# Validation contract — _dict_to_config() guarantees valid output for any input:
#
#   Field              Rule                        Handler
#   ─────────────────  ──────────────────────────  ─────────────────────────
#   items_per_page     1 ≤ x ≤ MAX_ITEMS_PER_PAGE  _coerce_items_per_page
#   trending_limit     x ≥ 0                       _coerce_limit
#   hidden_gems_limit  x ≥ 0                       _coerce_limit
#   session.query      str                         _parse_session_state
#   scalar fields      type-checked via _safe_get  _dict_to_config
#
CONFIG_FILENAME = "config.json"


def get_config_path() -> Path:
    """Location of config.json in the platform config directory for this app."""
    config_dir = Path(user_config_dir(CONFIG_APP_NAME))
    return config_dir / CONFIG_FILENAME


def _config_to_dict(config: UserConfig) -> dict[str, Any]:
    """Serialize UserConfig to a JSON-compatible dictionary."""
    return {
        "version": config.version,
        "items_per_page": _coerce_items_per_page(config.items_per_page),
        "catalog_path": config.catalog_path,
        "ranking_path": config.ranking_path,
        "trending_limit": config.trending_limit,
        "hidden_gems_limit": config.hidden_gems_limit,
        "session": {"query": config.session.query},
    }


def _safe_get(data: dict, key: str, default: Any, expected_type: type) -> Any:
    """Safely get a value from dict with type validation.

    Returns the default if key is missing or value has wrong type.
    """
    value = data.get(key, default)
    if isinstance(value, bool) and expected_type is int:
        return default
    if not isinstance(value, expected_type):
        return default
    return value


def _coerce_items_per_page(value: Any) -> int:
    """Validate the configured page size; out-of-range values fall back to the default."""
    if isinstance(value, bool) or not isinstance(value, int):
        return DEFAULT_ITEMS_PER_PAGE
    if value < 1 or value > MAX_ITEMS_PER_PAGE:
        logger.warning(
            "items_per_page %d outside 1-%d, using %d",
            value,
            MAX_ITEMS_PER_PAGE,
            DEFAULT_ITEMS_PER_PAGE,
        )
        return DEFAULT_ITEMS_PER_PAGE
    return value


def _coerce_limit(data: dict[str, Any], key: str, default: int) -> int:
    value = _safe_get(data, key, default, int)
    return value if value >= 0 else default


def _parse_session_state(data: dict[str, Any]) -> SessionState:
    """Parse the session state section from config data."""
    session_data = data.get("session", {})
    if not isinstance(session_data, dict):
        session_data = {}
    return SessionState(query=_safe_get(session_data, "query", "", str))


def _dict_to_config(data: dict[str, Any]) -> UserConfig:
    """Deserialize a dictionary to UserConfig with type validation."""
    return UserConfig(
        items_per_page=_coerce_items_per_page(data.get("items_per_page", DEFAULT_ITEMS_PER_PAGE)),
        catalog_path=_safe_get(data, "catalog_path", "", str),
        ranking_path=_safe_get(data, "ranking_path", "", str),
        trending_limit=_coerce_limit(data, "trending_limit", DEFAULT_TRENDING_LIMIT),
        hidden_gems_limit=_coerce_limit(data, "hidden_gems_limit", DEFAULT_HIDDEN_GEMS_LIMIT),
        session=_parse_session_state(data),
        version=_safe_get(data, "version", 1, int),
    )


def _read_config_data(config_path: Path) -> dict[str, Any] | None:
    """Read and decode the config file. Returns None when it is unusable."""
    try:
        text = config_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        logger.warning("Config file is not UTF-8 text, using defaults: %s", e.reason)
        return None
    except OSError as e:
        logger.warning("Could not read config file, using defaults: %s", e)
        return None

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning("Config file has invalid JSON, using defaults: %s", e)
        return None
    if not isinstance(data, dict):
        logger.warning("Config file root is not an object, using defaults")
        return None
    return data


def load_config() -> UserConfig:
    """Load configuration from disk; never raises.

    A missing file yields the defaults silently. An unreadable, undecodable,
    or malformed file yields the defaults with a logged warning.
    """
    config_path = get_config_path()
    if not config_path.exists():
        return UserConfig()

    data = _read_config_data(config_path)
    if data is None:
        return UserConfig()
    try:
        return _dict_to_config(data)
    except (KeyError, TypeError) as e:
        logger.warning("Config file has invalid structure, using defaults: %s", e)
        return UserConfig()


def _replace_file(path: Path, text: str) -> None:
    """Write ``text`` next to ``path`` and swap it in with os.replace()."""
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".config-", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def save_config(config: UserConfig) -> bool:
    """Persist configuration atomically. Returns False if the write failed."""
    config_path = get_config_path()
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        text = json.dumps(_config_to_dict(config), indent=2, ensure_ascii=False)
        _replace_file(config_path, text)
    except OSError as e:
        logger.error("Failed to save config to %s: %s", config_path, e)
        return False
    logger.debug("Saved config to %s", config_path)
    return True


__all__ = [
    "CONFIG_APP_NAME",
    "CONFIG_FILENAME",
    "get_config_path",
    "load_config",
    "save_config",
]
