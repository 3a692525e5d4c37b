# verisync/utils/config.py
"""
Minimal config loader with caching and gentle fallbacks.

- Reads ./config.yaml if present.
- Merges simple environment overrides (fetch timeout, detail limit, preview count).
- Returns a plain dict so callers can do .get(...) safely.
- Exposes reload_config() for tests.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict

import yaml

from verisync.exceptions import ConfigurationError

# Plain stdlib logger: the root logger is configured from this module's output.
logger = logging.getLogger(__name__)

CONFIG_FILENAME = "config.yaml"

DEFAULT_DETAIL_LIMIT = 3
DEFAULT_PREVIEW_COUNT = 5

_CONFIG_CACHE: Dict[str, Any] | None = None

_ENV_OVERRIDES = {
    "VERISYNC_FETCH_TIMEOUT": ("fetch", "timeout", float),
    "VERISYNC_DETAIL_LIMIT": ("report", "detail_limit", int),
    "VERISYNC_PREVIEW_COUNT": ("report", "preview_count", int),
}


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        logger.error("Failed to parse %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        return {}
    return data


def _apply_env_overrides(cfg: Dict[str, Any]) -> Dict[str, Any]:
    for env_name, (section, key, cast) in _ENV_OVERRIDES.items():
        raw = os.environ.get(env_name)
        if not raw:
            continue
        try:
            value = cast(raw)
        except ValueError:
            logger.warning("Ignoring non-numeric %s=%r", env_name, raw)
            continue
        block = dict(cfg.get(section) or {})
        block[key] = value
        cfg[section] = block
    return cfg


def get_config() -> Dict[str, Any]:
    global _CONFIG_CACHE
    if _CONFIG_CACHE is not None:
        return _CONFIG_CACHE

    cfg = _read_yaml(Path(CONFIG_FILENAME))
    cfg = _apply_env_overrides(cfg)
    _CONFIG_CACHE = cfg
    return _CONFIG_CACHE


def reload_config() -> Dict[str, Any]:
    """Clear cache and reload (primarily for tests)."""
    global _CONFIG_CACHE
    _CONFIG_CACHE = None
    return get_config()


def _setting(section: str, key: str, default: Any, cast: Callable[[Any], Any]) -> Any:
    block = get_config().get(section) or {}
    if not isinstance(block, dict):
        raise ConfigurationError(f"config.yaml section '{section}' must be a mapping")
    value = block.get(key)
    if value is None:
        value = default
    try:
        return cast(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            f"config.yaml {section}.{key} must be a number, got {value!r}"
        ) from e


def get_detail_limit() -> int:
    return _setting("report", "detail_limit", DEFAULT_DETAIL_LIMIT, int)


def get_preview_count() -> int:
    return _setting("report", "preview_count", DEFAULT_PREVIEW_COUNT, int)


def get_fetch_timeout() -> float:
    """Fetch timeout from config.yaml, else the VERISYNC_FETCH_TIMEOUT setting.

    :raises ConfigurationError: If the configured value is not a number.
    """
    from verisync.schemas.settings import settings

    timeout = _setting("fetch", "timeout", settings.fetch_timeout, float)
    if timeout <= 0:
        raise ConfigurationError(f"fetch timeout must be positive, got {timeout}")
    return timeout
