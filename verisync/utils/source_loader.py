# verisync/utils/source_loader.py
"""
Utility for loading and resolving source definitions.

Named sources live in sources.yaml at the working directory root. A CLI
argument that is not a known name is interpreted as an ad-hoc source: a
local directory, a saved manifest file, or a ``user@host[:port]`` target.
"""
import os
import re
from pathlib import Path
from typing import Dict, Optional

import yaml
from pydantic import ValidationError

from verisync.exceptions import ConfigurationError
from verisync.schemas.settings import settings
from verisync.schemas.source import SourceConfig
from verisync.utils.logger import setup_logger

logger = setup_logger(__name__)

SOURCES_FILENAME = "sources.yaml"

_source_registry_cache: Optional[dict] = None

_SSH_TARGET_RE = re.compile(r"^(?:(?P<user>[^@\s]+)@)?(?P<host>[^:@\s/]+)(?::(?P<port>\d+))?$")


def _load_registry_from_file() -> dict:
    """Loads sources.yaml and caches it in memory.

    A missing file is not an error: it simply means no named sources exist.

    :return: Mapping of source name to its raw configuration.
    :rtype: dict
    :raises ConfigurationError: If the file contains invalid YAML.
    """
    global _source_registry_cache
    if _source_registry_cache is None:
        registry_path = Path(SOURCES_FILENAME)
        if not registry_path.is_file():
            _source_registry_cache = {}
            return _source_registry_cache
        try:
            with registry_path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.exception("Failed to parse sources.yaml")
            raise ConfigurationError(f"Invalid YAML in sources.yaml: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError("sources.yaml must map source names to settings.")
        _source_registry_cache = data
    return _source_registry_cache


def _resolve_secret(source_name: str, value: str) -> str:
    secret_key = value[2:-1]
    secret_value = os.environ.get(secret_key)
    if secret_value is None:
        secret_value = getattr(settings, secret_key.lower(), None)
    if secret_value is None:
        raise ConfigurationError(
            f"Secret '{secret_key}' for source '{source_name}' not found in environment or .env file."
        )
    return str(secret_value)


def list_sources() -> Dict[str, dict]:
    """Return the raw registry (name -> settings) from sources.yaml."""
    return dict(_load_registry_from_file())


def get_source(source_name: str) -> SourceConfig:
    """Loads a named source from sources.yaml and resolves secrets.

    :param source_name: The name of the source to load.
    :type source_name: str
    :return: A validated `SourceConfig` with all placeholders resolved.
    :rtype: SourceConfig
    :raises ConfigurationError: If the source is not found, a secret is missing,
                                or the configuration is invalid.
    """
    registry = _load_registry_from_file()
    raw = registry.get(source_name)
    if not raw:
        raise ConfigurationError(f"Source '{source_name}' not found in sources.yaml.")

    source_config = {"name": source_name, **dict(raw)}
    for key, value in list(source_config.items()):
        if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
            source_config[key] = _resolve_secret(source_name, value)

    if source_config.get("kind", "ssh") == "ssh" and not source_config.get(
        "private_key_path"
    ):
        source_config["private_key_path"] = settings.ssh_key

    try:
        return SourceConfig(**source_config)
    except ValidationError as e:
        logger.error(f"Validation error for source '{source_name}': {e}")
        raise ConfigurationError(
            f"Invalid configuration for source '{source_name}': {e}"
        ) from e


def resolve_source(arg: str, id_field: Optional[str] = None) -> SourceConfig:
    """Turn a CLI source argument into a `SourceConfig`.

    Resolution order: a name in sources.yaml, an existing directory, an
    existing file, then ``user@host[:port]``.

    :raises ConfigurationError: If `arg` matches none of the above.
    """
    if arg in _load_registry_from_file():
        source = get_source(arg)
    else:
        path = Path(arg).expanduser()
        if path.is_dir():
            source = SourceConfig(name=path.name or arg, kind="local", root=str(path))
        elif path.is_file():
            source = SourceConfig(name=path.stem, kind="file", root=str(path))
        else:
            match = _SSH_TARGET_RE.match(arg)
            if not match or "@" not in arg:
                raise ConfigurationError(
                    f"Cannot resolve source '{arg}': not a configured name, "
                    "an existing path, or a user@host target."
                )
            source = SourceConfig(
                name=match.group("host"),
                kind="ssh",
                host=match.group("host"),
                username=match.group("user"),
                ssh_port=int(match.group("port") or 22),
                private_key_path=settings.ssh_key,
            )

    if id_field:
        source = source.model_copy(update={"id_field": id_field})
    logger.debug(f"Resolved source '{arg}' as {source.kind} -> {source.target}")
    return source
