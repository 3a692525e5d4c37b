# verisync/core/fetcher.py
"""
Manifest fetchers: obtain raw manifest text from one source.

Every fetcher returns text in the manifest line format

    <relative path>|<entry count>|<id1>,<id2>,...,<idN>,

and either succeeds or raises FetchError/FetchTimeout naming its source.
An unreachable source never yields an empty manifest, which would make
every path on the other side look exclusive.
"""

from __future__ import annotations

import re
import shlex
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from verisync.core.decoder import scan_log_file
from verisync.exceptions import ConfigurationError, FetchError, FetchTimeout, ManifestParseError
from verisync.executors.ssh import SSHExecutor
from verisync.schemas.source import SourceConfig
from verisync.utils.logger import setup_logger

logger = setup_logger(__name__)

_ID_FIELD_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

MANIFEST_SCRIPT = r"""
command -v jq >/dev/null 2>&1 || {{ echo "jq is not installed" >&2; exit 127; }}
ROOT={root}
[ -d "$ROOT" ] || {{ echo "log root not found: $ROOT" >&2; exit 2; }}
cd "$ROOT" || exit 2
find . -name '*.jsonl' -type f 2>/dev/null | sort | while IFS= read -r f; do
    rel="${{f#./}}"
    ids=$(jq -R -r 'fromjson? | objects | .{id_field} | strings' "$f" 2>/dev/null | tr '\n' ',')
    n=$(grep -c '[^[:space:]]' "$f" 2>/dev/null)
    printf '%s|%s|%s\n' "$rel" "${{n:-0}}" "$ids"
done
"""


def _shell_path(path: str) -> str:
    """Quote a remote path for the shell, keeping a leading ~ expandable."""
    if path == "~":
        return '"$HOME"'
    if path.startswith("~/"):
        return '"$HOME"/' + shlex.quote(path[2:])
    return shlex.quote(path)


def build_manifest_script(root: str, id_field: str = "uuid") -> str:
    """Render the remote shell script that lists a manifest for `root`."""
    if not _ID_FIELD_RE.match(id_field):
        raise ConfigurationError(f"Invalid identifier field name: {id_field!r}")
    return MANIFEST_SCRIPT.format(root=_shell_path(root), id_field=id_field).strip()


def format_manifest_line(rel_path: str, entry_count: int, ids: list[str]) -> str:
    joined = ",".join(ids)
    return f"{rel_path}|{entry_count}|{joined}{',' if ids else ''}"


class ManifestFetcher(ABC):
    """
    Interface for anything that can produce raw manifest text for a source.
    """

    def __init__(self, source: SourceConfig):
        self.source = source

    @property
    def source_name(self) -> str:
        return self.source.name

    @abstractmethod
    def fetch(self, timeout: Optional[float] = None) -> str:
        """
        Return raw manifest text for this source.

        :raises FetchError: On any transport or read failure.
        :raises FetchTimeout: If the source does not answer within `timeout`.
        """
        pass

    @abstractmethod
    def fetch_history(self, timeout: Optional[float] = None) -> str:
        """Return the raw history.jsonl text for this source."""
        pass


class SSHManifestFetcher(ManifestFetcher):
    """Builds the manifest on the remote host with find, jq and grep."""

    def __init__(self, source: SourceConfig, executor: Optional[SSHExecutor] = None):
        super().__init__(source)
        self.executor = executor or SSHExecutor(source)

    def fetch(self, timeout: Optional[float] = None) -> str:
        script = build_manifest_script(self.source.root, self.source.id_field)
        logger.info(f"Fetching session manifest from {self.source.name} ({self.source.target})")
        return self.executor.run(f"bash -c {shlex.quote(script)}", timeout=timeout)

    def fetch_history(self, timeout: Optional[float] = None) -> str:
        path = _shell_path(self.source.history_path)
        logger.info(f"Fetching history index from {self.source.name}")
        return self.executor.run(f"cat {path}", timeout=timeout)


class LocalManifestFetcher(ManifestFetcher):
    """Walks a local directory and decodes each log file in-process.

    The walk checks `timeout` between files and gives up with FetchTimeout
    once it is exceeded.
    """

    def fetch(self, timeout: Optional[float] = None) -> str:
        root = Path(self.source.root).expanduser()
        if not root.is_dir():
            raise FetchError(self.source.name, f"log root not found: {root}")

        logger.info(f"Scanning {root} for session logs")
        deadline = time.monotonic() + timeout if timeout else None
        lines = []
        for path in sorted(root.rglob("*.jsonl")):
            if deadline is not None and time.monotonic() > deadline:
                logger.error(f"Scan of {root} exceeded {timeout} seconds")
                raise FetchTimeout(self.source.name, timeout)
            if not path.is_file():
                continue
            rel_path = path.relative_to(root).as_posix()
            if "|" in rel_path:
                logger.warning(f"Skipping log with '|' in its path: {rel_path}")
                continue
            try:
                entry_count, ids = scan_log_file(path, self.source.id_field)
            except OSError as e:
                logger.warning(f"Failed to read {path}: {e}")
                continue
            lines.append(format_manifest_line(rel_path, entry_count, ids))
        return "\n".join(lines)

    def fetch_history(self, timeout: Optional[float] = None) -> str:
        return _read_text(self.source.name, Path(self.source.history_path).expanduser())


class FileManifestFetcher(ManifestFetcher):
    """Reads a manifest captured earlier (for example with the remote script)."""

    def fetch(self, timeout: Optional[float] = None) -> str:
        return _read_text(self.source.name, Path(self.source.root).expanduser())

    def fetch_history(self, timeout: Optional[float] = None) -> str:
        return _read_text(self.source.name, Path(self.source.root).expanduser())


def _read_text(source_name: str, path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise FetchError(source_name, f"file not found: {path}") from e
    except UnicodeDecodeError as e:
        raise ManifestParseError(source_name, f"{path} is not valid UTF-8: {e}") from e
    except OSError as e:
        raise FetchError(source_name, f"cannot read {path}: {e}") from e


_FETCHERS = {
    "ssh": SSHManifestFetcher,
    "local": LocalManifestFetcher,
    "file": FileManifestFetcher,
}


def build_fetcher(source: SourceConfig) -> ManifestFetcher:
    """Pick the fetcher implementation for `source.kind`."""
    try:
        fetcher_cls = _FETCHERS[source.kind]
    except KeyError:
        raise ConfigurationError(f"Unknown source kind: {source.kind}")
    return fetcher_cls(source)
